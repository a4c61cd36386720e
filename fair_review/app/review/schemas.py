"""Pydantic schemas for the review API."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ReviewRequest(BaseModel):
    """Body of ``POST /api/review``.

    Every field is loose so the service can answer a missing or non-text
    ``content`` with its own 400 message. ``options`` that is not an object is
    dropped, and a non-text ``businessType``/``jurisdiction`` is turned into text.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    business_type: Any = None
    jurisdiction: Any = None
    content: Any = None
    options: Any = None

    @field_validator("business_type", "jurisdiction")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        if not value:
            return None
        if isinstance(value, str):
            return value
        if isinstance(value, (dict, list)):
            return json.dumps(value, ensure_ascii=False)
        return str(value)

    @field_validator("options")
    @classmethod
    def _drop_non_object_options(cls, value: Any) -> Optional[Dict[str, Any]]:
        return value if isinstance(value, dict) else None

    @classmethod
    def from_body(cls, body: Any) -> Optional["ReviewRequest"]:
        """Read a raw JSON body; anything but an object counts as no request."""
        if isinstance(body, cls):
            return body
        if not isinstance(body, dict):
            return None
        return cls.model_validate(body)


class ReviewIssue(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = ""
    level: str = ""
    description: str = ""
    suggestion: str = ""
    law_reference: str = ""


class ReviewResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    risk_score: Optional[Union[int, float]] = None
    summary: str = ""
    issues: List[ReviewIssue] = Field(default_factory=list)
    model_note: str = ""


class ErrorResponse(BaseModel):
    error: str
