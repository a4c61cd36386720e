"""Review contract: validate, prompt, call the backend, normalize the reply."""

from __future__ import annotations

import json
import logging
import math
from numbers import Real
from typing import Any, List, Optional, Union

from fair_review.app.common.errors import UpstreamFormatError, ValidationError

from .llm import ReviewBackend
from .prompt import build_prompt
from .schemas import ReviewIssue, ReviewRequest, ReviewResponse

logger = logging.getLogger(__name__)

CONTENT_REQUIRED_MESSAGE = "content 不能为空"

ISSUE_FIELDS = ("title", "level", "description", "suggestion", "lawReference")


class ReviewService:
    """Stateless wrapper around one generation backend."""

    def __init__(self, backend: ReviewBackend) -> None:
        self._backend = backend

    def review(self, body: Any) -> ReviewResponse:
        request = ReviewRequest.from_body(body)
        content = request.content if request is not None else None
        if not isinstance(content, str) or not content.strip():
            raise ValidationError(CONTENT_REQUIRED_MESSAGE)

        prompt = build_prompt(
            business_type=request.business_type,
            jurisdiction=request.jurisdiction,
            content=content,
            options=request.options,
        )
        raw = self._backend.generate(prompt)

        if isinstance(raw, (str, bytes)):
            try:
                parsed = json.loads(raw)
            except ValueError as exc:
                logger.error(f"解析大模型返回值失败: {exc}", extra={"raw": str(raw)[:500]})
                raise UpstreamFormatError("解析大模型结果失败") from exc
        else:
            parsed = raw

        return normalize_review_payload(parsed)


def normalize_review_payload(parsed: Any) -> ReviewResponse:
    """Coerce whatever the backend produced into the fixed response shape.

    Never raises. Missing or mistyped fields fall back to ``None``/``""``/``[]``.
    """
    if not isinstance(parsed, dict):
        logger.warning("Backend payload is not an object", extra={"payload_type": type(parsed).__name__})
        parsed = {}

    risk_score = _score(parsed.get("riskScore"))

    issues_raw = parsed.get("issues")
    issues = _normalize_issues(issues_raw) if isinstance(issues_raw, list) else []

    return ReviewResponse(
        risk_score=risk_score,
        summary=_text(parsed.get("summary")),
        issues=issues,
        model_note=_text(parsed.get("modelNote")),
    )


def _normalize_issues(items: List[Any]) -> List[ReviewIssue]:
    issues: List[ReviewIssue] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning(f"Dropping non-object issue at index {index}", extra={"index": index})
            continue
        values = {field: _text(item.get(field)) for field in ISSUE_FIELDS}
        issues.append(ReviewIssue.model_validate(values))
    return issues


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False) if isinstance(value, (dict, list)) else str(value)
    except (TypeError, ValueError):
        return ""


def _score(value: Any) -> Optional[Union[int, float]]:
    """Numbers pass through; bools, text and anything beyond float range become ``None``."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    try:
        finite = math.isfinite(value)
    except OverflowError:
        return None
    return value if finite else None
