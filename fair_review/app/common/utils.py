"""Small helpers for identifiers and timestamps."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


def generate_id(prefix: str = "P") -> str:
    """Return an opaque identifier such as ``P3f9c0a1b2d4e``."""

    return f"{prefix}{uuid.uuid4().hex[:12]}"


def format_timestamp(value: Optional[datetime] = None) -> str:
    return (value or datetime.now()).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT)
