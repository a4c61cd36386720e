"""Common SQLAlchemy mixins and utilities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column


class TimestampMixin:
    """Reusable columns for created/updated timestamps.

    Values are written explicitly by the service layer at minute granularity,
    so there is no ``onupdate`` hook here.
    """

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
