"""SQLAlchemy model backing the project collection."""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fair_review.app.common.models import TimestampMixin
from fair_review.app.core.database import Base

from .schemas import ProjectStatus


class ProjectRecord(TimestampMixin, Base):
    """One compliance review project.

    The AI review is stored whole in a JSON column: it is always written
    together with the status change that produced it.
    """

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    seq: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    policy_title: Mapped[str] = mapped_column(String(255), nullable=False)
    org: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    draft_type: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    scope: Mapped[str] = mapped_column(Text, nullable=False, default="")
    release_date: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    is_secret: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    apply_exception: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus),
        nullable=False,
        default=ProjectStatus.DRAFT,
        index=True,
    )
    ai_review: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<ProjectRecord(id={self.id}, status={self.status}, name={self.project_name!r})>"
