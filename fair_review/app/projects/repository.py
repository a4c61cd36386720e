"""Storage for the project collection behind a ``list/get/save`` interface."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fair_review.app.common.utils import format_timestamp, parse_timestamp
from fair_review.app.core.database import session_scope

from .models import ProjectRecord
from .schemas import AIReview, Project


class ProjectRepository(ABC):
    """Ordered collection of projects, oldest first."""

    @abstractmethod
    def list(self) -> List[Project]:
        ...

    @abstractmethod
    def get(self, project_id: str) -> Optional[Project]:
        ...

    @abstractmethod
    def save(self, project: Project) -> Project:
        """Insert or fully replace one project record."""


class InMemoryProjectRepository(ProjectRepository):
    """Thread-safe in-memory store. Records are copied in and out."""

    def __init__(self) -> None:
        self._projects: Dict[str, Project] = {}
        self._lock = threading.Lock()

    def list(self) -> List[Project]:
        with self._lock:
            return [project.model_copy(deep=True) for project in self._projects.values()]

    def get(self, project_id: str) -> Optional[Project]:
        with self._lock:
            project = self._projects.get(project_id)
            return project.model_copy(deep=True) if project else None

    def save(self, project: Project) -> Project:
        with self._lock:
            self._projects[project.id] = project.model_copy(deep=True)
        return project


class SqlAlchemyProjectRepository(ProjectRepository):
    """Relational store, one transactional session per call."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def list(self) -> List[Project]:
        with session_scope(self._session_factory) as db:
            rows = db.scalars(select(ProjectRecord).order_by(ProjectRecord.seq.asc()))
            return [self._to_domain(row) for row in rows]

    def get(self, project_id: str) -> Optional[Project]:
        with session_scope(self._session_factory) as db:
            row = db.get(ProjectRecord, project_id)
            return self._to_domain(row) if row else None

    def save(self, project: Project) -> Project:
        with session_scope(self._session_factory) as db:
            row = db.get(ProjectRecord, project.id)
            if row is None:
                next_seq = (db.scalar(select(func.max(ProjectRecord.seq))) or 0) + 1
                row = ProjectRecord(id=project.id, seq=next_seq)
                db.add(row)
            self._apply(row, project)
        return project

    @staticmethod
    def _apply(row: ProjectRecord, project: Project) -> None:
        row.project_name = project.project_name
        row.policy_title = project.policy_title
        row.org = project.org
        row.draft_type = project.draft_type
        row.scope = project.scope
        row.release_date = project.release_date
        row.is_secret = project.is_secret
        row.apply_exception = project.apply_exception
        row.content = project.content
        row.status = project.status
        row.created_at = parse_timestamp(project.created_at)
        row.updated_at = parse_timestamp(project.updated_at)
        row.ai_review = (
            project.ai_review.model_dump(mode="json", by_alias=True) if project.ai_review else None
        )

    @staticmethod
    def _to_domain(row: ProjectRecord) -> Project:
        return Project(
            id=row.id,
            project_name=row.project_name,
            policy_title=row.policy_title,
            org=row.org,
            draft_type=row.draft_type,
            scope=row.scope,
            release_date=row.release_date,
            is_secret=row.is_secret,
            apply_exception=row.apply_exception,
            content=row.content,
            status=row.status,
            created_at=format_timestamp(row.created_at),
            updated_at=format_timestamp(row.updated_at),
            ai_review=AIReview.model_validate(row.ai_review) if row.ai_review else None,
        )
