"""Reusable FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from fair_review.app.core.config import get_settings
from fair_review.app.core.database import SessionLocal
from fair_review.app.projects.generator import build_generator
from fair_review.app.projects.repository import ProjectRepository, SqlAlchemyProjectRepository
from fair_review.app.projects.service import ProjectService
from fair_review.app.review.llm import build_backend
from fair_review.app.review.service import ReviewService


@lru_cache()
def get_review_service() -> ReviewService:
    return ReviewService(build_backend(get_settings()))


@lru_cache()
def get_project_repository() -> ProjectRepository:
    return SqlAlchemyProjectRepository(SessionLocal)


@lru_cache()
def get_project_service() -> ProjectService:
    settings = get_settings()
    return ProjectService(
        get_project_repository(),
        build_generator(settings, review_service=get_review_service()),
        review_timeout=settings.review_timeout_seconds,
    )
