from __future__ import annotations

import os
import random
import tempfile
from datetime import datetime

# Settings are read at import time, so the test environment has to be in place first.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="fair_review_tests_")
os.environ.setdefault("FCR_DATABASE_URL", f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}")
os.environ.setdefault("FCR_DEMO_DELAY_SECONDS", "0")
os.environ.setdefault("FCR_LLM_PROVIDER", "stub")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from fair_review.app.core import dependencies  # noqa: E402
from fair_review.app.projects.generator import DemoFindingGenerator  # noqa: E402
from fair_review.app.projects.repository import InMemoryProjectRepository  # noqa: E402
from fair_review.app.projects.schemas import AIReview, Finding, RiskLevel  # noqa: E402
from fair_review.app.projects.service import ProjectService  # noqa: E402
from fair_review.app.review.llm import StubReviewBackend  # noqa: E402
from fair_review.app.review.service import ReviewService  # noqa: E402

FIXED_NOW = datetime(2024, 5, 6, 9, 30, 42)


@pytest.fixture
def repository() -> InMemoryProjectRepository:
    return InMemoryProjectRepository()


@pytest.fixture
def project_service(repository: InMemoryProjectRepository) -> ProjectService:
    return ProjectService(
        repository,
        DemoFindingGenerator(rng=random.Random(7)),
        review_timeout=5.0,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def review_service() -> ReviewService:
    return ReviewService(StubReviewBackend())


@pytest.fixture
def client(project_service: ProjectService, review_service: ReviewService):
    from fair_review.app.main import app

    app.dependency_overrides[dependencies.get_project_service] = lambda: project_service
    app.dependency_overrides[dependencies.get_review_service] = lambda: review_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_review(*levels: RiskLevel, categories=None) -> AIReview:
    categories = categories or ["市场准入"] * len(levels)
    findings = [
        Finding(
            id=f"R{i}",
            category=category,
            suspected_text=f"第{i}条",
            analysis=f"分析{i}",
            risk_level=level,
            suggested_adjustment=f"建议{i}",
            law_reference="《公平竞争审查办法》第二条",
        )
        for i, (level, category) in enumerate(zip(levels, categories), start=1)
    ]
    return AIReview(
        overall_risk=RiskLevel.highest(item.risk_level for item in findings),
        risk_items=findings,
        actions={},
    )


@pytest.fixture
def review_factory():
    return make_review
