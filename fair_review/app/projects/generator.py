"""Finding generators producing the AI review of a project."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import List, Optional, Protocol, Sequence

from fair_review.app.common.utils import generate_id
from fair_review.app.core.config import Settings
from fair_review.app.review.schemas import ReviewIssue, ReviewRequest
from fair_review.app.review.service import ReviewService

from .schemas import AIReview, Finding, Project, RiskLevel

logger = logging.getLogger(__name__)

CATEGORIES = ["市场准入", "要素流动", "经营成本", "经营行为"]
SAMPLE_TEXTS = [
    "第八条：本地区企业享有优先采购权",
    "第三条：对外地企业收取额外保证金",
    "第五条：设定限制性行业准入条件",
    "第二条：对特定行业实行产量配额",
]
ANALYSES = [
    "可能构成地方保护或排他性措施，限制市场准入",
    "可能影响要素自由流动，涉嫌差别待遇",
    "可能提高企业经营成本，造成不公平竞争",
    "可能限制经营者的正常经营行为",
]
ADJUSTMENTS = [
    "建议删除差别待遇条款，改为统一标准",
    "建议取消额外保证金要求，实行平等准入",
    "建议完善条款表述，避免限制性措施",
    "建议按照国家相关法规调整",
]
LAW_REFERENCES = [
    "《反不正当竞争法》第八条",
    "《行政许可法》第十五条",
    "《公平竞争审查办法》第二条",
    "《市场主体登记管理条例》第十条",
]
LEVEL_CYCLE = [RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW]

MIN_FINDINGS = 2
MAX_FINDINGS = 4


class FindingGenerator(Protocol):
    async def generate(self, project: Project) -> AIReview:
        ...


def assemble_review(findings: Sequence[Finding]) -> AIReview:
    """Wrap findings into a fresh review with no dispositions yet."""
    return AIReview(
        overall_risk=RiskLevel.highest(item.risk_level for item in findings),
        risk_items=list(findings),
        actions={},
    )


class DemoFindingGenerator:
    """Stand-in for a real backend: 2-4 findings drawn from a fixed pool."""

    def __init__(self, *, delay_seconds: float = 0.0, rng: Optional[random.Random] = None) -> None:
        self.delay_seconds = delay_seconds
        self._rng = rng or random.Random()

    async def generate(self, project: Project) -> AIReview:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        count = self._rng.randint(MIN_FINDINGS, MAX_FINDINGS)
        findings: List[Finding] = []
        for i in range(count):
            idx = self._rng.randrange(len(CATEGORIES))
            findings.append(
                Finding(
                    id=generate_id("R"),
                    category=CATEGORIES[idx],
                    suspected_text=SAMPLE_TEXTS[i % len(SAMPLE_TEXTS)],
                    analysis=ANALYSES[idx],
                    risk_level=LEVEL_CYCLE[i % len(LEVEL_CYCLE)],
                    suggested_adjustment=ADJUSTMENTS[idx],
                    law_reference=LAW_REFERENCES[idx],
                )
            )
        logger.info(
            f"Generated {count} demo findings for project {project.id}",
            extra={"project_id": project.id, "finding_count": count},
        )
        return assemble_review(findings)


class LLMFindingGenerator:
    """Runs the document review contract and maps its issues to findings."""

    def __init__(self, review_service: ReviewService) -> None:
        self._review_service = review_service

    async def generate(self, project: Project) -> AIReview:
        content = project.content.strip() or "\n".join(
            part for part in (project.policy_title, project.scope) if part
        )
        request = ReviewRequest(business_type=project.draft_type or None, content=content)
        # The backend call blocks on network I/O.
        response = await asyncio.to_thread(self._review_service.review, request)
        findings = [self._to_finding(issue) for issue in response.issues]
        logger.info(
            f"LLM review produced {len(findings)} findings for project {project.id}",
            extra={"project_id": project.id, "finding_count": len(findings), "risk_score": response.risk_score},
        )
        return assemble_review(findings)

    @staticmethod
    def _to_finding(issue: ReviewIssue) -> Finding:
        return Finding(
            id=generate_id("R"),
            category=issue.title,
            suspected_text="",
            analysis=issue.description,
            risk_level=normalize_level(issue.level),
            suggested_adjustment=issue.suggestion,
            law_reference=issue.law_reference,
        )


def normalize_level(value: str) -> RiskLevel:
    """Map a model-reported level onto 低/中/高; anything unrecognised is 中."""
    text = (value or "").strip()
    for level in RiskLevel:
        if level.value in text:
            return level
    lowered = text.lower()
    if lowered in {"high", "h"}:
        return RiskLevel.HIGH
    if lowered in {"low", "l"}:
        return RiskLevel.LOW
    return RiskLevel.MEDIUM


def build_generator(settings: Settings, *, review_service: Optional[ReviewService] = None) -> FindingGenerator:
    kind = (settings.review_generator or "demo").lower()
    if kind == "demo":
        return DemoFindingGenerator(delay_seconds=settings.demo_delay_seconds)
    if kind == "llm":
        if review_service is None:
            raise ValueError("LLM finding generator requires a review service")
        return LLMFindingGenerator(review_service)
    raise NotImplementedError(f"Review generator '{settings.review_generator}' not implemented")
