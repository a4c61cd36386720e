"""Project lifecycle: creation, AI review, dispositions, submission and read views."""

from __future__ import annotations

import asyncio
import logging
import math
from collections import Counter
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Tuple

from fair_review.app.common.errors import (
    ComplianceReviewError,
    NotFoundError,
    ReviewTimeoutError,
    ValidationError,
    WorkflowStateError,
)
from fair_review.app.common.utils import format_timestamp, generate_id

from . import schemas
from .generator import FindingGenerator
from .repository import ProjectRepository

logger = logging.getLogger(__name__)

UNREVIEWED_LABEL = "未审"
COMPLETED_STATUSES = frozenset({schemas.ProjectStatus.AI_COMPLETED, schemas.ProjectStatus.APPROVED})


class ProjectService:
    """Workflow operations over the project collection.

    Every mutation reads the current record, changes it and writes the whole
    record back; nothing is persisted when an operation fails.
    """

    def __init__(
        self,
        repository: ProjectRepository,
        generator: FindingGenerator,
        *,
        review_timeout: float = 60.0,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._repository = repository
        self._generator = generator
        self._review_timeout = review_timeout
        self._clock = clock

    def _now(self) -> str:
        return format_timestamp(self._clock())

    # ------------------------------------------------------------------ read
    def list_projects(self) -> List[schemas.Project]:
        return self._repository.list()

    def get_project(self, project_id: str) -> schemas.Project:
        project = self._repository.get(project_id)
        if project is None:
            raise NotFoundError("未找到该项目")
        return project

    # ------------------------------------------------------------------ lifecycle
    def create_project(self, data: schemas.ProjectCreate) -> schemas.Project:
        project_name = data.project_name.strip()
        policy_title = data.policy_title.strip()
        if not project_name or not policy_title:
            raise ValidationError("请填写完整的项目名称和文件名称")

        now = self._now()
        project = schemas.Project(
            id=generate_id("P"),
            project_name=project_name,
            policy_title=policy_title,
            org=data.org.strip(),
            draft_type=data.draft_type,
            scope=data.scope.strip(),
            release_date=data.release_date,
            is_secret=data.is_secret,
            apply_exception=data.apply_exception,
            content=data.content,
            status=schemas.ProjectStatus.DRAFT,
            created_at=now,
            updated_at=now,
            ai_review=None,
        )
        self._repository.save(project)
        logger.info(f"Created project {project.id}", extra={"project_id": project.id})
        return project

    def start_review(self, project_id: str) -> schemas.Project:
        project = self.get_project(project_id)
        if project.status != schemas.ProjectStatus.DRAFT:
            raise WorkflowStateError(f"项目当前状态为 {project.status.label()}，无法发起 AI 审查")

        project.status = schemas.ProjectStatus.AI_REVIEWING
        project.updated_at = self._now()
        self._repository.save(project)
        logger.info(f"Started AI review for project {project_id}", extra={"project_id": project_id})
        return project

    async def complete_review(self, project_id: str) -> schemas.Project:
        """Run the generator for a project in AI_REVIEWING and store its result.

        On timeout, failure or cancellation the project goes back to DRAFT so
        the review can be started again.
        """
        project = self.get_project(project_id)
        if project.status != schemas.ProjectStatus.AI_REVIEWING:
            raise WorkflowStateError("项目未处于 AI 审查中")

        try:
            review = await asyncio.wait_for(self._generator.generate(project), timeout=self._review_timeout)
        except asyncio.TimeoutError as exc:
            self._revert_to_draft(project_id)
            raise ReviewTimeoutError("AI 审查超时，请重新发起") from exc
        except asyncio.CancelledError:
            self._revert_to_draft(project_id)
            raise
        except Exception:
            logger.exception(f"AI review failed for project {project_id}", extra={"project_id": project_id})
            self._revert_to_draft(project_id)
            raise

        project = self.get_project(project_id)
        project.ai_review = review
        project.status = schemas.ProjectStatus.AI_COMPLETED
        project.updated_at = self._now()
        self._repository.save(project)
        logger.info(
            f"Completed AI review for project {project_id} (overall risk {review.overall_risk.value})",
            extra={"project_id": project_id, "finding_count": len(review.risk_items)},
        )
        return project

    async def run_review(self, project_id: str) -> schemas.Project:
        self.start_review(project_id)
        return await self.complete_review(project_id)

    def _revert_to_draft(self, project_id: str) -> None:
        project = self._repository.get(project_id)
        if project is None or project.status != schemas.ProjectStatus.AI_REVIEWING:
            return
        project.status = schemas.ProjectStatus.DRAFT
        project.updated_at = self._now()
        self._repository.save(project)
        logger.warning(f"Project {project_id} reverted to DRAFT", extra={"project_id": project_id})

    def save_dispositions(
        self,
        project_id: str,
        form: Mapping[str, schemas.DispositionInput],
    ) -> schemas.Project:
        """Merge the chosen dispositions into the review's action map.

        Rows without a chosen type leave any existing disposition untouched.
        """
        project = self.get_project(project_id)
        review = project.ai_review
        if review is None:
            raise WorkflowStateError("请先完成 AI 审查")

        known_ids = set(review.finding_ids())
        unknown = [finding_id for finding_id in form if finding_id not in known_ids]
        if unknown:
            raise NotFoundError(f"未找到风险项: {', '.join(unknown)}")

        for finding_id, row in form.items():
            if row.type is None:
                continue
            review.actions[finding_id] = schemas.Disposition(type=row.type, desc=(row.desc or "").strip())

        project.updated_at = self._now()
        self._repository.save(project)
        logger.info(
            f"Saved dispositions for project {project_id}",
            extra={"project_id": project_id, "action_count": len(review.actions)},
        )
        return project

    def submit_for_department_review(self, project_id: str) -> schemas.Project:
        project = self.get_project(project_id)
        if project.ai_review is None:
            raise WorkflowStateError("请先完成 AI 审查")

        project.status = schemas.ProjectStatus.DEPT_REVIEWING
        project.updated_at = self._now()
        self._repository.save(project)
        logger.info(f"Submitted project {project_id} for department review", extra={"project_id": project_id})
        return project

    # ------------------------------------------------------------------ projections
    def dashboard_summary(self) -> schemas.DashboardSummary:
        projects = self._repository.list()
        return schemas.DashboardSummary(
            total=len(projects),
            completed=sum(1 for p in projects if p.status in COMPLETED_STATUSES),
            pending=sum(1 for p in projects if p.status == schemas.ProjectStatus.DRAFT),
            projects=[
                schemas.ProjectRow(
                    id=p.id,
                    project_name=p.project_name,
                    org=p.org,
                    draft_type=p.draft_type,
                    status=p.status,
                    updated_at=p.updated_at,
                )
                for p in projects
            ],
        )

    def statistics(self) -> schemas.Statistics:
        projects = self._repository.list()

        risk_order = (schemas.RiskLevel.HIGH, schemas.RiskLevel.MEDIUM, schemas.RiskLevel.LOW)
        risk_counts: Dict[str, int] = {level.value: 0 for level in risk_order}
        risk_counts[UNREVIEWED_LABEL] = 0
        for p in projects:
            label = p.ai_review.overall_risk.value if p.ai_review else UNREVIEWED_LABEL
            risk_counts[label] = risk_counts.get(label, 0) + 1

        status_counts = Counter(p.status.value for p in projects)
        category_counts = Counter(
            item.category for p in projects if p.ai_review for item in p.ai_review.risk_items
        )

        return schemas.Statistics(
            risk=_distribution(risk_counts.items()),
            status=_distribution(status_counts.items()),
            category=_distribution(category_counts.items()),
        )

    def build_report(self, project_id: str) -> schemas.ProjectReport:
        project = self._repository.get(project_id)
        if project is None or project.ai_review is None:
            raise NotFoundError("未找到审查报告")

        review = project.ai_review
        rows = []
        for item in review.risk_items:
            action = review.actions.get(item.id)
            rows.append(
                schemas.ReportRow(
                    category=item.category,
                    analysis=item.analysis,
                    risk_level=item.risk_level,
                    suggested_adjustment=item.suggested_adjustment,
                    action_type=action.type if action else None,
                    action_label=action.type.label() if action else "",
                    action_desc=action.desc if action else "",
                )
            )
        return schemas.ProjectReport(
            project_name=project.project_name,
            org=project.org,
            reviewed_at=project.updated_at,
            overall_risk=review.overall_risk,
            rows=rows,
        )


def _distribution(counts: Iterable[Tuple[str, int]]) -> List[schemas.DistributionEntry]:
    pairs = list(counts)
    total = sum(count for _, count in pairs)
    return [
        schemas.DistributionEntry(
            label=label,
            count=count,
            percent=math.floor(count * 100 / total + 0.5) if total else 0,
        )
        for label, count in pairs
    ]


async def complete_review_in_background(service: ProjectService, project_id: str) -> None:
    """Background-task entry point. Failures are logged; the project is already back in DRAFT."""
    try:
        await service.complete_review(project_id)
    except ComplianceReviewError as exc:
        logger.warning(
            f"Background AI review for project {project_id} did not complete: {exc.message}",
            extra={"project_id": project_id},
        )
    except Exception:
        logger.exception(
            f"Background AI review for project {project_id} failed",
            extra={"project_id": project_id},
        )
