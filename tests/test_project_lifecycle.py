from __future__ import annotations

import asyncio
import logging

import pytest

from fair_review.app.common.errors import (
    NotFoundError,
    ReviewTimeoutError,
    ValidationError,
    WorkflowStateError,
)
from fair_review.app.projects.schemas import (
    DispositionInput,
    DispositionType,
    ProjectCreate,
    ProjectStatus,
    RiskLevel,
)
from fair_review.app.projects.service import ProjectService, complete_review_in_background

# Statuses in which a project carries an AI review.
REVIEWED_STATUSES = frozenset(
    {ProjectStatus.AI_COMPLETED, ProjectStatus.DEPT_REVIEWING, ProjectStatus.APPROVED}
)


def _create(service: ProjectService, **overrides):
    data = {
        "project_name": "  招商引资政策审查 ",
        "policy_title": "关于促进本地制造业发展的若干措施",
        "org": "市发展改革委",
        "draft_type": "规范性文件",
        "scope": "全市",
        "release_date": "2024-06-01",
        "is_secret": False,
        "apply_exception": True,
    }
    data.update(overrides)
    return service.create_project(ProjectCreate(**data))


def _assert_review_invariant(project):
    if project.ai_review is not None:
        assert project.status in REVIEWED_STATUSES
    else:
        assert project.status in {ProjectStatus.DRAFT, ProjectStatus.AI_REVIEWING}


class FailingGenerator:
    async def generate(self, project):
        raise RuntimeError("backend down")


class SlowGenerator:
    async def generate(self, project):
        await asyncio.sleep(5)


def test_create_project_starts_as_draft(project_service, repository):
    project = _create(project_service)

    assert project.status == ProjectStatus.DRAFT
    assert project.ai_review is None
    assert project.project_name == "招商引资政策审查"
    assert project.created_at == project.updated_at == "2024-05-06 09:30"
    assert project.id.startswith("P")
    assert repository.get(project.id) == project


@pytest.mark.parametrize("field", ["project_name", "policy_title"])
def test_create_project_requires_name_and_title(project_service, repository, field):
    with pytest.raises(ValidationError) as excinfo:
        _create(project_service, **{field: "   "})

    assert excinfo.value.message == "请填写完整的项目名称和文件名称"
    assert repository.list() == []


def test_full_review_cycle_completes_with_two_to_four_findings(project_service, repository):
    project = _create(project_service)

    reviewed = asyncio.run(project_service.run_review(project.id))

    assert reviewed.status == ProjectStatus.AI_COMPLETED
    assert 2 <= len(reviewed.ai_review.risk_items) <= 4
    assert reviewed.ai_review.actions == {}
    assert reviewed.ai_review.overall_risk == RiskLevel.highest(
        item.risk_level for item in reviewed.ai_review.risk_items
    )
    assert repository.get(project.id) == reviewed
    _assert_review_invariant(reviewed)


def test_start_review_marks_project_reviewing(project_service):
    project = _create(project_service)

    reviewing = project_service.start_review(project.id)

    assert reviewing.status == ProjectStatus.AI_REVIEWING
    assert reviewing.ai_review is None
    _assert_review_invariant(reviewing)


def test_start_review_is_guarded_to_draft(project_service):
    project = _create(project_service)
    project_service.start_review(project.id)

    with pytest.raises(WorkflowStateError):
        project_service.start_review(project.id)

    asyncio.run(project_service.complete_review(project.id))
    with pytest.raises(WorkflowStateError):
        project_service.start_review(project.id)


def test_complete_review_requires_reviewing_status(project_service):
    project = _create(project_service)

    with pytest.raises(WorkflowStateError):
        asyncio.run(project_service.complete_review(project.id))


def test_review_timeout_reverts_to_draft(repository):
    service = ProjectService(repository, SlowGenerator(), review_timeout=0.01)
    project = _create(service)

    with pytest.raises(ReviewTimeoutError):
        asyncio.run(service.run_review(project.id))

    stored = repository.get(project.id)
    assert stored.status == ProjectStatus.DRAFT
    assert stored.ai_review is None


def test_generator_failure_reverts_to_draft(repository):
    service = ProjectService(repository, FailingGenerator())
    project = _create(service)

    with pytest.raises(RuntimeError):
        asyncio.run(service.run_review(project.id))

    assert repository.get(project.id).status == ProjectStatus.DRAFT


def test_background_review_logs_unexpected_failure(repository, caplog):
    service = ProjectService(repository, FailingGenerator())
    project = _create(service)
    service.start_review(project.id)

    with caplog.at_level(logging.ERROR, logger="fair_review.app.projects.service"):
        asyncio.run(complete_review_in_background(service, project.id))

    assert repository.get(project.id).status == ProjectStatus.DRAFT
    assert any(
        record.getMessage() == f"Background AI review for project {project.id} failed" and record.exc_info
        for record in caplog.records
    )


def test_background_review_logs_timeout_as_warning(repository, caplog):
    service = ProjectService(repository, SlowGenerator(), review_timeout=0.01)
    project = _create(service)
    service.start_review(project.id)

    with caplog.at_level(logging.WARNING, logger="fair_review.app.projects.service"):
        asyncio.run(complete_review_in_background(service, project.id))

    assert repository.get(project.id).status == ProjectStatus.DRAFT
    assert any("did not complete" in record.getMessage() for record in caplog.records)


def test_unknown_project_raises_not_found(project_service):
    with pytest.raises(NotFoundError) as excinfo:
        project_service.get_project("missing")

    assert excinfo.value.message == "未找到该项目"
    with pytest.raises(NotFoundError):
        project_service.start_review("missing")


def test_submit_without_review_leaves_project_unchanged(project_service, repository):
    project = _create(project_service)

    with pytest.raises(WorkflowStateError) as excinfo:
        project_service.submit_for_department_review(project.id)

    assert excinfo.value.message == "请先完成 AI 审查"
    assert repository.get(project.id) == project


def test_submit_after_review_moves_to_department_review(project_service):
    project = _create(project_service)
    asyncio.run(project_service.run_review(project.id))

    submitted = project_service.submit_for_department_review(project.id)

    assert submitted.status == ProjectStatus.DEPT_REVIEWING
    assert submitted.ai_review is not None
    _assert_review_invariant(submitted)


def test_save_dispositions_requires_review(project_service):
    project = _create(project_service)

    with pytest.raises(WorkflowStateError):
        project_service.save_dispositions(project.id, {})


def test_save_dispositions_merges_and_skips_unset_rows(project_service):
    project = _create(project_service)
    reviewed = asyncio.run(project_service.run_review(project.id))
    first, second = reviewed.ai_review.finding_ids()[:2]

    project_service.save_dispositions(
        project.id,
        {first: DispositionInput(type="adopt", desc="  已删除差别待遇条款 ")},
    )
    updated = project_service.save_dispositions(
        project.id,
        {
            first: DispositionInput(type="", desc="ignored"),
            second: DispositionInput(type=DispositionType.EXCEPTION),
        },
    )

    actions = updated.ai_review.actions
    assert actions[first].type == DispositionType.ADOPT
    assert actions[first].desc == "已删除差别待遇条款"
    assert actions[second].type == DispositionType.EXCEPTION
    assert actions[second].desc == ""


def test_save_dispositions_is_idempotent(project_service):
    project = _create(project_service)
    reviewed = asyncio.run(project_service.run_review(project.id))
    form = {
        finding_id: DispositionInput(type="reject", desc="不适用")
        for finding_id in reviewed.ai_review.finding_ids()
    }

    once = project_service.save_dispositions(project.id, form).ai_review.actions
    twice = project_service.save_dispositions(project.id, form).ai_review.actions

    assert once == twice


def test_save_dispositions_rejects_unknown_findings_atomically(project_service, repository):
    project = _create(project_service)
    reviewed = asyncio.run(project_service.run_review(project.id))
    known = reviewed.ai_review.finding_ids()[0]

    with pytest.raises(NotFoundError):
        project_service.save_dispositions(
            project.id,
            {known: DispositionInput(type="adopt"), "R-missing": DispositionInput(type="adopt")},
        )

    assert repository.get(project.id).ai_review.actions == {}


def test_dispositions_allowed_after_submission(project_service):
    project = _create(project_service)
    reviewed = asyncio.run(project_service.run_review(project.id))
    project_service.submit_for_department_review(project.id)
    finding_id = reviewed.ai_review.finding_ids()[0]

    updated = project_service.save_dispositions(project.id, {finding_id: DispositionInput(type="adopt")})

    assert updated.status == ProjectStatus.DEPT_REVIEWING
    assert finding_id in updated.ai_review.actions
