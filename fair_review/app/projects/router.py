"""REST endpoints for compliance review projects."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status

from fair_review.app.core import dependencies
from fair_review.app.core.config import get_settings

from . import schemas
from .service import ProjectService, complete_review_in_background

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=schemas.ProjectListResponse)
def list_projects(service: ProjectService = Depends(dependencies.get_project_service)):
    return schemas.ProjectListResponse(items=service.list_projects())


@router.post("", response_model=schemas.Project, status_code=status.HTTP_201_CREATED)
def create_project(
    request: schemas.ProjectCreate,
    service: ProjectService = Depends(dependencies.get_project_service),
):
    return service.create_project(request)


@router.get("/dashboard", response_model=schemas.DashboardSummary)
def get_dashboard(service: ProjectService = Depends(dependencies.get_project_service)):
    return service.dashboard_summary()


@router.get("/stats", response_model=schemas.Statistics)
def get_statistics(service: ProjectService = Depends(dependencies.get_project_service)):
    return service.statistics()


@router.get("/{project_id}", response_model=schemas.Project)
def get_project(project_id: str, service: ProjectService = Depends(dependencies.get_project_service)):
    return service.get_project(project_id)


@router.post("/{project_id}/review", response_model=schemas.Project)
async def start_review(
    project_id: str,
    response: Response,
    background_tasks: BackgroundTasks,
    wait: Optional[bool] = Query(None, description="等待 AI 审查完成后再返回"),
    service: ProjectService = Depends(dependencies.get_project_service),
):
    """Start the AI review of a draft project.

    In async mode the project is returned in AI_REVIEWING with status 202 and
    the review finishes in a background task; otherwise the completed project
    is returned.
    """
    wait_for_result = (not get_settings().review_async_mode_default) if wait is None else wait

    project = service.start_review(project_id)
    if wait_for_result:
        return await service.complete_review(project_id)

    background_tasks.add_task(complete_review_in_background, service, project_id)
    response.status_code = status.HTTP_202_ACCEPTED
    return project


@router.put("/{project_id}/actions", response_model=schemas.Project)
def save_actions(
    project_id: str,
    form: schemas.DispositionForm,
    service: ProjectService = Depends(dependencies.get_project_service),
):
    return service.save_dispositions(project_id, form.actions)


@router.post("/{project_id}/submit", response_model=schemas.Project)
def submit_for_department_review(
    project_id: str,
    service: ProjectService = Depends(dependencies.get_project_service),
):
    return service.submit_for_department_review(project_id)


@router.get("/{project_id}/report", response_model=schemas.ProjectReport)
def get_report(project_id: str, service: ProjectService = Depends(dependencies.get_project_service)):
    return service.build_report(project_id)
