"""Pydantic schemas for compliance review projects.

These models are both the domain records handled by ``ProjectService`` and the
JSON shapes of the project API. Field names serialize in camelCase.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectStatus(str, Enum):
    DRAFT = "DRAFT"
    AI_REVIEWING = "AI_REVIEWING"
    AI_COMPLETED = "AI_COMPLETED"
    DEPT_REVIEWING = "DEPT_REVIEWING"
    APPROVED = "APPROVED"

    def label(self) -> str:
        mapping = {
            ProjectStatus.DRAFT: "草稿",
            ProjectStatus.AI_REVIEWING: "AI 审查中",
            ProjectStatus.AI_COMPLETED: "AI 审查完成",
            ProjectStatus.DEPT_REVIEWING: "本单位审核中",
            ProjectStatus.APPROVED: "已通过",
        }
        return mapping.get(self, self.value)


class RiskLevel(str, Enum):
    LOW = "低"
    MEDIUM = "中"
    HIGH = "高"

    @property
    def rank(self) -> int:
        return {RiskLevel.LOW: 1, RiskLevel.MEDIUM: 2, RiskLevel.HIGH: 3}[self]

    @classmethod
    def highest(cls, levels: Iterable["RiskLevel"]) -> "RiskLevel":
        """Maximum of ``levels`` (高 > 中 > 低), or 低 when empty."""
        return max(levels, key=lambda level: level.rank, default=cls.LOW)


class DispositionType(str, Enum):
    ADOPT = "adopt"
    EXCEPTION = "exception"
    REJECT = "reject"

    def label(self) -> str:
        mapping = {
            DispositionType.ADOPT: "采纳调整",
            DispositionType.EXCEPTION: "适用例外",
            DispositionType.REJECT: "不采纳",
        }
        return mapping[self]


class Finding(CamelModel):
    """One risk item of an AI review. Never edited after creation."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: str
    suspected_text: str = ""
    analysis: str = ""
    risk_level: RiskLevel
    suggested_adjustment: str = ""
    law_reference: str = ""


class Disposition(CamelModel):
    type: DispositionType
    desc: str = ""


class AIReview(CamelModel):
    overall_risk: RiskLevel = RiskLevel.LOW
    risk_items: List[Finding] = Field(default_factory=list)
    actions: Dict[str, Disposition] = Field(default_factory=dict)

    def finding_ids(self) -> List[str]:
        return [item.id for item in self.risk_items]


class ProjectCreate(CamelModel):
    project_name: str = ""
    policy_title: str = ""
    org: str = ""
    draft_type: str = ""
    scope: str = ""
    release_date: str = ""
    is_secret: bool = False
    apply_exception: bool = False
    content: str = ""


class Project(ProjectCreate):
    id: str
    status: ProjectStatus = ProjectStatus.DRAFT
    created_at: str
    updated_at: str
    ai_review: Optional[AIReview] = None


class ProjectListResponse(BaseModel):
    items: List[Project]


class DispositionInput(CamelModel):
    """One row of the review-action form; an empty ``type`` means "not chosen"."""

    type: Optional[DispositionType] = None
    desc: Optional[str] = ""

    @field_validator("type", mode="before")
    @classmethod
    def _blank_type_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class DispositionForm(CamelModel):
    actions: Dict[str, DispositionInput] = Field(default_factory=dict)


class ProjectRow(CamelModel):
    id: str
    project_name: str
    org: str
    draft_type: str
    status: ProjectStatus
    updated_at: str


class DashboardSummary(CamelModel):
    total: int
    completed: int
    pending: int
    projects: List[ProjectRow] = Field(default_factory=list)


class DistributionEntry(CamelModel):
    label: str
    count: int
    percent: int


class Statistics(CamelModel):
    risk: List[DistributionEntry]
    status: List[DistributionEntry]
    category: List[DistributionEntry]


class ReportRow(CamelModel):
    category: str
    analysis: str
    risk_level: RiskLevel
    suggested_adjustment: str
    action_type: Optional[DispositionType] = None
    action_label: str = ""
    action_desc: str = ""


class ProjectReport(CamelModel):
    project_name: str
    org: str
    reviewed_at: str
    overall_risk: RiskLevel
    rows: List[ReportRow] = Field(default_factory=list)
