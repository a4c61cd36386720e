"""Compliance review projects and their workflow."""

from .generator import DemoFindingGenerator, LLMFindingGenerator, build_generator
from .repository import InMemoryProjectRepository, ProjectRepository, SqlAlchemyProjectRepository
from .schemas import ProjectStatus, RiskLevel
from .service import ProjectService

__all__ = [
    "DemoFindingGenerator",
    "InMemoryProjectRepository",
    "LLMFindingGenerator",
    "ProjectRepository",
    "ProjectService",
    "ProjectStatus",
    "RiskLevel",
    "SqlAlchemyProjectRepository",
    "build_generator",
]
