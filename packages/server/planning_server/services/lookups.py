"""Entity lookups shared by the service modules."""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from planning_server.core.errors import InvalidArgument, NotFound
from planning_server.models.project import Project
from planning_server.models.task import Task

E = TypeVar("E", bound=Enum)


async def get_project_or_404(session: AsyncSession, project_id: str) -> Project:
    project = await session.get(Project, project_id)
    if not project:
        raise NotFound(f"Project not found: {project_id}")
    return project


async def get_task_or_404(
    session: AsyncSession, project_id: str, task_id: str, label: str = "Task"
) -> Task:
    """Fetch a task that belongs to the given project."""
    task = await session.get(Task, task_id)
    if not task or task.project_id != project_id:
        raise NotFound(f"{label} not found: {task_id}")
    return task


def coerce_enum(enum_cls: type[E], value, field: str) -> E:
    """Accept an enum member or its raw value; reject anything else."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidArgument(f"Invalid {field} '{value}'. Must be one of: {allowed}") from None


def require_text(value, field: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgument(f"{field} is required")
    return value
