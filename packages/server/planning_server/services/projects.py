"""
Project context service: the identity anchor every other entity hangs off.

One store may hold several projects across branches. The current project for
a branch is the most recently updated active one.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from planning_server.core.errors import InvalidArgument, NoActiveProject
from planning_server.models.base import utcnow
from planning_server.models.blocker import Blocker
from planning_server.models.context_data import ContextData
from planning_server.models.decision import Decision
from planning_server.models.file_mapping import FileMapping
from planning_server.models.project import Project
from planning_server.models.task import Task
from planning_server.services.blockers import tasks_blocked_by_open_blockers
from planning_server.services.lookups import get_project_or_404, require_text
from planning_shared.schemas.common import (
    OPEN_BLOCKER_STATUSES,
    ClearScope,
    DecisionStatus,
    ProjectStatus,
    TaskStatus,
)
from planning_shared.schemas.projects import (
    ClearResult,
    ContextDataRead,
    ProjectContext,
    ProjectCreate,
    ProjectRead,
    ProjectSummary,
    derive_project_name,
)

log = structlog.get_logger()


async def initialize_context(session: AsyncSession, project_in: ProjectCreate) -> Project:
    require_text(project_in.goal, "goal")
    require_text(project_in.scope, "scope")
    require_text(project_in.branch, "branch")

    project = Project(
        name=derive_project_name(project_in.goal),
        goal=project_in.goal,
        scope=project_in.scope,
        branch=project_in.branch,
        project_type=project_in.project_type.value,
        status=ProjectStatus.ACTIVE.value,
    )
    session.add(project)
    await session.flush()

    await add_context_data(
        session,
        project.id,
        "initialization",
        {
            "initialized_at": project.created_at.isoformat(),
            "initial_goal": project.goal,
            "initial_scope": project.scope,
        },
    )
    log.info("project.initialized", project_id=project.id, branch=project.branch)
    return project


async def add_context_data(
    session: AsyncSession, project_id: str, data_type: str, content: dict
) -> ContextData:
    require_text(data_type, "data_type")
    await get_project_or_404(session, project_id)
    record = ContextData(project_id=project_id, data_type=data_type, content=content)
    session.add(record)
    await session.flush()
    return record


async def list_context_data(session: AsyncSession, project_id: str) -> list[ContextData]:
    result = await session.execute(
        select(ContextData)
        .where(ContextData.project_id == project_id)
        .order_by(ContextData.updated_at.desc(), ContextData.created_at.desc())
    )
    return list(result.scalars().all())


async def get_current_project(
    session: AsyncSession, branch: Optional[str] = None
) -> Optional[Project]:
    """Latest-updated active project, on the given branch when one is named."""
    stmt = select(Project).where(Project.status == ProjectStatus.ACTIVE.value)
    if branch:
        stmt = stmt.where(Project.branch == branch)
    stmt = stmt.order_by(Project.updated_at.desc(), Project.created_at.desc()).limit(1)
    result = await session.execute(stmt)
    return result.scalars().first()


async def get_current_context(
    session: AsyncSession, branch: Optional[str] = None
) -> Optional[ProjectContext]:
    """The current project with its context records, or None."""
    project = await get_current_project(session, branch)
    if project is None:
        return None
    records = await list_context_data(session, project.id)
    return ProjectContext(
        **ProjectRead.model_validate(project).model_dump(),
        context_data=[ContextDataRead.model_validate(r) for r in records],
    )


async def require_current_project(
    session: AsyncSession, branch: Optional[str] = None
) -> Project:
    project = await get_current_project(session, branch)
    if project is None:
        raise NoActiveProject(branch)
    return project


async def archive_project(session: AsyncSession, project_id: str) -> Project:
    project = await get_project_or_404(session, project_id)
    project.status = ProjectStatus.ARCHIVED.value
    project.updated_at = utcnow()
    session.add(project)
    await session.flush()
    log.info("project.archived", project_id=project.id)
    return project


async def clear_context(
    session: AsyncSession, scope: ClearScope, branch: Optional[str] = None
) -> ClearResult:
    """Delete projects (and, by cascade, everything they own)."""
    scope = ClearScope(scope)

    if scope == ClearScope.CURRENT_PROJECT:
        project = await get_current_project(session, branch)
        count = 0
        if project is not None:
            await session.delete(project)
            await session.flush()
            count = 1
    elif scope == ClearScope.CURRENT_BRANCH:
        if not branch:
            raise InvalidArgument("branch is required to clear the current branch")
        result = await session.execute(delete(Project).where(Project.branch == branch))
        count = result.rowcount or 0
    else:
        result = await session.execute(delete(Project))
        count = result.rowcount or 0

    log.info("project.cleared", scope=scope.value, branch=branch, count=count)
    return ClearResult(scope=scope, count=count)


async def _count(session: AsyncSession, stmt) -> int:
    result = await session.execute(stmt)
    return result.scalar_one()


async def get_project_summary(session: AsyncSession, project: Project) -> ProjectSummary:
    status_rows = await session.execute(
        select(Task.status, func.count())
        .where(Task.project_id == project.id)
        .group_by(Task.status)
    )
    task_counts = {s.value: 0 for s in TaskStatus}
    for status, count in status_rows.all():
        task_counts[status] = count

    open_blockers = await _count(
        session,
        select(func.count())
        .select_from(Blocker)
        .where(
            Blocker.project_id == project.id,
            Blocker.status.in_([s.value for s in OPEN_BLOCKER_STATUSES]),
        ),
    )
    active_decisions = await _count(
        session,
        select(func.count())
        .select_from(Decision)
        .where(Decision.project_id == project.id, Decision.status == DecisionStatus.ACTIVE.value),
    )
    file_mappings = await _count(
        session,
        select(func.count()).select_from(FileMapping).where(FileMapping.project_id == project.id),
    )
    context_records = await _count(
        session,
        select(func.count()).select_from(ContextData).where(ContextData.project_id == project.id),
    )
    blocked = await tasks_blocked_by_open_blockers(session, project.id)

    return ProjectSummary(
        project=ProjectRead.model_validate(project),
        task_counts=task_counts,
        total_tasks=sum(task_counts.values()),
        open_blockers=open_blockers,
        tasks_blocked_by_blockers=len(blocked),
        active_decisions=active_decisions,
        file_mappings=file_mappings,
        context_records=context_records,
    )
