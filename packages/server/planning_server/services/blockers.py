"""
Blocker service: impediments outside the task graph and their task impacts.

A blocker with a ``blocks`` impact on a task gates that task's completion for
as long as the blocker is open or in progress. ``delays`` and ``affects``
impacts are informational.
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import case, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from planning_server.core.errors import AlreadyExists, InvalidArgument, NotFound
from planning_server.models.base import utcnow
from planning_server.models.blocker import Blocker, BlockerImpact
from planning_server.models.task import Task
from planning_server.services.lookups import (
    coerce_enum,
    get_project_or_404,
    get_task_or_404,
    require_text,
)
from planning_shared.schemas.blockers import (
    BlockedTask,
    BlockerCreate,
    BlockerFilter,
    BlockerUpdate,
    ImpactCreate,
    ImpactDetail,
)
from planning_shared.schemas.common import (
    OPEN_BLOCKER_STATUSES,
    PRIORITY_RANK,
    SEVERITY_RANK,
    BlockerStatus,
    ImpactType,
    RemovalResult,
)

log = structlog.get_logger()

_OPEN_STATUSES = [s.value for s in OPEN_BLOCKER_STATUSES]
_REQUIRED_FIELDS = ("title", "blocker_type", "severity", "status")


async def get_blocker_or_404(session: AsyncSession, project_id: str, blocker_id: str) -> Blocker:
    blocker = await session.get(Blocker, blocker_id)
    if not blocker or blocker.project_id != project_id:
        raise NotFound(f"Blocker not found: {blocker_id}")
    return blocker


def _severity_order():
    return case(SEVERITY_RANK, value=Blocker.severity, else_=len(SEVERITY_RANK))


# ---------------------------------------------------------------------------
# Blocker CRUD
# ---------------------------------------------------------------------------


async def create_blocker(
    session: AsyncSession, project_id: str, blocker_in: BlockerCreate, created_by: str = "agent"
) -> Blocker:
    require_text(blocker_in.title, "title")
    await get_project_or_404(session, project_id)

    blocker = Blocker(
        project_id=project_id,
        title=blocker_in.title,
        description=blocker_in.description,
        blocker_type=blocker_in.blocker_type.value,
        severity=blocker_in.severity.value,
        status=BlockerStatus.OPEN.value,
        owner=blocker_in.owner,
        external_ref=blocker_in.external_ref,
        created_by=created_by,
    )
    session.add(blocker)
    await session.flush()
    log.info("blocker.created", blocker_id=blocker.id, severity=blocker.severity)
    return blocker


async def list_blockers(
    session: AsyncSession, project_id: str, filters: Optional[BlockerFilter] = None
) -> list[Blocker]:
    stmt = select(Blocker).where(Blocker.project_id == project_id)
    if filters:
        if filters.status:
            stmt = stmt.where(Blocker.status == filters.status.value)
        if filters.severity:
            stmt = stmt.where(Blocker.severity == filters.severity.value)
        if filters.blocker_type:
            stmt = stmt.where(Blocker.blocker_type == filters.blocker_type.value)
        if filters.owner:
            stmt = stmt.where(Blocker.owner == filters.owner)
        if filters.text:
            pattern = f"%{filters.text}%"
            stmt = stmt.where(or_(Blocker.title.ilike(pattern), Blocker.description.ilike(pattern)))

    stmt = stmt.order_by(_severity_order(), Blocker.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_blocker(
    session: AsyncSession, project_id: str, blocker_id: str, blocker_in: BlockerUpdate
) -> Blocker:
    data = blocker_in.model_dump(exclude_unset=True, mode="json")
    if not data:
        raise InvalidArgument("No valid fields to update")
    for field in _REQUIRED_FIELDS:
        if field in data and data[field] is None:
            raise InvalidArgument(f"{field} cannot be cleared")
    if "title" in data:
        require_text(data["title"], "title")

    blocker = await get_blocker_or_404(session, project_id, blocker_id)

    now = utcnow()
    if data.get("status") == BlockerStatus.RESOLVED.value:
        blocker.resolved_at = now
    elif "status" in data:
        blocker.resolved_at = None

    for key, value in data.items():
        setattr(blocker, key, value)
    blocker.updated_at = now

    session.add(blocker)
    await session.flush()

    event = "blocker.resolved" if data.get("status") == BlockerStatus.RESOLVED.value else "blocker.updated"
    log.info(event, blocker_id=blocker.id, fields=sorted(data))
    return blocker


async def resolve_blocker(
    session: AsyncSession,
    project_id: str,
    blocker_id: str,
    resolution_notes: Optional[str] = None,
) -> Blocker:
    fields: dict = {"status": BlockerStatus.RESOLVED}
    if resolution_notes is not None:
        fields["resolution_notes"] = resolution_notes
    return await update_blocker(session, project_id, blocker_id, BlockerUpdate(**fields))


async def delete_blocker(session: AsyncSession, project_id: str, blocker_id: str) -> None:
    blocker = await get_blocker_or_404(session, project_id, blocker_id)
    await session.delete(blocker)
    await session.flush()
    log.info("blocker.deleted", blocker_id=blocker_id)


# ---------------------------------------------------------------------------
# Impacts
# ---------------------------------------------------------------------------


async def add_impact(
    session: AsyncSession, project_id: str, blocker_id: str, impact_in: ImpactCreate
) -> BlockerImpact:
    await get_blocker_or_404(session, project_id, blocker_id)
    await get_task_or_404(session, project_id, impact_in.task_id)
    impact_type = impact_in.impact_type.value

    existing = await session.execute(
        select(BlockerImpact).where(
            BlockerImpact.blocker_id == blocker_id,
            BlockerImpact.task_id == impact_in.task_id,
            BlockerImpact.impact_type == impact_type,
        )
    )
    if existing.scalars().first():
        raise AlreadyExists(
            f"Blocker impact already exists: {blocker_id} -> {impact_in.task_id} ({impact_type})"
        )

    impact = BlockerImpact(
        blocker_id=blocker_id,
        task_id=impact_in.task_id,
        impact_type=impact_type,
        impact_description=impact_in.impact_description,
        estimated_delay=impact_in.estimated_delay,
    )
    session.add(impact)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise AlreadyExists(
            f"Blocker impact already exists: {blocker_id} -> {impact_in.task_id} ({impact_type})"
        ) from exc

    log.info("blocker.impact_added", blocker_id=blocker_id, task_id=impact_in.task_id, impact_type=impact_type)
    return impact


async def remove_impact(
    session: AsyncSession,
    project_id: str,
    blocker_id: str,
    task_id: str,
    impact_type: Optional[ImpactType | str] = None,
) -> RemovalResult:
    project_blockers = select(Blocker.id).where(Blocker.project_id == project_id)
    stmt = delete(BlockerImpact).where(
        BlockerImpact.blocker_id == blocker_id,
        BlockerImpact.blocker_id.in_(project_blockers),
        BlockerImpact.task_id == task_id,
    )
    if impact_type is not None:
        stmt = stmt.where(
            BlockerImpact.impact_type == coerce_enum(ImpactType, impact_type, "impact_type").value
        )
    result = await session.execute(stmt)
    removed = result.rowcount or 0
    log.info("blocker.impact_removed", blocker_id=blocker_id, task_id=task_id, removed=removed)
    return RemovalResult(removed=removed)


async def get_blocker_impacts(
    session: AsyncSession, project_id: str, blocker_id: str
) -> list[ImpactDetail]:
    await get_blocker_or_404(session, project_id, blocker_id)
    result = await session.execute(
        select(BlockerImpact, Task.title, Task.status)
        .join(Task, Task.id == BlockerImpact.task_id)
        .where(BlockerImpact.blocker_id == blocker_id)
        .order_by(BlockerImpact.created_at)
    )
    return [
        ImpactDetail(
            id=impact.id,
            blocker_id=impact.blocker_id,
            task_id=impact.task_id,
            impact_type=impact.impact_type,
            impact_description=impact.impact_description,
            estimated_delay=impact.estimated_delay,
            created_at=impact.created_at,
            task_title=title,
            task_status=status,
        )
        for impact, title, status in result.all()
    ]


# ---------------------------------------------------------------------------
# Gate queries
# ---------------------------------------------------------------------------


async def open_blocking_blockers(session: AsyncSession, task_id: str) -> list[Blocker]:
    """Open or in-progress blockers holding a ``blocks`` impact on the task."""
    result = await session.execute(
        select(Blocker)
        .join(BlockerImpact, BlockerImpact.blocker_id == Blocker.id)
        .where(
            BlockerImpact.task_id == task_id,
            BlockerImpact.impact_type == ImpactType.BLOCKS.value,
            Blocker.status.in_(_OPEN_STATUSES),
        )
        .order_by(_severity_order(), Blocker.created_at)
    )
    return list(result.scalars().all())


async def tasks_blocked_by_open_blockers(
    session: AsyncSession, project_id: str
) -> list[BlockedTask]:
    """Tasks with any impact from an open blocker, most-blocked first, then by priority."""
    result = await session.execute(
        select(Task, Blocker.id, Blocker.title)
        .join(BlockerImpact, BlockerImpact.task_id == Task.id)
        .join(Blocker, Blocker.id == BlockerImpact.blocker_id)
        .where(Task.project_id == project_id, Blocker.status.in_(_OPEN_STATUSES))
        .order_by(Blocker.created_at)
    )

    tasks: dict[str, Task] = {}
    issues: dict[str, dict[str, str]] = {}
    for task, blocker_id, blocker_title in result.all():
        tasks[task.id] = task
        issues.setdefault(task.id, {})[blocker_id] = blocker_title

    blocked = [
        BlockedTask(
            task_id=task.id,
            title=task.title,
            status=task.status,
            priority=task.priority,
            blocker_count=len(issues[task.id]),
            blocking_issues=list(issues[task.id].values()),
        )
        for task in tasks.values()
    ]
    blocked.sort(key=lambda b: (-b.blocker_count, PRIORITY_RANK.get(b.priority.value, len(PRIORITY_RANK))))
    return blocked
