"""
Task service layer: task lifecycle and the completion gate.

Handles:
- Task CRUD with partial updates (only explicitly provided fields are written)
- Free status transitions, except that reaching ``completed`` is gated
- Completion gate: unsatisfied gating dependencies plus open blocking blockers
- Filtered task listings
"""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import case, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from planning_server.core.errors import Blocked, InvalidArgument
from planning_server.models.base import utcnow
from planning_server.models.task import Task
from planning_server.services.blockers import open_blocking_blockers
from planning_server.services.dependencies import unsatisfied_dependencies
from planning_server.services.lookups import (
    get_project_or_404,
    get_task_or_404,
    require_text,
)
from planning_shared.schemas.common import PRIORITY_RANK, TaskPriority, TaskStatus
from planning_shared.schemas.tasks import (
    BlockingBlocker,
    CompletionResult,
    DependencyCheck,
    TaskCreate,
    TaskUpdate,
)

log = structlog.get_logger()

_STATUS_VALUES = {s.value for s in TaskStatus}
_PRIORITY_VALUES = {p.value for p in TaskPriority}
_REQUIRED_FIELDS = ("title", "status", "priority")


# ---------------------------------------------------------------------------
# Completion gate
# ---------------------------------------------------------------------------


async def check_completion(session: AsyncSession, task_id: str) -> DependencyCheck:
    """Everything standing between a task and ``completed``."""
    unsatisfied = await unsatisfied_dependencies(session, task_id)
    blockers = await open_blocking_blockers(session, task_id)
    return DependencyCheck(
        can_complete=not unsatisfied and not blockers,
        unsatisfied_dependencies=unsatisfied,
        blocking_blockers=[
            BlockingBlocker(blocker_id=b.id, title=b.title, status=b.status, severity=b.severity)
            for b in blockers
        ],
    )


async def _enforce_completion_gate(session: AsyncSession, task: Task) -> DependencyCheck:
    check = await check_completion(session, task.id)
    if not check.can_complete:
        items = check.blocking_items()
        log.info("task.completion_blocked", task_id=task.id, blocked_by=items)
        raise Blocked(items)
    return check


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def create_task(session: AsyncSession, project_id: str, task_in: TaskCreate) -> Task:
    require_text(task_in.title, "Task title")
    await get_project_or_404(session, project_id)
    if task_in.parent_task_id:
        await get_task_or_404(session, project_id, task_in.parent_task_id, label="Parent task")

    task = Task(
        project_id=project_id,
        title=task_in.title,
        description=task_in.description,
        status=task_in.status.value,
        priority=task_in.priority.value,
        assignee=task_in.assignee,
        notes=task_in.notes,
        parent_task_id=task_in.parent_task_id,
    )
    # A brand-new task has no edges or impacts, so the gate trivially passes.
    if task_in.status == TaskStatus.COMPLETED:
        task.completed_at = utcnow()

    session.add(task)
    await session.flush()
    log.info("task.created", task_id=task.id, project_id=project_id, status=task.status)
    return task


async def list_tasks(
    session: AsyncSession, project_id: str, filter_text: Optional[str] = None
) -> list[Task]:
    """A filter naming a status or priority narrows by it; anything else is a text search."""
    stmt = select(Task).where(Task.project_id == project_id)

    if filter_text and filter_text.strip():
        needle = filter_text.strip().lower()
        if needle in _STATUS_VALUES:
            stmt = stmt.where(Task.status == needle)
        elif needle in _PRIORITY_VALUES:
            stmt = stmt.where(Task.priority == needle)
        else:
            pattern = f"%{filter_text.strip()}%"
            stmt = stmt.where(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))

    priority_order = case(PRIORITY_RANK, value=Task.priority, else_=len(PRIORITY_RANK))
    stmt = stmt.order_by(priority_order, Task.created_at)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_task(
    session: AsyncSession, project_id: str, task_id: str, task_in: TaskUpdate
) -> Task:
    data = task_in.model_dump(exclude_unset=True, mode="json")
    if not data:
        raise InvalidArgument("No valid update fields provided")
    for field in _REQUIRED_FIELDS:
        if field in data and data[field] is None:
            raise InvalidArgument(f"{field} cannot be cleared")
    if "title" in data:
        require_text(data["title"], "Task title")

    task = await get_task_or_404(session, project_id, task_id)

    parent_id = data.get("parent_task_id")
    if parent_id is not None:
        if parent_id == task.id:
            raise InvalidArgument("A task cannot be its own parent")
        await get_task_or_404(session, project_id, parent_id, label="Parent task")

    now = utcnow()
    new_status = data.get("status")
    if new_status == TaskStatus.COMPLETED.value and task.status != TaskStatus.COMPLETED.value:
        await _enforce_completion_gate(session, task)
        task.completed_at = now
    elif new_status is not None and new_status != TaskStatus.COMPLETED.value:
        task.completed_at = None  # reopen

    for key, value in data.items():
        setattr(task, key, value)
    task.updated_at = now

    session.add(task)
    await session.flush()
    log.info("task.updated", task_id=task.id, fields=sorted(data))
    return task


async def complete_task(
    session: AsyncSession, project_id: str, task_id: str, notes: Optional[str] = None
) -> CompletionResult:
    """Mark a task completed if nothing gates it. Fails with Blocked and writes nothing otherwise."""
    task = await get_task_or_404(session, project_id, task_id)
    check = await _enforce_completion_gate(session, task)

    now = utcnow()
    task.status = TaskStatus.COMPLETED.value
    task.completed_at = now
    task.updated_at = now
    if notes:
        task.notes = notes

    session.add(task)
    await session.flush()
    log.info("task.completed", task_id=task.id)
    return CompletionResult(
        task_id=task.id,
        status=TaskStatus.COMPLETED,
        completed_at=now,
        dependency_check=check,
    )


async def delete_task(session: AsyncSession, project_id: str, task_id: str) -> None:
    """Hard delete. Edges and impacts referencing the task go with it."""
    task = await get_task_or_404(session, project_id, task_id)
    await session.delete(task)
    await session.flush()
    log.info("task.deleted", task_id=task_id)
