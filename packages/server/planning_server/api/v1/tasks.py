"""
Task endpoints: CRUD, completion and dependency listing.

- Completion gate: a task cannot reach ``completed`` while a gating parent is
  unfinished or an open blocker holds a ``blocks`` impact on it.
- PATCH applies only the fields present in the request body.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from planning_server.api.v1.deps import get_current_project, get_session
from planning_server.models.project import Project
from planning_server.services import tasks as task_service
from planning_server.services.dependencies import get_dependencies
from planning_server.services.lookups import get_task_or_404
from planning_shared.schemas.tasks import (
    CompletionResult,
    DependencyCheck,
    TaskComplete,
    TaskCreate,
    TaskDependencies,
    TaskRead,
    TaskUpdate,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[TaskRead])
async def list_tasks_endpoint(
    filter_text: Optional[str] = Query(None, alias="filter", description="Status, priority, or free text"),
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    """List tasks, highest priority first."""
    return await task_service.list_tasks(session, project.id, filter_text=filter_text)


@router.post("/", response_model=TaskRead, status_code=201)
async def create_task_endpoint(
    task_in: TaskCreate,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await task_service.create_task(session, project.id, task_in)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task_endpoint(
    task_id: str,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await get_task_or_404(session, project.id, task_id)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task_endpoint(
    task_id: str,
    task_in: TaskUpdate,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    """Partial update. Moving to completed runs the completion gate."""
    return await task_service.update_task(session, project.id, task_id, task_in)


@router.delete("/{task_id}", status_code=204)
async def delete_task_endpoint(
    task_id: str,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    await task_service.delete_task(session, project.id, task_id)


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


@router.get("/{task_id}/completion-check", response_model=DependencyCheck)
async def completion_check_endpoint(
    task_id: str,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    """Report what stands between the task and completion, without changing it."""
    await get_task_or_404(session, project.id, task_id)
    return await task_service.check_completion(session, task_id)


@router.post("/{task_id}/complete", response_model=CompletionResult)
async def complete_task_endpoint(
    task_id: str,
    complete_in: Optional[TaskComplete] = None,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    notes = complete_in.notes if complete_in else None
    return await task_service.complete_task(session, project.id, task_id, notes=notes)


@router.get("/{task_id}/dependencies", response_model=TaskDependencies)
async def list_task_dependencies_endpoint(
    task_id: str,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    """Edges into the task (depends_on) and out of it (blocks)."""
    return await get_dependencies(session, project.id, task_id)
