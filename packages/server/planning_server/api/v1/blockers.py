"""
Blocker endpoints: blocker CRUD, resolution and task impacts.

An open or in-progress blocker with a ``blocks`` impact gates the task's
completion until the blocker is resolved or the impact removed.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from planning_server.api.v1.deps import get_current_project, get_session
from planning_server.models.project import Project
from planning_server.services import blockers as blocker_service
from planning_shared.schemas.blockers import (
    BlockedTask,
    BlockerCreate,
    BlockerFilter,
    BlockerRead,
    BlockerResolve,
    BlockerUpdate,
    ImpactCreate,
    ImpactDetail,
    ImpactRead,
)
from planning_shared.schemas.common import ImpactType, RemovalResult

router = APIRouter()


# ---------------------------------------------------------------------------
# Blocker CRUD
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[BlockerRead])
async def list_blockers_endpoint(
    filters: BlockerFilter = Depends(),
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    """List blockers, most severe first."""
    return await blocker_service.list_blockers(session, project.id, filters)


@router.post("/", response_model=BlockerRead, status_code=201)
async def create_blocker_endpoint(
    blocker_in: BlockerCreate,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await blocker_service.create_blocker(session, project.id, blocker_in)


@router.get("/blocked-tasks", response_model=List[BlockedTask])
async def blocked_tasks_endpoint(
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    """Tasks touched by open blockers, most-blocked first."""
    return await blocker_service.tasks_blocked_by_open_blockers(session, project.id)


@router.get("/{blocker_id}", response_model=BlockerRead)
async def get_blocker_endpoint(
    blocker_id: str,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await blocker_service.get_blocker_or_404(session, project.id, blocker_id)


@router.patch("/{blocker_id}", response_model=BlockerRead)
async def update_blocker_endpoint(
    blocker_id: str,
    blocker_in: BlockerUpdate,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await blocker_service.update_blocker(session, project.id, blocker_id, blocker_in)


@router.post("/{blocker_id}/resolve", response_model=BlockerRead)
async def resolve_blocker_endpoint(
    blocker_id: str,
    resolve_in: Optional[BlockerResolve] = None,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    notes = resolve_in.resolution_notes if resolve_in else None
    return await blocker_service.resolve_blocker(session, project.id, blocker_id, notes)


@router.delete("/{blocker_id}", status_code=204)
async def delete_blocker_endpoint(
    blocker_id: str,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    await blocker_service.delete_blocker(session, project.id, blocker_id)


# ---------------------------------------------------------------------------
# Impacts
# ---------------------------------------------------------------------------


@router.get("/{blocker_id}/impacts", response_model=List[ImpactDetail])
async def list_impacts_endpoint(
    blocker_id: str,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await blocker_service.get_blocker_impacts(session, project.id, blocker_id)


@router.post("/{blocker_id}/impacts", response_model=ImpactRead, status_code=201)
async def add_impact_endpoint(
    blocker_id: str,
    impact_in: ImpactCreate,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await blocker_service.add_impact(session, project.id, blocker_id, impact_in)


@router.delete("/{blocker_id}/impacts", response_model=RemovalResult)
async def remove_impact_endpoint(
    blocker_id: str,
    task_id: str,
    impact_type: Optional[ImpactType] = None,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    """Remove matching impacts. Removing nothing is not an error."""
    return await blocker_service.remove_impact(session, project.id, blocker_id, task_id, impact_type)
