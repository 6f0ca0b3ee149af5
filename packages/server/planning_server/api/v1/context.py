"""
Project context endpoints: initialize, inspect, summarize, archive and clear.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from planning_server.api.v1.deps import get_branch, get_current_project, get_session
from planning_server.core.errors import InvalidArgument
from planning_server.models.project import Project
from planning_server.services import projects as project_service
from planning_shared.schemas.projects import (
    ClearRequest,
    ClearResult,
    ProjectContext,
    ProjectCreate,
    ProjectRead,
    ProjectSummary,
)

router = APIRouter()


@router.get("/", response_model=Optional[ProjectContext])
async def get_context_endpoint(
    branch: str = Depends(get_branch),
    session: AsyncSession = Depends(get_session),
):
    """Current active project for the branch with its context records, or null."""
    return await project_service.get_current_context(session, branch)


@router.post("/", response_model=ProjectRead, status_code=201)
async def initialize_context_endpoint(
    project_in: ProjectCreate,
    session: AsyncSession = Depends(get_session),
):
    return await project_service.initialize_context(session, project_in)


@router.get("/summary", response_model=ProjectSummary)
async def context_summary_endpoint(
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.get_project_summary(session, project)


@router.post("/archive", response_model=ProjectRead)
async def archive_context_endpoint(
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.archive_project(session, project.id)


@router.post("/clear", response_model=ClearResult)
async def clear_context_endpoint(
    clear_in: ClearRequest,
    branch: str = Depends(get_branch),
    session: AsyncSession = Depends(get_session),
):
    """Destructive: deletes projects and everything they own."""
    if not clear_in.confirm:
        raise InvalidArgument("Clearing context requires confirm=true")
    return await project_service.clear_context(session, clear_in.scope, branch)
