"""
Dependency graph endpoints.

Edges point parent -> child: the child depends on the parent. Adding an edge
that would close a cycle fails with 409 and leaves the graph untouched.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from planning_server.api.v1.deps import get_current_project, get_session
from planning_server.models.project import Project
from planning_server.services import dependencies as dependency_service
from planning_shared.schemas.common import DependencyType, RemovalResult
from planning_shared.schemas.tasks import CircularCheck, DependencyAdd, DependencyRead

router = APIRouter()


@router.post("/", response_model=DependencyRead, status_code=201)
async def add_dependency_endpoint(
    dep_in: DependencyAdd,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await dependency_service.add_dependency(
        session,
        project.id,
        dep_in.parent_task_id,
        dep_in.child_task_id,
        dependency_type=dep_in.dependency_type,
    )


@router.delete("/", response_model=RemovalResult)
async def remove_dependency_endpoint(
    parent_task_id: str,
    child_task_id: str,
    dependency_type: Optional[DependencyType] = None,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    """Remove matching edges. Removing nothing is not an error."""
    return await dependency_service.remove_dependency(
        session, project.id, parent_task_id, child_task_id, dependency_type=dependency_type
    )


@router.get("/check-circular", response_model=CircularCheck)
async def check_circular_endpoint(
    parent_task_id: str = Query(...),
    child_task_id: str = Query(...),
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    would_cycle = await dependency_service.check_circular(
        session, project.id, parent_task_id, child_task_id
    )
    return CircularCheck(
        parent_task_id=parent_task_id,
        child_task_id=child_task_id,
        would_create_cycle=would_cycle,
    )
