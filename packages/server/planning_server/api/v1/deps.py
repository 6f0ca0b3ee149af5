"""
Shared FastAPI dependencies for the v1 routers.

Every request runs inside one store session: the session commits when the
endpoint returns and rolls back if it raises.
"""

from collections.abc import AsyncIterator
from typing import Optional

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from planning_server.core.config import get_settings
from planning_server.core.database import PlanningStore, get_store
from planning_server.models.project import Project
from planning_server.services.projects import require_current_project


async def get_planning_store(request: Request) -> PlanningStore:
    store = get_store(request.app.state.project_path)
    await store.ensure_initialized()
    return store


async def get_session(
    store: PlanningStore = Depends(get_planning_store),
) -> AsyncIterator[AsyncSession]:
    async with store.session() as session:
        yield session


def get_branch(
    branch: Optional[str] = Query(None, description="Git branch; defaults to the configured branch"),
) -> str:
    return branch or get_settings().default_branch


async def get_current_project(
    branch: str = Depends(get_branch),
    session: AsyncSession = Depends(get_session),
) -> Project:
    return await require_current_project(session, branch)
