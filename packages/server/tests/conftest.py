"""
Shared fixtures: an isolated store per test under pytest's tmp_path.
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from planning_server.core.database import PlanningStore, close_stores
from planning_server.main import create_app
from planning_server.services.projects import initialize_context
from planning_server.services.tasks import create_task
from planning_shared.schemas.projects import ProjectCreate
from planning_shared.schemas.tasks import TaskCreate


@pytest.fixture
async def store(tmp_path):
    store = PlanningStore(tmp_path)
    await store.init()
    yield store
    await store.dispose()


@pytest.fixture
async def session(store):
    async with store.session() as session:
        yield session


@pytest.fixture
async def project(session):
    return await initialize_context(
        session,
        ProjectCreate(goal="Ship the dependency gate", scope="server", branch="main"),
    )


@pytest.fixture
def make_task(session, project):
    async def _make(title: str, **fields):
        return await create_task(session, project.id, TaskCreate(title=title, **fields))

    return _make


@pytest.fixture
async def client(tmp_path):
    app = create_app(str(tmp_path))
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    await close_stores()


@pytest.fixture
async def api_project(client):
    response = await client.post(
        "/api/v1/context/",
        json={"goal": "Build the planning API", "scope": "api", "branch": "main"},
    )
    assert response.status_code == 201
    return response.json()
