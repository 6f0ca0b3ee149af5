"""
Tests for the blocker ledger.

Tests cover:
- Blocker CRUD, filters and severity ordering
- resolved_at stamping on resolution and clearing on reopen
- Impact duplicates, idempotent project-scoped removal, impact listings
- Only open ``blocks`` impacts gate completion
- Blocked-task aggregation
"""

from __future__ import annotations

import pytest

from planning_server.core.errors import AlreadyExists, InvalidArgument, NotFound
from planning_server.services.blockers import (
    add_impact,
    create_blocker,
    delete_blocker,
    get_blocker_impacts,
    list_blockers,
    open_blocking_blockers,
    remove_impact,
    resolve_blocker,
    tasks_blocked_by_open_blockers,
    update_blocker,
)
from planning_server.services.projects import initialize_context
from planning_server.services.tasks import complete_task
from planning_shared.schemas.blockers import (
    BlockerCreate,
    BlockerFilter,
    BlockerUpdate,
    ImpactCreate,
)
from planning_shared.schemas.common import (
    BlockerSeverity,
    BlockerStatus,
    ImpactType,
    TaskPriority,
    TaskStatus,
)
from planning_shared.schemas.projects import ProjectCreate


@pytest.fixture
def make_blocker(session, project):
    async def _make(title: str, **fields):
        return await create_blocker(session, project.id, BlockerCreate(title=title, **fields))

    return _make


class TestBlockerCrud:
    async def test_defaults(self, make_blocker):
        blocker = await make_blocker("Vendor outage")
        assert blocker.status == BlockerStatus.OPEN.value
        assert blocker.severity == BlockerSeverity.MEDIUM.value
        assert blocker.blocker_type == "external"
        assert blocker.resolved_at is None

    async def test_title_required(self, session, project):
        with pytest.raises(InvalidArgument):
            await create_blocker(session, project.id, BlockerCreate(title=""))

    async def test_severity_order(self, session, project, make_blocker):
        await make_blocker("minor", severity=BlockerSeverity.LOW)
        await make_blocker("outage", severity=BlockerSeverity.CRITICAL)
        await make_blocker("slow", severity=BlockerSeverity.HIGH)

        blockers = await list_blockers(session, project.id)
        assert [b.title for b in blockers] == ["outage", "slow", "minor"]

    async def test_filters(self, session, project, make_blocker):
        await make_blocker("Need DB access", owner="ops")
        await make_blocker("Pick a queue", blocker_type="decision")

        by_owner = await list_blockers(session, project.id, BlockerFilter(owner="ops"))
        assert [b.title for b in by_owner] == ["Need DB access"]

        by_type = await list_blockers(session, project.id, BlockerFilter(blocker_type="decision"))
        assert [b.title for b in by_type] == ["Pick a queue"]

        by_text = await list_blockers(session, project.id, BlockerFilter(text="queue"))
        assert [b.title for b in by_text] == ["Pick a queue"]

    async def test_update_whitelisted_fields(self, session, project, make_blocker):
        blocker = await make_blocker("Flaky CI")
        updated = await update_blocker(
            session, project.id, blocker.id, BlockerUpdate(owner="infra", severity="high")
        )
        assert updated.owner == "infra"
        assert updated.severity == "high"
        assert updated.title == "Flaky CI"

    async def test_update_without_fields(self, session, project, make_blocker):
        blocker = await make_blocker("Noop")
        with pytest.raises(InvalidArgument):
            await update_blocker(session, project.id, blocker.id, BlockerUpdate())

    async def test_resolve_stamps_resolved_at(self, session, project, make_blocker):
        blocker = await make_blocker("Waiting on review")

        resolved = await resolve_blocker(session, project.id, blocker.id, "approved")

        assert resolved.status == BlockerStatus.RESOLVED.value
        assert resolved.resolved_at is not None
        assert resolved.resolution_notes == "approved"

    async def test_in_progress_does_not_stamp(self, session, project, make_blocker):
        blocker = await make_blocker("Investigating")
        updated = await update_blocker(
            session, project.id, blocker.id, BlockerUpdate(status=BlockerStatus.IN_PROGRESS)
        )
        assert updated.resolved_at is None

    async def test_reopen_clears_resolved_at(self, session, project, make_blocker):
        blocker = await make_blocker("Regressed")
        await resolve_blocker(session, project.id, blocker.id, "patched")

        reopened = await update_blocker(
            session, project.id, blocker.id, BlockerUpdate(status=BlockerStatus.OPEN)
        )

        assert reopened.status == BlockerStatus.OPEN.value
        assert reopened.resolved_at is None
        assert reopened.resolution_notes == "patched"

    async def test_missing_blocker(self, session, project):
        with pytest.raises(NotFound, match="Blocker not found"):
            await resolve_blocker(session, project.id, "missing")
        with pytest.raises(NotFound):
            await delete_blocker(session, project.id, "missing")


class TestImpacts:
    async def test_duplicate_impact_rejected(self, session, project, make_task, make_blocker):
        task = await make_task("Deploy")
        blocker = await make_blocker("No credentials")
        await add_impact(session, project.id, blocker.id, ImpactCreate(task_id=task.id))

        with pytest.raises(AlreadyExists):
            await add_impact(session, project.id, blocker.id, ImpactCreate(task_id=task.id))

    async def test_impact_requires_task(self, session, project, make_blocker):
        blocker = await make_blocker("Orphan")
        with pytest.raises(NotFound, match="Task not found"):
            await add_impact(session, project.id, blocker.id, ImpactCreate(task_id="missing"))

    async def test_remove_is_idempotent(self, session, project, make_task, make_blocker):
        task = await make_task("Deploy")
        blocker = await make_blocker("Freeze")
        await add_impact(session, project.id, blocker.id, ImpactCreate(task_id=task.id))

        first = await remove_impact(session, project.id, blocker.id, task.id)
        second = await remove_impact(session, project.id, blocker.id, task.id)

        assert first.removed == 1
        assert second.removed == 0

    async def test_remove_scoped_to_project(self, session, project, make_task, make_blocker):
        task = await make_task("Deploy")
        blocker = await make_blocker("Freeze")
        await add_impact(session, project.id, blocker.id, ImpactCreate(task_id=task.id))
        other = await initialize_context(
            session, ProjectCreate(goal="Other work", scope="elsewhere", branch="feature")
        )

        result = await remove_impact(session, other.id, blocker.id, task.id)

        assert result.removed == 0
        impacts = await get_blocker_impacts(session, project.id, blocker.id)
        assert [i.task_id for i in impacts] == [task.id]

    async def test_impact_listing_includes_task(self, session, project, make_task, make_blocker):
        task = await make_task("Release notes")
        blocker = await make_blocker("Legal review")
        await add_impact(
            session,
            project.id,
            blocker.id,
            ImpactCreate(task_id=task.id, impact_type=ImpactType.DELAYS, estimated_delay=4),
        )

        impacts = await get_blocker_impacts(session, project.id, blocker.id)

        assert len(impacts) == 1
        assert impacts[0].task_title == "Release notes"
        assert impacts[0].task_status == TaskStatus.TODO
        assert impacts[0].estimated_delay == 4

    async def test_delete_blocker_cascades(self, session, project, make_task, make_blocker):
        task = await make_task("Ship")
        blocker = await make_blocker("Gone soon")
        await add_impact(session, project.id, blocker.id, ImpactCreate(task_id=task.id))

        await delete_blocker(session, project.id, blocker.id)

        assert await open_blocking_blockers(session, task.id) == []


class TestBlockerGate:
    async def test_resolving_unblocks(self, session, project, make_task, make_blocker):
        task = await make_task("Deploy")
        blocker = await make_blocker("Waiting on API key")
        await add_impact(session, project.id, blocker.id, ImpactCreate(task_id=task.id))

        await resolve_blocker(session, project.id, blocker.id)
        result = await complete_task(session, project.id, task.id)

        assert result.status == TaskStatus.COMPLETED

    async def test_in_progress_blocker_still_gates(self, session, project, make_task, make_blocker):
        task = await make_task("Deploy")
        blocker = await make_blocker("Being fixed")
        await add_impact(session, project.id, blocker.id, ImpactCreate(task_id=task.id))
        await update_blocker(
            session, project.id, blocker.id, BlockerUpdate(status=BlockerStatus.IN_PROGRESS)
        )

        assert [b.id for b in await open_blocking_blockers(session, task.id)] == [blocker.id]

    async def test_informational_impacts_do_not_gate(self, session, project, make_task, make_blocker):
        task = await make_task("Docs")
        blocker = await make_blocker("Slow reviewer")
        for impact_type in (ImpactType.DELAYS, ImpactType.AFFECTS):
            await add_impact(
                session, project.id, blocker.id, ImpactCreate(task_id=task.id, impact_type=impact_type)
            )

        result = await complete_task(session, project.id, task.id)
        assert result.status == TaskStatus.COMPLETED


class TestBlockedTasks:
    async def test_aggregation_and_order(self, session, project, make_task, make_blocker):
        low = await make_task("Low task", priority=TaskPriority.LOW)
        high = await make_task("High task", priority=TaskPriority.HIGH)
        busy = await make_task("Busy task", priority=TaskPriority.LOW)
        first = await make_blocker("First")
        second = await make_blocker("Second")
        closed = await make_blocker("Closed")

        await add_impact(session, project.id, first.id, ImpactCreate(task_id=low.id))
        await add_impact(session, project.id, first.id, ImpactCreate(task_id=high.id))
        await add_impact(session, project.id, first.id, ImpactCreate(task_id=busy.id))
        await add_impact(
            session,
            project.id,
            first.id,
            ImpactCreate(task_id=busy.id, impact_type=ImpactType.DELAYS),
        )
        await add_impact(session, project.id, second.id, ImpactCreate(task_id=busy.id))
        await add_impact(session, project.id, closed.id, ImpactCreate(task_id=low.id))
        await update_blocker(
            session, project.id, closed.id, BlockerUpdate(status=BlockerStatus.CLOSED)
        )

        blocked = await tasks_blocked_by_open_blockers(session, project.id)

        assert [b.title for b in blocked] == ["Busy task", "High task", "Low task"]
        assert blocked[0].blocker_count == 2
        assert sorted(blocked[0].blocking_issues) == ["First", "Second"]
        assert blocked[2].blocker_count == 1
