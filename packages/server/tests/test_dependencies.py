"""
Tests for the dependency graph engine.

Tests cover:
- Reachability and cycle detection on the in-memory graph
- Edge insert: self-reference, missing tasks, duplicates, cycles
- Idempotent removal and dependency listings
"""

from __future__ import annotations

import pytest

from planning_server.core.errors import AlreadyExists, CycleDetected, InvalidArgument, NotFound
from planning_server.services.dependencies import (
    DependencyGraph,
    add_dependency,
    check_circular,
    get_dependencies,
    load_graph,
    remove_dependency,
    tasks_blocked_by,
)
from planning_shared.schemas.common import DependencyType


# ---------------------------------------------------------------------------
# Unit tests: DependencyGraph
# ---------------------------------------------------------------------------


class TestCircularDependencyDetection:
    """Test the DFS-based cycle detection."""

    def test_no_cycle_simple(self):
        """Empty graph: adding A -> B closes no cycle."""
        assert not DependencyGraph().would_create_cycle("A", "B")

    def test_direct_cycle(self):
        """A -> B exists, adding B -> A would create a cycle."""
        graph = DependencyGraph([("A", "B")])
        assert graph.would_create_cycle("B", "A")

    def test_indirect_cycle(self):
        """A -> B -> C exists, adding C -> A would create a cycle."""
        graph = DependencyGraph([("A", "B"), ("B", "C")])
        assert graph.would_create_cycle("C", "A")

    def test_no_indirect_cycle(self):
        """A -> B, C -> D: adding D -> A has no cycle."""
        graph = DependencyGraph([("A", "B"), ("C", "D")])
        assert not graph.would_create_cycle("D", "A")

    def test_diamond_no_cycle(self):
        """A -> B, A -> C, B -> D, C -> D: adding D -> E has no cycle."""
        graph = DependencyGraph([("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])
        assert not graph.would_create_cycle("D", "E")
        assert graph.would_create_cycle("D", "A")

    def test_complex_cycle(self):
        """A -> B -> C -> D exists, adding D -> B creates cycle B -> C -> D -> B."""
        graph = DependencyGraph([("A", "B"), ("B", "C"), ("C", "D")])
        assert graph.would_create_cycle("D", "B")

    def test_self_dependency(self):
        """A -> A is a cycle of length one."""
        assert DependencyGraph().would_create_cycle("A", "A")

    def test_has_cycle(self):
        assert not DependencyGraph([("A", "B"), ("B", "C"), ("A", "C")]).has_cycle()
        assert DependencyGraph([("A", "B"), ("B", "C"), ("C", "A")]).has_cycle()

    def test_long_chain_is_not_recursive(self):
        """Deep chains are walked iteratively."""
        edges = [(str(i), str(i + 1)) for i in range(5000)]
        graph = DependencyGraph(edges)
        assert graph.would_create_cycle("5000", "0")
        assert not graph.has_cycle()


# ---------------------------------------------------------------------------
# Store-backed tests
# ---------------------------------------------------------------------------


class TestAddDependency:
    async def test_add_edge(self, session, project, make_task):
        a = await make_task("Design schema")
        b = await make_task("Write migrations")

        dep = await add_dependency(session, project.id, a.id, b.id)

        assert dep.parent_task_id == a.id
        assert dep.child_task_id == b.id
        assert dep.dependency_type == DependencyType.BLOCKS.value

    async def test_self_reference_rejected(self, session, project, make_task):
        a = await make_task("Solo")
        with pytest.raises(InvalidArgument):
            await add_dependency(session, project.id, a.id, a.id)

    async def test_missing_task(self, session, project, make_task):
        a = await make_task("Exists")
        with pytest.raises(NotFound, match="Child task not found"):
            await add_dependency(session, project.id, a.id, "missing")
        with pytest.raises(NotFound, match="Parent task not found"):
            await add_dependency(session, project.id, "missing", a.id)

    async def test_duplicate_rejected(self, session, project, make_task):
        a = await make_task("A")
        b = await make_task("B")
        await add_dependency(session, project.id, a.id, b.id)
        with pytest.raises(AlreadyExists):
            await add_dependency(session, project.id, a.id, b.id)

    async def test_same_pair_different_type_allowed(self, session, project, make_task):
        a = await make_task("A")
        b = await make_task("B")
        await add_dependency(session, project.id, a.id, b.id, DependencyType.BLOCKS)
        await add_dependency(session, project.id, a.id, b.id, DependencyType.SUBTASK)

        deps = await get_dependencies(session, project.id, b.id)
        assert len(deps.depends_on) == 2

    async def test_invalid_type_rejected(self, session, project, make_task):
        a = await make_task("A")
        b = await make_task("B")
        with pytest.raises(InvalidArgument, match="dependency_type"):
            await add_dependency(session, project.id, a.id, b.id, "depends")

    async def test_cycle_rejected_and_graph_unchanged(self, session, project, make_task):
        a = await make_task("A")
        b = await make_task("B")
        c = await make_task("C")
        await add_dependency(session, project.id, a.id, b.id)
        await add_dependency(session, project.id, b.id, c.id)

        with pytest.raises(CycleDetected, match="circular dependency"):
            await add_dependency(session, project.id, c.id, a.id)

        graph = await load_graph(session, project.id)
        assert not graph.has_cycle()
        assert graph.children(c.id) == []

    async def test_cycle_check_spans_edge_types(self, session, project, make_task):
        a = await make_task("A")
        b = await make_task("B")
        await add_dependency(session, project.id, a.id, b.id, DependencyType.SUBTASK)
        with pytest.raises(CycleDetected):
            await add_dependency(session, project.id, b.id, a.id, DependencyType.BLOCKS)


class TestCheckCircular:
    async def test_reports_without_writing(self, session, project, make_task):
        a = await make_task("A")
        b = await make_task("B")
        await add_dependency(session, project.id, a.id, b.id)

        assert await check_circular(session, project.id, b.id, a.id) is True
        assert await check_circular(session, project.id, a.id, b.id) is False

        graph = await load_graph(session, project.id)
        assert graph.children(b.id) == []

    async def test_missing_task(self, session, project, make_task):
        a = await make_task("A")
        with pytest.raises(NotFound):
            await check_circular(session, project.id, a.id, "missing")


class TestRemoveDependency:
    async def test_remove_existing(self, session, project, make_task):
        a = await make_task("A")
        b = await make_task("B")
        await add_dependency(session, project.id, a.id, b.id)

        result = await remove_dependency(session, project.id, a.id, b.id)
        assert result.removed == 1

    async def test_remove_is_idempotent(self, session, project, make_task):
        a = await make_task("A")
        b = await make_task("B")
        result = await remove_dependency(session, project.id, a.id, b.id)
        assert result.removed == 0

    async def test_remove_by_type(self, session, project, make_task):
        a = await make_task("A")
        b = await make_task("B")
        await add_dependency(session, project.id, a.id, b.id, DependencyType.BLOCKS)
        await add_dependency(session, project.id, a.id, b.id, DependencyType.PREREQUISITE)

        result = await remove_dependency(session, project.id, a.id, b.id, DependencyType.BLOCKS)
        assert result.removed == 1

        deps = await get_dependencies(session, project.id, b.id)
        assert [d.dependency_type for d in deps.depends_on] == [DependencyType.PREREQUISITE]


class TestDependencyListings:
    async def test_both_directions(self, session, project, make_task):
        a = await make_task("Upstream")
        b = await make_task("Middle")
        c = await make_task("Downstream")
        await add_dependency(session, project.id, a.id, b.id)
        await add_dependency(session, project.id, b.id, c.id)

        deps = await get_dependencies(session, project.id, b.id)

        assert [d.parent_task_id for d in deps.depends_on] == [a.id]
        assert deps.depends_on[0].related_title == "Upstream"
        assert [d.child_task_id for d in deps.blocks] == [c.id]
        assert deps.blocks[0].related_title == "Downstream"

    async def test_tasks_blocked_by(self, session, project, make_task):
        a = await make_task("A")
        b = await make_task("B")
        c = await make_task("C")
        await add_dependency(session, project.id, a.id, b.id, DependencyType.BLOCKS)
        await add_dependency(session, project.id, a.id, c.id, DependencyType.SUBTASK)

        blocked = await tasks_blocked_by(session, a.id)
        assert [t.id for t in blocked] == [b.id]
