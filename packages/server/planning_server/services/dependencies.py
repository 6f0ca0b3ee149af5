"""
Dependency graph engine: edges between tasks and the acyclicity guard.

An edge parent -> child means the child is gated on the parent. ``blocks`` and
``prerequisite`` edges gate completion; ``subtask`` edges are informational.
The cycle check follows edges of every type, so the graph stays acyclic as a
whole, which also keeps the gating subgraph acyclic.

Handles:
- Reachability over an adjacency view built once per call
- Edge insert with self-reference, duplicate and cycle rejection
- Idempotent edge removal
- Dependency listings and the unsatisfied-dependency half of the completion gate
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from planning_server.core.errors import AlreadyExists, CycleDetected, InvalidArgument
from planning_server.models.dependency import TaskDependency
from planning_server.models.task import Task
from planning_server.services.lookups import coerce_enum, get_task_or_404
from planning_shared.schemas.common import (
    GATING_DEPENDENCY_TYPES,
    DependencyType,
    RemovalResult,
    TaskStatus,
)
from planning_shared.schemas.tasks import (
    DependencyEdgeRead,
    DependencyStatus,
    TaskDependencies,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------


class DependencyGraph:
    """Adjacency view of one project's edges, keyed parent -> children."""

    def __init__(self, edges: Iterable[tuple[str, str]] = ()):
        self._children: dict[str, list[str]] = defaultdict(list)
        for parent_id, child_id in edges:
            self.add_edge(parent_id, child_id)

    def add_edge(self, parent_id: str, child_id: str) -> None:
        self._children[parent_id].append(child_id)

    def children(self, node_id: str) -> list[str]:
        return list(self._children.get(node_id, ()))

    def reachable(self, start_id: str, target_id: str) -> bool:
        """Iterative DFS following edges forward. Each node is expanded once."""
        visited: set[str] = set()
        stack = [start_id]
        while stack:
            current = stack.pop()
            if current == target_id:
                return True
            if current in visited:
                continue
            visited.add(current)
            stack.extend(n for n in self._children.get(current, ()) if n not in visited)
        return False

    def would_create_cycle(self, parent_id: str, child_id: str) -> bool:
        """Adding parent -> child closes a cycle iff the child already reaches the parent."""
        return self.reachable(child_id, parent_id)

    def has_cycle(self) -> bool:
        """Whole-graph check (white/grey/black colouring), iterative."""
        state: dict[str, int] = {}  # 1 = on stack, 2 = done
        for root in list(self._children):
            if state.get(root):
                continue
            stack: list[tuple[str, Iterable[str]]] = [(root, iter(self._children.get(root, ())))]
            state[root] = 1
            while stack:
                node, it = stack[-1]
                advanced = False
                for nxt in it:
                    mark = state.get(nxt)
                    if mark == 1:
                        return True
                    if mark is None:
                        state[nxt] = 1
                        stack.append((nxt, iter(self._children.get(nxt, ()))))
                        advanced = True
                        break
                if not advanced:
                    state[node] = 2
                    stack.pop()
        return False


async def load_graph(session: AsyncSession, project_id: str) -> DependencyGraph:
    result = await session.execute(
        select(TaskDependency.parent_task_id, TaskDependency.child_task_id).where(
            TaskDependency.project_id == project_id
        )
    )
    return DependencyGraph((row[0], row[1]) for row in result.all())


async def would_create_cycle(
    session: AsyncSession, project_id: str, parent_task_id: str, child_task_id: str
) -> bool:
    graph = await load_graph(session, project_id)
    return graph.would_create_cycle(parent_task_id, child_task_id)


async def check_circular(
    session: AsyncSession, project_id: str, parent_task_id: str, child_task_id: str
) -> bool:
    """Report whether parent -> child would close a cycle, without writing anything."""
    await get_task_or_404(session, project_id, parent_task_id, label="Parent task")
    await get_task_or_404(session, project_id, child_task_id, label="Child task")
    return await would_create_cycle(session, project_id, parent_task_id, child_task_id)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def add_dependency(
    session: AsyncSession,
    project_id: str,
    parent_task_id: str,
    child_task_id: str,
    dependency_type: DependencyType | str = DependencyType.BLOCKS,
    created_by: str = "agent",
) -> TaskDependency:
    dep_type = coerce_enum(DependencyType, dependency_type, "dependency_type")

    if parent_task_id == child_task_id:
        raise InvalidArgument("A task cannot depend on itself")

    await get_task_or_404(session, project_id, parent_task_id, label="Parent task")
    await get_task_or_404(session, project_id, child_task_id, label="Child task")

    existing = await session.execute(
        select(TaskDependency).where(
            TaskDependency.parent_task_id == parent_task_id,
            TaskDependency.child_task_id == child_task_id,
            TaskDependency.dependency_type == dep_type.value,
        )
    )
    if existing.scalars().first():
        raise AlreadyExists(
            f"Dependency already exists: {parent_task_id} -> {child_task_id} ({dep_type.value})"
        )

    if await would_create_cycle(session, project_id, parent_task_id, child_task_id):
        log.info(
            "dependency.cycle_rejected",
            parent_task_id=parent_task_id,
            child_task_id=child_task_id,
        )
        raise CycleDetected("Cannot create dependency: would result in circular dependency")

    dep = TaskDependency(
        project_id=project_id,
        parent_task_id=parent_task_id,
        child_task_id=child_task_id,
        dependency_type=dep_type.value,
        created_by=created_by,
    )
    session.add(dep)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise AlreadyExists(
            f"Dependency already exists: {parent_task_id} -> {child_task_id} ({dep_type.value})"
        ) from exc

    log.info(
        "dependency.added",
        dependency_id=dep.id,
        parent_task_id=parent_task_id,
        child_task_id=child_task_id,
        dependency_type=dep_type.value,
    )
    return dep


async def remove_dependency(
    session: AsyncSession,
    project_id: str,
    parent_task_id: str,
    child_task_id: str,
    dependency_type: Optional[DependencyType | str] = None,
) -> RemovalResult:
    """Delete matching edges. All types between the pair when no type is given."""
    stmt = delete(TaskDependency).where(
        TaskDependency.project_id == project_id,
        TaskDependency.parent_task_id == parent_task_id,
        TaskDependency.child_task_id == child_task_id,
    )
    if dependency_type is not None:
        dep_type = coerce_enum(DependencyType, dependency_type, "dependency_type")
        stmt = stmt.where(TaskDependency.dependency_type == dep_type.value)

    result = await session.execute(stmt)
    removed = result.rowcount or 0
    log.info(
        "dependency.removed",
        parent_task_id=parent_task_id,
        child_task_id=child_task_id,
        removed=removed,
    )
    return RemovalResult(removed=removed)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def _edge_read(dep: TaskDependency, title: str, status: str) -> DependencyEdgeRead:
    return DependencyEdgeRead(
        id=dep.id,
        parent_task_id=dep.parent_task_id,
        child_task_id=dep.child_task_id,
        dependency_type=dep.dependency_type,
        created_at=dep.created_at,
        related_title=title,
        related_status=status,
    )


async def get_dependencies(
    session: AsyncSession, project_id: str, task_id: str
) -> TaskDependencies:
    await get_task_or_404(session, project_id, task_id)

    parents = await session.execute(
        select(TaskDependency, Task.title, Task.status)
        .join(Task, Task.id == TaskDependency.parent_task_id)
        .where(TaskDependency.child_task_id == task_id)
        .order_by(TaskDependency.created_at)
    )
    children = await session.execute(
        select(TaskDependency, Task.title, Task.status)
        .join(Task, Task.id == TaskDependency.child_task_id)
        .where(TaskDependency.parent_task_id == task_id)
        .order_by(TaskDependency.created_at)
    )
    return TaskDependencies(
        task_id=task_id,
        depends_on=[_edge_read(dep, title, status) for dep, title, status in parents.all()],
        blocks=[_edge_read(dep, title, status) for dep, title, status in children.all()],
    )


async def unsatisfied_dependencies(
    session: AsyncSession, task_id: str
) -> list[DependencyStatus]:
    """Parents on gating edges that are not completed yet."""
    result = await session.execute(
        select(Task.id, Task.title, Task.status, TaskDependency.dependency_type)
        .join(TaskDependency, TaskDependency.parent_task_id == Task.id)
        .where(
            TaskDependency.child_task_id == task_id,
            TaskDependency.dependency_type.in_([t.value for t in GATING_DEPENDENCY_TYPES]),
            Task.status != TaskStatus.COMPLETED.value,
        )
        .order_by(TaskDependency.created_at)
    )
    seen: set[str] = set()
    unsatisfied: list[DependencyStatus] = []
    for parent_id, title, status, dep_type in result.all():
        if parent_id in seen:
            continue
        seen.add(parent_id)
        unsatisfied.append(
            DependencyStatus(task_id=parent_id, title=title, status=status, dependency_type=dep_type)
        )
    return unsatisfied


async def tasks_blocked_by(session: AsyncSession, task_id: str) -> list[Task]:
    """Children held back by this task through a ``blocks`` edge."""
    result = await session.execute(
        select(Task)
        .join(TaskDependency, TaskDependency.child_task_id == Task.id)
        .where(
            TaskDependency.parent_task_id == task_id,
            TaskDependency.dependency_type == DependencyType.BLOCKS.value,
        )
    )
    return list(result.scalars().all())
