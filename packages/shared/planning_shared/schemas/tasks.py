"""Task and dependency schemas shared by the server and tool-call clients."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import DependencyType, TaskPriority, TaskStatus


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------

class TaskBase(BaseModel):
    title: str
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee: Optional[str] = None
    notes: Optional[str] = None
    parent_task_id: Optional[str] = None


class TaskCreate(TaskBase):
    status: TaskStatus = TaskStatus.TODO


class TaskUpdate(BaseModel):
    """Partial update. Only fields explicitly set are written."""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assignee: Optional[str] = None
    notes: Optional[str] = None
    parent_task_id: Optional[str] = None


class TaskRead(BaseModel):
    id: str
    project_id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    assignee: Optional[str] = None
    notes: Optional[str] = None
    parent_task_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------

class TaskComplete(BaseModel):
    """Request body for POST /tasks/{task_id}/complete."""
    notes: Optional[str] = None


class DependencyStatus(BaseModel):
    """A related task as seen from the other end of an edge."""
    task_id: str
    title: str
    status: TaskStatus
    dependency_type: DependencyType


class BlockingBlocker(BaseModel):
    blocker_id: str
    title: str
    status: str
    severity: str


class DependencyCheck(BaseModel):
    can_complete: bool
    unsatisfied_dependencies: List[DependencyStatus] = Field(default_factory=list)
    blocking_blockers: List[BlockingBlocker] = Field(default_factory=list)

    def blocking_items(self) -> list[str]:
        """Human-readable `"title" (status)` entries for everything in the way."""
        items = [f'"{d.title}" ({d.status.value})' for d in self.unsatisfied_dependencies]
        items.extend(f'"{b.title}" ({b.status})' for b in self.blocking_blockers)
        return items


class CompletionResult(BaseModel):
    task_id: str
    status: TaskStatus
    completed_at: datetime
    dependency_check: DependencyCheck


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

class DependencyAdd(BaseModel):
    """Request body for POST /dependencies."""
    parent_task_id: str
    child_task_id: str
    dependency_type: DependencyType = DependencyType.BLOCKS


class DependencyRead(BaseModel):
    id: str
    parent_task_id: str
    child_task_id: str
    dependency_type: DependencyType
    created_at: datetime

    model_config = {"from_attributes": True}


class DependencyEdgeRead(DependencyRead):
    """An edge joined with the task at its far end."""
    related_title: str
    related_status: TaskStatus


class TaskDependencies(BaseModel):
    task_id: str
    depends_on: List[DependencyEdgeRead] = Field(default_factory=list)
    blocks: List[DependencyEdgeRead] = Field(default_factory=list)


class CircularCheck(BaseModel):
    parent_task_id: str
    child_task_id: str
    would_create_cycle: bool
