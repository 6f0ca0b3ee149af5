"""
Blocker and blocker-impact schemas.

Blockers are impediments that live outside the task graph. A `blocks` impact
links a blocker to a task and gates that task's completion while the blocker
is open or in progress.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import (
    BlockerSeverity,
    BlockerStatus,
    BlockerType,
    ImpactType,
    TaskPriority,
    TaskStatus,
)


# ---------------------------------------------------------------------------
# Blockers
# ---------------------------------------------------------------------------

class BlockerCreate(BaseModel):
    title: str
    description: Optional[str] = None
    blocker_type: BlockerType = BlockerType.EXTERNAL
    severity: BlockerSeverity = BlockerSeverity.MEDIUM
    owner: Optional[str] = None
    external_ref: Optional[str] = None


class BlockerUpdate(BaseModel):
    """Mutable blocker fields. Anything else on a blocker is system-managed."""
    title: Optional[str] = None
    description: Optional[str] = None
    blocker_type: Optional[BlockerType] = None
    severity: Optional[BlockerSeverity] = None
    status: Optional[BlockerStatus] = None
    owner: Optional[str] = None
    external_ref: Optional[str] = None
    resolution_notes: Optional[str] = None


class BlockerResolve(BaseModel):
    resolution_notes: Optional[str] = None


class BlockerFilter(BaseModel):
    status: Optional[BlockerStatus] = None
    severity: Optional[BlockerSeverity] = None
    blocker_type: Optional[BlockerType] = None
    owner: Optional[str] = None
    text: Optional[str] = None


class BlockerRead(BaseModel):
    id: str
    project_id: str
    title: str
    description: Optional[str] = None
    blocker_type: BlockerType
    severity: BlockerSeverity
    status: BlockerStatus
    owner: Optional[str] = None
    external_ref: Optional[str] = None
    resolution_notes: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Impacts
# ---------------------------------------------------------------------------

class ImpactCreate(BaseModel):
    task_id: str
    impact_type: ImpactType = ImpactType.BLOCKS
    impact_description: Optional[str] = None
    estimated_delay: Optional[int] = Field(default=None, ge=0, description="Hours")


class ImpactRead(BaseModel):
    id: str
    blocker_id: str
    task_id: str
    impact_type: ImpactType
    impact_description: Optional[str] = None
    estimated_delay: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ImpactDetail(ImpactRead):
    task_title: str
    task_status: TaskStatus


class BlockedTask(BaseModel):
    """A task held up by at least one open blocker."""
    task_id: str
    title: str
    status: TaskStatus
    priority: TaskPriority
    blocker_count: int
    blocking_issues: List[str] = Field(default_factory=list)
