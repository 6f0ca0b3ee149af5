from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime
from .common import ClearScope, ProjectStatus, ProjectType


PROJECT_NAME_MAX_LENGTH = 50


class ProjectBase(BaseModel):
    goal: str
    scope: str
    branch: str
    project_type: ProjectType = ProjectType.OTHER


class ProjectCreate(ProjectBase):
    pass


class ProjectRead(ProjectBase):
    id: str
    name: str
    status: ProjectStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ContextDataRead(BaseModel):
    id: str
    data_type: str
    content: Dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectContext(ProjectRead):
    """A project together with its context records, most recently updated first."""
    context_data: List[ContextDataRead] = Field(default_factory=list)


class ProjectSummary(BaseModel):
    """Structured snapshot of a project's state; rendering is left to the caller."""
    project: ProjectRead
    task_counts: dict[str, int] = Field(default_factory=dict)
    total_tasks: int = 0
    open_blockers: int = 0
    tasks_blocked_by_blockers: int = 0
    active_decisions: int = 0
    file_mappings: int = 0
    context_records: int = 0


class ClearRequest(BaseModel):
    scope: ClearScope
    confirm: bool = False


class ClearResult(BaseModel):
    scope: ClearScope
    count: int = 0


def derive_project_name(goal: str) -> str:
    """Project names are the leading slice of the goal."""
    return goal[:PROJECT_NAME_MAX_LENGTH].strip()
