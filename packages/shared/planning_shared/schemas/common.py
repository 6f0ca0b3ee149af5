from enum import Enum
from typing import Optional
from pydantic import BaseModel


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DependencyType(str, Enum):
    BLOCKS = "blocks"
    SUBTASK = "subtask"
    PREREQUISITE = "prerequisite"


# Edge types that gate completion of the child task. Subtask edges are informational.
GATING_DEPENDENCY_TYPES: list["DependencyType"] = [
    DependencyType.BLOCKS,
    DependencyType.PREREQUISITE,
]


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class ProjectType(str, Enum):
    FEATURE = "feature"
    REFACTOR = "refactor"
    BUGFIX = "bugfix"
    RESEARCH = "research"
    OTHER = "other"


class BlockerType(str, Enum):
    EXTERNAL = "external"
    RESOURCE = "resource"
    TECHNICAL = "technical"
    DECISION = "decision"
    DEPENDENCY = "dependency"


class BlockerSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BlockerStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


# Blocker statuses that still impede work.
OPEN_BLOCKER_STATUSES: list["BlockerStatus"] = [
    BlockerStatus.OPEN,
    BlockerStatus.IN_PROGRESS,
]


class ImpactType(str, Enum):
    BLOCKS = "blocks"
    DELAYS = "delays"
    AFFECTS = "affects"


class DecisionType(str, Enum):
    ARCHITECTURAL = "architectural"
    USER_PREFERENCE = "user-preference"
    TECHNICAL_CHOICE = "technical-choice"
    APPROACH_REJECTED = "approach-rejected"
    IMPLEMENTATION_DETAIL = "implementation-detail"


class DecisionStatus(str, Enum):
    ACTIVE = "active"
    SUPERSEDED = "superseded"


class ClearScope(str, Enum):
    CURRENT_PROJECT = "current_project"
    CURRENT_BRANCH = "current_branch"
    ALL = "all"


# Sort ranks, lowest first.
PRIORITY_RANK: dict[str, int] = {
    TaskPriority.HIGH.value: 0,
    TaskPriority.MEDIUM.value: 1,
    TaskPriority.LOW.value: 2,
}

SEVERITY_RANK: dict[str, int] = {
    BlockerSeverity.CRITICAL.value: 0,
    BlockerSeverity.HIGH.value: 1,
    BlockerSeverity.MEDIUM.value: 2,
    BlockerSeverity.LOW.value: 3,
}


class RemovalResult(BaseModel):
    """Outcome of an idempotent removal. Zero removed is still a success."""
    removed: int = 0


class ErrorBody(BaseModel):
    kind: str
    detail: str
    items: Optional[list[str]] = None
