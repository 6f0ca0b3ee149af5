"""Task dependency edge model."""

from datetime import datetime

import sqlalchemy as sa
from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel

from .base import IDMixin, utcnow


class TaskDependency(IDMixin, SQLModel, table=True):
    """Directed edge parent -> child: the child is gated on the parent per its type."""

    __tablename__ = "task_dependencies"
    __table_args__ = (
        CheckConstraint("parent_task_id != child_task_id", name="no_self_dependency"),
        UniqueConstraint(
            "parent_task_id", "child_task_id", "dependency_type", name="uq_task_dependency"
        ),
    )

    project_id: str = Field(foreign_key="projects.id", ondelete="CASCADE", nullable=False, index=True)
    parent_task_id: str = Field(foreign_key="tasks.id", ondelete="CASCADE", nullable=False, index=True)
    child_task_id: str = Field(foreign_key="tasks.id", ondelete="CASCADE", nullable=False, index=True)
    dependency_type: str = Field(nullable=False, default="blocks")  # blocks | subtask | prerequisite
    created_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=sa.DateTime(timezone=True)
    )
    created_by: str = Field(default="agent", nullable=False)
