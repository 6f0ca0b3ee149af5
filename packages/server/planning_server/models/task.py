"""Task model."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IDMixin, TimestampMixin


class Task(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"

    project_id: str = Field(foreign_key="projects.id", ondelete="CASCADE", nullable=False, index=True)
    title: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(nullable=False, default="todo", index=True)  # todo | in-progress | blocked | completed
    priority: str = Field(nullable=False, default="medium", index=True)  # high | medium | low
    assignee: Optional[str] = None
    notes: Optional[str] = None
    # Informational hierarchy only; the dependency graph lives in task_dependencies.
    parent_task_id: Optional[str] = Field(
        default=None, foreign_key="tasks.id", ondelete="SET NULL", index=True
    )
    completed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
