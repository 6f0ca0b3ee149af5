"""Blocker and blocker impact models."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from .base import IDMixin, TimestampMixin, utcnow


class Blocker(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "blockers"

    project_id: str = Field(foreign_key="projects.id", ondelete="CASCADE", nullable=False, index=True)
    title: str = Field(nullable=False)
    description: Optional[str] = None
    blocker_type: str = Field(default="external", nullable=False, index=True)  # external | resource | technical | decision | dependency
    severity: str = Field(default="medium", nullable=False, index=True)  # low | medium | high | critical
    status: str = Field(default="open", nullable=False, index=True)  # open | in-progress | resolved | closed
    owner: Optional[str] = None
    external_ref: Optional[str] = None
    resolution_notes: Optional[str] = None
    resolved_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    created_by: str = Field(default="agent", nullable=False)


class BlockerImpact(IDMixin, SQLModel, table=True):
    __tablename__ = "blocker_impacts"
    __table_args__ = (
        UniqueConstraint("blocker_id", "task_id", "impact_type", name="uq_blocker_impact"),
    )

    blocker_id: str = Field(foreign_key="blockers.id", ondelete="CASCADE", nullable=False, index=True)
    task_id: str = Field(foreign_key="tasks.id", ondelete="CASCADE", nullable=False, index=True)
    impact_type: str = Field(default="blocks", nullable=False)  # blocks | delays | affects
    impact_description: Optional[str] = None
    estimated_delay: Optional[int] = None  # hours
    created_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=sa.DateTime(timezone=True)
    )
