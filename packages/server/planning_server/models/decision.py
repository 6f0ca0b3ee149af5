"""Decision log model."""

from datetime import datetime
from typing import List, Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IDMixin, TimestampMixin, utcnow


class Decision(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "decisions"

    project_id: str = Field(foreign_key="projects.id", ondelete="CASCADE", nullable=False, index=True)
    decision_type: str = Field(nullable=False, index=True)
    title: str = Field(nullable=False)
    description: str = Field(nullable=False)
    rationale: Optional[str] = None
    context: Optional[str] = None
    alternatives_considered: List[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    impacts: List[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    made_by: str = Field(default="agent", nullable=False)
    decision_date: datetime = Field(
        default_factory=utcnow, nullable=False, index=True, sa_type=sa.DateTime(timezone=True)
    )
    status: str = Field(default="active", nullable=False, index=True)  # active | superseded
    superseded_by: Optional[str] = Field(default=None, foreign_key="decisions.id", ondelete="SET NULL")
