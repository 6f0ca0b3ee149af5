"""File mapping model: what the agent has learned about a file."""

from datetime import datetime
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from .base import IDMixin, TimestampMixin, utcnow


class FileMapping(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "file_mappings"
    __table_args__ = (
        UniqueConstraint("project_id", "file_path", name="uq_file_mapping_path"),
    )

    project_id: str = Field(foreign_key="projects.id", ondelete="CASCADE", nullable=False, index=True)
    file_path: str = Field(nullable=False)
    file_type: Optional[str] = Field(default=None, index=True)
    purpose: Optional[str] = None
    key_functions: List[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    dependencies: List[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    dependents: List[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    analysis_summary: Optional[str] = None
    complexity_score: int = Field(default=0, nullable=False)
    importance_score: int = Field(default=0, nullable=False, index=True)
    notes: Optional[str] = None
    last_analyzed: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=sa.DateTime(timezone=True)
    )
