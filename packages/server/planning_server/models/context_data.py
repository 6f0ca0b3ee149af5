"""Free-form context records attached to a project."""

from typing import Any, Dict

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IDMixin, TimestampMixin


class ContextData(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "context_data"

    project_id: str = Field(foreign_key="projects.id", ondelete="CASCADE", nullable=False, index=True)
    data_type: str = Field(nullable=False, index=True)  # initialization, ...
    content: Dict[str, Any] = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)
