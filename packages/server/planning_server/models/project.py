"""Project model."""

from sqlmodel import Field, SQLModel

from .base import IDMixin, TimestampMixin


class Project(IDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    name: str = Field(nullable=False)
    goal: str = Field(nullable=False)
    scope: str = Field(nullable=False)
    branch: str = Field(nullable=False, index=True)
    project_type: str = Field(default="other", nullable=False)  # feature | refactor | bugfix | research | other
    status: str = Field(default="active", nullable=False, index=True)  # active | archived
