from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class FileMappingUpsert(BaseModel):
    file_path: str
    file_type: Optional[str] = None
    purpose: Optional[str] = None
    key_functions: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    dependents: List[str] = Field(default_factory=list)
    analysis_summary: Optional[str] = None
    complexity_score: int = 0
    importance_score: int = 0
    notes: Optional[str] = None


class FileMappingRead(FileMappingUpsert):
    id: str
    project_id: str
    last_analyzed: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FileMappingResult(BaseModel):
    mapping: FileMappingRead
    action: Literal["created", "updated"]
