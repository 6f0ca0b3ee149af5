from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import DecisionStatus, DecisionType


class DecisionCreate(BaseModel):
    decision_type: DecisionType
    title: str
    description: str
    rationale: Optional[str] = None
    context: Optional[str] = None
    alternatives_considered: List[str] = Field(default_factory=list)
    impacts: List[str] = Field(default_factory=list)
    made_by: str = "agent"


class DecisionRead(BaseModel):
    id: str
    project_id: str
    decision_type: DecisionType
    title: str
    description: str
    rationale: Optional[str] = None
    context: Optional[str] = None
    alternatives_considered: List[str] = Field(default_factory=list)
    impacts: List[str] = Field(default_factory=list)
    made_by: str
    decision_date: datetime
    status: DecisionStatus
    superseded_by: Optional[str] = None

    model_config = {"from_attributes": True}


class SupersedeResult(BaseModel):
    old_decision_id: str
    new_decision: DecisionRead
