"""Decision log endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from planning_server.api.v1.deps import get_current_project, get_session
from planning_server.models.project import Project
from planning_server.services import decisions as decision_service
from planning_shared.schemas.decisions import DecisionCreate, DecisionRead, SupersedeResult

router = APIRouter()


@router.get("/", response_model=List[DecisionRead])
async def list_decisions_endpoint(
    filter_text: Optional[str] = Query(None, alias="filter", description="Decision type or free text"),
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await decision_service.list_decisions(session, project.id, filter_text=filter_text)


@router.post("/", response_model=DecisionRead, status_code=201)
async def record_decision_endpoint(
    decision_in: DecisionCreate,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await decision_service.record_decision(session, project.id, decision_in)


@router.post("/{decision_id}/supersede", response_model=SupersedeResult, status_code=201)
async def supersede_decision_endpoint(
    decision_id: str,
    decision_in: DecisionCreate,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    """Record a replacement decision and retire the old one."""
    old, new = await decision_service.supersede_decision(
        session, project.id, decision_id, decision_in
    )
    return SupersedeResult(old_decision_id=old.id, new_decision=DecisionRead.model_validate(new))
