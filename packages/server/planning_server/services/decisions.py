"""Decision log: architectural choices and user preferences, superseded rather than edited."""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from planning_server.core.errors import NotFound
from planning_server.models.base import utcnow
from planning_server.models.decision import Decision
from planning_server.services.lookups import get_project_or_404, require_text
from planning_shared.schemas.common import DecisionStatus, DecisionType
from planning_shared.schemas.decisions import DecisionCreate

log = structlog.get_logger()

_DECISION_TYPES = {t.value for t in DecisionType}


async def get_decision_or_404(session: AsyncSession, project_id: str, decision_id: str) -> Decision:
    decision = await session.get(Decision, decision_id)
    if not decision or decision.project_id != project_id:
        raise NotFound(f"Decision not found: {decision_id}")
    return decision


async def record_decision(
    session: AsyncSession, project_id: str, decision_in: DecisionCreate
) -> Decision:
    require_text(decision_in.title, "title")
    require_text(decision_in.description, "description")
    await get_project_or_404(session, project_id)

    decision = Decision(
        project_id=project_id,
        decision_type=decision_in.decision_type.value,
        title=decision_in.title,
        description=decision_in.description,
        rationale=decision_in.rationale,
        context=decision_in.context,
        alternatives_considered=list(decision_in.alternatives_considered),
        impacts=list(decision_in.impacts),
        made_by=decision_in.made_by,
    )
    session.add(decision)
    await session.flush()
    log.info("decision.recorded", decision_id=decision.id, decision_type=decision.decision_type)
    return decision


async def supersede_decision(
    session: AsyncSession, project_id: str, decision_id: str, decision_in: DecisionCreate
) -> tuple[Decision, Decision]:
    """Record a replacement and retire the old decision. Returns (old, new)."""
    old = await get_decision_or_404(session, project_id, decision_id)
    new = await record_decision(session, project_id, decision_in)

    old.status = DecisionStatus.SUPERSEDED.value
    old.superseded_by = new.id
    old.updated_at = utcnow()
    session.add(old)
    await session.flush()
    log.info("decision.superseded", old_decision_id=old.id, new_decision_id=new.id)
    return old, new


async def list_decisions(
    session: AsyncSession, project_id: str, filter_text: Optional[str] = None
) -> list[Decision]:
    """Active decisions, newest first. A filter naming a decision type narrows by it."""
    stmt = select(Decision).where(
        Decision.project_id == project_id,
        Decision.status == DecisionStatus.ACTIVE.value,
    )
    if filter_text and filter_text.strip():
        needle = filter_text.strip()
        if needle.lower() in _DECISION_TYPES:
            stmt = stmt.where(Decision.decision_type == needle.lower())
        else:
            pattern = f"%{needle}%"
            stmt = stmt.where(
                or_(
                    Decision.title.ilike(pattern),
                    Decision.description.ilike(pattern),
                    Decision.rationale.ilike(pattern),
                )
            )
    stmt = stmt.order_by(Decision.decision_date.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())
