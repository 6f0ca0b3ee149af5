"""File mappings: per-file notes on purpose, key functions and relationships."""

from __future__ import annotations

from typing import Literal, Optional

import structlog
from sqlalchemy import delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from planning_server.models.base import utcnow
from planning_server.models.file_mapping import FileMapping
from planning_server.services.lookups import get_project_or_404, require_text
from planning_shared.schemas.common import RemovalResult
from planning_shared.schemas.files import FileMappingUpsert

log = structlog.get_logger()

KNOWN_FILE_TYPES = {
    "javascript",
    "typescript",
    "python",
    "java",
    "css",
    "html",
    "json",
    "markdown",
}


async def map_relevant_code(
    session: AsyncSession, project_id: str, mapping_in: FileMappingUpsert
) -> tuple[FileMapping, Literal["created", "updated"]]:
    """Create or refresh the mapping for a file path (unique per project)."""
    require_text(mapping_in.file_path, "file_path")
    await get_project_or_404(session, project_id)

    result = await session.execute(
        select(FileMapping).where(
            FileMapping.project_id == project_id,
            FileMapping.file_path == mapping_in.file_path,
        )
    )
    mapping = result.scalars().first()
    now = utcnow()
    fields = mapping_in.model_dump(exclude={"file_path"})

    if mapping is None:
        mapping = FileMapping(project_id=project_id, file_path=mapping_in.file_path, **fields)
        action: Literal["created", "updated"] = "created"
    else:
        for key, value in fields.items():
            setattr(mapping, key, value)
        mapping.updated_at = now
        action = "updated"
    mapping.last_analyzed = now

    session.add(mapping)
    await session.flush()
    log.info("file_mapping.saved", file_path=mapping.file_path, action=action)
    return mapping, action


async def remove_file_mapping(
    session: AsyncSession, project_id: str, file_path: str
) -> RemovalResult:
    result = await session.execute(
        delete(FileMapping).where(
            FileMapping.project_id == project_id,
            FileMapping.file_path == file_path,
        )
    )
    removed = result.rowcount or 0
    log.info("file_mapping.removed", file_path=file_path, removed=removed)
    return RemovalResult(removed=removed)


async def list_file_mappings(
    session: AsyncSession, project_id: str, filter_text: Optional[str] = None
) -> list[FileMapping]:
    """Filter by a known file type, a minimum importance score, or free text."""
    stmt = select(FileMapping).where(FileMapping.project_id == project_id)
    if filter_text and filter_text.strip():
        needle = filter_text.strip()
        if needle.lower() in KNOWN_FILE_TYPES:
            stmt = stmt.where(FileMapping.file_type == needle.lower())
        elif needle.isdigit():
            stmt = stmt.where(FileMapping.importance_score >= int(needle))
        else:
            pattern = f"%{needle}%"
            stmt = stmt.where(
                or_(
                    FileMapping.file_path.ilike(pattern),
                    FileMapping.purpose.ilike(pattern),
                    FileMapping.analysis_summary.ilike(pattern),
                )
            )
    stmt = stmt.order_by(FileMapping.importance_score.desc(), FileMapping.last_analyzed.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())
