"""File mapping endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from planning_server.api.v1.deps import get_current_project, get_session
from planning_server.models.project import Project
from planning_server.services import files as file_service
from planning_shared.schemas.common import RemovalResult
from planning_shared.schemas.files import FileMappingRead, FileMappingResult, FileMappingUpsert

router = APIRouter()


@router.get("/", response_model=List[FileMappingRead])
async def list_files_endpoint(
    filter_text: Optional[str] = Query(None, alias="filter", description="File type, minimum importance, or free text"),
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await file_service.list_file_mappings(session, project.id, filter_text=filter_text)


@router.post("/", response_model=FileMappingResult)
async def map_file_endpoint(
    mapping_in: FileMappingUpsert,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    mapping, action = await file_service.map_relevant_code(session, project.id, mapping_in)
    return FileMappingResult(mapping=FileMappingRead.model_validate(mapping), action=action)


@router.delete("/", response_model=RemovalResult)
async def remove_file_endpoint(
    file_path: str,
    project: Project = Depends(get_current_project),
    session: AsyncSession = Depends(get_session),
):
    return await file_service.remove_file_mapping(session, project.id, file_path)
