"""
Faculty Directory Routes

GET /faculty - Faculty list (optionally one research area), ordered by login id
GET /faculty/areas - Faculty grouped by research area
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from portal.core.auth import get_current_actor
from portal.models.actor import Actor
from portal.services import directory_service
from portal.schemas.schemas import FacultyResponse, AreaDirectoryResponse

router = APIRouter(prefix="/faculty", tags=["Faculty"])


@router.get("", response_model=List[FacultyResponse])
async def list_faculty(
    area: Optional[str] = Query(None, description="Research area"),
    actor: Actor = Depends(get_current_actor)
):
    return [FacultyResponse(**f) for f in directory_service.list_faculty(area)]


@router.get("/areas", response_model=AreaDirectoryResponse)
async def list_areas(actor: Actor = Depends(get_current_actor)):
    grouped = directory_service.faculty_by_area()
    return AreaDirectoryResponse(
        areas={area: [FacultyResponse(**f) for f in rows] for area, rows in grouped.items()}
    )
