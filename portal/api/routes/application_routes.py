"""
Application Routes

POST /applications - Apply to an approved proposal (student only)
GET /applications/my - My applications (student only)
GET /applications/faculty - Applications to my proposals (faculty only)
POST /applications/{application_id}/select - Select student (proposal owner)
POST /applications/{application_id}/reject - Reject application (proposal owner)
"""

from typing import List

from fastapi import APIRouter, Depends

from portal.core.auth import get_current_student, get_current_faculty
from portal.models.actor import Actor
from portal.services import application_service
from portal.schemas.schemas import ApplicationCreate, ApplicationResponse

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.post("", response_model=ApplicationResponse, status_code=201)
async def apply(data: ApplicationCreate, student: Actor = Depends(get_current_student)):
    """Apply to a project. At most 3 applications per student, one per project."""
    return ApplicationResponse(**application_service.apply(student, data.proposal_id))


@router.get("/my", response_model=List[ApplicationResponse])
async def my_applications(student: Actor = Depends(get_current_student)):
    return [ApplicationResponse(**a) for a in application_service.list_for_student(student)]


@router.get("/faculty", response_model=List[ApplicationResponse])
async def faculty_applications(faculty: Actor = Depends(get_current_faculty)):
    return [ApplicationResponse(**a) for a in application_service.list_for_faculty(faculty)]


@router.post("/{application_id}/select", response_model=ApplicationResponse)
async def select_application(application_id: int, faculty: Actor = Depends(get_current_faculty)):
    """Select the student. Their other applications are rejected."""
    return ApplicationResponse(**application_service.select(faculty, application_id))


@router.post("/{application_id}/reject", response_model=ApplicationResponse)
async def reject_application(application_id: int, faculty: Actor = Depends(get_current_faculty)):
    """Reject the application. The seat goes back to the project."""
    return ApplicationResponse(**application_service.reject(faculty, application_id))
