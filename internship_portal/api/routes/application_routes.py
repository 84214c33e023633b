"""
Application Routes

GET /applications - Role-scoped list
GET /applications/{application_id} - One application
PATCH /applications/{application_id}/status - Move along the status graph
POST /applications/{application_id}/withdraw - Applicant withdraws
PATCH /applications/{application_id}/mentor - Assign a reviewing mentor (admin)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from internship_portal.core.auth import get_current_user, require_roles
from internship_portal.schemas.schemas import (
    ApplicationEnvelope, ApplicationResponse, ApplicationStatusUpdate, MentorAssignment,
    UserRole, normalize_application_status
)
from internship_portal.services.application_service import ApplicationService, get_application_service

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.get("", response_model=List[ApplicationResponse])
async def list_applications(
    status: Optional[str] = Query(None),
    internship_id: Optional[str] = Query(None),
    user: dict = Depends(get_current_user),
    applications: ApplicationService = Depends(get_application_service)
):
    """Interns see their own, mentors their assigned or posted, admins all."""
    if status:
        status = normalize_application_status(status)
    return [ApplicationResponse(**a) for a in applications.list_for(user, status, internship_id)]


@router.get("/{application_id}", response_model=ApplicationEnvelope)
async def get_application(
    application_id: str,
    user: dict = Depends(get_current_user),
    applications: ApplicationService = Depends(get_application_service)
):
    return ApplicationEnvelope(data=ApplicationResponse(**applications.get(application_id, user)))


@router.patch("/{application_id}/status", response_model=ApplicationEnvelope)
async def update_status(
    application_id: str,
    update: ApplicationStatusUpdate,
    user: dict = Depends(get_current_user),
    applications: ApplicationService = Depends(get_application_service)
):
    """
    Change an application's status.

    Reviewers follow the status graph; the applicant may only withdraw.
    An unreachable target returns 409 and leaves the application as it was.
    """
    application = applications.transition(application_id, update.status, user, notes=update.notes)
    return ApplicationEnvelope(data=ApplicationResponse(**application))


@router.post("/{application_id}/withdraw", response_model=ApplicationEnvelope)
async def withdraw_application(
    application_id: str,
    user: dict = Depends(require_roles(UserRole.intern)),
    applications: ApplicationService = Depends(get_application_service)
):
    return ApplicationEnvelope(data=ApplicationResponse(**applications.withdraw(application_id, user)))


@router.patch("/{application_id}/mentor", response_model=ApplicationEnvelope)
async def assign_mentor(
    application_id: str,
    assignment: MentorAssignment,
    admin: dict = Depends(require_roles(UserRole.admin)),
    applications: ApplicationService = Depends(get_application_service)
):
    application = applications.assign_mentor(application_id, assignment.mentor_id)
    return ApplicationEnvelope(data=ApplicationResponse(**application))
