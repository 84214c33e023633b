"""
Stats Routes

GET /stats/internships - Posting counts (public)
GET /stats/applications - Application counts per status (mentor/admin)
"""

from fastapi import APIRouter, Depends

from internship_portal.core.auth import require_roles
from internship_portal.schemas.schemas import UserRole
from internship_portal.services.application_service import ApplicationService, get_application_service
from internship_portal.services.internship_service import InternshipService, get_internship_service

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("/internships")
async def internship_stats(internships: InternshipService = Depends(get_internship_service)):
    return {"success": True, "data": internships.stats()}


@router.get("/applications")
async def application_stats(
    user: dict = Depends(require_roles(UserRole.mentor, UserRole.admin)),
    applications: ApplicationService = Depends(get_application_service)
):
    return {"success": True, "data": applications.stats()}
