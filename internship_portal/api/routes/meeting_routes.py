"""
Meeting Routes

GET /meetings - Meetings visible to the current user
POST /meetings - Schedule an interview for an application (mentor/admin)
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from internship_portal.core.auth import get_current_user, require_roles
from internship_portal.schemas.schemas import MeetingCreate, MeetingResponse, UserRole
from internship_portal.services.meeting_service import MeetingService, get_meeting_service

router = APIRouter(prefix="/meetings", tags=["Meetings"])


@router.get("", response_model=List[MeetingResponse])
async def list_meetings(
    upcoming: bool = Query(False, description="Only meetings scheduled in the future"),
    user: dict = Depends(get_current_user),
    meetings: MeetingService = Depends(get_meeting_service)
):
    return [MeetingResponse(**m) for m in meetings.list_for(user, upcoming_only=upcoming)]


@router.post("", response_model=MeetingResponse, status_code=201)
async def schedule_meeting(
    request: MeetingCreate,
    user: dict = Depends(require_roles(UserRole.mentor, UserRole.admin)),
    meetings: MeetingService = Depends(get_meeting_service)
):
    return MeetingResponse(**meetings.schedule(request, user))
