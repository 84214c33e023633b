"""
Notification Routes

GET /notifications - Notices visible to the current user
GET /notifications/count - Unread / read / total count
POST /notifications - Send a direct or role-broadcast notice (mentor/admin)
PATCH /notifications/mark-all-read - Mark everything read
PATCH /notifications/{notification_id}/read - Mark one read
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from internship_portal.core.auth import get_current_user, require_roles
from internship_portal.schemas.schemas import (
    MessageResponse, NotificationCreate, NotificationResponse, UserRole
)
from internship_portal.services.notification_service import NotificationService, get_notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    user: dict = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service)
):
    return [NotificationResponse(**n) for n in notifications.list_for(user, unread_only, limit)]


@router.get("/count")
async def count_notifications(
    status: str = Query("unread", description="unread, read or all"),
    user: dict = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service)
):
    """Returns {"unread": n}, {"read": n} or {"total": n}."""
    return notifications.count(user, status)


@router.post("", response_model=NotificationResponse, status_code=201)
async def create_notification(
    request: NotificationCreate,
    user: dict = Depends(require_roles(UserRole.mentor, UserRole.admin)),
    notifications: NotificationService = Depends(get_notification_service)
):
    notice = notifications.notify(
        message=request.message,
        user_id=request.user_id,
        target_role=request.target_role,
        link=request.link
    )
    return NotificationResponse(**notice)


# Declared before /{notification_id}/read so the literal path wins
@router.patch("/mark-all-read", response_model=MessageResponse)
async def mark_all_read(
    user: dict = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service)
):
    updated = notifications.mark_all_read(user)
    return MessageResponse(message=f"Marked {updated} notifications as read")


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    user: dict = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service)
):
    return NotificationResponse(**notifications.mark_read(notification_id, user))
