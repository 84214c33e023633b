"""
User Routes (admin only)

GET /users - List users, filter by role or search name/email
PATCH /users/{user_id}/role - Suspend, reinstate or promote
PATCH /users/{user_id}/mentor - Assign a mentor to an intern
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from internship_portal.core.auth import require_roles
from internship_portal.schemas.schemas import (
    MentorAssignment, RoleUpdate, UserResponse, UserRole, normalize_role
)
from internship_portal.services.user_service import UserService, get_user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserResponse])
async def list_users(
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Search in name and email"),
    admin: dict = Depends(require_roles(UserRole.admin)),
    users: UserService = Depends(get_user_service)
):
    if role:
        role = normalize_role(role)
    return [UserResponse(**u) for u in users.list_users(role, search)]


@router.patch("/{user_id}/role", response_model=UserResponse)
async def set_role(
    user_id: str,
    update: RoleUpdate,
    admin: dict = Depends(require_roles(UserRole.admin)),
    users: UserService = Depends(get_user_service)
):
    return UserResponse(**users.set_role(user_id, update.role, admin))


@router.patch("/{user_id}/mentor", response_model=UserResponse)
async def assign_mentor(
    user_id: str,
    assignment: MentorAssignment,
    admin: dict = Depends(require_roles(UserRole.admin)),
    users: UserService = Depends(get_user_service)
):
    return UserResponse(**users.assign_mentor_to_intern(user_id, assignment.mentor_id))
