"""
Authentication Routes

POST /auth/register - Register new intern or mentor, returns a session token
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
PUT /auth/profile - Update own profile
"""

from fastapi import APIRouter, Depends

from internship_portal.core.auth import get_current_user
from internship_portal.core.errors import ValidationError
from internship_portal.schemas.schemas import (
    RegisterRequest, LoginRequest, TokenResponse, UserResponse, ProfileUpdate, UserRole
)
from internship_portal.services.user_service import UserService, get_user_service

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Admin accounts are seeded with scripts/create_admin.py
PUBLIC_ROLES = {UserRole.intern, UserRole.mentor}


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(request: RegisterRequest, users: UserService = Depends(get_user_service)):
    """
    Register a new account and log it in.

    Interns must give a university, mentors a specialization.
    """
    if request.role not in PUBLIC_ROLES:
        raise ValidationError("Invalid role specified")
    user, token = users.register(request)
    return TokenResponse(token=token, user=UserResponse(**user))


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, users: UserService = Depends(get_user_service)):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    user, token = users.login(request.email, request.password)
    return TokenResponse(token=token, user=UserResponse(**user))


@router.get("/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    """Get current authenticated user's info."""
    return UserResponse(**user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    update: ProfileUpdate,
    user: dict = Depends(get_current_user),
    users: UserService = Depends(get_user_service)
):
    return UserResponse(**users.update_profile(user, update))
