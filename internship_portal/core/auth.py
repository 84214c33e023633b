"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- authorize(): the single token + role check used by every protected route
- FastAPI dependencies for protected routes
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from internship_portal.core.config import Settings, get_app_settings
from internship_portal.core.errors import ForbiddenError, NotFoundError, UnauthenticatedError
from internship_portal.db.mongodb import MongoStore, get_store
from internship_portal.schemas.schemas import UserRole
from internship_portal.services.mongo_service import normalize_user, to_object_id

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor; missing headers are reported by authorize()
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def issue_token_for(user: dict, settings: Settings) -> str:
    """Session token encoding user id, email and role."""
    return create_access_token({"sub": user["id"], "email": user["email"], "role": user["role"]}, settings)


def decode_token(token: str, settings: Settings) -> Optional[dict]:
    """Decode and verify JWT token. Expired or tampered tokens give None."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def authorize(
    token: Optional[str],
    store: MongoStore,
    settings: Settings,
    required_roles: Iterable[str] = (),
    allow_suspended: bool = False
) -> dict:
    """
    Resolve a bearer token to the current user and enforce roles.

    The role is read from the stored user rather than the token, so a
    suspension takes effect on the next request.

    Raises:
        UnauthenticatedError: token missing, invalid, expired, or user gone
        ForbiddenError: role not in required_roles, or user suspended
    """
    if not token:
        raise UnauthenticatedError("Not authenticated")

    payload = decode_token(token, settings)
    if not payload or not payload.get("sub"):
        raise UnauthenticatedError()

    try:
        user_oid = to_object_id(payload["sub"], "User")
    except NotFoundError:
        raise UnauthenticatedError()

    # Verify user exists
    user = normalize_user(store.users.find_one({"_id": user_oid}))
    if not user:
        raise UnauthenticatedError()

    if user["role"] == UserRole.suspended.value and not allow_suspended:
        logger.info("Suspended user %s refused", user["id"])
        raise ForbiddenError("Your account has been suspended")

    required = {r.value if isinstance(r, UserRole) else r for r in required_roles}
    if required and user["role"] not in required:
        raise ForbiddenError()

    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    store: MongoStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings)
) -> dict:
    """
    FastAPI dependency - Get current authenticated (non-suspended) user.

    Usage:
        @router.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    token = credentials.credentials if credentials else None
    return authorize(token, store, settings)


def require_roles(*roles: UserRole):
    """Dependency factory - require one of the given roles."""

    async def _checker(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        store: MongoStore = Depends(get_store),
        settings: Settings = Depends(get_app_settings)
    ) -> dict:
        token = credentials.credentials if credentials else None
        return authorize(token, store, settings, required_roles=roles)

    return _checker
