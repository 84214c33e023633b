"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, List, Literal, Union
from datetime import datetime
from enum import Enum

from internship_portal.utils.timeutils import to_naive_utc


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    intern = "intern"
    mentor = "mentor"
    admin = "admin"
    suspended = "suspended"


class InternshipStatus(str, Enum):
    open = "Open"
    closed = "Closed"
    draft = "Draft"
    paused = "Paused"
    archived = "Archived"


class ApplicationStatus(str, Enum):
    submitted = "Submitted"
    under_review = "Under Review"
    interview_scheduled = "Interview Scheduled"
    shortlisted = "Shortlisted"
    hired = "Hired"
    rejected = "Rejected"
    withdrawn = "Withdrawn"


BROADCAST_ALL = "All"

# Legacy spellings found in older records and clients
_SUSPENDED_ALIASES = {"suspend", "suspended"}
_STATUS_ALIASES = {"pending": ApplicationStatus.submitted.value}


def normalize_role(value) -> str:
    """Map any spelling of a role onto the canonical enum value."""
    if isinstance(value, Enum):
        value = value.value
    role = str(value or "").strip().lower()
    if role in _SUSPENDED_ALIASES:
        return UserRole.suspended.value
    return role


def normalize_application_status(value) -> str:
    if isinstance(value, Enum):
        value = value.value
    status = str(value or "").strip()
    return _STATUS_ALIASES.get(status.lower(), status)


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.intern
    phone: Optional[str] = None
    university: Optional[str] = None
    specialization: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("role", mode="before")
    @classmethod
    def canonical_role(cls, v):
        return normalize_role(v) if v is not None else UserRole.intern.value

    @model_validator(mode="after")
    def role_specific_fields(self):
        if self.role == UserRole.suspended:
            raise ValueError("Invalid role specified")
        if self.role == UserRole.intern and not (self.university or "").strip():
            raise ValueError("University is required for interns")
        if self.role == UserRole.mentor and not (self.specialization or "").strip():
            raise ValueError("Specialization is required for mentors")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    phone: Optional[str] = None
    university: Optional[str] = None
    specialization: Optional[str] = None
    mentor_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = None
    university: Optional[str] = None
    specialization: Optional[str] = None


class RoleUpdate(BaseModel):
    role: UserRole

    @field_validator("role", mode="before")
    @classmethod
    def canonical_role(cls, v):
        return normalize_role(v)


class MentorAssignment(BaseModel):
    mentor_id: str


# ============================================================
# INTERNSHIP SCHEMAS
# ============================================================

Stipend = Union[float, Literal["Unpaid"]]


def _clean_stipend(v):
    if isinstance(v, str) and v.strip().lower() == "unpaid":
        return "Unpaid"
    if isinstance(v, (int, float)) and v < 0:
        raise ValueError("Stipend cannot be negative")
    return v


class InternshipCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    company: str = Field(..., min_length=1, max_length=200)
    location: Optional[str] = None
    description: str = Field(..., min_length=10)
    duration: Optional[str] = None
    stipend: Optional[Stipend] = None
    application_deadline: Optional[datetime] = None

    @field_validator("title", "company")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("stipend", mode="before")
    @classmethod
    def stipend_value(cls, v):
        return _clean_stipend(v)

    @field_validator("application_deadline")
    @classmethod
    def deadline_utc(cls, v):
        return to_naive_utc(v)


class InternshipUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    company: Optional[str] = Field(None, min_length=1, max_length=200)
    location: Optional[str] = None
    description: Optional[str] = Field(None, min_length=10)
    duration: Optional[str] = None
    stipend: Optional[Stipend] = None
    application_deadline: Optional[datetime] = None
    status: Optional[InternshipStatus] = None

    @field_validator("stipend", mode="before")
    @classmethod
    def stipend_value(cls, v):
        return _clean_stipend(v)

    @field_validator("application_deadline")
    @classmethod
    def deadline_utc(cls, v):
        return to_naive_utc(v)


class InternshipResponse(BaseModel):
    id: str
    title: str
    company: str
    location: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[str] = None
    stipend: Optional[Stipend] = None
    posted_by: str
    status: str
    application_deadline: Optional[datetime] = None
    deadline_passed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InternshipEnvelope(BaseModel):
    success: bool = True
    data: InternshipResponse


class InternshipListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    page: int
    pages: int
    data: List[InternshipResponse]


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ResumeInfo(BaseModel):
    filename: str
    stored_path: str
    size: int
    content_type: Optional[str] = None


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def status_alias(cls, v):
        return normalize_application_status(v)


class ApplicationResponse(BaseModel):
    id: str
    user_id: str
    internship_id: str
    status: str
    cover_letter: Optional[str] = None
    resume: Optional[ResumeInfo] = None
    assigned_mentor_id: Optional[str] = None
    review_notes: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ApplicationEnvelope(BaseModel):
    success: bool = True
    data: ApplicationResponse


class ApplyResponse(BaseModel):
    success: bool = True
    message: str
    data: ApplicationResponse


# ============================================================
# NOTIFICATION SCHEMAS
# ============================================================

class NotificationCreate(BaseModel):
    user_id: Optional[str] = None
    target_role: Optional[str] = None
    message: str = Field(..., min_length=1)
    link: Optional[str] = None

    @field_validator("target_role", mode="before")
    @classmethod
    def canonical_target(cls, v):
        if v is None:
            return None
        if str(v).strip().lower() == BROADCAST_ALL.lower():
            return BROADCAST_ALL
        role = normalize_role(v)
        if role not in {r.value for r in UserRole}:
            raise ValueError("target_role must be 'All' or a user role")
        return role

    @model_validator(mode="after")
    def one_target(self):
        if bool(self.user_id) == bool(self.target_role):
            raise ValueError("Provide exactly one of user_id or target_role")
        return self


class NotificationResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    target_role: Optional[str] = None
    message: str
    link: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None


# ============================================================
# MEETING SCHEMAS
# ============================================================

class MeetingCreate(BaseModel):
    application_id: str
    scheduled_at: datetime
    title: str = Field("Interview", min_length=1, max_length=200)
    duration_minutes: int = Field(30, ge=5, le=480)
    location: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("scheduled_at")
    @classmethod
    def scheduled_utc(cls, v):
        return to_naive_utc(v)


class MeetingResponse(BaseModel):
    id: str
    title: str
    application_id: str
    internship_id: Optional[str] = None
    mentor_id: Optional[str] = None
    participant_ids: List[str] = []
    scheduled_at: datetime
    duration_minutes: int = 30
    location: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
