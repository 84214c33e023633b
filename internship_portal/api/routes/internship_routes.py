"""
Internship Routes

GET /internships - List postings with filters and pagination
GET /internships/{internship_id} - Get one posting
POST /internships - Create posting (mentor/admin)
PUT /internships/{internship_id} - Update posting (owner/admin)
DELETE /internships/{internship_id} - Delete posting (owner/admin)
POST /internships/{internship_id}/apply - Apply with a resume (intern only)
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from internship_portal.core.auth import require_roles
from internship_portal.core.config import Settings, get_app_settings
from internship_portal.schemas.schemas import (
    ApplicationResponse, ApplyResponse, InternshipCreate, InternshipEnvelope,
    InternshipListResponse, InternshipResponse, InternshipUpdate, MessageResponse, UserRole
)
from internship_portal.services.internship_service import InternshipService, get_internship_service
from internship_portal.utils.file_upload import discard_resume, save_resume

router = APIRouter(prefix="/internships", tags=["Internships"])


@router.get("", response_model=InternshipListResponse)
async def list_internships(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, description="Search in title"),
    status: Optional[str] = Query(None),
    company: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    posted_by: Optional[str] = Query(None),
    internships: InternshipService = Depends(get_internship_service)
):
    """List postings, newest first, with filters and pagination."""
    result = internships.list(
        search=search, status=status, company=company, location=location,
        posted_by=posted_by, page=page, limit=limit
    )
    items = [InternshipResponse(**item) for item in result["items"]]
    return InternshipListResponse(
        count=len(items), total=result["total"], page=result["page"],
        pages=result["pages"], data=items
    )


@router.get("/{internship_id}", response_model=InternshipEnvelope)
async def get_internship(internship_id: str, internships: InternshipService = Depends(get_internship_service)):
    return InternshipEnvelope(data=InternshipResponse(**internships.get(internship_id)))


@router.post("", response_model=InternshipEnvelope, status_code=201)
async def create_internship(
    posting: InternshipCreate,
    user: dict = Depends(require_roles(UserRole.mentor, UserRole.admin)),
    internships: InternshipService = Depends(get_internship_service)
):
    """Create a new posting. Only mentors and admins can post."""
    return InternshipEnvelope(data=InternshipResponse(**internships.create(posting, user)))


@router.put("/{internship_id}", response_model=InternshipEnvelope)
async def update_internship(
    internship_id: str,
    patch: InternshipUpdate,
    user: dict = Depends(require_roles(UserRole.mentor, UserRole.admin)),
    internships: InternshipService = Depends(get_internship_service)
):
    """Update a posting. Only its owner or an admin."""
    return InternshipEnvelope(data=InternshipResponse(**internships.update(internship_id, patch, user)))


@router.delete("/{internship_id}", response_model=MessageResponse)
async def delete_internship(
    internship_id: str,
    user: dict = Depends(require_roles(UserRole.mentor, UserRole.admin)),
    internships: InternshipService = Depends(get_internship_service)
):
    internships.delete(internship_id, user)
    return MessageResponse(message="Internship deleted successfully")


@router.post("/{internship_id}/apply", response_model=ApplyResponse)
async def apply_to_internship(
    internship_id: str,
    resume: Optional[UploadFile] = File(None),
    cover_letter: Optional[str] = Form(None),
    user: dict = Depends(require_roles(UserRole.intern)),
    settings: Settings = Depends(get_app_settings),
    internships: InternshipService = Depends(get_internship_service)
):
    """
    Apply to a posting. Interns only, one active application per posting.

    Multipart form: "resume" (PDF/DOC/DOCX, required) and "cover_letter".
    """
    # 404 before touching the upload
    internships.get(internship_id)
    stored = await save_resume(resume, settings)
    try:
        application = internships.apply(internship_id, user, stored, cover_letter=cover_letter)
    except Exception:
        discard_resume(stored)
        raise
    return ApplyResponse(
        message="Application submitted successfully",
        data=ApplicationResponse(**application)
    )
