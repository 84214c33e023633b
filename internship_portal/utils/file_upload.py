"""
File Upload Utility - store resume files for applications.

Supported formats:
- PDF (.pdf)
- Word (.doc, .docx)

Files are written to settings.upload_dir under a generated name; the
original filename is kept only as metadata.
"""

import logging
import os
import time
import uuid
from typing import Optional

from fastapi import UploadFile

from internship_portal.core.config import Settings
from internship_portal.core.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'.pdf', '.doc', '.docx'}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if not filename or '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def stored_name(filename: str) -> str:
    """Unique on-disk name that keeps the original extension."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}{get_file_extension(filename)}"


async def save_resume(file: Optional[UploadFile], settings: Settings) -> dict:
    """
    Validate and store an uploaded resume.

    Args:
        file: FastAPI UploadFile, or None when the form had no "resume" part
        settings: supplies upload_dir and max_upload_mb

    Returns:
        dict matching ResumeInfo (filename, stored_path, size, content_type)

    Raises:
        ValidationError on a missing file, unsupported type or oversize file
    """
    if file is None or not file.filename:
        raise ValidationError('Resume file is required (field name "resume")')

    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(f"Unsupported file type '{ext}'. Allowed: PDF, DOC, DOCX")

    content = await file.read()

    max_bytes = settings.max_upload_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise ValidationError(f"File too large. Maximum size: {settings.max_upload_mb}MB")
    if not content:
        raise ValidationError("Uploaded file is empty")

    os.makedirs(settings.upload_dir, exist_ok=True)
    path = os.path.join(settings.upload_dir, stored_name(file.filename))
    with open(path, "wb") as out:
        out.write(content)

    logger.info("Stored resume %s (%d bytes)", path, len(content))
    return {
        "filename": file.filename,
        "stored_path": path,
        "size": len(content),
        "content_type": file.content_type
    }


def discard_resume(resume: dict) -> None:
    """Remove a stored resume whose application was refused."""
    try:
        os.remove(resume["stored_path"])
    except OSError as e:
        logger.warning("Could not remove %s: %s", resume["stored_path"], e)
