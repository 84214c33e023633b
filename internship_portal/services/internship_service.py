"""
Internship Service - CRUD over postings.

Only the posting's owner or an admin may mutate it. The deadline is only a
display hint (deadline_passed); status changes are always explicit.
"""

import logging
import math
import re
from typing import Optional

from fastapi import Depends

from internship_portal.core.errors import DependencyError, ForbiddenError, NotFoundError, ValidationError
from internship_portal.db.mongodb import MongoStore, get_store
from internship_portal.services.application_service import ApplicationService
from internship_portal.services.email_service import get_mailer
from internship_portal.services.notification_service import NotificationService
from internship_portal.schemas.schemas import (
    InternshipCreate, InternshipUpdate, InternshipStatus, UserRole
)
from internship_portal.services.mongo_service import normalize_internship, normalize_many, to_object_id
from internship_portal.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


def _contains(text: str) -> dict:
    """Case-insensitive substring match."""
    return {"$regex": re.escape(text), "$options": "i"}


class InternshipService:
    def __init__(self, store: MongoStore, applications: Optional[ApplicationService] = None,
                 notifications: Optional[NotificationService] = None, mailer=None):
        self.store = store
        self.collection = store.internships
        self.notifications = notifications or NotificationService(store)
        self.applications = applications or ApplicationService(store, self.notifications)
        self.mailer = mailer

    def create(self, posting: InternshipCreate, acting_user: dict) -> dict:
        now = utcnow()
        doc = posting.model_dump()
        doc.update({
            "posted_by": acting_user["id"],
            "status": InternshipStatus.open.value,
            "created_at": now,
            "updated_at": now
        })
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("User %s posted internship %s", acting_user["id"], result.inserted_id)
        return normalize_internship(doc, now=now)

    def get(self, internship_id: str) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(internship_id, "Internship")})
        if not doc:
            raise NotFoundError("Internship not found")
        return normalize_internship(doc)

    def list(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        company: Optional[str] = None,
        location: Optional[str] = None,
        posted_by: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE
    ) -> dict:
        """
        List postings, newest first.

        Returns:
            {"items", "total", "page", "pages"}
        """
        query = {}
        if search:
            query["title"] = _contains(search)
        if status:
            query["status"] = status
        if company:
            query["company"] = _contains(company)
        if location:
            query["location"] = _contains(location)
        if posted_by:
            query["posted_by"] = posted_by

        page = max(page, 1)
        limit = max(limit, 1)
        total = self.collection.count_documents(query)
        cursor = (
            self.collection.find(query)
            .sort("created_at", -1)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        now = utcnow()
        return {
            "items": normalize_many(cursor, normalize_internship, now=now),
            "total": total,
            "page": page,
            "pages": math.ceil(total / limit)
        }

    def _owned(self, internship_id: str, acting_user: dict, action: str) -> dict:
        posting = self.get(internship_id)
        if posting["posted_by"] != acting_user["id"] and acting_user["role"] != UserRole.admin.value:
            raise ForbiddenError(f"Not authorized to {action} this internship")
        return posting

    def update(self, internship_id: str, patch: InternshipUpdate, acting_user: dict) -> dict:
        posting = self._owned(internship_id, acting_user, "update")
        fields = patch.model_dump(exclude_unset=True)
        # Required fields can be changed but never cleared
        for key in ("title", "company", "description", "status"):
            if key in fields and fields[key] is None:
                del fields[key]
        if "status" in fields:
            fields["status"] = InternshipStatus(fields["status"]).value
        fields["updated_at"] = utcnow()
        self.collection.update_one({"_id": to_object_id(posting["id"])}, {"$set": fields})
        return self.get(posting["id"])

    def delete(self, internship_id: str, acting_user: dict) -> None:
        posting = self._owned(internship_id, acting_user, "delete")
        self.collection.delete_one({"_id": to_object_id(posting["id"])})
        logger.info("User %s deleted internship %s", acting_user["id"], posting["id"])

    # ============================================================
    # Apply (resume already stored by the route)
    # ============================================================

    def apply(self, internship_id: str, applicant: dict, resume: Optional[dict],
              cover_letter: Optional[str] = None) -> dict:
        """
        Record an application and tell the posting's owner.

        The in-app notice is always written; the email is best-effort and a
        delivery failure never undoes the application.
        """
        posting = self.get(internship_id)
        if not resume:
            raise ValidationError('Resume file is required (field name "resume")')

        application = self.applications.submit(
            user_id=applicant["id"],
            internship_id=posting["id"],
            cover_letter=cover_letter,
            resume=resume
        )

        self.notifications.notify(
            message=f"New application from {applicant['name']} for {posting['title']}",
            user_id=posting["posted_by"],
            link=f"/applications/{application['id']}"
        )
        self._email_owner(posting, applicant, resume)
        return application

    def _email_owner(self, posting: dict, applicant: dict, resume: dict) -> None:
        if self.mailer is None:
            return
        owner = self.store.users.find_one({"_id": to_object_id(posting["posted_by"], "User")})
        if not owner or not owner.get("email"):
            logger.warning("Internship %s has no reachable owner; skipping email", posting["id"])
            return

        message = (
            "New application received:\n"
            f"- Internship: {posting['title']} at {posting['company']}\n"
            f"- Applicant: {applicant['name']} <{applicant['email']}>\n"
            f"- Resume: {resume['filename']}\n"
        )
        try:
            self.mailer.send(owner["email"], f"New Internship Application - {posting['title']}", message)
        except DependencyError as e:
            logger.warning("Application %s recorded but email failed: %s", posting["id"], e)

    def stats(self) -> dict:
        return {
            "totalInternships": self.collection.count_documents({}),
            "activeInternships": self.collection.count_documents({"status": InternshipStatus.open.value}),
            "closedInternships": self.collection.count_documents({"status": InternshipStatus.closed.value})
        }

    def titles_by_id(self, internship_ids) -> dict:
        ids = [to_object_id(i) for i in set(internship_ids) if i]
        return {str(doc["_id"]): doc.get("title") for doc in self.collection.find({"_id": {"$in": ids}}, {"title": 1})}


def get_internship_service(
    store: MongoStore = Depends(get_store),
    mailer=Depends(get_mailer)
) -> InternshipService:
    return InternshipService(store, mailer=mailer)
