"""
Meeting Service - interview meetings attached to applications.
"""

import logging
from datetime import datetime
from typing import Optional, List

from fastapi import Depends

from internship_portal.core.errors import ForbiddenError, NotFoundError
from internship_portal.db.mongodb import MongoStore, get_store
from internship_portal.schemas.schemas import MeetingCreate, UserRole
from internship_portal.services.mongo_service import normalize_meeting, normalize_many, to_object_id
from internship_portal.services.notification_service import NotificationService
from internship_portal.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


class MeetingService:
    def __init__(self, store: MongoStore, notifications: Optional[NotificationService] = None):
        self.store = store
        self.collection = store.meetings
        self.notifications = notifications or NotificationService(store)

    def _check_scheduler(self, application: dict, acting_user: dict) -> None:
        """Admins may always schedule; mentors only as reviewer or posting owner."""
        if acting_user["role"] == UserRole.admin.value:
            return
        if application.get("assigned_mentor_id") == acting_user["id"]:
            return
        internship = self.store.internships.find_one({"_id": to_object_id(application.get("internship_id"))})
        if internship and internship.get("posted_by") == acting_user["id"]:
            return
        raise ForbiddenError("Not authorized to schedule meetings for this application")

    def schedule(self, request: MeetingCreate, acting_user: dict) -> dict:
        application = self.store.applications.find_one(
            {"_id": to_object_id(request.application_id, "Application")}
        )
        if not application:
            raise NotFoundError("Application not found")
        self._check_scheduler(application, acting_user)

        mentor_id = application.get("assigned_mentor_id")
        if acting_user["role"] == UserRole.mentor.value:
            mentor_id = acting_user["id"]

        doc = {
            "title": request.title,
            "application_id": request.application_id,
            "internship_id": application.get("internship_id"),
            "mentor_id": mentor_id,
            "participant_ids": [application["user_id"]],
            "scheduled_at": request.scheduled_at,
            "duration_minutes": request.duration_minutes,
            "location": request.location,
            "notes": request.notes,
            "created_by": acting_user["id"],
            "created_at": utcnow()
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id

        self.notifications.notify(
            message=f"{request.title} scheduled for {request.scheduled_at:%Y-%m-%d %H:%M} UTC",
            user_id=application["user_id"],
            link="/intern/meetings"
        )
        logger.info("Meeting %s scheduled for application %s", result.inserted_id, request.application_id)
        return normalize_meeting(doc)

    def _scope(self, user: dict) -> dict:
        role = user["role"]
        if role == UserRole.intern.value:
            return {"participant_ids": user["id"]}
        if role == UserRole.mentor.value:
            return {"mentor_id": user["id"]}
        return {}

    def list_for(self, user: dict, upcoming_only: bool = False, now: Optional[datetime] = None) -> List[dict]:
        query = self._scope(user)
        if upcoming_only:
            query["scheduled_at"] = {"$gt": now or utcnow()}
        cursor = self.collection.find(query).sort("scheduled_at", 1)
        return normalize_many(cursor, normalize_meeting)


def get_meeting_service(store: MongoStore = Depends(get_store)) -> MeetingService:
    return MeetingService(store)
