"""
Application Service - the application status workflow.

Status graph:
    Submitted           -> Under Review, Rejected, Withdrawn
    Under Review        -> Interview Scheduled, Shortlisted, Rejected, Withdrawn
    Interview Scheduled -> Shortlisted, Rejected
    Shortlisted         -> Hired, Rejected
    Hired, Rejected, Withdrawn are terminal.

Reviewers (admins, the assigned mentor, or any mentor while none is assigned)
move applications along the graph. The applicant may only withdraw, from any
non-terminal state. Withdrawn applications stay in the store with active=False,
which is what frees the (user, internship) pair for a new submission.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Set

from fastapi import Depends
from pymongo.errors import DuplicateKeyError

from internship_portal.core.errors import (
    DuplicateApplicationError, ForbiddenError, InvalidTransitionError,
    NotFoundError, ValidationError
)
from internship_portal.db.mongodb import MongoStore, get_store
from internship_portal.schemas.schemas import ApplicationStatus, UserRole
from internship_portal.services.mongo_service import normalize_application, normalize_many, to_object_id
from internship_portal.services.notification_service import NotificationService
from internship_portal.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

S = ApplicationStatus

TRANSITIONS: Dict[ApplicationStatus, Set[ApplicationStatus]] = {
    S.submitted: {S.under_review, S.rejected, S.withdrawn},
    S.under_review: {S.interview_scheduled, S.shortlisted, S.rejected, S.withdrawn},
    S.interview_scheduled: {S.shortlisted, S.rejected},
    S.shortlisted: {S.hired, S.rejected},
    S.hired: set(),
    S.rejected: set(),
    S.withdrawn: set(),
}

TERMINAL = {S.hired, S.rejected, S.withdrawn}


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    return target in TRANSITIONS.get(current, set())


class ApplicationService:
    def __init__(self, store: MongoStore, notifications: Optional[NotificationService] = None):
        self.store = store
        self.collection = store.applications
        self.notifications = notifications or NotificationService(store)

    # ============================================================
    # Submission
    # ============================================================

    def submit(self, user_id: str, internship_id: str, cover_letter: Optional[str] = None,
               resume: Optional[dict] = None) -> dict:
        """
        Create a Submitted application.

        The read-then-insert check gives a clean error in the common case;
        the partial unique index on (user_id, internship_id, active) settles
        concurrent submits.
        """
        if self.collection.find_one({"user_id": user_id, "internship_id": internship_id, "active": True}):
            raise DuplicateApplicationError()

        now = utcnow()
        doc = {
            "user_id": user_id,
            "internship_id": internship_id,
            "status": S.submitted.value,
            "active": True,
            "cover_letter": cover_letter,
            "resume": resume,
            "assigned_mentor_id": None,
            "review_notes": None,
            "submitted_at": now,
            "reviewed_at": None,
            "withdrawn_at": None,
            "created_at": now,
            "updated_at": now
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise DuplicateApplicationError()

        doc["_id"] = result.inserted_id
        logger.info("User %s applied to internship %s", user_id, internship_id)
        return normalize_application(doc)

    # ============================================================
    # Reads
    # ============================================================

    def _load(self, application_id: str) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(application_id, "Application")})
        if not doc:
            raise NotFoundError("Application not found")
        return doc

    def get(self, application_id: str, user: dict) -> dict:
        application = normalize_application(self._load(application_id))
        if user["role"] == UserRole.intern.value and application["user_id"] != user["id"]:
            raise ForbiddenError("Not authorized to view this application")
        return application

    def _mentor_scope(self, mentor_id: str) -> dict:
        own_postings = [
            str(doc["_id"]) for doc in self.store.internships.find({"posted_by": mentor_id}, {"_id": 1})
        ]
        return {"$or": [
            {"assigned_mentor_id": mentor_id},
            {"internship_id": {"$in": own_postings}}
        ]}

    def list_for(self, user: dict, status: Optional[str] = None,
                 internship_id: Optional[str] = None, limit: int = 0) -> List[dict]:
        """Interns see their own; mentors their assigned or posted; admins all."""
        role = user["role"]
        if role == UserRole.intern.value:
            query = {"user_id": user["id"]}
        elif role == UserRole.mentor.value:
            query = self._mentor_scope(user["id"])
        else:
            query = {}
        if status:
            query["status"] = status
        if internship_id:
            query["internship_id"] = internship_id

        cursor = self.collection.find(query).sort("submitted_at", -1)
        if limit:
            cursor = cursor.limit(limit)
        return normalize_many(cursor, normalize_application)

    def stats(self, query: Optional[dict] = None) -> dict:
        """Counts per status plus the total. Pure aggregation."""
        counts = {status.value: 0 for status in ApplicationStatus}
        pipeline = []
        if query:
            pipeline.append({"$match": query})
        pipeline.append({"$group": {"_id": "$status", "count": {"$sum": 1}}})
        for row in self.collection.aggregate(pipeline):
            status = normalize_application({"status": row["_id"]})["status"]
            counts[status] = counts.get(status, 0) + row["count"]
        counts["total"] = sum(counts.values())
        return counts

    def count_since(self, since: datetime, query: Optional[dict] = None) -> int:
        query = dict(query or {})
        query["submitted_at"] = {"$gte": since}
        return self.collection.count_documents(query)

    # ============================================================
    # Status changes
    # ============================================================

    def _check_actor(self, application: dict, target: ApplicationStatus, acting_user: dict) -> bool:
        """Returns True when the actor is the applicant withdrawing."""
        if application["user_id"] == acting_user["id"] and target == S.withdrawn:
            return True

        role = acting_user["role"]
        if role == UserRole.admin.value:
            return False
        if role == UserRole.mentor.value:
            assigned = application.get("assigned_mentor_id")
            if not assigned or assigned == acting_user["id"]:
                return False
        raise ForbiddenError("Not authorized to change this application")

    def transition(self, application_id: str, new_state: ApplicationStatus, acting_user: dict,
                   notes: Optional[str] = None) -> dict:
        """
        Move an application to new_state.

        Raises:
            NotFoundError: unknown application
            ForbiddenError: actor may not change it
            InvalidTransitionError: new_state is not reachable; nothing is written
        """
        new_state = ApplicationStatus(new_state)
        raw = self._load(application_id)
        application = normalize_application(raw)
        current = ApplicationStatus(application["status"])

        self_withdrawal = self._check_actor(application, new_state, acting_user)
        if self_withdrawal:
            allowed = current not in TERMINAL
        else:
            allowed = can_transition(current, new_state)
        if not allowed:
            raise InvalidTransitionError(f"Cannot move application from {current.value} to {new_state.value}")

        now = utcnow()
        fields = {"status": new_state.value, "updated_at": now}
        if new_state == S.withdrawn:
            fields.update({"active": False, "withdrawn_at": now})
        if not self_withdrawal:
            fields["reviewed_at"] = now
            if notes is not None:
                fields["review_notes"] = notes

        # Guard on the status we validated against
        result = self.collection.update_one(
            {"_id": raw["_id"], "status": raw.get("status")},
            {"$set": fields}
        )
        if result.matched_count == 0:
            raise InvalidTransitionError("Application was changed by another request; reload and retry")

        logger.info("Application %s: %s -> %s by %s", application_id, current.value,
                    new_state.value, acting_user["id"])

        if not self_withdrawal:
            self.notifications.notify(
                message=f"Your application status changed to {new_state.value}",
                user_id=application["user_id"],
                link=f"/intern/applications/{application['id']}"
            )
        return normalize_application(self.collection.find_one({"_id": raw["_id"]}))

    def withdraw(self, application_id: str, user: dict) -> dict:
        application = normalize_application(self._load(application_id))
        if application["user_id"] != user["id"]:
            raise ForbiddenError("You can only withdraw your own applications")
        return self.transition(application_id, S.withdrawn, user)

    def assign_mentor(self, application_id: str, mentor_id: str) -> dict:
        raw = self._load(application_id)
        mentor = self.store.users.find_one({"_id": to_object_id(mentor_id, "Mentor")})
        if not mentor:
            raise NotFoundError("Mentor not found")
        if mentor.get("role") != UserRole.mentor.value:
            raise ValidationError("Assigned user is not a mentor")

        now = utcnow()
        self.collection.update_one(
            {"_id": raw["_id"]},
            {"$set": {"assigned_mentor_id": mentor_id, "mentor_assigned_at": now, "updated_at": now}}
        )
        self.notifications.notify(
            message="A new application has been assigned to you",
            user_id=mentor_id,
            link=f"/mentor/applications/{application_id}"
        )
        return normalize_application(self.collection.find_one({"_id": raw["_id"]}))


def get_application_service(store: MongoStore = Depends(get_store)) -> ApplicationService:
    return ApplicationService(store)
