"""
Notification Service - per-user and role-broadcast notices.

A broadcast (target_role = "All" or a role) is stored once and matched at
read time. Its read state is per user, kept in the read_by list.
"""

import logging
from typing import Optional, List

from fastapi import Depends

from internship_portal.core.errors import ForbiddenError, NotFoundError, ValidationError
from internship_portal.db.mongodb import MongoStore, get_store
from internship_portal.schemas.schemas import BROADCAST_ALL
from internship_portal.services.mongo_service import normalize_notification, to_object_id
from internship_portal.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

COUNT_STATUSES = ("unread", "read", "all")


class NotificationService:
    def __init__(self, store: MongoStore):
        self.collection = store.notifications

    # ============================================================
    # Visibility queries
    # ============================================================

    @staticmethod
    def _broadcast_targets(user: dict) -> List[str]:
        return [BROADCAST_ALL, user["role"]]

    def _visible_query(self, user: dict) -> dict:
        return {"$or": [
            {"user_id": user["id"]},
            {"target_role": {"$in": self._broadcast_targets(user)}}
        ]}

    def _unread_query(self, user: dict) -> dict:
        return {"$or": [
            {"user_id": user["id"], "is_read": False},
            {"target_role": {"$in": self._broadcast_targets(user)}, "read_by": {"$ne": user["id"]}}
        ]}

    def _read_query(self, user: dict) -> dict:
        return {"$or": [
            {"user_id": user["id"], "is_read": True},
            {"target_role": {"$in": self._broadcast_targets(user)}, "read_by": user["id"]}
        ]}

    def _is_visible(self, doc: dict, user: dict) -> bool:
        if doc.get("user_id"):
            return doc["user_id"] == user["id"]
        return doc.get("target_role") in self._broadcast_targets(user)

    # ============================================================
    # Operations
    # ============================================================

    def notify(self, message: str, user_id: Optional[str] = None,
               target_role: Optional[str] = None, link: Optional[str] = None) -> dict:
        """Append one notice for a user, or one broadcast for a role."""
        if bool(user_id) == bool(target_role):
            raise ValidationError("Provide exactly one of user_id or target_role")

        doc = {
            "user_id": user_id,
            "target_role": target_role,
            "message": message,
            "link": link,
            "created_at": utcnow()
        }
        if target_role:
            doc["read_by"] = []
        else:
            doc["is_read"] = False

        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return normalize_notification(doc, viewer_id=user_id)

    def list_for(self, user: dict, unread_only: bool = False, limit: int = 50) -> List[dict]:
        query = self._unread_query(user) if unread_only else self._visible_query(user)
        cursor = self.collection.find(query).sort("created_at", -1).limit(limit)
        return [normalize_notification(doc, viewer_id=user["id"]) for doc in cursor]

    def count_unread(self, user: dict) -> int:
        return self.collection.count_documents(self._unread_query(user))

    def count(self, user: dict, status: str = "unread") -> dict:
        """Counts keyed by the requested status: unread, read or all (as `total`)."""
        status = (status or "unread").lower()
        if status not in COUNT_STATUSES:
            raise ValidationError("status must be one of unread, read, all")
        if status == "all":
            return {"total": self.collection.count_documents(self._visible_query(user))}
        if status == "read":
            return {"read": self.collection.count_documents(self._read_query(user))}
        return {"unread": self.count_unread(user)}

    def mark_read(self, notification_id: str, user: dict) -> dict:
        """Idempotent: marking an already-read notice again is not an error."""
        oid = to_object_id(notification_id, "Notification")
        doc = self.collection.find_one({"_id": oid})
        if not doc:
            raise NotFoundError("Notification not found")
        if not self._is_visible(doc, user):
            raise ForbiddenError("Not authorized to update this notification")

        if doc.get("target_role"):
            self.collection.update_one({"_id": oid}, {"$addToSet": {"read_by": user["id"]}})
        else:
            self.collection.update_one({"_id": oid}, {"$set": {"is_read": True}})
        return normalize_notification(self.collection.find_one({"_id": oid}), viewer_id=user["id"])

    def mark_all_read(self, user: dict) -> int:
        direct = self.collection.update_many(
            {"user_id": user["id"], "is_read": False},
            {"$set": {"is_read": True}}
        )
        broadcast = self.collection.update_many(
            {"target_role": {"$in": self._broadcast_targets(user)}, "read_by": {"$ne": user["id"]}},
            {"$addToSet": {"read_by": user["id"]}}
        )
        return direct.modified_count + broadcast.modified_count


def get_notification_service(store: MongoStore = Depends(get_store)) -> NotificationService:
    return NotificationService(store)
