"""
MongoDB Connection Utility

MongoDB stores every portal record:
- users: accounts for interns, mentors and admins
- internships: postings owned by a mentor or admin
- applications: an intern's request for a posting, with its status
- notifications: direct and role-broadcast notices
- meetings: scheduled interviews

The store is built once by the app factory, attached to app.state and closed
on shutdown. Handlers reach it through the get_store dependency.
"""
import logging
from typing import Optional

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

logger = logging.getLogger(__name__)


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "internships": "internships",
    "applications": "applications",
    "notifications": "notifications",
    "meetings": "meetings"
}


class MongoStore:
    """
    Owns the MongoClient and hands out collections.

    Pass an existing client (e.g. mongomock) to skip building one from the URI.
    """

    def __init__(self, uri: Optional[str] = None, db_name: str = "internship_portal",
                 client: Optional[MongoClient] = None):
        if client is None:
            if not uri:
                raise ValueError("MONGODB_URI is not defined")
            # Fail fast if the server cannot be reached
            client = MongoClient(uri, serverSelectionTimeoutMS=5000)
        self.client = client
        self.db_name = db_name

    @property
    def db(self) -> Database:
        return self.client[self.db_name]

    def collection(self, name: str) -> Collection:
        return self.db[COLLECTIONS[name]]

    @property
    def users(self) -> Collection:
        return self.collection("users")

    @property
    def internships(self) -> Collection:
        return self.collection("internships")

    @property
    def applications(self) -> Collection:
        return self.collection("applications")

    @property
    def notifications(self) -> Collection:
        return self.collection("notifications")

    @property
    def meetings(self) -> Collection:
        return self.collection("meetings")

    def ping(self) -> bool:
        """
        Test if MongoDB is reachable.
        Returns True if connection successful, False otherwise.
        """
        try:
            self.client.admin.command("ping")
            return True
        except Exception as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False

    def init_indexes(self) -> None:
        """
        Create indexes for lookups and uniqueness.
        Call this once during app startup.
        """
        # Emails are stored lowercased, so this is a case-insensitive guarantee
        self.users.create_index("email", unique=True)
        self.users.create_index("role")

        self.internships.create_index([("created_at", DESCENDING)])
        self.internships.create_index("posted_by")

        # At most one active (non-withdrawn) application per (user, internship)
        self.applications.create_index(
            [("user_id", ASCENDING), ("internship_id", ASCENDING)],
            unique=True,
            partialFilterExpression={"active": True},
            name="one_active_application_per_user"
        )
        self.applications.create_index("status")

        self.notifications.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        self.notifications.create_index("target_role")

        self.meetings.create_index("scheduled_at")

        logger.info("MongoDB indexes created successfully")

    def close(self) -> None:
        self.client.close()


def get_store(request: Request) -> MongoStore:
    """FastAPI dependency - the store attached by create_app."""
    return request.app.state.store
