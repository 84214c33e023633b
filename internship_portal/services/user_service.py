"""
User Service - registration, login, profile and admin user management.
"""

import logging
import re
from typing import Optional, List, Tuple

from fastapi import Depends
from pymongo.errors import DuplicateKeyError

from internship_portal.core.auth import hash_password, verify_password, issue_token_for
from internship_portal.core.config import Settings, get_app_settings
from internship_portal.core.errors import (
    AccountSuspendedError, DuplicateEmailError, ForbiddenError,
    InvalidCredentialsError, NotFoundError, ValidationError
)
from internship_portal.db.mongodb import MongoStore, get_store
from internship_portal.schemas.schemas import RegisterRequest, ProfileUpdate, UserRole
from internship_portal.services.mongo_service import normalize_user, normalize_many, to_object_id
from internship_portal.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


def canonical_email(email: str) -> str:
    return str(email).strip().lower()


class UserService:
    """
    Handles the users collection.
    Passwords are hashed before they reach the store and never leave it.
    """

    def __init__(self, store: MongoStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings
        self.collection = store.users

    # --------------------------------------------------------
    # Identity & session
    # --------------------------------------------------------

    def register(self, request: RegisterRequest) -> Tuple[dict, str]:
        """
        Create a user and issue a session token.

        Role-specific fields (university, specialization) are checked by
        RegisterRequest; only the one matching the role is stored.

        Returns:
            (user, token)
        """
        email = canonical_email(request.email)
        if self.collection.find_one({"email": email}):
            raise DuplicateEmailError()

        now = utcnow()
        role = request.role.value
        doc = {
            "name": request.name.strip(),
            "email": email,
            "password_hash": hash_password(request.password),
            "role": role,
            "phone": request.phone or None,
            "university": request.university if role == UserRole.intern.value else None,
            "specialization": request.specialization if role == UserRole.mentor.value else None,
            "mentor_id": None,
            "created_at": now,
            "updated_at": now
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            # Lost a race with a concurrent registration
            raise DuplicateEmailError()

        doc["_id"] = result.inserted_id
        user = normalize_user(doc)
        logger.info("Registered %s user %s", role, user["id"])
        return user, issue_token_for(user, self.settings)

    def login(self, email: str, password: str) -> Tuple[dict, str]:
        """
        Check credentials, then refuse suspended accounts.

        Returns:
            (user, token)
        """
        stored = self.collection.find_one({"email": canonical_email(email)})
        if not stored or not verify_password(password, stored.get("password_hash")):
            logger.info("Failed login for %s", canonical_email(email))
            raise InvalidCredentialsError()

        user = normalize_user(stored)
        if user["role"] == UserRole.suspended.value:
            raise AccountSuspendedError()

        return user, issue_token_for(user, self.settings)

    # --------------------------------------------------------
    # Reads
    # --------------------------------------------------------

    def get(self, user_id: str) -> dict:
        user = normalize_user(self.collection.find_one({"_id": to_object_id(user_id, "User")}))
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_users(self, role: Optional[str] = None, search: Optional[str] = None) -> List[dict]:
        query = {}
        if role:
            query["role"] = role
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"email": pattern}]
        cursor = self.collection.find(query).sort("created_at", -1)
        return normalize_many(cursor, normalize_user)

    def count_by_role(self) -> dict:
        counts = {role.value: 0 for role in UserRole}
        for user in self.collection.find({}, {"role": 1}):
            role = normalize_user(user)["role"]
            counts[role] = counts.get(role, 0) + 1
        counts["total"] = sum(counts.values())
        return counts

    def interns_of(self, mentor_id: str) -> List[dict]:
        cursor = self.collection.find({"mentor_id": mentor_id, "role": UserRole.intern.value})
        return normalize_many(cursor, normalize_user)

    # --------------------------------------------------------
    # Writes
    # --------------------------------------------------------

    def update_profile(self, user: dict, update: ProfileUpdate) -> dict:
        fields = update.model_dump(exclude_unset=True)
        # Role-specific fields only make sense on the matching role
        if user["role"] != UserRole.intern.value:
            fields.pop("university", None)
        if user["role"] != UserRole.mentor.value:
            fields.pop("specialization", None)
        if not fields:
            raise ValidationError("No fields to update")

        fields["updated_at"] = utcnow()
        self.collection.update_one({"_id": to_object_id(user["id"], "User")}, {"$set": fields})
        return self.get(user["id"])

    def set_role(self, user_id: str, role: UserRole, acting_admin: dict) -> dict:
        """Suspend, reinstate or promote a user."""
        if user_id == acting_admin["id"]:
            raise ForbiddenError("Admins cannot change their own role")
        target = self.get(user_id)
        self.collection.update_one(
            {"_id": to_object_id(target["id"], "User")},
            {"$set": {"role": role.value, "updated_at": utcnow()}}
        )
        logger.info("Admin %s set role of %s to %s", acting_admin["id"], user_id, role.value)
        return self.get(user_id)

    def assign_mentor_to_intern(self, intern_id: str, mentor_id: str) -> dict:
        intern = self.get(intern_id)
        if intern["role"] != UserRole.intern.value:
            raise ValidationError("Only interns can be assigned a mentor")
        mentor = self.get(mentor_id)
        if mentor["role"] != UserRole.mentor.value:
            raise ValidationError("Assigned user is not a mentor")

        self.collection.update_one(
            {"_id": to_object_id(intern_id, "User")},
            {"$set": {"mentor_id": mentor["id"], "updated_at": utcnow()}}
        )
        return self.get(intern_id)


def get_user_service(
    store: MongoStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings)
) -> UserService:
    return UserService(store, settings)
