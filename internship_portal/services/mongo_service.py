"""
MongoDB Service helpers - conversion between stored documents and API dicts.

Each entity goes through exactly one normalize_* function when it leaves the
store, so the rest of the code can rely on every optional field being present
(possibly as None) and on ids being plain strings.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from bson import ObjectId
from bson.errors import InvalidId

from internship_portal.core.errors import NotFoundError
from internship_portal.schemas.schemas import normalize_role, normalize_application_status
from internship_portal.utils.timeutils import utcnow


# ============================================================
# HELPER: ids and serialization
# ============================================================

def to_object_id(value: str, entity: str = "Resource") -> ObjectId:
    """Parse a hex id; malformed ids are reported as missing records."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFoundError(f"{entity} not found")


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    """Convert MongoDB document to JSON-serializable dict with an `id` key."""
    if doc is None:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    for key, value in doc.items():
        if isinstance(value, ObjectId):
            doc[key] = str(value)
    return doc


def _with_defaults(doc: dict, defaults: Dict[str, Any]) -> dict:
    for key, value in defaults.items():
        if doc.get(key) is None:
            doc[key] = value
    return doc


# ============================================================
# ENTITY NORMALIZERS
# ============================================================

def normalize_user(doc: Optional[dict], keep_hash: bool = False) -> Optional[dict]:
    doc = serialize_doc(doc)
    if doc is None:
        return None
    doc["role"] = normalize_role(doc.get("role"))
    if not keep_hash:
        doc.pop("password_hash", None)
    return _with_defaults(doc, {
        "phone": None, "university": None, "specialization": None, "mentor_id": None,
        "created_at": None, "updated_at": None
    })


def normalize_internship(doc: Optional[dict], now: Optional[datetime] = None) -> Optional[dict]:
    doc = serialize_doc(doc)
    if doc is None:
        return None
    now = now or utcnow()
    _with_defaults(doc, {
        "location": None, "description": None, "duration": None, "stipend": None,
        "application_deadline": None, "status": "Open"
    })
    deadline = doc["application_deadline"]
    # Display hint only; the stored status is never touched
    doc["deadline_passed"] = bool(deadline and deadline < now)
    return doc


def normalize_application(doc: Optional[dict]) -> Optional[dict]:
    doc = serialize_doc(doc)
    if doc is None:
        return None
    doc["status"] = normalize_application_status(doc.get("status"))
    return _with_defaults(doc, {
        "cover_letter": None, "resume": None, "assigned_mentor_id": None,
        "review_notes": None, "submitted_at": doc.get("created_at"),
        "reviewed_at": None, "withdrawn_at": None
    })


def normalize_notification(doc: Optional[dict], viewer_id: Optional[str] = None) -> Optional[dict]:
    """Broadcast notices carry per-user read state in read_by."""
    doc = serialize_doc(doc)
    if doc is None:
        return None
    read_by = doc.pop("read_by", None) or []
    if doc.get("target_role"):
        doc["is_read"] = viewer_id in read_by
    else:
        doc["is_read"] = bool(doc.get("is_read"))
    return _with_defaults(doc, {"user_id": None, "target_role": None, "link": None})


def normalize_meeting(doc: Optional[dict]) -> Optional[dict]:
    doc = serialize_doc(doc)
    if doc is None:
        return None
    return _with_defaults(doc, {
        "participant_ids": [], "internship_id": None, "mentor_id": None,
        "location": None, "notes": None, "duration_minutes": 30
    })


def normalize_many(docs, normalizer, **kwargs) -> List[dict]:
    return [normalizer(doc, **kwargs) for doc in docs]
