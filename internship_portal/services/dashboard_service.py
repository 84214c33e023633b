"""
Dashboard Service - role-scoped read-side aggregation.

Each dashboard fires its independent reads in parallel and degrades any
failed read to a default value, so one unreachable collection never takes
the whole view down. The SPA polls GET /api/dashboard on a timer; calls are
independent and overlapping polls are not ordered.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import Depends

from internship_portal.db.mongodb import MongoStore, get_store
from internship_portal.schemas.schemas import ApplicationStatus, InternshipStatus, UserRole
from internship_portal.services.application_service import ApplicationService, TERMINAL
from internship_portal.services.internship_service import InternshipService
from internship_portal.services.meeting_service import MeetingService
from internship_portal.services.notification_service import NotificationService
from internship_portal.services.user_service import UserService
from internship_portal.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)
RECENT_LIMIT = 3
RECENT_NOTIFICATIONS = 5


def gather(fetches: Dict[str, Tuple[Callable[[], Any], Any]]) -> Dict[str, Any]:
    """
    Run every fetch concurrently; a failed fetch yields its default.

    Args:
        fetches: name -> (zero-arg callable, default value)
    """
    results = {}
    with ThreadPoolExecutor(max_workers=max(len(fetches), 1)) as pool:
        futures = {name: pool.submit(fn) for name, (fn, _) in fetches.items()}
        for name, future in futures.items():
            try:
                results[name] = future.result()
            except Exception as e:
                logger.warning("Dashboard read '%s' failed: %s", name, e)
                results[name] = fetches[name][1]
    return results


def rate(part: int, total: int) -> float:
    """Percentage rounded to one decimal; 0.0 when there is nothing to divide."""
    if not total:
        return 0.0
    return round(part * 100.0 / total, 1)


def count_within(items, field: str, since: datetime) -> int:
    return sum(1 for item in items if item.get(field) and item[field] >= since)


class DashboardService:
    def __init__(self, store: MongoStore):
        self.notifications = NotificationService(store)
        self.applications = ApplicationService(store, self.notifications)
        self.internships = InternshipService(store, self.applications, self.notifications)
        self.meetings = MeetingService(store, self.notifications)
        self.users = UserService(store)

    def for_user(self, user: dict, now: Optional[datetime] = None) -> dict:
        now = now or utcnow()
        role = user["role"]
        if role == UserRole.admin.value:
            return self.admin(user, now)
        if role == UserRole.mentor.value:
            return self.mentor(user, now)
        return self.intern(user, now)

    def _with_titles(self, applications: list) -> list:
        ids = [a["internship_id"] for a in applications]
        titles = gather({"internship_titles": (lambda: self.internships.titles_by_id(ids), {})})
        titles = titles["internship_titles"]
        for application in applications:
            application["internship_title"] = titles.get(application["internship_id"], "Unknown Internship")
        return applications

    # ============================================================
    # Admin
    # ============================================================

    def admin(self, user: dict, now: datetime) -> dict:
        empty_stats = {status.value: 0 for status in ApplicationStatus}
        empty_stats["total"] = 0
        data = gather({
            "users": (self.users.count_by_role, {}),
            "internship_stats": (self.internships.stats, {}),
            "recent_internships": (lambda: self.internships.list(limit=RECENT_LIMIT)["items"], []),
            "application_stats": (self.applications.stats, empty_stats),
            "applications_this_week": (lambda: self.applications.count_since(now - WEEK), 0),
            "recent_applications": (
                lambda: self._with_titles(self.applications.list_for(user, limit=RECENT_LIMIT)), []
            ),
            "upcoming_meetings": (lambda: self.meetings.list_for(user, upcoming_only=True, now=now), []),
            "notifications": (lambda: self.notifications.list_for(user, limit=RECENT_NOTIFICATIONS), []),
        })

        users = data["users"]
        internship_stats = data["internship_stats"]
        app_stats = data["application_stats"]
        upcoming = data["upcoming_meetings"]
        return {
            "role": UserRole.admin.value,
            "generated_at": now,
            "stats": {
                "total_users": users.get("total", 0),
                "total_interns": users.get(UserRole.intern.value, 0),
                "total_mentors": users.get(UserRole.mentor.value, 0),
                "suspended_users": users.get(UserRole.suspended.value, 0),
                "total_internships": internship_stats.get("totalInternships", 0),
                "active_internships": internship_stats.get("activeInternships", 0),
                "closed_internships": internship_stats.get("closedInternships", 0),
                "total_applications": app_stats.get("total", 0),
                "applications_by_status": {k: v for k, v in app_stats.items() if k != "total"},
                "applications_this_week": data["applications_this_week"],
                "hire_rate": rate(app_stats.get(ApplicationStatus.hired.value, 0), app_stats.get("total", 0)),
                "upcoming_interviews": len(upcoming),
            },
            "recent_internships": data["recent_internships"],
            "recent_applications": data["recent_applications"],
            "upcoming_meetings": upcoming[:RECENT_LIMIT],
            "recent_notifications": data["notifications"],
        }

    # ============================================================
    # Mentor
    # ============================================================

    def mentor(self, user: dict, now: datetime) -> dict:
        empty_page = {"items": [], "total": 0, "page": 1, "pages": 0}
        data = gather({
            "postings": (lambda: self.internships.list(posted_by=user["id"], limit=RECENT_LIMIT), empty_page),
            "applications": (lambda: self.applications.list_for(user), []),
            "interns": (lambda: self.users.interns_of(user["id"]), []),
            "upcoming_meetings": (lambda: self.meetings.list_for(user, upcoming_only=True, now=now), []),
            "unread": (lambda: self.notifications.count_unread(user), 0),
        })

        applications = data["applications"]
        awaiting = {ApplicationStatus.submitted.value, ApplicationStatus.under_review.value}
        hired = sum(1 for a in applications if a["status"] == ApplicationStatus.hired.value)
        upcoming = data["upcoming_meetings"]
        return {
            "role": UserRole.mentor.value,
            "generated_at": now,
            "stats": {
                "my_internships": data["postings"]["total"],
                "assigned_interns": len(data["interns"]),
                "total_applications": len(applications),
                "pending_review": sum(1 for a in applications if a["status"] in awaiting),
                "applications_this_week": count_within(applications, "submitted_at", now - WEEK),
                "hire_rate": rate(hired, len(applications)),
                "upcoming_meetings": len(upcoming),
                "unread_notifications": data["unread"],
            },
            "recent_internships": data["postings"]["items"],
            "recent_applications": self._with_titles(applications[:RECENT_LIMIT]),
            "assigned_interns": data["interns"],
            "upcoming_meetings": upcoming[:RECENT_LIMIT],
        }

    # ============================================================
    # Intern
    # ============================================================

    def intern(self, user: dict, now: datetime) -> dict:
        empty_page = {"items": [], "total": 0, "page": 1, "pages": 0}
        data = gather({
            "applications": (lambda: self.applications.list_for(user), []),
            "open_internships": (
                lambda: self.internships.list(status=InternshipStatus.open.value, limit=RECENT_LIMIT), empty_page
            ),
            "upcoming_meetings": (lambda: self.meetings.list_for(user, upcoming_only=True, now=now), []),
            "unread": (lambda: self.notifications.count_unread(user), 0),
        })

        applications = data["applications"]
        by_status = {status.value: 0 for status in ApplicationStatus}
        for application in applications:
            by_status[application["status"]] = by_status.get(application["status"], 0) + 1
        terminal = {status.value for status in TERMINAL}
        upcoming = data["upcoming_meetings"]
        return {
            "role": UserRole.intern.value,
            "generated_at": now,
            "stats": {
                "total_applications": len(applications),
                "active_applications": sum(1 for a in applications if a["status"] not in terminal),
                "applications_by_status": by_status,
                "applications_this_week": count_within(applications, "submitted_at", now - WEEK),
                "open_internships": data["open_internships"]["total"],
                "upcoming_meetings": len(upcoming),
                "unread_notifications": data["unread"],
            },
            "recent_applications": self._with_titles(applications[:RECENT_LIMIT]),
            "recommended_internships": data["open_internships"]["items"],
            "upcoming_meetings": upcoming[:RECENT_LIMIT],
        }


def get_dashboard_service(store: MongoStore = Depends(get_store)) -> DashboardService:
    return DashboardService(store)
