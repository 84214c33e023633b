"""Tests for the role-scoped dashboards and their partial-failure behaviour."""

from __future__ import annotations

import logging
from datetime import timedelta

from conftest import apply, auth, create_admin, post_internship, register
from internship_portal.services.dashboard_service import DashboardService, gather, rate
from internship_portal.utils.timeutils import utcnow


class TestHelpers:
    def test_gather_runs_every_fetch(self):
        result = gather({"a": (lambda: 1, 0), "b": (lambda: "two", "")})
        assert result == {"a": 1, "b": "two"}

    def test_gather_degrades_failed_fetch_to_default(self, caplog):
        def broken():
            raise RuntimeError("collection unreachable")

        with caplog.at_level(logging.WARNING):
            result = gather({"ok": (lambda: [1], []), "broken": (broken, [])})

        assert result == {"ok": [1], "broken": []}
        assert "broken" in caplog.text

    def test_rate(self):
        assert rate(1, 3) == 33.3
        assert rate(0, 0) == 0.0


class TestDashboards:
    def _scenario(self, client, store, settings):
        ravi, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        asha, asha_token = register(client, "Asha", "asha@example.com")
        _, admin_token = create_admin(store, settings)
        posting = post_internship(client, ravi_token)
        application = apply(client, asha_token, posting["id"]).json()["data"]
        return ravi_token, asha_token, admin_token, application

    def test_admin_dashboard(self, client, store, settings):
        ravi_token, _, admin_token, application = self._scenario(client, store, settings)
        client.patch(f"/api/applications/{application['id']}/status", json={"status": "Under Review"},
                     headers=auth(ravi_token))

        response = client.get("/api/dashboard", headers=auth(admin_token))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["role"] == "admin"
        stats = data["stats"]
        assert stats["total_users"] == 3
        assert stats["total_interns"] == 1
        assert stats["total_mentors"] == 1
        assert stats["total_internships"] == 1
        assert stats["active_internships"] == 1
        assert stats["total_applications"] == 1
        assert stats["applications_by_status"]["Under Review"] == 1
        assert stats["applications_this_week"] == 1
        assert stats["hire_rate"] == 0.0
        assert data["recent_applications"][0]["internship_title"] == "Backend Intern"

    def test_mentor_dashboard(self, client, store, settings):
        ravi_token, _, _, _ = self._scenario(client, store, settings)
        data = client.get("/api/dashboard", headers=auth(ravi_token)).json()["data"]
        assert data["role"] == "mentor"
        assert data["stats"]["my_internships"] == 1
        assert data["stats"]["total_applications"] == 1
        assert data["stats"]["pending_review"] == 1
        assert data["stats"]["unread_notifications"] == 1

    def test_intern_dashboard_with_upcoming_meeting(self, client, store, settings):
        ravi_token, asha_token, _, application = self._scenario(client, store, settings)
        tomorrow = (utcnow() + timedelta(days=1)).isoformat()
        scheduled = client.post("/api/meetings", json={"application_id": application["id"], "scheduled_at": tomorrow},
                                headers=auth(ravi_token))
        assert scheduled.status_code == 201

        data = client.get("/api/dashboard", headers=auth(asha_token)).json()["data"]
        assert data["role"] == "intern"
        assert data["stats"]["total_applications"] == 1
        assert data["stats"]["active_applications"] == 1
        assert data["stats"]["applications_by_status"]["Submitted"] == 1
        assert data["stats"]["upcoming_meetings"] == 1
        assert data["stats"]["open_internships"] == 1
        # the meeting notice
        assert data["stats"]["unread_notifications"] == 1

    def test_one_failed_read_does_not_fail_the_view(self, store, monkeypatch):
        service = DashboardService(store)

        def unavailable(*args, **kwargs):
            raise RuntimeError("meetings down")

        monkeypatch.setattr(service.meetings, "list_for", unavailable)
        intern = {"id": "64b7f0000000000000000001", "role": "intern"}
        data = service.for_user(intern)
        assert data["upcoming_meetings"] == []
        assert data["stats"]["upcoming_meetings"] == 0
        assert data["stats"]["total_applications"] == 0

    def test_unreachable_internships_degrade_titles(self, store, monkeypatch, caplog):
        service = DashboardService(store)
        intern = {"id": "64b7f0000000000000000001", "role": "intern"}
        mentor = {"id": "64b7f0000000000000000009", "role": "mentor"}
        service.applications.submit(intern["id"], "64b7f0000000000000000002")

        def unreachable(*args, **kwargs):
            raise RuntimeError("internships unreachable")

        monkeypatch.setattr(service.internships.collection, "find", unreachable)
        with caplog.at_level(logging.WARNING):
            data = service.for_user(intern)
            mentor_view = service.for_user(mentor)

        assert data["stats"]["total_applications"] == 1
        assert data["stats"]["open_internships"] == 0
        assert [a["internship_title"] for a in data["recent_applications"]] == ["Unknown Internship"]
        assert mentor_view["role"] == "mentor"
        assert all(a["internship_title"] == "Unknown Internship" for a in mentor_view["recent_applications"])
        assert "internship_titles" in caplog.text
