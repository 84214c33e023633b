"""Tests for interview meetings and admin user management."""

from __future__ import annotations

from datetime import timedelta

from conftest import apply, auth, create_admin, post_internship, register
from internship_portal.utils.timeutils import utcnow


class TestMeetings:
    def _application(self, client):
        ravi, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        asha, asha_token = register(client, "Asha", "asha@example.com")
        posting = post_internship(client, ravi_token)
        application = apply(client, asha_token, posting["id"]).json()["data"]
        return ravi, ravi_token, asha_token, application

    def test_schedule_and_list(self, client):
        ravi, ravi_token, asha_token, application = self._application(client)
        when = (utcnow() + timedelta(days=2)).isoformat()
        response = client.post("/api/meetings", json={
            "application_id": application["id"], "scheduled_at": when, "location": "Zoom",
        }, headers=auth(ravi_token))
        assert response.status_code == 201
        meeting = response.json()
        assert meeting["mentor_id"] == ravi["id"]
        assert meeting["title"] == "Interview"

        mine = client.get("/api/meetings", params={"upcoming": True}, headers=auth(asha_token)).json()
        assert [m["id"] for m in mine] == [meeting["id"]]
        assert len(client.get("/api/meetings", headers=auth(ravi_token)).json()) == 1

    def test_past_meetings_are_not_upcoming(self, client):
        _, ravi_token, asha_token, application = self._application(client)
        past = (utcnow() - timedelta(days=2)).isoformat()
        client.post("/api/meetings", json={"application_id": application["id"], "scheduled_at": past},
                    headers=auth(ravi_token))
        assert client.get("/api/meetings", params={"upcoming": True}, headers=auth(asha_token)).json() == []
        assert len(client.get("/api/meetings", headers=auth(asha_token)).json()) == 1

    def test_unknown_application_is_404(self, client):
        _, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        response = client.post("/api/meetings", json={
            "application_id": "64b7f0000000000000000000", "scheduled_at": utcnow().isoformat(),
        }, headers=auth(ravi_token))
        assert response.status_code == 404

    def test_intern_cannot_schedule(self, client):
        _, _, asha_token, application = self._application(client)
        response = client.post("/api/meetings", json={
            "application_id": application["id"], "scheduled_at": utcnow().isoformat(),
        }, headers=auth(asha_token))
        assert response.status_code == 403

    def test_unrelated_mentor_cannot_schedule(self, client):
        _, _, _, application = self._application(client)
        _, priya_token = register(client, "Priya", "priya@example.com", role="mentor")
        response = client.post("/api/meetings", json={
            "application_id": application["id"], "scheduled_at": utcnow().isoformat(),
        }, headers=auth(priya_token))
        assert response.status_code == 403
        assert client.get("/api/meetings", headers=auth(priya_token)).json() == []

    def test_admin_can_schedule_any_application(self, client, store, settings):
        _, _, _, application = self._application(client)
        _, admin_token = create_admin(store, settings)
        response = client.post("/api/meetings", json={
            "application_id": application["id"], "scheduled_at": utcnow().isoformat(),
        }, headers=auth(admin_token))
        assert response.status_code == 201


class TestUserAdmin:
    def test_list_and_filter(self, client, store, settings):
        _, admin_token = create_admin(store, settings)
        register(client, "Asha", "asha@example.com")
        register(client, "Ravi", "ravi@example.com", role="mentor")

        everyone = client.get("/api/users", headers=auth(admin_token)).json()
        assert len(everyone) == 3
        mentors = client.get("/api/users", params={"role": "mentor"}, headers=auth(admin_token)).json()
        assert [u["name"] for u in mentors] == ["Ravi"]
        found = client.get("/api/users", params={"search": "ASHA@"}, headers=auth(admin_token)).json()
        assert [u["email"] for u in found] == ["asha@example.com"]

    def test_non_admin_forbidden(self, client):
        _, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        assert client.get("/api/users", headers=auth(ravi_token)).status_code == 403

    def test_reinstate_suspended_user(self, client, store, settings):
        _, admin_token = create_admin(store, settings)
        asha, asha_token = register(client, "Asha", "asha@example.com")
        client.patch(f"/api/users/{asha['id']}/role", json={"role": "suspended"}, headers=auth(admin_token))
        client.patch(f"/api/users/{asha['id']}/role", json={"role": "intern"}, headers=auth(admin_token))
        assert client.get("/api/auth/me", headers=auth(asha_token)).status_code == 200

    def test_assign_mentor_to_intern(self, client, store, settings):
        _, admin_token = create_admin(store, settings)
        asha, _ = register(client, "Asha", "asha@example.com")
        ravi, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")

        response = client.patch(f"/api/users/{asha['id']}/mentor", json={"mentor_id": ravi["id"]},
                                headers=auth(admin_token))
        assert response.status_code == 200
        assert response.json()["mentor_id"] == ravi["id"]

        dashboard = client.get("/api/dashboard", headers=auth(ravi_token)).json()["data"]
        assert dashboard["stats"]["assigned_interns"] == 1

    def test_mentor_must_be_a_mentor(self, client, store, settings):
        _, admin_token = create_admin(store, settings)
        asha, _ = register(client, "Asha", "asha@example.com")
        kiran, _ = register(client, "Kiran", "kiran@example.com")
        response = client.patch(f"/api/users/{asha['id']}/mentor", json={"mentor_id": kiran["id"]},
                                headers=auth(admin_token))
        assert response.status_code == 400
