"""Tests for the internship catalog: CRUD, filters, pagination, ownership, apply."""

from __future__ import annotations

import os
from datetime import timedelta

from pymongo.errors import PyMongoError

from conftest import apply, auth, create_admin, post_internship, register
from internship_portal.schemas.schemas import InternshipCreate
from internship_portal.services.internship_service import InternshipService
from internship_portal.utils.timeutils import utcnow


class TestCreateAndRead:
    def test_mentor_posts_open_internship(self, client):
        ravi, token = register(client, "Ravi", "ravi@example.com", role="mentor")
        posting = post_internship(client, token, stipend="unpaid")
        assert posting["status"] == "Open"
        assert posting["posted_by"] == ravi["id"]
        assert posting["stipend"] == "Unpaid"
        assert posting["deadline_passed"] is False

    def test_intern_cannot_post(self, client):
        _, token = register(client, "Asha", "asha@example.com")
        response = client.post("/api/internships", json={
            "title": "X", "company": "Y", "description": "Long enough description",
        }, headers=auth(token))
        assert response.status_code == 403

    def test_anonymous_cannot_post(self, client):
        response = client.post("/api/internships", json={
            "title": "X", "company": "Y", "description": "Long enough description",
        })
        assert response.status_code == 401

    def test_get_by_id(self, client):
        _, token = register(client, "Ravi", "ravi@example.com", role="mentor")
        posting = post_internship(client, token)
        response = client.get(f"/api/internships/{posting['id']}")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["id"] == posting["id"]
        assert body["data"]["title"] == "Backend Intern"

    def test_unknown_and_malformed_ids_are_404(self, client):
        assert client.get("/api/internships/64b7f0000000000000000000").status_code == 404
        assert client.get("/api/internships/not-an-id").status_code == 404

    def test_past_deadline_is_only_a_display_hint(self, client):
        _, token = register(client, "Ravi", "ravi@example.com", role="mentor")
        yesterday = (utcnow() - timedelta(days=1)).isoformat()
        posting = post_internship(client, token, application_deadline=yesterday)
        assert posting["deadline_passed"] is True
        assert posting["status"] == "Open"


class TestListing:
    def test_pagination(self, store):
        service = InternshipService(store)
        owner = {"id": "64b7f0000000000000000001"}
        for i in range(25):
            service.create(
                InternshipCreate(title=f"Data Intern {i}", company="Acme",
                                 description="Crunch numbers all day."),
                owner,
            )
        page = service.list(page=2, limit=10)
        assert len(page["items"]) == 10
        assert page["total"] == 25
        assert page["pages"] == 3

    def test_pagination_over_http(self, client):
        _, token = register(client, "Ravi", "ravi@example.com", role="mentor")
        for i in range(25):
            post_internship(client, token, title=f"Intern {i}")
        body = client.get("/api/internships", params={"page": 2, "limit": 10}).json()
        assert body["success"] is True
        assert body["count"] == 10
        assert body["total"] == 25
        assert body["pages"] == 3
        assert body["page"] == 2

    def test_search_is_case_insensitive_substring(self, client):
        _, token = register(client, "Ravi", "ravi@example.com", role="mentor")
        post_internship(client, token, title="Backend Intern")
        post_internship(client, token, title="Frontend Intern")
        post_internship(client, token, title="Data Analyst")
        body = client.get("/api/internships", params={"search": "END"}).json()
        assert sorted(p["title"] for p in body["data"]) == ["Backend Intern", "Frontend Intern"]

    def test_search_treats_regex_characters_literally(self, client):
        _, token = register(client, "Ravi", "ravi@example.com", role="mentor")
        post_internship(client, token, title="C++ Intern")
        post_internship(client, token, title="C Intern")
        body = client.get("/api/internships", params={"search": "c++"}).json()
        assert [p["title"] for p in body["data"]] == ["C++ Intern"]

    def test_filters_by_company_and_owner(self, client):
        ravi, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        _, priya_token = register(client, "Priya", "priya@example.com", role="mentor")
        post_internship(client, ravi_token, company="Acme Corp")
        post_internship(client, priya_token, company="Globex")
        assert client.get("/api/internships", params={"company": "globex"}).json()["total"] == 1
        body = client.get("/api/internships", params={"posted_by": ravi["id"]}).json()
        assert [p["company"] for p in body["data"]] == ["Acme Corp"]

    def test_limit_is_bounded(self, client):
        assert client.get("/api/internships", params={"limit": 0}).status_code == 400
        assert client.get("/api/internships", params={"limit": 101}).status_code == 400


class TestOwnership:
    def test_other_mentor_forbidden_admin_allowed(self, client, store, settings):
        _, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        _, priya_token = register(client, "Priya", "priya@example.com", role="mentor")
        _, admin_token = create_admin(store, settings)
        posting = post_internship(client, ravi_token)
        url = f"/api/internships/{posting['id']}"

        assert client.put(url, json={"title": "Hijacked"}, headers=auth(priya_token)).status_code == 403
        assert client.delete(url, headers=auth(priya_token)).status_code == 403

        response = client.put(url, json={"title": "Senior Backend Intern", "status": "Closed"},
                              headers=auth(admin_token))
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Senior Backend Intern"
        assert response.json()["data"]["status"] == "Closed"

        assert client.delete(url, headers=auth(admin_token)).status_code == 200
        assert client.get(url).status_code == 404

    def test_update_cannot_clear_required_fields(self, client):
        _, token = register(client, "Ravi", "ravi@example.com", role="mentor")
        posting = post_internship(client, token)
        response = client.put(f"/api/internships/{posting['id']}", json={"title": None, "location": "Pune"},
                              headers=auth(token))
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Backend Intern"
        assert response.json()["data"]["location"] == "Pune"


class TestApply:
    def test_apply_stores_resume_and_notifies_owner(self, client, mailer, settings):
        ravi, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        _, asha_token = register(client, "Asha", "asha@example.com")
        posting = post_internship(client, ravi_token)

        response = apply(client, asha_token, posting["id"])
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "Submitted"
        assert body["data"]["resume"]["filename"] == "cv.pdf"
        assert os.path.exists(body["data"]["resume"]["stored_path"])

        assert [m["to"] for m in mailer.sent] == ["ravi@example.com"]
        count = client.get("/api/notifications/count", headers=auth(ravi_token)).json()
        assert count == {"unread": 1}

    def test_email_failure_does_not_undo_application(self, client, mailer):
        _, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        _, asha_token = register(client, "Asha", "asha@example.com")
        posting = post_internship(client, ravi_token)
        mailer.fail = True

        response = apply(client, asha_token, posting["id"])
        assert response.status_code == 200
        assert mailer.sent == []

    def test_resume_is_required(self, client):
        _, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        _, asha_token = register(client, "Asha", "asha@example.com")
        posting = post_internship(client, ravi_token)
        response = client.post(f"/api/internships/{posting['id']}/apply",
                               data={"cover_letter": "hi"}, headers=auth(asha_token))
        assert response.status_code == 400
        assert "Resume file is required" in response.json()["error"]

    def test_rejects_unsupported_resume_type(self, client):
        _, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        _, asha_token = register(client, "Asha", "asha@example.com")
        posting = post_internship(client, ravi_token)
        response = apply(client, asha_token, posting["id"], filename="cv.exe")
        assert response.status_code == 400

    def test_apply_to_missing_posting_is_404(self, client):
        _, asha_token = register(client, "Asha", "asha@example.com")
        response = apply(client, asha_token, "64b7f0000000000000000000")
        assert response.status_code == 404

    def test_mentor_cannot_apply(self, client):
        _, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        posting = post_internship(client, ravi_token)
        assert apply(client, ravi_token, posting["id"]).status_code == 403

    def test_database_failure_discards_uploaded_resume(self, client, settings, monkeypatch):
        _, ravi_token = register(client, "Ravi", "ravi@example.com", role="mentor")
        _, asha_token = register(client, "Asha", "asha@example.com")
        posting = post_internship(client, ravi_token)

        def lost_connection(*args, **kwargs):
            raise PyMongoError("connection lost")

        monkeypatch.setattr(InternshipService, "apply", lost_connection)
        response = apply(client, asha_token, posting["id"])
        assert response.status_code == 500
        assert response.json() == {"error": "Database error"}
        assert os.listdir(settings.upload_dir) == []


class TestStats:
    def test_internship_stats(self, client):
        _, token = register(client, "Ravi", "ravi@example.com", role="mentor")
        first = post_internship(client, token, title="One")
        post_internship(client, token, title="Two")
        client.put(f"/api/internships/{first['id']}", json={"status": "Closed"}, headers=auth(token))
        body = client.get("/api/stats/internships").json()
        assert body["data"] == {"totalInternships": 2, "activeInternships": 1, "closedInternships": 1}
