"""Shared fixtures: an in-memory store, a recording mailer and an app client."""

from __future__ import annotations

import mongomock
import pytest
from fastapi.testclient import TestClient

from internship_portal.core.config import Settings
from internship_portal.core.errors import DependencyError
from internship_portal.db.mongodb import MongoStore
from internship_portal.main import create_app
from internship_portal.schemas.schemas import RegisterRequest, UserRole
from internship_portal.services.user_service import UserService


class FakeMailer:
    """Records every send; set fail=True to simulate an SMTP outage."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_email, subject, message):
        if self.fail:
            raise DependencyError("SMTP down")
        self.sent.append({"to": to_email, "subject": subject, "message": message})

    def close(self):
        pass


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        mongodb_uri="mongodb://localhost:27017",
        mongodb_db="portal_test",
        jwt_secret_key="test-secret",
        rate_limit_enabled=False,
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def store() -> MongoStore:
    return MongoStore(db_name="portal_test", client=mongomock.MongoClient())


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def client(settings, store, mailer) -> TestClient:
    return TestClient(create_app(settings=settings, store=store, mailer=mailer))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, name: str, email: str, role: str = "intern",
             password: str = "secret1") -> tuple:
    payload = {"name": name, "email": email, "password": password, "role": role}
    if role == "intern":
        payload["university"] = "State University"
    if role == "mentor":
        payload["specialization"] = "Backend"
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    body = response.json()
    return body["user"], body["token"]


def create_admin(store: MongoStore, settings: Settings, email: str = "admin@example.com") -> tuple:
    request = RegisterRequest(name="Admin", email=email, password="secret1", role=UserRole.admin)
    return UserService(store, settings).register(request)


def post_internship(client: TestClient, token: str, title: str = "Backend Intern", **fields) -> dict:
    payload = {
        "title": title,
        "company": fields.pop("company", "Acme Corp"),
        "description": "Build and maintain REST APIs.",
        "location": fields.pop("location", "Remote"),
    }
    payload.update(fields)
    response = client.post("/api/internships", json=payload, headers=auth(token))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def apply(client: TestClient, token: str, internship_id: str, filename: str = "cv.pdf",
          content: bytes = b"%PDF-1.4 resume"):
    return client.post(
        f"/api/internships/{internship_id}/apply",
        files={"resume": (filename, content, "application/pdf")},
        data={"cover_letter": "I would love to join."},
        headers=auth(token),
    )
