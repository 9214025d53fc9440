"""
Pytest configuration and fixtures for docspace tests.
"""
import re

import pytest
from fastapi.testclient import TestClient

from docspace.core.config import Settings
from docspace.main import create_app

API = "/api/v1"


class RecordingEmailSender:
    """Collects outgoing emails instead of delivering them."""

    def __init__(self):
        self.sent = []

    async def send(self, to, subject, body):
        self.sent.append({"to": to, "subject": subject, "body": body})

    def last_code(self, email):
        for message in reversed(self.sent):
            if message["to"] == email:
                return re.search(r"\b(\d{6})\b", message["body"]).group(1)
        raise AssertionError(f"No email sent to {email}")


@pytest.fixture
def settings(tmp_path):
    """Settings pointing both stores and the file store at tmp_path."""
    return Settings(
        _env_file=None,
        environment="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'credentials.db'}",
        document_store_url=f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}",
        jwt_secret="test-secret",
        password_pepper="test-pepper",
        bcrypt_rounds=4,
        storage_backend="local",
        upload_dir=str(tmp_path / "uploads"),
        max_upload_size=1024,
        log_level="WARNING",
    )


@pytest.fixture
def email_outbox():
    return RecordingEmailSender()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app, email_outbox):
    """TestClient with the lifespan running and email captured."""
    with TestClient(app) as test_client:
        app.state.email_sender = email_outbox
        yield test_client


@pytest.fixture
def register(client):
    """Register a user and return the auth response body."""

    def _register(email, national_id=None, password="secret123", first_name="Test", last_name="User"):
        response = client.post(
            f"{API}/users/register",
            json={
                "national_id": national_id or email.split("@")[0].upper(),
                "first_name": first_name,
                "last_name": last_name,
                "email": email,
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def auth_headers(register):
    def _auth_headers(email, **kwargs):
        token = register(email, **kwargs)["token"]
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def alice(auth_headers):
    return auth_headers("alice@example.com", first_name="Alice")


@pytest.fixture
def bob(auth_headers):
    return auth_headers("bob@example.com", first_name="Bob")


@pytest.fixture
def carol(auth_headers):
    return auth_headers("carol@example.com", first_name="Carol")


@pytest.fixture
def create_workspace(client):
    def _create_workspace(headers, name="Workspace", is_public=False, description=None):
        response = client.post(
            f"{API}/workspaces",
            json={"name": name, "is_public": is_public, "description": description},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create_workspace


@pytest.fixture
def upload(client):
    """Upload a file through POST /documents/upload; returns the raw response."""

    def _upload(headers, workspace_id, file_name="notes.txt", content=b"hello world",
                content_type="text/plain", **form):
        data = dict(form)
        if workspace_id is not None:
            data["workspace_id"] = workspace_id
        return client.post(
            f"{API}/documents/upload",
            files={"file": (file_name, content, content_type)},
            data=data,
            headers=headers,
        )

    return _upload


@pytest.fixture
def share(client):
    def _share(headers, workspace_id, email, permission):
        return client.post(
            f"{API}/workspaces/{workspace_id}/share",
            json={"email": email, "permission": permission},
            headers=headers,
        )

    return _share
