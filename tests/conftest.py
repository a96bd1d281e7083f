from __future__ import annotations

import os
import sys
import tempfile
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
API_DIR = ROOT / "API"
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

# Test-mode runtime guards:
# - throwaway SQLite database per run
# - no real Gemini traffic (routers get a scripted provider)
_DB_DIR = tempfile.mkdtemp(prefix="learnpath-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/learnpath-test.db"
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ADMIN_EMAILS", "admin@learnpath.test")

from learnpath.main import app  # noqa: E402

ADMIN_EMAIL = "admin@learnpath.test"
PASSWORD = "secret-pass"


@pytest.fixture(scope="session")
def client() -> TestClient:
    with TestClient(app) as tc:
        yield tc


@pytest.fixture
def signup(client):
    """Create a fresh learner account and return (auth body, headers)."""

    def _signup(email: str | None = None, full_name: str = "Test Learner"):
        email = email or f"learner-{uuid.uuid4().hex[:10]}@learnpath.test"
        resp = client.post(
            "/auth/signup",
            json={"email": email, "password": PASSWORD, "full_name": full_name},
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        return body, {"Authorization": f"Bearer {body['token']}"}

    return _signup


@pytest.fixture(scope="session")
def admin_headers(client):
    resp = client.post(
        "/auth/signup",
        json={"email": ADMIN_EMAIL, "password": PASSWORD, "full_name": "Admin"},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["is_admin"] is True
    return {"Authorization": f"Bearer {resp.json()['token']}"}
