"""Shared test fixtures."""

import os
import tempfile
import uuid

# Must be set before src.main (and the cached settings) are imported.
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{tempfile.mkdtemp()}/test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from src.main import app


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="module")
def test_password():
    return "SecureTestPass123"


@pytest.fixture(scope="module")
def make_user(client, test_password):
    """Register and log in a fresh user; returns id, email, tokens and auth header."""

    def _make(name: str = "User") -> dict:
        email = f"{name.lower()}_{uuid.uuid4().hex[:8]}@example.com"
        reg = client.post("/api/v1/auth/register", json={"email": email, "name": name, "password": test_password})
        assert reg.status_code == 201
        login = client.post("/api/v1/auth/login", json={"email": email, "password": test_password})
        assert login.status_code == 200
        data = login.json()["data"]
        return {
            "id": data["user"]["id"],
            "email": email,
            "name": name,
            "access_token": data["access_token"],
            "refresh_token": login.cookies.get("refresh_token"),
            "headers": {"Authorization": f"Bearer {data['access_token']}"},
        }

    return _make


@pytest.fixture(scope="module")
def alice(make_user):
    return make_user("Alice")


@pytest.fixture(scope="module")
def bob(make_user):
    return make_user("Bob")


@pytest.fixture(scope="module")
def carol(make_user):
    return make_user("Carol")


@pytest.fixture(scope="module")
def conversation(client, alice, bob):
    """The Alice/Bob conversation."""
    resp = client.post("/api/v1/conversations", json={"participant_ids": [alice["id"], bob["id"]]}, headers=alice["headers"])
    assert resp.status_code in (200, 201)
    return resp.json()["data"]
