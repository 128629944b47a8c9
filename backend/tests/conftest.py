"""Shared fixtures: a fresh SQLite-backed app per test with one account per role."""

from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import insert

from qcadmin.auth.password import PasswordService
from qcadmin.persistence.schema import users

PASSWORD = "correct-horse-1"
ROLES = ("admin", "manager", "user", "viewer")
BACKEND_DIR = Path(__file__).parent.parent


def seed_users(engine, passwords: PasswordService) -> dict[str, int]:
    """Insert admin1, manager1, user1, viewer1 and an inactive account."""
    now = datetime.now(timezone.utc)
    digest = passwords.hash(PASSWORD)
    accounts = [(role, f"{role}1", True) for role in ROLES] + [("user", "inactive1", False)]
    ids = {}
    with engine.begin() as conn:
        for role, username, active in accounts:
            result = conn.execute(
                insert(users).values(
                    name=f"{username.title()} Person",
                    description="",
                    is_active=active,
                    created_by=0,
                    updated_by=0,
                    created_at=now,
                    updated_at=now,
                    username=username,
                    email=f"{username}@example.com",
                    password_hash=digest,
                    role=role,
                )
            )
            ids[username] = result.inserted_primary_key[0]
    return ids


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    """Point the app at a per-test SQLite file and the repo metadata."""
    # Integration tests always use a per-test SQLite DB, even when
    # DATABASE_URL is set for live PostgreSQL runs.
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("QCADMIN_METADATA_PATH", raising=False)
    monkeypatch.setenv("QCADMIN_DB_PATH", str(tmp_path / "test.db"))
    monkeypatch.setenv("QCADMIN_BCRYPT_ROUNDS", "4")
    monkeypatch.chdir(BACKEND_DIR)
    return tmp_path


@pytest.fixture
def client(app_env):
    from qcadmin.api.app import create_app

    with TestClient(create_app()) as client:
        client.user_ids = seed_users(client.app.state.db.engine, PasswordService(rounds=4))
        yield client


def login(client, username: str, password: str = PASSWORD, **extra):
    """Replace the client's session with a fresh login as username."""
    client.cookies.clear()
    response = client.post(
        "/api/auth/login", json={"username": username, "password": password, **extra}
    )
    assert response.status_code == 200, response.text
    return response


@pytest.fixture
def as_admin(client):
    login(client, "admin1")
    return client


@pytest.fixture
def as_manager(client):
    login(client, "manager1")
    return client


@pytest.fixture
def as_user(client):
    login(client, "user1")
    return client
