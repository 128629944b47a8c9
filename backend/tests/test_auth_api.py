"""Tests for the session login flow and /api/auth endpoints."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import insert, select

from conftest import PASSWORD, login
from qcadmin.persistence.schema import sessions

COOKIE = "qc.session.id"


def insert_session(client, sid, data, expires_in=timedelta(hours=1)):
    now = datetime.now(timezone.utc)
    with client.app.state.db.engine.begin() as conn:
        conn.execute(
            insert(sessions).values(
                sid=sid,
                user_id=None,
                data=json.dumps(data),
                remember_me=False,
                created_at=now,
                last_activity=now,
                expires_at=now + expires_in,
            )
        )


def session_exists(client, sid) -> bool:
    with client.app.state.db.engine.connect() as conn:
        row = conn.execute(select(sessions.c.sid).where(sessions.c.sid == sid)).first()
    return row is not None


def with_cookie(client, sid):
    """Send the next requests with sid as the only session cookie."""
    client.cookies.clear()
    return {"Cookie": f"{COOKIE}={sid}"}


class TestLogin:
    def test_login_returns_identity_and_permissions(self, client):
        response = login(client, "user1")
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Login successful"
        assert body["data"]["user"]["username"] == "user1"
        assert body["data"]["user"]["role"] == "user"
        assert body["data"]["permissions"] == ["read", "write"]
        assert body["data"]["expiresAt"]
        assert "password_hash" not in body["data"]["user"]

    def test_login_sets_session_cookie(self, client):
        response = login(client, "user1")
        cookie = response.headers["set-cookie"].lower()
        assert cookie.startswith(f"{COOKIE}=")
        assert "httponly" in cookie
        assert "samesite=lax" in cookie
        assert "path=/" in cookie
        assert "max-age=86400" in cookie

    def test_remember_me_extends_cookie(self, client):
        response = login(client, "user1", rememberMe=True)
        assert "max-age=2592000" in response.headers["set-cookie"].lower()

    def test_login_by_email(self, client):
        response = client.post(
            "/api/auth/login", json={"username": "MANAGER1@example.com", "password": PASSWORD}
        )
        assert response.status_code == 200
        assert response.json()["data"]["user"]["username"] == "manager1"

    def test_username_is_case_insensitive(self, client):
        response = client.post("/api/auth/login", json={"username": "Admin1", "password": PASSWORD})
        assert response.status_code == 200

    def test_wrong_password(self, client):
        response = client.post("/api/auth/login", json={"username": "user1", "password": "nope-nope"})
        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "INVALID_CREDENTIALS"
        assert body["message"] == "Invalid username or password"
        assert COOKIE not in response.cookies

    def test_unknown_account_gets_the_same_message(self, client):
        response = client.post("/api/auth/login", json={"username": "ghost", "password": PASSWORD})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid username or password"

    def test_inactive_account(self, client):
        response = client.post("/api/auth/login", json={"username": "inactive1", "password": PASSWORD})
        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "INACTIVE_ACCOUNT"
        assert body["message"] == "Account is inactive. Contact administrator."

    @pytest.mark.parametrize(
        "body",
        [
            {"username": "user1"},
            {"password": PASSWORD},
            {"username": "   ", "password": PASSWORD},
            {"username": "user1", "password": ""},
            ["user1", PASSWORD],
        ],
    )
    def test_missing_credentials(self, client, body):
        response = client.post("/api/auth/login", json=body)
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_login_records_last_login(self, client):
        login(client, "user1")
        profile = client.get("/api/auth/profile").json()["data"]
        assert profile["last_login"] is not None


class TestSessionLifecycle:
    def test_status_when_anonymous(self, client):
        response = client.get("/api/auth/status")
        assert response.status_code == 200
        assert response.json()["data"] == {"authenticated": False}

    def test_status_when_signed_in(self, as_manager):
        data = as_manager.get("/api/auth/status").json()["data"]
        assert data["authenticated"] is True
        assert data["user"]["username"] == "manager1"
        assert "manage_team" in data["permissions"]

    def test_logout_destroys_session(self, client):
        login(client, "user1")
        sid = client.cookies.get(COOKIE)
        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json()["message"] == "Logout successful"
        assert not session_exists(client, sid)
        stale = client.get("/api/auth/profile", headers=with_cookie(client, sid))
        assert stale.status_code == 401

    def test_logout_without_session_still_succeeds(self, client):
        assert client.post("/api/auth/logout").status_code == 200

    def test_expired_session_is_removed(self, client):
        insert_session(
            client,
            "expired-sid",
            {"user": {"id": 1, "username": "admin1", "role": "admin"}},
            expires_in=timedelta(seconds=-5),
        )
        response = client.get("/api/sampling-reasons", headers=with_cookie(client, "expired-sid"))
        assert response.status_code == 401
        assert response.json()["code"] == "NO_SESSION"
        assert not session_exists(client, "expired-sid")

    def test_session_without_user_is_invalid(self, client):
        insert_session(client, "empty-sid", {"loginTime": "now"})
        response = client.get("/api/sampling-reasons", headers=with_cookie(client, "empty-sid"))
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_SESSION"

    def test_corrupted_session_is_destroyed(self, client):
        insert_session(client, "broken-sid", {"user": {"id": 1, "username": "admin1"}})
        response = client.get("/api/sampling-reasons", headers=with_cookie(client, "broken-sid"))
        assert response.status_code == 401
        assert response.json()["code"] == "CORRUPTED_SESSION"
        assert not session_exists(client, "broken-sid")

    def test_status_ignores_corrupted_session(self, client):
        insert_session(client, "broken-sid", {"user": {"username": "admin1", "role": "admin"}})
        response = client.get("/api/auth/status", headers=with_cookie(client, "broken-sid"))
        assert response.json()["data"]["authenticated"] is False

    def test_health_counts_active_sessions(self, client):
        login(client, "user1")
        login(client, "admin1")
        data = client.get("/api/auth/health").json()["data"]
        assert data["status"] == "healthy"
        assert data["activeSessions"] == 2


class TestProfileAndPassword:
    def test_profile_requires_session(self, client):
        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["code"] == "NO_SESSION"

    def test_profile_hides_password_hash(self, as_user):
        data = as_user.get("/api/auth/profile").json()["data"]
        assert data["username"] == "user1"
        assert data["email"] == "user1@example.com"
        assert "password_hash" not in data

    def test_change_password(self, client):
        login(client, "user1")
        response = client.put(
            "/api/auth/password",
            json={"currentPassword": PASSWORD, "newPassword": "brand-new-secret"},
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password changed successfully"

        client.cookies.clear()
        old = client.post("/api/auth/login", json={"username": "user1", "password": PASSWORD})
        assert old.status_code == 401
        login(client, "user1", "brand-new-secret")

    def test_wrong_current_password(self, as_user):
        response = as_user.put(
            "/api/auth/password",
            json={"currentPassword": "not-my-password", "newPassword": "brand-new-secret"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Current password is incorrect"

    def test_new_password_must_differ(self, as_user):
        response = as_user.put(
            "/api/auth/password", json={"currentPassword": PASSWORD, "newPassword": PASSWORD}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "New password must be different from current password"

    def test_short_new_password(self, as_user):
        response = as_user.put(
            "/api/auth/password", json={"currentPassword": PASSWORD, "newPassword": "short"}
        )
        assert response.status_code == 400
        assert "at least 8 characters" in response.json()["error"]

    def test_change_password_closes_other_sessions(self, client):
        login(client, "user1")
        first_sid = client.cookies.get(COOKIE)
        login(client, "user1")
        current_sid = client.cookies.get(COOKIE)

        response = client.put(
            "/api/auth/password",
            json={"currentPassword": PASSWORD, "newPassword": "brand-new-secret"},
        )
        assert response.status_code == 200
        assert not session_exists(client, first_sid)
        assert session_exists(client, current_sid)
        still_signed_in = client.get("/api/auth/profile", headers=with_cookie(client, current_sid))
        assert still_signed_in.status_code == 200
