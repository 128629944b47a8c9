"""Tests for /api/users: account rules, self-protection and passwords."""

import pytest

from conftest import PASSWORD, login

USERS = "/api/users"


def new_user(**overrides):
    body = {
        "username": "operator7",
        "email": "Operator7@Example.com",
        "password": "line-seven-pass",
        "name": "Operator Seven",
        "role": "user",
        "position": "Line Lead",
    }
    body.update(overrides)
    return body


class TestUserCrud:
    def test_list_hides_password_hash(self, as_admin):
        body = as_admin.get(USERS).json()
        assert body["pagination"]["total"] == 4
        assert all("password_hash" not in row for row in body["data"])

    def test_create(self, as_admin):
        response = as_admin.post(USERS, json=new_user())
        assert response.status_code == 201
        row = response.json()["data"]
        assert row["username"] == "operator7"
        assert row["email"] == "operator7@example.com"
        assert row["position"] == "Line Lead"
        assert "password_hash" not in row
        assert "password" not in row

    def test_created_user_can_log_in(self, as_admin):
        as_admin.post(USERS, json=new_user())
        login(as_admin, "operator7", "line-seven-pass")

    def test_manager_may_create(self, as_manager):
        assert as_manager.post(USERS, json=new_user()).status_code == 201

    def test_user_may_not_create(self, as_user):
        response = as_user.post(USERS, json=new_user())
        assert response.status_code == 403
        assert response.json()["code"] == "INSUFFICIENT_ROLE"

    def test_viewer_may_not_list(self, client):
        login(client, "viewer1")
        assert client.get(USERS).status_code == 403

    def test_duplicate_username(self, as_admin):
        response = as_admin.post(USERS, json=new_user(username="USER1"))
        assert response.status_code == 400
        assert response.json()["error"] == "Username 'USER1' is already in use"

    def test_duplicate_email(self, as_admin):
        response = as_admin.post(USERS, json=new_user(email="user1@EXAMPLE.com"))
        assert response.status_code == 400
        assert "is already in use" in response.json()["error"]

    @pytest.mark.parametrize(
        "overrides,fragment",
        [
            ({"username": "ab"}, "Username must be 3-50 characters"),
            ({"username": "bad name"}, "Username must be 3-50 characters"),
            ({"email": "not-an-email"}, "A valid email address is required"),
            ({"password": "short"}, "Password must be at least 8 characters long"),
            ({"role": "superuser"}, "Role must be one of"),
            ({"position": "x" * 31}, "Position must be at most 30 characters"),
            ({"name": ""}, "Name is required"),
        ],
    )
    def test_create_validation(self, as_admin, overrides, fragment):
        response = as_admin.post(USERS, json=new_user(**overrides))
        assert response.status_code == 400
        assert fragment in response.json()["error"]

    def test_update_rejects_password(self, as_admin):
        user_id = as_admin.user_ids["user1"]
        response = as_admin.put(f"{USERS}/{user_id}", json={"password": "sneaky-new-pass"})
        assert response.status_code == 400
        assert "use the password endpoint" in response.json()["error"]

    def test_update_email_conflict(self, as_admin):
        user_id = as_admin.user_ids["user1"]
        response = as_admin.put(f"{USERS}/{user_id}", json={"email": "viewer1@example.com"})
        assert response.status_code == 400
        assert response.json()["error"] == "Email 'viewer1@example.com' is already in use"

    def test_update_keeps_own_email(self, as_admin):
        user_id = as_admin.user_ids["user1"]
        response = as_admin.put(
            f"{USERS}/{user_id}", json={"email": "USER1@example.com", "position": "QA"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["position"] == "QA"

    def test_update_missing_user(self, as_admin):
        assert as_admin.put(f"{USERS}/9999", json={"position": "QA"}).status_code == 404

    def test_search(self, as_admin):
        body = as_admin.get(f"{USERS}?search=manager").json()
        assert [row["username"] for row in body["data"]] == ["manager1"]


class TestSelfProtection:
    def test_cannot_delete_self(self, as_admin):
        response = as_admin.delete(f"{USERS}/{as_admin.user_ids['admin1']}")
        assert response.status_code == 400
        assert response.json()["error"] == "You cannot delete your own account"

    def test_cannot_deactivate_self(self, as_admin):
        response = as_admin.patch(f"{USERS}/{as_admin.user_ids['admin1']}/status")
        assert response.status_code == 400
        assert response.json()["error"] == "You cannot change the status of your own account"

    def test_can_deactivate_other(self, as_admin):
        user_id = as_admin.user_ids["viewer1"]
        assert as_admin.patch(f"{USERS}/{user_id}/status").status_code == 200
        client = as_admin
        client.cookies.clear()
        response = client.post("/api/auth/login", json={"username": "viewer1", "password": PASSWORD})
        assert response.json()["code"] == "INACTIVE_ACCOUNT"

    def test_can_delete_other(self, as_admin):
        user_id = as_admin.user_ids["viewer1"]
        assert as_admin.delete(f"{USERS}/{user_id}").status_code == 200
        assert as_admin.get(f"{USERS}/{user_id}").status_code == 404


class TestAvailability:
    def test_username_taken(self, client):
        response = client.get(f"{USERS}/check-username?username=ADMIN1")
        assert response.status_code == 200
        assert response.json()["data"] == {"username": "ADMIN1", "available": False}

    def test_email_free(self, client):
        data = client.get(f"{USERS}/check-email?email=new@example.com").json()["data"]
        assert data["available"] is True

    def test_parameter_required(self, client):
        response = client.get(f"{USERS}/check-username")
        assert response.status_code == 400
        assert response.json()["error"] == "username parameter is required"


class TestPasswordRoutes:
    def test_change_own_password(self, as_user):
        user_id = as_user.user_ids["user1"]
        response = as_user.put(
            f"{USERS}/{user_id}/password",
            json={"currentPassword": PASSWORD, "newPassword": "fresh-password-1"},
        )
        assert response.status_code == 200
        login(as_user, "user1", "fresh-password-1")

    def test_cannot_change_someone_elses(self, as_user):
        other = as_user.user_ids["viewer1"]
        response = as_user.put(
            f"{USERS}/{other}/password",
            json={"currentPassword": PASSWORD, "newPassword": "fresh-password-1"},
        )
        assert response.status_code == 403
        assert response.json()["error"] == "You can only change your own password"

    def test_admin_changes_another_without_current(self, as_admin):
        other = as_admin.user_ids["user1"]
        response = as_admin.put(f"{USERS}/{other}/password", json={"newPassword": "fresh-password-1"})
        assert response.status_code == 200
        login(as_admin, "user1", "fresh-password-1")

    def test_reset_password_signs_user_out(self, client):
        login(client, "user1")
        user_sid = client.cookies.get("qc.session.id")
        login(client, "admin1")
        user_id = client.user_ids["user1"]

        response = client.patch(
            f"{USERS}/{user_id}/reset-password", json={"newPassword": "reset-by-admin"}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password reset successfully"

        client.cookies.clear()
        stale = client.get("/api/auth/profile", headers={"Cookie": f"qc.session.id={user_sid}"})
        assert stale.status_code == 401
        login(client, "user1", "reset-by-admin")

    def test_reset_requires_admin(self, as_manager):
        user_id = as_manager.user_ids["user1"]
        response = as_manager.patch(
            f"{USERS}/{user_id}/reset-password", json={"newPassword": "reset-by-admin"}
        )
        assert response.status_code == 403

    def test_reset_missing_user(self, as_admin):
        response = as_admin.patch(f"{USERS}/9999/reset-password", json={"newPassword": "reset-by-admin"})
        assert response.status_code == 404


class TestProfile:
    def test_viewer_updates_own_profile(self, client):
        login(client, "viewer1")
        user_id = client.user_ids["viewer1"]
        response = client.patch(
            f"{USERS}/{user_id}/profile",
            json={"name": "Vera Viewer", "email": "Vera@Example.com", "position": "Auditor"},
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["message"] == "Profile updated successfully"
        assert body["data"]["name"] == "Vera Viewer"
        assert body["data"]["email"] == "vera@example.com"
        assert body["data"]["role"] == "viewer"
        assert "password_hash" not in body["data"]

    def test_role_cannot_be_changed(self, as_user):
        user_id = as_user.user_ids["user1"]
        response = as_user.patch(f"{USERS}/{user_id}/profile", json={"role": "admin"})
        assert response.status_code == 400
        assert "Profile updates may only change name, email, position" in response.json()["error"]

    def test_cannot_edit_someone_elses(self, as_manager):
        user_id = as_manager.user_ids["user1"]
        response = as_manager.patch(f"{USERS}/{user_id}/profile", json={"name": "Renamed"})
        assert response.status_code == 403
        assert response.json()["error"] == "You can only update your own profile"

    def test_admin_edits_any_profile(self, as_admin):
        user_id = as_admin.user_ids["user1"]
        response = as_admin.patch(f"{USERS}/{user_id}/profile", json={"position": "Shift Lead"})
        assert response.status_code == 200
        assert response.json()["data"]["position"] == "Shift Lead"
        assert response.json()["data"]["updated_by"] == as_admin.user_ids["admin1"]

    def test_email_taken_by_another_user(self, as_user):
        user_id = as_user.user_ids["user1"]
        response = as_user.patch(
            f"{USERS}/{user_id}/profile", json={"email": "manager1@example.com"}
        )
        assert response.status_code == 400
        assert "is already in use" in response.json()["error"]

    def test_empty_profile_is_rejected(self, as_user):
        user_id = as_user.user_ids["user1"]
        response = as_user.patch(f"{USERS}/{user_id}/profile", json={})
        assert response.status_code == 400
        assert "No profile fields provided" in response.json()["error"]

    def test_requires_session(self, client):
        response = client.patch(f"{USERS}/1/profile", json={"name": "x"})
        assert response.status_code == 401


class TestBulkStatus:
    def test_deactivates_many(self, as_manager):
        ids = [as_manager.user_ids["user1"], as_manager.user_ids["viewer1"], 9999]
        response = as_manager.patch(
            f"{USERS}/bulk-update-status", json={"userIds": ids, "isActive": False}
        )
        assert response.status_code == 200, response.text
        assert response.json()["data"] == {"updated": 2, "failed": 1}
        listed = as_manager.get(f"{USERS}/filter/status", params={"status": "false"}).json()
        assert {row["username"] for row in listed["data"]} == {"user1", "viewer1", "inactive1"}

    def test_reactivates(self, as_admin):
        user_id = as_admin.user_ids["inactive1"]
        response = as_admin.patch(
            f"{USERS}/bulk-update-status", json={"userIds": [user_id], "isActive": True}
        )
        assert response.json()["data"] == {"updated": 1, "failed": 0}
        login(as_admin, "inactive1")

    def test_own_account_is_refused(self, as_admin):
        ids = [as_admin.user_ids["admin1"], as_admin.user_ids["user1"]]
        response = as_admin.patch(
            f"{USERS}/bulk-update-status", json={"userIds": ids, "isActive": False}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "You cannot change the status of your own account"

    @pytest.mark.parametrize(
        "body,message",
        [
            ({"userIds": [], "isActive": False}, "No user IDs provided"),
            ({"isActive": False}, "No user IDs provided"),
            ({"userIds": [0, "x"], "isActive": False}, "User IDs must be positive integers"),
            ({"userIds": [3], "isActive": "no"}, "isActive must be a boolean value"),
        ],
    )
    def test_invalid_body(self, as_manager, body, message):
        response = as_manager.patch(f"{USERS}/bulk-update-status", json=body)
        assert response.status_code == 400
        assert response.json()["error"] == message

    def test_user_role_is_refused(self, as_user):
        response = as_user.patch(
            f"{USERS}/bulk-update-status", json={"userIds": [1], "isActive": False}
        )
        assert response.status_code == 403
