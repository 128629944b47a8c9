"""Tests for /api/sysconfig: single active configuration, parsing and masking."""

from conftest import login
from qcadmin.entities.sysconfig.service import (
    PASSWORD_MASK,
    mask_passwords,
    parse_settings,
    validate_sysconfig,
)
from qcadmin.core.types import Operation

SYSCONFIG = "/api/sysconfig"


def config_body(**overrides):
    body = {
        "name": "Plant A",
        "fvi_lot_qty": "50, 100,200",
        "general_oqa_qty": "5,10",
        "crack_oqa_qty": "3",
        "general_siv_qty": "8",
        "crack_siv_qty": "2",
        "defect_type": "Visual,Dimensional",
        "defect_group": "Cosmetic, Structural",
        "shift": "A,B,C",
        "site": "North",
        "tabs": "Inspection,Reports",
        "product_type": "Bracket",
        "product_families": "Steel,Alloy",
        "smtp_server": "smtp.example.com",
        "smtp_port": 587,
        "smtp_password": "mail-secret",
        "mssql_password": "db-secret",
        "defect_notification_emails": "qa@example.com, lead@example.com",
        "enable_defect_email_notification": True,
    }
    body.update(overrides)
    return body


def create_config(client, **overrides):
    response = client.post(SYSCONFIG, json=config_body(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestSysconfigRules:
    def test_valid_payload(self):
        assert validate_sysconfig(config_body(), Operation.CREATE) == []

    def test_required_lists_on_create(self):
        body = config_body()
        del body["shift"]
        assert "shift is required" in validate_sysconfig(body, Operation.CREATE)

    def test_partial_update_skips_missing_lists(self):
        assert validate_sysconfig({"news": "Audit Friday"}, Operation.UPDATE) == []

    def test_numeric_lists(self):
        errors = validate_sysconfig(config_body(fvi_lot_qty="10,-5"), Operation.CREATE)
        assert errors == ["fvi_lot_qty must contain only non-negative integers separated by commas"]

    def test_quantity_cap(self):
        errors = validate_sysconfig(config_body(crack_oqa_qty="1000000"), Operation.CREATE)
        assert errors == ["crack_oqa_qty values cannot exceed 999999"]

    def test_too_many_quantities(self):
        value = ",".join(str(i) for i in range(11))
        errors = validate_sysconfig(config_body(general_siv_qty=value), Operation.CREATE)
        assert errors == ["general_siv_qty cannot have more than 10 values"]

    def test_empty_list_items(self):
        errors = validate_sysconfig(config_body(shift="A,,C"), Operation.CREATE)
        assert errors == ["shift cannot contain empty values"]

    def test_port_range(self):
        errors = validate_sysconfig(config_body(mssql_port=70000), Operation.CREATE)
        assert errors == ["mssql_port must be an integer between 1 and 65535"]

    def test_null_port_and_flag_are_rejected(self):
        errors = validate_sysconfig(
            {"smtp_port": None, "enable_defect_email_notification": None}, Operation.UPDATE
        )
        assert errors == [
            "smtp_port must be an integer between 1 and 65535",
            "enable_defect_email_notification must be a boolean value",
        ]

    def test_notification_emails(self):
        errors = validate_sysconfig(
            config_body(defect_notification_emails="qa@example.com, nope"), Operation.CREATE
        )
        assert errors == ["Invalid notification email addresses: nope"]

    def test_parse_settings(self):
        parsed = parse_settings(config_body(crack_oqa_qty=""))["parsed"]
        assert parsed["fvi_lot_qty"] == [50, 100, 200]
        assert parsed["crack_oqa_qty"] == []
        assert parsed["defect_group"] == ["Cosmetic", "Structural"]

    def test_mask_passwords_leaves_empty_values(self):
        masked = mask_passwords({"smtp_password": "x", "mssql_password": None})
        assert masked == {"smtp_password": PASSWORD_MASK, "mssql_password": None}


class TestSysconfigApi:
    def test_active_is_public_and_404_when_missing(self, client):
        response = client.get(f"{SYSCONFIG}/active")
        assert response.status_code == 404
        assert response.json()["error"] == "No active system configuration found"

    def test_passwords_are_masked(self, as_admin):
        created = create_config(as_admin)
        assert created["smtp_password"] == PASSWORD_MASK
        listed = as_admin.get(SYSCONFIG).json()["data"][0]
        assert listed["mssql_password"] == PASSWORD_MASK
        active = as_admin.get(f"{SYSCONFIG}/active").json()["data"]
        assert active["smtp_password"] == PASSWORD_MASK

    def test_second_active_config_is_rejected(self, as_admin):
        create_config(as_admin)
        response = as_admin.post(SYSCONFIG, json=config_body(name="Plant B"))
        assert response.status_code == 400
        assert response.json()["error"].startswith("An active system configuration already exists")

    def test_inactive_config_may_be_added(self, as_admin):
        create_config(as_admin)
        created = create_config(as_admin, name="Plant B", is_active=False)
        assert created["is_active"] is False

    def test_activate_switches_the_active_config(self, as_admin):
        first = create_config(as_admin)
        second = create_config(as_admin, name="Plant B", is_active=False)
        response = as_admin.put(f"{SYSCONFIG}/{second['id']}/activate")
        assert response.status_code == 200
        assert response.json()["message"] == "System configuration activated successfully"

        assert as_admin.get(f"{SYSCONFIG}/active").json()["data"]["id"] == second["id"]
        assert as_admin.get(f"{SYSCONFIG}/{first['id']}").json()["data"]["is_active"] is False

    def test_activate_missing_config(self, as_admin):
        assert as_admin.put(f"{SYSCONFIG}/9999/activate").status_code == 404

    def test_activate_requires_admin(self, as_admin):
        created = create_config(as_admin, is_active=False)
        login(as_admin, "manager1")
        assert as_admin.put(f"{SYSCONFIG}/{created['id']}/activate").status_code == 403

    def test_masked_password_on_update_keeps_stored_value(self, as_admin):
        created = create_config(as_admin)
        response = as_admin.put(
            f"{SYSCONFIG}/{created['id']}",
            json={"smtp_password": PASSWORD_MASK, "news": "Audit Friday"},
        )
        assert response.status_code == 200
        engine = as_admin.app.state.db.engine
        with engine.connect() as conn:
            stored = conn.exec_driver_sql(
                "SELECT smtp_password FROM sysconfig WHERE id = ?", (created["id"],)
            ).scalar()
        assert stored == "mail-secret"

    def test_parsed_views(self, as_admin):
        created = create_config(as_admin)
        login(as_admin, "user1")
        active = as_admin.get(f"{SYSCONFIG}/active/parsed").json()["data"]
        assert active["parsed"]["shift"] == ["A", "B", "C"]
        assert active["smtp_password"] == PASSWORD_MASK
        one = as_admin.get(f"{SYSCONFIG}/{created['id']}/parsed").json()["data"]
        assert one["parsed"]["general_oqa_qty"] == [5, 10]
        listing = as_admin.get(f"{SYSCONFIG}/parsed").json()
        assert listing["pagination"]["total"] == 1
        assert listing["data"][0]["parsed"]["site"] == ["North"]

    def test_invalid_payload(self, as_admin):
        response = as_admin.post(SYSCONFIG, json=config_body(smtp_port="587"))
        assert response.status_code == 400
        assert "smtp_port must be an integer between 1 and 65535" in response.json()["error"]

    def test_null_port_on_update_is_a_validation_error(self, as_admin):
        created = create_config(as_admin)
        response = as_admin.put(f"{SYSCONFIG}/{created['id']}", json={"smtp_port": None})
        assert response.status_code == 400
        body = response.json()
        assert "smtp_port must be an integer between 1 and 65535" in body["error"]
        assert as_admin.get(f"{SYSCONFIG}/{created['id']}").json()["data"]["smtp_port"] == 587
