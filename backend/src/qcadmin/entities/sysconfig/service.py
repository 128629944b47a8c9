"""System configuration rules, parsing and masking."""

from __future__ import annotations

import logging
from typing import Any

from qcadmin.core.errors import ErrorKind, ServiceResult
from qcadmin.core.types import Operation, QueryOptions
from qcadmin.entities.generic.service import ServiceWrapper, is_valid_id
from qcadmin.entities.users.service import is_valid_email

logger = logging.getLogger(__name__)

NUMERIC_LIST_FIELDS = (
    "fvi_lot_qty",
    "general_oqa_qty",
    "crack_oqa_qty",
    "general_siv_qty",
    "crack_siv_qty",
)
STRING_LIST_FIELDS = (
    "defect_type",
    "defect_group",
    "shift",
    "site",
    "tabs",
    "product_type",
    "product_families",
)
PORT_FIELDS = ("smtp_port", "mssql_port")
PASSWORD_FIELDS = ("smtp_password", "mssql_password")
TEXT_FIELDS = (
    "smtp_server",
    "smtp_username",
    "mssql_server",
    "mssql_database",
    "mssql_username",
    "system_name",
)

MAX_QUANTITY = 999999
MAX_QUANTITY_ENTRIES = 10
MAX_ITEM_LENGTH = 100
MAX_TEXT_LENGTH = 100
PASSWORD_MASK = "********"


def split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",")]


def parse_settings(row: dict[str, Any]) -> dict[str, Any]:
    """Return the row with a ``parsed`` member holding list settings as arrays."""
    parsed: dict[str, list] = {}
    for field in NUMERIC_LIST_FIELDS:
        items = split_list(row.get(field) or "")
        parsed[field] = [int(item) for item in items if item.isdigit()]
    for field in STRING_LIST_FIELDS:
        parsed[field] = [item for item in split_list(row.get(field) or "") if item]
    return {**row, "parsed": parsed}


def mask_passwords(row: dict[str, Any]) -> dict[str, Any]:
    """Replace stored passwords with a fixed mask."""
    masked = dict(row)
    for field in PASSWORD_FIELDS:
        if masked.get(field):
            masked[field] = PASSWORD_MASK
    return masked


def _numeric_list_errors(field: str, value: str) -> list[str]:
    items = split_list(value)
    if len(items) > MAX_QUANTITY_ENTRIES:
        return [f"{field} cannot have more than {MAX_QUANTITY_ENTRIES} values"]
    for item in items:
        if not (item.isascii() and item.isdigit()):
            return [f"{field} must contain only non-negative integers separated by commas"]
        if int(item) > MAX_QUANTITY:
            return [f"{field} values cannot exceed {MAX_QUANTITY}"]
    return []


def _string_list_errors(field: str, value: str) -> list[str]:
    items = split_list(value)
    if any(not item for item in items):
        return [f"{field} cannot contain empty values"]
    if any(len(item) > MAX_ITEM_LENGTH for item in items):
        return [f"{field} values cannot exceed {MAX_ITEM_LENGTH} characters"]
    return []


def validate_sysconfig(data: dict[str, Any], operation: Operation) -> list[str]:
    errors: list[str] = []
    creating = operation is Operation.CREATE

    for field in NUMERIC_LIST_FIELDS + STRING_LIST_FIELDS:
        value = data.get(field)
        if value is None:
            if creating or field in data:
                errors.append(f"{field} is required")
            continue
        if not isinstance(value, str) or not value.strip():
            errors.append(f"{field} must be a non-empty comma-separated string")
        elif field in NUMERIC_LIST_FIELDS:
            errors.extend(_numeric_list_errors(field, value))
        else:
            errors.extend(_string_list_errors(field, value))

    for field in PORT_FIELDS:
        if field not in data:
            continue
        port = data[field]
        if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
            errors.append(f"{field} must be an integer between 1 and 65535")

    for field in TEXT_FIELDS + PASSWORD_FIELDS:
        value = data.get(field)
        if value is None:
            continue
        if not isinstance(value, str):
            errors.append(f"{field} must be a string")
        elif len(value) > MAX_TEXT_LENGTH:
            errors.append(f"{field} cannot exceed {MAX_TEXT_LENGTH} characters")

    emails = data.get("defect_notification_emails")
    if emails is not None:
        if not isinstance(emails, str):
            errors.append("defect_notification_emails must be a string")
        elif emails.strip():
            invalid = [e for e in split_list(emails) if not is_valid_email(e)]
            if invalid:
                errors.append(f"Invalid notification email addresses: {', '.join(invalid)}")

    flag = "enable_defect_email_notification"
    if flag in data and not isinstance(data[flag], bool):
        errors.append("enable_defect_email_notification must be a boolean value")

    news = data.get("news")
    if news is not None and not isinstance(news, str):
        errors.append("news must be a string")

    return errors


class SysconfigService(ServiceWrapper):
    """Single-active-configuration rules on top of the generic service."""

    def no_active(self) -> ServiceResult:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, "No active system configuration found")

    async def update(self, id: int, data: Any, user_id: int) -> ServiceResult[dict]:
        # a masked password echoed back by a client leaves the stored one alone
        if isinstance(data, dict):
            data = {
                k: v for k, v in data.items() if not (k in PASSWORD_FIELDS and v == PASSWORD_MASK)
            }
        return await self.base.update(id, data, user_id)

    async def get_active(self) -> ServiceResult[dict]:
        try:
            row = await self.base.model.get_active()
        except Exception as exc:
            return self.base.failure("get active", exc)
        if row is None:
            return self.no_active()
        return ServiceResult.ok(row)

    async def get_active_parsed(self) -> ServiceResult[dict]:
        result = await self.get_active()
        if not result.success:
            return result
        return ServiceResult.ok(parse_settings(result.data))

    async def get_by_id_parsed(self, id: int) -> ServiceResult[dict]:
        result = await self.base.get_by_id(id)
        if not result.success:
            return result
        return ServiceResult.ok(parse_settings(result.data))

    async def get_all_parsed(self, options: QueryOptions | None = None) -> ServiceResult:
        result = await self.base.get_all(options)
        if not result.success:
            return result
        return ServiceResult.ok(result.data.map(parse_settings))

    async def activate(self, id: int, user_id: int) -> ServiceResult[dict]:
        if not is_valid_id(id):
            return self.base.invalid_id()
        try:
            row = await self.base.model.activate(id, user_id)
        except Exception as exc:
            return self.base.failure("activate", exc)
        if row is None:
            return self.base.not_found()
        logger.info("System configuration %s activated by user %s", id, user_id)
        return ServiceResult.ok(row)
