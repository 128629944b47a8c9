"""User service: account rules, self-protection and password changes."""

from __future__ import annotations

import logging
import re
from typing import Any

from qcadmin.auth.password import PasswordService
from qcadmin.auth.sessions import SessionStore
from qcadmin.auth.types import Role, SessionUser
from qcadmin.core.errors import ErrorKind, ServiceResult
from qcadmin.core.types import Operation
from qcadmin.entities.generic.service import EntityService, ServiceWrapper, is_valid_id

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,50}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_MIN_LENGTH = 8
POSITION_MAX_LENGTH = 30
BULK_STATUS_MAX_IDS = 100
# the only columns a user may change on their own account
PROFILE_FIELDS = ("name", "email", "position")

# Managing accounts needs one of these permissions beyond the route's role.
USER_ADMIN_PERMISSIONS = {
    "create": ("manage_users", "manage_team"),
    "update": ("manage_users", "manage_team"),
    "delete": ("manage_users", "manage_team"),
    "change_status": ("manage_users", "manage_team"),
}


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value.strip()))


def password_errors(password: Any) -> list[str]:
    if not isinstance(password, str) or not password:
        return ["Password is required"]
    if len(password) < PASSWORD_MIN_LENGTH:
        return [f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"]
    return []


def validate_user(data: dict[str, Any], operation: Operation) -> list[str]:
    errors: list[str] = []
    creating = operation is Operation.CREATE

    if creating or "username" in data:
        username = data.get("username")
        if not isinstance(username, str) or not USERNAME_PATTERN.match(username.strip()):
            errors.append(
                "Username must be 3-50 characters of letters, numbers, underscores or hyphens"
            )

    if creating or "email" in data:
        if not is_valid_email(data.get("email")):
            errors.append("A valid email address is required")

    if creating:
        errors.extend(password_errors(data.get("password")))
    elif "password" in data:
        errors.append("Password cannot be changed here; use the password endpoint")

    role = data.get("role")
    if role is not None and role not in Role.values():
        errors.append(f"Role must be one of: {', '.join(Role.values())}")

    position = data.get("position")
    if position is not None:
        if not isinstance(position, str):
            errors.append("Position must be a string")
        elif len(position) > POSITION_MAX_LENGTH:
            errors.append(f"Position must be at most {POSITION_MAX_LENGTH} characters")

    return errors


class UserService(ServiceWrapper):
    """Composes the generic service over a UserModel."""

    def __init__(
        self,
        base: EntityService,
        passwords: PasswordService,
        sessions: SessionStore | None = None,
    ):
        super().__init__(base)
        self.passwords = passwords
        self.sessions = sessions

    @property
    def users(self):
        return self.base.model

    async def delete(self, id: int, user_id: int | None = None) -> ServiceResult[bool]:
        if is_valid_id(id) and id == user_id:
            return ServiceResult.fail(ErrorKind.VALIDATION, "You cannot delete your own account")
        return await self.base.delete(id, user_id)

    async def change_status(self, id: int, user_id: int) -> ServiceResult[bool]:
        if is_valid_id(id) and id == user_id:
            return ServiceResult.fail(
                ErrorKind.VALIDATION, "You cannot change the status of your own account"
            )
        return await self.base.change_status(id, user_id)

    async def is_available(self, column: str, value: Any) -> ServiceResult[dict]:
        if not isinstance(value, str) or not value.strip():
            return ServiceResult.fail(ErrorKind.VALIDATION, f"{column} parameter is required")
        try:
            taken = await self.users.exists(column, value)
        except Exception as exc:
            return self.base.failure("check", exc)
        return ServiceResult.ok({column: value.strip(), "available": not taken})

    async def change_password(
        self,
        id: int,
        actor: SessionUser,
        current_password: Any,
        new_password: Any,
    ) -> ServiceResult[bool]:
        """Change a password.

        Callers changing their own password must prove the current one;
        admins may set another user's password without it.
        """
        if not is_valid_id(id):
            return self.base.invalid_id()
        own = actor.id == id
        if not own and actor.role != Role.ADMIN.value:
            return ServiceResult.fail(
                ErrorKind.AUTHORIZATION, "You can only change your own password"
            )
        errors = password_errors(new_password)
        if errors:
            return ServiceResult.invalid(errors)

        try:
            digest = await self.users.get_password_hash(id)
            if digest is None:
                return self.base.not_found()
            if own:
                if not isinstance(current_password, str) or not current_password:
                    return ServiceResult.invalid(["Current password is required"])
                if not self.passwords.compare(current_password, digest):
                    return ServiceResult.fail(ErrorKind.VALIDATION, "Current password is incorrect")
            if self.passwords.compare(new_password, digest):
                return ServiceResult.fail(
                    ErrorKind.VALIDATION, "New password must be different from current password"
                )
            if not await self.users.set_password(id, new_password, actor.id):
                return self.base.not_found()
        except Exception as exc:
            return self.base.failure("change password of", exc)

        logger.info("Password of user %s changed by user %s", id, actor.id)
        return ServiceResult.ok(True)

    async def reset_password(self, id: int, new_password: Any, admin_id: int) -> ServiceResult[bool]:
        """Set a new password and sign the account out everywhere."""
        if not is_valid_id(id):
            return self.base.invalid_id()
        errors = password_errors(new_password)
        if errors:
            return ServiceResult.invalid(errors)
        try:
            if not await self.users.set_password(id, new_password, admin_id):
                return self.base.not_found()
            if self.sessions is not None:
                await self.sessions.destroy_for_user(id)
        except Exception as exc:
            return self.base.failure("reset password of", exc)

        logger.warning("Password of user %s reset by admin %s", id, admin_id)
        return ServiceResult.ok(True)

    async def update_profile(self, id: int, actor: SessionUser, data: Any) -> ServiceResult[dict]:
        """Self-service update of name, email and position.

        Admins may edit anyone's profile; everyone else only their own.
        Role, status and credentials are out of reach here.
        """
        if not is_valid_id(id):
            return self.base.invalid_id()
        if actor.id != id and actor.role != Role.ADMIN.value:
            return ServiceResult.fail(
                ErrorKind.AUTHORIZATION, "You can only update your own profile"
            )
        if not isinstance(data, dict):
            return ServiceResult.invalid(["Request body must be a JSON object"])
        extra = sorted(k for k in data if k not in PROFILE_FIELDS)
        if extra:
            return ServiceResult.invalid(
                [f"Profile updates may only change {', '.join(PROFILE_FIELDS)} (got {', '.join(extra)})"]
            )
        if not data:
            return ServiceResult.invalid(["No profile fields provided"])

        result = await self.base.update(id, data, actor.id)
        if result.success:
            logger.info("Profile of user %s updated by user %s", id, actor.id)
        return result

    async def bulk_update_status(self, ids: Any, is_active: Any, actor_id: int) -> ServiceResult[dict]:
        """Activate or deactivate many accounts at once; the caller's own is refused."""
        if not isinstance(ids, list) or not ids:
            return ServiceResult.fail(ErrorKind.VALIDATION, "No user IDs provided")
        if len(ids) > BULK_STATUS_MAX_IDS:
            return ServiceResult.fail(
                ErrorKind.VALIDATION, f"At most {BULK_STATUS_MAX_IDS} users can be updated at once"
            )
        if not all(is_valid_id(i) for i in ids):
            return ServiceResult.fail(ErrorKind.VALIDATION, "User IDs must be positive integers")
        if not isinstance(is_active, bool):
            return ServiceResult.fail(ErrorKind.VALIDATION, "isActive must be a boolean value")
        if actor_id in ids:
            return ServiceResult.fail(
                ErrorKind.VALIDATION, "You cannot change the status of your own account"
            )

        unique_ids = sorted(set(ids))
        try:
            updated = await self.users.set_status_many(unique_ids, is_active, actor_id)
        except Exception as exc:
            return self.base.failure("bulk update status of", exc)

        logger.info(
            "User %s set is_active=%s on %d of %d users", actor_id, is_active, updated, len(unique_ids)
        )
        return ServiceResult.ok({"updated": updated, "failed": len(unique_ids) - updated})
