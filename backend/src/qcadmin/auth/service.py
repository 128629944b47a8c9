"""Login, logout, profile and password flows over the session store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from qcadmin.auth.password import PasswordService
from qcadmin.auth.sessions import SessionRecord, SessionStore
from qcadmin.auth.types import RequestContext, SessionUser
from qcadmin.core.errors import ErrorKind, ServiceResult
from qcadmin.entities.users.service import UserService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


@dataclass
class LoginOutcome:
    """A successful login: the new session and who it belongs to."""

    session: SessionRecord
    user: SessionUser

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user.to_dict(),
            "permissions": self.user.permissions,
            "expiresAt": self.session.expires_at.isoformat() if self.session.expires_at else None,
        }


def _rejected(kind: ErrorKind, message: str, code: str) -> ServiceResult:
    return ServiceResult(success=False, error=message, kind=kind, extra={"code": code})


class AuthService:
    def __init__(self, users: UserService, passwords: PasswordService, sessions: SessionStore):
        self.users = users
        self.passwords = passwords
        self.sessions = sessions

    async def login(self, identifier: Any, password: Any, remember_me: bool = False) -> ServiceResult:
        """Verify credentials and open a session.

        Args:
            identifier: Username, or email when it contains '@'
            password: Plaintext password
            remember_me: Use the long-lived session lifetime

        Returns:
            ServiceResult with a LoginOutcome on success
        """
        valid_identifier = isinstance(identifier, str) and bool(identifier.strip())
        if not valid_identifier or not isinstance(password, str) or not password:
            return _rejected(
                ErrorKind.VALIDATION,
                "Invalid login data. Username and password are required.",
                "VALIDATION_ERROR",
            )

        try:
            row = await self.users.users.find_credentials(identifier)
            if row is None:
                logger.info("Login failed for unknown account %r", identifier.strip())
                return _rejected(ErrorKind.AUTHENTICATION, INVALID_CREDENTIALS, "INVALID_CREDENTIALS")
            if not row.get("is_active"):
                logger.info("Login refused for inactive account %s", row["username"])
                return _rejected(
                    ErrorKind.AUTHENTICATION,
                    "Account is inactive. Contact administrator.",
                    "INACTIVE_ACCOUNT",
                )
            if not self.passwords.compare(password, row.get("password_hash") or ""):
                logger.info("Login failed for %s: wrong password", row["username"])
                return _rejected(ErrorKind.AUTHENTICATION, INVALID_CREDENTIALS, "INVALID_CREDENTIALS")

            user = SessionUser.from_row(row)
            await self.users.users.record_login(user.id)
            await self.sessions.purge_expired()
            record = await self.sessions.create(user, remember_me)
        except Exception:
            logger.exception("Login failed unexpectedly")
            return ServiceResult.fail(ErrorKind.SYSTEM, "Login failed")

        logger.info("User %s logged in", user.username)
        return ServiceResult.ok(LoginOutcome(session=record, user=user))

    async def logout(self, sid: str | None) -> bool:
        if not sid:
            return False
        return await self.sessions.destroy(sid)

    async def profile(self, ctx: RequestContext) -> ServiceResult[dict]:
        return await self.users.get_by_id(ctx.user_id)

    async def change_password(
        self,
        ctx: RequestContext,
        current_password: Any,
        new_password: Any,
    ) -> ServiceResult[bool]:
        """Self-service password change; other sessions of the user are closed."""
        result = await self.users.change_password(
            ctx.user_id, ctx.user, current_password, new_password
        )
        if result.success:
            closed = await self.sessions.destroy_for_user(ctx.user_id, keep_sid=ctx.session_id)
            logger.info("Closed %d other sessions of user %s", closed, ctx.user_id)
        return result

    async def health(self) -> ServiceResult[dict]:
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            active = await self.sessions.count_active()
        except Exception as exc:
            logger.error("Auth health check failed: %s", exc)
            return ServiceResult.fail(ErrorKind.SYSTEM, f"Session store unavailable: {exc}")
        return ServiceResult.ok({"status": "healthy", "timestamp": timestamp, "activeSessions": active})
