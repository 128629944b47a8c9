"""Type definitions for authentication and request context."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    VIEWER = "viewer"

    @classmethod
    def values(cls) -> list[str]:
        return [r.value for r in cls]


ROLE_PERMISSIONS: dict[str, tuple[str, ...]] = {
    Role.ADMIN.value: ("read", "write", "delete", "manage_users", "system_admin"),
    Role.MANAGER.value: ("read", "write", "delete", "manage_team"),
    Role.USER.value: ("read", "write"),
    Role.VIEWER.value: ("read",),
}


@dataclass(frozen=True)
class SessionUser:
    """Identity stored server-side for one authenticated session.

    Attributes:
        id: users.id of the signed-in account
        username: Login name
        email: Account email
        name: Display name
        role: One of Role
        position: Job title, optional
        is_active: Account flag at login time
    """

    id: int
    username: str
    role: str
    email: str = ""
    name: str = ""
    position: str | None = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> SessionUser:
        return cls(
            id=row["id"],
            username=row["username"],
            role=row["role"],
            email=row.get("email") or "",
            name=row.get("name") or "",
            position=row.get("position"),
            is_active=bool(row.get("is_active", True)),
        )

    @classmethod
    def from_session_data(cls, data: dict[str, Any]) -> SessionUser | None:
        """Rebuild from stored session data; None if id, username or role is missing."""
        if not isinstance(data, dict):
            return None
        if not data.get("id") or not data.get("username") or not data.get("role"):
            return None
        return cls.from_row(data)

    @property
    def permissions(self) -> list[str]:
        return list(ROLE_PERMISSIONS.get(self.role, ()))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RequestContext:
    """Typed per-request context handed to controllers.

    Attributes:
        request_id: Correlation id assigned by the request-tracking middleware
        user: The authenticated caller, None on public endpoints
        session_id: Opaque id of the caller's session
    """

    request_id: str
    user: SessionUser | None = None
    session_id: str | None = None

    @property
    def user_id(self) -> int:
        """Actor id for audit columns; 0 means the system."""
        return self.user.id if self.user else 0
