"""Application settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

_TRUTHY = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def resolve_base_path() -> Path:
    """Project root: the parent of backend/ when run from there, else cwd."""
    cwd = Path.cwd()
    if cwd.name == "backend":
        return cwd.parent
    return cwd


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, built once at startup."""

    port: int = 8080
    log_level: str = "info"
    metadata_path: Path = field(default_factory=lambda: Path("metadata"))
    cors_origins: tuple[str, ...] = ("http://localhost:5173",)
    session_cookie_name: str = "qc.session.id"
    session_max_age: int = 24 * 60 * 60
    remember_me_max_age: int = 30 * 24 * 60 * 60
    cookie_secure: bool = False
    slow_request_ms: int = 2000
    bcrypt_rounds: int = 12
    auto_create_schema: bool = True

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> Settings:
        """Create settings from QCADMIN_* environment variables."""
        base_path = base_path or resolve_base_path()
        metadata_path = os.environ.get("QCADMIN_METADATA_PATH")
        origins = os.environ.get("QCADMIN_CORS_ORIGINS", "http://localhost:5173")

        return cls(
            port=_env_int("QCADMIN_PORT", 8080),
            log_level=os.environ.get("QCADMIN_LOG_LEVEL", "info").lower(),
            metadata_path=Path(metadata_path) if metadata_path else base_path / "metadata",
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            session_cookie_name=os.environ.get("QCADMIN_SESSION_COOKIE", "qc.session.id"),
            session_max_age=_env_int("QCADMIN_SESSION_MAX_AGE", 24 * 60 * 60),
            remember_me_max_age=_env_int("QCADMIN_REMEMBER_ME_MAX_AGE", 30 * 24 * 60 * 60),
            cookie_secure=_env_bool("QCADMIN_COOKIE_SECURE", False),
            slow_request_ms=_env_int("QCADMIN_SLOW_REQUEST_MS", 2000),
            bcrypt_rounds=_env_int("QCADMIN_BCRYPT_ROUNDS", 12),
            auto_create_schema=_env_bool("QCADMIN_AUTO_CREATE_SCHEMA", True),
        )
