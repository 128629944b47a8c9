"""Error taxonomy and the uniform service result."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Why an operation failed. Controllers pick status codes from this."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    CONFLICT = "conflict"
    NO_ROWS_AFFECTED = "no_rows_affected"
    SYSTEM = "system"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.CONFLICT: 400,
    ErrorKind.NO_ROWS_AFFECTED: 400,
    ErrorKind.SYSTEM: 500,
}


class QCAdminError(Exception):
    """Base class for errors raised inside the application."""

    kind: ErrorKind = ErrorKind.SYSTEM

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConflictError(QCAdminError):
    """A store uniqueness constraint was violated."""

    kind = ErrorKind.CONFLICT


class ConstraintError(QCAdminError):
    """A write broke a non-uniqueness store constraint such as NOT NULL."""

    kind = ErrorKind.VALIDATION


class StoreError(QCAdminError):
    """The store failed; message is already entity-contextualized."""

    kind = ErrorKind.SYSTEM


class AuthenticationError(QCAdminError):
    """Missing, expired or corrupted session."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code


class AuthorizationError(QCAdminError):
    """The caller's role does not satisfy the operation."""

    kind = ErrorKind.AUTHORIZATION

    def __init__(self, message: str, code: str, meta: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.meta = meta or {}


@dataclass
class ServiceResult(Generic[T]):
    """Outcome of a service call. Services return these instead of raising.

    Attributes:
        success: True when data holds the result
        data: Result payload on success
        error: Human-readable failure message
        kind: Failure category, None on success
        extra: Additional envelope members (e.g. searchInfo)
    """

    success: bool
    data: T | None = None
    error: str | None = None
    kind: ErrorKind | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: T | None = None, **extra: Any) -> ServiceResult[T]:
        return cls(success=True, data=data, extra=extra)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> ServiceResult[T]:
        return cls(success=False, error=error, kind=kind)

    @classmethod
    def invalid(cls, errors: list[str]) -> ServiceResult[T]:
        return cls.fail(ErrorKind.VALIDATION, f"Validation failed: {', '.join(errors)}")
