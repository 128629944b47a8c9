"""FastAPI dependencies for session authentication and role checks."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import Depends, Request

from qcadmin.auth.middleware import get_request_id
from qcadmin.auth.sessions import SessionStore
from qcadmin.auth.types import RequestContext, Role, SessionUser
from qcadmin.config import Settings
from qcadmin.core.errors import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_request_context(request: Request) -> RequestContext:
    """Context for public endpoints: correlation id only, no identity."""
    return RequestContext(request_id=get_request_id(request))


async def get_optional_session(request: Request) -> RequestContext:
    """Context carrying the caller if a valid session exists, else anonymous.

    Never raises; used by endpoints such as /api/auth/status.
    """
    settings = get_settings(request)
    store = get_session_store(request)
    request_id = get_request_id(request)
    sid = request.cookies.get(settings.session_cookie_name)
    record = await store.get(sid)
    if record is None or record.user_data is None:
        return RequestContext(request_id=request_id)
    user = SessionUser.from_session_data(record.user_data)
    if user is None:
        return RequestContext(request_id=request_id)
    return RequestContext(request_id=request_id, user=user, session_id=record.sid)


async def require_session(request: Request) -> RequestContext:
    """Dependency that requires a live session with a complete user.

    Raises:
        AuthenticationError: NO_SESSION, INVALID_SESSION or CORRUPTED_SESSION
    """
    settings = get_settings(request)
    store = get_session_store(request)
    request_id = get_request_id(request)

    sid = request.cookies.get(settings.session_cookie_name)
    record = await store.get(sid)
    if record is None:
        raise AuthenticationError("Authentication required. Please log in.", "NO_SESSION")

    if record.user_data is None:
        raise AuthenticationError("Invalid session. Please log in again.", "INVALID_SESSION")

    user = SessionUser.from_session_data(record.user_data)
    if user is None:
        logger.warning("[%s] Corrupted session %s... destroyed", request_id, record.sid[:8])
        await store.destroy(record.sid)
        raise AuthenticationError(
            "Corrupted session data. Please log in again.", "CORRUPTED_SESSION"
        )

    await store.touch(record.sid)
    return RequestContext(request_id=request_id, user=user, session_id=record.sid)


def role_satisfies(role: str, required: tuple[str, ...]) -> bool:
    """Apply the role hierarchy.

    admin passes everything; manager also passes any requirement that
    includes user; every other role must be listed explicitly.
    """
    if role == Role.ADMIN.value:
        return True
    if role == Role.MANAGER.value and Role.USER.value in required:
        return True
    return role in required


def require_role(*roles: Role | str) -> Callable[..., Awaitable[RequestContext]]:
    """Create a dependency that requires an authenticated caller in roles.

    Example:
        @router.get("/statistics")
        async def stats(ctx: RequestContext = Depends(require_role(Role.MANAGER, Role.ADMIN))):
            ...
    """
    required = tuple(r.value if isinstance(r, Role) else r for r in roles)

    async def dependency(ctx: RequestContext = Depends(require_session)) -> RequestContext:
        current = ctx.user.role if ctx.user else None
        if current is None or not role_satisfies(current, required):
            logger.warning(
                "[%s] Role %s denied; requires %s", ctx.request_id, current, " or ".join(required)
            )
            raise AuthorizationError(
                f"Access denied. Required role: {' or '.join(required)}",
                "INSUFFICIENT_ROLE",
                meta={"required": list(required), "current": current},
            )
        return ctx

    return dependency


require_user = require_role(Role.USER)
require_manager = require_role(Role.MANAGER, Role.ADMIN)
require_admin = require_role(Role.ADMIN)
