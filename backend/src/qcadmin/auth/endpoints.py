"""Authentication endpoints mounted at /api/auth."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from qcadmin.api.responses import ApiResponse, envelope, error_envelope
from qcadmin.auth.dependencies import get_optional_session, get_settings, require_session
from qcadmin.auth.service import AuthService
from qcadmin.auth.types import RequestContext
from qcadmin.core.errors import ErrorKind, ServiceResult

logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    """Login body; username may also be an email address."""

    username: str | None = None
    password: str | None = None
    rememberMe: bool = False


class PasswordChangeRequest(BaseModel):
    currentPassword: str | None = None
    newPassword: str | None = None


def _failure(result: ServiceResult) -> JSONResponse:
    kind = result.kind or ErrorKind.SYSTEM
    if kind is ErrorKind.SYSTEM:
        return error_envelope(500, "Internal server error", "INTERNAL_ERROR")
    code = result.extra.get("code") or kind.name
    return error_envelope(kind.status_code, result.error or kind.value, code)


def create_auth_router(auth: AuthService) -> APIRouter:
    """Create the /api/auth router around an AuthService."""
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @router.post("/login", response_model=ApiResponse)
    async def login(request: Request, body: LoginRequest):
        settings = get_settings(request)
        result = await auth.login(body.username, body.password, body.rememberMe)
        if not result.success:
            return _failure(result)

        outcome = result.data
        response = envelope(data=outcome.to_dict(), message="Login successful")
        response.set_cookie(
            settings.session_cookie_name,
            outcome.session.sid,
            max_age=auth.sessions.max_age_for(outcome.session.remember_me),
            httponly=True,
            samesite="lax",
            secure=settings.cookie_secure,
            path="/",
        )
        return response

    @router.post("/logout", response_model=ApiResponse)
    async def logout(request: Request):
        settings = get_settings(request)
        sid = request.cookies.get(settings.session_cookie_name)
        await auth.logout(sid)
        response = envelope(message="Logout successful")
        response.delete_cookie(settings.session_cookie_name, path="/")
        return response

    @router.get("/status", response_model=ApiResponse)
    async def status(ctx: RequestContext = Depends(get_optional_session)):
        if ctx.user is None:
            return envelope(data={"authenticated": False})
        return envelope(
            data={
                "authenticated": True,
                "user": ctx.user.to_dict(),
                "permissions": ctx.user.permissions,
            }
        )

    @router.get("/profile", response_model=ApiResponse)
    async def profile(ctx: RequestContext = Depends(require_session)):
        result = await auth.profile(ctx)
        if not result.success:
            return _failure(result)
        return envelope(data=result.data)

    @router.put("/password", response_model=ApiResponse)
    async def change_password(
        body: PasswordChangeRequest,
        ctx: RequestContext = Depends(require_session),
    ):
        result = await auth.change_password(ctx, body.currentPassword, body.newPassword)
        if not result.success:
            return _failure(result)
        return envelope(message="Password changed successfully")

    @router.get("/health", response_model=ApiResponse)
    async def health():
        result = await auth.health()
        if not result.success:
            logger.error("Auth health check failed: %s", result.error)
            return envelope(
                503, success=False, data={"status": "unhealthy"}, error="Session store unavailable"
            )
        return envelope(data=result.data)

    return router
