"""User endpoints on top of the generic entity routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from qcadmin.auth.dependencies import (
    get_request_context,
    require_admin,
    require_manager,
    require_session,
    require_user,
)
from qcadmin.auth.password import PasswordService
from qcadmin.auth.sessions import SessionStore
from qcadmin.auth.types import RequestContext
from qcadmin.core.types import EntityConfig
from qcadmin.entities.generic.controller import (
    ControllerWrapper,
    EntityController,
    ParameterError,
    parse_id,
)
from qcadmin.entities.generic.model import EntityModel
from qcadmin.entities.generic.router import create_entity_router
from qcadmin.entities.generic.service import EntityService
from qcadmin.entities.users.model import PASSWORD_HASH_COLUMN, UserModel
from qcadmin.entities.users.service import USER_ADMIN_PERMISSIONS, UserService, validate_user
from qcadmin.persistence.database import Database


class UserController(ControllerWrapper):
    """Adds availability checks, self-service profile, bulk status and password handlers."""

    def __init__(self, base: EntityController, users: UserService):
        super().__init__(base)
        self.users = users

    async def check_available(self, column: str, params) -> JSONResponse:
        return self.respond(await self.users.is_available(column, params.get(column)))

    async def change_password(self, ctx: RequestContext, raw_id: str, body: Any) -> JSONResponse:
        try:
            id = parse_id(raw_id)
        except ParameterError as exc:
            return self.bad_request(str(exc))
        body = body if isinstance(body, dict) else {}
        result = await self.users.change_password(
            id, ctx.user, body.get("currentPassword"), body.get("newPassword")
        )
        return self.respond(result, message="Password changed successfully")

    async def reset_password(self, ctx: RequestContext, raw_id: str, body: Any) -> JSONResponse:
        try:
            id = parse_id(raw_id)
        except ParameterError as exc:
            return self.bad_request(str(exc))
        body = body if isinstance(body, dict) else {}
        result = await self.users.reset_password(id, body.get("newPassword"), ctx.user_id)
        return self.respond(result, message="Password reset successfully")

    async def update_profile(self, ctx: RequestContext, raw_id: str, body: Any) -> JSONResponse:
        try:
            id = parse_id(raw_id)
        except ParameterError as exc:
            return self.bad_request(str(exc))
        result = await self.users.update_profile(id, ctx.user, body)
        return self.respond(
            result,
            message="Profile updated successfully",
            failure_message="Failed to update profile",
        )

    async def bulk_update_status(self, ctx: RequestContext, body: Any) -> JSONResponse:
        refused = self.denied(ctx, "change_status")
        if refused is not None:
            return refused
        body = body if isinstance(body, dict) else {}
        result = await self.users.bulk_update_status(
            body.get("userIds"), body.get("isActive"), ctx.user_id
        )
        return self.respond(result, message="Users updated successfully")


def create_user_router(controller: UserController) -> APIRouter:
    extra = APIRouter()

    @extra.get("/check-username")
    async def check_username(request: Request, ctx: RequestContext = Depends(get_request_context)):
        return await controller.check_available("username", request.query_params)

    @extra.get("/check-email")
    async def check_email(request: Request, ctx: RequestContext = Depends(get_request_context)):
        return await controller.check_available("email", request.query_params)

    @extra.patch("/bulk-update-status")
    async def bulk_update_status(
        body: Any = Body(...),
        ctx: RequestContext = Depends(require_manager),
    ):
        return await controller.bulk_update_status(ctx, body)

    @extra.patch("/{id}/profile")
    async def update_profile(
        id: str,
        body: Any = Body(...),
        ctx: RequestContext = Depends(require_session),
    ):
        return await controller.update_profile(ctx, id, body)

    @extra.put("/{id}/password")
    async def change_password(
        id: str,
        body: Any = Body(...),
        ctx: RequestContext = Depends(require_user),
    ):
        return await controller.change_password(ctx, id, body)

    @extra.patch("/{id}/reset-password")
    async def reset_password(
        id: str,
        body: Any = Body(...),
        ctx: RequestContext = Depends(require_admin),
    ):
        return await controller.reset_password(ctx, id, body)

    return create_entity_router(controller, extra_routes=extra)


def build_user_service(
    config: EntityConfig,
    db: Database,
    passwords: PasswordService,
    sessions: SessionStore | None = None,
) -> UserService:
    model = UserModel(EntityModel(config, db, hidden_columns=(PASSWORD_HASH_COLUMN,)), passwords)
    base = EntityService(model, rules=[validate_user], permissions=USER_ADMIN_PERMISSIONS)
    return UserService(base, passwords, sessions)


def build_user_router(service: UserService) -> APIRouter:
    return create_user_router(UserController(EntityController(service), service))
