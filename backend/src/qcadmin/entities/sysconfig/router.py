"""System configuration endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from qcadmin.auth.dependencies import get_request_context, require_admin, require_user
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
from qcadmin.entities.sysconfig.model import SysconfigModel
from qcadmin.entities.sysconfig.service import SysconfigService, mask_passwords, validate_sysconfig
from qcadmin.persistence.database import Database


class SysconfigController(ControllerWrapper):
    async def get_active(self, ctx: RequestContext) -> JSONResponse:
        return self.respond(await self.service.get_active())

    async def get_active_parsed(self, ctx: RequestContext) -> JSONResponse:
        refused = self.denied(ctx, "read")
        if refused is not None:
            return refused
        return self.respond(await self.service.get_active_parsed())

    async def get_all_parsed(self, ctx: RequestContext, params) -> JSONResponse:
        refused = self.denied(ctx, "read")
        if refused is not None:
            return refused
        return self.respond(await self.service.get_all_parsed(self.parse_query_options(params)))

    async def get_by_id_parsed(self, ctx: RequestContext, raw_id: str) -> JSONResponse:
        try:
            id = parse_id(raw_id)
        except ParameterError as exc:
            return self.bad_request(str(exc))
        refused = self.denied(ctx, "read")
        if refused is not None:
            return refused
        return self.respond(await self.service.get_by_id_parsed(id))

    async def activate(self, ctx: RequestContext, raw_id: str) -> JSONResponse:
        try:
            id = parse_id(raw_id)
        except ParameterError as exc:
            return self.bad_request(str(exc))
        result = await self.service.activate(id, ctx.user_id)
        return self.respond(
            result,
            message="System configuration activated successfully",
            failure_message="Failed to activate system configuration",
        )


def create_sysconfig_router(controller: SysconfigController) -> APIRouter:
    extra = APIRouter()

    @extra.get("/active")
    async def active(ctx: RequestContext = Depends(get_request_context)):
        return await controller.get_active(ctx)

    @extra.get("/active/parsed")
    async def active_parsed(ctx: RequestContext = Depends(require_user)):
        return await controller.get_active_parsed(ctx)

    @extra.get("/parsed")
    async def all_parsed(request: Request, ctx: RequestContext = Depends(require_user)):
        return await controller.get_all_parsed(ctx, request.query_params)

    @extra.get("/{id}/parsed")
    async def one_parsed(id: str, ctx: RequestContext = Depends(require_user)):
        return await controller.get_by_id_parsed(ctx, id)

    @extra.put("/{id}/activate")
    async def activate(id: str, ctx: RequestContext = Depends(require_admin)):
        return await controller.activate(ctx, id)

    return create_entity_router(controller, extra_routes=extra)


def build_sysconfig_router(config: EntityConfig, db: Database) -> APIRouter:
    model = SysconfigModel(EntityModel(config, db))
    service = SysconfigService(EntityService(model, rules=[validate_sysconfig]))
    controller = EntityController(service, presenter=mask_passwords)
    return create_sysconfig_router(SysconfigController(controller))
