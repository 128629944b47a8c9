"""Defect endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from qcadmin.auth.dependencies import require_user
from qcadmin.auth.types import RequestContext
from qcadmin.core.errors import ServiceResult
from qcadmin.core.types import EntityConfig
from qcadmin.entities.defects.model import DefectModel
from qcadmin.entities.defects.service import DefectService, validate_defect
from qcadmin.entities.generic.controller import (
    ControllerWrapper,
    EntityController,
    ParameterError,
    parse_id,
)
from qcadmin.entities.generic.model import EntityModel
from qcadmin.entities.generic.router import create_entity_router
from qcadmin.entities.generic.service import EntityService
from qcadmin.persistence.database import Database


class DefectController(ControllerWrapper):
    async def get_all(self, ctx: RequestContext, params) -> JSONResponse:
        """List defects, narrowed to one group when ?defect_group= is given."""
        group = params.get("defect_group")
        if group and group.strip():
            return await self.get_by_group(ctx, group, params)
        return await self.base.get_all(ctx, params)

    async def get_by_group(self, ctx: RequestContext, group: str, params) -> JSONResponse:
        refused = self.denied(ctx, "read")
        if refused is not None:
            return refused
        result = await self.service.get_by_group(group, self.parse_query_options(params))
        return self.respond(result)

    async def validate_name(self, name: str, raw_exclude_id: str | None) -> JSONResponse:
        """Report whether name is free, ignoring the defect with raw_exclude_id."""
        try:
            exclude_id = parse_id(raw_exclude_id) if raw_exclude_id else None
        except ParameterError:
            return self.bad_request("Invalid excludeId parameter. Must be a positive integer")
        result = await self.service.check_name_unique(name, exclude_id)
        if not result.success:
            return self.failure(result)
        return self.respond(ServiceResult.ok({"name": name.strip(), "isUnique": result.data}))


def create_defect_router(controller: DefectController) -> APIRouter:
    extra = APIRouter()

    @extra.get("/validate/name/{name}")
    async def validate_name(
        name: str,
        request: Request,
        ctx: RequestContext = Depends(require_user),
    ):
        return await controller.validate_name(name, request.query_params.get("excludeId"))

    @extra.get("/validate/name/{name}/{exclude_id}")
    async def validate_name_excluding(
        name: str,
        exclude_id: str,
        ctx: RequestContext = Depends(require_user),
    ):
        return await controller.validate_name(name, exclude_id)

    @extra.get("/group/{group}")
    async def by_group(
        group: str,
        request: Request,
        ctx: RequestContext = Depends(require_user),
    ):
        return await controller.get_by_group(ctx, group, request.query_params)

    return create_entity_router(controller, extra_routes=extra)


def build_defect_router(config: EntityConfig, db: Database) -> APIRouter:
    model = DefectModel(EntityModel(config, db))
    service = DefectService(EntityService(model, rules=[validate_defect]))
    return create_defect_router(DefectController(EntityController(service)))
