"""Sampling reason endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from qcadmin.auth.dependencies import require_user
from qcadmin.auth.types import RequestContext
from qcadmin.core.errors import ServiceResult
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
from qcadmin.entities.sampling_reasons.service import SamplingReasonService, validate_sampling_reason
from qcadmin.persistence.database import Database


class SamplingReasonController(ControllerWrapper):
    async def check_uniqueness(self, name: str, params) -> JSONResponse:
        raw = params.get("excludeId")
        try:
            exclude_id = parse_id(raw) if raw else None
        except ParameterError:
            return self.bad_request("Invalid excludeId parameter. Must be a positive integer")
        result = await self.service.check_name_unique(name, exclude_id)
        if not result.success:
            return self.failure(result)
        data = {"name": name.strip(), "isUnique": result.data, "excludeId": exclude_id}
        return self.respond(ServiceResult.ok(data))


def create_sampling_reason_router(controller: SamplingReasonController) -> APIRouter:
    extra = APIRouter()

    @extra.get("/check-uniqueness/{name}")
    async def check_uniqueness(
        name: str,
        request: Request,
        ctx: RequestContext = Depends(require_user),
    ):
        return await controller.check_uniqueness(name, request.query_params)

    return create_entity_router(controller, extra_routes=extra)


def build_sampling_reason_router(config: EntityConfig, db: Database) -> APIRouter:
    service = SamplingReasonService(
        EntityService(EntityModel(config, db), rules=[validate_sampling_reason])
    )
    return create_sampling_reason_router(SamplingReasonController(EntityController(service)))
