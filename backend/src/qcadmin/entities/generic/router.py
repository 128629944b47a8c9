"""Router factory binding an EntityController to the standard routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from qcadmin.auth.dependencies import get_request_context, require_manager, require_user
from qcadmin.auth.types import RequestContext
from qcadmin.entities.generic.controller import EntityController


def create_entity_router(
    controller: EntityController,
    extra_routes: APIRouter | None = None,
) -> APIRouter:
    """Create the router for one entity.

    Literal paths (health, statistics, search, filter and anything in
    extra_routes) are registered before the ``/{id}`` routes so the id
    matcher never captures them.

    Args:
        controller: Controller for the entity
        extra_routes: Entity-specific routes, registered ahead of ``/{id}``

    Returns:
        APIRouter mounted at the entity's api_path
    """
    config = controller.config
    router = APIRouter(prefix=config.api_path, tags=[config.entity_name])

    @router.get("/health")
    async def health(ctx: RequestContext = Depends(get_request_context)):
        return await controller.health(ctx)

    @router.get("/statistics")
    async def statistics(ctx: RequestContext = Depends(require_manager)):
        return await controller.statistics(ctx)

    @router.get("/search/name")
    async def search_by_name(request: Request, ctx: RequestContext = Depends(require_user)):
        return await controller.get_by_name(ctx, request.query_params)

    @router.get("/filter/status")
    async def filter_by_status(request: Request, ctx: RequestContext = Depends(require_user)):
        return await controller.filter_status(ctx, request.query_params)

    @router.get("/search/pattern")
    async def search_by_pattern(request: Request, ctx: RequestContext = Depends(require_user)):
        return await controller.search(ctx, request.query_params)

    if extra_routes is not None:
        router.include_router(extra_routes)

    async def create(
        body: Any = Body(...),
        ctx: RequestContext = Depends(require_manager),
    ):
        return await controller.create(ctx, body)

    async def list_all(request: Request, ctx: RequestContext = Depends(require_user)):
        return await controller.get_all(ctx, request.query_params)

    for path in ("", "/"):
        router.add_api_route(path, create, methods=["POST"], include_in_schema=path == "")
        router.add_api_route(path, list_all, methods=["GET"], include_in_schema=path == "")

    @router.get("/{id}")
    async def get_by_id(id: str, ctx: RequestContext = Depends(require_user)):
        return await controller.get_by_id(ctx, id)

    @router.put("/{id}")
    async def update(
        id: str,
        body: Any = Body(...),
        ctx: RequestContext = Depends(require_manager),
    ):
        return await controller.update(ctx, id, body)

    @router.delete("/{id}")
    async def delete(id: str, ctx: RequestContext = Depends(require_manager)):
        return await controller.delete(ctx, id)

    @router.patch("/{id}/status")
    async def change_status(id: str, ctx: RequestContext = Depends(require_manager)):
        return await controller.change_status(ctx, id)

    return router
