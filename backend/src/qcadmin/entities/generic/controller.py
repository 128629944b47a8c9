"""Generic serial-id entity controller.

Turns raw HTTP inputs into typed service arguments and service results
into envelope responses. Status codes come from ErrorKind, never from
message text.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from fastapi.responses import JSONResponse

from qcadmin.api.responses import envelope
from qcadmin.auth.types import RequestContext
from qcadmin.core.errors import ErrorKind, ServiceResult
from qcadmin.core.types import EntityConfig, PaginatedResult, QueryOptions, SortOrder

logger = logging.getLogger(__name__)

GENERIC_SYSTEM_ERROR = "Internal server error"


class ParameterError(ValueError):
    """A path or query parameter could not be parsed."""


def parse_boolean(value: str | None) -> bool | None:
    """Only the literals "true" and "false" are booleans."""
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except (ValueError, AttributeError):
        return None


def parse_id(raw: str | None) -> int:
    """Parse an id path parameter.

    Raises:
        ParameterError: when missing or not a positive integer
    """
    if raw is None or raw == "":
        raise ParameterError("ID parameter is required")
    value = raw.strip()
    if not (value.isascii() and value.isdigit()) or int(value) < 1:
        raise ParameterError("Invalid ID parameter. Must be a positive integer")
    return int(value)


class EntityController:
    """HTTP translation for one entity; holds no business rules."""

    def __init__(self, service: Any, presenter: Callable[[dict], dict] | None = None):
        self.service = service
        self.presenter = presenter

    @property
    def config(self) -> EntityConfig:
        return self.service.config

    @property
    def entity_name(self) -> str:
        return self.config.entity_name

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse_query_options(self, params: Mapping[str, str]) -> QueryOptions:
        """Build list options with safe fallbacks for every parameter."""
        page = parse_int(params.get("page")) or 1
        limit = parse_int(params.get("limit")) or self.config.default_limit
        return QueryOptions(
            page=max(1, page),
            limit=max(1, min(limit, self.config.max_limit)),
            search=params.get("search") or None,
            sort_by=params.get("sortBy") or None,
            sort_order=SortOrder.parse(params.get("sortOrder")),
            is_active=parse_boolean(params.get("isActive")),
        )

    def required_param(self, params: Mapping[str, str], name: str) -> str:
        value = params.get(name)
        if value is None or not value.strip():
            raise ParameterError(f"{name} parameter is required")
        return value

    def required_boolean(self, params: Mapping[str, str], name: str) -> bool:
        value = parse_boolean(self.required_param(params, name))
        if value is None:
            raise ParameterError(f"{name} must be true or false")
        return value

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def bad_request(self, message: str) -> JSONResponse:
        return envelope(400, success=False, message=message, error=message)

    def failure(self, result: ServiceResult, message: str | None = None) -> JSONResponse:
        kind = result.kind or ErrorKind.SYSTEM
        error = result.error
        if kind is ErrorKind.SYSTEM:
            logger.error("%s request failed: %s", self.entity_name, result.error)
            error = GENERIC_SYSTEM_ERROR
        return envelope(
            kind.status_code,
            success=False,
            message=message or error,
            error=error,
        )

    def present(self, data: Any) -> Any:
        """Apply the presenter to a row or to every row of a list."""
        if self.presenter is None:
            return data
        if isinstance(data, dict):
            return self.presenter(data)
        if isinstance(data, list):
            return [self.present(item) for item in data]
        return data

    def respond(
        self,
        result: ServiceResult,
        *,
        status_code: int = 200,
        message: str | None = None,
        failure_message: str | None = None,
    ) -> JSONResponse:
        """Render a result; paginated data is split into data and pagination."""
        if not result.success:
            return self.failure(result, failure_message)
        data = result.data
        if isinstance(data, PaginatedResult):
            return envelope(
                status_code,
                data=self.present(data.data),
                pagination=data.pagination,
                message=message,
                **result.extra,
            )
        return envelope(status_code, data=self.present(data), message=message, **result.extra)

    def denied(self, ctx: RequestContext, action: str) -> JSONResponse | None:
        """Ask the service's permission hook; a response means refused."""
        refusal = self.service.authorize(ctx.user, action)
        if refusal is None:
            return None
        return self.failure(refusal)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def create(self, ctx: RequestContext, body: Any) -> JSONResponse:
        refused = self.denied(ctx, "create")
        if refused is not None:
            return refused
        result = await self.service.create(body, ctx.user_id)
        return self.respond(
            result,
            status_code=201,
            message=f"{self.entity_name} created successfully",
            failure_message=f"Failed to create {self.entity_name}",
        )

    async def get_all(self, ctx: RequestContext, params: Mapping[str, str]) -> JSONResponse:
        refused = self.denied(ctx, "read")
        if refused is not None:
            return refused
        result = await self.service.get_all(self.parse_query_options(params))
        return self.respond(result)

    async def get_by_id(self, ctx: RequestContext, raw_id: str) -> JSONResponse:
        try:
            id = parse_id(raw_id)
        except ParameterError as exc:
            return self.bad_request(str(exc))
        refused = self.denied(ctx, "read")
        if refused is not None:
            return refused
        return self.respond(await self.service.get_by_id(id))

    async def update(self, ctx: RequestContext, raw_id: str, body: Any) -> JSONResponse:
        try:
            id = parse_id(raw_id)
        except ParameterError as exc:
            return self.bad_request(str(exc))
        refused = self.denied(ctx, "update")
        if refused is not None:
            return refused
        result = await self.service.update(id, body, ctx.user_id)
        return self.respond(
            result,
            message=f"{self.entity_name} updated successfully",
            failure_message=f"Failed to update {self.entity_name}",
        )

    async def delete(self, ctx: RequestContext, raw_id: str) -> JSONResponse:
        try:
            id = parse_id(raw_id)
        except ParameterError as exc:
            return self.bad_request(str(exc))
        refused = self.denied(ctx, "delete")
        if refused is not None:
            return refused
        result = await self.service.delete(id, ctx.user_id)
        return self.respond(
            result,
            message=f"{self.entity_name} deleted successfully",
            failure_message=f"Failed to delete {self.entity_name}",
        )

    async def change_status(self, ctx: RequestContext, raw_id: str) -> JSONResponse:
        try:
            id = parse_id(raw_id)
        except ParameterError as exc:
            return self.bad_request(str(exc))
        refused = self.denied(ctx, "change_status")
        if refused is not None:
            return refused
        result = await self.service.change_status(id, ctx.user_id)
        return self.respond(
            result,
            message=f"{self.entity_name} status changed successfully",
            failure_message=f"Failed to change {self.entity_name} status",
        )

    async def get_by_name(self, ctx: RequestContext, params: Mapping[str, str]) -> JSONResponse:
        try:
            name = self.required_param(params, "name")
        except ParameterError as exc:
            return self.bad_request(str(exc))
        refused = self.denied(ctx, "read")
        if refused is not None:
            return refused
        result = await self.service.get_by_name(name, self.parse_query_options(params))
        return self.respond(result)

    async def filter_status(self, ctx: RequestContext, params: Mapping[str, str]) -> JSONResponse:
        try:
            status = self.required_boolean(params, "status")
        except ParameterError as exc:
            return self.bad_request(str(exc))
        refused = self.denied(ctx, "read")
        if refused is not None:
            return refused
        result = await self.service.filter_status(status, self.parse_query_options(params))
        return self.respond(result)

    async def search(self, ctx: RequestContext, params: Mapping[str, str]) -> JSONResponse:
        try:
            pattern = self.required_param(params, "pattern")
        except ParameterError as exc:
            return self.bad_request(str(exc))
        refused = self.denied(ctx, "read")
        if refused is not None:
            return refused
        result = await self.service.search(pattern, self.parse_query_options(params))
        return self.respond(result)

    async def health(self, ctx: RequestContext) -> JSONResponse:
        result = await self.service.health()
        if not result.success:
            logger.error("[%s] %s health check failed: %s", ctx.request_id, self.entity_name, result.error)
            return envelope(503, success=False, message="Health check failed", error=GENERIC_SYSTEM_ERROR)
        status_code = 503 if result.data.get("status") == "unhealthy" else 200
        return envelope(status_code, data=result.data)

    async def statistics(self, ctx: RequestContext) -> JSONResponse:
        refused = self.denied(ctx, "read")
        if refused is not None:
            return refused
        return self.respond(await self.service.statistics())


class ControllerWrapper:
    """Base for entity controllers that compose an EntityController.

    Handlers not defined on the wrapper are forwarded to ``base``.
    """

    def __init__(self, base: EntityController):
        self.base = base

    def __getattr__(self, name: str) -> Any:
        return getattr(self.base, name)
