"""Uniform JSON envelope for every endpoint."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from qcadmin.core.types import Pagination


class PaginationBody(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class ApiResponse(BaseModel):
    """Documented shape of every response body; absent members are omitted."""

    success: bool
    data: Any = None
    message: str | None = None
    error: str | None = None
    code: str | None = None
    pagination: PaginationBody | None = None
    searchInfo: dict[str, Any] | None = None
    meta: dict[str, Any] | None = None


def envelope(
    status_code: int = 200,
    *,
    success: bool = True,
    data: Any = None,
    message: str | None = None,
    error: str | None = None,
    code: str | None = None,
    pagination: Pagination | None = None,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    """Build a JSONResponse with only the populated envelope members."""
    body: dict[str, Any] = {"success": success}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if error is not None:
        body["error"] = error
    if code is not None:
        body["code"] = code
    if pagination is not None:
        body["pagination"] = pagination.to_dict()
    for key, value in extra.items():
        if value is not None:
            body[key] = value
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


def error_envelope(
    status_code: int,
    message: str,
    code: str,
    meta: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Envelope used by the auth pipeline and the global exception handlers."""
    return envelope(
        status_code,
        success=False,
        message=message,
        code=code,
        meta={"timestamp": datetime.now(timezone.utc).isoformat(), **(meta or {})},
        headers=headers,
    )
