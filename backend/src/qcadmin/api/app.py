"""FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from qcadmin.api.responses import error_envelope
from qcadmin.auth.endpoints import create_auth_router
from qcadmin.auth.middleware import REQUEST_ID_HEADER, RequestTrackingMiddleware
from qcadmin.auth.password import PasswordService
from qcadmin.auth.service import AuthService
from qcadmin.auth.sessions import SessionStore
from qcadmin.config import Settings, resolve_base_path
from qcadmin.core.errors import AuthenticationError, AuthorizationError
from qcadmin.entities.defects import build_defect_router
from qcadmin.entities.sampling_reasons import build_sampling_reason_router
from qcadmin.entities.sysconfig import build_sysconfig_router
from qcadmin.entities.users import build_user_router, build_user_service
from qcadmin.log_config import configure_logging
from qcadmin.metadata.loader import EntityConfigLoader
from qcadmin.persistence import Database, DatabaseConfig

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    settings: Settings = app.state.settings
    base_path = resolve_base_path()

    # Entity configurations; an invalid file aborts startup
    loader = EntityConfigLoader(settings.metadata_path)
    loader.load_all()
    logger.info("Loaded entity configurations: %s", ", ".join(loader.list_entities()))

    # Database (DATABASE_URL, QCADMIN_DB_PATH or data/qcadmin.db)
    db = Database(DatabaseConfig.from_env(base_path))
    db.connect()
    if settings.auto_create_schema:
        db.create_schema()

    passwords = PasswordService(rounds=settings.bcrypt_rounds)
    sessions = SessionStore(db, settings.session_max_age, settings.remember_me_max_age)
    app.state.db = db
    app.state.session_store = sessions

    users = build_user_service(loader.require_entity("User"), db, passwords, sessions)
    app.include_router(create_auth_router(AuthService(users, passwords, sessions)))
    app.include_router(build_user_router(users))
    app.include_router(build_sampling_reason_router(loader.require_entity("SamplingReason"), db))
    app.include_router(build_defect_router(loader.require_entity("Defect"), db))
    app.include_router(build_sysconfig_router(loader.require_entity("Sysconfig"), db))

    yield

    # Cleanup
    db.close()


def _request_headers(request: Request) -> dict[str, str]:
    request_id = getattr(request.state, "request_id", None)
    return {REQUEST_ID_HEADER: request_id} if request_id else {}


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; services are wired in the lifespan."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="QC Admin API", lifespan=lifespan)
    app.state.settings = settings

    # CORS for the frontend dev server; cookies need credentials
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTrackingMiddleware, slow_request_ms=settings.slow_request_ms)

    @app.exception_handler(AuthenticationError)
    async def authentication_error(request: Request, exc: AuthenticationError):
        return error_envelope(401, exc.message, exc.code, headers=_request_headers(request))

    @app.exception_handler(AuthorizationError)
    async def authorization_error(request: Request, exc: AuthorizationError):
        return error_envelope(403, exc.message, exc.code, exc.meta, headers=_request_headers(request))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        details = "; ".join(str(e.get("msg", "")) for e in exc.errors())
        return error_envelope(
            400,
            "Invalid request",
            "VALIDATION_ERROR",
            {"details": details},
            headers=_request_headers(request),
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_envelope(
            500, "Internal server error", "INTERNAL_ERROR", headers=_request_headers(request)
        )

    return app


app = create_app()
