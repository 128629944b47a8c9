"""Session authentication, role checks and request tracking."""

from qcadmin.auth.dependencies import (
    get_optional_session,
    get_request_context,
    require_admin,
    require_manager,
    require_role,
    require_session,
    require_user,
    role_satisfies,
)
from qcadmin.auth.middleware import RequestTrackingMiddleware, get_request_id
from qcadmin.auth.password import PasswordService
from qcadmin.auth.sessions import SessionRecord, SessionStore
from qcadmin.auth.types import ROLE_PERMISSIONS, RequestContext, Role, SessionUser

__all__ = [
    "PasswordService",
    "ROLE_PERMISSIONS",
    "RequestContext",
    "RequestTrackingMiddleware",
    "Role",
    "SessionRecord",
    "SessionStore",
    "SessionUser",
    "get_optional_session",
    "get_request_context",
    "get_request_id",
    "require_admin",
    "require_manager",
    "require_role",
    "require_session",
    "require_user",
    "role_satisfies",
]
