"""User accounts."""

from qcadmin.entities.users.model import UserModel
from qcadmin.entities.users.router import UserController, build_user_router, build_user_service
from qcadmin.entities.users.service import UserService, password_errors, validate_user

__all__ = [
    "UserController",
    "UserModel",
    "UserService",
    "build_user_router",
    "build_user_service",
    "password_errors",
    "validate_user",
]
