"""Core types and error taxonomy."""

from qcadmin.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ConstraintError,
    ErrorKind,
    QCAdminError,
    ServiceResult,
    StoreError,
)
from qcadmin.core.types import (
    BASE_SORTABLE_FIELDS,
    EntityConfig,
    Operation,
    PaginatedResult,
    Pagination,
    QueryOptions,
    SortOrder,
)

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "BASE_SORTABLE_FIELDS",
    "ConflictError",
    "ConstraintError",
    "EntityConfig",
    "ErrorKind",
    "Operation",
    "PaginatedResult",
    "Pagination",
    "QCAdminError",
    "QueryOptions",
    "ServiceResult",
    "SortOrder",
    "StoreError",
]
