"""Core value types shared by every layer of the entity framework."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

# Columns every serial-id entity may be ordered by.
BASE_SORTABLE_FIELDS = (
    "id",
    "name",
    "description",
    "is_active",
    "created_at",
    "updated_at",
    "created_by",
    "updated_by",
)

DEFAULT_SORT_FIELD = "name"

# Audit columns maintained by the model, never accepted from callers.
SYSTEM_FIELDS = frozenset({"id", "created_by", "updated_by", "created_at", "updated_at"})


class Operation(Enum):
    """The kind of write being validated."""

    CREATE = "create"
    UPDATE = "update"


class SortOrder(Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: str | None) -> SortOrder:
        """DESC only when explicitly requested, ASC otherwise."""
        if value and value.strip().upper() == "DESC":
            return cls.DESC
        return cls.ASC


@dataclass(frozen=True)
class EntityConfig:
    """Immutable descriptor for one table-backed entity.

    Attributes:
        entity_name: Display name used in messages ("SamplingReason")
        table_name: Store table name
        api_path: Router prefix ("/api/sampling-reasons")
        searchable_fields: Columns matched by the free-text search
        default_limit: Page size when the caller gives none
        max_limit: Upper bound for any page size
        sortable_fields: Allow-list for ORDER BY
    """

    entity_name: str
    table_name: str
    api_path: str
    searchable_fields: tuple[str, ...] = ("name", "description")
    default_limit: int = 20
    max_limit: int = 100
    sortable_fields: tuple[str, ...] = BASE_SORTABLE_FIELDS

    def __post_init__(self) -> None:
        if not isinstance(self.default_limit, int) or self.default_limit < 1:
            raise ValueError(f"{self.entity_name}: default_limit must be a positive integer")
        if not isinstance(self.max_limit, int) or self.max_limit < 1:
            raise ValueError(f"{self.entity_name}: max_limit must be a positive integer")
        if self.default_limit > self.max_limit:
            raise ValueError(
                f"{self.entity_name}: default_limit ({self.default_limit}) "
                f"exceeds max_limit ({self.max_limit})"
            )
        if not self.api_path.startswith("/"):
            raise ValueError(f"{self.entity_name}: api_path must start with '/'")

    def resolve_sort_field(self, sort_by: str | None) -> str:
        """Return sort_by if allow-listed, otherwise the default sort column."""
        if sort_by in self.sortable_fields:
            return sort_by
        return DEFAULT_SORT_FIELD


@dataclass
class QueryOptions:
    """Per-call list options. Unset values are filled by the service."""

    page: int | None = None
    limit: int | None = None
    search: str | None = None
    sort_by: str | None = None
    sort_order: SortOrder | None = None
    is_active: bool | None = None

    @property
    def offset(self) -> int:
        return ((self.page or 1) - 1) * (self.limit or 0)


@dataclass
class Pagination:
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    def to_dict(self) -> dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


@dataclass
class PaginatedResult(Generic[T]):
    data: list[T] = field(default_factory=list)
    pagination: Pagination = field(default_factory=lambda: Pagination(1, 1, 0))

    def map(self, fn) -> PaginatedResult[Any]:
        """Return a copy with fn applied to each row."""
        return PaginatedResult(data=[fn(row) for row in self.data], pagination=self.pagination)
