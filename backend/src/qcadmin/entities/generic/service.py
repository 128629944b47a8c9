"""Generic serial-id entity service.

Validates input, fills in default query options and turns every model
outcome, including exceptions, into a ServiceResult. Nothing raised by
the model escapes this layer.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from qcadmin.auth.types import ROLE_PERMISSIONS, SessionUser
from qcadmin.core.errors import (
    ConflictError,
    ConstraintError,
    ErrorKind,
    ServiceResult,
    StoreError,
)
from qcadmin.core.types import EntityConfig, Operation, PaginatedResult, QueryOptions, SortOrder
from qcadmin.entities.generic.model import EntityModel

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 100

# A rule receives the payload and the operation and returns error messages.
ValidationRule = Callable[[dict[str, Any], Operation], list[str]]

# Permissions (any one of) each service action needs from the caller's role.
ACTION_PERMISSIONS: dict[str, tuple[str, ...]] = {
    "read": ("read",),
    "create": ("write",),
    "update": ("write",),
    "change_status": ("write",),
    "delete": ("delete",),
}


def is_valid_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class EntityService:
    """Business layer shared by every serial-id entity.

    Entity-specific services wrap an instance of this class and pass
    their own ValidationRules at construction time.
    """

    def __init__(
        self,
        model: EntityModel,
        rules: Iterable[ValidationRule] = (),
        permissions: Mapping[str, tuple[str, ...]] | None = None,
    ):
        self.model = model
        self.rules = list(rules)
        self.permissions = {**ACTION_PERMISSIONS, **(permissions or {})}

    @property
    def config(self) -> EntityConfig:
        return self.model.config

    @property
    def entity_name(self) -> str:
        return self.model.config.entity_name

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def validate(self, data: Any, operation: Operation) -> list[str]:
        """Baseline rules followed by every registered rule."""
        if not isinstance(data, dict):
            return ["Request body must be a JSON object"]

        errors: list[str] = []
        if operation is Operation.CREATE or "name" in data:
            name = data.get("name")
            if not isinstance(name, str) or not name.strip():
                errors.append("Name is required")
            elif len(name.strip()) > NAME_MAX_LENGTH:
                errors.append(f"Name must be a string with maximum {NAME_MAX_LENGTH} characters")

        description = data.get("description")
        if description is not None and not isinstance(description, str):
            errors.append("Description must be a string")

        if "is_active" in data and not isinstance(data["is_active"], bool):
            errors.append("is_active must be a boolean value")

        for rule in self.rules:
            errors.extend(rule(data, operation))
        return errors

    def has_permission(self, user: SessionUser | None, action: str) -> bool:
        """Whether the caller's role grants the permission an action needs."""
        if user is None:
            return False
        granted = ROLE_PERMISSIONS.get(user.role, ())
        return any(p in granted for p in self.permissions.get(action, (action,)))

    def authorize(self, user: SessionUser | None, action: str) -> ServiceResult | None:
        """Return a failed result when the caller may not perform action."""
        if self.has_permission(user, action):
            return None
        return ServiceResult.fail(
            ErrorKind.AUTHORIZATION,
            f"Insufficient permissions to {action.replace('_', ' ')} {self.entity_name}",
        )

    def apply_defaults(
        self,
        options: QueryOptions | None,
        default_active: bool | None = None,
    ) -> QueryOptions:
        options = options or QueryOptions()
        limit = options.limit or self.config.default_limit
        search = options.search.strip() if options.search else None
        return QueryOptions(
            page=max(options.page or 1, 1),
            limit=max(1, min(limit, self.config.max_limit)),
            search=search or None,
            sort_by=self.config.resolve_sort_field(options.sort_by),
            sort_order=options.sort_order or SortOrder.ASC,
            is_active=options.is_active if options.is_active is not None else default_active,
        )

    def failure(self, action: str, exc: Exception) -> ServiceResult:
        """Convert an exception raised below the service into a result."""
        if isinstance(exc, ConflictError):
            return ServiceResult.fail(ErrorKind.CONFLICT, exc.message)
        if isinstance(exc, ConstraintError):
            return ServiceResult.fail(ErrorKind.VALIDATION, exc.message)
        if isinstance(exc, StoreError):
            return ServiceResult.fail(ErrorKind.SYSTEM, exc.message)
        logger.exception("Unexpected error while trying to %s %s", action, self.entity_name)
        return ServiceResult.fail(ErrorKind.SYSTEM, f"Failed to {action} {self.entity_name}: {exc}")

    def invalid_id(self) -> ServiceResult:
        return ServiceResult.fail(ErrorKind.VALIDATION, "Invalid ID provided")

    def not_found(self) -> ServiceResult:
        return ServiceResult.fail(ErrorKind.NOT_FOUND, f"{self.entity_name} not found")

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def get_by_id(self, id: int) -> ServiceResult[dict]:
        if not is_valid_id(id):
            return self.invalid_id()
        try:
            row = await self.model.get_by_id(id)
        except Exception as exc:
            return self.failure("get", exc)
        if row is None:
            return self.not_found()
        return ServiceResult.ok(row)

    async def get_all(self, options: QueryOptions | None = None) -> ServiceResult[PaginatedResult]:
        try:
            result = await self.model.get_all(self.apply_defaults(options, default_active=True))
        except Exception as exc:
            return self.failure("list", exc)
        return ServiceResult.ok(result)

    async def create(self, data: dict[str, Any], user_id: int) -> ServiceResult[dict]:
        errors = self.validate(data, Operation.CREATE)
        if errors:
            return ServiceResult.invalid(errors)
        try:
            row = await self.model.create(data, user_id)
        except Exception as exc:
            return self.failure("create", exc)
        logger.info("%s %s created by user %s", self.entity_name, row.get("id"), user_id)
        return ServiceResult.ok(row)

    async def update(self, id: int, data: dict[str, Any], user_id: int) -> ServiceResult[dict]:
        if not is_valid_id(id):
            return self.invalid_id()
        errors = self.validate(data, Operation.UPDATE)
        if errors:
            return ServiceResult.invalid(errors)
        try:
            row = await self.model.update(id, data, user_id)
        except Exception as exc:
            return self.failure("update", exc)
        if row is None:
            return self.not_found()
        logger.info("%s %s updated by user %s", self.entity_name, id, user_id)
        return ServiceResult.ok(row)

    async def delete(self, id: int, user_id: int | None = None) -> ServiceResult[bool]:
        if not is_valid_id(id):
            return self.invalid_id()
        try:
            deleted = await self.model.delete(id)
        except Exception as exc:
            return self.failure("delete", exc)
        if not deleted:
            return ServiceResult.fail(
                ErrorKind.NO_ROWS_AFFECTED, f"{self.entity_name} not found or no changes made"
            )
        logger.info("%s %s deleted by user %s", self.entity_name, id, user_id)
        return ServiceResult.ok(True)

    async def change_status(self, id: int, user_id: int) -> ServiceResult[bool]:
        if not is_valid_id(id):
            return self.invalid_id()
        try:
            changed = await self.model.change_status(id, user_id)
        except Exception as exc:
            return self.failure("change status of", exc)
        if not changed:
            return ServiceResult.fail(
                ErrorKind.NO_ROWS_AFFECTED, f"{self.entity_name} not found or no changes made"
            )
        return ServiceResult.ok(True)

    async def count(self, options: QueryOptions | None = None) -> ServiceResult[int]:
        try:
            return ServiceResult.ok(await self.model.count(options))
        except Exception as exc:
            return self.failure("count", exc)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _search_result(self, result: PaginatedResult, query: Any, search_type: str) -> ServiceResult:
        return ServiceResult.ok(
            result,
            searchInfo={
                "query": query,
                "searchType": search_type,
                "resultCount": len(result.data),
            },
        )

    async def get_by_name(self, name: Any, options: QueryOptions | None = None) -> ServiceResult:
        if not isinstance(name, str) or not name.strip():
            return ServiceResult.fail(
                ErrorKind.VALIDATION, "Search name is required and must be a non-empty string"
            )
        try:
            result = await self.model.get_by_name(name.strip(), self.apply_defaults(options))
        except Exception as exc:
            return self.failure("search", exc)
        return self._search_result(result, name.strip(), "name")

    async def filter_status(self, status: Any, options: QueryOptions | None = None) -> ServiceResult:
        if not isinstance(status, bool):
            return ServiceResult.fail(
                ErrorKind.VALIDATION,
                "Status must be a boolean value (true or false)",
            )
        try:
            result = await self.model.filter_status(status, self.apply_defaults(options))
        except Exception as exc:
            return self.failure("filter", exc)
        return self._search_result(result, status, "status")

    async def search(self, pattern: Any, options: QueryOptions | None = None) -> ServiceResult:
        if not isinstance(pattern, str) or not pattern.strip():
            return ServiceResult.fail(
                ErrorKind.VALIDATION, "Search pattern is required and must be a non-empty string"
            )
        if not self.config.searchable_fields:
            return ServiceResult.fail(
                ErrorKind.VALIDATION, f"{self.entity_name} has no searchable fields"
            )
        try:
            result = await self.model.search(pattern.strip(), self.apply_defaults(options))
        except Exception as exc:
            return self.failure("search", exc)
        return self._search_result(result, pattern.strip(), "pattern")

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    async def health(self) -> ServiceResult[dict]:
        try:
            return ServiceResult.ok(await self.model.health())
        except Exception as exc:
            return self.failure("check health of", exc)

    async def statistics(self) -> ServiceResult[dict]:
        try:
            return ServiceResult.ok(await self.model.statistics())
        except Exception as exc:
            return self.failure("compute statistics for", exc)


class ServiceWrapper:
    """Base for entity services that compose an EntityService.

    Operations not defined on the wrapper are forwarded to ``base``.
    """

    def __init__(self, base: EntityService):
        self.base = base

    def __getattr__(self, name: str) -> Any:
        return getattr(self.base, name)


class UniqueNameService(ServiceWrapper):
    """Adds a case-insensitive name uniqueness check to create and update.

    Subclasses set ``label``, the human name used in conflict messages.
    """

    label = "Name"

    async def check_name_unique(self, name: Any, exclude_id: int | None = None) -> ServiceResult[bool]:
        if not isinstance(name, str) or not name.strip():
            return ServiceResult.fail(ErrorKind.VALIDATION, "Name is required")
        if exclude_id is not None and not is_valid_id(exclude_id):
            return self.base.invalid_id()
        try:
            taken = await self.base.model.exists("name", name, exclude_id)
        except Exception as exc:
            return self.base.failure("check", exc)
        return ServiceResult.ok(not taken)

    async def _conflict(self, data: dict[str, Any], exclude_id: int | None = None) -> ServiceResult | None:
        name = data.get("name")
        if not isinstance(name, str):
            return None
        result = await self.check_name_unique(name, exclude_id)
        if not result.success:
            return result
        if not result.data:
            return ServiceResult.fail(
                ErrorKind.CONFLICT, f"{self.label} name '{name.strip()}' already exists"
            )
        return None

    async def create(self, data: Any, user_id: int) -> ServiceResult[dict]:
        errors = self.base.validate(data, Operation.CREATE)
        if errors:
            return ServiceResult.invalid(errors)
        conflict = await self._conflict(data)
        if conflict is not None:
            return conflict
        return await self.base.create(data, user_id)

    async def update(self, id: int, data: Any, user_id: int) -> ServiceResult[dict]:
        if not is_valid_id(id):
            return self.base.invalid_id()
        errors = self.base.validate(data, Operation.UPDATE)
        if errors:
            return ServiceResult.invalid(errors)
        conflict = await self._conflict(data, exclude_id=id)
        if conflict is not None:
            return conflict
        return await self.base.update(id, data, user_id)
