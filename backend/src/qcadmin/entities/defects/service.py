"""Defect rules and group queries."""

from __future__ import annotations

import re
from typing import Any

from qcadmin.core.errors import ErrorKind, ServiceResult
from qcadmin.core.types import Operation, QueryOptions
from qcadmin.entities.generic.service import UniqueNameService

NAME_PATTERN = re.compile(r"^[A-Za-z0-9\s\-_.()]+$")
NAME_MIN_LENGTH = 2
DESCRIPTION_MAX_LENGTH = 5000
GROUP_MAX_LENGTH = 100


def validate_defect(data: dict[str, Any], operation: Operation) -> list[str]:
    errors: list[str] = []

    name = data.get("name")
    if isinstance(name, str) and name.strip():
        trimmed = name.strip()
        if len(trimmed) < NAME_MIN_LENGTH:
            errors.append(f"Defect name must be at least {NAME_MIN_LENGTH} characters long")
        elif not NAME_PATTERN.match(trimmed):
            errors.append("Defect name contains invalid characters")
        elif re.search(r"\s{2,}", trimmed):
            errors.append("Defect name cannot contain multiple consecutive spaces")

    description = data.get("description")
    if isinstance(description, str):
        if description and not description.strip():
            errors.append("Description cannot be empty if provided")
        elif len(description) > DESCRIPTION_MAX_LENGTH:
            errors.append(f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")

    group = data.get("defect_group")
    if group is not None:
        if not isinstance(group, str):
            errors.append("Defect group must be a string")
        elif len(group) > GROUP_MAX_LENGTH:
            errors.append(f"Defect group cannot exceed {GROUP_MAX_LENGTH} characters")

    return errors


class DefectService(UniqueNameService):
    label = "Defect"

    async def get_by_group(self, group: Any, options: QueryOptions | None = None) -> ServiceResult:
        if not isinstance(group, str) or not group.strip():
            return ServiceResult.fail(ErrorKind.VALIDATION, "Defect group is required")
        try:
            result = await self.base.model.get_by_group(group, self.base.apply_defaults(options))
        except Exception as exc:
            return self.base.failure("list", exc)
        return ServiceResult.ok(
            result,
            searchInfo={
                "query": group.strip(),
                "searchType": "group",
                "resultCount": len(result.data),
            },
        )
