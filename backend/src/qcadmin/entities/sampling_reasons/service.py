"""Sampling reason rules."""

from __future__ import annotations

import re
from typing import Any

from qcadmin.core.types import Operation
from qcadmin.entities.generic.service import UniqueNameService

NAME_PATTERN = re.compile(r"^[A-Za-z0-9 \-_.]+$")
DESCRIPTION_MAX_LENGTH = 500


def validate_sampling_reason(data: dict[str, Any], operation: Operation) -> list[str]:
    errors: list[str] = []

    name = data.get("name")
    if isinstance(name, str) and name.strip():
        if name != name.strip():
            errors.append("Sampling reason name cannot have leading or trailing spaces")
        if not NAME_PATTERN.match(name):
            errors.append(
                "Sampling reason name can only contain letters, numbers, spaces, "
                "hyphens, underscores, and dots"
            )

    description = data.get("description")
    if isinstance(description, str):
        if description == "":
            errors.append(
                "Sampling reason description cannot be empty if provided. "
                "Use null to remove description"
            )
        elif len(description) > DESCRIPTION_MAX_LENGTH:
            errors.append(
                f"Sampling reason description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
            )

    return errors


class SamplingReasonService(UniqueNameService):
    label = "Sampling reason"
