"""
metadata/validator.py: JSON Schema validation for entity YAML files.

Usage:
    from qcadmin.metadata.validator import validate_metadata_dir

    issues = validate_metadata_dir(Path("metadata"))
    for issue in issues:
        print(issue)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"


@dataclass
class ValidationIssue:
    """A single validation finding for a metadata YAML file."""

    file: Path
    message: str
    path: str = ""          # location within the document, e.g. "pagination/maxLimit"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


def _load_schema(name: str) -> dict[str, Any]:
    with (_SCHEMAS_DIR / name).open() as fh:
        return json.load(fh)


def _json_path(error: ValidationError) -> str:
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def validate_document(doc: Any, source: Path) -> list[ValidationIssue]:
    """Validate an already-parsed entity document."""
    if doc is None:
        return [ValidationIssue(file=source, message="File is empty or contains only whitespace")]

    validator = Draft202012Validator(_load_schema("entity.schema.json"))
    issues = [
        ValidationIssue(file=source, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=lambda e: list(e.path))
    ]

    # Cross-field rule the schema cannot express.
    pagination = doc.get("pagination") if isinstance(doc, dict) else None
    if isinstance(pagination, dict):
        default_limit = pagination.get("defaultLimit")
        max_limit = pagination.get("maxLimit")
        if isinstance(default_limit, int) and isinstance(max_limit, int) and default_limit > max_limit:
            issues.append(
                ValidationIssue(
                    file=source,
                    message=f"defaultLimit ({default_limit}) exceeds maxLimit ({max_limit})",
                    path="pagination",
                )
            )

    if isinstance(doc, dict) and not doc.get("searchableFields"):
        issues.append(
            ValidationIssue(
                file=source,
                message="No searchableFields declared; search endpoints will reject requests",
                severity="warning",
            )
        )
    return issues


def validate_yaml_file(yaml_path: Path) -> list[ValidationIssue]:
    """Parse and validate one entity YAML file.

    Returns:
        A list of ValidationIssue objects (empty on success).
    """
    try:
        with yaml_path.open() as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")]
    return validate_document(raw, yaml_path)


def validate_metadata_dir(metadata_dir: Path) -> list[ValidationIssue]:
    """Validate every YAML file under metadata_dir/entities."""
    entities_dir = metadata_dir / "entities"
    if not entities_dir.is_dir():
        return [ValidationIssue(file=entities_dir, message="Entity metadata directory not found")]

    issues: list[ValidationIssue] = []
    for yaml_path in sorted(entities_dir.glob("*.yaml")):
        file_issues = validate_yaml_file(yaml_path)
        for issue in file_issues:
            logger.debug("%s", issue)
        issues.extend(file_issues)
    return issues
