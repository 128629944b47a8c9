"""Load entity configurations from YAML files."""

from __future__ import annotations

from pathlib import Path

import yaml

from qcadmin.core.types import BASE_SORTABLE_FIELDS, EntityConfig
from qcadmin.metadata.validator import validate_document


class MetadataError(ValueError):
    """An entity YAML file is missing or invalid."""


class EntityConfigLoader:
    """Loads EntityConfig objects from metadata/entities/*.yaml."""

    def __init__(self, metadata_path: Path):
        self.metadata_path = metadata_path
        self.entities: dict[str, EntityConfig] = {}

    def load_all(self) -> None:
        """Load and validate every entity file.

        Raises:
            MetadataError: if any file fails validation
        """
        entities_path = self.metadata_path / "entities"
        if not entities_path.exists():
            raise MetadataError(f"Entity metadata directory not found: {entities_path}")

        for yaml_file in sorted(entities_path.glob("*.yaml")):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)

            errors = [i for i in validate_document(data, yaml_file) if i.severity == "error"]
            if errors:
                raise MetadataError("\n".join(str(e) for e in errors))

            config = self._resolve_entity(data)
            if config.entity_name in self.entities:
                raise MetadataError(f"Duplicate entity '{config.entity_name}' in {yaml_file}")
            self.entities[config.entity_name] = config

    def _resolve_entity(self, data: dict) -> EntityConfig:
        pagination = data.get("pagination") or {}
        try:
            return EntityConfig(
                entity_name=data["entity"],
                table_name=data["table"],
                api_path=data["apiPath"].rstrip("/"),
                searchable_fields=tuple(data.get("searchableFields", [])),
                default_limit=pagination.get("defaultLimit", 20),
                max_limit=pagination.get("maxLimit", 100),
                sortable_fields=tuple(data.get("sortableFields", BASE_SORTABLE_FIELDS)),
            )
        except ValueError as exc:
            raise MetadataError(str(exc)) from exc

    def get_entity(self, name: str) -> EntityConfig | None:
        return self.entities.get(name)

    def require_entity(self, name: str) -> EntityConfig:
        config = self.entities.get(name)
        if config is None:
            raise MetadataError(f"Entity '{name}' is not declared in {self.metadata_path}")
        return config

    def list_entities(self) -> list[str]:
        return list(self.entities.keys())
