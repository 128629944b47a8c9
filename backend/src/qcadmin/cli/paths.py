"""Path and store helpers shared by CLI commands."""

from __future__ import annotations

from pathlib import Path

from qcadmin.config import Settings, resolve_base_path
from qcadmin.persistence import Database, DatabaseConfig


def resolve_paths() -> tuple[Path, Path, Path]:
    """Resolve base, metadata and migrations paths from cwd."""
    base_path = resolve_base_path()
    settings = Settings.from_env(base_path)
    return base_path, settings.metadata_path, base_path / "migrations"


def open_database(create_schema: bool = False) -> Database:
    db = Database(DatabaseConfig.from_env(resolve_base_path()))
    db.connect()
    if create_schema:
        db.create_schema()
    return db
