"""Alembic migrations driven programmatically."""

from qcadmin.migrations.runner import (
    MigrationInfo,
    apply_migrations,
    get_migration_status,
    rollback_migration,
    stamp_migration,
)

__all__ = [
    "MigrationInfo",
    "apply_migrations",
    "get_migration_status",
    "rollback_migration",
    "stamp_migration",
]
