"""Database commands: init, upgrade, rollback, stamp and status."""

from pathlib import Path

import click

from qcadmin.cli.paths import open_database, resolve_paths
from qcadmin.migrations.runner import (
    apply_migrations,
    get_migration_status,
    rollback_migration,
    stamp_migration,
)
from qcadmin.persistence.config import DatabaseConfig


def _database_config(base_path: Path) -> DatabaseConfig:
    config = DatabaseConfig.from_env(base_path)
    if config.sqlite_path is not None:
        config.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
    return config


def _has_migrations(migrations_path: Path) -> bool:
    versions_dir = migrations_path / "versions"
    return versions_dir.exists() and any(versions_dir.glob("*.py"))


@click.group()
def db():
    """Database and migration commands."""
    pass


@db.command()
def init():
    """Create every table that does not exist yet.

    Tables created this way are not tracked by Alembic; run
    'qcadmin db stamp' afterwards to adopt migrations.
    """
    database = open_database(create_schema=True)
    try:
        click.echo(f"Schema created on: {database.config.url}")
    finally:
        database.close()


@db.command()
@click.option("--to", "target", default=None, help="Upgrade to a specific revision.")
def upgrade(target: str | None):
    """Apply pending migrations."""
    base_path, _, migrations_path = resolve_paths()
    if not _has_migrations(migrations_path):
        click.echo("No migrations found.")
        return

    config = _database_config(base_path)
    click.echo(f"Applying migrations to: {config.url}")
    try:
        apply_migrations(config.sqlalchemy_url, migrations_path, target=target)
    except Exception as e:
        click.echo(f"Error applying migrations: {e}", err=True)
        raise SystemExit(1)
    click.echo("Migrations applied successfully.")
    _print_status(config.sqlalchemy_url, migrations_path)


@db.command()
def rollback():
    """Rollback the last applied migration."""
    base_path, _, migrations_path = resolve_paths()
    config = _database_config(base_path)

    click.echo(f"Rolling back last migration on: {config.url}")
    try:
        rollback_migration(config.sqlalchemy_url, migrations_path)
    except Exception as e:
        click.echo(f"Error rolling back: {e}", err=True)
        raise SystemExit(1)
    click.echo("Rollback successful.")
    _print_status(config.sqlalchemy_url, migrations_path)


@db.command()
@click.option("--revision", "-r", default="head", help="Revision to stamp (default: head).")
def stamp(revision: str):
    """Mark migrations as applied without running them."""
    base_path, _, migrations_path = resolve_paths()
    if not _has_migrations(migrations_path):
        click.echo("No migrations found.")
        return

    config = _database_config(base_path)
    click.echo(f"Stamping database as revision '{revision}' (no migrations executed).")
    try:
        stamp_migration(config.sqlalchemy_url, migrations_path, revision=revision)
    except Exception as e:
        click.echo(f"Error stamping: {e}", err=True)
        raise SystemExit(1)
    click.echo("Stamp successful.")
    _print_status(config.sqlalchemy_url, migrations_path)


@db.command()
def status():
    """Show migration status (applied and pending)."""
    base_path, _, migrations_path = resolve_paths()
    if not _has_migrations(migrations_path):
        click.echo("No migrations found.")
        return
    _print_status(_database_config(base_path).sqlalchemy_url, migrations_path)


def _print_status(database_url: str, migrations_dir: Path) -> None:
    """Print migration status table."""
    try:
        infos = get_migration_status(database_url, migrations_dir)
    except Exception as e:
        click.echo(f"Could not read migration status: {e}", err=True)
        return

    applied_count = sum(1 for i in infos if i.is_applied)
    pending_count = len(infos) - applied_count

    click.echo(f"\nMigration status ({applied_count} applied, {pending_count} pending):")
    for info in infos:
        marker = "[x]" if info.is_applied else "[ ]"
        click.echo(f"  {marker} {info.revision}: {info.description}")
