"""Alembic migration runner.

Wraps Alembic's programmatic API to apply, rollback, stamp and inspect
migrations without a static alembic.ini file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect, text


@dataclass
class MigrationInfo:
    """One migration and whether the database has it."""

    revision: str
    description: str
    is_applied: bool


def _make_alembic_config(database_url: str, migrations_dir: Path) -> Config:
    cfg = Config()
    cfg.set_main_option("sqlalchemy.url", database_url)
    cfg.set_main_option("script_location", str(migrations_dir))
    _ensure_alembic_structure(migrations_dir)
    return cfg


def _ensure_alembic_structure(migrations_dir: Path) -> None:
    """Make migrations_dir a valid Alembic script location.

    Creates:
      migrations_dir/
        env.py (copy of our env.py)
        versions/
        script.py.mako
    """
    migrations_dir.mkdir(parents=True, exist_ok=True)
    (migrations_dir / "versions").mkdir(exist_ok=True)

    env_target = migrations_dir / "env.py"
    if not env_target.exists():
        env_target.write_text((Path(__file__).parent / "env.py").read_text())

    mako_target = migrations_dir / "script.py.mako"
    if not mako_target.exists():
        mako_target.write_text(_SCRIPT_MAKO_TEMPLATE)


_SCRIPT_MAKO_TEMPLATE = '''\
"""${message}"""

revision = ${repr(up_revision)}
down_revision = ${repr(down_revision)}

from alembic import op
import sqlalchemy as sa

def upgrade():
    ${upgrades if upgrades else "pass"}

def downgrade():
    ${downgrades if downgrades else "pass"}
'''


def apply_migrations(database_url: str, migrations_dir: Path, target: str | None = None) -> None:
    """Upgrade to target (default: head)."""
    cfg = _make_alembic_config(database_url, migrations_dir)
    command.upgrade(cfg, target or "head")


def stamp_migration(database_url: str, migrations_dir: Path, revision: str = "head") -> None:
    """Mark the database as being at revision without running any SQL.

    Used to adopt migrations on a database whose tables were created by
    create_schema().
    """
    cfg = _make_alembic_config(database_url, migrations_dir)
    command.stamp(cfg, revision)


def rollback_migration(database_url: str, migrations_dir: Path) -> None:
    """Downgrade by one revision."""
    cfg = _make_alembic_config(database_url, migrations_dir)
    command.downgrade(cfg, "-1")


def _current_heads(database_url: str) -> set[str]:
    engine = create_engine(database_url)
    try:
        with engine.connect() as conn:
            if not inspect(conn).has_table("alembic_version"):
                return set()
            result = conn.execute(text("SELECT version_num FROM alembic_version"))
            return {row[0] for row in result}
    finally:
        engine.dispose()


def get_migration_status(database_url: str, migrations_dir: Path) -> list[MigrationInfo]:
    """Every known migration in chronological order with its applied flag."""
    cfg = _make_alembic_config(database_url, migrations_dir)
    script = ScriptDirectory.from_config(cfg)

    # alembic_version only stores the head; everything below it is applied
    applied: set[str] = set()
    for head in _current_heads(database_url):
        rev = script.get_revision(head)
        while rev is not None:
            applied.add(rev.revision)
            rev = script.get_revision(str(rev.down_revision)) if rev.down_revision else None

    migrations = [
        MigrationInfo(revision=rev.revision, description=rev.doc or "", is_applied=rev.revision in applied)
        for rev in script.walk_revisions()
    ]
    migrations.reverse()
    return migrations
