"""Alembic environment for QC Admin migrations.

Configured programmatically by runner.py; no alembic.ini is needed.
"""

from alembic import context
from sqlalchemy import create_engine, pool

from qcadmin.persistence.schema import metadata


def run_migrations_offline():
    """Run migrations in 'offline' mode (SQL script generation)."""
    url = context.config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations in 'online' mode (direct database execution)."""
    url = context.config.get_main_option("sqlalchemy.url")

    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
