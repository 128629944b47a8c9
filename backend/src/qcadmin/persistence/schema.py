"""Table definitions for every store-backed resource.

The Alembic migrations under migrations/versions mirror these tables;
create_schema() is used by tests and local development.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Engine,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()


def _entity_columns(name_unique: bool = True) -> list[Column]:
    """Columns shared by every serial-id entity table."""
    return [
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", String(100), nullable=False, unique=name_unique),
        Column("description", Text, nullable=True),
        Column("is_active", Boolean, nullable=False, default=True),
        Column("created_by", Integer, nullable=False, default=0),
        Column("updated_by", Integer, nullable=False, default=0),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
    ]


users = Table(
    "users",
    metadata,
    *_entity_columns(name_unique=False),
    Column("username", String(50), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("role", String(20), nullable=False, default="user"),
    Column("position", String(30), nullable=True),
    Column("last_login", DateTime(timezone=True), nullable=True),
)

sessions = Table(
    "sessions",
    metadata,
    Column("sid", String(64), primary_key=True),
    Column("user_id", Integer, nullable=True, index=True),
    Column("data", Text, nullable=False),
    Column("remember_me", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("last_activity", DateTime(timezone=True), nullable=False),
    Column("expires_at", DateTime(timezone=True), nullable=False, index=True),
)

sampling_reasons = Table(
    "sampling_reasons",
    metadata,
    *_entity_columns(),
)

defects = Table(
    "defects",
    metadata,
    *_entity_columns(),
    Column("defect_group", String(100), nullable=True),
)

sysconfig = Table(
    "sysconfig",
    metadata,
    *_entity_columns(),
    Column("fvi_lot_qty", Text, nullable=False),
    Column("general_oqa_qty", Text, nullable=False),
    Column("crack_oqa_qty", Text, nullable=False),
    Column("general_siv_qty", Text, nullable=False),
    Column("crack_siv_qty", Text, nullable=False),
    Column("defect_type", Text, nullable=False),
    Column("defect_group", Text, nullable=False),
    Column("shift", Text, nullable=False),
    Column("site", Text, nullable=False),
    Column("tabs", Text, nullable=False),
    Column("product_type", Text, nullable=False),
    Column("product_families", Text, nullable=False),
    Column("smtp_server", String(100), nullable=True),
    Column("smtp_port", Integer, nullable=False, default=587),
    Column("smtp_username", String(100), nullable=True),
    Column("smtp_password", String(100), nullable=True),
    Column("defect_notification_emails", Text, nullable=True),
    Column("enable_defect_email_notification", Boolean, nullable=False, default=False),
    Column("mssql_server", String(100), nullable=True),
    Column("mssql_port", Integer, nullable=False, default=1433),
    Column("mssql_database", String(100), nullable=True),
    Column("mssql_username", String(100), nullable=True),
    Column("mssql_password", String(100), nullable=True),
    Column("system_name", String(100), nullable=True),
    Column("news", Text, nullable=True),
)


def create_schema(engine: Engine) -> None:
    """Create any missing tables."""
    metadata.create_all(engine)
