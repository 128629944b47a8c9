"""Generic serial-id entity model.

Translates an EntityConfig plus query options into SQLAlchemy Core
statements. Every statement binds caller values as parameters; column
names only ever come from the table definition and the sort allow-list.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from sqlalchemy import Table, and_, case, delete, func, insert, not_, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.sql import ColumnElement, Executable

from qcadmin.core.errors import ConflictError, ConstraintError, StoreError
from qcadmin.core.types import (
    SYSTEM_FIELDS,
    EntityConfig,
    PaginatedResult,
    Pagination,
    QueryOptions,
    SortOrder,
)
from qcadmin.persistence.database import Database, QueryResult
from qcadmin.persistence.schema import metadata

logger = logging.getLogger(__name__)

Row = dict[str, Any]

RECENT_ACTIVITY_DAYS = 30
TOP_CREATORS_LIMIT = 5


class Executor(Protocol):
    """Anything that can run a statement: the Database or an open Transaction."""

    async def query(self, statement: Executable) -> QueryResult: ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the driver reports a UNIQUE constraint (SQLSTATE 23505 on postgres)."""
    if getattr(exc.orig, "sqlstate", None) == "23505":
        return True
    return "unique" in str(exc.orig).lower()


def like_pattern(term: str) -> str:
    """Wrap term in % wildcards, escaping LIKE metacharacters it contains."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _isoformat(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class EntityModel:
    """CRUD, search, health and statistics over one entity table."""

    def __init__(
        self,
        config: EntityConfig,
        db: Database,
        table: Table | None = None,
        hidden_columns: tuple[str, ...] = (),
    ):
        self.config = config
        self.db = db
        self.hidden_columns = frozenset(hidden_columns)
        if table is None:
            if config.table_name not in metadata.tables:
                raise ValueError(f"No table definition for '{config.table_name}'")
            table = metadata.tables[config.table_name]
        self.table = table

        columns = set(self.table.c.keys())
        unknown = [f for f in (*config.searchable_fields, *config.sortable_fields) if f not in columns]
        if unknown:
            raise ValueError(
                f"{config.entity_name}: fields {unknown} are not columns of '{config.table_name}'"
            )
        self.writable_columns = frozenset(columns - SYSTEM_FIELDS)

    @property
    def entity_name(self) -> str:
        return self.config.entity_name

    # ------------------------------------------------------------------
    # Execution helpers
    # ------------------------------------------------------------------

    async def run(
        self,
        statement: Executable,
        action: str,
        executor: Executor | None = None,
    ) -> QueryResult:
        """Execute a statement, translating store errors.

        Raises:
            ConflictError: on a uniqueness violation
            ConstraintError: on any other integrity violation (NOT NULL, CHECK)
            StoreError: on any other store failure
        """
        try:
            return await (executor or self.db).query(statement)
        except IntegrityError as exc:
            logger.warning("%s %s violated a constraint: %s", self.entity_name, action, exc.orig)
            if not is_unique_violation(exc):
                raise ConstraintError(
                    f"{self.entity_name} data violates a required field or constraint"
                ) from exc
            raise ConflictError(
                f"{self.entity_name} with this name already exists"
            ) from exc
        except SQLAlchemyError as exc:
            logger.error("%s %s failed: %s", self.entity_name, action, exc)
            raise StoreError(f"Failed to {action} {self.entity_name}: {exc}") from exc

    def select_columns(self) -> list[ColumnElement]:
        """Columns returned by reads and RETURNING clauses."""
        return [c for c in self.table.c if c.name not in self.hidden_columns]

    def search_clause(self, term: str, fields: tuple[str, ...] | None = None) -> ColumnElement:
        pattern = like_pattern(term)
        fields = fields or self.config.searchable_fields
        return or_(*(self.table.c[f].ilike(pattern, escape="\\") for f in fields))

    def list_conditions(self, options: QueryOptions) -> list[ColumnElement]:
        conditions: list[ColumnElement] = []
        if options.is_active is not None:
            conditions.append(self.table.c.is_active == options.is_active)
        if options.search and self.config.searchable_fields:
            conditions.append(self.search_clause(options.search))
        return conditions

    def order_by(self, options: QueryOptions) -> list[ColumnElement]:
        column = self.table.c[self.config.resolve_sort_field(options.sort_by)]
        direction = column.desc() if options.sort_order is SortOrder.DESC else column.asc()
        # id as a tie-breaker keeps page boundaries stable
        return [direction, self.table.c.id.asc()]

    async def paginate(
        self,
        conditions: list[ColumnElement],
        options: QueryOptions,
    ) -> PaginatedResult[Row]:
        """Run the data and count queries for one page under the same predicate."""
        page = options.page or 1
        limit = options.limit or self.config.default_limit
        where = and_(*conditions) if conditions else None

        data_stmt = select(*self.select_columns()).order_by(*self.order_by(options))
        count_stmt = select(func.count().label("total")).select_from(self.table)
        if where is not None:
            data_stmt = data_stmt.where(where)
            count_stmt = count_stmt.where(where)
        data_stmt = data_stmt.limit(limit).offset(replace(options, page=page, limit=limit).offset)

        rows = await self.run(data_stmt, "list")
        total = await self.run(count_stmt, "count")
        return PaginatedResult(
            data=rows.rows,
            pagination=Pagination(page=page, limit=limit, total=int(total.scalar(0))),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(self, id: int, executor: Executor | None = None) -> Row | None:
        stmt = select(*self.select_columns()).where(self.table.c.id == id)
        result = await self.run(stmt, "get", executor)
        return result.first()

    async def get_all(self, options: QueryOptions) -> PaginatedResult[Row]:
        return await self.paginate(self.list_conditions(options), options)

    async def get_by_name(self, name: str, options: QueryOptions) -> PaginatedResult[Row]:
        return await self.paginate([self.search_clause(name, ("name",))], options)

    async def filter_status(self, status: bool, options: QueryOptions) -> PaginatedResult[Row]:
        return await self.paginate([self.table.c.is_active == status], options)

    async def search(self, pattern: str, options: QueryOptions) -> PaginatedResult[Row]:
        fields = tuple(f for f in ("name", "description") if f in self.table.c)
        return await self.paginate([self.search_clause(pattern, fields)], options)

    async def count(self, options: QueryOptions | None = None) -> int:
        conditions = self.list_conditions(options or QueryOptions())
        stmt = select(func.count().label("total")).select_from(self.table)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        result = await self.run(stmt, "count")
        return int(result.scalar(0))

    async def exists(
        self,
        column: str,
        value: str,
        exclude_id: int | None = None,
        executor: Executor | None = None,
    ) -> bool:
        """Case-insensitive existence check on a text column."""
        col = self.table.c[column]
        stmt = select(self.table.c.id).where(func.lower(col) == value.strip().lower())
        if exclude_id is not None:
            stmt = stmt.where(self.table.c.id != exclude_id)
        result = await self.run(stmt.limit(1), "check", executor)
        return result.first() is not None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert_values(self, data: dict[str, Any], user_id: int) -> dict[str, Any]:
        now = utcnow()
        values = {k: v for k, v in data.items() if k in self.writable_columns}
        values.setdefault("description", "")
        if values.get("is_active") is None:
            values["is_active"] = True
        values.update(created_by=user_id, updated_by=user_id, created_at=now, updated_at=now)
        return values

    async def create(
        self,
        data: dict[str, Any],
        user_id: int,
        executor: Executor | None = None,
    ) -> Row:
        stmt = (
            insert(self.table)
            .values(**self.insert_values(data, user_id))
            .returning(*self.select_columns())
        )
        result = await self.run(stmt, "create", executor)
        row = result.first()
        if row is None:
            raise StoreError(f"Failed to create {self.entity_name}: no row returned")
        return row

    async def update(
        self,
        id: int,
        data: dict[str, Any],
        user_id: int,
        executor: Executor | None = None,
    ) -> Row | None:
        """Set only the fields present in data; None when no row matched."""
        values = {k: v for k, v in data.items() if k in self.writable_columns}
        values.update(updated_by=user_id, updated_at=utcnow())
        stmt = (
            update(self.table)
            .where(self.table.c.id == id)
            .values(**values)
            .returning(*self.select_columns())
        )
        result = await self.run(stmt, "update", executor)
        return result.first()

    async def delete(self, id: int, executor: Executor | None = None) -> bool:
        stmt = delete(self.table).where(self.table.c.id == id)
        result = await self.run(stmt, "delete", executor)
        return result.rowcount > 0

    async def change_status(self, id: int, user_id: int, executor: Executor | None = None) -> bool:
        """Flip is_active in one statement."""
        stmt = (
            update(self.table)
            .where(self.table.c.id == id)
            .values(
                is_active=not_(self.table.c.is_active),
                updated_by=user_id,
                updated_at=utcnow(),
            )
        )
        result = await self.run(stmt, "change status of", executor)
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Health and statistics
    # ------------------------------------------------------------------

    async def health(self) -> dict[str, Any]:
        """Connectivity probe plus record counts.

        Never raises: a failing store yields an 'unhealthy' report.
        """
        c = self.table.c
        timestamp = utcnow().isoformat()
        try:
            await self.db.ping()
            stmt = select(
                func.count().label("total"),
                func.sum(case((c.is_active, 1), else_=0)).label("active"),
                func.max(c.updated_at).label("last_updated"),
            ).select_from(self.table)
            row = (await self.run(stmt, "check health of")).first() or {}
        except Exception as exc:
            logger.error("%s health check failed: %s", self.entity_name, exc)
            return {
                "status": "unhealthy",
                "entity": self.entity_name,
                "timestamp": timestamp,
                "checks": {
                    "database": "disconnected",
                    "records": {"total": 0, "active": 0, "inactive": 0},
                    "lastUpdated": None,
                },
                "issues": [f"Database error: {exc}"],
            }

        total = int(row.get("total") or 0)
        active = int(row.get("active") or 0)
        issues = []
        if total == 0:
            issues.append(f"No {self.entity_name} records found")
        elif active == 0:
            issues.append(f"All {self.entity_name} records are inactive")

        return {
            "status": "warning" if issues else "healthy",
            "entity": self.entity_name,
            "timestamp": timestamp,
            "checks": {
                "database": "connected",
                "records": {"total": total, "active": active, "inactive": total - active},
                "lastUpdated": _isoformat(row.get("last_updated")),
            },
            "issues": issues,
        }

    async def statistics(self) -> dict[str, Any]:
        c = self.table.c
        now = utcnow()
        cutoff = now - timedelta(days=RECENT_ACTIVITY_DAYS)
        has_description = and_(c.description.is_not(None), func.trim(c.description) != "")

        totals_stmt = select(
            func.count().label("total"),
            func.sum(case((c.is_active, 1), else_=0)).label("active"),
            func.sum(case((c.created_at >= cutoff, 1), else_=0)).label("created_recent"),
            func.sum(
                case((and_(c.updated_at >= cutoff, c.updated_at != c.created_at), 1), else_=0)
            ).label("updated_recent"),
            func.sum(case((has_description, 1), else_=0)).label("with_description"),
        ).select_from(self.table)

        creators_stmt = (
            select(c.created_by, func.count().label("count"))
            .group_by(c.created_by)
            .order_by(func.count().desc(), c.created_by.asc())
            .limit(TOP_CREATORS_LIMIT)
        )

        row = (await self.run(totals_stmt, "compute statistics for")).first() or {}
        creators = await self.run(creators_stmt, "compute statistics for")

        total = int(row.get("total") or 0)
        active = int(row.get("active") or 0)
        with_description = int(row.get("with_description") or 0)
        return {
            "entity": self.entity_name,
            "timestamp": now.isoformat(),
            "totals": {"all": total, "active": active, "inactive": total - active},
            "recentActivity": {
                "createdLast30Days": int(row.get("created_recent") or 0),
                "updatedLast30Days": int(row.get("updated_recent") or 0),
            },
            "descriptions": {
                "withDescription": with_description,
                "withoutDescription": total - with_description,
            },
            "topCreators": [
                {"created_by": r["created_by"], "count": int(r["count"])} for r in creators.rows
            ],
        }


class ModelWrapper:
    """Base for entity models that compose an EntityModel.

    Operations not defined on the wrapper are forwarded to ``base``.
    """

    def __init__(self, base: EntityModel):
        self.base = base

    def __getattr__(self, name: str) -> Any:
        return getattr(self.base, name)
