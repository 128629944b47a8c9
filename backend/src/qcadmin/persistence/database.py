"""Pooled store access for async request handlers.

SQLAlchemy Core runs synchronously, so every round-trip is dispatched to
the thread pool. One request waiting on the store never blocks another.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from sqlalchemy import Connection, Engine, create_engine, text
from sqlalchemy.sql import Executable
from starlette.concurrency import run_in_threadpool

from qcadmin.persistence.config import DatabaseConfig
from qcadmin.persistence.schema import create_schema

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """Rows (as plain dicts) and the affected-row count of one statement."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None

    def scalar(self, default: Any = None) -> Any:
        row = self.first()
        if not row:
            return default
        value = next(iter(row.values()))
        return default if value is None else value


def _execute(conn: Connection, statement: Executable) -> QueryResult:
    result = conn.execute(statement)
    rows = [dict(row._mapping) for row in result] if result.returns_rows else []
    return QueryResult(rows=rows, rowcount=result.rowcount)


class Transaction:
    """Handle bound to one pooled connection for the life of a transaction."""

    def __init__(self, conn: Connection):
        self._conn = conn

    async def query(self, statement: Executable) -> QueryResult:
        return await run_in_threadpool(_execute, self._conn, statement)


class Database:
    """Connection pool plus single-statement and transactional execution."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine: Engine | None = None

    def connect(self) -> None:
        """Create the engine (and the SQLite parent directory if needed)."""
        sqlite_path = self.config.sqlite_path
        if sqlite_path is not None:
            sqlite_path.parent.mkdir(parents=True, exist_ok=True)

        kwargs: dict[str, Any] = {"echo": self.config.echo, "pool_pre_ping": True}
        if self.config.is_postgresql:
            kwargs["pool_size"] = self.config.pool_size
        self.engine = create_engine(self.config.sqlalchemy_url, **kwargs)
        logger.info("Database engine created for %s", self.engine.url.render_as_string())

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None

    def create_schema(self) -> None:
        create_schema(self._require_engine())

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise RuntimeError("Database not connected")
        return self.engine

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run(self, statement: Executable) -> QueryResult:
        with self._require_engine().begin() as conn:
            return _execute(conn, statement)

    async def query(self, statement: Executable) -> QueryResult:
        """Execute one statement in its own short transaction."""
        return await run_in_threadpool(self._run, statement)

    async def ping(self) -> bool:
        """Round-trip a trivial query; raises if the store is unreachable."""
        result = await self.query(text("SELECT 1 AS ok"))
        return result.scalar() == 1

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """Hold one connection across several statements.

        Commits when the block exits normally, rolls back on any
        exception, and always returns the connection to the pool.
        """
        engine = self._require_engine()
        conn = await run_in_threadpool(engine.connect)
        try:
            trans = await run_in_threadpool(conn.begin)
            try:
                yield Transaction(conn)
            except BaseException:
                await run_in_threadpool(trans.rollback)
                raise
            await run_in_threadpool(trans.commit)
        finally:
            await run_in_threadpool(conn.close)
