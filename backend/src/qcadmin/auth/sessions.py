"""Server-side session store backed by the sessions table.

The cookie only carries the opaque ``sid``; identity lives in the row.
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete, func, insert, select, update

from qcadmin.auth.types import SessionUser
from qcadmin.persistence.database import Database
from qcadmin.persistence.schema import sessions

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class SessionRecord:
    sid: str
    data: dict[str, Any] = field(default_factory=dict)
    remember_me: bool = False
    created_at: datetime | None = None
    last_activity: datetime | None = None
    expires_at: datetime | None = None

    @property
    def user_data(self) -> dict[str, Any] | None:
        user = self.data.get("user")
        return user if isinstance(user, dict) else None


class SessionStore:
    """Creates, resolves, refreshes and destroys sessions."""

    def __init__(self, db: Database, max_age: int, remember_me_max_age: int):
        self.db = db
        self.max_age = max_age
        self.remember_me_max_age = remember_me_max_age

    def max_age_for(self, remember_me: bool) -> int:
        return self.remember_me_max_age if remember_me else self.max_age

    async def create(self, user: SessionUser, remember_me: bool = False) -> SessionRecord:
        now = _utcnow()
        record = SessionRecord(
            sid=secrets.token_urlsafe(32),
            data={"user": user.to_dict(), "loginTime": now.isoformat()},
            remember_me=remember_me,
            created_at=now,
            last_activity=now,
            expires_at=now + timedelta(seconds=self.max_age_for(remember_me)),
        )
        await self.db.query(
            insert(sessions).values(
                sid=record.sid,
                user_id=user.id,
                data=json.dumps(record.data),
                remember_me=remember_me,
                created_at=record.created_at,
                last_activity=record.last_activity,
                expires_at=record.expires_at,
            )
        )
        logger.info("Session created for user %s (remember_me=%s)", user.username, remember_me)
        return record

    async def get(self, sid: str | None) -> SessionRecord | None:
        """Resolve a live session; expired sessions are removed and yield None."""
        if not sid:
            return None
        result = await self.db.query(select(sessions).where(sessions.c.sid == sid))
        row = result.first()
        if row is None:
            return None

        expires_at = as_utc(row["expires_at"])
        if expires_at <= _utcnow():
            await self.destroy(sid)
            logger.info("Session %s... expired", sid[:8])
            return None

        try:
            data = json.loads(row["data"]) if row["data"] else {}
        except json.JSONDecodeError:
            logger.warning("Session %s... holds unreadable data", sid[:8])
            data = {}
        return SessionRecord(
            sid=sid,
            data=data if isinstance(data, dict) else {},
            remember_me=bool(row["remember_me"]),
            created_at=as_utc(row["created_at"]),
            last_activity=as_utc(row["last_activity"]),
            expires_at=expires_at,
        )

    async def touch(self, sid: str) -> None:
        """Record activity on a session."""
        await self.db.query(
            update(sessions).where(sessions.c.sid == sid).values(last_activity=_utcnow())
        )

    async def destroy(self, sid: str) -> bool:
        result = await self.db.query(delete(sessions).where(sessions.c.sid == sid))
        return result.rowcount > 0

    async def destroy_for_user(self, user_id: int, keep_sid: str | None = None) -> int:
        """Remove every session of a user, optionally sparing one."""
        stmt = delete(sessions).where(sessions.c.user_id == user_id)
        if keep_sid:
            stmt = stmt.where(sessions.c.sid != keep_sid)
        result = await self.db.query(stmt)
        return result.rowcount

    async def purge_expired(self) -> int:
        result = await self.db.query(delete(sessions).where(sessions.c.expires_at <= _utcnow()))
        if result.rowcount:
            logger.info("Purged %d expired sessions", result.rowcount)
        return result.rowcount

    async def count_active(self) -> int:
        result = await self.db.query(
            select(func.count().label("total"))
            .select_from(sessions)
            .where(sessions.c.expires_at > _utcnow())
        )
        return int(result.scalar(0))
