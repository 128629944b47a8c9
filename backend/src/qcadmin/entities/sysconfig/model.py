"""System configuration model.

At most one configuration is active at a time; creating and activating
check and enforce that inside a transaction.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select, update

from qcadmin.core.errors import ConflictError
from qcadmin.entities.generic.model import Executor, ModelWrapper, Row, utcnow

ACTIVE_EXISTS_MESSAGE = (
    "An active system configuration already exists. Please deactivate the existing one first."
)


class SysconfigModel(ModelWrapper):
    async def get_active(self, executor: Executor | None = None) -> Row | None:
        """The most recently created active configuration."""
        c = self.table.c
        stmt = (
            select(*self.base.select_columns())
            .where(c.is_active.is_(True))
            .order_by(c.created_at.desc(), c.id.desc())
            .limit(1)
        )
        return (await self.base.run(stmt, "get active", executor)).first()

    async def create(self, data: dict[str, Any], user_id: int) -> Row:
        """Insert a configuration.

        Raises:
            ConflictError: an active configuration exists and the new one would be active
        """
        async with self.db.transaction() as tx:
            if data.get("is_active") is not False and await self.get_active(tx) is not None:
                raise ConflictError(ACTIVE_EXISTS_MESSAGE)
            return await self.base.create(data, user_id, tx)

    async def activate(self, id: int, user_id: int) -> Row | None:
        """Make one configuration the only active one; None when it does not exist."""
        c = self.table.c
        now = utcnow()
        async with self.db.transaction() as tx:
            if await self.base.get_by_id(id, tx) is None:
                return None
            await self.base.run(
                update(self.table)
                .where(c.id != id, c.is_active.is_(True))
                .values(is_active=False, updated_by=user_id, updated_at=now),
                "activate",
                tx,
            )
            result = await self.base.run(
                update(self.table)
                .where(c.id == id)
                .values(is_active=True, updated_by=user_id, updated_at=now)
                .returning(*self.base.select_columns()),
                "activate",
                tx,
            )
            return result.first()
