"""User model: the generic entity model plus credentials and uniqueness.

Rows returned to callers never include password_hash.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select, update

from qcadmin.auth.password import PasswordService
from qcadmin.core.errors import ConflictError
from qcadmin.entities.generic.model import EntityModel, ModelWrapper, Row, utcnow

PASSWORD_HASH_COLUMN = "password_hash"
# never taken from a create or update payload
PROTECTED_FIELDS = ("password", PASSWORD_HASH_COLUMN, "last_login")


class UserModel(ModelWrapper):
    """Wraps EntityModel; create and update run in one transaction each."""

    def __init__(self, base: EntityModel, passwords: PasswordService):
        super().__init__(base)
        self.passwords = passwords

    async def _ensure_unique(self, tx, data: dict[str, Any], exclude_id: int | None = None) -> None:
        for column, label in (("username", "Username"), ("email", "Email")):
            value = data.get(column)
            if isinstance(value, str) and await self.base.exists(column, value, exclude_id, tx):
                raise ConflictError(f"{label} '{value.strip()}' is already in use")

    async def create(self, data: dict[str, Any], user_id: int) -> Row:
        """Insert a user, hashing the plaintext password.

        Raises:
            ConflictError: username or email already taken
        """
        values = {k: v for k, v in data.items() if k not in PROTECTED_FIELDS}
        values["email"] = values["email"].strip().lower()
        values[PASSWORD_HASH_COLUMN] = self.passwords.hash(data["password"])
        values.setdefault("role", "user")

        async with self.db.transaction() as tx:
            await self._ensure_unique(tx, values)
            return await self.base.create(values, user_id, tx)

    async def update(self, id: int, data: dict[str, Any], user_id: int) -> Row | None:
        values = {k: v for k, v in data.items() if k not in PROTECTED_FIELDS}
        if isinstance(values.get("email"), str):
            values["email"] = values["email"].strip().lower()

        async with self.db.transaction() as tx:
            if await self.base.get_by_id(id, tx) is None:
                return None
            await self._ensure_unique(tx, values, exclude_id=id)
            return await self.base.update(id, values, user_id, tx)

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    async def find_credentials(self, identifier: str) -> Row | None:
        """Full row (with password_hash) by username, or by email when it has '@'."""
        c = self.table.c
        value = identifier.strip().lower()
        stmt = select(self.table).where(func.lower(c.username) == value)
        row = (await self.base.run(stmt, "look up")).first()
        if row is None and "@" in value:
            stmt = select(self.table).where(func.lower(c.email) == value)
            row = (await self.base.run(stmt, "look up")).first()
        return row

    async def get_password_hash(self, id: int) -> str | None:
        stmt = select(self.table.c.password_hash).where(self.table.c.id == id)
        return (await self.base.run(stmt, "look up")).scalar()

    async def set_password(self, id: int, password: str, user_id: int) -> bool:
        stmt = (
            update(self.table)
            .where(self.table.c.id == id)
            .values(
                password_hash=self.passwords.hash(password),
                updated_by=user_id,
                updated_at=utcnow(),
            )
        )
        result = await self.base.run(stmt, "change password of")
        return result.rowcount > 0

    async def record_login(self, id: int) -> None:
        stmt = update(self.table).where(self.table.c.id == id).values(last_login=utcnow())
        await self.base.run(stmt, "record login of")

    async def set_status_many(self, ids: list[int], is_active: bool, user_id: int) -> int:
        """Set is_active on every listed user; returns how many rows matched."""
        stmt = (
            update(self.table)
            .where(self.table.c.id.in_(ids))
            .values(is_active=is_active, updated_by=user_id, updated_at=utcnow())
        )
        result = await self.base.run(stmt, "bulk update status of")
        return result.rowcount
