"""Defect model: adds lookups by defect group."""

from __future__ import annotations

from sqlalchemy import func

from qcadmin.core.types import PaginatedResult, QueryOptions
from qcadmin.entities.generic.model import ModelWrapper, Row


class DefectModel(ModelWrapper):
    async def get_by_group(self, group: str, options: QueryOptions) -> PaginatedResult[Row]:
        """Defects whose group matches, ignoring case and surrounding spaces."""
        column = self.table.c.defect_group
        conditions = [func.lower(func.trim(column)) == group.strip().lower()]
        conditions.extend(self.base.list_conditions(options))
        return await self.base.paginate(conditions, options)
