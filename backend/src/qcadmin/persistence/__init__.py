"""Persistence layer: configuration, schema and pooled execution."""

from qcadmin.persistence.config import DatabaseConfig
from qcadmin.persistence.database import Database, QueryResult, Transaction

__all__ = [
    "Database",
    "DatabaseConfig",
    "QueryResult",
    "Transaction",
]
