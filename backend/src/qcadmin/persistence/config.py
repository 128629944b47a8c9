"""Database configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class DatabaseConfig:
    """Database connection configuration.

    Supports sqlite:/// and postgresql:// URL schemes.
    """

    url: str
    pool_size: int = 10
    echo: bool = False

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """Create config from environment variables.

        Resolution order:
        1. DATABASE_URL env var (standard)
        2. QCADMIN_DB_PATH env var (converted to sqlite:/// URL)
        3. Default: sqlite:///{base_path}/data/qcadmin.db
        """
        pool_size = int(os.environ.get("QCADMIN_DB_POOL_SIZE", "10"))
        echo = os.environ.get("QCADMIN_DB_ECHO", "").lower() in ("1", "true", "yes")

        url = os.environ.get("DATABASE_URL")
        if url:
            return cls(url=url, pool_size=pool_size, echo=echo)

        db_path = os.environ.get("QCADMIN_DB_PATH")
        if db_path:
            return cls(url=f"sqlite:///{db_path}", pool_size=pool_size, echo=echo)

        if base_path:
            return cls(
                url=f"sqlite:///{base_path / 'data' / 'qcadmin.db'}",
                pool_size=pool_size,
                echo=echo,
            )

        return cls(url="sqlite:///qcadmin.db", pool_size=pool_size, echo=echo)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgresql(self) -> bool:
        return self.url.startswith("postgresql")

    @property
    def sqlite_path(self) -> Path | None:
        """Filesystem path of a file-backed SQLite database, else None."""
        if not self.is_sqlite:
            return None
        path = self.url.replace("sqlite:///", "", 1)
        if not path or path == ":memory:":
            return None
        return Path(path)

    @property
    def sqlalchemy_url(self) -> str:
        """URL suitable for SQLAlchemy engine creation.

        Ensures postgresql:// URLs use the psycopg (v3) driver since
        the project depends on psycopg[binary], not psycopg2.
        """
        if self.url.startswith("postgresql://"):
            return self.url.replace("postgresql://", "postgresql+psycopg://", 1)
        return self.url
