"""Local dev entrypoint for the QC Admin API."""

from __future__ import annotations

import os
import sys
from pathlib import Path


def _ensure_src_on_path() -> None:
    src_dir = Path(__file__).resolve().parent / "src"
    if str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


def main() -> None:
    _ensure_src_on_path()

    import uvicorn

    from qcadmin.config import Settings
    from qcadmin.log_config import configure_logging

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(
        "qcadmin.api.app:app",
        host=os.environ.get("QCADMIN_HOST", "127.0.0.1"),
        port=settings.port,
        reload=os.environ.get("QCADMIN_RELOAD", "").lower() in ("1", "true", "yes"),
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
