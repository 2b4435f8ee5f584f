# wms/core/logging.py
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Single stream handler on the root logger; uvicorn keeps its own loggers.
    Safe to call more than once.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in root.handlers:
        if getattr(h, "_wms_handler", False):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._wms_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    # SQL echo is far too chatty at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
