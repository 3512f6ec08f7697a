from __future__ import annotations

import logging

from todo_api.middleware.request_id import RequestIdFilter

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"


def setup_logging(level: str | int = "INFO") -> None:
    """
    Configure the root logger once: a single stream handler whose records
    carry the current request id.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Only add our handler once (uvicorn reload / repeated imports)
    for handler in root.handlers:
        if any(isinstance(f, RequestIdFilter) for f in handler.filters):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)
