"""
Logging for shopcart.

Handlers are installed once, on import, unless the host application has
already configured the root logger. LOG_LEVEL picks the level and
LOG_FORMAT=simple drops the timestamp.
"""

import logging
import os
import sys
from functools import cache

_FORMATS = {
    "full": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "simple": "%(levelname)s - %(name)s - %(message)s",
}


def _configure_root_logger() -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    style = os.environ.get("LOG_FORMAT", "").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMATS.get(style, _FORMATS["full"])))
    root.addHandler(handler)
    root.setLevel(level)

    # Upstash REST calls go through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)


_configure_root_logger()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_safe(value, limit: int = 8) -> str:
    """
    Render a caller-supplied value (item id, hash, instance name) for a log line.

    Control characters are escaped so a value cannot forge extra log entries,
    and the result is cut to `limit` characters.
    """
    if value is None or value == "":
        return "N/A"
    text = str(value).replace("\r", "\\r").replace("\n", "\\n").replace("\t", "\\t").replace("\x00", "")
    return text[:limit]
