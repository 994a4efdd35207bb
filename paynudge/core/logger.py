"""Process-wide logging setup.

``init_logging`` installs one stdout handler on the root logger, plain or JSON
per ``LOG_FORMAT``. HTTP client and Stripe library loggers are capped at
WARNING; at DEBUG they print request lines that carry API keys.
"""
from __future__ import annotations

import json
import logging
import sys
from typing import Any

from paynudge.core.config import settings

QUIET_LOGGERS = ("httpx", "httpcore", "stripe", "multipart")
PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra=`` fields land under ``extra``."""

    def __init__(self, service: str | None = None, env: str | None = None) -> None:
        super().__init__()
        self.service = service
        self.env = env

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if self.service:
            entry["service"] = self.service
        if self.env:
            entry["env"] = self.env
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra
        return json.dumps(entry, default=str)


def build_handler(log_format: str | None = None) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if (log_format or settings.LOG_FORMAT).lower() == "json":
        handler.setFormatter(JsonFormatter(service=settings.APP_NAME, env=settings.ENV))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    handler.set_name("paynudge")
    return handler


def init_logging(level: int | None = None) -> None:
    root = logging.getLogger()
    if any(h.get_name() == "paynudge" for h in root.handlers):
        return
    root.setLevel(level or getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root.addHandler(build_handler())
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
