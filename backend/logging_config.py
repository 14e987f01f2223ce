"""Process-wide logging setup.

Every line carries the process role and the short id of the HTTP request
being served (``-`` outside a request)::

    2026-10-19 14:30:01 INFO [Server req=1f2e3d4c] services.resolution: Appended message ...
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s [%(role)s req=%(request_id)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
HANDLER_PREFIX = "agentdesk."
QUIET_LOGGERS = ("httpx", "httpcore", "openai")

# Set by the request middleware in main.py.
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    def __init__(self, role: str) -> None:
        super().__init__()
        self.role = role

    def filter(self, record: logging.LogRecord) -> bool:
        record.role = self.role
        record.request_id = request_id_var.get()[:8]
        return True


def _build_handlers(settings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    handlers[0].set_name(HANDLER_PREFIX + "stream")

    if settings.LOG_FILE:
        path = Path(settings.LOG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path, maxBytes=settings.LOG_MAX_BYTES, backupCount=settings.LOG_BACKUP_COUNT, encoding="utf-8",
        )
        file_handler.set_name(HANDLER_PREFIX + "file")
        handlers.append(file_handler)
    return handlers


def setup_logging(role: str = "Server") -> None:
    """Attach our handlers to the root logger. Repeated calls are no-ops."""
    from config import settings

    root = logging.getLogger()
    if any((h.get_name() or "").startswith(HANDLER_PREFIX) for h in root.handlers):
        return

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    request_filter = RequestIdFilter(role)
    for handler in _build_handlers(settings):
        handler.setFormatter(formatter)
        handler.addFilter(request_filter)
        root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # Route uvicorn's records through our handlers instead of its own.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
