# app/core/logger.py
from __future__ import annotations

"""
FlixCatalog — Logging (Loguru)
------------------------------
One console sink (colored text, or JSON lines with `LOG_JSON=1`), an optional
rotating file sink (`LOG_FILE`), and stdlib logging routed into Loguru so
uvicorn, SQLAlchemy and our `logging.getLogger(...)` callers share the format.

Every record carries `request_id` (bound by RequestIDMiddleware, "-" outside
a request). Importing the module configures everything once.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from loguru import logger

from app.core.config import settings

_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "sqlalchemy.engine", "apscheduler")


def _escape(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}").replace("<", "\\<")


def _default_request_id(record) -> None:
    record["extra"].setdefault("request_id", "-")


def _text_format(record) -> str:
    where = _escape(f"{record['name']}:{record['function']}:{record['line']}")
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
        f"<cyan>{where}</cyan> | rid={record['extra']['request_id']} - "
        f"<level>{_escape(record['message'])}</level>\n{{exception}}"
    )


def _json_format(record) -> str:
    doc: Dict[str, Any] = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "line": record["line"],
        "message": record["message"],
        **record["extra"],
    }
    if record["exception"] is not None:
        doc["exception"] = repr(record["exception"].value)
    return _escape(json.dumps(doc, default=str)) + "\n"


class InterceptHandler(logging.Handler):
    """Forward stdlib records to Loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging() -> None:
    level = settings.LOG_LEVEL.upper()
    fmt = _json_format if settings.LOG_JSON else _text_format

    logger.remove()
    logger.configure(patcher=_default_request_id)
    logger.add(sys.stdout, level=level, format=fmt, backtrace=settings.APP_DEBUG, diagnose=settings.APP_DEBUG)

    if settings.LOG_FILE:
        path = Path(settings.LOG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(str(path), level=level, format=fmt, rotation="10 MB", retention=5, enqueue=True)

    logging.basicConfig(handlers=[InterceptHandler()], level=level, force=True)
    for name in _ROUTED_LOGGERS:
        routed = logging.getLogger(name)
        routed.handlers = [InterceptHandler()]
        routed.propagate = False


setup_logging()

__all__ = ["logger", "InterceptHandler", "setup_logging"]
