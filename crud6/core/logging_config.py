"""
Logging Configuration Module.

Central logging setup for the CRUD6 service and tooling. Every module logs
through ``get_logger(__name__)``; ``setup_logging()`` attaches the console
(and optionally file) handler to the root logger and applies the per-package
levels below.

Schema pipeline traces go through ``debug_log`` and are only emitted when
``CRUD6_DEBUG_MODE`` is on, whatever the configured level.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from crud6.server.core.config import settings

DEBUG_MODE = settings.debug_mode

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Per-package levels, most specific last
MODULE_LOG_LEVELS = {
    "crud6.schema": "INFO",
    "crud6.model": "INFO",
    "crud6.sprunje": "INFO",
    "crud6.field_types": "INFO",
    "crud6.server": "INFO",
    "crud6.server.api": "DEBUG",
    "crud6.server.services": "DEBUG",
    "crud6.tooling": "INFO",
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "aiosqlite": "WARNING",
    "httpx": "WARNING",
    "uvicorn.access": "INFO",
}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, including the ``context`` of debug traces."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "line": f"{record.filename}:{record.lineno}",
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JsonFormatter()
    if fmt == "simple":
        return logging.Formatter(SIMPLE_FORMAT, datefmt=DATE_FORMAT)
    return logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Override ``CRUD6_LOG_LEVEL`` (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Override ``CRUD6_LOG_FORMAT`` (simple, detailed, json)
        enable_file: Also write ``crud6.log`` when ``CRUD6_LOG_TO_FILE`` is set
    """
    level = (log_level or settings.log_level).upper()
    fmt = log_format or settings.log_format
    formatter = build_formatter(fmt)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    to_file = enable_file and settings.log_to_file
    if to_file:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "crud6.log")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info(f"Logging configured: level={level}, format={fmt}, file_logging={to_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)


def debug_log(logger: logging.Logger, message: str, context: Optional[Dict[str, Any]] = None) -> None:
    """
    Emit a debug trace only when CRUD6 debug mode is enabled.

    Args:
        logger: Logger of the calling module
        message: Trace message
        context: Structured context attached as ``extra``
    """
    if not DEBUG_MODE:
        return
    logger.debug(message, extra={"context": context or {}})
