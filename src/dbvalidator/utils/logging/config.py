"""
Root logger setup for the validator.

Console output goes to stderr so that reports printed on stdout stay
machine-readable; an optional rotating file receives the same records.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

from .formatters import ConsoleFormatter, JSONFormatter

APP_NAME = "dbvalidator"
PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that are too chatty below WARNING during long comparisons
QUIET_LOGGERS = ("apscheduler", "oracledb")

_TRUTHY = ("true", "1", "yes")


def _file_formatter(json_format: bool, app_name: str) -> logging.Formatter:
    if json_format:
        return JSONFormatter(app_name=app_name)
    return logging.Formatter(fmt=PLAIN_FORMAT, datefmt=DATE_FORMAT)


def _console_formatter(json_format: bool, app_name: str) -> logging.Formatter:
    if json_format:
        return JSONFormatter(app_name=app_name)
    return ConsoleFormatter(use_colors=sys.stderr.isatty())


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool = False,
    app_name: str = APP_NAME,
    max_bytes: int = 50 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Replace the root logger's handlers with the validator's.

    Args:
        level: Level name; unknown names fall back to INFO
        log_file: Rotating log file, created along with its directory
        console_output: Log to stderr
        json_format: JSON lines on every handler
        app_name: Value of the ``app`` field in JSON records
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files kept
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()

    handlers: list[logging.Handler] = []

    if console_output:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(_console_formatter(json_format, app_name))
        handlers.append(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        rotating.setFormatter(_file_formatter(json_format, app_name))
        handlers.append(rotating)

    for handler in handlers:
        handler.setLevel(numeric_level)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging initialized: level={level}, file={log_file or 'none'}, "
        f"console={console_output}, json={json_format}"
    )


def shutdown_logging() -> None:
    """Close and detach every root handler, releasing the log file."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    logging.shutdown()


def configure_from_env() -> None:
    """
    setup_logging() driven by LOG_LEVEL, LOG_FILE, LOG_JSON and LOG_CONSOLE.

    LOG_CONSOLE defaults to on, LOG_JSON to off.
    """
    setup_logging(
        level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE"),
        console_output=os.getenv("LOG_CONSOLE", "true").lower() in _TRUTHY,
        json_format=os.getenv("LOG_JSON", "false").lower() in _TRUTHY,
    )
