"""
Structured logging for the validator.

Modules log through ``logging.getLogger(__name__)``; the CLI calls
setup_logging() once at startup. ContextLogger carries per-command
context (table name, command) into every record it emits.

    from dbvalidator.utils.logging import setup_logging

    setup_logging(level="INFO", log_file="/var/log/dbvalidator/validator.log")
    logging.getLogger(__name__).info("Comparing table", extra={"table_name": "user_info"})
"""

from .config import configure_from_env, setup_logging, shutdown_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "configure_from_env",
    "shutdown_logging",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
