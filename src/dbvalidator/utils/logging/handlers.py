"""
Context-carrying logger.

ContextLogger attaches a fixed set of key/value pairs, plus any keyword
arguments given at the call site, to the ``extra`` of every record so
that JSONFormatter puts them under ``context``.
"""

import logging
from typing import Any

# Keyword arguments Logger.log() understands itself
_LOG_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


class ContextLogger(logging.LoggerAdapter):
    """
    Usage:
        log = ContextLogger("dbvalidator.cli", command="run")
        log.bind(table_name="user_info").info("Comparison finished", consistent=True)
    """

    def __init__(self, name: str, **context):
        super().__init__(logging.getLogger(name), context)

    def process(self, msg: Any, kwargs: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
        passthrough = {k: v for k, v in kwargs.items() if k in _LOG_KWARGS}
        call_context = {k: v for k, v in kwargs.items() if k not in _LOG_KWARGS}
        passthrough["extra"] = {
            **self.extra,
            **passthrough.get("extra", {}),
            **call_context,
        }
        return msg, passthrough

    def bind(self, **context) -> "ContextLogger":
        """New logger with extra context merged over this one's."""
        return ContextLogger(self.logger.name, **{**self.extra, **context})

    def get_context(self) -> dict[str, Any]:
        return dict(self.extra)
