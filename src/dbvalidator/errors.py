"""Exception types raised by the validator.

Driver errors (connectivity, SQL syntax, permissions) are never wrapped:
they propagate from the data source adapters unchanged.
"""


class ReconciliationError(Exception):
    """Base exception for validator errors."""

    pass


class InvalidIdentifierError(ReconciliationError, ValueError):
    """Raised when a table or column name fails identifier validation."""

    pass


class TableNotAllowedError(ReconciliationError, ValueError):
    """Raised when a table is requested that is not in the configured list."""

    pass


class ConfigurationError(ReconciliationError):
    """Raised when the validator configuration is incomplete or invalid."""

    pass
