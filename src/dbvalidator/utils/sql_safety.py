"""
SQL safety utilities for preventing SQL injection.

Table and column names cannot be bound as parameters, so they are
validated against a strict pattern (and, for tables, an allow-list)
before being quoted into generated SQL.
"""

import re
from collections.abc import Iterable

from dbvalidator.errors import InvalidIdentifierError, TableNotAllowedError
from dbvalidator.utils.database_types import DatabaseType


# Strict ASCII-only patterns for SQL identifiers
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
VALID_SCHEMA_TABLE = re.compile(
    r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)?$"
)


def validate_identifier(identifier: str) -> None:
    """
    Validate a SQL identifier (column name, etc.).

    Args:
        identifier: The identifier to validate

    Raises:
        InvalidIdentifierError: If the identifier contains invalid characters
    """
    if not identifier:
        raise InvalidIdentifierError("SQL identifier cannot be empty")

    if not isinstance(identifier, str) or not VALID_IDENTIFIER.match(identifier):
        raise InvalidIdentifierError(
            f"Invalid SQL identifier: {identifier!r}. "
            "Only ASCII letters, digits, and underscores are allowed, "
            "and must start with a letter or underscore."
        )


def validate_schema_table(schema_table: str) -> None:
    """
    Validate a schema.table identifier.

    Args:
        schema_table: The schema.table identifier to validate

    Raises:
        InvalidIdentifierError: If the identifier format is invalid
    """
    if not schema_table:
        raise InvalidIdentifierError("Schema.table identifier cannot be empty")

    if not isinstance(schema_table, str) or not VALID_SCHEMA_TABLE.match(schema_table):
        raise InvalidIdentifierError(
            f"Invalid schema.table identifier: {schema_table!r}. "
            "Only ASCII letters, digits, and underscores are allowed."
        )


def quote_identifier(identifier: str, db_type: DatabaseType) -> str:
    """
    Safely quote a SQL identifier after validation.

    Args:
        identifier: The identifier to quote (column name, etc.)
        db_type: Database type for proper quoting style

    Returns:
        Quoted identifier safe for use in SQL

    Raises:
        InvalidIdentifierError: If the identifier is invalid
    """
    validate_identifier(identifier)
    return db_type.quote_identifier(identifier)


def quote_schema_table(schema_table: str, db_type: DatabaseType) -> str:
    """
    Safely quote a schema.table identifier after validation.

    Args:
        schema_table: The schema.table identifier (e.g., "public.users" or just "users")
        db_type: Database type for proper quoting style

    Returns:
        Quoted identifier safe for use in SQL

    Raises:
        InvalidIdentifierError: If the identifier is invalid
    """
    validate_schema_table(schema_table)

    if "." in schema_table:
        schema, table = schema_table.split(".", 1)
        return f"{db_type.quote_identifier(schema)}.{db_type.quote_identifier(table)}"
    return db_type.quote_identifier(schema_table)


def ensure_allowed_table(table: str, allowed_tables: Iterable[str]) -> str:
    """
    Check a requested table name against the configured allow-list.

    Matching is case-insensitive; the configured spelling is returned so
    that generated SQL always uses a name the operator wrote down.

    Raises:
        InvalidIdentifierError: If the name is not a valid identifier
        TableNotAllowedError: If the table is not configured for auditing
    """
    validate_schema_table(table)

    for candidate in allowed_tables:
        if candidate.lower() == table.lower():
            return candidate

    raise TableNotAllowedError(
        f"Table {table!r} is not in the configured table list"
    )
