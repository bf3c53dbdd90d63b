"""
Database type enumeration for type-safe dialect handling.

Each supported dialect knows its parameter placeholder style, how it quotes
identifiers, which casing its driver reports column names in, and how many
values one IN (...) list may carry.
"""

from enum import Enum


class DatabaseType(str, Enum):
    """
    Enumeration of supported database dialects.

    Inherits from str for JSON serialization compatibility and
    easy comparison with string values.
    """

    POSTGRESQL = "postgresql"
    SQLSERVER = "sqlserver"
    ORACLE = "oracle"

    @classmethod
    def from_name(cls, name: str) -> "DatabaseType":
        """
        Resolve a dialect from a configuration string.

        Accepts common aliases ("postgres", "pg", "mssql").

        Raises:
            ValueError: If the dialect is not supported
        """
        aliases = {
            "postgres": cls.POSTGRESQL,
            "pg": cls.POSTGRESQL,
            "mssql": cls.SQLSERVER,
        }
        key = (name or "").strip().lower()
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(
                f"Unsupported database dialect: {name!r}. "
                f"Expected one of: {', '.join(m.value for m in cls)}"
            ) from None

    def get_placeholder(self, index: int = 0) -> str:
        """
        Get parameter placeholder for this database type.

        Args:
            index: Parameter index (0-based)

        Returns:
            Placeholder string
        """
        if self == DatabaseType.POSTGRESQL:
            return "%s"
        elif self == DatabaseType.ORACLE:
            return f":{index + 1}"
        else:
            return "?"

    def fold_identifier(self, identifier: str) -> str:
        """Fold an unquoted identifier the way the server would."""
        if self == DatabaseType.ORACLE:
            return identifier.upper()
        elif self == DatabaseType.POSTGRESQL:
            return identifier.lower()
        else:
            # SQL Server resolves identifiers through the database collation
            return identifier

    def quote_identifier(self, identifier: str) -> str:
        """
        Quote a single (already validated) identifier.

        The identifier is folded first so that quoting does not change
        which object an unquoted name would have resolved to.
        """
        folded = self.fold_identifier(identifier)
        if self == DatabaseType.SQLSERVER:
            return f"[{folded}]"
        return f'"{folded}"'

    def column_key(self, column: str) -> str:
        """
        Casing under which this dialect's row maps carry a column name.

        Oracle reports unquoted identifiers upper-case; PostgreSQL reports
        them lower-case, and SQL Server rows are folded to lower-case by
        the adapter.
        """
        if self == DatabaseType.ORACLE:
            return column.upper()
        return column.lower()

    @property
    def max_in_list(self) -> int:
        """Largest number of bind values allowed in one IN (...) list."""
        if self == DatabaseType.ORACLE:
            return 1000
        elif self == DatabaseType.SQLSERVER:
            # 2100 parameter cap, leaving room for the time-window bounds
            return 2000
        return 30000
