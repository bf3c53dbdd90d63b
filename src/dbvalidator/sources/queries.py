"""
SQL generation for the three read-only query shapes.

Identifiers are validated and quoted for the dialect; every value (key,
time bound) travels as a bound parameter.
"""

from collections.abc import Sequence
from typing import Any

from dbvalidator.config import TimeWindow
from dbvalidator.utils.database_types import DatabaseType
from dbvalidator.utils.sql_safety import quote_identifier, quote_schema_table


class QueryBuilder:
    """Builds ``(sql, params)`` pairs for one dialect."""

    def __init__(self, db_type: DatabaseType):
        self.db_type = db_type

    def _time_predicate(
        self, window: TimeWindow | None, param_offset: int
    ) -> tuple[list[str], list[Any]]:
        if window is None or not window.is_active:
            return [], []

        column = quote_identifier(window.column, self.db_type)
        params = window.bounds()
        conditions = [f"{column} >= {self.db_type.get_placeholder(param_offset)}"]
        if len(params) > 1:
            conditions.append(f"{column} <= {self.db_type.get_placeholder(param_offset + 1)}")
        return conditions, params

    @staticmethod
    def _where(conditions: list[str]) -> str:
        if not conditions:
            return ""
        return " WHERE " + " AND ".join(conditions)

    def count(self, table: str, window: TimeWindow | None = None) -> tuple[str, list[Any]]:
        quoted_table = quote_schema_table(table, self.db_type)
        conditions, params = self._time_predicate(window, 0)
        return f"SELECT COUNT(*) FROM {quoted_table}{self._where(conditions)}", params

    def keys(
        self, table: str, key_column: str, window: TimeWindow | None = None
    ) -> tuple[str, list[Any]]:
        quoted_table = quote_schema_table(table, self.db_type)
        quoted_key = quote_identifier(key_column, self.db_type)
        conditions, params = self._time_predicate(window, 0)
        return f"SELECT {quoted_key} FROM {quoted_table}{self._where(conditions)}", params

    def rows(
        self,
        table: str,
        key_column: str,
        keys: Sequence[Any],
        window: TimeWindow | None = None,
    ) -> tuple[str, list[Any]]:
        """
        Full-row fetch for a key batch: ``SELECT * ... WHERE key IN (...)``.

        Raises:
            ValueError: If the batch is empty or exceeds the dialect's IN-list limit
        """
        if not keys:
            raise ValueError("Cannot build a row query for an empty key batch")
        if len(keys) > self.db_type.max_in_list:
            raise ValueError(
                f"Key batch of {len(keys)} exceeds the {self.db_type.value} "
                f"IN-list limit of {self.db_type.max_in_list}"
            )

        quoted_table = quote_schema_table(table, self.db_type)
        quoted_key = quote_identifier(key_column, self.db_type)
        placeholders = ", ".join(
            self.db_type.get_placeholder(i) for i in range(len(keys))
        )

        time_conditions, time_params = self._time_predicate(window, len(keys))
        conditions = [f"{quoted_key} IN ({placeholders})"] + time_conditions

        query = f"SELECT * FROM {quoted_table}{self._where(conditions)}"
        return query, list(keys) + time_params
