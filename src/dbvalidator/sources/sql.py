"""
DB-API 2.0 data source adapter.

One adapter class serves every dialect: the DatabaseType decides query
syntax and column-name casing, and the injected connect factory decides
which driver is used. Connection pooling, timeouts and credentials are
the factory's concern.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any

from opentelemetry import trace

from dbvalidator.config import TimeWindow
from dbvalidator.utils.database_types import DatabaseType
from dbvalidator.utils.tracing import trace_operation

from .queries import QueryBuilder

logger = logging.getLogger(__name__)


def _is_closed(conn: Any) -> bool:
    # psycopg2 exposes an int, oracledb/pyodbc expose nothing usable
    closed = getattr(conn, "closed", False)
    return bool(closed)


class SqlDataSource:
    """
    Read-only adapter over a DB-API connection.

    The connection is opened on first use, reused across calls and
    reopened if the driver reports it closed. Calls on one instance are
    serialized; the record and replica adapters can run in parallel.
    """

    def __init__(
        self,
        name: str,
        db_type: DatabaseType,
        connect: Callable[[], Any],
    ):
        """
        Initialize the adapter.

        Args:
            name: Label for logs and spans ("record", "replica", ...)
            db_type: Dialect of the underlying database
            connect: Zero-argument factory returning a DB-API connection
        """
        self.name = name
        self.db_type = db_type
        self._connect = connect
        self._conn: Any = None
        self._lock = threading.Lock()
        self.queries = QueryBuilder(db_type)

    def __repr__(self) -> str:
        return f"SqlDataSource(name={self.name!r}, db_type={self.db_type.value!r})"

    def __enter__(self) -> "SqlDataSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _connection(self) -> Any:
        if self._conn is None or _is_closed(self._conn):
            logger.debug(f"Opening {self.db_type.value} connection for {self.name}")
            self._conn = self._connect()
        return self._conn

    def _execute(self, operation: str, query: str, params: list[Any]) -> tuple[list[str], list[Any]]:
        with self._lock:
            with trace_operation(
                f"{self.name}_{operation}",
                kind=trace.SpanKind.CLIENT,
                db_system=self.db_type.value,
                source=self.name,
            ):
                cursor = self._connection().cursor()
                try:
                    cursor.execute(query, params)
                    rows = cursor.fetchall()
                    columns = [desc[0] for desc in cursor.description or []]
                finally:
                    cursor.close()
        return columns, rows

    def column_key(self, column: str) -> str:
        return self.db_type.column_key(column)

    def count(self, table: str, window: TimeWindow | None = None) -> int:
        query, params = self.queries.count(table, window)
        _, rows = self._execute("count", query, params)
        count = int(rows[0][0]) if rows else 0
        logger.debug(f"{self.name}: {table} has {count} rows")
        return count

    def keys(self, table: str, key_column: str, window: TimeWindow | None = None) -> set[Any]:
        query, params = self.queries.keys(table, key_column, window)
        _, rows = self._execute("keys", query, params)
        keys = {row[0] for row in rows}
        logger.debug(f"{self.name}: fetched {len(keys)} keys from {table}")
        return keys

    def rows(
        self,
        table: str,
        key_column: str,
        keys: Sequence[Any],
        window: TimeWindow | None = None,
    ) -> list[dict[str, Any]]:
        if not keys:
            return []

        query, params = self.queries.rows(table, key_column, keys, window)
        columns, rows = self._execute("rows", query, params)
        folded = [self.column_key(col) for col in columns]

        result = [dict(zip(folded, row)) for row in rows]
        logger.debug(f"{self.name}: fetched {len(result)} rows for {len(keys)} keys from {table}")
        return result

    def close(self) -> None:
        """Close the underlying connection, if open."""
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                except Exception as e:
                    logger.warning(f"Error closing {self.name} connection: {e}")
                finally:
                    self._conn = None
