"""The capability the reconciliation engine is written against."""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from dbvalidator.config import TimeWindow


@runtime_checkable
class DataSource(Protocol):
    """
    Read-only access to one side of a comparison.

    Identifiers handed to these methods have already been validated by
    the caller. Driver errors propagate unchanged; implementations do not
    retry.
    """

    name: str

    def count(self, table: str, window: TimeWindow | None = None) -> int:
        """Number of rows in the table (inside the window, if active)."""
        ...

    def keys(self, table: str, key_column: str, window: TimeWindow | None = None) -> set[Any]:
        """Set of primary-key values (inside the window, if active)."""
        ...

    def rows(
        self,
        table: str,
        key_column: str,
        keys: Sequence[Any],
        window: TimeWindow | None = None,
    ) -> list[dict[str, Any]]:
        """Full rows for a batch of keys, as column-name -> value maps."""
        ...

    def column_key(self, column: str) -> str:
        """Casing under which this source's row maps carry a column name."""
        ...
