"""
Batch row differ.

For a batch of primary keys present on both sides, fetches the full rows
from each source with one ``key IN (...)`` query per side, aligns them by
key and compares them field by field. Values are normalized before the
equality check; the raw values are what end up in the result.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from opentelemetry import trace

from dbvalidator.compare import values_equivalent
from dbvalidator.config import TimeWindow, field_list
from dbvalidator.model import FieldDifference, FieldValuePair
from dbvalidator.parallel import PairedExecutor
from dbvalidator.sources import DataSource
from dbvalidator.utils.tracing import add_span_attributes, trace_operation

logger = logging.getLogger(__name__)


def chunked(keys: Sequence[Any], size: int) -> list[list[Any]]:
    """
    Split keys into consecutive batches of at most ``size`` items.

    Raises:
        ValueError: If size is less than 1
    """
    if size < 1:
        raise ValueError(f"Batch size must be >= 1, got {size}")
    keys = list(keys)
    return [keys[i:i + size] for i in range(0, len(keys), size)]


@dataclass
class BatchDiffResult:
    """Outcome of diffing one or more key batches."""

    differences: dict[Any, FieldDifference] = field(default_factory=dict)
    # Keys whose row was missing from one side's batch (read skew)
    skipped_keys: list[Any] = field(default_factory=list)
    rows_compared: int = 0

    def merge(self, other: "BatchDiffResult") -> None:
        self.differences.update(other.differences)
        self.skipped_keys.extend(other.skipped_keys)
        self.rows_compared += other.rows_compared


class BatchRowDiffer:
    """Compares full rows for common primary keys, batch by batch."""

    def __init__(
        self,
        record: DataSource,
        replica: DataSource,
        key_column: str,
        ignore_fields: str | Iterable[str] = (),
        time_window: TimeWindow | None = None,
        executor: PairedExecutor | None = None,
    ):
        """
        Initialize the differ.

        Args:
            record: Source of truth adapter
            replica: Adapter being validated
            key_column: Primary-key column used to align rows
            ignore_fields: Fields never compared (case-insensitive)
            time_window: Window applied to the row queries
            executor: Runs the paired row fetches (sequential if omitted)
        """
        self.record = record
        self.replica = replica
        self.key_column = key_column
        self.ignore_fields = {f.lower() for f in field_list(ignore_fields)}
        self.time_window = time_window
        self.executor = executor or PairedExecutor(concurrent=False)

    def _index_rows(
        self, source: DataSource, rows: list[dict[str, Any]], table: str
    ) -> dict[Any, dict[str, Any]]:
        key_name = source.column_key(self.key_column)
        indexed: dict[Any, dict[str, Any]] = {}
        for row in rows:
            key = row.get(key_name)
            if key in indexed:
                logger.warning(
                    f"{source.name}: duplicate primary key {key!r} in {table}, "
                    f"keeping the last row"
                )
            indexed[key] = row
        return indexed

    def compare_rows(
        self,
        key: Any,
        record_row: dict[str, Any],
        replica_row: dict[str, Any],
    ) -> FieldDifference | None:
        """
        Compare two rows for the same key.

        Field names are matched case-insensitively; a field present on only
        one side compares against None.

        Returns:
            FieldDifference with the differing fields, or None if the rows agree
        """
        record_fields = {name.lower(): name for name in record_row}
        replica_fields = {name.lower(): name for name in replica_row}

        names = list(record_fields)
        names.extend(n for n in replica_fields if n not in record_fields)

        different: dict[str, FieldValuePair] = {}
        for name in names:
            if name in self.ignore_fields:
                continue

            record_value = record_row.get(record_fields[name]) if name in record_fields else None
            replica_value = replica_row.get(replica_fields[name]) if name in replica_fields else None

            if not values_equivalent(record_value, replica_value):
                different[name] = FieldValuePair(name, record_value, replica_value)

        if not different:
            return None

        return FieldDifference(
            primary_key=key,
            record_data=record_row,
            replica_data=replica_row,
            different_fields=different,
        )

    def diff_batch(self, table: str, keys: Sequence[Any]) -> BatchDiffResult:
        """
        Fetch and compare the rows for one batch of common keys.

        Keys missing from either side's result are skipped and reported in
        ``skipped_keys``; they are not treated as differences.
        """
        result = BatchDiffResult()
        if not keys:
            return result

        with trace_operation(
            "diff_batch",
            kind=trace.SpanKind.INTERNAL,
            table=table,
            batch_size=len(keys),
        ):
            record_rows, replica_rows = self.executor.run(
                lambda: self.record.rows(table, self.key_column, keys, self.time_window),
                lambda: self.replica.rows(table, self.key_column, keys, self.time_window),
            )

            record_by_key = self._index_rows(self.record, record_rows, table)
            replica_by_key = self._index_rows(self.replica, replica_rows, table)

            for key in keys:
                record_row = record_by_key.get(key)
                replica_row = replica_by_key.get(key)
                if record_row is None or replica_row is None:
                    result.skipped_keys.append(key)
                    continue

                result.rows_compared += 1
                difference = self.compare_rows(key, record_row, replica_row)
                if difference is not None:
                    result.differences[key] = difference

            add_span_attributes(
                rows_compared=result.rows_compared,
                differences=len(result.differences),
                skipped=len(result.skipped_keys),
            )

        return result

    def diff_keys(self, table: str, keys: Sequence[Any], batch_size: int) -> BatchDiffResult:
        """Diff every key, ``batch_size`` keys per pair of row queries."""
        total = BatchDiffResult()
        batches = chunked(keys, batch_size)

        for i, batch in enumerate(batches, start=1):
            total.merge(self.diff_batch(table, batch))
            logger.debug(
                f"{table}: batch {i}/{len(batches)} done, "
                f"{len(total.differences)} differing rows so far"
            )

        return total
