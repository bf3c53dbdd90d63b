"""
Reconciliation engine.

Sequences one table comparison: counts on both sides, primary-key sets on
both sides, key set difference, then batched full-row comparison of the
common keys. Each step issues its record and replica query as a pair and
joins on both before moving on.

The engine holds no state between calls apart from the two adapters and
the paired executor; every result is built fresh and handed to the caller.
"""

import logging
import time
from collections.abc import Iterable

from opentelemetry import trace

from dbvalidator.compare import count_ratio, diff_key_sets
from dbvalidator.config import ReconciliationConfig, TimeBound, TimeWindow, field_list
from dbvalidator.model import ComparisonResult, TableCountComparison, TableDataComparison
from dbvalidator.parallel import PairedExecutor
from dbvalidator.row_level import BatchRowDiffer
from dbvalidator.sources import DataSource
from dbvalidator.utils.metrics import ReconciliationMetrics, get_default_metrics
from dbvalidator.utils.sql_safety import ensure_allowed_table, validate_identifier
from dbvalidator.utils.tracing import add_span_attributes, add_span_event, trace_operation

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Compares tables between a record database and a replica database."""

    def __init__(
        self,
        record: DataSource,
        replica: DataSource,
        config: ReconciliationConfig,
        metrics: ReconciliationMetrics | None = None,
        concurrent: bool = True,
    ):
        """
        Initialize the engine.

        Args:
            record: Source of truth adapter
            replica: Adapter being validated against the record side
            config: Tables, primary key, batch size, ignore list, time filter
            metrics: Prometheus metrics sink (default: process-wide metrics)
            concurrent: Issue record/replica queries of a step in parallel

        Raises:
            ValueError: If batch_size exceeds either side's IN-list limit
        """
        for source in (record, replica):
            db_type = getattr(source, "db_type", None)
            if db_type is not None and config.batch_size > db_type.max_in_list:
                raise ValueError(
                    f"batch_size {config.batch_size} exceeds the {db_type.value} "
                    f"IN-list limit of {db_type.max_in_list} ({source.name})"
                )

        self.record = record
        self.replica = replica
        self.config = config
        self.metrics = metrics or get_default_metrics()
        self.executor = PairedExecutor(concurrent=concurrent)

        logger.info(
            f"ReconciliationEngine initialized: record={record.name}, "
            f"replica={replica.name}, tables={len(config.tables)}, "
            f"batch_size={config.batch_size}, concurrent={concurrent}"
        )

    def __enter__(self) -> "ReconciliationEngine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self.executor.close()

    def _resolve_window(
        self,
        start: TimeBound,
        end: TimeBound,
        time_column: str | None,
    ) -> TimeWindow | None:
        """Window for an ad-hoc request; falls back to the configured column."""
        if start is None and end is None and time_column is None:
            return None
        if time_column is None and self.config.time_filter is not None:
            time_column = self.config.time_filter.column
        return TimeWindow(column=time_column, start=start, end=end)

    def _counts(self, table: str, window: TimeWindow | None) -> tuple[int, int]:
        return self.executor.run(
            lambda: self.record.count(table, window),
            lambda: self.replica.count(table, window),
        )

    def compare_table(
        self,
        table: str,
        ignore_fields: str | Iterable[str] | None = None,
        time_window: TimeWindow | None = None,
    ) -> ComparisonResult:
        """
        Compare one configured table between record and replica.

        Args:
            table: Table name; must be in the configured table list
            ignore_fields: Extra fields to skip, on top of the configured ones
            time_window: Restrict every query to this window
                (default: the configured time filter)

        Returns:
            ComparisonResult for the table

        Raises:
            TableNotAllowedError: If the table is not configured
            Exception: Any driver error, unchanged
        """
        table = ensure_allowed_table(table, self.config.tables)
        window = time_window if time_window is not None else self.config.time_filter
        key_column = self.config.primary_key
        ignored = self.config.ignore_fields + field_list(ignore_fields)

        started = time.monotonic()

        with trace_operation(
            "compare_table",
            kind=trace.SpanKind.INTERNAL,
            table=table,
            primary_key=key_column,
            batch_size=self.config.batch_size,
            time_filtered=bool(window and window.is_active),
        ):
            try:
                logger.info(f"Starting comparison of {table}")

                record_count, replica_count = self._counts(table, window)
                record_keys, replica_keys = self.executor.run(
                    lambda: self.record.keys(table, key_column, window),
                    lambda: self.replica.keys(table, key_column, window),
                )

                key_diff = diff_key_sets(record_keys, replica_keys)
                logger.info(
                    f"{table}: {record_count} record rows, {replica_count} replica rows, "
                    f"{len(key_diff.only_in_record)} only in record, "
                    f"{len(key_diff.only_in_replica)} only in replica, "
                    f"{len(key_diff.common)} common"
                )

                differ = BatchRowDiffer(
                    self.record,
                    self.replica,
                    key_column,
                    ignore_fields=ignored,
                    time_window=window,
                    executor=self.executor,
                )
                batches = differ.diff_keys(table, key_diff.common, self.config.batch_size)

                if batches.skipped_keys:
                    logger.warning(
                        f"{table}: {len(batches.skipped_keys)} common key(s) vanished "
                        f"before their rows were fetched and were not compared"
                    )
                    add_span_event("read_skew", skipped=len(batches.skipped_keys))

                result = ComparisonResult(
                    table_name=table,
                    record_count=record_count,
                    replica_count=replica_count,
                    only_in_record=key_diff.only_in_record,
                    only_in_replica=key_diff.only_in_replica,
                    field_differences=batches.differences,
                    duration_ms=int((time.monotonic() - started) * 1000),
                    read_skew_keys=batches.skipped_keys,
                )
            except Exception:
                self.metrics.record_failure(table)
                raise

            add_span_attributes(
                consistent=result.consistent,
                field_differences=len(result.field_differences),
            )

        self.metrics.record_rows_compared(table, batches.rows_compared)
        self.metrics.record_comparison(result)

        logger.info(
            f"Finished comparison of {table} in {result.duration_ms}ms: "
            f"{'consistent' if result.consistent else 'INCONSISTENT'} "
            f"({len(result.field_differences)} rows with field differences)"
        )
        return result

    def compare_all_tables(self) -> list[ComparisonResult]:
        """
        Compare every configured table, one after another in list order.

        The first failure propagates; callers that want to carry on past a
        failing table call compare_table() per table instead.
        """
        results = []
        with trace_operation("compare_all_tables", table_count=len(self.config.tables)):
            for table in self.config.tables:
                results.append(self.compare_table(table))

        inconsistent = sum(1 for r in results if not r.consistent)
        logger.info(
            f"Compared {len(results)} table(s): {inconsistent} inconsistent"
        )
        return results

    def compare_table_count(
        self,
        table: str,
        start: TimeBound = None,
        end: TimeBound = None,
        time_column: str | None = None,
    ) -> TableCountComparison:
        """
        Compare row counts only, optionally inside a time window.

        The window applies when both a column and a start are given; an
        end adds the upper bound.
        """
        table = ensure_allowed_table(table, self.config.tables)
        if time_column is not None:
            validate_identifier(time_column)
        window = self._resolve_window(start, end, time_column)

        with trace_operation("compare_table_count", table=table):
            record_count, replica_count = self._counts(table, window)

        ratio = count_ratio(record_count, replica_count)
        logger.info(
            f"{table}: count {record_count} (record) vs {replica_count} (replica), "
            f"ratio {ratio:.4f}"
        )
        return TableCountComparison(
            table_name=table,
            start_time=start,
            end_time=end,
            record_count=record_count,
            replica_count=replica_count,
            ratio=ratio,
        )

    def compare_table_counts(
        self,
        tables: Iterable[str],
        start: TimeBound = None,
        end: TimeBound = None,
        time_column: str | None = None,
    ) -> list[TableCountComparison]:
        """Count comparison for several tables with the same window."""
        return [
            self.compare_table_count(table, start, end, time_column)
            for table in tables
        ]

    def compare_table_data(
        self,
        table: str,
        ignored_fields: str | Iterable[str] | None = None,
        start: TimeBound = None,
        end: TimeBound = None,
        time_column: str | None = None,
    ) -> TableDataComparison:
        """
        Full comparison of one table with per-request ignore list and window.

        Returns:
            TableDataComparison carrying counts, ratio and row differences
        """
        if time_column is not None:
            validate_identifier(time_column)
        window = self._resolve_window(start, end, time_column)

        # An explicit empty window overrides the configured filter
        result = self.compare_table(
            table,
            ignore_fields=ignored_fields,
            time_window=window if window is not None else TimeWindow(),
        )
        return TableDataComparison.from_result(
            result, count_ratio(result.record_count, result.replica_count)
        )
