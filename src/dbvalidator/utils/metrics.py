"""
Prometheus metrics for validation runs.

Tracks comparison runs, discrepancies and throughput per table so that
dashboards and alerts can follow drift between the record and replica
databases over time.

Usage:
    from dbvalidator.utils.metrics import get_default_metrics, start_metrics_server

    start_metrics_server(port=9091)
    metrics = get_default_metrics()
    metrics.record_comparison(result)
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

if TYPE_CHECKING:
    from dbvalidator.model import ComparisonResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

_default_metrics: "ReconciliationMetrics | None" = None


def get_or_create_metric(
    metric_factory: Callable[[], T],
    metric_name: str,
    registry: CollectorRegistry = REGISTRY,
) -> T:
    """
    Create a metric or return the one already registered under that name.

    Args:
        metric_factory: Callable that creates the metric (e.g., lambda: Counter(...))
        metric_name: Name of the metric for lookup if already registered
        registry: Prometheus registry to use (default: global REGISTRY)

    Returns:
        The metric instance (either newly created or existing)
    """
    try:
        return metric_factory()
    except ValueError:
        existing = registry._names_to_collectors.get(metric_name)
        if existing is not None:
            return existing
        raise


class ReconciliationMetrics:
    """
    Metrics for table comparisons

    Tracks runs, per-side discrepancies, read skew and performance.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize reconciliation metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY
        r = self.registry

        self.runs_total = get_or_create_metric(
            lambda: Counter(
                "dbvalidator_comparison_runs_total",
                "Total number of table comparisons",
                ["table_name", "status"],
                registry=r,
            ),
            "dbvalidator_comparison_runs",
            r,
        )

        self.duration_seconds = get_or_create_metric(
            lambda: Histogram(
                "dbvalidator_comparison_duration_seconds",
                "Duration of table comparisons in seconds",
                ["table_name"],
                buckets=(0.5, 1, 5, 10, 30, 60, 120, 300, 600, 1800, 3600),
                registry=r,
            ),
            "dbvalidator_comparison_duration_seconds",
            r,
        )

        self.last_run_timestamp = get_or_create_metric(
            lambda: Gauge(
                "dbvalidator_last_comparison_timestamp",
                "Unix timestamp of the last finished comparison",
                ["table_name"],
                registry=r,
            ),
            "dbvalidator_last_comparison_timestamp",
            r,
        )

        self.consistent = get_or_create_metric(
            lambda: Gauge(
                "dbvalidator_table_consistent",
                "1 if the last comparison found the table consistent, else 0",
                ["table_name"],
                registry=r,
            ),
            "dbvalidator_table_consistent",
            r,
        )

        self.row_count = get_or_create_metric(
            lambda: Gauge(
                "dbvalidator_row_count",
                "Row count seen by the last comparison",
                ["table_name", "side"],
                registry=r,
            ),
            "dbvalidator_row_count",
            r,
        )

        self.missing_keys = get_or_create_metric(
            lambda: Gauge(
                "dbvalidator_keys_only_on_one_side",
                "Primary keys present on only one side in the last comparison",
                ["table_name", "side"],
                registry=r,
            ),
            "dbvalidator_keys_only_on_one_side",
            r,
        )

        self.field_difference_rows = get_or_create_metric(
            lambda: Gauge(
                "dbvalidator_field_difference_rows",
                "Rows with at least one differing field in the last comparison",
                ["table_name"],
                registry=r,
            ),
            "dbvalidator_field_difference_rows",
            r,
        )

        self.rows_compared_total = get_or_create_metric(
            lambda: Counter(
                "dbvalidator_rows_compared_total",
                "Total number of common rows compared field by field",
                ["table_name"],
                registry=r,
            ),
            "dbvalidator_rows_compared",
            r,
        )

        self.read_skew_keys_total = get_or_create_metric(
            lambda: Counter(
                "dbvalidator_read_skew_keys_total",
                "Common keys skipped because a side no longer returned the row",
                ["table_name"],
                registry=r,
            ),
            "dbvalidator_read_skew_keys",
            r,
        )

    def record_comparison(self, result: "ComparisonResult") -> None:
        """
        Record a finished table comparison

        Args:
            result: The comparison result to publish
        """
        table = result.table_name

        self.runs_total.labels(
            table_name=table,
            status="consistent" if result.consistent else "inconsistent",
        ).inc()
        self.duration_seconds.labels(table_name=table).observe(result.duration_ms / 1000.0)
        self.last_run_timestamp.labels(table_name=table).set_to_current_time()
        self.consistent.labels(table_name=table).set(1 if result.consistent else 0)
        self.row_count.labels(table_name=table, side="record").set(result.record_count)
        self.row_count.labels(table_name=table, side="replica").set(result.replica_count)
        self.missing_keys.labels(table_name=table, side="record").set(len(result.only_in_record))
        self.missing_keys.labels(table_name=table, side="replica").set(len(result.only_in_replica))
        self.field_difference_rows.labels(table_name=table).set(len(result.field_differences))

        if result.read_skew_keys:
            self.read_skew_keys_total.labels(table_name=table).inc(len(result.read_skew_keys))

    def record_failure(self, table: str) -> None:
        """Record a comparison that aborted with an error."""
        self.runs_total.labels(table_name=table, status="failed").inc()

    def record_rows_compared(self, table: str, count: int) -> None:
        """Count common rows that went through field comparison."""
        if count:
            self.rows_compared_total.labels(table_name=table).inc(count)


def get_default_metrics() -> ReconciliationMetrics:
    """Process-wide metrics bound to the global Prometheus registry."""
    global _default_metrics
    if _default_metrics is None:
        _default_metrics = ReconciliationMetrics()
    return _default_metrics


def start_metrics_server(port: int = 9091, addr: str = "0.0.0.0") -> None:
    """
    Expose /metrics over HTTP

    Args:
        port: Port to listen on
        addr: Bind address
    """
    start_http_server(port, addr=addr)
    logger.info(f"Metrics server started on {addr}:{port}")
