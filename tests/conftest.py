"""
Pytest configuration and fixtures for validator tests.

Provides an in-memory DataSource so the engine can be exercised without
a live database.
"""

from collections.abc import Sequence
from typing import Any

import pytest
from prometheus_client import CollectorRegistry

from dbvalidator.config import ReconciliationConfig, TimeWindow
from dbvalidator.utils.metrics import ReconciliationMetrics


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")


class InMemorySource:
    """
    DataSource backed by lists of row dicts, one list per table.

    Rows are written with lower-case column names; ``upper=True`` makes
    the source report them upper-case, the way Oracle does.
    """

    def __init__(
        self,
        name: str,
        tables: dict[str, list[dict[str, Any]]] | None = None,
        upper: bool = False,
        fail_on: str | None = None,
    ):
        self.name = name
        self.tables = {k.lower(): v for k, v in (tables or {}).items()}
        self.upper = upper
        self.fail_on = fail_on
        self.calls: list[tuple] = []
        # key -> rows to drop from rows() results, simulating concurrent deletes
        self.vanish: set[Any] = set()

    def column_key(self, column: str) -> str:
        return column.upper() if self.upper else column.lower()

    def _check(self, operation: str) -> None:
        if self.fail_on == operation:
            raise ConnectionError(f"{self.name}: {operation} failed")

    def _filtered(self, table: str, window: TimeWindow | None) -> list[dict[str, Any]]:
        rows = self.tables.get(table.lower(), [])
        if window is None or not window.is_active:
            return rows
        bounds = window.bounds()
        column = window.column.lower()
        selected = [r for r in rows if r.get(column) is not None and r[column] >= bounds[0]]
        if len(bounds) > 1:
            selected = [r for r in selected if r[column] <= bounds[1]]
        return selected

    def count(self, table: str, window: TimeWindow | None = None) -> int:
        self.calls.append(("count", table, window))
        self._check("count")
        return len(self._filtered(table, window))

    def keys(self, table: str, key_column: str, window: TimeWindow | None = None) -> set[Any]:
        self.calls.append(("keys", table, key_column, window))
        self._check("keys")
        return {r[key_column.lower()] for r in self._filtered(table, window)}

    def rows(
        self,
        table: str,
        key_column: str,
        keys: Sequence[Any],
        window: TimeWindow | None = None,
    ) -> list[dict[str, Any]]:
        self.calls.append(("rows", table, key_column, tuple(keys), window))
        self._check("rows")
        wanted = set(keys) - self.vanish
        return [
            {self.column_key(k): v for k, v in r.items()}
            for r in self._filtered(table, window)
            if r[key_column.lower()] in wanted
        ]


@pytest.fixture
def registry() -> CollectorRegistry:
    """Fresh Prometheus registry per test."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> ReconciliationMetrics:
    return ReconciliationMetrics(registry=registry)


@pytest.fixture
def config() -> ReconciliationConfig:
    return ReconciliationConfig(tables=["user_info"], primary_key="id", batch_size=1000)


@pytest.fixture
def make_source():
    """Factory fixture for InMemorySource."""
    return InMemorySource
