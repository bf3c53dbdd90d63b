"""
Result types produced by the reconciliation engine.

All values are created fresh per comparison and handed to the caller;
the engine keeps no reference to them afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

COMPARISON_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def now_comparison_time() -> str:
    """Wall-clock timestamp in the format carried by every result."""
    return datetime.now().strftime(COMPARISON_TIME_FORMAT)


def _key_str(key: Any) -> str:
    return key if isinstance(key, str) else str(key)


@dataclass
class FieldValuePair:
    """Raw (pre-normalization) values of one differing field."""

    field_name: str
    record_value: Any
    replica_value: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "field_name": self.field_name,
            "record_value": self.record_value,
            "replica_value": self.replica_value,
        }


@dataclass
class FieldDifference:
    """
    Field-level divergence for a row present on both sides.

    Only ever built with a non-empty different_fields mapping; a row with
    no differences is simply absent from the parent result.
    """

    primary_key: Any
    record_data: dict[str, Any]
    replica_data: dict[str, Any]
    different_fields: dict[str, FieldValuePair]

    def __post_init__(self):
        if not self.different_fields:
            raise ValueError(
                f"FieldDifference for key {self.primary_key!r} has no differing fields"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary_key": self.primary_key,
            "record_data": self.record_data,
            "replica_data": self.replica_data,
            "different_fields": {
                name: pair.to_dict() for name, pair in self.different_fields.items()
            },
        }


@dataclass
class ComparisonResult:
    """Full comparison of one table between the record and replica sides."""

    table_name: str
    record_count: int
    replica_count: int
    only_in_record: list[Any] = field(default_factory=list)
    only_in_replica: list[Any] = field(default_factory=list)
    field_differences: dict[Any, FieldDifference] = field(default_factory=dict)
    duration_ms: int = 0
    comparison_time: str = field(default_factory=now_comparison_time)
    # Common keys whose row vanished between key extraction and row fetch
    read_skew_keys: list[Any] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return (
            not self.only_in_record
            and not self.only_in_replica
            and not self.field_differences
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "table_name": self.table_name,
            "record_count": self.record_count,
            "replica_count": self.replica_count,
            "consistent": self.consistent,
            "only_in_record": list(self.only_in_record),
            "only_in_replica": list(self.only_in_replica),
            "field_differences": {
                _key_str(key): diff.to_dict()
                for key, diff in self.field_differences.items()
            },
            "duration_ms": self.duration_ms,
            "comparison_time": self.comparison_time,
            "read_skew_keys": list(self.read_skew_keys),
        }


@dataclass
class TableCountComparison:
    """Count-only audit of one table, optionally restricted to a time window."""

    table_name: str
    start_time: Any
    end_time: Any
    record_count: int
    replica_count: int
    ratio: float
    comparison_time: str = field(default_factory=now_comparison_time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "table_name": self.table_name,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "record_count": self.record_count,
            "replica_count": self.replica_count,
            "ratio": self.ratio,
            "comparison_time": self.comparison_time,
        }


@dataclass
class TableDataComparison:
    """Filtered single-table audit: counts, ratio and row-level differences."""

    table_name: str
    record_count: int
    replica_count: int
    ratio: float
    only_in_record: list[Any] = field(default_factory=list)
    only_in_replica: list[Any] = field(default_factory=list)
    field_differences: dict[Any, FieldDifference] = field(default_factory=dict)
    read_skew_keys: list[Any] = field(default_factory=list)

    @classmethod
    def from_result(cls, result: ComparisonResult, ratio: float) -> "TableDataComparison":
        return cls(
            table_name=result.table_name,
            record_count=result.record_count,
            replica_count=result.replica_count,
            ratio=ratio,
            only_in_record=result.only_in_record,
            only_in_replica=result.only_in_replica,
            field_differences=result.field_differences,
            read_skew_keys=result.read_skew_keys,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "table_name": self.table_name,
            "record_count": self.record_count,
            "replica_count": self.replica_count,
            "ratio": self.ratio,
            "only_in_record": list(self.only_in_record),
            "only_in_replica": list(self.only_in_replica),
            "field_differences": {
                _key_str(key): diff.to_dict()
                for key, diff in self.field_differences.items()
            },
            "read_skew_keys": list(self.read_skew_keys),
        }
