"""
Unit tests for the batch row differ.

Covers batching, key alignment across column-name casing, field
comparison with ignore lists, read skew and duplicate keys.
"""

import logging
from decimal import Decimal
from unittest.mock import Mock

import pytest

from dbvalidator.row_level import BatchDiffResult, BatchRowDiffer, chunked


def _rows(*names):
    return [{"id": i, "name": n} for i, n in enumerate(names, start=1)]


class TestChunked:
    """Splitting keys into batches."""

    def test_even_split(self):
        assert chunked([1, 2, 3, 4], 2) == [[1, 2], [3, 4]]

    def test_last_chunk_smaller(self):
        assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_size_larger_than_input(self):
        assert chunked([1, 2], 1000) == [[1, 2]]

    def test_empty(self):
        assert chunked([], 10) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError, match="Batch size"):
            chunked([1], 0)


class TestCompareRows:
    """Field-by-field comparison of two rows."""

    def setup_method(self):
        """Set up test fixtures."""
        self.record = Mock()
        self.replica = Mock()
        self.differ = BatchRowDiffer(
            self.record, self.replica, "id", ignore_fields=["UPDATED_AT"]
        )

    def test_identical_rows(self):
        row = {"id": 1, "name": "Alice"}
        assert self.differ.compare_rows(1, row, dict(row)) is None

    def test_normalized_equal_rows(self):
        record_row = {"ID": 1, "NAME": "Alice ", "AMOUNT": 10}
        replica_row = {"id": 1, "name": "Alice", "amount": 10.0}
        assert self.differ.compare_rows(1, record_row, replica_row) is None

    def test_case_sensitive_text_difference(self):
        record_row = {"ID": 7, "NAME": "Alice"}
        replica_row = {"id": 7, "name": "alice "}

        diff = self.differ.compare_rows(7, record_row, replica_row)

        assert diff is not None
        assert diff.primary_key == 7
        assert list(diff.different_fields) == ["name"]
        pair = diff.different_fields["name"]
        assert pair.record_value == "Alice"
        assert pair.replica_value == "alice "
        assert diff.record_data is record_row
        assert diff.replica_data is replica_row

    def test_ignored_field_never_reported(self):
        record_row = {"id": 1, "updated_at": "2024-01-01"}
        replica_row = {"id": 1, "updated_at": "2024-06-30"}
        assert self.differ.compare_rows(1, record_row, replica_row) is None

    def test_single_ignored_field_as_string(self):
        differ = BatchRowDiffer(self.record, self.replica, "id", ignore_fields="Name")
        record_row = {"id": 1, "name": "a", "email": "a@example.com"}
        replica_row = {"id": 1, "name": "b", "email": "a@example.com"}

        assert differ.ignore_fields == {"name"}
        assert differ.compare_rows(1, record_row, replica_row) is None

    def test_nan_values_equal(self):
        record_row = {"id": 1, "score": Decimal("NaN")}
        replica_row = {"id": 1, "score": float("nan")}
        assert self.differ.compare_rows(1, record_row, replica_row) is None

    def test_field_missing_on_one_side(self):
        record_row = {"id": 1, "name": "a", "email": "a@example.com"}
        replica_row = {"id": 1, "name": "a"}

        diff = self.differ.compare_rows(1, record_row, replica_row)

        assert list(diff.different_fields) == ["email"]
        assert diff.different_fields["email"].replica_value is None

    def test_extra_null_field_on_one_side_is_equal(self):
        record_row = {"id": 1, "name": "a"}
        replica_row = {"id": 1, "name": "a", "note": None}
        assert self.differ.compare_rows(1, record_row, replica_row) is None


class TestDiffBatch:
    """Fetching and diffing one batch of keys."""

    def test_aligns_upper_and_lower_case_rows(self, make_source):
        record = make_source("record", {"t": _rows("a", "b", "c")}, upper=True)
        replica = make_source("replica", {"t": _rows("a", "B", "c")})
        differ = BatchRowDiffer(record, replica, "id")

        result = differ.diff_batch("t", [1, 2, 3])

        assert list(result.differences) == [2]
        assert result.differences[2].different_fields["name"].record_value == "b"
        assert result.rows_compared == 3
        assert result.skipped_keys == []

    def test_one_query_per_side(self, make_source):
        record = make_source("record", {"t": _rows("a", "b")})
        replica = make_source("replica", {"t": _rows("a", "b")})
        differ = BatchRowDiffer(record, replica, "id")

        differ.diff_batch("t", [1, 2])

        assert [c[0] for c in record.calls] == ["rows"]
        assert [c[0] for c in replica.calls] == ["rows"]

    def test_read_skew_skipped(self, make_source):
        record = make_source("record", {"t": _rows("a", "b", "c")})
        replica = make_source("replica", {"t": _rows("a", "x", "c")})
        replica.vanish = {2}
        differ = BatchRowDiffer(record, replica, "id")

        result = differ.diff_batch("t", [1, 2, 3])

        assert result.differences == {}
        assert result.skipped_keys == [2]
        assert result.rows_compared == 2

    def test_empty_batch_issues_no_queries(self, make_source):
        record = make_source("record")
        replica = make_source("replica")
        differ = BatchRowDiffer(record, replica, "id")

        result = differ.diff_batch("t", [])

        assert result == BatchDiffResult()
        assert record.calls == []

    def test_duplicate_key_last_row_wins(self, caplog):
        record = Mock()
        record.name = "record"
        record.column_key.side_effect = str.lower
        record.rows.return_value = [{"id": 1, "name": "old"}, {"id": 1, "name": "new"}]
        replica = Mock()
        replica.name = "replica"
        replica.column_key.side_effect = str.lower
        replica.rows.return_value = [{"id": 1, "name": "new"}]

        differ = BatchRowDiffer(record, replica, "id")
        with caplog.at_level(logging.WARNING):
            result = differ.diff_batch("t", [1])

        assert result.differences == {}
        assert "duplicate primary key" in caplog.text

    def test_time_window_passed_to_row_queries(self, make_source):
        record = Mock()
        record.name = "record"
        record.column_key.side_effect = str.lower
        record.rows.return_value = []
        replica = Mock()
        replica.name = "replica"
        replica.column_key.side_effect = str.lower
        replica.rows.return_value = []
        window = object()

        differ = BatchRowDiffer(record, replica, "id", time_window=window)
        differ.diff_batch("t", [1])

        record.rows.assert_called_once_with("t", "id", [1], window)
        replica.rows.assert_called_once_with("t", "id", [1], window)


class TestDiffKeys:
    """Batching across many keys."""

    def test_batches_merge_to_same_result(self, make_source):
        names = [f"n{i}" for i in range(10)]
        changed = list(names)
        changed[3] = "changed"
        changed[8] = "changed"

        record = make_source("record", {"t": _rows(*names)})
        replica = make_source("replica", {"t": _rows(*changed)})
        differ = BatchRowDiffer(record, replica, "id")
        keys = list(range(1, 11))

        one = differ.diff_keys("t", keys, 1)
        all_at_once = differ.diff_keys("t", keys, 1000)

        assert list(one.differences) == [4, 9]
        assert one.differences == all_at_once.differences
        assert one.rows_compared == all_at_once.rows_compared == 10

    def test_batch_count(self, make_source):
        record = make_source("record", {"t": _rows(*"abcde")})
        replica = make_source("replica", {"t": _rows(*"abcde")})
        differ = BatchRowDiffer(record, replica, "id")

        differ.diff_keys("t", [1, 2, 3, 4, 5], 2)

        assert len([c for c in record.calls if c[0] == "rows"]) == 3
