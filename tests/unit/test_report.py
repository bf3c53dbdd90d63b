"""
Unit tests for report generation and formatting.
"""

import csv
import json
from datetime import datetime
from decimal import Decimal

from dbvalidator.model import (
    ComparisonResult,
    FieldDifference,
    FieldValuePair,
    TableCountComparison,
)
from dbvalidator.report import (
    DiscrepancyType,
    _calculate_severity,
    export_differences_csv,
    export_report_json,
    format_count_comparisons,
    format_report_console,
    generate_report,
    load_report_json,
)


def _inconsistent():
    diff = FieldDifference(
        primary_key=3,
        record_data={"id": 3, "amount": Decimal("10.50"), "note": "a, b"},
        replica_data={"id": 3, "amount": Decimal("10.00"), "note": None},
        different_fields={
            "amount": FieldValuePair("amount", Decimal("10.50"), Decimal("10.00")),
            "note": FieldValuePair("note", "a, b", None),
        },
    )
    return ComparisonResult(
        "orders", 100, 100,
        only_in_record=[5],
        only_in_replica=[6],
        field_differences={3: diff},
    )


class TestGenerateReport:
    """Report roll-up"""

    def test_no_data(self):
        report = generate_report([])
        assert report["status"] == "NO_DATA"
        assert report["total_tables"] == 0
        assert report["tables"] == []

    def test_pass(self):
        report = generate_report([ComparisonResult("users", 10, 10)])

        assert report["status"] == "PASS"
        assert report["tables_consistent"] == 1
        assert report["discrepancies"] == []
        assert "consistent" in report["summary"]
        assert len(report["recommendations"]) == 1

    def test_fail(self):
        report = generate_report([ComparisonResult("users", 10, 10), _inconsistent()])

        assert report["status"] == "FAIL"
        assert report["tables_inconsistent"] == 1
        assert report["record_total_rows"] == 110
        types = [d["issue_type"] for d in report["discrepancies"]]
        assert types == [
            DiscrepancyType.MISSING_IN_REPLICA,
            DiscrepancyType.EXTRA_IN_REPLICA,
            DiscrepancyType.FIELD_MISMATCH,
        ]
        field_issue = report["discrepancies"][2]
        assert field_issue["details"]["fields"] == ["amount", "note"]
        assert len(report["tables"]) == 2

    def test_row_count_mismatch(self):
        report = generate_report([ComparisonResult("users", 10, 8, only_in_record=[9, 10])])

        count_issue = report["discrepancies"][0]
        assert count_issue["issue_type"] == DiscrepancyType.ROW_COUNT_MISMATCH
        assert count_issue["details"]["difference"] == -2
        assert count_issue["severity"] == "CRITICAL"

    def test_severity(self):
        assert _calculate_severity(0, 0) == "LOW"
        assert _calculate_severity(0, 1) == "CRITICAL"
        assert _calculate_severity(100000, 50) == "LOW"
        assert _calculate_severity(1000, 5) == "MEDIUM"
        assert _calculate_severity(100, 5) == "HIGH"
        assert _calculate_severity(100, 50) == "CRITICAL"


class TestFormatters:
    """Console, JSON and CSV output"""

    def test_console_contains_details(self):
        text = format_report_console(generate_report([_inconsistent()]))

        assert "DATABASE VALIDATION REPORT" in text
        assert "Status: FAIL" in text
        assert "Table: orders" in text
        assert "Only in record (1): [5]" in text
        assert "[amount]" in text
        assert "RECOMMENDATIONS" in text

    def test_json_round_trip_renders(self, tmp_path):
        path = tmp_path / "report.json"
        export_report_json(generate_report([_inconsistent()]), path)

        loaded = load_report_json(path)

        assert loaded["status"] == "FAIL"
        assert loaded["tables"][0]["field_differences"]["3"]["different_fields"]["amount"]["record_value"] == "10.50"
        assert "Table: orders" in format_report_console(loaded)

    def test_json_handles_datetimes(self, tmp_path):
        result = ComparisonResult("t", 1, 1, only_in_record=[datetime(2024, 1, 1)])
        path = tmp_path / "report.json"

        export_report_json(generate_report([result]), path)

        assert "2024-01-01 00:00:00" in path.read_text()

    def test_differences_csv(self, tmp_path):
        path = export_differences_csv(_inconsistent(), tmp_path)

        assert path.name == "orders_differences.csv"
        with open(path, newline='') as f:
            rows = list(csv.reader(f))

        assert rows[0] == ["primary_key", "field", "record_value", "replica_value", "difference_type"]
        assert rows[1] == ["5", "*", "present", "absent", "MISSING_IN_REPLICA"]
        assert rows[2] == ["6", "*", "absent", "present", "EXTRA_IN_REPLICA"]
        assert rows[3] == ["3", "amount", "10.50", "10.00", "FIELD_MISMATCH"]
        assert rows[4] == ["3", "note", "a, b", "", "FIELD_MISMATCH"]

    def test_differences_csv_explicit_file(self, tmp_path):
        target = tmp_path / "out.csv"
        assert export_differences_csv(ComparisonResult("t", 0, 0), target) == target
        assert target.read_text().startswith("primary_key,")

    def test_count_comparisons(self):
        text = format_count_comparisons([
            TableCountComparison("orders", "2024-01-01", "2024-01-31", 1000, 990, 0.99),
        ])

        assert "orders" in text
        assert "0.9900" in text
        assert "Window: 2024-01-01 .. 2024-01-31" in text
