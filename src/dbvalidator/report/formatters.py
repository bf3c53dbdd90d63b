"""
Report formatting and export utilities.

This module provides functions to export validation reports as JSON,
write per-table difference CSVs, and render reports for the console.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any

from dbvalidator.model import ComparisonResult, TableCountComparison

logger = logging.getLogger(__name__)

CSV_HEADER = ["primary_key", "field", "record_value", "replica_value", "difference_type"]


def export_report_json(report: dict[str, Any], output_path: str | Path) -> None:
    """
    Export report to JSON file

    Values JSON cannot represent (datetimes, Decimals) are written as strings.

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    with open(output_path, 'w') as f:
        json.dump(report, f, indent=2, default=str)


def load_report_json(input_path: str | Path) -> dict[str, Any]:
    """Read a report previously written by export_report_json()."""
    with open(input_path) as f:
        return json.load(f)


def export_differences_csv(result: ComparisonResult, output_path: str | Path) -> Path:
    """
    Write one CSV line per difference found in a table

    Keys only on the record side, keys only on the replica side, then one
    line per differing field of each row.

    Args:
        result: Comparison result for one table
        output_path: CSV file, or a directory to place
            ``<table>_differences.csv`` in

    Returns:
        Path of the written file
    """
    path = Path(output_path)
    if path.is_dir():
        path = path / f"{result.table_name}_differences.csv"

    with open(path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)

        for key in result.only_in_record:
            writer.writerow([key, "*", "present", "absent", "MISSING_IN_REPLICA"])

        for key in result.only_in_replica:
            writer.writerow([key, "*", "absent", "present", "EXTRA_IN_REPLICA"])

        for key, diff in result.field_differences.items():
            for name, pair in diff.different_fields.items():
                writer.writerow([
                    key,
                    name,
                    "" if pair.record_value is None else pair.record_value,
                    "" if pair.replica_value is None else pair.replica_value,
                    "FIELD_MISMATCH",
                ])

    logger.info(f"Difference CSV for {result.table_name} written to {path}")
    return path


def _format_table(table: dict[str, Any]) -> list[str]:
    lines = []
    lines.append("-" * 80)
    lines.append(f"Table: {table['table_name']}")
    lines.append(f"  Consistent: {'yes' if table['consistent'] else 'NO'}")
    lines.append(f"  Duration: {table['duration_ms']} ms")
    lines.append(f"  Record Rows: {table['record_count']:,}")
    lines.append(f"  Replica Rows: {table['replica_count']:,}")

    if table['only_in_record']:
        lines.append(f"  Only in record ({len(table['only_in_record'])}): {table['only_in_record']}")
    if table['only_in_replica']:
        lines.append(f"  Only in replica ({len(table['only_in_replica'])}): {table['only_in_replica']}")

    differences = table['field_differences']
    if differences:
        lines.append(f"  Rows with field differences: {len(differences)}")
        for key, diff in differences.items():
            lines.append(f"    Key {key}:")
            for name, pair in diff['different_fields'].items():
                lines.append(f"      [{name}] record={pair['record_value']!r} replica={pair['replica_value']!r}")

    if table.get('read_skew_keys'):
        lines.append(f"  Not compared (changed during run): {len(table['read_skew_keys'])}")

    return lines


def format_report_console(report: dict[str, Any]) -> str:
    """
    Format report for console output

    Args:
        report: Report dictionary

    Returns:
        Formatted string for console display
    """
    lines = []

    lines.append("=" * 80)
    lines.append("DATABASE VALIDATION REPORT")
    lines.append("=" * 80)
    lines.append(f"Status: {report['status']}")
    lines.append(f"Timestamp: {report['timestamp']}")
    lines.append(f"Total Tables: {report['total_tables']}")
    lines.append(f"Tables Consistent: {report['tables_consistent']}")
    lines.append(f"Tables Inconsistent: {report['tables_inconsistent']}")
    lines.append(f"Record Total Rows: {report['record_total_rows']:,}")
    lines.append(f"Replica Total Rows: {report['replica_total_rows']:,}")
    lines.append("")

    lines.append("SUMMARY")
    lines.append("-" * 80)
    lines.append(report['summary'])
    lines.append("")

    for table in report.get('tables', []):
        lines.extend(_format_table(table))
    if report.get('tables'):
        lines.append("")

    if report['discrepancies']:
        lines.append("DISCREPANCIES")
        lines.append("-" * 80)

        for disc in report['discrepancies']:
            lines.append(f"Table: {disc['table']}")
            lines.append(f"  Issue: {disc['issue_type']}")
            lines.append(f"  Severity: {disc['severity']}")
            lines.append(f"  Details: {disc['details']}")
            lines.append("")

    if report['recommendations']:
        lines.append("RECOMMENDATIONS")
        lines.append("-" * 80)
        for i, rec in enumerate(report['recommendations'], 1):
            lines.append(f"{i}. {rec}")
        lines.append("")

    lines.append("=" * 80)

    return "\n".join(lines)


def format_count_comparisons(comparisons: list[TableCountComparison]) -> str:
    """Render count-only comparisons as a fixed-width table."""
    lines = []
    lines.append(f"{'Table':<30} {'Record':>12} {'Replica':>12} {'Ratio':>8}")
    lines.append("-" * 65)
    for c in comparisons:
        lines.append(
            f"{c.table_name:<30} {c.record_count:>12,} {c.replica_count:>12,} {c.ratio:>8.4f}"
        )
    if comparisons and comparisons[0].start_time is not None:
        lines.append("")
        lines.append(f"Window: {comparisons[0].start_time} .. {comparisons[0].end_time or 'open'}")
    return "\n".join(lines)
