"""
Report generation logic for comparison results.

This module rolls a list of ComparisonResult values up into one report
dictionary: overall status, totals, one discrepancy entry per problem
found and a short list of recommended actions. The full per-table
results are embedded so that a saved report can be re-rendered later.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from dbvalidator.model import ComparisonResult


class DiscrepancyType:
    """Constants for discrepancy types."""

    ROW_COUNT_MISMATCH = "ROW_COUNT_MISMATCH"
    MISSING_IN_REPLICA = "MISSING_IN_REPLICA"
    EXTRA_IN_REPLICA = "EXTRA_IN_REPLICA"
    FIELD_MISMATCH = "FIELD_MISMATCH"


def _discrepancy(
    result: ComparisonResult,
    issue_type: str,
    severity: str,
    details: dict[str, Any],
) -> dict[str, Any]:
    return {
        "table": result.table_name,
        "issue_type": issue_type,
        "severity": severity,
        "details": details,
        "timestamp": result.comparison_time,
    }


def _table_discrepancies(
    result: ComparisonResult,
    severity_func: Callable[[int, int], str],
) -> list[dict[str, Any]]:
    """
    Build the discrepancy records for one table.

    Args:
        result: Comparison result for the table
        severity_func: Function to calculate severity from (base, difference)

    Returns:
        List of discrepancy dictionaries (empty for a consistent table)
    """
    discrepancies = []

    if result.record_count != result.replica_count:
        difference = result.replica_count - result.record_count
        discrepancies.append(_discrepancy(
            result,
            DiscrepancyType.ROW_COUNT_MISMATCH,
            severity_func(result.record_count, abs(difference)),
            {
                "record_count": result.record_count,
                "replica_count": result.replica_count,
                "difference": difference,
            },
        ))

    if result.only_in_record:
        discrepancies.append(_discrepancy(
            result,
            DiscrepancyType.MISSING_IN_REPLICA,
            severity_func(result.record_count, len(result.only_in_record)),
            {
                "count": len(result.only_in_record),
                "sample_keys": list(result.only_in_record[:10]),
            },
        ))

    if result.only_in_replica:
        discrepancies.append(_discrepancy(
            result,
            DiscrepancyType.EXTRA_IN_REPLICA,
            severity_func(result.record_count, len(result.only_in_replica)),
            {
                "count": len(result.only_in_replica),
                "sample_keys": list(result.only_in_replica[:10]),
            },
        ))

    if result.field_differences:
        fields = sorted({
            name
            for diff in result.field_differences.values()
            for name in diff.different_fields
        })
        discrepancies.append(_discrepancy(
            result,
            DiscrepancyType.FIELD_MISMATCH,
            severity_func(result.record_count, len(result.field_differences)),
            {
                "rows": len(result.field_differences),
                "fields": fields,
            },
        ))

    return discrepancies


def generate_report(comparison_results: list[ComparisonResult]) -> dict[str, Any]:
    """
    Generate a validation report from comparison results

    Args:
        comparison_results: List of ComparisonResult values

    Returns:
        Dictionary containing:
        - status: PASS, FAIL, or NO_DATA
        - total_tables: Number of tables compared
        - tables_consistent: Number of consistent tables
        - tables_inconsistent: Number of tables with discrepancies
        - discrepancies: List of discrepancy details
        - summary: Human-readable summary
        - recommendations: List of recommended actions
        - timestamp: Report generation timestamp
        - record_total_rows: Total rows on the record side
        - replica_total_rows: Total rows on the replica side
        - tables: Full per-table results (ComparisonResult.to_dict())
    """
    timestamp = datetime.now(UTC).isoformat()

    if not comparison_results:
        return {
            "status": "NO_DATA",
            "total_tables": 0,
            "tables_consistent": 0,
            "tables_inconsistent": 0,
            "discrepancies": [],
            "summary": "No comparison data available",
            "recommendations": [],
            "timestamp": timestamp,
            "record_total_rows": 0,
            "replica_total_rows": 0,
            "tables": [],
        }

    total_tables = len(comparison_results)
    tables_consistent = sum(1 for r in comparison_results if r.consistent)
    tables_inconsistent = total_tables - tables_consistent

    discrepancies = []
    for result in comparison_results:
        discrepancies.extend(_table_discrepancies(result, _calculate_severity))

    return {
        "status": "PASS" if tables_inconsistent == 0 else "FAIL",
        "total_tables": total_tables,
        "tables_consistent": tables_consistent,
        "tables_inconsistent": tables_inconsistent,
        "discrepancies": discrepancies,
        "summary": _generate_summary(total_tables, tables_consistent, tables_inconsistent),
        "recommendations": _generate_recommendations(discrepancies),
        "timestamp": timestamp,
        "record_total_rows": sum(r.record_count for r in comparison_results),
        "replica_total_rows": sum(r.replica_count for r in comparison_results),
        "tables": [r.to_dict() for r in comparison_results],
    }


def _calculate_severity(base_count: int, difference: int) -> str:
    """
    Calculate severity level relative to the record-side row count

    Args:
        base_count: Number of rows on the record side
        difference: Number of affected rows

    Returns:
        Severity level: LOW, MEDIUM, HIGH, or CRITICAL
    """
    if base_count == 0:
        return "LOW" if difference == 0 else "CRITICAL"

    percentage_diff = (difference / base_count) * 100

    if percentage_diff < 0.1:
        return "LOW"
    elif percentage_diff < 1.0:
        return "MEDIUM"
    elif percentage_diff < 10.0:
        return "HIGH"
    else:
        return "CRITICAL"


def _generate_summary(total_tables: int, consistent: int, inconsistent: int) -> str:
    """
    Generate human-readable summary

    Args:
        total_tables: Total number of tables compared
        consistent: Number of consistent tables
        inconsistent: Number of tables with discrepancies

    Returns:
        Summary string
    """
    if inconsistent == 0:
        return f"All {total_tables} tables are consistent between record and replica."
    return (
        f"Validation found discrepancies in {inconsistent} of {total_tables} tables. "
        f"{consistent} tables are consistent."
    )


def _generate_recommendations(discrepancies: list[dict[str, Any]]) -> list[str]:
    """
    Generate actionable recommendations based on discrepancies

    Args:
        discrepancies: List of discrepancy details

    Returns:
        List of recommendation strings
    """
    if not discrepancies:
        return ["Data is consistent. Keep the validation schedule running."]

    recommendations = []

    def issues(issue_type: str) -> list[dict[str, Any]]:
        return [d for d in discrepancies if d["issue_type"] == issue_type]

    missing = issues(DiscrepancyType.MISSING_IN_REPLICA)
    if missing:
        total = sum(d["details"]["count"] for d in missing)
        recommendations.append(
            f"Replica is missing {total} row(s). Check for failed or skipped "
            "secondary writes in the dual-write path."
        )

    extra = issues(DiscrepancyType.EXTRA_IN_REPLICA)
    if extra:
        total = sum(d["details"]["count"] for d in extra)
        recommendations.append(
            f"Replica has {total} row(s) not present on the record side. "
            "Look for deletes that were not propagated or writes made only to the replica."
        )

    mismatched = issues(DiscrepancyType.FIELD_MISMATCH)
    if mismatched:
        fields = sorted({f for d in mismatched for f in d["details"]["fields"]})
        recommendations.append(
            f"Field values differ in {len(mismatched)} table(s) "
            f"(fields: {', '.join(fields)}). Check type mappings and update paths; "
            "add volatile columns to ignore_fields if the drift is expected."
        )

    if len({d["table"] for d in discrepancies}) > 5:
        recommendations.append(
            "Multiple tables affected. Consider pausing the migration and "
            "running a full resync before the next validation."
        )

    return recommendations
