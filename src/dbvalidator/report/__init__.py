"""
Validation report generation and formatting.

This submodule turns comparison results into a report dictionary and
renders it for the console, as JSON, or as a per-table CSV of differences.
"""

from .formatters import (
    export_differences_csv,
    export_report_json,
    format_count_comparisons,
    format_report_console,
    load_report_json,
)
from .generator import (
    DiscrepancyType,
    _calculate_severity,
    _generate_recommendations,
    _generate_summary,
    generate_report,
)

__all__ = [
    'generate_report',
    'DiscrepancyType',
    'export_report_json',
    'load_report_json',
    'export_differences_csv',
    'format_report_console',
    'format_count_comparisons',
    '_calculate_severity',
    '_generate_summary',
    '_generate_recommendations',
]
