"""
Command-line argument parser configuration.

This module sets up the argument parser for the dbvalidator CLI tool,
defining all commands and their options.
"""

import argparse


def _add_window_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--start',
        help='Inclusive lower bound of the time window (ISO date or datetime)'
    )
    parser.add_argument(
        '--end',
        help='Inclusive upper bound of the time window (ISO date or datetime)'
    )
    parser.add_argument(
        '--time-column',
        help='Column the time window applies to (default: time_filter.column from config)'
    )


def _add_output_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Output format (default: console)'
    )
    parser.add_argument(
        '--output',
        help='Output file (json) or directory (csv) for the report'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='dbvalidator',
        description="Validate that a table kept in two databases has identical contents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compare every table listed in the config file
  dbvalidator --config validator.yaml run

  # Compare two tables, keep going if one fails, save JSON report
  dbvalidator run --tables user_info,orders --continue-on-error --format json --output report.json

  # Count-only audit of January
  dbvalidator counts --tables orders --start 2024-01-01 --end 2024-01-31 --time-column created_at

  # Full comparison of one table, ignoring volatile columns
  dbvalidator table-data --table user_info --ignore-fields updated_at,version

  # Validate every night at 02:00
  dbvalidator schedule --cron "0 2 * * *" --output-dir ./validation_reports

  # Re-render a saved report
  dbvalidator report --input report.json
        """
    )

    parser.add_argument(
        '--config',
        help='YAML configuration file (default: $DBVALIDATOR_CONFIG or dbvalidator.yaml)'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file (rotated)'
    )
    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit logs as JSON lines'
    )
    parser.add_argument(
        '--otlp-endpoint',
        help='OTLP gRPC collector for traces (default: $OTLP_ENDPOINT, tracing off if unset)'
    )
    parser.add_argument(
        '--sequential',
        action='store_true',
        help='Query record and replica one after another instead of in parallel'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Run command ==========
    run_parser = subparsers.add_parser('run', help='Compare configured tables once')
    run_parser.add_argument(
        '--tables',
        help='Comma-separated subset of the configured tables (default: all)'
    )
    run_parser.add_argument(
        '--continue-on-error',
        action='store_true',
        help='Continue with remaining tables if one fails'
    )
    _add_output_arguments(run_parser)

    # ========== Counts command ==========
    counts_parser = subparsers.add_parser('counts', help='Compare row counts only')
    counts_parser.add_argument(
        '--tables',
        help='Comma-separated list of tables (default: all configured)'
    )
    _add_window_arguments(counts_parser)
    counts_parser.add_argument(
        '--output',
        help='Write the comparisons as JSON to this file'
    )

    # ========== Table-data command ==========
    data_parser = subparsers.add_parser('table-data', help='Full comparison of a single table')
    data_parser.add_argument(
        '--table',
        required=True,
        help='Table to compare'
    )
    data_parser.add_argument(
        '--ignore-fields',
        help='Comma-separated fields to skip on top of the configured ones'
    )
    _add_window_arguments(data_parser)
    _add_output_arguments(data_parser)

    # ========== Schedule command ==========
    schedule_parser = subparsers.add_parser('schedule', help='Schedule periodic validation')
    schedule_parser.add_argument(
        '--cron',
        help='Cron expression (e.g., "0 2 * * *" for daily at 02:00)'
    )
    schedule_parser.add_argument(
        '--interval',
        type=int,
        default=3600,
        help='Interval in seconds (default: 3600 = 1 hour)'
    )
    schedule_parser.add_argument(
        '--output-dir',
        default='./validation_reports',
        help='Directory to save validation reports (default: ./validation_reports)'
    )
    schedule_parser.add_argument(
        '--export-csv',
        action='store_true',
        help='Also write a difference CSV for every inconsistent table'
    )
    schedule_parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port'
    )

    # ========== Report command ==========
    report_parser = subparsers.add_parser('report', help='Render a saved JSON report')
    report_parser.add_argument(
        '--input',
        required=True,
        help='Input JSON report file'
    )
    report_parser.add_argument(
        '--format',
        choices=['console', 'json'],
        default='console',
        help='Output format (default: console)'
    )
    report_parser.add_argument(
        '--output',
        help='Output file path (required for json format)'
    )

    return parser
