"""
Command-line interface for the dual-database validator.

Available commands:
- run: Compare configured tables once
- counts: Compare row counts, optionally inside a time window
- table-data: Full comparison of one table with ad-hoc filters
- schedule: Set up periodic validation jobs
- report: Render a saved report
"""

import os
import sys

from dbvalidator.utils.tracing import initialize_tracing, shutdown_tracing

from .commands import cmd_counts, cmd_report, cmd_run, cmd_schedule, cmd_table_data
from .credentials import get_settings, setup_logging
from .parser import create_parser

COMMANDS = {
    'run': cmd_run,
    'counts': cmd_counts,
    'table-data': cmd_table_data,
    'schedule': cmd_schedule,
    'report': cmd_report,
}


def main() -> None:
    """Main entry point for the dbvalidator CLI"""
    parser = create_parser()
    args = parser.parse_args()

    setup_logging(args.log_level, log_file=args.log_file, json_format=args.json_logs)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    if args.otlp_endpoint or os.getenv("OTLP_ENDPOINT"):
        initialize_tracing(otlp_endpoint=args.otlp_endpoint)
    try:
        command(args)
    finally:
        shutdown_tracing()


__all__ = [
    'main',
    'setup_logging',
    'get_settings',
    'cmd_run',
    'cmd_counts',
    'cmd_table_data',
    'cmd_schedule',
    'cmd_report',
    'create_parser',
]


if __name__ == '__main__':
    main()
