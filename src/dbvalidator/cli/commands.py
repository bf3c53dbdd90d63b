"""
CLI command implementations.

- run: one-time comparison of configured tables
- counts: time-windowed row count comparison
- table-data: full comparison of one table with ad-hoc filters
- schedule: periodic validation via APScheduler
- report: re-render a saved JSON report

Every command exits 0 when all compared tables are consistent and 1 when
any table is inconsistent or a comparison fails.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from dbvalidator.config import ValidatorSettings
from dbvalidator.engine import ReconciliationEngine
from dbvalidator.model import ComparisonResult
from dbvalidator.report import (
    export_differences_csv,
    export_report_json,
    format_count_comparisons,
    format_report_console,
    generate_report,
    load_report_json,
)
from dbvalidator.scheduler import ValidationScheduler, run_tables, validation_job
from dbvalidator.sources import create_source
from dbvalidator.utils.logging import ContextLogger
from dbvalidator.utils.metrics import start_metrics_server

from .credentials import get_settings

logger = ContextLogger(__name__)


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]


def _build_engine(settings: ValidatorSettings, args: argparse.Namespace) -> ReconciliationEngine:
    record = create_source("record", settings.record)
    replica = create_source("replica", settings.replica)
    return ReconciliationEngine(
        record,
        replica,
        settings.config,
        concurrent=not getattr(args, "sequential", False),
    )


def _close_engine(engine: ReconciliationEngine) -> None:
    engine.close()
    for source in (engine.record, engine.replica):
        source.close()


def _emit_report(
    report: dict[str, Any],
    results: list[ComparisonResult],
    args: argparse.Namespace,
) -> None:
    if args.format == "json":
        if args.output:
            output_path = Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            export_report_json(report, output_path)
            logger.info(f"Report saved to {output_path}")
        else:
            print(json.dumps(report, indent=2, default=str))
    elif args.format == "csv":
        output_dir = Path(args.output or ".")
        output_dir.mkdir(parents=True, exist_ok=True)
        for result in results:
            export_differences_csv(result, output_dir)
    else:
        print(format_report_console(report))


def cmd_run(args: argparse.Namespace) -> None:
    """
    Compare the configured tables once

    Args:
        args: Parsed command-line arguments
    """
    settings = get_settings(args)
    tables = _split(args.tables) or settings.config.tables

    log = logger.bind(command="run", table_count=len(tables))
    log.info(f"Comparing {len(tables)} table(s): {', '.join(tables)}")

    try:
        engine = _build_engine(settings, args)
    except ValueError as e:
        log.error(f"Cannot start comparison: {e}")
        sys.exit(1)

    try:
        results, failed_tables = run_tables(
            engine, tables, continue_on_error=args.continue_on_error
        )
    except Exception as e:
        log.error(f"Comparison failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        _close_engine(engine)

    report = generate_report(results)
    if failed_tables:
        report["failed_tables"] = failed_tables
        report["status"] = "FAIL"
        for failure in failed_tables:
            log.error(f"  {failure['table']}: {failure['error']}")

    _emit_report(report, results, args)

    if report["status"] == "FAIL":
        log.warning("Validation found discrepancies", status=report["status"])
        sys.exit(1)

    log.info("Validation completed successfully", status=report["status"])
    sys.exit(0)


def cmd_counts(args: argparse.Namespace) -> None:
    """
    Compare row counts for a list of tables

    Args:
        args: Parsed command-line arguments
    """
    settings = get_settings(args)
    tables = _split(args.tables) or settings.config.tables
    log = logger.bind(command="counts", table_count=len(tables))

    try:
        engine = _build_engine(settings, args)
        try:
            comparisons = engine.compare_table_counts(
                tables, args.start, args.end, args.time_column
            )
        finally:
            _close_engine(engine)
    except Exception as e:
        log.error(f"Count comparison failed: {e}", exc_info=True)
        sys.exit(1)

    print(format_count_comparisons(comparisons))

    if args.output:
        with open(args.output, 'w') as f:
            json.dump([c.to_dict() for c in comparisons], f, indent=2, default=str)
        log.info(f"Count comparisons saved to {args.output}")

    mismatched = [c for c in comparisons if c.record_count != c.replica_count]
    if mismatched:
        log.warning(f"{len(mismatched)} table(s) have different row counts")
        sys.exit(1)
    sys.exit(0)


def cmd_table_data(args: argparse.Namespace) -> None:
    """
    Compare one table with per-request ignore list and time window

    Args:
        args: Parsed command-line arguments
    """
    settings = get_settings(args)
    log = logger.bind(command="table-data", table_name=args.table)

    try:
        engine = _build_engine(settings, args)
        try:
            comparison = engine.compare_table_data(
                args.table,
                ignored_fields=_split(args.ignore_fields),
                start=args.start,
                end=args.end,
                time_column=args.time_column,
            )
        finally:
            _close_engine(engine)
    except Exception as e:
        log.error(f"Comparison failed: {e}", exc_info=True)
        sys.exit(1)

    result = ComparisonResult(
        table_name=comparison.table_name,
        record_count=comparison.record_count,
        replica_count=comparison.replica_count,
        only_in_record=comparison.only_in_record,
        only_in_replica=comparison.only_in_replica,
        field_differences=comparison.field_differences,
        read_skew_keys=comparison.read_skew_keys,
    )
    report = generate_report([result])
    report["ratio"] = comparison.ratio
    _emit_report(report, [result], args)

    log.info(f"Replica/record ratio {comparison.ratio:.4f}", consistent=result.consistent)
    sys.exit(0 if result.consistent else 1)


def cmd_schedule(args: argparse.Namespace) -> None:
    """
    Schedule periodic validation jobs

    Args:
        args: Parsed command-line arguments
    """
    settings = get_settings(args)
    log = logger.bind(command="schedule")

    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    scheduler = ValidationScheduler()
    job_kwargs = {
        "settings": settings,
        "output_dir": args.output_dir,
        "export_csv": args.export_csv,
    }

    if args.cron:
        scheduler.add_cron_job(validation_job, args.cron, "validation_job", **job_kwargs)
        log.info(f"Scheduled validation with cron: {args.cron}")
    else:
        scheduler.add_interval_job(validation_job, args.interval, "validation_job", **job_kwargs)
        log.info(f"Scheduled validation every {args.interval} seconds")

    log.info("Starting scheduler (press Ctrl+C to stop)")
    scheduler.start()


def cmd_report(args: argparse.Namespace) -> None:
    """
    Render a report from a previous validation JSON file

    Args:
        args: Parsed command-line arguments
    """
    logger.info(f"Loading validation report from {args.input}")

    try:
        report = load_report_json(args.input)

        if args.format == "console":
            print(format_report_console(report))
        elif args.format == "json":
            if not args.output:
                logger.error("Output file required for JSON format")
                sys.exit(1)
            export_report_json(report, args.output)
            logger.info(f"Report exported to {args.output}")

    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Failed to process report: {e}")
        sys.exit(1)
