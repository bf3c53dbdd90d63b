"""
Job functions for scheduled validation runs.

validation_job() is what the scheduler executes: it connects both
sources, compares the configured tables, and saves a JSON report (plus
optional difference CSVs) to the output directory.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from dbvalidator.config import SourceSettings, ValidatorSettings
from dbvalidator.engine import ReconciliationEngine
from dbvalidator.model import ComparisonResult
from dbvalidator.report import export_differences_csv, export_report_json, generate_report
from dbvalidator.sources import DataSource, create_source
from dbvalidator.utils.tracing import trace_operation

logger = logging.getLogger(__name__)


def run_tables(
    engine: ReconciliationEngine,
    tables: Iterable[str],
    continue_on_error: bool = True,
) -> tuple[list[ComparisonResult], list[dict[str, str]]]:
    """
    Compare a list of tables, optionally carrying on past failures.

    Args:
        engine: Engine to run the comparisons on
        tables: Table names, processed in order
        continue_on_error: Record a failure and move on instead of raising

    Returns:
        Tuple of (comparison_results, failed_tables)
    """
    results = []
    failed_tables = []

    for table in tables:
        try:
            results.append(engine.compare_table(table))
        except Exception as e:
            if not continue_on_error:
                raise
            logger.error(f"Error comparing table {table}: {e}", exc_info=True)
            failed_tables.append({"table": table, "error": str(e)})

    return results, failed_tables


def validation_job(
    settings: ValidatorSettings,
    output_dir: str,
    export_csv: bool = False,
    source_factory: Callable[[str, SourceSettings], DataSource] = create_source,
) -> dict[str, Any]:
    """
    Scheduled validation of every configured table

    Args:
        settings: Loaded validator settings
        output_dir: Directory to save reports in
        export_csv: Also write a difference CSV per inconsistent table
        source_factory: Builds an adapter from connection settings

    Returns:
        The generated report dictionary
    """
    timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    output_path = out / f"validation_{timestamp}.json"

    logger.info(f"Starting scheduled validation at {timestamp}")

    record = source_factory("record", settings.record)
    replica = source_factory("replica", settings.replica)

    try:
        with trace_operation("scheduled_validation", table_count=len(settings.config.tables)):
            with ReconciliationEngine(record, replica, settings.config) as engine:
                results, failed_tables = run_tables(engine, settings.config.tables)
    finally:
        for source in (record, replica):
            close = getattr(source, "close", None)
            if close is not None:
                close()

    report = generate_report(results)
    if failed_tables:
        report["failed_tables"] = failed_tables
        report["status"] = "FAIL"
        logger.warning(
            f"Failed to compare {len(failed_tables)} table(s): "
            f"{[ft['table'] for ft in failed_tables]}"
        )

    export_report_json(report, output_path)

    if export_csv:
        for result in results:
            if not result.consistent:
                export_differences_csv(result, out / f"{result.table_name}_{timestamp}_differences.csv")

    logger.info(f"Validation complete. Report saved to {output_path}")
    logger.info(f"Status: {report['status']}")
    return report
