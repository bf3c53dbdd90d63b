"""
Unit tests for CLI module

Tests for the command-line interface functionality including
argument parsing, settings handling, and command execution.
"""

import argparse
import json
import logging
from unittest.mock import Mock, patch

import pytest

from dbvalidator.cli import (
    COMMANDS,
    cmd_counts,
    cmd_report,
    cmd_run,
    cmd_table_data,
    create_parser,
    main,
)
from dbvalidator.cli import setup_logging as cli_setup_logging
from dbvalidator.cli.credentials import get_settings, resolve_config_path
from dbvalidator.config import ReconciliationConfig, SourceSettings, ValidatorSettings
from dbvalidator.errors import ConfigurationError
from dbvalidator.report import export_report_json, generate_report
from dbvalidator.model import ComparisonResult
from dbvalidator.utils.database_types import DatabaseType


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def _settings(password="secret"):
    source = SourceSettings(
        dialect=DatabaseType.POSTGRESQL, host="db", database="app", user="app", password=password
    )
    return ValidatorSettings(
        config=ReconciliationConfig(tables=["users", "orders"], primary_key="id"),
        record=source,
        replica=source,
    )


def _rows(n):
    return [{"id": i, "email": f"u{i}@example.com"} for i in range(1, n + 1)]


@pytest.fixture
def wire_sources(make_source, metrics, monkeypatch):
    """Patch settings and source creation so commands run against memory."""

    def wire(record_tables, replica_tables, vanish=()):
        def factory(name, _settings):
            tables = record_tables if name == "record" else replica_tables
            source = make_source(name, tables)
            if name == "record":
                source.vanish = set(vanish)
            source.close = Mock()
            return source

        monkeypatch.setattr("dbvalidator.cli.commands.get_settings", lambda args: _settings())
        monkeypatch.setattr("dbvalidator.cli.commands.create_source", factory)
        monkeypatch.setattr("dbvalidator.engine.get_default_metrics", lambda: metrics)

    return wire


def _args(argv):
    return create_parser().parse_args(argv)


class TestParser:
    """Tests for create_parser"""

    def test_run_defaults(self):
        args = _args(["run"])

        assert args.command == "run"
        assert args.format == "console"
        assert args.continue_on_error is False
        assert args.sequential is False
        assert args.log_level == "INFO"

    def test_global_options(self):
        args = _args(["--config", "v.yaml", "--sequential", "--json-logs", "run", "--tables", "a,b"])

        assert args.config == "v.yaml"
        assert args.sequential is True
        assert args.json_logs is True
        assert args.tables == "a,b"

    def test_counts_window(self):
        args = _args(["counts", "--start", "2024-01-01", "--end", "2024-01-31",
                      "--time-column", "created_at"])

        assert (args.start, args.end, args.time_column) == ("2024-01-01", "2024-01-31", "created_at")

    def test_table_data_requires_table(self):
        with pytest.raises(SystemExit):
            _args(["table-data"])

    def test_schedule_defaults(self):
        args = _args(["schedule"])

        assert args.interval == 3600
        assert args.cron is None
        assert args.output_dir == "./validation_reports"

    def test_report_format_choices(self):
        with pytest.raises(SystemExit):
            _args(["report", "--input", "r.json", "--format", "csv"])


class TestSetupLogging:
    """Tests for setup_logging function"""

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR"])
    def test_setup_logging_levels(self, level):
        cli_setup_logging(level)
        assert logging.getLogger().level == getattr(logging, level)

    def test_setup_logging_with_lowercase_level(self):
        cli_setup_logging("info")
        assert logging.getLogger().level == logging.INFO


class TestGetSettings:
    """Tests for settings resolution"""

    def test_config_path_from_argument(self, monkeypatch):
        monkeypatch.setenv("DBVALIDATOR_CONFIG", "/etc/env.yaml")
        assert resolve_config_path(argparse.Namespace(config="cli.yaml")) == "cli.yaml"

    def test_config_path_from_env(self, monkeypatch):
        monkeypatch.setenv("DBVALIDATOR_CONFIG", "/etc/env.yaml")
        assert resolve_config_path(argparse.Namespace(config=None)) == "/etc/env.yaml"

    def test_config_path_default(self, monkeypatch):
        monkeypatch.delenv("DBVALIDATOR_CONFIG", raising=False)
        assert resolve_config_path(argparse.Namespace(config=None)) == "dbvalidator.yaml"

    @patch("dbvalidator.cli.credentials.load_config")
    def test_invalid_config_exits(self, mock_load):
        mock_load.side_effect = ConfigurationError("missing tables")

        with pytest.raises(SystemExit) as exc_info:
            get_settings(argparse.Namespace(config="bad.yaml"))

        assert exc_info.value.code == 1

    @patch("dbvalidator.cli.credentials.load_config")
    def test_missing_password_exits(self, mock_load):
        mock_load.return_value = _settings(password=None)

        with pytest.raises(SystemExit) as exc_info:
            get_settings(argparse.Namespace(config="v.yaml"))

        assert exc_info.value.code == 1

    @patch("dbvalidator.cli.credentials.load_config")
    def test_returns_settings(self, mock_load):
        settings = _settings()
        mock_load.return_value = settings

        assert get_settings(argparse.Namespace(config="v.yaml")) is settings


class TestCmdRun:
    """Tests for cmd_run"""

    def test_consistent_tables_exit_zero(self, wire_sources, capsys):
        tables = {"users": _rows(3), "orders": _rows(2)}
        wire_sources(tables, tables)

        with pytest.raises(SystemExit) as exc_info:
            cmd_run(_args(["run"]))

        assert exc_info.value.code == 0
        assert "DATABASE VALIDATION REPORT" in capsys.readouterr().out

    def test_inconsistent_table_exit_one(self, wire_sources):
        wire_sources({"users": _rows(3), "orders": _rows(2)},
                     {"users": _rows(3), "orders": _rows(1)})

        with pytest.raises(SystemExit) as exc_info:
            cmd_run(_args(["run"]))

        assert exc_info.value.code == 1

    def test_json_output_file(self, wire_sources, tmp_path):
        tables = {"users": _rows(2), "orders": _rows(2)}
        wire_sources(tables, tables)
        output = tmp_path / "out" / "report.json"

        with pytest.raises(SystemExit):
            cmd_run(_args(["run", "--tables", "users", "--format", "json", "--output", str(output)]))

        report = json.loads(output.read_text())
        assert report["status"] == "PASS"
        assert report["total_tables"] == 1

    def test_unknown_table_with_continue_on_error(self, wire_sources, capsys):
        tables = {"users": _rows(2)}
        wire_sources(tables, tables)

        with pytest.raises(SystemExit) as exc_info:
            cmd_run(_args(["run", "--tables", "users,payments", "--continue-on-error",
                           "--format", "json"]))

        assert exc_info.value.code == 1
        report = json.loads(capsys.readouterr().out)
        assert [f["table"] for f in report["failed_tables"]] == ["payments"]


class TestCmdCounts:
    """Tests for cmd_counts"""

    def test_equal_counts(self, wire_sources, capsys):
        tables = {"users": _rows(4), "orders": _rows(1)}
        wire_sources(tables, tables)

        with pytest.raises(SystemExit) as exc_info:
            cmd_counts(_args(["counts"]))

        assert exc_info.value.code == 0
        assert "users" in capsys.readouterr().out

    def test_mismatch_and_output(self, wire_sources, tmp_path):
        wire_sources({"users": _rows(4)}, {"users": _rows(2)})
        output = tmp_path / "counts.json"

        with pytest.raises(SystemExit) as exc_info:
            cmd_counts(_args(["counts", "--tables", "users", "--output", str(output)]))

        assert exc_info.value.code == 1
        saved = json.loads(output.read_text())
        assert saved[0]["record_count"] == 4
        assert saved[0]["replica_count"] == 2
        assert saved[0]["ratio"] == pytest.approx(0.5)


class TestCmdTableData:
    """Tests for cmd_table_data"""

    def test_ignore_fields_from_command_line(self, wire_sources):
        record = [{"id": 1, "email": "a@example.com", "note": "x"}]
        replica = [{"id": 1, "email": "a@example.com", "note": "y"}]
        wire_sources({"users": record}, {"users": replica})

        with pytest.raises(SystemExit) as exc_info:
            cmd_table_data(_args(["table-data", "--table", "users", "--ignore-fields", "note"]))

        assert exc_info.value.code == 0

    def test_keys_changed_during_run_reported(self, wire_sources, capsys):
        tables = {"users": _rows(3)}
        wire_sources(tables, tables, vanish={2})

        with pytest.raises(SystemExit) as exc_info:
            cmd_table_data(_args(["table-data", "--table", "users"]))

        assert exc_info.value.code == 0
        assert "Not compared (changed during run): 1" in capsys.readouterr().out

    def test_keys_changed_during_run_in_json(self, wire_sources, capsys):
        tables = {"users": _rows(3)}
        wire_sources(tables, tables, vanish={2})

        with pytest.raises(SystemExit):
            cmd_table_data(_args(["table-data", "--table", "users", "--format", "json"]))

        report = json.loads(capsys.readouterr().out)
        assert report["tables"][0]["read_skew_keys"] == [2]


class TestCmdReport:
    """Tests for cmd_report"""

    @pytest.fixture
    def report_file(self, tmp_path):
        path = tmp_path / "report.json"
        export_report_json(generate_report([ComparisonResult("users", 5, 4, only_in_record=[5])]), path)
        return path

    def test_console(self, report_file, capsys):
        cmd_report(argparse.Namespace(input=str(report_file), format="console", output=None))

        out = capsys.readouterr().out
        assert "DATABASE VALIDATION REPORT" in out
        assert "users" in out

    def test_json_export(self, report_file, tmp_path):
        output = tmp_path / "copy.json"

        cmd_report(argparse.Namespace(input=str(report_file), format="json", output=str(output)))

        assert json.loads(output.read_text())["status"] == "FAIL"

    def test_json_requires_output(self, report_file):
        with pytest.raises(SystemExit) as exc_info:
            cmd_report(argparse.Namespace(input=str(report_file), format="json", output=None))
        assert exc_info.value.code == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cmd_report(argparse.Namespace(
                input=str(tmp_path / "nope.json"), format="console", output=None
            ))
        assert exc_info.value.code == 1


class TestMain:
    """Tests for main entry point"""

    @patch("dbvalidator.cli.shutdown_tracing")
    @patch("dbvalidator.cli.setup_logging")
    def test_dispatches_command(self, mock_setup_logging, mock_shutdown, monkeypatch):
        monkeypatch.delenv("OTLP_ENDPOINT", raising=False)
        monkeypatch.setattr("sys.argv", ["dbvalidator", "report", "--input", "r.json"])
        handler = Mock()

        with patch.dict(COMMANDS, {"report": handler}):
            main()

        handler.assert_called_once()
        assert handler.call_args.args[0].input == "r.json"
        mock_setup_logging.assert_called_once_with("INFO", log_file=None, json_format=False)
        mock_shutdown.assert_called_once()

    @patch("dbvalidator.cli.setup_logging")
    def test_no_command_prints_help(self, mock_setup_logging, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["dbvalidator"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "usage:" in capsys.readouterr().out

    @patch("dbvalidator.cli.shutdown_tracing")
    @patch("dbvalidator.cli.initialize_tracing")
    @patch("dbvalidator.cli.setup_logging")
    def test_otlp_endpoint_enables_tracing(self, _logging, mock_init, _shutdown, monkeypatch):
        monkeypatch.setattr(
            "sys.argv",
            ["dbvalidator", "--otlp-endpoint", "collector:4317", "report", "--input", "r.json"],
        )

        with patch.dict(COMMANDS, {"report": Mock()}):
            main()

        mock_init.assert_called_once_with(otlp_endpoint="collector:4317")
