"""
Validator configuration.

A ReconciliationConfig value is passed explicitly into every engine call;
there is no process-wide mutable settings object. load_config() reads the
YAML file used by the CLI and scheduler, with connection credentials
overridable from the environment.

Example config file:

    validator:
      tables: [user_info, orders]
      primary_key: id
      batch_size: 1000
      ignore_fields: [updated_at]
      time_filter:
        column: created_at
        start: "2024-01-01"
        end: "2024-01-31"
    record:
      dialect: oracle
      host: oracle.internal
      port: 1521
      database: ORCLPDB1
      user: audit
    replica:
      dialect: postgresql
      host: pg.internal
      database: app
      user: audit
"""

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from dbvalidator.errors import ConfigurationError
from dbvalidator.utils.database_types import DatabaseType
from dbvalidator.utils.sql_safety import validate_identifier, validate_schema_table

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000
DEFAULT_PRIMARY_KEY = "id"

TimeBound = str | date | datetime | None


def field_list(fields: str | Iterable[str] | None) -> list[str]:
    """Field names as a list; a single name may be given as a bare string."""
    if fields is None:
        return []
    if isinstance(fields, str):
        return [fields] if fields.strip() else []
    return list(fields)


def _is_blank(value: TimeBound) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _coerce_bound(value: TimeBound) -> TimeBound:
    """Turn an ISO date/datetime string into a datetime for parameter binding."""
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            raise ConfigurationError(
                f"Time filter bound {value!r} is not an ISO date or datetime"
            ) from None
    return value


@dataclass(frozen=True)
class TimeWindow:
    """
    Optional time-range predicate applied to every query of a comparison.

    Renders as ``column >= start [AND column <= end]``. With no column or
    no start the window is inactive and the whole table is compared; with
    no end only the lower bound applies.
    """

    column: str | None = None
    start: TimeBound = None
    end: TimeBound = None

    def __post_init__(self):
        if self.column is not None and self.column.strip():
            validate_identifier(self.column.strip())
            object.__setattr__(self, "column", self.column.strip())
        # String bounds are parsed on construction
        for name in ("start", "end"):
            value = getattr(self, name)
            if not _is_blank(value):
                object.__setattr__(self, name, _coerce_bound(value))

    @property
    def is_active(self) -> bool:
        return bool(self.column) and not _is_blank(self.start)

    @property
    def has_end(self) -> bool:
        return self.is_active and not _is_blank(self.end)

    def bounds(self) -> list[Any]:
        """Bind values for the predicate, in placeholder order."""
        if not self.is_active:
            return []
        params = [_coerce_bound(self.start)]
        if self.has_end:
            params.append(_coerce_bound(self.end))
        return params

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "TimeWindow | None":
        if not data:
            return None
        return cls(
            column=data.get("column") or data.get("time_field"),
            start=data.get("start") or data.get("start_time"),
            end=data.get("end") or data.get("end_time"),
        )


@dataclass
class ReconciliationConfig:
    """
    Settings for one validator deployment.

    Attributes:
        tables: Tables to audit; also the allow-list for ad-hoc requests
        primary_key: Single primary-key column used to align rows
        batch_size: Keys per follow-up row query
        ignore_fields: Columns never compared (case-insensitive)
        time_filter: Optional window for partial audits
    """

    tables: list[str] = field(default_factory=list)
    primary_key: str = DEFAULT_PRIMARY_KEY
    batch_size: int = DEFAULT_BATCH_SIZE
    ignore_fields: list[str] = field(default_factory=list)
    time_filter: TimeWindow | None = None

    def __post_init__(self):
        self.tables = list(self.tables or [])
        self.ignore_fields = field_list(self.ignore_fields)

        for table in self.tables:
            validate_schema_table(table)
        validate_identifier(self.primary_key)

        if isinstance(self.batch_size, bool) or not isinstance(self.batch_size, int):
            raise ConfigurationError(f"batch_size must be an integer, got {self.batch_size!r}")
        if self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be >= 1, got {self.batch_size}")

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ReconciliationConfig":
        data = data or {}
        return cls(
            tables=data.get("tables") or [],
            primary_key=data.get("primary_key", DEFAULT_PRIMARY_KEY),
            batch_size=data.get("batch_size", DEFAULT_BATCH_SIZE),
            ignore_fields=data.get("ignore_fields") or [],
            time_filter=TimeWindow.from_dict(data.get("time_filter")),
        )


@dataclass
class SourceSettings:
    """Connection settings for one side of the comparison."""

    dialect: DatabaseType
    host: str = "localhost"
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = field(default=None, repr=False)
    driver: str = "ODBC Driver 18 for SQL Server"
    dsn: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], env_prefix: str) -> "SourceSettings":
        """
        Build settings from a config section, letting environment variables
        win (``{env_prefix}_HOST``, ``_PORT``, ``_DATABASE``, ``_USER``,
        ``_PASSWORD``, ``_DSN``, ``_DIALECT``).
        """
        data = dict(data or {})

        def pick(key: str) -> Any:
            return os.getenv(f"{env_prefix}_{key.upper()}") or data.get(key)

        dialect = pick("dialect")
        if not dialect:
            raise ConfigurationError(f"No dialect configured for {env_prefix}")

        port = pick("port")
        return cls(
            dialect=DatabaseType.from_name(dialect),
            host=pick("host") or "localhost",
            port=int(port) if port else None,
            database=pick("database"),
            user=pick("user"),
            password=pick("password"),
            driver=pick("driver") or "ODBC Driver 18 for SQL Server",
            dsn=pick("dsn"),
        )


@dataclass
class ValidatorSettings:
    """Everything the CLI needs: engine config plus both connections."""

    config: ReconciliationConfig
    record: SourceSettings
    replica: SourceSettings


def load_config(path: str | Path) -> ValidatorSettings:
    """
    Load validator settings from a YAML file

    Args:
        path: Path to the YAML configuration file

    Returns:
        ValidatorSettings with engine config and connection settings

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")

    settings = ValidatorSettings(
        config=ReconciliationConfig.from_dict(raw.get("validator")),
        record=SourceSettings.from_dict(raw.get("record") or {}, "RECORD_DB"),
        replica=SourceSettings.from_dict(raw.get("replica") or {}, "REPLICA_DB"),
    )

    logger.info(
        f"Loaded configuration from {path}: {len(settings.config.tables)} table(s), "
        f"record={settings.record.dialect.value}, replica={settings.replica.dialect.value}"
    )
    return settings
