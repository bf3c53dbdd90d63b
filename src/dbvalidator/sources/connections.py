"""
Connection factories for the supported drivers.

Each factory returns a zero-argument callable suitable for
SqlDataSource. Drivers are imported when the callable runs, so a
deployment only needs the drivers for the dialects it actually uses.
"""

import logging
from collections.abc import Callable
from typing import Any

from dbvalidator.config import SourceSettings
from dbvalidator.errors import ConfigurationError
from dbvalidator.utils.database_types import DatabaseType

from .sql import SqlDataSource

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 10


def postgres_connector(
    host: str,
    port: int | None,
    database: str | None,
    user: str | None,
    password: str | None,
) -> Callable[[], Any]:
    """Factory for psycopg2 connections."""

    def connect():
        import psycopg2

        conn = psycopg2.connect(
            host=host,
            port=port or 5432,
            database=database,
            user=user,
            password=password,
            connect_timeout=CONNECT_TIMEOUT,
        )
        conn.set_session(readonly=True, autocommit=True)
        return conn

    return connect


def sqlserver_connector(
    host: str,
    port: int | None,
    database: str | None,
    user: str | None,
    password: str | None,
    driver: str = "ODBC Driver 18 for SQL Server",
) -> Callable[[], Any]:
    """Factory for pyodbc connections to SQL Server."""

    def connect():
        import pyodbc

        conn_str = (
            f"DRIVER={{{driver}}};"
            f"SERVER={host},{port or 1433};"
            f"DATABASE={database};"
            f"UID={user};"
            f"PWD={password};"
            f"TrustServerCertificate=yes;"
            f"Encrypt=yes;"
        )
        conn = pyodbc.connect(conn_str, timeout=CONNECT_TIMEOUT)
        conn.autocommit = True
        return conn

    return connect


def oracle_connector(
    user: str | None,
    password: str | None,
    dsn: str,
) -> Callable[[], Any]:
    """Factory for python-oracledb (thin mode) connections."""

    def connect():
        import oracledb

        # CLOB/BLOB columns come back as str/bytes so they compare by value
        oracledb.defaults.fetch_lobs = False
        return oracledb.connect(user=user, password=password, dsn=dsn)

    return connect


def create_source(name: str, settings: SourceSettings) -> SqlDataSource:
    """
    Build an adapter from one side's connection settings.

    Raises:
        ConfigurationError: If the settings cannot identify a database
    """
    if settings.dialect == DatabaseType.POSTGRESQL:
        connect = postgres_connector(
            settings.host, settings.port, settings.database, settings.user, settings.password
        )
    elif settings.dialect == DatabaseType.SQLSERVER:
        connect = sqlserver_connector(
            settings.host,
            settings.port,
            settings.database,
            settings.user,
            settings.password,
            driver=settings.driver,
        )
    elif settings.dialect == DatabaseType.ORACLE:
        dsn = settings.dsn
        if not dsn:
            if not settings.database:
                raise ConfigurationError(
                    f"{name}: Oracle needs either a dsn or a database (service name)"
                )
            dsn = f"{settings.host}:{settings.port or 1521}/{settings.database}"
        connect = oracle_connector(settings.user, settings.password, dsn)
    else:
        raise ConfigurationError(f"{name}: unsupported dialect {settings.dialect!r}")

    logger.info(f"Configured {name} source: {settings.dialect.value} at {settings.host}")
    return SqlDataSource(name, settings.dialect, connect)
