"""
Data source adapters.

The engine talks to both databases through the DataSource capability:
a scalar count, a list of primary keys and a batch of row maps. One
concrete adapter (SqlDataSource) covers every supported dialect through
DB-API 2.0 connections.
"""

from .base import DataSource
from .connections import (
    create_source,
    oracle_connector,
    postgres_connector,
    sqlserver_connector,
)
from .queries import QueryBuilder
from .sql import SqlDataSource

__all__ = [
    'DataSource',
    'SqlDataSource',
    'QueryBuilder',
    'create_source',
    'postgres_connector',
    'sqlserver_connector',
    'oracle_connector',
]
