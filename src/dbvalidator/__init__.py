"""
Dual-database table validator.

Reconciles a table maintained in two independently operated databases
(a record side and a replica side): row-count drift, rows present on
only one side, and field-level divergence on rows present on both.
"""

from .config import ReconciliationConfig, TimeWindow, load_config
from .engine import ReconciliationEngine
from .errors import (
    ConfigurationError,
    InvalidIdentifierError,
    ReconciliationError,
    TableNotAllowedError,
)
from .model import (
    ComparisonResult,
    FieldDifference,
    FieldValuePair,
    TableCountComparison,
    TableDataComparison,
)
from .sources import DataSource, SqlDataSource

__version__ = "1.0.0"

__all__ = [
    'ReconciliationEngine',
    'ReconciliationConfig',
    'TimeWindow',
    'load_config',
    'DataSource',
    'SqlDataSource',
    'ComparisonResult',
    'FieldDifference',
    'FieldValuePair',
    'TableCountComparison',
    'TableDataComparison',
    'ReconciliationError',
    'InvalidIdentifierError',
    'TableNotAllowedError',
    'ConfigurationError',
]
