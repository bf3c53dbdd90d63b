"""
Value normalization for cross-dialect comparison.

The two sides of a comparison rarely hand back the same Python types for
the same logical value: Oracle NUMBER comes back as int or float where
PostgreSQL NUMERIC comes back as Decimal, CHAR columns are blank-padded,
and one side may store timestamps timezone-aware while the other stores
them naive, as local wall-clock time. normalize_value() maps every raw
value to a canonical form so that equality decides whether two values
agree; values_equivalent() additionally treats NaN as equal to NaN.
"""

import math
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from numbers import Number
from typing import Any

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _timedelta_millis(delta: timedelta) -> int:
    # Integer arithmetic keeps sub-millisecond truncation exact
    return delta.days * 86_400_000 + delta.seconds * 1000 + delta.microseconds // 1000


def _datetime_millis(value: datetime) -> int:
    if value.tzinfo is None:
        # Naive values are wall-clock time in the process's local zone
        try:
            value = value.astimezone()
        except (OverflowError, OSError, ValueError):
            # Outside the platform's local-time range
            value = value.replace(tzinfo=UTC)
    return _timedelta_millis(value - _EPOCH)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def normalize_value(value: Any) -> Any:
    """
    Map a raw column value to its comparison-canonical form.

    - None stays None
    - numbers (int, float, Decimal, ...) become float; bool is left alone
    - str is stripped of leading/trailing whitespace, case preserved
    - datetime becomes epoch milliseconds (naive values are read as local time)
    - date becomes epoch milliseconds of its local midnight
    - time becomes milliseconds since midnight
    - anything else is returned unchanged

    Never raises.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return value

    if isinstance(value, Decimal) and value.is_nan():
        return math.nan

    if isinstance(value, (int, float, Decimal)):
        try:
            return float(value)
        except (OverflowError, ValueError):
            return value

    if isinstance(value, Number):
        try:
            return float(value)
        except (TypeError, OverflowError, ValueError):
            return value

    if isinstance(value, str):
        return value.strip()

    # datetime is a date subclass, so it has to be checked first
    if isinstance(value, datetime):
        return float(_datetime_millis(value))

    if isinstance(value, date):
        return float(_datetime_millis(datetime(value.year, value.month, value.day)))

    if isinstance(value, time):
        return float(
            ((value.hour * 60 + value.minute) * 60 + value.second) * 1000
            + value.microsecond // 1000
        )

    return value


def values_equivalent(left: Any, right: Any) -> bool:
    """
    True when two raw values normalize to equal forms.

    Two NaNs are equivalent to each other, unlike under float equality.
    """
    left, right = normalize_value(left), normalize_value(right)
    if _is_nan(left) or _is_nan(right):
        return _is_nan(left) and _is_nan(right)
    return left == right
