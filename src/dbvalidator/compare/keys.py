"""
Primary-key set comparison.

Keys are compared with native equality: no normalization is applied, so
a key stored as 5 on one side and "5" on the other shows up as one key
missing from each side.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass
class KeySetDiff:
    """Set differences and intersection of two primary-key collections."""

    only_in_record: list[Any] = field(default_factory=list)
    only_in_replica: list[Any] = field(default_factory=list)
    common: list[Any] = field(default_factory=list)


def ordered_keys(keys: Iterable[Any]) -> list[Any]:
    """
    Deterministic ordering for a collection of key values.

    Natural ordering is used when the keys are mutually comparable;
    mixed-type collections fall back to (type name, repr) ordering.
    """
    keys = list(keys)
    try:
        return sorted(keys)
    except TypeError:
        return sorted(keys, key=lambda k: (type(k).__name__, repr(k)))


def diff_key_sets(record_keys: Iterable[Any], replica_keys: Iterable[Any]) -> KeySetDiff:
    """
    Compare the primary keys found on each side.

    Args:
        record_keys: Keys from the record (source of truth) side
        replica_keys: Keys from the replica side

    Returns:
        KeySetDiff with record - replica, replica - record and their intersection
    """
    record_set = set(record_keys)
    replica_set = set(replica_keys)

    return KeySetDiff(
        only_in_record=ordered_keys(record_set - replica_set),
        only_in_replica=ordered_keys(replica_set - record_set),
        common=ordered_keys(record_set & replica_set),
    )
