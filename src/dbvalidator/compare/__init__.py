"""
Value normalization and key-set comparison.

This submodule holds the pure building blocks of a table comparison:
- Value normalization across dialect representations
- Primary-key set differences
- Count ratio for count-only audits
"""

from .counts import count_ratio
from .keys import KeySetDiff, diff_key_sets, ordered_keys
from .normalize import normalize_value, values_equivalent

__all__ = [
    'normalize_value',
    'values_equivalent',
    'diff_key_sets',
    'ordered_keys',
    'KeySetDiff',
    'count_ratio',
]
