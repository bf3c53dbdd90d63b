"""
Row-level comparison of rows present on both sides.

Fetches full rows for batches of common primary keys and compares them
field by field after value normalization.
"""

from .differ import BatchDiffResult, BatchRowDiffer, chunked

__all__ = [
    'BatchRowDiffer',
    'BatchDiffResult',
    'chunked',
]
