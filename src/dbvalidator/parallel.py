"""
Paired query execution.

Every step of a comparison issues the same logical query against the
record and the replica database. The two reads are independent, so they
are submitted together and joined before the step completes; wall time
per step becomes the max of the two latencies instead of their sum.
"""

import contextvars
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")


class PairedExecutor:
    """
    Runs a record-side and a replica-side call, concurrently or in order.

    With concurrent=True a two-worker ThreadPoolExecutor is created on
    first use. Each submission runs in a copy of the caller's context so
    that the active OpenTelemetry span is the parent of the worker spans.
    """

    def __init__(self, concurrent: bool = True):
        self.concurrent = concurrent
        self._executor: ThreadPoolExecutor | None = None

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=2, thread_name_prefix="dbvalidator-pair"
            )
        return self._executor

    def run(self, record_call: Callable[[], T], replica_call: Callable[[], U]) -> tuple[T, U]:
        """
        Execute both calls and return ``(record_result, replica_result)``.

        If either call raises, the exception propagates once both have
        finished; the record side's error wins when both fail.
        """
        if not self.concurrent:
            return record_call(), replica_call()

        pool = self._pool()
        record_future = pool.submit(contextvars.copy_context().run, record_call)
        replica_future = pool.submit(contextvars.copy_context().run, replica_call)

        # Wait for both so no query is left running behind a raised error
        record_error = record_future.exception()
        replica_error = replica_future.exception()
        if record_error is not None:
            raise record_error
        if replica_error is not None:
            raise replica_error

        return record_future.result(), replica_future.result()

    def close(self) -> None:
        """Shut down the worker threads."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "PairedExecutor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
