"""
Unit tests for paired record/replica execution.
"""

import threading

import pytest

from dbvalidator.parallel import PairedExecutor


@pytest.fixture(params=[True, False], ids=["concurrent", "sequential"])
def executor(request):
    with PairedExecutor(concurrent=request.param) as ex:
        yield ex


class TestPairedExecutor:
    """Test PairedExecutor functionality."""

    def test_returns_results_in_side_order(self, executor):
        assert executor.run(lambda: "record", lambda: "replica") == ("record", "replica")

    def test_record_error_propagates(self, executor):
        def fail():
            raise ConnectionError("record down")

        with pytest.raises(ConnectionError, match="record down"):
            executor.run(fail, lambda: 1)

    def test_replica_error_propagates(self, executor):
        def fail():
            raise TimeoutError("replica slow")

        with pytest.raises(TimeoutError, match="replica slow"):
            executor.run(lambda: 1, fail)

    def test_record_error_wins_when_both_fail(self, executor):
        def record_fail():
            raise ConnectionError("record")

        def replica_fail():
            raise ValueError("replica")

        with pytest.raises(ConnectionError):
            executor.run(record_fail, replica_fail)

    def test_concurrent_runs_both_sides_together(self):
        """Both calls must be in flight at once or the barrier times out."""
        barrier = threading.Barrier(2, timeout=5)

        def side(name):
            barrier.wait()
            return name

        with PairedExecutor(concurrent=True) as ex:
            assert ex.run(lambda: side("r"), lambda: side("p")) == ("r", "p")

    def test_replica_finishes_even_if_record_fails(self):
        finished = threading.Event()

        def record_fail():
            raise ConnectionError("record")

        def replica():
            finished.set()
            return 1

        with PairedExecutor(concurrent=True) as ex:
            with pytest.raises(ConnectionError):
                ex.run(record_fail, replica)

        assert finished.is_set()

    def test_sequential_creates_no_pool(self):
        ex = PairedExecutor(concurrent=False)
        ex.run(lambda: 1, lambda: 2)
        assert ex._executor is None

    def test_close_releases_pool_and_allows_reuse(self):
        ex = PairedExecutor(concurrent=True)
        ex.run(lambda: 1, lambda: 2)
        assert ex._executor is not None

        ex.close()
        assert ex._executor is None

        assert ex.run(lambda: 3, lambda: 4) == (3, 4)
        ex.close()
