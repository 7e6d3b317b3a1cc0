"""
Unit tests for the worker pool fan-out modes and result collection.
"""

import asyncio
import gc
import unittest
import sys
import os
from collections import Counter

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.errors import InvalidInput, NetworkFailure
from common.run_config import MODE_FIXED, MODE_TARGET
from common.worker_pool import WorkerPool
from measurements.record import PhaseMeasurement, TCP_CONNECTION


class FakeProbe:
    """Probe stand-in returning a distinct measurement per call.

    Call number i produces a measurement whose total is i + 1, so lost or
    duplicated entries show up in the collected multiset.
    """

    def __init__(self, fail_calls=(), delay=0.0, slow_delay=None):
        self.fail_calls = set(fail_calls)
        self.delay = delay
        self.slow_delay = slow_delay
        self.calls = 0
        self.cancelled = 0

    async def measure(self, url):
        call = self.calls
        self.calls += 1
        try:
            if call in self.fail_calls:
                await asyncio.sleep(0)
                raise NetworkFailure(url, TCP_CONNECTION, ConnectionRefusedError(111, "refused"))
            await asyncio.sleep(self.slow_delay if self.slow_delay is not None else self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return PhaseMeasurement(0, 0, 0, 0, call + 1, call + 1)


class TestFixedCountMode(unittest.IsolatedAsyncioTestCase):
    """One probe per worker."""

    async def test_one_sample_per_worker(self):
        probe = FakeProbe()
        pool = WorkerPool(probe)

        run_result = await pool.run("http://target", 10)

        self.assertEqual(run_result.mode, MODE_FIXED)
        self.assertEqual(len(run_result.results), 10)
        self.assertEqual(run_result.attempted, 10)
        self.assertEqual(run_result.failed, 0)
        self.assertTrue(run_result.results.sealed)
        self.assertEqual(
            sorted(m.total for m in run_result.results),
            list(range(1, 11)),
        )
        self.assertTrue(all(state["probes_completed"] == 1 for state in pool.worker_states.values()))

    async def test_interleaved_workers_lose_nothing(self):
        """Many workers finishing in arbitrary order: no loss, no duplicates."""
        probe = FakeProbe(delay=0.001)
        run_result = await WorkerPool(probe).run("http://target", 200)

        totals = Counter(m.total for m in run_result.results)
        self.assertEqual(len(run_result.results), 200)
        self.assertEqual(set(totals), set(range(1, 201)))
        self.assertTrue(all(count == 1 for count in totals.values()))

    async def test_invalid_concurrency(self):
        with self.assertRaises(InvalidInput):
            await WorkerPool(FakeProbe()).run("http://target", 0)
        with self.assertRaises(InvalidInput):
            await WorkerPool(FakeProbe()).run("http://target", 4, total_samples=-1)


class TestTargetCountMode(unittest.IsolatedAsyncioTestCase):
    """Workers loop until the sample budget is used up."""

    async def test_exact_sample_count(self):
        probe = FakeProbe()
        pool = WorkerPool(probe)

        run_result = await pool.run("http://target", 4, total_samples=25)

        self.assertEqual(run_result.mode, MODE_TARGET)
        self.assertEqual(len(run_result.results), 25)
        self.assertEqual(run_result.attempted, 25)
        self.assertEqual(probe.calls, 25)
        self.assertEqual(sum(s["probes_completed"] for s in pool.worker_states.values()), 25)

    async def test_budget_smaller_than_concurrency(self):
        probe = FakeProbe()
        run_result = await WorkerPool(probe).run("http://target", 8, total_samples=3)

        self.assertEqual(len(run_result.results), 3)
        self.assertEqual(probe.calls, 3)

    async def test_failures_use_up_their_slot(self):
        probe = FakeProbe(fail_calls={0, 5, 9})
        run_result = await WorkerPool(probe, fail_fast=False).run("http://target", 3, total_samples=10)

        self.assertEqual(run_result.attempted, 10)
        self.assertEqual(run_result.succeeded, 7)
        self.assertEqual(run_result.failed, 3)
        self.assertEqual(probe.calls, 10)


class TestFailurePolicy(unittest.IsolatedAsyncioTestCase):
    """Fail-fast versus collect-errors."""

    async def test_collect_errors_records_failures(self):
        probe = FakeProbe(fail_calls={1, 3})
        pool = WorkerPool(probe, fail_fast=False)

        run_result = await pool.run("http://target", 5)

        self.assertEqual(run_result.succeeded, 3)
        self.assertEqual(run_result.failed, 2)
        self.assertEqual(sorted(f.probe_id for f in run_result.failures), [1, 3])
        for failure in run_result.failures:
            self.assertIsInstance(failure.error, NetworkFailure)
            self.assertEqual(failure.phase, TCP_CONNECTION)
        self.assertEqual(sum(s["errors"] for s in pool.worker_states.values()), 2)

    async def test_collect_errors_all_failed(self):
        probe = FakeProbe(fail_calls=range(5))
        run_result = await WorkerPool(probe, fail_fast=False).run("http://target", 5)

        self.assertEqual(len(run_result.results), 0)
        self.assertEqual(run_result.failed, 5)

    async def test_fail_fast_aborts_and_waits_for_workers(self):
        """The first failure is raised after every other worker terminated."""
        probe = FakeProbe(fail_calls={0}, slow_delay=30)
        pool = WorkerPool(probe, fail_fast=True)

        with self.assertRaises(NetworkFailure) as ctx:
            await asyncio.wait_for(pool.run("http://target", 4), timeout=5)

        self.assertEqual(ctx.exception.phase, TCP_CONNECTION)
        self.assertEqual(probe.cancelled, 3)
        pending = [
            task for task in asyncio.all_tasks()
            if task is not asyncio.current_task() and not task.done()
        ]
        self.assertEqual(pending, [])

    async def test_fail_fast_reads_every_worker_failure(self):
        """Workers failing in the same round leave no unretrieved task exception."""
        seen = []
        asyncio.get_running_loop().set_exception_handler(
            lambda loop, context: seen.append(context["message"])
        )
        probe = FakeProbe(fail_calls=range(4))

        with self.assertRaises(NetworkFailure):
            await WorkerPool(probe, fail_fast=True).run("http://target", 4)
        gc.collect()

        self.assertEqual(probe.calls, 4)
        self.assertEqual(seen, [])


if __name__ == '__main__':
    unittest.main()
