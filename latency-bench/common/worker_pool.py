"""
Async worker pool fanning out concurrent latency probes.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

from common.errors import InvalidInput, NetworkFailure
from common.run_config import MODE_FIXED, MODE_TARGET
from measurements.record import PhaseMeasurement, ProbeFailure
from measurements.result_set import ResultSet, RunResult

logger = logging.getLogger(__name__)

# Marks the end of the collection queue
_STOP = object()


class WorkerPool:
    """Runs probes on concurrent workers and collects their results.

    Workers never touch the result set. Every finished probe is put on a
    queue drained by one collector task, which is the only writer of the
    result set and the failure list.

    Fan-out modes:
        fixed: one probe per worker, `concurrency` samples in total
        target: workers keep probing until `total_samples` probes were
            started. A worker claims its sample slot before probing, so
            exactly `total_samples` probes are attempted (no overshoot).
    """

    def __init__(self, probe, fail_fast: bool = True):
        """Initialize the worker pool.

        Args:
            probe: Object with an async measure(url) returning a PhaseMeasurement
            fail_fast: Abort the run on the first probe failure
        """
        self.probe = probe
        self.fail_fast = fail_fast

        # Per-run state, reset by run()
        self.worker_states: Dict[int, Dict[str, Any]] = {}
        self._claimed = 0
        self._budget = 0
        self._first_failure: Optional[NetworkFailure] = None

        logger.info(f"Initialized WorkerPool (fail_fast={fail_fast})")

    async def run(self, url: str, concurrency: int, total_samples: Optional[int] = None) -> RunResult:
        """Probe a URL concurrently and collect every result.

        Args:
            url: Target URL
            concurrency: Number of simultaneous workers
            total_samples: Sample target; None runs one probe per worker

        Returns:
            Run result with the sealed result set and any failures

        Raises:
            InvalidInput: If concurrency or total_samples is not positive
            NetworkFailure: In fail-fast mode, the first probe failure
        """
        if concurrency <= 0:
            raise InvalidInput(f"concurrency must be positive, got {concurrency}")
        if total_samples is not None and total_samples <= 0:
            raise InvalidInput(f"total samples must be positive, got {total_samples}")

        mode = MODE_FIXED if total_samples is None else MODE_TARGET
        self._claimed = 0
        self._budget = concurrency if total_samples is None else total_samples
        self._first_failure = None
        self.worker_states = {
            worker_id: {"probes_completed": 0, "errors": 0}
            for worker_id in range(concurrency)
        }

        results = ResultSet()
        failures: List[ProbeFailure] = []
        queue: asyncio.Queue = asyncio.Queue()
        collector = asyncio.create_task(self._collector_task(queue, results, failures))

        logger.info(
            f"Starting {concurrency} workers against {url} "
            f"({mode} mode, {self._budget} samples)"
        )

        if mode == MODE_FIXED:
            workers = [
                asyncio.create_task(self._fixed_count_worker(worker_id, url, queue))
                for worker_id in range(concurrency)
            ]
        else:
            workers = [
                asyncio.create_task(self._target_count_worker(worker_id, url, queue))
                for worker_id in range(concurrency)
            ]

        try:
            await self._wait_for_workers(workers)
        finally:
            await queue.put(_STOP)
            await collector

        results.seal()
        run_result = RunResult(
            results=results,
            failures=tuple(failures),
            attempted=self._claimed,
            mode=mode,
        )
        logger.info(
            f"Run finished: {run_result.succeeded} succeeded, "
            f"{run_result.failed} failed, {run_result.attempted} attempted"
        )
        return run_result

    async def _wait_for_workers(self, workers: List[asyncio.Task]) -> None:
        """Wait until every worker terminated, re-raising the earliest failure."""
        done, pending = await asyncio.wait(workers, return_when=asyncio.FIRST_EXCEPTION)

        if pending:
            logger.error(f"Aborting run: cancelling {len(pending)} in-flight workers")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        # Several workers can fail in the same round; read every exception
        errors = [
            task.exception() for task in workers
            if task in done and not task.cancelled() and task.exception() is not None
        ]
        if errors:
            raise self._first_failure if self._first_failure is not None else errors[0]

    def _claim_sample(self) -> Optional[int]:
        """Claim the next sample slot, or None once the budget is used up.

        No await happens between the check and the increment, so two workers
        can never claim the same slot.
        """
        if self._claimed >= self._budget:
            return None
        probe_id = self._claimed
        self._claimed += 1
        return probe_id

    async def _fixed_count_worker(self, worker_id: int, url: str, queue: asyncio.Queue):
        """Worker that runs exactly one probe."""
        probe_id = self._claim_sample()
        if probe_id is not None:
            await self._probe_and_record(worker_id, probe_id, url, queue)

    async def _target_count_worker(self, worker_id: int, url: str, queue: asyncio.Queue):
        """Worker that keeps probing until the sample budget is used up."""
        while True:
            probe_id = self._claim_sample()
            if probe_id is None:
                break
            await self._probe_and_record(worker_id, probe_id, url, queue)

        logger.debug(
            f"Worker {worker_id} done: "
            f"{self.worker_states[worker_id]['probes_completed']} probes, "
            f"{self.worker_states[worker_id]['errors']} errors"
        )

    async def _probe_and_record(self, worker_id: int, probe_id: int, url: str, queue: asyncio.Queue):
        """Run one probe and hand its result to the collector."""
        worker_state = self.worker_states[worker_id]
        try:
            measurement = await self.probe.measure(url)
        except NetworkFailure as e:
            worker_state["probes_completed"] += 1
            worker_state["errors"] += 1
            if self.fail_fast:
                logger.error(f"Worker {worker_id} probe {probe_id} failed: {e}")
                if self._first_failure is None:
                    self._first_failure = e
                raise
            logger.warning(f"Worker {worker_id} probe {probe_id} failed: {e}")
            await queue.put(ProbeFailure(probe_id=probe_id, worker_id=worker_id, error=e))
        else:
            worker_state["probes_completed"] += 1
            await queue.put(measurement)

    async def _collector_task(self, queue: asyncio.Queue, results: ResultSet, failures: List[ProbeFailure]):
        """Single owner of the result set: drains the queue until stopped."""
        while True:
            item: Union[PhaseMeasurement, ProbeFailure, object] = await queue.get()
            if item is _STOP:
                break
            if isinstance(item, ProbeFailure):
                failures.append(item)
            else:
                results.add(item)
            logger.debug(f"Collected {len(results)} measurements, {len(failures)} failures")
