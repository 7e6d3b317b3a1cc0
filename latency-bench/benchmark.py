"""
Benchmark runner: concurrent probing of one URL followed by per-phase averaging.
"""

import logging
from dataclasses import dataclass

from common.errors import AllProbesFailed, EmptyResultSet
from common.metrics_utils import calculate_success_rate, nanoseconds_to_ms
from common.run_config import BenchmarkConfig
from common.worker_pool import WorkerPool
from measurements.aggregator import SummaryReport, summarize
from measurements.record import PhaseMeasurement
from measurements.result_set import RunResult
from probing.http_probe import HttpProbe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BenchmarkOutcome:
    """Summary of a finished run together with the raw run result."""

    summary: SummaryReport
    run_result: RunResult
    config: BenchmarkConfig

    @property
    def requested(self) -> int:
        return self.config.requested_samples


class BenchmarkRunner:
    """Benchmark runner for per-phase HTTP latency measurement."""

    def __init__(self, config: BenchmarkConfig):
        self.config = config.validate()
        self.url = config.normalized_url
        self.probe = HttpProbe(self.config)
        self.worker_pool = WorkerPool(self.probe, fail_fast=self.config.fail_fast)

        logger.info(
            f"Initialized benchmark runner: {self.url} with {self.config.concurrency} workers "
            f"({self.config.mode} mode, fail_fast={self.config.fail_fast})"
        )

    async def run_benchmark(self) -> BenchmarkOutcome:
        """Execute the benchmark.

        Raises:
            NetworkFailure: In fail-fast mode, the first probe failure
            AllProbesFailed: In collect-errors mode, when no probe succeeded
        """
        logger.info(f"Starting benchmark against {self.url}")

        async with self.probe:
            run_result = await self.worker_pool.run(
                self.url,
                self.config.concurrency,
                self.config.total_samples,
            )

        try:
            summary = summarize(run_result.results)
        except EmptyResultSet:
            raise AllProbesFailed(self.config.requested_samples, run_result.failed)

        success_rate = calculate_success_rate(run_result.succeeded, run_result.attempted)
        logger.info(
            f"Benchmark completed: {run_result.succeeded}/{run_result.attempted} probes "
            f"succeeded ({success_rate:.1%}), average total {nanoseconds_to_ms(summary.total):.2f} ms"
        )
        return BenchmarkOutcome(summary=summary, run_result=run_result, config=self.config)


async def run_single_probe(config: BenchmarkConfig) -> PhaseMeasurement:
    """Measure one request to the configured URL."""
    config = config.validate()
    async with HttpProbe(config) as probe:
        return await probe.measure(config.normalized_url)
