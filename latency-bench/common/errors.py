"""
Error hierarchy for the HTTP latency benchmark.
"""

from typing import Optional


class BenchmarkError(Exception):
    """Base class for every error raised by a benchmark run."""


class InvalidInput(BenchmarkError, ValueError):
    """Malformed run configuration, detected before any network activity."""


class NetworkFailure(BenchmarkError):
    """A single probe failed during DNS, connect, TLS, request or transfer.

    Attributes:
        url: Target URL of the failed probe
        phase: Phase that was in progress when the error happened
        cause: Underlying exception raised by the HTTP client
    """

    def __init__(self, url: str, phase: str, cause: Optional[BaseException] = None):
        self.url = url
        self.phase = phase
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            f"probe of {url} failed during {phase.replace('_', ' ')} "
            f"({type(cause).__name__ if cause is not None else 'error'}){detail}"
        )


class EmptyResultSet(BenchmarkError):
    """No successful sample is available to average."""

    def __init__(self, message: str = "cannot summarize an empty result set"):
        super().__init__(message)


class AllProbesFailed(EmptyResultSet):
    """Every probe of a collect-errors run failed."""

    def __init__(self, requested: int, failed: int):
        self.requested = requested
        self.failed = failed
        super().__init__(
            f"all probes failed: 0 of {requested} requested samples succeeded, "
            f"{failed} failed"
        )
