"""
Common utilities for the HTTP latency benchmark.

The worker pool and metrics helpers depend on the measurement records, so
they are imported from their modules rather than re-exported here.
"""

from .errors import (
    BenchmarkError,
    InvalidInput,
    NetworkFailure,
    EmptyResultSet,
    AllProbesFailed,
)
from .run_config import BenchmarkConfig

__all__ = [
    'BenchmarkError',
    'InvalidInput',
    'NetworkFailure',
    'EmptyResultSet',
    'AllProbesFailed',
    'BenchmarkConfig',
]
