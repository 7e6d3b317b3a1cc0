"""
Result containers for one benchmark run.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from measurements.record import PhaseMeasurement, ProbeFailure

logger = logging.getLogger(__name__)


class ResultSet:
    """Unordered collection of successful measurements.

    A result set has a single writer, the worker pool's collector task.
    Once sealed it is read-only and may be handed to the aggregator.
    """

    def __init__(self):
        self._measurements: List[PhaseMeasurement] = []
        self._sealed = False

    def add(self, measurement: PhaseMeasurement) -> None:
        """Add a measurement.

        Args:
            measurement: Measurement of one successful probe
        """
        if self._sealed:
            raise RuntimeError("result set is sealed")
        if not isinstance(measurement, PhaseMeasurement):
            raise TypeError(f"expected PhaseMeasurement, got {type(measurement).__name__}")
        self._measurements.append(measurement)

    def seal(self) -> "ResultSet":
        self._sealed = True
        logger.debug(f"Sealed result set with {len(self._measurements)} measurements")
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __len__(self) -> int:
        return len(self._measurements)

    def __iter__(self) -> Iterator[PhaseMeasurement]:
        return iter(tuple(self._measurements))

    def __repr__(self) -> str:
        return f"ResultSet(size={len(self._measurements)}, sealed={self._sealed})"


@dataclass(frozen=True)
class RunResult:
    """Outcome of one orchestrated run.

    Attributes:
        results: Sealed set of successful measurements
        failures: Probes that failed (collect-errors mode only)
        attempted: Number of probes started
        mode: Fan-out mode, "fixed" or "target"
    """

    results: ResultSet
    failures: Tuple[ProbeFailure, ...]
    attempted: int
    mode: str

    @property
    def succeeded(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.failures)
