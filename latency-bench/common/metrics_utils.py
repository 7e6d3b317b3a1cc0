"""
Shared utilities for benchmark metrics calculations: phase sums, means and unit conversions.
"""

import logging
from typing import Dict, Iterable

import pandas as pd

from configuration import NANOSECONDS_PER_SECOND, NANOSECONDS_PER_MILLISECOND
from measurements.record import FIELD_NAMES, PhaseMeasurement

logger = logging.getLogger(__name__)


def measurements_to_frame(measurements: Iterable[PhaseMeasurement]) -> pd.DataFrame:
    """
    Convert measurements into a DataFrame with one int64 column per field.

    Integer columns keep the nanosecond arithmetic exact; a float dtype would
    lose precision once sums pass 2**53 ns.

    Args:
        measurements: Measurements to convert

    Returns:
        DataFrame with one row per measurement and one column per field
    """
    rows = [m.as_dict() for m in measurements]
    if not rows:
        return pd.DataFrame({name: pd.Series(dtype="int64") for name in FIELD_NAMES})
    return pd.DataFrame(rows, columns=list(FIELD_NAMES)).astype("int64")


def calculate_phase_sums(data: pd.DataFrame) -> Dict[str, int]:
    """
    Sum every field independently.

    Args:
        data: DataFrame produced by measurements_to_frame()

    Returns:
        Dictionary mapping field name to the sum in nanoseconds
    """
    sums = data[list(FIELD_NAMES)].sum()
    return {name: int(sums[name]) for name in FIELD_NAMES}


def calculate_phase_means(data: pd.DataFrame) -> Dict[str, int]:
    """
    Calculate the arithmetic mean of every field, truncated to whole nanoseconds.

    Truncation matches integer division and keeps repeated runs reproducible.
    Durations are never negative, so truncation and floor agree.

    Args:
        data: DataFrame produced by measurements_to_frame()

    Returns:
        Dictionary mapping field name to the mean in nanoseconds
    """
    count = len(data)
    if count == 0:
        raise ValueError("cannot average zero measurements")
    sums = calculate_phase_sums(data)
    return {name: total // count for name, total in sums.items()}


def nanoseconds_to_seconds(nanoseconds: int) -> float:
    """
    Convert nanoseconds to seconds, splitting whole and fractional parts so
    large values keep full precision.
    """
    whole, fraction = divmod(nanoseconds, NANOSECONDS_PER_SECOND)
    return whole + fraction / NANOSECONDS_PER_SECOND


def nanoseconds_to_ms(nanoseconds: int) -> float:
    """Convert nanoseconds to milliseconds."""
    return nanoseconds / NANOSECONDS_PER_MILLISECOND


def calculate_success_rate(succeeded: int, attempted: int) -> float:
    """Fraction of attempted probes that succeeded (0.0 when nothing ran)."""
    if attempted <= 0:
        return 0.0
    return succeeded / attempted
