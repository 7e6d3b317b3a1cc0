"""
Aggregation of per-probe measurements into a summary report.
"""

import logging

from common.errors import EmptyResultSet
from common.metrics_utils import measurements_to_frame, calculate_phase_means
from measurements.record import PHASE_NAMES, TOTAL, PhaseMeasurement
from measurements.result_set import ResultSet

logger = logging.getLogger(__name__)

# Summary alias: same shape as a single measurement, every field a mean
SummaryReport = PhaseMeasurement


def summarize(result_set: ResultSet) -> SummaryReport:
    """Average every phase across a result set.

    Each field is summed independently in integer nanoseconds and divided by
    the sample count with truncation.

    Args:
        result_set: Measurements of the successful probes

    Returns:
        Summary whose fields are the per-field means

    Raises:
        EmptyResultSet: If the result set holds no measurement
    """
    if len(result_set) == 0:
        raise EmptyResultSet()

    data = measurements_to_frame(result_set)
    means = calculate_phase_means(data)
    summary = SummaryReport(**means)

    logger.debug(
        f"Summarized {len(data)} samples: total={summary.total}ns, "
        f"truncation gap={truncation_gap(summary)}ns"
    )
    return summary


def truncation_gap(summary: SummaryReport) -> int:
    """Difference between the averaged total and the sum of averaged phases.

    The means are truncated one field at a time, so the averaged total can
    exceed the sum of the averaged phases by up to len(PHASE_NAMES) - 1 ns.
    """
    return getattr(summary, TOTAL) - sum(getattr(summary, name) for name in PHASE_NAMES)
