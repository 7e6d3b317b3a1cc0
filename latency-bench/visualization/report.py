"""
Plain-text rendering of benchmark summaries.
"""

from typing import Optional

from common.metrics_utils import nanoseconds_to_seconds
from measurements.record import PhaseMeasurement
from measurements.result_set import RunResult

SUMMARY_TEMPLATE = """\
Average request time: {total}s
DNS Lookup: {dns_lookup}s
TCP Connection: {tcp_connection}s
Connection Acquisition: {connection_acquisition}s
Server Processing: {server_processing}s
Content Transfer: {content_transfer}s
"""

SAMPLES_TEMPLATE = "Samples: {succeeded} succeeded, {failed} failed ({requested} requested)\n"


def format_seconds(nanoseconds: int) -> str:
    """Seconds with the shortest decimal that round-trips, e.g. '1', '0.2', '1e-06'."""
    text = repr(nanoseconds_to_seconds(nanoseconds))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def render_summary(summary: PhaseMeasurement, run_result: Optional[RunResult] = None,
                   requested: Optional[int] = None) -> str:
    """Render a summary as six lines of per-phase averages.

    Args:
        summary: Summary (or single measurement) to render
        run_result: When given, a line with success and failure counts is appended
        requested: Requested sample count for that line (defaults to attempted)

    Returns:
        Rendered report text
    """
    text = SUMMARY_TEMPLATE.format(
        **{name: format_seconds(value) for name, value in summary.as_dict().items()}
    )
    if run_result is not None:
        text += SAMPLES_TEMPLATE.format(
            succeeded=run_result.succeeded,
            failed=run_result.failed,
            requested=requested if requested is not None else run_result.attempted,
        )
    return text
