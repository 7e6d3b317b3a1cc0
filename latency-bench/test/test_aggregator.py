"""
Tests for per-phase averaging of result sets.
"""

import unittest
import sys
import os

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from configuration import NANOSECONDS_PER_SECOND, NANOSECONDS_PER_MILLISECOND
from common.errors import EmptyResultSet
from common.metrics_utils import (
    measurements_to_frame,
    calculate_phase_sums,
    calculate_phase_means,
    nanoseconds_to_seconds,
    nanoseconds_to_ms,
    calculate_success_rate,
)
from measurements.aggregator import summarize, truncation_gap
from measurements.record import PhaseMeasurement, PHASE_NAMES
from measurements.result_set import ResultSet

SECOND = NANOSECONDS_PER_SECOND
MILLISECOND = NANOSECONDS_PER_MILLISECOND


def ms_measurement(dns, tcp, acq, srv, xfer):
    """Measurement from phase durations given in milliseconds."""
    phases = [value * MILLISECOND for value in (dns, tcp, acq, srv, xfer)]
    return PhaseMeasurement(*phases, total=sum(phases))


def result_set_of(*measurements):
    results = ResultSet()
    for m in measurements:
        results.add(m)
    return results.seal()


class TestSummarize(unittest.TestCase):
    """Test summarize() on synthetic result sets."""

    def test_single_sample_is_returned_unchanged(self):
        m = PhaseMeasurement(123_456_789, 2, 3, 987_654_321, 5, 1_111_111_120)
        self.assertEqual(summarize(result_set_of(m)), m)

    def test_mean_of_totals(self):
        """Totals of 1s, 2s and 3s average to exactly 2s."""
        results = result_set_of(
            ms_measurement(100, 100, 0, 300, 500),
            ms_measurement(200, 200, 0, 600, 1000),
            ms_measurement(300, 300, 0, 900, 1500),
        )
        summary = summarize(results)

        self.assertEqual(summary.total, 2 * SECOND)
        self.assertEqual(summary.dns_lookup, 200 * MILLISECOND)
        self.assertEqual(summary.tcp_connection, 200 * MILLISECOND)
        self.assertEqual(summary.connection_acquisition, 0)
        self.assertEqual(summary.server_processing, 600 * MILLISECOND)
        self.assertEqual(summary.content_transfer, SECOND)

    def test_ten_samples(self):
        results = result_set_of(*[
            PhaseMeasurement(i, 0, 0, 0, 0, i) for i in range(1, 11)
        ])
        summary = summarize(results)
        # 55 / 10 truncates to 5
        self.assertEqual(summary.total, 5)
        self.assertEqual(summary.dns_lookup, 5)

    def test_empty_result_set(self):
        with self.assertRaises(EmptyResultSet):
            summarize(result_set_of())

    def test_truncation_gap_is_bounded(self):
        """Independent truncation leaves the averaged total at most 4ns above the phase sum."""
        results = result_set_of(
            PhaseMeasurement(1, 1, 1, 1, 1, 5),
            PhaseMeasurement(0, 0, 0, 0, 0, 0),
            PhaseMeasurement(1, 1, 1, 1, 0, 4),
        )
        summary = summarize(results)
        gap = truncation_gap(summary)

        self.assertEqual(summary.total, 3)
        self.assertEqual(sum(getattr(summary, name) for name in PHASE_NAMES), 0)
        self.assertEqual(gap, 3)
        self.assertGreaterEqual(gap, 0)
        self.assertLessEqual(gap, len(PHASE_NAMES) - 1)

    def test_exact_when_divisible(self):
        results = result_set_of(
            ms_measurement(1000, 2000, 3000, 4000, 5000),
            ms_measurement(3000, 4000, 5000, 6000, 7000),
        )
        summary = summarize(results)
        self.assertTrue(summary.is_consistent())
        self.assertEqual(truncation_gap(summary), 0)

    def test_large_values_stay_exact(self):
        """Sums beyond float precision are still exact."""
        big = 2 ** 53 + 1
        results = result_set_of(
            PhaseMeasurement(big, 0, 0, 0, 0, big),
            PhaseMeasurement(big, 0, 0, 0, 0, big),
        )
        self.assertEqual(summarize(results).total, big)


class TestMetricsUtils(unittest.TestCase):
    """Test the DataFrame helpers behind the aggregator."""

    def test_frame_columns_are_int64(self):
        frame = measurements_to_frame([PhaseMeasurement(1, 2, 3, 4, 5, 15)])
        self.assertEqual(len(frame), 1)
        self.assertTrue(all(str(dtype) == 'int64' for dtype in frame.dtypes))

    def test_empty_frame(self):
        frame = measurements_to_frame([])
        self.assertEqual(len(frame), 0)
        with self.assertRaises(ValueError):
            calculate_phase_means(frame)

    def test_sums(self):
        frame = measurements_to_frame([
            PhaseMeasurement(1, 2, 3, 4, 5, 15),
            PhaseMeasurement(1, 1, 1, 1, 1, 5),
        ])
        sums = calculate_phase_sums(frame)
        self.assertEqual(sums['total'], 20)
        self.assertEqual(sums['content_transfer'], 6)
        self.assertIsInstance(sums['total'], int)

    def test_conversions(self):
        self.assertEqual(nanoseconds_to_seconds(1_500_000_000), 1.5)
        self.assertEqual(nanoseconds_to_ms(2_500_000), 2.5)
        self.assertEqual(calculate_success_rate(3, 4), 0.75)
        self.assertEqual(calculate_success_rate(0, 0), 0.0)


if __name__ == '__main__':
    unittest.main()
