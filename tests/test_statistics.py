"""
Unit tests for the statistics aggregator and series helpers.
"""
import unittest

import numpy as np

from scenario_engine.statistics import (
    StatisticsAggregator,
    conditional_value_at_risk,
    correlation,
    distribution_statistics,
    elasticity,
    histogram,
    nearest_rank,
    value_at_risk,
)
from tests.fixtures import make_heuristics, make_outcome


class TestAggregator(unittest.TestCase):

    def setUp(self):
        self.aggregator = StatisticsAggregator(make_heuristics())
        self.outcomes = [
            make_outcome(i, {'revenue': float(r), 'cost': 100.0}, feasible=f, optimality=o)
            for i, (r, f, o) in enumerate([
                (200, True, 0.9),
                (100, True, 0.8),
                (400, False, 0.95),
                (300, True, 0.5)
            ])
        ]

    def test_per_metric_statistics(self):
        stats = self.aggregator.summarize(self.outcomes)
        self.assertEqual(stats.mean['revenue'], 250.0)
        # Even count takes the upper of the two middle values (sorted[n // 2])
        self.assertEqual(stats.median['revenue'], 300.0)
        self.assertAlmostEqual(stats.std_dev['revenue'], np.std([200, 100, 400, 300]))
        self.assertEqual(stats.percentiles.p5['revenue'], 100.0)
        self.assertEqual(stats.percentiles.p95['revenue'], 400.0)
        self.assertEqual(stats.sample_size, 4)

    def test_success_rate_requires_feasible_and_optimal(self):
        stats = self.aggregator.summarize(self.outcomes)
        self.assertEqual(stats.success_rate, 0.5)

    def test_average_roi(self):
        stats = self.aggregator.summarize(self.outcomes)
        expected = np.mean([1.0, 0.0, 3.0, 2.0])
        self.assertAlmostEqual(stats.average_roi, expected)
        self.assertAlmostEqual(stats.risk_adjusted_return, expected / np.std([200, 100, 400, 300]))

    def test_zero_cost_roi_is_zero(self):
        outcomes = [make_outcome(0, {'revenue': 100.0, 'cost': 0.0})]
        self.assertEqual(self.aggregator.summarize(outcomes).average_roi, 0.0)

    def test_idempotent(self):
        first = self.aggregator.summarize(self.outcomes)
        second = self.aggregator.summarize(self.outcomes)
        self.assertEqual(first.to_dict(), second.to_dict())
        self.assertEqual([o.iteration for o in self.outcomes], [0, 1, 2, 3])

    def test_empty_batch(self):
        stats = self.aggregator.summarize([])
        self.assertTrue(stats.is_empty)
        self.assertEqual(stats.mean, {})
        self.assertEqual(stats.success_rate, 0.0)


class TestSeriesHelpers(unittest.TestCase):

    def test_nearest_rank(self):
        values = np.arange(1.0, 21.0)
        self.assertEqual(nearest_rank(values, 0.05), 2.0)
        self.assertEqual(nearest_rank(values, 0.95), 20.0)

    def test_correlation(self):
        self.assertAlmostEqual(correlation([1, 2, 3], [2, 4, 6]), 1.0)
        self.assertAlmostEqual(correlation([1, 2, 3], [6, 4, 2]), -1.0)
        self.assertEqual(correlation([1, 1, 1], [1, 2, 3]), 0.0)
        self.assertEqual(correlation([1], [2]), 0.0)

    def test_correlation_length_mismatch(self):
        with self.assertRaises(ValueError):
            correlation([1, 2], [1, 2, 3])

    def test_elasticity(self):
        # dy/avg(y) = 2/2, dx/avg(x) = 2/2
        self.assertAlmostEqual(elasticity([1, 2, 3], [1, 2, 3]), 1.0)
        self.assertEqual(elasticity([2, 2], [1, 3]), 0.0)
        self.assertEqual(elasticity([], []), 0.0)

    def test_histogram_includes_max(self):
        bins = histogram([0, 1, 2, 3, 4, 5, 6, 7, 8, 10], 5)
        self.assertEqual(len(bins), 5)
        self.assertEqual(sum(b.frequency for b in bins), 10)
        self.assertEqual(bins[-1].frequency, 2)
        self.assertAlmostEqual(bins[0].bin, 1.0)

    def test_histogram_constant_values(self):
        bins = histogram([4.0, 4.0, 4.0], 20)
        self.assertEqual(bins[0].frequency, 3)
        self.assertEqual(sum(b.frequency for b in bins), 3)

    def test_distribution_statistics(self):
        stats = distribution_statistics([1.0, 2.0, 3.0])
        self.assertAlmostEqual(stats.mean, 2.0)
        self.assertAlmostEqual(stats.variance, 2.0 / 3)
        self.assertAlmostEqual(stats.skewness, 0.0)
        self.assertAlmostEqual(stats.kurtosis, -1.5)

    def test_distribution_statistics_constant(self):
        stats = distribution_statistics([5.0, 5.0])
        self.assertEqual((stats.variance, stats.skewness, stats.kurtosis), (0.0, 0.0, 0.0))

    def test_value_at_risk(self):
        values = list(range(100, 0, -1))
        self.assertEqual(value_at_risk(values, 0.95), 6.0)
        self.assertAlmostEqual(conditional_value_at_risk(values, 0.95), np.mean([1, 2, 3, 4, 5, 6]))
        self.assertEqual(value_at_risk([], 0.95), 0.0)
        self.assertEqual(conditional_value_at_risk([], 0.95), 0.0)


if __name__ == '__main__':
    unittest.main()
