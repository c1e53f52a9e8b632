"""
Unit tests for the discounted cash flow calculator.
"""
import math
import unittest

from financial_models.npv_calculator import NPVCalculator, calculate_irr, calculate_npv
from tests.fixtures import make_heuristics


class TestNPV(unittest.TestCase):

    def setUp(self):
        self.calculator = NPVCalculator(make_heuristics())

    def test_single_period_loan_nets_to_zero(self):
        self.assertAlmostEqual(calculate_npv([-100, 110], 0.1), 0.0, places=9)

    def test_uses_configured_rate(self):
        npv = self.calculator.calculate_npv([0, 110])
        self.assertAlmostEqual(npv, 100.0, places=9)

    def test_empty_series(self):
        self.assertEqual(self.calculator.calculate_npv([]), 0.0)

    def test_cash_flow_table(self):
        df = self.calculator.build_cash_flow_table([-100, 60, 60], 0.1)
        self.assertEqual(list(df.columns), ['period', 'cash_flow', 'discount_factor', 'present_value'])
        self.assertEqual(len(df), 3)
        self.assertAlmostEqual(df['discount_factor'].iloc[2], 1 / 1.21, places=9)
        self.assertAlmostEqual(df['present_value'].sum(), self.calculator.calculate_npv([-100, 60, 60], 0.1))


class TestIRR(unittest.TestCase):

    def setUp(self):
        self.calculator = NPVCalculator(make_heuristics())

    def test_irr_zeroes_npv(self):
        flows = [-100, 50, 50, 50]
        result = calculate_irr(flows)
        self.assertTrue(result.converged)
        self.assertLess(abs(self.calculator.calculate_npv(flows, result.rate)), 1e-3)

    def test_known_rate(self):
        result = self.calculator.calculate_irr([-100, 110])
        self.assertAlmostEqual(result.rate, 0.10, places=5)

    def test_all_positive_flows_do_not_raise(self):
        result = self.calculator.calculate_irr([100, 100, 100])
        self.assertTrue(math.isfinite(result.rate))

    def test_zero_flows_report_non_convergence(self):
        result = self.calculator.calculate_irr([0, 0, 0])
        self.assertFalse(result.converged)
        self.assertEqual(result.rate, 0.1)

    def test_empty_series(self):
        result = self.calculator.calculate_irr([])
        self.assertFalse(result.converged)
        self.assertEqual(result.rate, 0.0)

    def test_rootless_flows_stop_without_raising(self):
        for flows in ([-1000] + [-5000] * 5, [-100000] + [-20000] * 5, [-1] + [-1e6] * 5):
            result = self.calculator.calculate_irr(flows)
            self.assertFalse(result.converged)
            self.assertTrue(math.isfinite(result.rate))

    def test_option_costing_more_than_it_earns(self):
        metrics = self.calculator.calculate_option_metrics(upfront=1, ongoing=1e6, revenue=0)
        self.assertFalse(metrics['irr_converged'])
        self.assertTrue(math.isfinite(metrics['irr']))


class TestOptionMetrics(unittest.TestCase):

    def setUp(self):
        self.calculator = NPVCalculator(make_heuristics())

    def test_five_year_horizon(self):
        metrics = self.calculator.calculate_option_metrics(upfront=1000, ongoing=100, revenue=500)
        self.assertEqual(metrics['cash_flows'], [-1000, 400, 400, 400, 400, 400])
        self.assertEqual(metrics['cost'], 1500)
        self.assertEqual(metrics['revenue'], 2500)
        self.assertAlmostEqual(metrics['roi'], (2500 - 1000 - 500) / 1000)
        self.assertAlmostEqual(metrics['payback_period'], 2.5)

    def test_zero_upfront_payback_is_zero(self):
        metrics = self.calculator.calculate_option_metrics(upfront=0, ongoing=0, revenue=100)
        self.assertEqual(metrics['payback_period'], 0.0)
        self.assertEqual(metrics['roi'], 0.0)

    def test_unrecoverable_investment_has_no_payback(self):
        self.assertIsNone(self.calculator.calculate_payback_period(1000, 200, 100))

    def test_horizon_is_configurable(self):
        calculator = NPVCalculator(make_heuristics(cash_flow_years=3))
        metrics = calculator.calculate_option_metrics(upfront=100, ongoing=0, revenue=50)
        self.assertEqual(len(metrics['cash_flows']), 4)


if __name__ == '__main__':
    unittest.main()
