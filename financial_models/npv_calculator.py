"""
Core DCF calculations: NPV, IRR, ROI and payback for decision options
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from scenario_engine.heuristics import Heuristics, get_heuristics
from utils.logger import setup_logger

logger = setup_logger(__name__)

# Newton iterates beyond this are treated as diverged
MAX_IRR_MAGNITUDE = 1e6


@dataclass
class IRRResult:
    """Outcome of the Newton-Raphson IRR search"""
    rate: float
    converged: bool
    iterations: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rate': self.rate,
            'converged': self.converged,
            'iterations': self.iterations
        }


class NPVCalculator:
    """Discounted cash flow metrics for decision option cash-flow series"""

    def __init__(self, heuristics: Optional[Heuristics] = None):
        self.heuristics = heuristics or get_heuristics()
        self.discount_rate = self.heuristics.discount_rate

    def build_cash_flow_table(
        self,
        cash_flows: Sequence[float],
        discount_rate: Optional[float] = None
    ) -> pd.DataFrame:
        """
        Tabulate a cash-flow series with discount factors and present values.

        Args:
            cash_flows: Cash flow per period, period 0 first
            discount_rate: Optional override for the discount rate

        Returns:
            DataFrame with period, cash_flow, discount_factor, present_value
        """
        rate = self.discount_rate if discount_rate is None else discount_rate

        df = pd.DataFrame({
            'period': range(len(cash_flows)),
            'cash_flow': [float(cf) for cf in cash_flows]
        })
        df['discount_factor'] = (1 + rate) ** -df['period'].astype(float)
        df['present_value'] = df['cash_flow'] * df['discount_factor']
        return df

    def calculate_npv(
        self,
        cash_flows: Sequence[float],
        discount_rate: Optional[float] = None
    ) -> float:
        """
        Net present value: sum of cf_t / (1 + r)^t for t = 0..n-1.

        Args:
            cash_flows: Cash flow per period
            discount_rate: Optional override for the discount rate

        Returns:
            NPV (0 for an empty series)
        """
        if len(cash_flows) == 0:
            return 0.0
        df = self.build_cash_flow_table(cash_flows, discount_rate)
        return float(df['present_value'].sum())

    def calculate_irr(self, cash_flows: Sequence[float]) -> IRRResult:
        """
        Internal rate of return via Newton-Raphson.

        Starts at the configured initial rate and stops when the update is
        below tolerance. When the search fails to converge the last estimate
        is returned with converged=False instead of raising.

        Args:
            cash_flows: Cash flow per period, period 0 first

        Returns:
            IRRResult
        """
        rate = self.heuristics.irr_initial_rate
        tolerance = self.heuristics.irr_tolerance
        flows = [float(cf) for cf in cash_flows]

        if not flows:
            return IRRResult(rate=0.0, converged=False, iterations=0)

        for iteration in range(1, self.heuristics.irr_max_iterations + 1):
            base = 1 + rate
            if base <= 0 or abs(rate) > MAX_IRR_MAGNITUDE:
                break

            try:
                npv = 0.0
                derivative = 0.0
                for t, cf in enumerate(flows):
                    npv += cf / base ** t
                    derivative -= t * cf / base ** (t + 1)
                new_rate = rate - npv / derivative
            except (OverflowError, ZeroDivisionError):
                break

            if not math.isfinite(new_rate):
                break

            if abs(new_rate - rate) < tolerance:
                return IRRResult(rate=new_rate, converged=True, iterations=iteration)

            rate = new_rate
        else:
            iteration = self.heuristics.irr_max_iterations

        if not math.isfinite(rate):
            rate = 0.0
        logger.debug(f"IRR did not converge after {iteration} iterations, last estimate {rate:.6f}")
        return IRRResult(rate=rate, converged=False, iterations=iteration)

    def build_option_cash_flows(
        self,
        upfront: float,
        ongoing: float,
        revenue: float,
        years: Optional[int] = None
    ) -> List[float]:
        """Upfront outlay followed by `years` of (revenue - ongoing)"""
        years = self.heuristics.cash_flow_years if years is None else years
        return [-upfront] + [revenue - ongoing] * years

    def calculate_roi(
        self,
        upfront: float,
        ongoing: float,
        revenue: float,
        years: Optional[int] = None
    ) -> float:
        """
        Return on the upfront investment over the cash-flow horizon.

        Returns 0 when there is no upfront investment.
        """
        years = self.heuristics.cash_flow_years if years is None else years
        if upfront <= 0:
            return 0.0
        return (revenue * years - upfront - ongoing * years) / upfront

    def calculate_payback_period(
        self,
        upfront: float,
        ongoing: float,
        revenue: float
    ) -> Optional[float]:
        """
        Simple payback period in years.

        Returns:
            0 when nothing is invested up front, None when the annual net
            cash flow never recovers the investment
        """
        if upfront <= 0:
            return 0.0
        annual_net = revenue - ongoing
        if annual_net <= 0:
            return None
        return upfront / annual_net

    def calculate_option_metrics(
        self,
        upfront: float,
        ongoing: float,
        revenue: float
    ) -> Dict[str, Any]:
        """
        Full financial picture for one option over the cash-flow horizon.

        Args:
            upfront: Upfront investment
            ongoing: Ongoing annual cost
            revenue: Annual revenue benefit

        Returns:
            Dictionary with cost, revenue, roi, payback_period, npv, irr, irr_converged
        """
        years = self.heuristics.cash_flow_years
        cash_flows = self.build_option_cash_flows(upfront, ongoing, revenue, years)
        irr = self.calculate_irr(cash_flows)

        return {
            'cost': upfront + ongoing * years,
            'revenue': revenue * years,
            'roi': self.calculate_roi(upfront, ongoing, revenue, years),
            'payback_period': self.calculate_payback_period(upfront, ongoing, revenue),
            'npv': self.calculate_npv(cash_flows),
            'irr': irr.rate,
            'irr_converged': irr.converged,
            'cash_flows': cash_flows
        }


# Convenience functions
def calculate_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    """Quick NPV calculation"""
    return NPVCalculator().calculate_npv(cash_flows, discount_rate)


def calculate_irr(cash_flows: Sequence[float]) -> IRRResult:
    """Quick IRR calculation"""
    return NPVCalculator().calculate_irr(cash_flows)
