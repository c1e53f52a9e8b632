"""
Sensitivity, convergence and Monte Carlo risk analysis over simulation outcomes
"""
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from scenario_engine.heuristics import Heuristics, get_heuristics
from scenario_engine.models import Assumption
from scenario_engine.results import (
    MetricDistribution,
    MetricImpact,
    MonteCarloResult,
    SensitivityAnalysis,
    SimulationOutcome,
)
from scenario_engine.statistics import (
    conditional_value_at_risk,
    correlation,
    distribution_statistics,
    elasticity,
    histogram,
    value_at_risk,
    variance,
)
from utils.logger import setup_logger

logger = setup_logger(__name__)


def metric_names(outcomes: Sequence[SimulationOutcome]) -> List[str]:
    """Metric names in order of first appearance across outcomes"""
    names: Dict[str, None] = {}
    for outcome in outcomes:
        for name in outcome.metrics:
            names.setdefault(name, None)
    return list(names)


def find_critical_thresholds(values: Sequence[float], feasible: Sequence[bool]) -> List[float]:
    """
    Assumption values at which feasibility changes.

    Pairs are sorted by value; wherever two neighbours disagree on
    feasibility the midpoint between them is a threshold.

    Args:
        values: Sampled assumption value per outcome
        feasible: Feasibility flag of the same outcomes

    Returns:
        Ascending list of threshold values
    """
    pairs = sorted(zip(values, feasible), key=lambda p: p[0])
    thresholds = []
    for (prev_value, prev_ok), (value, ok) in zip(pairs, pairs[1:]):
        if prev_ok != ok:
            thresholds.append((prev_value + value) / 2)
    return thresholds


def calculate_convergence(outcomes: Sequence[SimulationOutcome], windows: int = 10) -> float:
    """
    1 - variance of mean optimality across contiguous windows, floored at 0.

    Returns 0 when there are fewer outcomes than windows.
    """
    if windows <= 0 or len(outcomes) < windows:
        return 0.0

    ordered = sorted(outcomes, key=lambda o: o.iteration)
    optimality = np.array([o.optimality for o in ordered], dtype=float)
    window_means = [float(chunk.mean()) for chunk in np.array_split(optimality, windows)]
    return max(0.0, 1.0 - variance(window_means))


class SensitivityAnalyzer:
    """Relates each assumption to every outcome metric."""

    def analyze(
        self,
        outcomes: Sequence[SimulationOutcome],
        assumptions: Sequence[Assumption]
    ) -> List[SensitivityAnalysis]:
        """
        Args:
            outcomes: Outcomes of one batch
            assumptions: The scenario's assumptions

        Returns:
            One SensitivityAnalysis per assumption, in scenario order
        """
        ordered = sorted(outcomes, key=lambda o: o.iteration)
        names = metric_names(ordered)
        analyses = []

        for assumption in assumptions:
            sampled = [o for o in ordered if assumption.variable in o.assumptions]
            values = [o.assumptions[assumption.variable] for o in sampled]

            impacts = []
            for metric in names:
                x, y = self._paired(sampled, values, metric)
                impacts.append(MetricImpact(
                    metric=metric,
                    elasticity=elasticity(x, y),
                    correlation=correlation(x, y)
                ))

            analyses.append(SensitivityAnalysis(
                variable=assumption.variable,
                base_value=assumption.base_value,
                impact=impacts,
                critical_thresholds=find_critical_thresholds(values, [o.feasible for o in sampled])
            ))

        return analyses

    @staticmethod
    def _paired(
        sampled: Sequence[SimulationOutcome],
        values: Sequence[float],
        metric: str
    ) -> Tuple[List[float], List[float]]:
        x, y = [], []
        for outcome, value in zip(sampled, values):
            if metric in outcome.metrics:
                x.append(value)
                y.append(outcome.metrics[metric])
        return x, y


class MonteCarloAnalyzer:
    """Builds the risk report for a dedicated Monte Carlo batch."""

    def __init__(self, heuristics: Optional[Heuristics] = None):
        self.heuristics = heuristics or get_heuristics()

    def build(self, outcomes: Sequence[SimulationOutcome], seed: int) -> MonteCarloResult:
        """
        Args:
            outcomes: Outcomes of the Monte Carlo batch
            seed: Seed the batch was drawn from

        Returns:
            MonteCarloResult with per-metric distributions and revenue VaR/CVaR
        """
        h = self.heuristics
        n = len(outcomes)

        distributions = []
        for metric in metric_names(outcomes):
            values = [o.metrics[metric] for o in outcomes if metric in o.metrics]
            distributions.append(MetricDistribution(
                metric=metric,
                histogram=histogram(values, h.histogram_bins),
                statistics=distribution_statistics(values)
            ))

        successes = sum(
            1 for o in outcomes if o.feasible and o.optimality > h.success_optimality
        )
        revenues = [o.metrics.get('revenue', 0.0) for o in outcomes]

        result = MonteCarloResult(
            iterations=n,
            seed=seed,
            distributions=distributions,
            probability_of_success=successes / n if n else 0.0,
            value_at_risk=value_at_risk(revenues, h.var_confidence),
            conditional_value_at_risk=conditional_value_at_risk(revenues, h.var_confidence),
            confidence_level=h.var_confidence
        )

        logger.info(
            f"Monte Carlo: {n} iterations, P(success)={result.probability_of_success:.2%}, "
            f"VaR={result.value_at_risk:,.2f}, CVaR={result.conditional_value_at_risk:,.2f}"
        )
        return result
