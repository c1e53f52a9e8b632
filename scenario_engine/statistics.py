"""
Outcome statistics: moments, percentiles, histograms, correlation and VaR/CVaR
"""
import math
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats as scipy_stats

from scenario_engine.heuristics import Heuristics, get_heuristics
from scenario_engine.results import (
    DistributionStatistics,
    HistogramBin,
    Percentiles,
    SimulationOutcome,
    SimulationStatistics,
)

PERCENTILE_LEVELS = {'p5': 0.05, 'p25': 0.25, 'p75': 0.75, 'p95': 0.95}


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float)


def nearest_rank(sorted_values: np.ndarray, p: float) -> float:
    """Nearest-rank percentile: sorted[floor(n * p)]"""
    n = len(sorted_values)
    index = min(n - 1, int(math.floor(round(n * p, 9))))
    return float(sorted_values[index])


def correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson's r between two equal-length series.

    Returns 0 for fewer than two points or a zero-variance series.
    """
    x_arr, y_arr = _as_array(x), _as_array(y)
    if len(x_arr) != len(y_arr):
        raise ValueError(f"series lengths differ: {len(x_arr)} vs {len(y_arr)}")
    if len(x_arr) < 2:
        return 0.0

    dx = x_arr - x_arr.mean()
    dy = y_arr - y_arr.mean()
    denominator = math.sqrt(float(np.sum(dx * dx)) * float(np.sum(dy * dy)))
    if denominator == 0:
        return 0.0
    return float(np.sum(dx * dy)) / denominator


def elasticity(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Point elasticity (dY / avg Y) / (dX / avg X) from first and last values.

    A simplification, not a regression estimate. Returns 0 when either mean
    or the change in x is zero.
    """
    x_arr, y_arr = _as_array(x), _as_array(y)
    if len(x_arr) == 0 or len(y_arr) == 0:
        return 0.0

    avg_x, avg_y = float(x_arr.mean()), float(y_arr.mean())
    if avg_x == 0 or avg_y == 0:
        return 0.0

    d_x = float(x_arr[-1] - x_arr[0])
    d_y = float(y_arr[-1] - y_arr[0])
    if d_x == 0:
        return 0.0
    return (d_y / avg_y) / (d_x / avg_x)


def histogram(values: Sequence[float], bins: int) -> List[HistogramBin]:
    """
    Fixed-width histogram between min and max.

    Bins are right-open except the last, which closes at max. When every
    value is identical the whole sample lands in the first bin.
    """
    arr = _as_array(values)
    if len(arr) == 0 or bins <= 0:
        return []

    low, high = float(arr.min()), float(arr.max())
    width = (high - low) / bins

    if width == 0:
        counts = np.zeros(bins, dtype=int)
        counts[0] = len(arr)
        return [HistogramBin(bin=low, frequency=int(c)) for c in counts]

    indices = np.clip(np.floor((arr - low) / width).astype(int), 0, bins - 1)
    counts = np.bincount(indices, minlength=bins)
    return [
        HistogramBin(bin=low + (i + 0.5) * width, frequency=int(counts[i]))
        for i in range(bins)
    ]


def distribution_statistics(values: Sequence[float]) -> DistributionStatistics:
    """Mean, population variance, skewness and excess kurtosis"""
    arr = _as_array(values)
    if len(arr) == 0:
        return DistributionStatistics(mean=0.0, variance=0.0, skewness=0.0, kurtosis=0.0)

    mean = float(arr.mean())
    variance = float(arr.var())
    if variance == 0:
        return DistributionStatistics(mean=mean, variance=0.0, skewness=0.0, kurtosis=0.0)

    return DistributionStatistics(
        mean=mean,
        variance=variance,
        skewness=float(scipy_stats.skew(arr, bias=True)),
        kurtosis=float(scipy_stats.kurtosis(arr, fisher=True, bias=True))
    )


def _tail_index(n: int, confidence: float) -> int:
    return min(n - 1, int(math.floor(round((1 - confidence) * n, 9))))


def value_at_risk(values: Sequence[float], confidence: float = 0.95) -> float:
    """Lower-tail value at the (1 - confidence) rank of the sorted sample"""
    arr = np.sort(_as_array(values))
    if len(arr) == 0:
        return 0.0
    return float(arr[_tail_index(len(arr), confidence)])


def conditional_value_at_risk(values: Sequence[float], confidence: float = 0.95) -> float:
    """Mean of the sorted sample up to and including the VaR rank"""
    arr = np.sort(_as_array(values))
    if len(arr) == 0:
        return 0.0
    return float(arr[:_tail_index(len(arr), confidence) + 1].mean())


def variance(values: Sequence[float]) -> float:
    arr = _as_array(values)
    return float(arr.var()) if len(arr) else 0.0


class StatisticsAggregator:
    """Reduces a batch of outcomes to SimulationStatistics."""

    def __init__(self, heuristics: Optional[Heuristics] = None):
        self.heuristics = heuristics or get_heuristics()

    @staticmethod
    def metrics_frame(outcomes: Sequence[SimulationOutcome]) -> pd.DataFrame:
        """One column per metric name seen in any outcome, one row per outcome"""
        return pd.DataFrame([dict(o.metrics) for o in outcomes])

    def summarize(self, outcomes: Sequence[SimulationOutcome]) -> SimulationStatistics:
        """
        Aggregate a batch of outcomes.

        Args:
            outcomes: Completed outcomes of one batch

        Returns:
            SimulationStatistics (sample_size=0 for an empty batch)
        """
        n = len(outcomes)
        if n == 0:
            return SimulationStatistics()

        mean: Dict[str, float] = {}
        median: Dict[str, float] = {}
        std_dev: Dict[str, float] = {}
        percentiles = Percentiles()

        frame = self.metrics_frame(outcomes)
        for metric in frame.columns:
            values = frame[metric].dropna().to_numpy(dtype=float)
            if len(values) == 0:
                continue
            ordered = np.sort(values)

            mean[metric] = float(values.mean())
            median[metric] = float(ordered[len(ordered) // 2])
            std_dev[metric] = float(values.std())
            for label, level in PERCENTILE_LEVELS.items():
                getattr(percentiles, label)[metric] = nearest_rank(ordered, level)

        success_count = sum(
            1 for o in outcomes
            if o.feasible and o.optimality > self.heuristics.success_optimality
        )

        rois = []
        for o in outcomes:
            revenue = o.metrics.get('revenue', 0.0)
            cost = o.metrics.get('cost', 0.0)
            rois.append((revenue - cost) / cost if cost > 0 else 0.0)
        average_roi = float(np.mean(rois))

        revenue_std = std_dev.get('revenue') or 1.0

        return SimulationStatistics(
            mean=mean,
            median=median,
            std_dev=std_dev,
            percentiles=percentiles,
            success_rate=success_count / n,
            average_roi=average_roi,
            risk_adjusted_return=average_roi / revenue_std,
            sample_size=n
        )
