"""
Simulation result objects with camelCase to_dict() serialisation
"""
import math
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from pydantic.alias_generators import to_camel


def serialize(value: Any) -> Any:
    """Recursively convert result objects into JSON-compatible values."""
    if is_dataclass(value) and not isinstance(value, type):
        return {to_camel(f.name): serialize(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(k): serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


class Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return serialize(self)


@dataclass(frozen=True)
class BusinessState(Serializable):
    """Projected state of the business at the end of the horizon"""
    timestamp: datetime
    metrics: Dict[str, float]
    health: float
    risks: List[Dict[str, Any]] = field(default_factory=list)
    opportunities: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class SimulationOutcome(Serializable):
    """One Monte Carlo draw"""
    iteration: int
    decisions: Dict[str, str]
    assumptions: Dict[str, float]
    projected_state: BusinessState
    metrics: Dict[str, float]
    objectives: Dict[str, float]
    feasible: bool
    optimality: float


@dataclass
class Percentiles(Serializable):
    p5: Dict[str, float] = field(default_factory=dict)
    p25: Dict[str, float] = field(default_factory=dict)
    p75: Dict[str, float] = field(default_factory=dict)
    p95: Dict[str, float] = field(default_factory=dict)


@dataclass
class SimulationStatistics(Serializable):
    """
    Aggregate statistics over a batch of outcomes.

    Attributes:
        sample_size: Number of outcomes aggregated. 0 marks an empty batch, in
            which case every mapping is empty and every scalar is 0 by
            convention rather than by measurement.
    """
    mean: Dict[str, float] = field(default_factory=dict)
    median: Dict[str, float] = field(default_factory=dict)
    std_dev: Dict[str, float] = field(default_factory=dict)
    percentiles: Percentiles = field(default_factory=Percentiles)
    success_rate: float = 0.0
    average_roi: float = 0.0
    risk_adjusted_return: float = 0.0
    sample_size: int = 0

    @property
    def is_empty(self) -> bool:
        return self.sample_size == 0


@dataclass
class SimulationInsight(Serializable):
    type: str  # opportunity | risk | dependency | bottleneck | synergy
    title: str
    description: str
    impact: str  # high | medium | low
    confidence: float
    evidence: List[str] = field(default_factory=list)


@dataclass
class SupportingData(Serializable):
    metric: str
    improvement: float
    confidence: float


@dataclass
class StrategicRecommendation(Serializable):
    id: str
    priority: int
    title: str
    description: str
    actions: List[str] = field(default_factory=list)
    expected_outcome: str = ''
    required_resources: List[str] = field(default_factory=list)
    timeline: str = ''
    supporting_data: List[SupportingData] = field(default_factory=list)


@dataclass
class MetricImpact(Serializable):
    metric: str
    elasticity: float
    correlation: float


@dataclass
class SensitivityAnalysis(Serializable):
    variable: str
    base_value: float
    impact: List[MetricImpact] = field(default_factory=list)
    critical_thresholds: List[float] = field(default_factory=list)


@dataclass
class HistogramBin(Serializable):
    bin: float
    frequency: int


@dataclass
class DistributionStatistics(Serializable):
    mean: float
    variance: float
    skewness: float
    kurtosis: float


@dataclass
class MetricDistribution(Serializable):
    metric: str
    histogram: List[HistogramBin]
    statistics: DistributionStatistics


@dataclass
class MonteCarloResult(Serializable):
    iterations: int
    seed: int
    distributions: List[MetricDistribution]
    probability_of_success: float
    value_at_risk: float
    conditional_value_at_risk: float
    confidence_level: float = 0.95


@dataclass
class SimulationResult(Serializable):
    id: str
    scenario_id: str
    started_at: datetime
    completed_at: Optional[datetime]
    iterations: int
    convergence: float
    outcomes: List[SimulationOutcome]
    statistics: SimulationStatistics
    insights: List[SimulationInsight] = field(default_factory=list)
    recommendations: List[StrategicRecommendation] = field(default_factory=list)
    sensitivity: List[SensitivityAnalysis] = field(default_factory=list)
    monte_carlo: Optional[MonteCarloResult] = None
    seed: Optional[int] = None

    def outcomes_frame(self) -> pd.DataFrame:
        """
        Per-iteration metrics as a DataFrame (one row per outcome).

        Adds iteration, feasible and optimality columns alongside the metrics.
        """
        rows = []
        for outcome in self.outcomes:
            row = {'iteration': outcome.iteration}
            row.update(outcome.metrics)
            row['feasible'] = outcome.feasible
            row['optimality'] = outcome.optimality
            rows.append(row)
        df = pd.DataFrame(rows)
        if not df.empty:
            df = df.sort_values('iteration').reset_index(drop=True)
        return df
