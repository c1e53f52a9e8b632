"""
Output value objects of a decision impact analysis.

Serialised with camelCase keys through the same ``to_dict()`` helper as
simulation results.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from scenario_engine.results import Serializable


@dataclass
class FinancialImpact(Serializable):
    """Five-year cash-flow picture of one option"""
    cost: float
    revenue: float
    roi: float
    payback_period: Optional[float]
    npv: float
    irr: float
    irr_converged: bool = True


@dataclass
class OperationalImpact(Serializable):
    efficiency: float
    capacity: float
    quality: float
    time_to_market: float


@dataclass
class StrategicImpact(Serializable):
    market_position: float
    competitive_advantage: float
    customer_satisfaction: float
    brand_value: float


@dataclass
class RiskProfile(Serializable):
    overall: float
    technical: float
    market: float
    execution: float
    financial: float


@dataclass
class DecisionOptionAnalysis(Serializable):
    id: str
    name: str
    financial_impact: FinancialImpact
    operational_impact: OperationalImpact
    strategic_impact: StrategicImpact
    risk_profile: RiskProfile
    score: float
    ranking: int = 0


@dataclass
class Impact(Serializable):
    area: str  # one of decision_engine.categories.IMPACT_AREAS
    metric: str
    baseline: float
    projected: float
    change: float
    change_percent: float
    confidence: float
    explanation: str = ''


@dataclass
class ImpactTimeline(Serializable):
    """Impacts bucketed by when they land (short term: 3-6 months, long term: 12+)"""
    immediate: List[Impact] = field(default_factory=list)
    short_term: List[Impact] = field(default_factory=list)
    long_term: List[Impact] = field(default_factory=list)

    def count(self) -> int:
        return len(self.immediate) + len(self.short_term) + len(self.long_term)


@dataclass
class Dependency(Serializable):
    type: str  # prerequisite | enabler | conflict | synergy
    target: str
    strength: str  # strong | moderate | weak
    description: str
    critical: bool


@dataclass
class ConstraintAnalysis(Serializable):
    constraint: str
    type: str
    current: float
    required: float
    gap: float
    feasible: bool
    mitigation: Optional[str] = None


@dataclass
class RecommendationTimeline(Serializable):
    """Durations in days"""
    preparation: float = 30
    implementation: float = 90
    realization: float = 180


@dataclass
class Recommendation(Serializable):
    id: str
    title: str
    description: str
    option: str
    reasoning: List[str] = field(default_factory=list)
    conditions: List[str] = field(default_factory=list)
    timeline: RecommendationTimeline = field(default_factory=RecommendationTimeline)
    success_factors: List[str] = field(default_factory=list)
    watch_points: List[str] = field(default_factory=list)
    confidence: float = 0.75
    priority: str = 'medium'  # critical | high | medium | low


@dataclass
class RiskMitigation(Serializable):
    risk: str
    probability: float
    impact: float
    strategy: str  # avoid | reduce | transfer | accept
    actions: List[str] = field(default_factory=list)
    cost: float = 0
    effectiveness: float = 0


@dataclass
class RecommendationSet(Serializable):
    primary: Recommendation
    alternatives: List[Recommendation] = field(default_factory=list)
    risk_mitigation: List[RiskMitigation] = field(default_factory=list)
    fallback: bool = False


@dataclass
class AnalysisConfidence(Serializable):
    overall: float
    data_quality: float
    model_accuracy: float


@dataclass
class ScenarioImpacts(Serializable):
    best: List[Impact] = field(default_factory=list)
    likely: List[Impact] = field(default_factory=list)
    worst: List[Impact] = field(default_factory=list)


@dataclass
class WhatIfAnalysis(Serializable):
    scenario: str
    condition: str
    impacts: ScenarioImpacts
    probability: Dict[str, float]
    recommendations: List[str] = field(default_factory=list)


@dataclass
class DecisionSummary(Serializable):
    name: str
    description: str
    options: List[DecisionOptionAnalysis]

    @property
    def top_option(self) -> Optional[DecisionOptionAnalysis]:
        return self.options[0] if self.options else None


@dataclass
class DecisionImpactAnalysis(Serializable):
    id: str
    decision_id: str
    tenant_id: str
    analyzed_at: datetime
    decision: DecisionSummary
    impacts: ImpactTimeline
    dependencies: List[Dependency]
    constraints: List[ConstraintAnalysis]
    recommendations: RecommendationSet
    confidence: AnalysisConfidence
    what_if: List[WhatIfAnalysis] = field(default_factory=list)


@dataclass
class ComparisonMatrix(Serializable):
    criteria: List[str]
    scores: Dict[str, List[float]] = field(default_factory=dict)


@dataclass
class DecisionComparison(Serializable):
    decisions: List[DecisionImpactAnalysis]
    winner: str
    matrix: ComparisonMatrix
    insights: List[str] = field(default_factory=list)
