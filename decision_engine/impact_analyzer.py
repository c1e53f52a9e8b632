"""
Decision impact analysis: ranked options, projected impacts, dependencies,
constraints, recommendations, what-if exemplars and confidence.
"""
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, List, Mapping, Optional, Union

from decision_engine.categories import IMPACT_AREAS
from decision_engine.option_scorer import OptionScorer
from decision_engine.recommendations import RecommendationBuilder, RecommendationGenerator
from decision_engine.results import (
    AnalysisConfidence,
    ConstraintAnalysis,
    DecisionImpactAnalysis,
    DecisionOptionAnalysis,
    DecisionSummary,
    Dependency,
    Impact,
    ImpactTimeline,
    ScenarioImpacts,
    WhatIfAnalysis,
)
from scenario_engine.exceptions import SnapshotNotFoundError
from scenario_engine.heuristics import Heuristics, get_heuristics
from scenario_engine.models import (
    BusinessSnapshot,
    Decision,
    EngineModel,
    Scenario,
    parse_decision,
    parse_snapshot,
)
from utils.logger import LogContext, setup_logger

logger = setup_logger(__name__)

DEFAULT_HEADCOUNT_BASELINE = 10
RECENT_UPDATE = timedelta(days=7)
DAYS_PER_MONTH = 30


class AnalysisContext(EngineModel):
    """Optional caller context for an analysis"""
    scenario: Optional[Scenario] = None
    # Days available for implementation; defaults to the scenario horizon
    time_horizon: Optional[float] = None
    tenant_id: Optional[str] = None


def _naive(moment: datetime) -> datetime:
    """Local naive time, so aware and naive timestamps compare"""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def percent_change(baseline: float, projected: float) -> float:
    """Relative change in percent (0 against a zero baseline)"""
    if baseline == 0:
        return 0.0
    return (projected - baseline) / baseline * 100


def create_impact(
    area: str,
    metric: str,
    baseline: float,
    projected: float,
    confidence: float,
    explanation: Optional[str] = None
) -> Impact:
    """
    Raises:
        ValueError: area is not one of IMPACT_AREAS
    """
    if area not in IMPACT_AREAS:
        raise ValueError(f"Unknown impact area '{area}', expected one of {IMPACT_AREAS}")
    return Impact(
        area=area,
        metric=metric,
        baseline=baseline,
        projected=projected,
        change=projected - baseline,
        change_percent=percent_change(baseline, projected),
        confidence=confidence,
        explanation=explanation or f"Projected change in {metric}"
    )


class DecisionImpactAnalyzer:
    """
    Analyses one decision against a business snapshot.

    Options are scored and ranked by OptionScorer; recommendations come from
    RecommendationBuilder, which falls back to a templated recommendation
    rather than failing the analysis.
    """

    def __init__(
        self,
        heuristics: Optional[Heuristics] = None,
        scorer: Optional[OptionScorer] = None,
        generator: Optional[RecommendationGenerator] = None,
        repository=None,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Args:
            heuristics: Engine heuristics (config defaults when omitted)
            scorer: Option scorer
            generator: Optional external recommendation generator
            repository: Optional ScenarioRepository; analyses are stored there
            clock: Source of "now" for the analysis timestamp and recency checks
        """
        self.heuristics = heuristics or get_heuristics()
        self.scorer = scorer or OptionScorer(self.heuristics)
        self.recommender = RecommendationBuilder(generator)
        self.repository = repository
        self.clock = clock

    def analyze_decision_impact(
        self,
        snapshot: Union[BusinessSnapshot, Mapping[str, Any], None],
        decision: Union[Decision, Mapping[str, Any]],
        context: Union[AnalysisContext, Mapping[str, Any], None] = None
    ) -> DecisionImpactAnalysis:
        """
        Run the full impact analysis for a decision.

        Args:
            snapshot: Business snapshot of the tenant
            decision: Decision model or payload
            context: Optional AnalysisContext (time horizon in days, scenario)

        Returns:
            DecisionImpactAnalysis

        Raises:
            DecisionValidationError: Malformed decision payload
            SnapshotNotFoundError: No snapshot supplied
        """
        decision = parse_decision(decision)
        if snapshot is None:
            raise SnapshotNotFoundError(f"No business snapshot for decision '{decision.name}'")
        snapshot = parse_snapshot(snapshot)
        if context is None:
            context = AnalysisContext()
        elif not isinstance(context, AnalysisContext):
            context = AnalysisContext.model_validate(dict(context))

        with LogContext(logger, f"impact analysis for decision '{decision.name}'"):
            options = self.scorer.analyze_options(decision, snapshot)
            impacts = self.project_impacts(decision, snapshot)
            dependencies = self.analyze_dependencies(decision, snapshot)
            constraints = self.analyze_constraints(decision, snapshot, context)
            recommendations = self.recommender.build(decision, options, dependencies, constraints)
            what_if = self.perform_what_if_analysis()

            analysis = DecisionImpactAnalysis(
                id=f"analysis-{uuid.uuid4().hex[:12]}",
                decision_id=decision.id,
                tenant_id=context.tenant_id or snapshot.tenant_id,
                analyzed_at=self.clock(),
                decision=DecisionSummary(
                    name=decision.name,
                    description=decision.description,
                    options=options
                ),
                impacts=impacts,
                dependencies=dependencies,
                constraints=constraints,
                recommendations=recommendations,
                confidence=AnalysisConfidence(
                    overall=self.calculate_overall_confidence(options, impacts),
                    data_quality=self.assess_data_quality(snapshot),
                    model_accuracy=self.assess_model_accuracy(snapshot)
                ),
                what_if=what_if
            )

        if self.repository is not None:
            self.repository.save_analysis(analysis)

        return analysis

    def project_impacts(self, decision: Decision, snapshot: BusinessSnapshot) -> ImpactTimeline:
        """
        Time-bucketed impacts.

        The short-term revenue uplift and long-term market share gain are
        fixed heuristics, not derived from the option set.
        """
        h = self.heuristics
        timeline = ImpactTimeline()

        investment = decision.resources.budget or 0.0
        timeline.immediate.append(Impact(
            area='financial',
            metric='Investment Required',
            baseline=0.0,
            projected=investment,
            change=investment,
            change_percent=100.0 if investment else 0.0,
            confidence=0.95,
            explanation='Initial investment for decision implementation'
        ))

        if decision.resources.headcount:
            baseline = DEFAULT_HEADCOUNT_BASELINE
            if snapshot.departments and snapshot.departments[0].headcount:
                baseline = snapshot.departments[0].headcount
            timeline.immediate.append(create_impact(
                'human', 'Headcount', baseline, baseline + decision.resources.headcount, 0.9,
                'Additional staff required for implementation'
            ))

        revenue = snapshot.metrics.get('revenue', 0.0)
        timeline.short_term.append(Impact(
            area='financial',
            metric='Revenue',
            baseline=revenue,
            projected=revenue * (1 + h.short_term_revenue_uplift),
            change=revenue * h.short_term_revenue_uplift,
            change_percent=h.short_term_revenue_uplift * 100,
            confidence=0.75,
            explanation='Expected revenue increase from decision benefits'
        ))

        share = h.long_term_market_share_baseline
        timeline.long_term.append(create_impact(
            'financial', 'Market Share', share, share + h.long_term_market_share_gain, 0.65,
            'Long-term market position improvement'
        ))

        return timeline

    @staticmethod
    def analyze_dependencies(decision: Decision, snapshot: BusinessSnapshot) -> List[Dependency]:
        dependencies = [
            Dependency(
                type='prerequisite',
                target=target,
                strength='strong',
                description=f"Decision requires {target} to be completed first",
                critical=True
            )
            for target in decision.dependencies
        ]

        budget = decision.resources.budget
        if budget and snapshot.departments and budget > snapshot.departments[0].budget:
            dependencies.append(Dependency(
                type='enabler',
                target='Budget Approval',
                strength='strong',
                description='Requires additional budget allocation',
                critical=True
            ))

        return dependencies

    def analyze_constraints(
        self,
        decision: Decision,
        snapshot: BusinessSnapshot,
        context: AnalysisContext
    ) -> List[ConstraintAnalysis]:
        h = self.heuristics

        available_budget = h.default_available_budget
        if snapshot.departments and snapshot.departments[0].budget:
            available_budget = snapshot.departments[0].budget
        required_budget = decision.resources.budget or 0.0
        budget_ok = required_budget <= available_budget

        available_time = context.time_horizon
        if not available_time and context.scenario is not None:
            available_time = context.scenario.time_horizon * DAYS_PER_MONTH
        available_time = available_time or h.default_time_horizon_days
        required_time = decision.resources.time or h.default_required_time_days
        time_ok = required_time <= available_time

        return [
            ConstraintAnalysis(
                constraint='Budget',
                type='budget',
                current=available_budget,
                required=required_budget,
                gap=required_budget - available_budget,
                feasible=budget_ok,
                mitigation=None if budget_ok else 'Seek additional funding or phase implementation'
            ),
            ConstraintAnalysis(
                constraint='Time',
                type='time',
                current=available_time,
                required=required_time,
                gap=max(0.0, required_time - available_time),
                feasible=time_ok,
                mitigation=None if time_ok else 'Extend the timeline or reduce implementation scope'
            )
        ]

    def perform_what_if_analysis(self) -> List[WhatIfAnalysis]:
        """Named market exemplars from the heuristics, each with best/likely/worst impacts"""
        analyses = []
        for exemplar in self.heuristics.what_if_scenarios:
            impacts = exemplar.get('impacts', {})
            analyses.append(WhatIfAnalysis(
                scenario=exemplar['scenario'],
                condition=exemplar.get('condition', ''),
                impacts=ScenarioImpacts(**{
                    case: [
                        create_impact(i['area'], i['metric'], i['baseline'], i['projected'], i['confidence'])
                        for i in impacts.get(case, [])
                    ]
                    for case in ('best', 'likely', 'worst')
                }),
                probability=dict(exemplar.get('probability', {})),
                recommendations=list(exemplar.get('recommendations', []))
            ))
        return analyses

    @staticmethod
    def calculate_overall_confidence(options: List[DecisionOptionAnalysis], impacts: ImpactTimeline) -> float:
        option_confidence = 0.8 if options else 0.5
        impact_confidence = 0.75 if impacts.count() > 5 else 0.6
        return (option_confidence + impact_confidence) / 2

    def assess_data_quality(self, snapshot: BusinessSnapshot) -> float:
        quality = 0.5
        if snapshot.historical:
            quality += 0.2
        if len(snapshot.metrics) > 5:
            quality += 0.2
        if _naive(self.clock()) - _naive(snapshot.updated_at) < RECENT_UPDATE:
            quality += 0.1
        return min(1.0, quality)

    @staticmethod
    def assess_model_accuracy(snapshot: BusinessSnapshot) -> float:
        accuracy = 0.6
        if any(snapshot.capabilities.values()):
            accuracy += 0.2
        if snapshot.departments and snapshot.processes:
            accuracy += 0.2
        return min(1.0, accuracy)


# Convenience function
def analyze_decision_impact(
    snapshot: Union[BusinessSnapshot, Mapping[str, Any], None],
    decision: Union[Decision, Mapping[str, Any]],
    context: Optional[Mapping[str, Any]] = None
) -> DecisionImpactAnalysis:
    """Quick impact analysis with default heuristics"""
    analyzer = DecisionImpactAnalyzer()
    return analyzer.analyze_decision_impact(snapshot, decision, context)
