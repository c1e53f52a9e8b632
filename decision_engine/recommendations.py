"""
Primary, alternative and risk-mitigation recommendations with a templated fallback
"""
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from decision_engine.categories import priority_for_score
from decision_engine.results import (
    ConstraintAnalysis,
    Dependency,
    DecisionOptionAnalysis,
    Recommendation,
    RecommendationSet,
    RecommendationTimeline,
    RiskMitigation,
)
from scenario_engine.models import Decision, clamp_unit
from utils.logger import setup_logger

logger = setup_logger(__name__)

PREPARATION_DAYS = 30
REALIZATION_DAYS = 180
MITIGATION_COST = 10000
MITIGATION_EFFECTIVENESS = 0.7
REDUCE_ABOVE_PROBABILITY = 0.5
MAX_ALTERNATIVES = 2


class DraftRisk(BaseModel):
    risk: str
    probability: float
    impact: float
    mitigation: str = ''

    @field_validator('probability', 'impact')
    @classmethod
    def clamp_scores(cls, value: float) -> float:
        return clamp_unit(value)


class RecommendationDraft(BaseModel):
    """Narrative content a generator must return"""
    title: str
    reasoning: List[str] = Field(default_factory=list)
    success_factors: List[str] = Field(default_factory=list)
    watch_points: List[str] = Field(default_factory=list)
    risks: List[DraftRisk] = Field(default_factory=list)


RecommendationGenerator = Callable[[Dict[str, Any]], Mapping[str, Any]]


def build_prompt_context(
    decision: Decision,
    top: DecisionOptionAnalysis,
    dependencies: List[Dependency],
    constraints: List[ConstraintAnalysis]
) -> Dict[str, Any]:
    """Facts handed to an external generator"""
    return {
        'decision': decision.name,
        'top_option': top.name,
        'score': round(top.score, 1),
        'roi_percent': round(top.financial_impact.roi * 100),
        'critical_dependencies': [d.target for d in dependencies if d.critical],
        'feasible': all(c.feasible for c in constraints)
    }


class RecommendationBuilder:
    """
    Turns ranked option analyses into a RecommendationSet.

    Narrative text comes from an optional generator (typically an LLM
    integration owned by the caller) or is derived from the scored options.
    Never raises: any failure yields the templated fallback.
    """

    def __init__(self, generator: Optional[RecommendationGenerator] = None):
        """
        Args:
            generator: Optional callable returning a RecommendationDraft-shaped
                mapping for a prompt context
        """
        self.generator = generator

    def build(
        self,
        decision: Decision,
        options: List[DecisionOptionAnalysis],
        dependencies: List[Dependency],
        constraints: List[ConstraintAnalysis]
    ) -> RecommendationSet:
        """
        Args:
            decision: The analysed decision
            options: Option analyses ranked best first
            dependencies: Dependencies of the decision
            constraints: Constraint analyses of the decision

        Returns:
            RecommendationSet (fallback=True when the templated fallback was used)
        """
        top = options[0] if options else None
        try:
            if top is None:
                raise ValueError(f"decision '{decision.name}' has no options to recommend")

            if self.generator is not None:
                raw = self.generator(build_prompt_context(decision, top, dependencies, constraints))
                draft = RecommendationDraft.model_validate(dict(raw))
            else:
                draft = self._derive_draft(decision, top, constraints)

            return RecommendationSet(
                primary=self._primary(decision, top, draft, dependencies),
                alternatives=self._alternatives(options),
                risk_mitigation=self._mitigations(draft)
            )
        except Exception as e:
            logger.warning(f"Recommendation generation failed for '{decision.name}', using fallback: {e}")
            return self.fallback(top)

    def _derive_draft(
        self,
        decision: Decision,
        top: DecisionOptionAnalysis,
        constraints: List[ConstraintAnalysis]
    ) -> RecommendationDraft:
        financial = top.financial_impact
        reasoning = [
            f"Highest composite score ({top.score:.1f})",
            f"ROI of {financial.roi:.0%} with NPV {financial.npv:,.0f}",
            f"Overall risk {top.risk_profile.overall:.2f}"
        ]

        watch_points = ['Budget overruns', 'Timeline delays']
        watch_points.extend(
            f"{c.constraint} gap of {c.gap:,.0f}" for c in constraints if not c.feasible
        )

        option = decision.get_option(top.id)
        risks = []
        if option is not None:
            for r in option.risks:
                risks.append(DraftRisk(
                    risk=r.description or f"{option.name} risk",
                    probability=r.probability,
                    impact=r.impact,
                    mitigation=f"Monitor and contain: {r.description}" if r.description else 'Monitor and contain'
                ))

        return RecommendationDraft(
            title=f"Implement {top.name}",
            reasoning=reasoning,
            success_factors=['Executive sponsorship', 'Adequate resources'],
            watch_points=watch_points,
            risks=risks
        )

    @staticmethod
    def _primary(
        decision: Decision,
        top: DecisionOptionAnalysis,
        draft: RecommendationDraft,
        dependencies: List[Dependency]
    ) -> Recommendation:
        implementation = decision.resources.time or 90
        return Recommendation(
            id='rec-primary',
            title=draft.title,
            description=f"Implement {top.name} option",
            option=top.id,
            reasoning=draft.reasoning,
            conditions=[d.description for d in dependencies if d.critical],
            timeline=RecommendationTimeline(
                preparation=PREPARATION_DAYS,
                implementation=implementation,
                realization=REALIZATION_DAYS
            ),
            success_factors=draft.success_factors,
            watch_points=draft.watch_points,
            confidence=clamp_unit(top.score / 100),
            priority=priority_for_score(top.score)
        )

    @staticmethod
    def _alternatives(options: List[DecisionOptionAnalysis]) -> List[Recommendation]:
        alternatives = []
        for i, option in enumerate(options[1:1 + MAX_ALTERNATIVES]):
            alternatives.append(Recommendation(
                id=f"rec-alt-{i}",
                title=f"Alternative: {option.name}",
                description=f"Consider {option.name} if primary option faces obstacles",
                option=option.id,
                reasoning=[f"Lower risk profile: {1 - option.risk_profile.overall:.2f}"],
                confidence=clamp_unit(option.score / 100),
                priority='low'
            ))
        return alternatives

    @staticmethod
    def _mitigations(draft: RecommendationDraft) -> List[RiskMitigation]:
        return [
            RiskMitigation(
                risk=r.risk,
                probability=r.probability,
                impact=r.impact,
                strategy='reduce' if r.probability > REDUCE_ABOVE_PROBABILITY else 'accept',
                actions=[r.mitigation] if r.mitigation else [],
                cost=MITIGATION_COST,
                effectiveness=MITIGATION_EFFECTIVENESS
            )
            for r in draft.risks
        ]

    @staticmethod
    def fallback(top: Optional[DecisionOptionAnalysis]) -> RecommendationSet:
        """Deterministic templated recommendation; never fails"""
        name = top.name if top is not None else 'the current plan'
        return RecommendationSet(
            primary=Recommendation(
                id='rec-primary',
                title=f"Proceed with {name}",
                description='Best option based on analysis',
                option=top.id if top is not None else '',
                reasoning=['Highest overall score', 'Acceptable risk profile'],
                success_factors=['Executive sponsorship', 'Adequate resources'],
                watch_points=['Budget overruns', 'Timeline delays'],
                confidence=0.75,
                priority='high'
            ),
            fallback=True
        )
