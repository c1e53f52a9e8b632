"""
Composite scoring engine for decision options
"""
from typing import List, Optional

from decision_engine.categories import SCORE_CATEGORIES
from decision_engine.results import (
    DecisionOptionAnalysis,
    FinancialImpact,
    OperationalImpact,
    RiskProfile,
    StrategicImpact,
)
from financial_models.npv_calculator import NPVCalculator
from scenario_engine.heuristics import Heuristics, get_heuristics
from scenario_engine.models import BusinessSnapshot, Decision, DecisionOption
from utils.logger import setup_logger

logger = setup_logger(__name__)

# Baselines used when an option or the snapshot is silent
BASELINE_EFFICIENCY = 70
BASELINE_MARKET_POSITION = 50
DEFAULT_QUALITY = 80
DEFAULT_SATISFACTION = 70
DEFAULT_RISK_PROBABILITY = 0.3
DEFAULT_RISK_IMPACT = 0.3
TECHNICAL_RISK = 0.3
MARKET_RISK = 0.25


class OptionScorer:
    """
    Scores decision options on a 0-100 composite scale.

    Categories:
    - financial: ROI and NPV sign over the cash-flow horizon
    - operational: process efficiency after the option's efficiency gain
    - strategic: average of market position and customer satisfaction
    - risk: inverse of the option's expected risk (probability x impact)
    """

    def __init__(
        self,
        heuristics: Optional[Heuristics] = None,
        calculator: Optional[NPVCalculator] = None
    ):
        self.heuristics = heuristics or get_heuristics()
        self.calculator = calculator or NPVCalculator(self.heuristics)
        unknown = set(self.heuristics.score_weights) - set(SCORE_CATEGORIES)
        if unknown:
            logger.warning(f"Ignoring weights for unknown score categories: {sorted(unknown)}")

    def score_financial(self, option: DecisionOption) -> FinancialImpact:
        """
        Args:
            option: Decision option

        Returns:
            FinancialImpact over the configured cash-flow horizon
        """
        metrics = self.calculator.calculate_option_metrics(
            upfront=option.costs.upfront,
            ongoing=option.costs.ongoing,
            revenue=option.benefits.revenue or 0.0
        )
        return FinancialImpact(
            cost=metrics['cost'],
            revenue=metrics['revenue'],
            roi=metrics['roi'],
            payback_period=metrics['payback_period'],
            npv=metrics['npv'],
            irr=metrics['irr'],
            irr_converged=metrics['irr_converged']
        )

    def score_operational(self, option: DecisionOption, snapshot: BusinessSnapshot) -> OperationalImpact:
        baseline = BASELINE_EFFICIENCY
        if snapshot.processes and snapshot.processes[0].efficiency:
            baseline = snapshot.processes[0].efficiency
        gain = option.benefits.efficiency or 0.0

        return OperationalImpact(
            efficiency=baseline + gain,
            capacity=100 + gain * 0.5,
            quality=option.benefits.quality or DEFAULT_QUALITY,
            time_to_market=option.time_to_implement
        )

    def score_strategic(self, option: DecisionOption) -> StrategicImpact:
        satisfaction = option.benefits.satisfaction or DEFAULT_SATISFACTION
        return StrategicImpact(
            market_position=BASELINE_MARKET_POSITION + (10 if option.benefits.revenue else 0),
            competitive_advantage=65 if option.benefits.efficiency else 50,
            customer_satisfaction=satisfaction,
            brand_value=satisfaction * 0.8
        )

    def score_risk(self, option: DecisionOption) -> RiskProfile:
        """
        Expected risk from the option's declared risks.

        Options without declared risks are assumed to carry a moderate
        0.3 probability / 0.3 impact.
        """
        if option.risks:
            probability = sum(r.probability for r in option.risks) / len(option.risks)
            impact = sum(r.impact for r in option.risks) / len(option.risks)
        else:
            probability = DEFAULT_RISK_PROBABILITY
            impact = DEFAULT_RISK_IMPACT

        return RiskProfile(
            overall=probability * impact,
            technical=TECHNICAL_RISK,
            market=MARKET_RISK,
            execution=probability,
            financial=impact
        )

    def calculate_composite_score(
        self,
        financial: FinancialImpact,
        operational: OperationalImpact,
        strategic: StrategicImpact,
        risk: RiskProfile
    ) -> float:
        """Weighted composite of the four category scores"""
        weights = self.heuristics.score_weights

        category_scores = {
            'financial': (financial.roi * 0.3 + (0.3 if financial.npv > 0 else 0.0)) * 100,
            'operational': operational.efficiency,
            'strategic': (strategic.market_position + strategic.customer_satisfaction) / 2,
            'risk': (1 - risk.overall) * 100
        }
        return sum(category_scores[name] * weights.get(name, 0.0) for name in SCORE_CATEGORIES)

    def analyze_option(self, option: DecisionOption, snapshot: BusinessSnapshot) -> DecisionOptionAnalysis:
        financial = self.score_financial(option)
        operational = self.score_operational(option, snapshot)
        strategic = self.score_strategic(option)
        risk = self.score_risk(option)

        return DecisionOptionAnalysis(
            id=option.id,
            name=option.name,
            financial_impact=financial,
            operational_impact=operational,
            strategic_impact=strategic,
            risk_profile=risk,
            score=self.calculate_composite_score(financial, operational, strategic, risk)
        )

    @staticmethod
    def rank_options(analyses: List[DecisionOptionAnalysis]) -> List[DecisionOptionAnalysis]:
        """Sort by descending score (input order kept on ties) and assign 1-based rankings"""
        ranked = sorted(analyses, key=lambda a: a.score, reverse=True)
        for i, analysis in enumerate(ranked):
            analysis.ranking = i + 1
        return ranked

    def analyze_options(self, decision: Decision, snapshot: BusinessSnapshot) -> List[DecisionOptionAnalysis]:
        """
        Score and rank every option of a decision.

        Args:
            decision: Validated decision
            snapshot: Business snapshot used for operational baselines

        Returns:
            Options ordered best first
        """
        ranked = self.rank_options([self.analyze_option(o, snapshot) for o in decision.options])
        if ranked:
            logger.info(
                f"Scored {len(ranked)} options for '{decision.name}': "
                f"top {ranked[0].name} ({ranked[0].score:.1f})"
            )
        return ranked


# Convenience function
def score_decision_options(decision: Decision, snapshot: BusinessSnapshot) -> List[DecisionOptionAnalysis]:
    """Quick option ranking with default heuristics"""
    scorer = OptionScorer()
    return scorer.analyze_options(decision, snapshot)
