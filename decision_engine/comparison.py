"""
Side-by-side comparison of several decisions against one snapshot
"""
from typing import Any, List, Mapping, Optional, Union

from decision_engine.impact_analyzer import DecisionImpactAnalyzer
from decision_engine.results import ComparisonMatrix, DecisionComparison, DecisionImpactAnalysis
from scenario_engine.models import BusinessSnapshot, Decision
from utils.logger import setup_logger

logger = setup_logger(__name__)

CRITERIA = ['ROI', 'Risk', 'Timeline', 'Strategic Value', 'Feasibility']

# Risk assumed for a decision without any scored option
UNSCORED_RISK = 0.5


def build_comparison_matrix(analyses: List[DecisionImpactAnalysis]) -> ComparisonMatrix:
    """
    One row of criteria scores per decision, taken from its top option.

    Timeline is 100 / days to implement (0 when unknown); Feasibility is
    the analysis' overall confidence.
    """
    matrix = ComparisonMatrix(criteria=list(CRITERIA))

    for analysis in analyses:
        top = analysis.decision.top_option
        if top is None:
            row = [0.0, 1 - UNSCORED_RISK, 0.0, 0.0, analysis.confidence.overall]
        else:
            time_to_market = top.operational_impact.time_to_market
            row = [
                top.financial_impact.roi,
                1 - top.risk_profile.overall,
                100 / time_to_market if time_to_market else 0.0,
                top.strategic_impact.market_position,
                analysis.confidence.overall
            ]
        matrix.scores[analysis.decision_id] = row

    return matrix


def determine_winner(analyses: List[DecisionImpactAnalysis]) -> str:
    """Decision id whose top option scores highest ('' when nothing scores above 0)"""
    best_score = 0.0
    winner = ''
    for analysis in analyses:
        top = analysis.decision.top_option
        score = top.score if top is not None else 0.0
        if score > best_score:
            best_score = score
            winner = analysis.decision_id
    return winner


def comparison_insights(analyses: List[DecisionImpactAnalysis]) -> List[str]:
    insights = []

    scored = [(a, a.decision.top_option) for a in analyses if a.decision.top_option is not None]

    best_roi = max(scored, key=lambda p: p[1].financial_impact.roi, default=None)
    if best_roi is not None and best_roi[1].financial_impact.roi > 0:
        insights.append(
            f"{best_roi[0].decision.name} offers the highest ROI at "
            f"{best_roi[1].financial_impact.roi:.0%}"
        )

    lowest_risk = min(scored, key=lambda p: p[1].risk_profile.overall, default=None)
    if lowest_risk is not None and lowest_risk[1].risk_profile.overall < 1:
        insights.append(f"{lowest_risk[0].decision.name} has the lowest risk profile")

    return insights


def compare_decisions(
    snapshot: Union[BusinessSnapshot, Mapping[str, Any]],
    decisions: List[Union[Decision, Mapping[str, Any]]],
    analyzer: Optional[DecisionImpactAnalyzer] = None
) -> DecisionComparison:
    """
    Analyse every decision and compare their top options.

    Args:
        snapshot: Business snapshot shared by all decisions
        decisions: Decision models or payloads
        analyzer: Analyzer to use (default heuristics when omitted)

    Returns:
        DecisionComparison with the analyses, matrix, winner and insights
    """
    analyzer = analyzer or DecisionImpactAnalyzer()
    analyses = [analyzer.analyze_decision_impact(snapshot, d) for d in decisions]

    comparison = DecisionComparison(
        decisions=analyses,
        winner=determine_winner(analyses),
        matrix=build_comparison_matrix(analyses),
        insights=comparison_insights(analyses)
    )
    logger.info(f"Compared {len(analyses)} decisions, winner: {comparison.winner or 'none'}")
    return comparison
