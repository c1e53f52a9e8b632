"""
Decision Engine Module
Option scoring, decision impact analysis and decision comparison
"""
from decision_engine.comparison import compare_decisions
from decision_engine.impact_analyzer import AnalysisContext, DecisionImpactAnalyzer, analyze_decision_impact
from decision_engine.option_scorer import OptionScorer, score_decision_options
from decision_engine.recommendations import RecommendationBuilder, RecommendationDraft

__all__ = [
    'OptionScorer',
    'score_decision_options',
    'DecisionImpactAnalyzer',
    'AnalysisContext',
    'analyze_decision_impact',
    'RecommendationBuilder',
    'RecommendationDraft',
    'compare_decisions'
]
