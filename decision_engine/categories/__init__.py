"""
Impact areas, score categories and recommendation priorities for decision analysis.

Category weights live in Heuristics.score_weights (decision.score_weights in config).
"""

IMPACT_AREAS = [
    'financial',
    'operational',
    'strategic',
    'human',
    'technical',
    'customer'
]

SCORE_CATEGORIES = [
    'financial',
    'operational',
    'strategic',
    'risk'
]

# Recommendation priority by top-option score
PRIORITY_THRESHOLDS = [
    (75, 'critical'),
    (50, 'high')
]
DEFAULT_PRIORITY = 'medium'


def priority_for_score(score: float) -> str:
    """Map a composite option score (0-100 scale) to a recommendation priority"""
    for threshold, priority in PRIORITY_THRESHOLDS:
        if score > threshold:
            return priority
    return DEFAULT_PRIORITY
