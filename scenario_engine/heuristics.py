"""
Named, overridable heuristics for the simulation and decision engines.

Defaults reproduce the constants the engines have always used; values in
config/simulation.yaml override them, and explicit overrides win over both.
"""
import copy
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from utils.config_loader import load_yaml_config
from utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_SCORE_WEIGHTS = {
    'financial': 0.35,
    'operational': 0.25,
    'strategic': 0.25,
    'risk': 0.15
}

DEFAULT_WHAT_IF_SCENARIOS: List[Dict[str, Any]] = [
    {
        'scenario': 'Market Expansion',
        'condition': 'Market grows by 20%',
        'impacts': {
            'best': [
                {'area': 'financial', 'metric': 'Revenue', 'baseline': 100000, 'projected': 150000, 'confidence': 0.8},
                {'area': 'strategic', 'metric': 'Market Share', 'baseline': 10, 'projected': 15, 'confidence': 0.7}
            ],
            'likely': [
                {'area': 'financial', 'metric': 'Revenue', 'baseline': 100000, 'projected': 130000, 'confidence': 0.85},
                {'area': 'strategic', 'metric': 'Market Share', 'baseline': 10, 'projected': 12, 'confidence': 0.75}
            ],
            'worst': [
                {'area': 'financial', 'metric': 'Revenue', 'baseline': 100000, 'projected': 110000, 'confidence': 0.9},
                {'area': 'strategic', 'metric': 'Market Share', 'baseline': 10, 'projected': 10.5, 'confidence': 0.8}
            ]
        },
        'probability': {'best': 0.2, 'likely': 0.6, 'worst': 0.2},
        'recommendations': [
            'Prepare for rapid scaling',
            'Secure additional resources',
            'Monitor market indicators closely'
        ]
    },
    {
        'scenario': 'Economic Downturn',
        'condition': 'Recession impacts demand',
        'impacts': {
            'best': [
                {'area': 'financial', 'metric': 'Revenue', 'baseline': 100000, 'projected': 90000, 'confidence': 0.75},
                {'area': 'operational', 'metric': 'Efficiency', 'baseline': 70, 'projected': 75, 'confidence': 0.8}
            ],
            'likely': [
                {'area': 'financial', 'metric': 'Revenue', 'baseline': 100000, 'projected': 80000, 'confidence': 0.8},
                {'area': 'operational', 'metric': 'Efficiency', 'baseline': 70, 'projected': 72, 'confidence': 0.85}
            ],
            'worst': [
                {'area': 'financial', 'metric': 'Revenue', 'baseline': 100000, 'projected': 60000, 'confidence': 0.7},
                {'area': 'operational', 'metric': 'Efficiency', 'baseline': 70, 'projected': 65, 'confidence': 0.75}
            ]
        },
        'probability': {'best': 0.3, 'likely': 0.5, 'worst': 0.2},
        'recommendations': [
            'Build cash reserves',
            'Focus on efficiency improvements',
            'Diversify revenue streams'
        ]
    }
]

# YAML section each field is read from
_SECTIONS = ('simulation', 'financial', 'decision')


@dataclass
class Heuristics:
    # Simulation
    annual_growth_rate: float = 0.05
    default_iterations: int = 100
    monte_carlo_iterations: int = 1000
    histogram_bins: int = 20
    var_confidence: float = 0.95
    success_optimality: float = 0.7
    proceed_success_rate: float = 0.7
    insight_optimality: float = 0.8
    common_decision_share: float = 0.7
    failure_insight_share: float = 0.2
    convergence_windows: int = 10
    workers: int = 1
    apply_decision_effects: bool = False

    # Financial
    discount_rate: float = 0.10
    cash_flow_years: int = 5
    irr_initial_rate: float = 0.1
    irr_max_iterations: int = 100
    irr_tolerance: float = 1e-5

    # Decision impact
    score_weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_SCORE_WEIGHTS))
    short_term_revenue_uplift: float = 0.10
    long_term_market_share_baseline: float = 10
    long_term_market_share_gain: float = 2
    default_available_budget: float = 1_000_000
    default_time_horizon_days: float = 365
    default_required_time_days: float = 90
    what_if_scenarios: List[Dict[str, Any]] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_WHAT_IF_SCENARIOS)
    )

    @classmethod
    def from_config(
        cls,
        overrides: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None
    ) -> 'Heuristics':
        """
        Build heuristics from the YAML config plus explicit overrides.

        Args:
            overrides: Flat mapping of field name -> value, applied last
            config: Pre-loaded config mapping (loads config/simulation.yaml when omitted)

        Returns:
            Heuristics instance
        """
        if config is None:
            config = load_yaml_config('simulation')

        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}

        for section in _SECTIONS:
            for key, value in (config.get(section) or {}).items():
                if key in known:
                    values[key] = value
                else:
                    logger.warning(f"Ignoring unknown heuristic '{section}.{key}'")

        if config.get('what_if_scenarios'):
            values['what_if_scenarios'] = config['what_if_scenarios']

        for key, value in (overrides or {}).items():
            if key not in known:
                raise KeyError(f"Unknown heuristic: {key}")
            values[key] = value

        heuristics = cls(**values)
        heuristics._normalize_weights()
        return heuristics

    def _normalize_weights(self):
        merged = dict(DEFAULT_SCORE_WEIGHTS)
        merged.update(self.score_weights or {})
        total = sum(merged.values())
        if total > 0 and abs(total - 1.0) > 0.01:
            logger.warning(f"Score weights sum to {total}, normalizing")
            merged = {k: v / total for k, v in merged.items()}
        self.score_weights = merged

    def with_overrides(self, **changes) -> 'Heuristics':
        """Return a copy with some fields replaced"""
        clone = copy.deepcopy(self)
        for key, value in changes.items():
            if not hasattr(clone, key):
                raise KeyError(f"Unknown heuristic: {key}")
            setattr(clone, key, value)
        return clone


_default: Optional[Heuristics] = None


def get_heuristics() -> Heuristics:
    """Get or create the process-wide default heuristics (read from config once)"""
    global _default
    if _default is None:
        _default = Heuristics.from_config()
    return _default
