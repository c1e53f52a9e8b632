"""
Shared builders for the test suite.

Payloads use the camelCase interchange keys, the same shape external
collaborators send.
"""
import copy
from datetime import datetime
from typing import Any, Dict

from scenario_engine.heuristics import Heuristics

BASE_SNAPSHOT: Dict[str, Any] = {
    'id': 'twin-1',
    'tenantId': 'tenant-1',
    'name': 'Acme Ltd',
    'metrics': {
        'revenue': 1000.0,
        'cost': 800.0,
        'efficiency': 70.0,
        'x': 5.0
    },
    'departments': [
        {'id': 'd1', 'name': 'Sales', 'type': 'sales', 'headcount': 20, 'budget': 500000},
        {'id': 'd2', 'name': 'Operations', 'type': 'operations', 'headcount': 30, 'budget': 300000}
    ],
    'processes': [
        {'id': 'p1', 'name': 'Order to cash', 'department': 'd1', 'efficiency': 75}
    ],
    'health': 80,
    'risks': [{'id': 'r1', 'name': 'Churn', 'probability': 0.2, 'impact': 0.4}],
    'opportunities': [{'id': 'o1', 'name': 'Upsell', 'probability': 0.5, 'value': 10000}],
    'historical': [],
    'capabilities': {'operations': [], 'strategic': []}
}


def make_heuristics(**overrides) -> Heuristics:
    """Built-in defaults, independent of config/simulation.yaml"""
    return Heuristics().with_overrides(**overrides)


def make_snapshot(**overrides) -> Dict[str, Any]:
    snapshot = copy.deepcopy(BASE_SNAPSHOT)
    snapshot['updatedAt'] = datetime.now().isoformat()
    snapshot.update(overrides)
    return snapshot


def make_decision(**overrides) -> Dict[str, Any]:
    decision = {
        'id': 'decision-1',
        'name': 'Pick a vendor',
        'category': 'operational',
        'description': 'Choose the implementation vendor',
        'options': [
            {
                'id': 'A',
                'name': 'A',
                'costs': {'upfront': 1000, 'ongoing': 0},
                'benefits': {'revenue': 2000}
            },
            {
                'id': 'B',
                'name': 'B',
                'costs': {'upfront': 500, 'ongoing': 0},
                'benefits': {'revenue': 800}
            }
        ],
        'timing': {},
        'resources': {}
    }
    decision.update(overrides)
    return decision


def make_scenario(**overrides) -> Dict[str, Any]:
    """One decision (A/B), one uniform assumption on x, one revenue objective"""
    scenario = {
        'id': 'scenario-test',
        'tenantId': 'tenant-1',
        'name': 'Vendor selection',
        'description': 'Which vendor grows revenue',
        'type': 'strategic',
        'timeHorizon': 12,
        'createdBy': 'user-1',
        'decisions': [make_decision()],
        'assumptions': [
            {
                'id': 'assumption-x',
                'category': 'market',
                'description': 'Market driver',
                'variable': 'x',
                'baseValue': 5,
                'unit': 'pts',
                'uncertainty': {'distribution': 'uniform', 'parameters': {'min': 0, 'max': 10}},
                'confidence': 0.6
            }
        ],
        'constraints': [],
        'objectives': [
            {'id': 'objective-revenue', 'name': 'Revenue', 'metric': 'revenue', 'target': 1500, 'weight': 1}
        ]
    }
    scenario.update(overrides)
    return scenario


def make_outcome(iteration, metrics, feasible=True, optimality=0.5, assumptions=None, decisions=None):
    """A SimulationOutcome with a trivial projected state"""
    from scenario_engine.results import BusinessState, SimulationOutcome

    return SimulationOutcome(
        iteration=iteration,
        decisions=dict(decisions or {}),
        assumptions=dict(assumptions or {}),
        projected_state=BusinessState(timestamp=datetime(2025, 1, 1), metrics=dict(metrics), health=80.0),
        metrics=dict(metrics),
        objectives={},
        feasible=feasible,
        optimality=optimality
    )
