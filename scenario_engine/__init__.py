"""
Scenario Engine Module
Monte Carlo scenario simulation, statistics and sensitivity analysis
"""
from scenario_engine.distributions import DistributionSampler, sample_assumption
from scenario_engine.exceptions import (
    DecisionValidationError,
    InvalidStatusTransition,
    ScenarioNotFoundError,
    ScenarioValidationError,
    SimulationCancelled,
    SimulationError,
    SnapshotNotFoundError,
    ValidationError,
)
from scenario_engine.heuristics import Heuristics, get_heuristics
from scenario_engine.models import (
    Assumption,
    BusinessSnapshot,
    Constraint,
    Decision,
    DecisionOption,
    Objective,
    Scenario,
    ScenarioStatus,
    parse_decision,
    parse_scenario,
    parse_snapshot,
)
from scenario_engine.repository import (
    InMemoryScenarioStore,
    JsonFileScenarioStore,
    ScenarioRepository,
    ScenarioStore,
)
from scenario_engine.results import SimulationOutcome, SimulationResult, SimulationStatistics
from scenario_engine.sensitivity import MonteCarloAnalyzer, SensitivityAnalyzer, calculate_convergence
from scenario_engine.service import ScenarioService, generate_default_constraints
from scenario_engine.simulator import ScenarioSimulator, run_simulation
from scenario_engine.statistics import StatisticsAggregator

__all__ = [
    'DistributionSampler',
    'sample_assumption',
    'SimulationError',
    'ValidationError',
    'ScenarioValidationError',
    'DecisionValidationError',
    'SnapshotNotFoundError',
    'ScenarioNotFoundError',
    'InvalidStatusTransition',
    'SimulationCancelled',
    'Heuristics',
    'get_heuristics',
    'Assumption',
    'BusinessSnapshot',
    'Constraint',
    'Decision',
    'DecisionOption',
    'Objective',
    'Scenario',
    'ScenarioStatus',
    'parse_decision',
    'parse_scenario',
    'parse_snapshot',
    'ScenarioStore',
    'InMemoryScenarioStore',
    'JsonFileScenarioStore',
    'ScenarioRepository',
    'SimulationOutcome',
    'SimulationResult',
    'SimulationStatistics',
    'StatisticsAggregator',
    'SensitivityAnalyzer',
    'MonteCarloAnalyzer',
    'calculate_convergence',
    'ScenarioSimulator',
    'run_simulation',
    'ScenarioService',
    'generate_default_constraints'
]
