"""
Monte Carlo scenario simulation engine
"""
import copy
import logging
import threading
import uuid
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np

from scenario_engine.distributions import DistributionSampler, make_rng, new_seed
from scenario_engine.exceptions import SimulationCancelled, SimulationError, SnapshotNotFoundError
from scenario_engine.heuristics import Heuristics, get_heuristics
from scenario_engine.models import (
    BusinessSnapshot,
    Scenario,
    clamp_unit,
    parse_scenario,
    parse_snapshot,
)
from scenario_engine.results import (
    BusinessState,
    SimulationInsight,
    SimulationOutcome,
    SimulationResult,
    SimulationStatistics,
    StrategicRecommendation,
    SupportingData,
)
from scenario_engine.sensitivity import (
    MonteCarloAnalyzer,
    SensitivityAnalyzer,
    calculate_convergence,
)
from scenario_engine.statistics import StatisticsAggregator
from utils.logger import LogContext, setup_logger

logger = setup_logger(__name__)

# Stream identifiers for seeding the two sampling passes
MAIN_PASS = 0
MONTE_CARLO_PASS = 1
PASS_NAMES = {MAIN_PASS: 'main pass', MONTE_CARLO_PASS: 'Monte Carlo pass'}

DAYS_PER_MONTH = 30


class ScenarioSimulator:
    """
    Monte Carlo simulator for business scenarios.

    Each run:
    - Samples one option per decision (pre-selected option wins)
    - Samples every assumption from its distribution
    - Applies the samples to a private copy of the snapshot metrics
    - Projects metrics forward with compounding growth over the horizon
    - Scores objectives, hard-constraint feasibility and optimality

    The scenario and snapshot are never mutated; lifecycle and persistence
    belong to ScenarioService.
    """

    def __init__(self, heuristics: Optional[Heuristics] = None, workers: Optional[int] = None):
        """
        Initialize the simulator.

        Args:
            heuristics: Engine heuristics (config defaults when omitted)
            workers: Parallel iteration workers (1 = run inline)
        """
        self.heuristics = heuristics or get_heuristics()
        self.workers = max(1, workers if workers is not None else self.heuristics.workers)
        self.aggregator = StatisticsAggregator(self.heuristics)
        self.sensitivity_analyzer = SensitivityAnalyzer()
        self.monte_carlo_analyzer = MonteCarloAnalyzer(self.heuristics)

    def run(
        self,
        scenario: Union[Scenario, Mapping[str, Any]],
        snapshot: Union[BusinessSnapshot, Mapping[str, Any], None],
        iterations: Optional[int] = None,
        monte_carlo: bool = True,
        seed: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> SimulationResult:
        """
        Simulate a scenario.

        Args:
            scenario: Scenario model or payload (validated before sampling)
            snapshot: Business snapshot the scenario runs against
            iterations: Main-pass iterations (config default when omitted)
            monte_carlo: Also run the dedicated Monte Carlo risk pass
            seed: Run seed; a fresh one is drawn and recorded when omitted
            cancel_event: Checked between iterations; set it to abort the run

        Returns:
            SimulationResult

        Raises:
            ScenarioValidationError: Malformed scenario payload
            SnapshotNotFoundError: No snapshot supplied
            SimulationCancelled: cancel_event was set mid-run
        """
        scenario = parse_scenario(scenario)
        if snapshot is None:
            raise SnapshotNotFoundError(f"No business snapshot for scenario '{scenario.name}'")
        snapshot = parse_snapshot(snapshot)

        iterations = self.heuristics.default_iterations if iterations is None else iterations
        if iterations < 0:
            raise ValueError(f"iterations must be non-negative, got {iterations}")
        if seed is None:
            seed = new_seed()

        started_at = datetime.now()
        with LogContext(logger, f"simulation of '{scenario.name}' ({iterations} iterations)"):
            outcomes = self.run_batch(scenario, snapshot, iterations, seed, MAIN_PASS, cancel_event)

            statistics = self.aggregator.summarize(outcomes)
            insights = self.extract_insights(outcomes)
            recommendations = self.generate_recommendations(scenario, statistics)
            sensitivity = self.sensitivity_analyzer.analyze(outcomes, scenario.assumptions)
            convergence = calculate_convergence(outcomes, self.heuristics.convergence_windows)

            monte_carlo_result = None
            if monte_carlo:
                mc_outcomes = self.run_batch(
                    scenario, snapshot, self.heuristics.monte_carlo_iterations,
                    seed, MONTE_CARLO_PASS, cancel_event
                )
                monte_carlo_result = self.monte_carlo_analyzer.build(mc_outcomes, seed)

        logger.info(
            f"Scenario '{scenario.name}': success rate {statistics.success_rate:.1%}, "
            f"average ROI {statistics.average_roi:.2f}, convergence {convergence:.3f}"
        )

        return SimulationResult(
            id=f"sim-{uuid.uuid4().hex[:12]}",
            scenario_id=scenario.id,
            started_at=started_at,
            completed_at=datetime.now(),
            iterations=iterations,
            convergence=convergence,
            outcomes=outcomes,
            statistics=statistics,
            insights=insights,
            recommendations=recommendations,
            sensitivity=sensitivity,
            monte_carlo=monte_carlo_result,
            seed=seed
        )

    # --- Iteration batches ---

    def run_batch(
        self,
        scenario: Scenario,
        snapshot: BusinessSnapshot,
        iterations: int,
        seed: int,
        stream: int = MAIN_PASS,
        cancel_event: Optional[threading.Event] = None
    ) -> List[SimulationOutcome]:
        """
        Run `iterations` independent iterations and return them ordered by index.

        Aggregation only starts after every iteration of the batch finished.
        """
        label = (
            f"{PASS_NAMES.get(stream, f'pass {stream}')} of '{scenario.name}' "
            f"({iterations} iterations, {self.workers} workers)"
        )
        with LogContext(logger, label, level=logging.DEBUG):
            if self.workers == 1 or iterations < 2:
                return [
                    self._run_one(scenario, snapshot, i, seed, stream, cancel_event)
                    for i in range(iterations)
                ]

            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                futures = [
                    pool.submit(self._run_one, scenario, snapshot, i, seed, stream, cancel_event)
                    for i in range(iterations)
                ]
                try:
                    outcomes = [f.result() for f in futures]
                except SimulationError:
                    for future in futures:
                        future.cancel()
                    raise

            outcomes.sort(key=lambda o: o.iteration)
            return outcomes

    def _run_one(self, scenario, snapshot, iteration, seed, stream, cancel_event) -> SimulationOutcome:
        if cancel_event is not None and cancel_event.is_set():
            raise SimulationCancelled(f"Simulation of '{scenario.name}' cancelled at iteration {iteration}")
        rng = make_rng(seed, (stream, iteration))
        return self.simulate_iteration(scenario, snapshot, iteration, rng)

    def simulate_iteration(
        self,
        scenario: Scenario,
        snapshot: BusinessSnapshot,
        iteration: int,
        rng: np.random.Generator
    ) -> SimulationOutcome:
        """Produce a single outcome from its own random Generator"""
        sampler = DistributionSampler(rng)

        decisions = self.sample_decisions(scenario, sampler)
        assumptions = self.sample_assumptions(scenario, sampler)

        metrics = self.apply_scenario(snapshot, scenario, decisions, assumptions)
        projected = self.project_state(snapshot, metrics, scenario.time_horizon)

        projected_metrics = dict(projected.metrics)
        objectives = self.evaluate_objectives(scenario, projected_metrics)
        feasible = self.check_feasibility(scenario, projected_metrics)
        optimality = self.calculate_optimality(scenario, objectives)

        logger.debug(f"Iteration {iteration}: feasible={feasible}, optimality={optimality:.3f}")

        return SimulationOutcome(
            iteration=iteration,
            decisions=decisions,
            assumptions=assumptions,
            projected_state=projected,
            metrics=projected_metrics,
            objectives=objectives,
            feasible=feasible,
            optimality=optimality
        )

    # --- Per-iteration steps ---

    @staticmethod
    def sample_decisions(scenario: Scenario, sampler: DistributionSampler) -> Dict[str, str]:
        decisions = {}
        for decision in scenario.decisions:
            if decision.selected_option:
                decisions[decision.id] = decision.selected_option
            elif decision.options:
                index = sampler.choose_index(len(decision.options))
                decisions[decision.id] = decision.options[index].id
        return decisions

    @staticmethod
    def sample_assumptions(scenario: Scenario, sampler: DistributionSampler) -> Dict[str, float]:
        # A variable declared twice keeps its last draw
        return {a.variable: sampler.sample(a) for a in scenario.assumptions}

    def apply_scenario(
        self,
        snapshot: BusinessSnapshot,
        scenario: Scenario,
        decisions: Dict[str, str],
        assumptions: Dict[str, float]
    ) -> Dict[str, float]:
        """
        Apply sampled values to a private copy of the snapshot metrics.

        Assumption variables that do not name an existing metric are ignored.
        """
        metrics = copy.deepcopy(dict(snapshot.metrics))

        for variable, value in assumptions.items():
            if variable in metrics:
                metrics[variable] = value

        if self.heuristics.apply_decision_effects:
            for decision in scenario.decisions:
                option = decision.get_option(decisions.get(decision.id, ''))
                if option is None:
                    continue
                metrics['revenue'] = metrics.get('revenue', 0.0) + (option.benefits.revenue or 0.0)
                metrics['cost'] = metrics.get('cost', 0.0) + option.costs.upfront + option.costs.ongoing
                if option.benefits.efficiency:
                    metrics['efficiency'] = metrics.get('efficiency', 0.0) + option.benefits.efficiency

        return metrics

    def project_state(
        self,
        snapshot: BusinessSnapshot,
        metrics: Dict[str, float],
        horizon_months: float
    ) -> BusinessState:
        """Compound every metric at the annual growth rate, pro-rata to the horizon"""
        growth = self.heuristics.annual_growth_rate
        years = horizon_months / 12
        factor = (1 + growth) ** years

        return BusinessState(
            timestamp=snapshot.updated_at + timedelta(days=horizon_months * DAYS_PER_MONTH),
            metrics={name: value * factor for name, value in metrics.items()},
            health=snapshot.health * (1 + growth * years),
            risks=[r.to_dict() for r in snapshot.risks],
            opportunities=[o.to_dict() for o in snapshot.opportunities]
        )

    @staticmethod
    def evaluate_objectives(scenario: Scenario, metrics: Dict[str, float]) -> Dict[str, float]:
        """Weighted achievement per objective id (achievement capped to [0, 1])"""
        scores = {}
        for objective in scenario.objectives:
            value = metrics.get(objective.metric, 0.0)
            target = objective.target

            if target == 0:
                met = value <= 0 if objective.minimize else value >= 0
                achievement = 1.0 if met else 0.0
            elif objective.minimize:
                achievement = max(0.0, 1 - value / target)
            else:
                achievement = min(1.0, value / target)

            scores[objective.id] = clamp_unit(achievement) * objective.weight
        return scores

    @staticmethod
    def check_feasibility(scenario: Scenario, metrics: Dict[str, float]) -> bool:
        """Only hard constraints can make an outcome infeasible"""
        for constraint in scenario.constraints:
            if not constraint.hard:
                continue
            if metrics.get(constraint.checked_metric, 0.0) > constraint.limit:
                return False
        return True

    @staticmethod
    def calculate_optimality(scenario: Scenario, objectives: Dict[str, float]) -> float:
        total_weight = scenario.total_objective_weight
        if total_weight <= 0:
            return 0.0
        return clamp_unit(sum(objectives.values()) / total_weight)

    # --- Batch-level derivations ---

    def extract_insights(self, outcomes: List[SimulationOutcome]) -> List[SimulationInsight]:
        h = self.heuristics
        insights = []
        n = len(outcomes)
        if n == 0:
            return insights

        successful = [o for o in outcomes if o.optimality > h.insight_optimality]
        if successful:
            counts = Counter(
                f"{decision_id}:{option_id}"
                for o in successful
                for decision_id, option_id in o.decisions.items()
            )
            threshold = len(successful) * h.common_decision_share
            common = [key for key, count in counts.items() if count > threshold]
            if common:
                insights.append(SimulationInsight(
                    type='opportunity',
                    title='Key Success Factors Identified',
                    description=(
                        f"Decisions {', '.join(common)} appear in over "
                        f"{h.common_decision_share:.0%} of successful outcomes "
                        f"({len(successful) / n:.0%} of all runs)"
                    ),
                    impact='high',
                    confidence=0.85,
                    evidence=common
                ))

        failed = [o for o in outcomes if not o.feasible]
        if len(failed) > n * h.failure_insight_share:
            insights.append(SimulationInsight(
                type='risk',
                title='High Failure Rate Detected',
                description=f"{len(failed) / n:.0%} of simulations resulted in infeasible outcomes",
                impact='high',
                confidence=0.9,
                evidence=['Constraint violations detected']
            ))

        return insights

    def generate_recommendations(
        self,
        scenario: Scenario,
        statistics: SimulationStatistics
    ) -> List[StrategicRecommendation]:
        recommendations = []

        if statistics.success_rate > self.heuristics.proceed_success_rate:
            recommendations.append(StrategicRecommendation(
                id='rec-1',
                priority=1,
                title='Proceed with Implementation',
                description=f"Scenario shows {statistics.success_rate:.0%} probability of success",
                actions=['Finalize decision selection', 'Allocate resources', 'Begin phased implementation'],
                expected_outcome=f"Average ROI of {statistics.average_roi:.0%}",
                required_resources=['Budget approval', 'Team allocation'],
                timeline=f"{scenario.time_horizon:g} months",
                supporting_data=[
                    SupportingData(metric='Success Rate', improvement=statistics.success_rate, confidence=0.85),
                    SupportingData(metric='Average ROI', improvement=statistics.average_roi, confidence=0.75)
                ]
            ))

        return recommendations


# Convenience function
def run_simulation(
    scenario: Union[Scenario, Mapping[str, Any]],
    snapshot: Union[BusinessSnapshot, Mapping[str, Any], None],
    iterations: int = 100,
    monte_carlo: bool = True,
    seed: Optional[int] = None,
    workers: Optional[int] = None
) -> SimulationResult:
    """Quick simulation run with default heuristics"""
    simulator = ScenarioSimulator(workers=workers)
    return simulator.run(scenario, snapshot, iterations=iterations, monte_carlo=monte_carlo, seed=seed)
