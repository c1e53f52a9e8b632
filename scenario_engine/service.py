"""
Scenario lifecycle orchestration.

Owns the draft -> ready -> running -> completed | failed transitions,
resolves the business snapshot for a tenant, delegates the run to the
pure ScenarioSimulator and persists only fully assembled results.
"""
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from scenario_engine.exceptions import (
    InvalidStatusTransition,
    ScenarioNotFoundError,
    SnapshotNotFoundError,
)
from scenario_engine.models import (
    Assumption,
    BusinessSnapshot,
    Constraint,
    ConstraintType,
    Decision,
    Objective,
    Scenario,
    ScenarioStatus,
    ScenarioType,
    parse_scenario,
    parse_snapshot,
)
from scenario_engine.repository import ScenarioRepository
from scenario_engine.results import SimulationResult
from scenario_engine.simulator import ScenarioSimulator
from utils.logger import setup_logger

logger = setup_logger(__name__)

# Allowed lifecycle transitions
TRANSITIONS = {
    ScenarioStatus.DRAFT: {ScenarioStatus.READY},
    ScenarioStatus.READY: {ScenarioStatus.RUNNING, ScenarioStatus.READY},
    ScenarioStatus.RUNNING: {ScenarioStatus.COMPLETED, ScenarioStatus.FAILED},
    ScenarioStatus.COMPLETED: {ScenarioStatus.RUNNING, ScenarioStatus.READY},
    ScenarioStatus.FAILED: {ScenarioStatus.RUNNING, ScenarioStatus.READY},
}

# Headroom over current totals for the generated default constraints
DEFAULT_BUDGET_HEADROOM = 1.2
DEFAULT_HEADCOUNT_HEADROOM = 1.5

SnapshotProvider = Callable[[str], Optional[Union[BusinessSnapshot, Mapping[str, Any]]]]


def is_populated(scenario: Scenario) -> bool:
    """A scenario has something to simulate once it holds a decision or an assumption"""
    return bool(scenario.decisions or scenario.assumptions)


def generate_default_constraints(snapshot: BusinessSnapshot) -> List[Constraint]:
    """
    Budget and headcount limits derived from the organisational structure.

    The budget limit is hard; the headcount limit is advisory.
    """
    return [
        Constraint(
            id='constraint-budget',
            type=ConstraintType.BUDGET,
            description='Maximum available budget',
            limit=snapshot.total_budget * DEFAULT_BUDGET_HEADROOM,
            unit='USD',
            hard=True
        ),
        Constraint(
            id='constraint-headcount',
            type=ConstraintType.RESOURCE,
            description='Maximum headcount',
            limit=snapshot.total_headcount * DEFAULT_HEADCOUNT_HEADROOM,
            unit='people',
            hard=False
        )
    ]


class ScenarioService:
    """
    Entry point for callers that manage scenarios over time.

    The simulator stays a pure function of (scenario, snapshot); this class
    adds identity, status and persistence around it.
    """

    def __init__(
        self,
        snapshot_provider: Optional[SnapshotProvider] = None,
        repository: Optional[ScenarioRepository] = None,
        simulator: Optional[ScenarioSimulator] = None
    ):
        """
        Args:
            snapshot_provider: Returns the business snapshot for a tenant id
                (None when the tenant has no snapshot yet)
            repository: Scenario repository (in-memory when omitted)
            simulator: Simulator used for runs (default heuristics when omitted)
        """
        self.snapshot_provider = snapshot_provider
        self.repository = repository or ScenarioRepository()
        self.simulator = simulator or ScenarioSimulator()

    # --- Creation ---

    def create_scenario(
        self,
        tenant_id: str,
        user_id: str,
        name: str,
        description: str = '',
        scenario_type: Union[ScenarioType, str] = ScenarioType.STRATEGIC,
        time_horizon: float = 12
    ) -> Scenario:
        """Create an empty draft scenario"""
        logger.info(f"Creating scenario: {name} for tenant: {tenant_id}")
        scenario = Scenario(
            tenant_id=tenant_id,
            name=name,
            description=description,
            type=scenario_type,
            time_horizon=time_horizon,
            created_by=user_id,
            decisions=[],
            assumptions=[],
            constraints=[],
            objectives=[]
        )
        self.repository.save(scenario)
        return scenario

    def load_scenario(
        self,
        payload: Union[Scenario, Mapping[str, Any]],
        with_default_constraints: bool = True
    ) -> Scenario:
        """
        Register an externally authored scenario as ready.

        When the payload carries no constraints and the tenant has a
        snapshot, default budget/headcount constraints are generated.

        Raises:
            ScenarioValidationError: Payload does not match the schema
        """
        scenario = parse_scenario(payload)
        if with_default_constraints and not scenario.constraints:
            snapshot = self._resolve_snapshot(scenario.tenant_id)
            if snapshot is not None:
                scenario.constraints = generate_default_constraints(snapshot)

        scenario.status = ScenarioStatus.READY
        self.repository.save(scenario)
        logger.info(
            f"Loaded scenario '{scenario.name}' with {len(scenario.decisions)} decisions, "
            f"{len(scenario.assumptions)} assumptions, {len(scenario.constraints)} constraints"
        )
        return scenario

    # --- Editing ---

    def add_decision(self, scenario_id: str, decision: Union[Decision, Mapping[str, Any]]) -> Scenario:
        return self._append(scenario_id, 'decisions', Decision, decision, 'decision')

    def add_assumption(self, scenario_id: str, assumption: Union[Assumption, Mapping[str, Any]]) -> Scenario:
        return self._append(scenario_id, 'assumptions', Assumption, assumption, 'assumption')

    def add_constraint(self, scenario_id: str, constraint: Union[Constraint, Mapping[str, Any]]) -> Scenario:
        return self._append(scenario_id, 'constraints', Constraint, constraint, 'constraint')

    def add_objective(self, scenario_id: str, objective: Union[Objective, Mapping[str, Any]]) -> Scenario:
        return self._append(scenario_id, 'objectives', Objective, objective, 'objective')

    def _append(self, scenario_id, collection, model, item, prefix) -> Scenario:
        """
        Add one item and re-validate the scenario.

        A draft becomes ready once it has a decision or assumption. Editing a
        completed or failed scenario drops its result and makes it ready again.
        """
        scenario = self.get_scenario(scenario_id)
        if scenario.status == ScenarioStatus.RUNNING:
            raise InvalidStatusTransition(f"Scenario {scenario_id} is running and cannot be edited")

        items = list(getattr(scenario, collection))
        items.append(item)
        # Re-validate the whole scenario so ids and cross-checks stay consistent
        data = scenario.model_dump()
        data[collection] = [i.model_dump() if isinstance(i, model) else dict(i) for i in items]
        updated = parse_scenario(data)

        if updated.status in (ScenarioStatus.COMPLETED, ScenarioStatus.FAILED):
            self._transition(updated, ScenarioStatus.READY)
        else:
            updated.simulation = scenario.simulation
            if updated.status == ScenarioStatus.DRAFT and is_populated(updated):
                self._transition(updated, ScenarioStatus.READY)

        logger.debug(f"Added {prefix} to scenario {scenario_id} ({updated.status.value})")
        self.repository.save(updated)
        return updated

    def mark_ready(self, scenario_id: str) -> Scenario:
        """
        Raises:
            InvalidStatusTransition: Scenario has no decisions or assumptions
        """
        scenario = self.get_scenario(scenario_id)
        if not is_populated(scenario):
            raise InvalidStatusTransition(
                f"Scenario {scenario_id} needs at least one decision or assumption before it is ready"
            )
        self._transition(scenario, ScenarioStatus.READY)
        self.repository.save(scenario)
        return scenario

    # --- Running ---

    def run_simulation(
        self,
        scenario_id: str,
        iterations: Optional[int] = None,
        monte_carlo: bool = True,
        seed: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> SimulationResult:
        """
        Simulate a stored scenario and attach the result to it.

        Raises:
            ScenarioNotFoundError: Unknown scenario id
            SnapshotNotFoundError: Tenant has no business snapshot
            InvalidStatusTransition: Scenario is still a draft or already running
        """
        scenario = self.get_scenario(scenario_id)
        snapshot = self._resolve_snapshot(scenario.tenant_id)
        if snapshot is None:
            raise SnapshotNotFoundError(f"Business snapshot not found for tenant '{scenario.tenant_id}'")

        self._transition(scenario, ScenarioStatus.RUNNING)
        logger.info(f"Running simulation for scenario: {scenario.name}")

        try:
            result = self.simulator.run(
                scenario, snapshot,
                iterations=iterations,
                monte_carlo=monte_carlo,
                seed=seed,
                cancel_event=cancel_event
            )
        except Exception:
            self._transition(scenario, ScenarioStatus.FAILED)
            self.repository.save(scenario)
            raise

        scenario.simulation = result
        self._transition(scenario, ScenarioStatus.COMPLETED)
        self.repository.save(scenario)
        self.repository.save_simulation(result)
        return result

    # --- Lookup ---

    def get_scenario(self, scenario_id: str) -> Scenario:
        scenario = self.repository.get(scenario_id)
        if scenario is None:
            raise ScenarioNotFoundError(f"Scenario not found: {scenario_id}")
        return scenario

    def list_scenarios(self, tenant_id: str) -> List[Scenario]:
        return self.repository.list(tenant_id)

    # --- Helpers ---

    def _resolve_snapshot(self, tenant_id: str) -> Optional[BusinessSnapshot]:
        if self.snapshot_provider is None:
            return None
        snapshot = self.snapshot_provider(tenant_id)
        return None if snapshot is None else parse_snapshot(snapshot)

    @staticmethod
    def _transition(scenario: Scenario, status: ScenarioStatus):
        if status not in TRANSITIONS[scenario.status]:
            raise InvalidStatusTransition(
                f"Scenario {scenario.id} cannot move from {scenario.status.value} to {status.value}"
            )
        scenario.status = status


def snapshots_by_tenant(snapshots: Dict[str, Union[BusinessSnapshot, Mapping[str, Any]]]) -> SnapshotProvider:
    """Snapshot provider backed by a tenant_id -> snapshot mapping"""
    return snapshots.get
