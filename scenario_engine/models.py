"""
Input schemas: business snapshot, scenario, decisions, assumptions, constraints, objectives.

Payloads may use either snake_case or camelCase keys (``baseValue``,
``selectedOption``, ``timeToImplement`` ...), so scenarios authored by
external tools validate without translation.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from scenario_engine.exceptions import (
    DecisionValidationError,
    ScenarioValidationError,
    ValidationError,
)


def clamp_unit(value: float) -> float:
    """Clamp a probability/confidence/achievement value into [0, 1]"""
    return min(1.0, max(0.0, float(value)))


class ScenarioType(str, Enum):
    STRATEGIC = 'strategic'
    OPERATIONAL = 'operational'
    FINANCIAL = 'financial'
    MARKET = 'market'
    RISK = 'risk'
    GROWTH = 'growth'


class ScenarioStatus(str, Enum):
    DRAFT = 'draft'
    READY = 'ready'
    RUNNING = 'running'
    COMPLETED = 'completed'
    FAILED = 'failed'


class DistributionType(str, Enum):
    NORMAL = 'normal'
    UNIFORM = 'uniform'
    TRIANGULAR = 'triangular'
    EXPONENTIAL = 'exponential'


class ConstraintType(str, Enum):
    BUDGET = 'budget'
    RESOURCE = 'resource'
    TIME = 'time'
    REGULATORY = 'regulatory'
    TECHNICAL = 'technical'


class EngineModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible dict using the camelCase interchange keys."""
        return self.model_dump(mode='json', by_alias=True)


# --- Business snapshot (read-only input from the digital twin) ---

class Department(EngineModel):
    id: str = ''
    name: str
    type: str = 'other'
    headcount: float = Field(default=0, ge=0)
    budget: float = 0
    efficiency: float = 70


class BusinessProcess(EngineModel):
    id: str = ''
    name: str
    department: str = ''
    efficiency: float = 70
    automation_level: float = 0


class RiskItem(EngineModel):
    id: str = ''
    name: str
    probability: float = 0
    impact: float = 0
    category: str = ''

    @field_validator('probability')
    @classmethod
    def clamp_probability(cls, value: float) -> float:
        return clamp_unit(value)


class OpportunityItem(EngineModel):
    id: str = ''
    name: str
    probability: float = 0
    value: float = 0
    category: str = ''

    @field_validator('probability')
    @classmethod
    def clamp_probability(cls, value: float) -> float:
        return clamp_unit(value)


class BusinessSnapshot(EngineModel):
    """Point-in-time view of the business. The engines never mutate it."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = ''
    tenant_id: str = ''
    name: str = ''
    metrics: Dict[str, float]
    departments: List[Department] = Field(default_factory=list)
    processes: List[BusinessProcess] = Field(default_factory=list)
    health: float = 0
    risks: List[RiskItem] = Field(default_factory=list)
    opportunities: List[OpportunityItem] = Field(default_factory=list)
    historical: List[Dict[str, float]] = Field(default_factory=list)
    capabilities: Dict[str, List[str]] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def total_budget(self) -> float:
        return sum(d.budget for d in self.departments)

    @property
    def total_headcount(self) -> float:
        return sum(d.headcount for d in self.departments)


# --- Decisions ---

class OptionCosts(EngineModel):
    upfront: float = 0
    ongoing: float = 0
    opportunity: float = 0


class OptionBenefits(EngineModel):
    revenue: Optional[float] = None
    efficiency: Optional[float] = None
    quality: Optional[float] = None
    satisfaction: Optional[float] = None


class OptionRisk(EngineModel):
    probability: float
    impact: float
    description: str = ''

    @field_validator('probability', 'impact')
    @classmethod
    def clamp_scores(cls, value: float) -> float:
        return clamp_unit(value)


class DecisionOption(EngineModel):
    id: str = ''
    name: str
    description: str = ''
    costs: OptionCosts = Field(default_factory=OptionCosts)
    benefits: OptionBenefits = Field(default_factory=OptionBenefits)
    risks: List[OptionRisk] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    time_to_implement: float = Field(default=0, ge=0)

    @model_validator(mode='after')
    def default_id(self):
        if not self.id:
            self.id = self.name
        return self


class DecisionTiming(EngineModel):
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None
    optimal: Optional[datetime] = None


class ResourceEnvelope(EngineModel):
    budget: Optional[float] = None
    headcount: Optional[float] = None
    time: Optional[float] = None


class Decision(EngineModel):
    id: str = ''
    name: str
    category: str = 'strategic'
    description: str = ''
    options: List[DecisionOption]
    selected_option: Optional[str] = None
    dependencies: List[str] = Field(default_factory=list)
    timing: DecisionTiming = Field(default_factory=DecisionTiming)
    resources: ResourceEnvelope = Field(default_factory=ResourceEnvelope)

    @model_validator(mode='after')
    def check_options(self):
        if not self.id:
            self.id = self.name
        ids = [o.id for o in self.options]
        if len(set(ids)) != len(ids):
            raise ValueError(f"decision '{self.name}' has duplicate option ids")
        if self.selected_option is not None and self.selected_option not in ids:
            raise ValueError(
                f"selected option '{self.selected_option}' is not an option of '{self.name}'"
            )
        return self

    def get_option(self, option_id: str) -> Optional[DecisionOption]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


# --- Assumptions ---

class DistributionParameters(EngineModel):
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    std_dev: Optional[float] = None
    most_likely: Optional[float] = None


class Uncertainty(EngineModel):
    # Left as a free string: unknown distributions sample as the base value
    distribution: Optional[str] = None
    parameters: DistributionParameters = Field(default_factory=DistributionParameters)


class Assumption(EngineModel):
    id: str = ''
    category: str = 'internal'
    description: str = ''
    variable: str
    base_value: float
    unit: str = ''
    uncertainty: Uncertainty = Field(default_factory=Uncertainty)
    confidence: float = 0.5
    source: Optional[str] = None

    @field_validator('confidence')
    @classmethod
    def clamp_confidence(cls, value: float) -> float:
        return clamp_unit(value)


# --- Constraints and objectives ---

class Constraint(EngineModel):
    id: str = ''
    type: ConstraintType
    description: str = ''
    limit: float
    unit: str = ''
    hard: bool = True
    metric: Optional[str] = None

    @property
    def checked_metric(self) -> str:
        """Metric compared against the limit (defaults to the constraint type)"""
        return self.metric or self.type.value


class Objective(EngineModel):
    id: str = ''
    name: str = ''
    metric: str
    target: float
    weight: float = Field(default=1.0, ge=0)
    minimize: bool = False


# --- Scenario ---

def new_scenario_id() -> str:
    return f"scenario-{uuid.uuid4().hex[:12]}"


class Scenario(EngineModel):
    """
    A what-if business question.

    The four collections are required keys; a draft scenario carries them
    as empty lists.
    """

    id: str = Field(default_factory=new_scenario_id)
    tenant_id: str = ''
    name: str
    description: str = ''
    type: ScenarioType = ScenarioType.STRATEGIC
    time_horizon: float = Field(default=12, ge=0)
    created_by: str = ''
    created_at: datetime = Field(default_factory=datetime.now)

    decisions: List[Decision]
    assumptions: List[Assumption]
    constraints: List[Constraint]
    objectives: List[Objective]

    status: ScenarioStatus = ScenarioStatus.DRAFT
    # SimulationResult of the latest run; not part of the interchange payload
    simulation: Optional[Any] = Field(default=None, exclude=True)

    @model_validator(mode='after')
    def assign_ids(self):
        for i, decision in enumerate(self.decisions):
            if not decision.id:
                decision.id = f"decision-{i + 1}"
        for i, assumption in enumerate(self.assumptions):
            if not assumption.id:
                assumption.id = f"assumption-{i + 1}"
        for i, constraint in enumerate(self.constraints):
            if not constraint.id:
                constraint.id = f"constraint-{i + 1}"
        for i, objective in enumerate(self.objectives):
            if not objective.id:
                objective.id = f"objective-{i + 1}"
        ids = [o.id for o in self.objectives]
        if len(set(ids)) != len(ids):
            raise ValueError('objective ids must be unique')
        return self

    @property
    def total_objective_weight(self) -> float:
        return sum(o.weight for o in self.objectives)


# --- Validation entry points ---

def _validate(model, payload, error_cls, label: str):
    if isinstance(payload, model):
        return payload
    if not isinstance(payload, Mapping):
        raise error_cls(f"{label} payload must be a mapping, got {type(payload).__name__}")
    try:
        return model.model_validate(dict(payload))
    except PydanticValidationError as e:
        errors = e.errors(include_url=False)
        fields = ', '.join('.'.join(str(p) for p in err['loc']) for err in errors)
        raise error_cls(f"Invalid {label}: {fields}", errors=errors) from e


def parse_scenario(payload: Union[Scenario, Mapping[str, Any]]) -> Scenario:
    return _validate(Scenario, payload, ScenarioValidationError, 'scenario')


def parse_decision(payload: Union[Decision, Mapping[str, Any]]) -> Decision:
    return _validate(Decision, payload, DecisionValidationError, 'decision')


def parse_snapshot(payload: Union[BusinessSnapshot, Mapping[str, Any]]) -> BusinessSnapshot:
    return _validate(BusinessSnapshot, payload, ValidationError, 'business snapshot')
