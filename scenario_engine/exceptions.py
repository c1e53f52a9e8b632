"""
Exception hierarchy for the simulation and decision engines
"""
from typing import Any, Dict, List, Optional


class SimulationError(Exception):
    """Base class for engine errors"""


class ValidationError(SimulationError):
    """Raised when a scenario, decision or snapshot payload is malformed"""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class ScenarioValidationError(ValidationError):
    pass


class DecisionValidationError(ValidationError):
    pass


class SnapshotNotFoundError(SimulationError):
    """The business snapshot a run depends on is missing"""


class ScenarioNotFoundError(SimulationError):
    pass


class InvalidStatusTransition(SimulationError):
    pass


class SimulationCancelled(SimulationError):
    """A cooperative cancellation was observed between iterations"""
