"""
Scenario repository: in-memory cache in front of a pluggable store.

Reads fall back from the cache to the store; writes go to both. A store
failure is logged and swallowed so the caller's in-memory objects stay
authoritative.
"""
import hashlib
import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

from scenario_engine.models import Scenario, parse_scenario
from utils.logger import setup_logger

logger = setup_logger(__name__)

# Default store directory
STORE_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data', 'scenarios')

# Record kinds kept by a store
SCENARIOS = 'scenarios'
SIMULATIONS = 'simulations'
ANALYSES = 'analyses'


class ScenarioStore:
    """Storage backend interface. Records are JSON-compatible dicts."""

    def save(self, kind: str, key: str, record: Dict[str, Any]) -> None:
        raise NotImplementedError

    def load(self, kind: str, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def list(self, kind: str) -> List[Dict[str, Any]]:
        raise NotImplementedError


class InMemoryScenarioStore(ScenarioStore):
    """Process-local store, mainly for tests and single-run tools"""

    def __init__(self):
        self._records: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def save(self, kind: str, key: str, record: Dict[str, Any]) -> None:
        # Round-trip through JSON so stored records never alias live objects
        self._records.setdefault(kind, {})[key] = json.loads(json.dumps(record, default=str))

    def load(self, kind: str, key: str) -> Optional[Dict[str, Any]]:
        return self._records.get(kind, {}).get(key)

    def list(self, kind: str) -> List[Dict[str, Any]]:
        return list(self._records.get(kind, {}).values())


class JsonFileScenarioStore(ScenarioStore):
    """One JSON file per record under <store_dir>/<kind>/"""

    def __init__(self, store_dir: str = STORE_DIR):
        self.store_dir = store_dir

    def _kind_dir(self, kind: str) -> str:
        path = os.path.join(self.store_dir, kind)
        if not os.path.exists(path):
            os.makedirs(path)
            logger.info(f"Created store directory: {path}")
        return path

    def _record_path(self, kind: str, key: str) -> str:
        """Safe filename from the record key"""
        digest = hashlib.md5(key.encode()).hexdigest()
        return os.path.join(self._kind_dir(kind), f"{digest}.json")

    def save(self, kind: str, key: str, record: Dict[str, Any]) -> None:
        entry = {
            'key': key,
            'timestamp': datetime.now().isoformat(),
            'data': record
        }
        with open(self._record_path(kind, key), 'w') as f:
            json.dump(entry, f, default=str)
        logger.debug(f"Stored {kind}/{key}")

    def load(self, kind: str, key: str) -> Optional[Dict[str, Any]]:
        path = self._record_path(kind, key)
        if not os.path.exists(path):
            return None
        with open(path, 'r') as f:
            return json.load(f)['data']

    def list(self, kind: str) -> List[Dict[str, Any]]:
        kind_dir = self._kind_dir(kind)
        records = []
        for filename in sorted(os.listdir(kind_dir)):
            if not filename.endswith('.json'):
                continue
            with open(os.path.join(kind_dir, filename), 'r') as f:
                records.append(json.load(f)['data'])
        return records


class ScenarioRepository:
    """
    Scenario lookup and persistence.

    Scenarios live in an in-memory cache grouped by tenant; the store is
    written on every save and consulted on cache misses.
    """

    def __init__(self, store: Optional[ScenarioStore] = None):
        self.store = store or InMemoryScenarioStore()
        self._cache: Dict[str, Dict[str, Scenario]] = {}

    def _persist(self, kind: str, key: str, record: Dict[str, Any]) -> bool:
        try:
            self.store.save(kind, key, record)
            return True
        except Exception as e:
            logger.warning(f"Could not persist {kind}/{key}, keeping in memory: {e}")
            return False

    def save(self, scenario: Scenario) -> bool:
        """
        Cache a scenario and write it to the store.

        Returns:
            True if the store accepted the write
        """
        self._cache.setdefault(scenario.tenant_id, {})[scenario.id] = scenario
        return self._persist(SCENARIOS, scenario.id, scenario.to_dict())

    def get(self, scenario_id: str) -> Optional[Scenario]:
        """Cached scenario, else the stored copy (re-validated), else None"""
        for scenarios in self._cache.values():
            if scenario_id in scenarios:
                return scenarios[scenario_id]

        try:
            record = self.store.load(SCENARIOS, scenario_id)
        except Exception as e:
            logger.warning(f"Could not load scenario {scenario_id}: {e}")
            return None
        if record is None:
            return None

        scenario = parse_scenario(record)
        self._cache.setdefault(scenario.tenant_id, {})[scenario.id] = scenario
        return scenario

    def list(self, tenant_id: str) -> List[Scenario]:
        return list(self._cache.get(tenant_id, {}).values())

    def save_simulation(self, result) -> bool:
        """Store a SimulationResult (keyed by its id)"""
        return self._persist(SIMULATIONS, result.id, result.to_dict())

    def load_simulation(self, simulation_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.store.load(SIMULATIONS, simulation_id)
        except Exception as e:
            logger.warning(f"Could not load simulation {simulation_id}: {e}")
            return None

    def save_analysis(self, analysis) -> bool:
        """Store a DecisionImpactAnalysis (keyed by its id)"""
        return self._persist(ANALYSES, analysis.id, analysis.to_dict())

    def load_analysis(self, analysis_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.store.load(ANALYSES, analysis_id)
        except Exception as e:
            logger.warning(f"Could not load analysis {analysis_id}: {e}")
            return None
