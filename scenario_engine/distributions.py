"""
Assumption sampling from normal, uniform, triangular and exponential distributions
"""
import math
from typing import Optional, Sequence

import numpy as np

from scenario_engine.models import Assumption, DistributionType

# Fallback parameters when an assumption omits them
DEFAULT_STD_DEV = 1.0
DEFAULT_MIN = 0.0
DEFAULT_MAX = 100.0

# Recorded run seeds stay within the exactly representable JSON integer range
SEED_BITS = 53


def make_rng(seed: Optional[int], spawn_key: Sequence[int] = ()) -> np.random.Generator:
    """
    Build an independent Generator for one stream of draws.

    Args:
        seed: Run seed (None draws fresh OS entropy)
        spawn_key: Identifies the stream, e.g. (pass_index, iteration)

    Returns:
        numpy Generator
    """
    return np.random.default_rng(np.random.SeedSequence(entropy=seed, spawn_key=tuple(spawn_key)))


def new_seed() -> int:
    """Fresh run seed drawn from OS entropy"""
    state = np.random.SeedSequence().generate_state(1, np.uint64)[0]
    return int(state >> np.uint64(64 - SEED_BITS))


def _param(value: Optional[float], default: float) -> float:
    return default if value is None else float(value)


class DistributionSampler:
    """Draws assumption values using an injectable random Generator."""

    def __init__(self, rng: Optional[np.random.Generator] = None, seed: Optional[int] = None):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def _open_unit(self) -> float:
        # Uniform on (0, 1]; keeps log() finite
        return 1.0 - float(self.rng.random())

    def sample_normal(self, mean: float, std_dev: float) -> float:
        u1 = self._open_unit()
        u2 = float(self.rng.random())
        z = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return mean + z * std_dev

    def sample_uniform(self, low: float, high: float) -> float:
        return low + float(self.rng.random()) * (high - low)

    def sample_triangular(self, low: float, high: float, mode: float) -> float:
        if high < low:
            low, high = high, low
        if high == low:
            return low
        mode = min(high, max(low, mode))

        u = float(self.rng.random())
        fc = (mode - low) / (high - low)
        if u < fc:
            return low + math.sqrt(u * (high - low) * (mode - low))
        return high - math.sqrt((1.0 - u) * (high - low) * (high - mode))

    def sample_exponential(self, mean: float) -> float:
        return -mean * math.log(self._open_unit())

    def sample(self, assumption: Assumption) -> float:
        """
        Draw one value for an assumption.

        Unknown or missing distributions return the base value unchanged.
        """
        distribution = (assumption.uncertainty.distribution or '').lower()
        params = assumption.uncertainty.parameters
        base = assumption.base_value

        if distribution == DistributionType.NORMAL.value:
            return self.sample_normal(
                _param(params.mean, base),
                _param(params.std_dev, DEFAULT_STD_DEV)
            )
        if distribution == DistributionType.UNIFORM.value:
            return self.sample_uniform(
                _param(params.min, DEFAULT_MIN),
                _param(params.max, DEFAULT_MAX)
            )
        if distribution == DistributionType.TRIANGULAR.value:
            return self.sample_triangular(
                _param(params.min, DEFAULT_MIN),
                _param(params.max, DEFAULT_MAX),
                _param(params.most_likely, base)
            )
        if distribution == DistributionType.EXPONENTIAL.value:
            return self.sample_exponential(_param(params.mean, base))

        return base

    def sample_many(self, assumption: Assumption, size: int) -> np.ndarray:
        """Draw `size` values for an assumption"""
        return np.array([self.sample(assumption) for _ in range(size)], dtype=float)

    def choose_index(self, count: int) -> int:
        """Uniformly pick an index in [0, count)"""
        return int(self.rng.integers(0, count))


def sample_assumption(assumption: Assumption, seed: Optional[int] = None, size: int = 1):
    """Module-level wrapper: one float when size == 1, otherwise an array"""
    sampler = DistributionSampler(seed=seed)
    if size == 1:
        return sampler.sample(assumption)
    return sampler.sample_many(assumption, size)
