"""Random number generation utilities for the Q-learning simulation."""

import numpy as np
from typing import Optional, Sequence


class SeededRNG:
    """Seeded random number generator for reproducible runs."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._generator = np.random.default_rng(seed)

    def random(self) -> float:
        """Generate random float in [0, 1)."""
        return float(self._generator.random())

    def choice(self, seq: Sequence):
        """Choose a uniformly random element from a non-empty sequence."""
        return seq[int(self._generator.integers(len(seq)))]

    def sample(self, population: Sequence, k: int) -> list:
        """Sample k elements from population without replacement."""
        indices = self._generator.choice(len(population), size=k, replace=False)
        return [population[int(i)] for i in indices]


# Default RNG instance
default_rng = SeededRNG()


def set_global_seed(seed: Optional[int]):
    """Replace the default generator with a freshly seeded one."""
    global default_rng
    default_rng = SeededRNG(seed)
    return default_rng
