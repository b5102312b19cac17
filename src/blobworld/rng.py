from __future__ import annotations

import random

from pygame.math import Vector2


class DeterministicRng:
    """Seeded source for spawn positions, initial weights and breeding.

    Only the main thread draws from it; agent tasks never do.
    """

    def __init__(self, seed: int):
        self._random = random.Random(seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_gauss(self, mean: float, sigma: float) -> float:
        return self._random.gauss(mean, sigma)

    def next_point(self, left: float, top: float, right: float, bottom: float) -> Vector2:
        return Vector2(self._random.uniform(left, right), self._random.uniform(top, bottom))
