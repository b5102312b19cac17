from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, List

from pygame.math import Vector2

from ...config import FitnessPolicy
from .network import Decidable

# Floor that keeps "lifetime" fitness strictly positive with nothing eaten.
FITNESS_EPSILON = sys.float_info.epsilon
EATEN_FITNESS_FLOOR = 0.1


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2
    network: Decidable
    rays: tuple[Vector2, ...]
    energy: float
    start_energy: float
    lifetime: float
    fitness_policy: FitnessPolicy = FitnessPolicy.LIFETIME
    eaten: int = 0
    alive: bool = True

    def chromosome(self) -> List[float]:
        return self.network.extract()

    def fitness(self) -> float:
        if self.fitness_policy == FitnessPolicy.EATEN:
            return max(float(self.eaten), EATEN_FITNESS_FLOOR)
        return max(float(self.eaten), FITNESS_EPSILON) * (self.lifetime / self.start_energy)

    def clone(self, make_network: Callable[[], Decidable]) -> "Agent":
        # Fresh network from extracted weights: no state is shared with the original.
        network = make_network()
        network.rebuild(self.network.extract())
        return Agent(
            id=self.id,
            position=Vector2(self.position),
            network=network,
            rays=self.rays,
            energy=self.energy,
            start_energy=self.start_energy,
            lifetime=self.lifetime,
            fitness_policy=self.fitness_policy,
            eaten=self.eaten,
            alive=self.alive,
        )
