from __future__ import annotations

import threading
from typing import Iterable, List, Sequence

from pygame.math import Vector2

from blobworld.config import FitnessPolicy, SimulationConfig
from blobworld.sim.core.agent import Agent
from blobworld.sim.core.food import Food, FoodPool
from blobworld.sim.utils.math2d import _ray_directions


class FixedMotion:
    """Decision stub that always answers with the same motion vector."""

    def __init__(self, motion: Sequence[float] = (0.0, 0.0)):
        self.motion = list(motion)
        self.weights: List[float] = []

    def propagate(self, features: Sequence[float]) -> List[float]:
        return list(self.motion)

    def rebuild(self, weights: Sequence[float]) -> None:
        self.weights = list(weights)

    def extract(self) -> List[float]:
        return list(self.weights)


class ExplodingNetwork(FixedMotion):
    def propagate(self, features: Sequence[float]) -> List[float]:
        raise RuntimeError("controller failure")


class GatedFoodPool(FoodPool):
    """Holds every writer at a barrier so all readers finish before any write."""

    def __init__(self, items: Iterable[Food], parties: int):
        super().__init__(items)
        self._barrier = threading.Barrier(parties, timeout=5.0)

    def mark_eaten(self, index: int) -> bool:
        self._barrier.wait()
        return super().mark_eaten(index)


def small_config(**overrides) -> SimulationConfig:
    config = SimulationConfig(population_size=4, seed=11, max_workers=4)
    config.food.count = 10
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def make_agent(
    x: float,
    y: float,
    motion: Sequence[float] = (0.0, 0.0),
    energy: float = 100.0,
    agent_id: int = 0,
    fitness_policy: FitnessPolicy = FitnessPolicy.LIFETIME,
) -> Agent:
    return Agent(
        id=agent_id,
        position=Vector2(x, y),
        network=FixedMotion(motion),
        rays=_ray_directions(8),
        energy=energy,
        start_energy=100.0,
        lifetime=100.0,
        fitness_policy=fitness_policy,
    )


def food_at(*points: tuple[float, float]) -> List[Food]:
    return [Food(Vector2(x, y)) for x, y in points]
