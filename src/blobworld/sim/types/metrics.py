from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    generation: int
    alive: int
    deaths: int
    food_remaining: int
    food_eaten: int
    average_energy: float
    best_fitness: float
    generation_advanced: bool = False
    tick_duration_ms: float = 0.0
