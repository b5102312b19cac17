from __future__ import annotations

from typing import Sequence

from ..core.agent import Agent
from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    generation: int,
    agents: Sequence[Agent],
    deaths: int,
    food_remaining: int,
    food_eaten: int,
    best_fitness: float,
    generation_advanced: bool,
    duration_ms: float,
) -> TickMetrics:
    living = [agent for agent in agents if agent.alive]
    average_energy = sum(agent.energy for agent in living) / len(living) if living else 0.0
    return TickMetrics(
        tick=tick,
        generation=generation,
        alive=len(living),
        deaths=deaths,
        food_remaining=food_remaining,
        food_eaten=food_eaten,
        average_energy=average_energy,
        best_fitness=best_fitness,
        generation_advanced=generation_advanced,
        tick_duration_ms=duration_ms,
    )
