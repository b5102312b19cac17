from __future__ import annotations

from ..core.agent import Agent
from ..core.food import FoodPool
from ..utils.math2d import _circles_overlap


def consume_food(agent: Agent, food: FoodPool, body_radius: float, food_radius: float) -> int:
    """Eat every uneaten item touching the agent's body.

    An item another agent marks between our read and our write is lost to
    us: ``mark_eaten`` returns ``False`` and no credit is applied.
    """
    eaten = 0
    for index in range(len(food)):
        item = food.read(index)
        if item.eaten:
            continue
        if not _circles_overlap(item.position, food_radius, agent.position, body_radius):
            continue
        if not food.mark_eaten(index):
            continue
        agent.eaten += 1
        agent.energy = agent.start_energy
        agent.lifetime += agent.start_energy
        eaten += 1
    return eaten
