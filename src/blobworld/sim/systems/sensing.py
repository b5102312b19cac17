from __future__ import annotations

from typing import List

from ...config import ArenaConfig, SensorConfig
from ..core.agent import Agent
from ..core.food import FoodPool
from ..utils.math2d import _ray_hits_circle


def sense(agent: Agent, food: FoodPool, sensors: SensorConfig, arena: ArenaConfig) -> List[float]:
    """Feature vector: nearest uneaten food per ray, then optional border distances.

    Rays that see nothing report ``sentinel_distance``. Equal distances on
    one ray keep the food scanned last.
    """
    position = agent.position
    radius = sensors.sensing_radius
    features: List[float] = []
    for direction in agent.rays:
        nearest = sensors.sentinel_distance
        found = False
        for index in range(len(food)):
            item = food.read(index)
            if item.eaten:
                continue
            target = item.position
            if not _ray_hits_circle(position, direction, target, radius):
                continue
            distance = position.distance_to(target)
            if not found or distance <= nearest:
                nearest = distance
                found = True
        features.append(nearest)

    if sensors.border_features:
        features.extend(border_distances(agent, arena))
    return features


def border_distances(agent: Agent, arena: ArenaConfig) -> List[float]:
    # left, right, top, bottom; negative once outside
    x = agent.position.x
    y = agent.position.y
    return [x - arena.left, arena.right - x, y - arena.top, arena.bottom - y]
