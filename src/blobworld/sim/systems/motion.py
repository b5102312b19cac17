from __future__ import annotations

import math
from typing import Sequence

from ...config import AgentConfig, ArenaConfig, BoundaryPolicy, EnergyCost
from ..core.agent import Agent
from ..utils.math2d import _clamp_value


def clamp_motion(raw: Sequence[float], limit: float) -> tuple[float, float]:
    if len(raw) != 2:
        raise ValueError(f"Decision function must return 2 values, got {len(raw)}")
    return (
        _clamp_value(float(raw[0]), -limit, limit),
        _clamp_value(float(raw[1]), -limit, limit),
    )


def outside_arena(x: float, y: float, arena: ArenaConfig) -> bool:
    return x >= arena.right or x <= arena.left or y >= arena.bottom or y <= arena.top


def apply_motion(agent: Agent, motion: tuple[float, float], config: AgentConfig, arena: ArenaConfig) -> None:
    mx, my = motion
    position = agent.position
    if config.boundary_policy == BoundaryPolicy.SOFT:
        next_x = position.x + mx
        next_y = position.y + my
        if arena.left < next_x < arena.right:
            position.x = next_x
        if arena.top < next_y < arena.bottom:
            position.y = next_y
        return

    # Hard wall: step, check the edges, then step again. The second step is
    # kept, so a living agent covers twice its motion vector per tick.
    position.update(position.x + mx, position.y + my)
    if outside_arena(position.x, position.y, arena):
        agent.energy = 0.0
        agent.eaten = 0
    position.update(position.x + mx, position.y + my)


def motion_cost(motion: tuple[float, float], config: AgentConfig) -> float:
    magnitude = math.hypot(motion[0], motion[1])
    if config.energy_cost == EnergyCost.LINEAR:
        return max(magnitude, 1.0) / config.linear_cost_divisor
    return config.inverse_cost_numerator / max(magnitude, config.min_motion_magnitude)
