from __future__ import annotations

from ...config import SimulationConfig
from ..core.agent import Agent
from ..core.food import FoodPool
from .feeding import consume_food
from .motion import apply_motion, clamp_motion, motion_cost
from .sensing import sense


def update_agent(agent: Agent, food: FoodPool, config: SimulationConfig) -> Agent:
    """Advance one agent by one tick. Dead agents are returned untouched."""
    if not agent.alive:
        return agent
    agent_config = config.agent

    features = sense(agent, food, config.sensors, config.arena)
    motion = clamp_motion(agent.network.propagate(features), agent_config.motion_limit)
    apply_motion(agent, motion, agent_config, config.arena)
    agent.energy -= motion_cost(motion, agent_config)
    consume_food(agent, food, agent_config.body_radius, config.food.radius)

    if agent.energy <= 0.0:
        agent.alive = False
    return agent
