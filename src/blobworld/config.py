from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml

from .exceptions import ConfigurationError


class BoundaryPolicy(str, Enum):
    KILL = "kill"
    SOFT = "soft"


class EnergyCost(str, Enum):
    INVERSE = "inverse"
    LINEAR = "linear"


class FitnessPolicy(str, Enum):
    LIFETIME = "lifetime"
    EATEN = "eaten"


@dataclass
class ArenaConfig:
    left: float = 80.0
    top: float = 80.0
    right: float = 900.0
    bottom: float = 560.0

    @property
    def center(self) -> tuple[float, float]:
        return ((self.left + self.right) * 0.5, (self.top + self.bottom) * 0.5)


@dataclass
class SensorConfig:
    ray_count: int = 8
    sensing_radius: float = 2.0
    sentinel_distance: float = 1000.0
    border_features: bool = True

    @property
    def feature_count(self) -> int:
        return self.ray_count + (4 if self.border_features else 0)


@dataclass
class AgentConfig:
    start_energy: float = 100.0
    body_radius: float = 5.0
    motion_limit: float = 5.0
    boundary_policy: BoundaryPolicy = BoundaryPolicy.KILL
    energy_cost: EnergyCost = EnergyCost.INVERSE
    inverse_cost_numerator: float = 5.0
    # Floor on |motion| for the inverse cost; 5 / 0.05 drains a full tank.
    min_motion_magnitude: float = 0.05
    linear_cost_divisor: float = 24.0
    fitness_policy: FitnessPolicy = FitnessPolicy.LIFETIME


@dataclass
class FoodConfig:
    count: int = 240
    radius: float = 2.0


@dataclass
class NetworkConfig:
    hidden_layers: tuple[int, ...] = (4, 4)
    outputs: int = 2
    weight_range: float = 1.0


@dataclass
class EvolutionConfig:
    elite_count: int = 2
    mutation_rate: float = 0.05
    mutation_strength: float = 0.3


@dataclass
class SimulationConfig:
    population_size: int = 80
    seed: int = 42
    max_workers: Optional[int] = None
    save_dir: str = "sim-state"
    config_version: str = "v1"
    arena: ArenaConfig = field(default_factory=ArenaConfig)
    sensors: SensorConfig = field(default_factory=SensorConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    food: FoodConfig = field(default_factory=FoodConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    evolution: EvolutionConfig = field(default_factory=EvolutionConfig)

    @property
    def topology(self) -> tuple[int, ...]:
        return (self.sensors.feature_count, *self.network.hidden_layers, self.network.outputs)

    @property
    def consumption_radius(self) -> float:
        return self.agent.body_radius + self.food.radius

    @property
    def reach(self) -> float:
        """Longest distance an agent can measure: the arena diagonal plus one tick of double motion."""
        arena = self.arena
        overshoot = 2.0 * math.sqrt(2.0) * self.agent.motion_limit
        return math.hypot(arena.right - arena.left, arena.bottom - arena.top) + overshoot

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)

    def validate(self) -> None:
        arena = self.arena
        if arena.right <= arena.left or arena.bottom <= arena.top:
            raise ConfigurationError(f"Arena has no interior: {arena}")
        if self.population_size < 1:
            raise ConfigurationError("population_size must be at least 1")
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1 when set")
        if self.food.count < 0:
            raise ConfigurationError("food.count must not be negative")
        if self.sensors.ray_count < 1:
            raise ConfigurationError("sensors.ray_count must be at least 1")
        if self.sensors.sensing_radius <= 0 or self.food.radius <= 0 or self.agent.body_radius <= 0:
            raise ConfigurationError("sensing, food and body radii must be positive")
        if self.agent.start_energy <= 0:
            raise ConfigurationError("agent.start_energy must be positive")
        if self.agent.motion_limit <= 0:
            raise ConfigurationError("agent.motion_limit must be positive")
        if self.agent.min_motion_magnitude <= 0:
            raise ConfigurationError("agent.min_motion_magnitude must be positive")
        if self.agent.linear_cost_divisor <= 0:
            raise ConfigurationError("agent.linear_cost_divisor must be positive")
        if self.sensors.sentinel_distance <= self.reach:
            raise ConfigurationError(
                f"sensors.sentinel_distance ({self.sensors.sentinel_distance}) must exceed the "
                f"longest measurable distance ({self.reach:.1f})"
            )
        if self.network.outputs != 2:
            raise ConfigurationError("network.outputs must be 2 (one per motion axis)")
        if any(size < 1 for size in self.network.hidden_layers):
            raise ConfigurationError("network.hidden_layers sizes must be positive")
        if self.evolution.elite_count < 0:
            raise ConfigurationError("evolution.elite_count must not be negative")
        if not 0.0 <= self.evolution.mutation_rate <= 1.0:
            raise ConfigurationError("evolution.mutation_rate must lie in [0, 1]")
        if self.evolution.mutation_strength < 0:
            raise ConfigurationError("evolution.mutation_strength must not be negative")


def _enum(kind: type[Enum], value: object, name: str) -> Enum:
    try:
        return kind(value)
    except ValueError as exc:
        choices = ", ".join(member.value for member in kind)
        raise ConfigurationError(f"Unknown {name} {value!r} (expected one of: {choices})") from exc


_SECTIONS = ("arena", "sensors", "agent", "food", "network", "evolution")


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Section {name!r} must be a mapping, got {type(value).__name__}")
    return dict(value)


def _hidden_layers(value: object) -> tuple[int, ...]:
    try:
        return tuple(int(size) for size in value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"network.hidden_layers must be a list of integers, got {value!r}") from exc


def load_config(raw: dict) -> SimulationConfig:
    agent_raw = _section(raw, "agent")
    if "boundary_policy" in agent_raw:
        agent_raw["boundary_policy"] = _enum(BoundaryPolicy, agent_raw["boundary_policy"], "boundary_policy")
    if "energy_cost" in agent_raw:
        agent_raw["energy_cost"] = _enum(EnergyCost, agent_raw["energy_cost"], "energy_cost")
    if "fitness_policy" in agent_raw:
        agent_raw["fitness_policy"] = _enum(FitnessPolicy, agent_raw["fitness_policy"], "fitness_policy")

    network_raw = _section(raw, "network")
    if "hidden_layers" in network_raw:
        network_raw["hidden_layers"] = _hidden_layers(network_raw["hidden_layers"])

    try:
        arena = ArenaConfig(**_section(raw, "arena"))
        sensors = SensorConfig(**_section(raw, "sensors"))
        agent = AgentConfig(**agent_raw)
        food = FoodConfig(**_section(raw, "food"))
        network = NetworkConfig(**network_raw)
        evolution = EvolutionConfig(**_section(raw, "evolution"))
        sim_values = {k: v for k, v in raw.items() if k not in _SECTIONS}
        return SimulationConfig(
            arena=arena,
            sensors=sensors,
            agent=agent,
            food=food,
            network=network,
            evolution=evolution,
            **sim_values,
        )
    except TypeError as exc:
        raise ConfigurationError(f"Unknown configuration key: {exc}") from exc

