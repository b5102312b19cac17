from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    agents: List[Dict[str, Any]]
    food: List[Dict[str, Any]]
    arena: "SnapshotArena"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotArena:
    left: float
    top: float
    right: float
    bottom: float


@dataclass(slots=True)
class SnapshotMetadata:
    generation: int
    best_fitness: float
    paused: bool
    population_size: int
    food_count: int
    seed: int
    config_version: str
