from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from functools import partial
from time import perf_counter
from typing import Any, Callable, Dict, List, Optional, Sequence

from ...config import SimulationConfig
from ...exceptions import TickError
from ...rng import DeterministicRng
from ..systems import lifecycle, metrics as metrics_system
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotArena, SnapshotMetadata
from ..utils.math2d import _ray_directions
from .agent import Agent
from .evolution import GeneticAlgorithm
from .food import Food, FoodPool
from .network import Decidable, FeedForwardNetwork, parameter_count

logger = logging.getLogger(__name__)


@dataclass
class GenerationState:
    generation: int = 1
    best_fitness: float = 0.0
    paused: bool = True

    def toggle_pause(self) -> bool:
        self.paused = not self.paused
        return self.paused

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False


class World:
    def __init__(self, config: SimulationConfig, network_factory: Optional[Callable[[], Decidable]] = None):
        config.validate()
        self._config = config
        self._topology = config.topology
        self._parameter_count = parameter_count(self._topology)
        self._network_factory = network_factory or partial(FeedForwardNetwork, self._topology)
        self._rays = _ray_directions(config.sensors.ray_count)
        self._rng = DeterministicRng(config.seed)
        self._next_id = 0
        self._food = FoodPool()
        self._food.replace(self._spawn_food())
        population = [self._spawn_agent() for _ in range(config.population_size)]
        self._evolver: GeneticAlgorithm[Agent] = GeneticAlgorithm(
            population, self.agent_from_strand, self._rng, config.evolution
        )
        self._state = GenerationState()
        self._metrics: TickMetrics | None = None
        self._executor = ThreadPoolExecutor(max_workers=config.max_workers, thread_name_prefix="blobworld-agent")

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def agents(self) -> List[Agent]:
        return self._evolver.population

    @property
    def food(self) -> FoodPool:
        return self._food

    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def __enter__(self) -> "World":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def step(self, tick: int) -> TickMetrics:
        """Run one tick for the whole population.

        Metrics describe the tick that just ran: ``alive`` and
        ``food_remaining`` are read before any generation change, and
        ``generation`` is the generation the tick belonged to.
        """
        start = perf_counter()
        generation = self._state.generation
        food_before = self._food.remaining()
        alive_before = sum(1 for agent in self.agents if agent.alive)

        updated = self._update_population(tick)
        self._evolver.population = updated

        alive_after = sum(1 for agent in updated if agent.alive)
        food_after = self._food.remaining()
        advanced = alive_after == 0
        if advanced:
            self.advance_generation()

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            tick,
            generation,
            updated,
            deaths=alive_before - alive_after,
            food_remaining=food_after,
            food_eaten=food_before - food_after,
            best_fitness=self._state.best_fitness,
            generation_advanced=advanced,
            duration_ms=elapsed_ms,
        )
        self._metrics = metrics
        logger.debug(
            "tick %d gen %d: alive=%d food=%d (%.2f ms)",
            tick,
            generation,
            metrics.alive,
            food_after,
            elapsed_ms,
        )
        return metrics

    def _update_population(self, tick: int) -> List[Agent]:
        snapshots = [agent.clone(self._network_factory) for agent in self.agents]
        futures = [
            self._executor.submit(lifecycle.update_agent, snapshot, self._food, self._config)
            for snapshot in snapshots
        ]
        wait(futures)
        for slot, future in enumerate(futures):
            error = future.exception()
            if error is not None:
                raise TickError(f"Agent in slot {slot} failed during tick {tick}") from error
        return [future.result() for future in futures]

    def advance_generation(self) -> None:
        previous_best = self._state.best_fitness
        generation_best = max(agent.fitness() for agent in self.agents)
        if generation_best > self._state.best_fitness:
            self._state.best_fitness = generation_best
        self._evolver.evolve()
        self._food.replace(self._spawn_food())
        self._state.generation += 1
        logger.info(
            "generation %d started (previous best %.4f, generation max %.4f, best %.4f)",
            self._state.generation,
            previous_best,
            generation_best,
            self._state.best_fitness,
        )

    def agent_from_strand(self, strand: Sequence[float]) -> Agent:
        agent = self._spawn_agent(randomize=False)
        agent.network.rebuild(strand)
        return agent

    def restore(self, generation: int, best_fitness: float, agents: Sequence[Agent]) -> None:
        """Install a loaded generation and start it on a fresh food pool."""
        self._evolver.population = agents
        self._state.generation = generation
        self._state.best_fitness = best_fitness
        self._food.replace(self._spawn_food())

    def snapshot(self, tick: int) -> Snapshot:
        metrics = self._metrics if self._metrics is not None else self._snapshot_metrics_from_state(tick)
        arena = self._config.arena
        agents_payload = [self._agent_snapshot(slot, agent) for slot, agent in enumerate(self.agents)]
        food_payload = [{"x": item.x, "y": item.y, "eaten": item.eaten} for item in self._food.views()]
        metadata = SnapshotMetadata(
            generation=self._state.generation,
            best_fitness=self._state.best_fitness,
            paused=self._state.paused,
            population_size=len(self.agents),
            food_count=len(food_payload),
            seed=self._config.seed,
            config_version=self._config.config_version,
        )
        return Snapshot(
            tick=tick,
            metrics=metrics,
            agents=agents_payload,
            food=food_payload,
            arena=SnapshotArena(left=arena.left, top=arena.top, right=arena.right, bottom=arena.bottom),
            metadata=metadata,
        )

    def _snapshot_metrics_from_state(self, tick: int) -> TickMetrics:
        return metrics_system.create_metrics(
            tick,
            self._state.generation,
            self.agents,
            deaths=0,
            food_remaining=self._food.remaining(),
            food_eaten=0,
            best_fitness=self._state.best_fitness,
            generation_advanced=False,
            duration_ms=0.0,
        )

    @staticmethod
    def _agent_snapshot(slot: int, agent: Agent) -> Dict[str, Any]:
        return {
            "slot": slot,
            "id": agent.id,
            "x": agent.position.x,
            "y": agent.position.y,
            "alive": agent.alive,
            "energy": agent.energy,
            "eaten": agent.eaten,
        }

    def _spawn_food(self) -> List[Food]:
        arena = self._config.arena
        return [
            Food(self._rng.next_point(arena.left, arena.top, arena.right, arena.bottom))
            for _ in range(self._config.food.count)
        ]

    def _spawn_agent(self, randomize: bool = True) -> Agent:
        arena = self._config.arena
        agent_config = self._config.agent
        network = self._network_factory()
        if randomize:
            spread = self._config.network.weight_range
            network.rebuild([self._rng.next_range(-spread, spread) for _ in range(self._parameter_count)])
        position = self._rng.next_point(arena.left, arena.top, arena.right, arena.bottom)
        agent = Agent(
            id=self._next_id,
            position=position,
            network=network,
            rays=self._rays,
            energy=agent_config.start_energy,
            start_energy=agent_config.start_energy,
            lifetime=agent_config.start_energy,
            fitness_policy=agent_config.fitness_policy,
        )
        self._next_id += 1
        return agent

