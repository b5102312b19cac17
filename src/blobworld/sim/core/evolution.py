from __future__ import annotations

from typing import Callable, Generic, List, Protocol, Sequence, TypeVar

from ...config import EvolutionConfig
from ...exceptions import GeneticsError
from ...rng import DeterministicRng


class Evolvable(Protocol):
    def chromosome(self) -> Sequence[float]: ...

    def fitness(self) -> float: ...


T = TypeVar("T", bound=Evolvable)


class GeneticAlgorithm(Generic[T]):
    """Holds a population and replaces it with offspring on ``evolve``.

    Offspring are rebuilt through ``from_strand`` so every slot starts the
    next generation fresh, elites included.
    """

    def __init__(
        self,
        population: Sequence[T],
        from_strand: Callable[[Sequence[float]], T],
        rng: DeterministicRng,
        config: EvolutionConfig,
    ):
        if not population:
            raise GeneticsError("Cannot evolve an empty population")
        self._population: List[T] = list(population)
        self._from_strand = from_strand
        self._rng = rng
        self._config = config

    @property
    def population(self) -> List[T]:
        return self._population

    @population.setter
    def population(self, members: Sequence[T]) -> None:
        members = list(members)
        if len(members) != len(self._population):
            raise ValueError(f"Population size must stay {len(self._population)}, got {len(members)}")
        self._population = members

    def evolve(self) -> None:
        strands = [list(member.chromosome()) for member in self._population]
        scores = [float(member.fitness()) for member in self._population]
        for slot, score in enumerate(scores):
            if not score > 0.0:
                raise GeneticsError(f"Slot {slot} has non-positive fitness {score}")
        length = len(strands[0])
        if any(len(strand) != length for strand in strands):
            raise GeneticsError("Chromosome lengths differ across the population")

        size = len(strands)
        ranked = sorted(range(size), key=lambda slot: scores[slot], reverse=True)
        elite_count = min(self._config.elite_count, size)
        offspring = [list(strands[slot]) for slot in ranked[:elite_count]]
        total = sum(scores)
        while len(offspring) < size:
            mother = strands[self._select(scores, total)]
            father = strands[self._select(scores, total)]
            child = self._crossover(mother, father)
            self._mutate(child)
            offspring.append(child)

        self._population = [self._from_strand(strand) for strand in offspring]

    def _select(self, scores: Sequence[float], total: float) -> int:
        pick = self._rng.next_range(0.0, total)
        cumulative = 0.0
        for slot, score in enumerate(scores):
            cumulative += score
            if pick <= cumulative:
                return slot
        return len(scores) - 1

    def _crossover(self, mother: Sequence[float], father: Sequence[float]) -> List[float]:
        return [m if self._rng.next_float() < 0.5 else f for m, f in zip(mother, father)]

    def _mutate(self, strand: List[float]) -> None:
        rate = self._config.mutation_rate
        strength = self._config.mutation_strength
        for index in range(len(strand)):
            if self._rng.next_float() < rate:
                strand[index] += self._rng.next_gauss(0.0, strength)
