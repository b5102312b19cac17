"""Plain-text save files.

Layout of a save directory::

    data.txt    generation counter, then best fitness
    0.txt       chromosome of slot 0, one value per line
    ...
    N-1.txt

A load reads and validates every file before anything in the world
changes, so a failed load leaves the running simulation untouched.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, List, Sequence

from ...exceptions import PersistenceError
from .network import parameter_count

if TYPE_CHECKING:
    from .agent import Agent
    from .world import World

logger = logging.getLogger(__name__)

DATA_FILE = "data.txt"
_SLOT_FILE = re.compile(r"^(\d+)\.txt$")


def save_state(world: World, directory: Path | str) -> Path:
    target = Path(directory)
    agents = world.agents
    try:
        target.mkdir(parents=True, exist_ok=True)
        for slot, agent in enumerate(agents):
            _write_lines(target / f"{slot}.txt", [repr(float(value)) for value in agent.chromosome()])
        for slot in _slot_numbers(target):
            if slot >= len(agents):
                (target / f"{slot}.txt").unlink()
        # Header last: a save that fails midway never pairs a new header with old slots.
        _write_lines(target / DATA_FILE, [str(world.state.generation), repr(float(world.state.best_fitness))])
    except OSError as exc:
        raise PersistenceError(f"Could not save state to {target}: {exc}") from exc
    logger.info("saved generation %d (%d slots) to %s", world.state.generation, len(agents), target)
    return target


def load_state(world: World, directory: Path | str) -> None:
    source = Path(directory)
    header = _read_numbers(source / DATA_FILE)
    if len(header) != 2:
        raise PersistenceError(f"{source / DATA_FILE} must hold exactly 2 values, found {len(header)}")
    generation_text, best_text = header
    generation = _parse(generation_text, int, source / DATA_FILE)
    best_fitness = _parse(best_text, float, source / DATA_FILE)

    size = len(world.agents)
    try:
        slots = _slot_numbers(source)
    except OSError as exc:
        raise PersistenceError(f"Could not list {source}: {exc}") from exc
    if len(slots) != size:
        raise PersistenceError(f"{source} holds {len(slots)} chromosome files, population size is {size}")

    expected = parameter_count(world.config.topology)
    strands: List[List[float]] = []
    for slot in range(size):
        path = source / f"{slot}.txt"
        strand = [_parse(text, float, path) for text in _read_numbers(path)]
        if len(strand) != expected:
            raise PersistenceError(f"{path}: expected {expected} parameters, found {len(strand)}")
        strands.append(strand)

    # Building agents draws spawn positions, so it waits until every file checks out.
    agents: List[Agent] = []
    for slot, strand in enumerate(strands):
        try:
            agents.append(world.agent_from_strand(strand))
        except ValueError as exc:
            raise PersistenceError(f"slot {slot} in {source}: {exc}") from exc

    world.restore(generation, best_fitness, agents)
    logger.info("loaded generation %d (%d slots) from %s", generation, size, source)


def _slot_numbers(directory: Path) -> List[int]:
    slots = []
    for entry in directory.iterdir():
        match = _SLOT_FILE.match(entry.name)
        if match and entry.is_file():
            slots.append(int(match.group(1)))
    return sorted(slots)


def _write_lines(path: Path, lines: Sequence[str]) -> None:
    path.write_text("".join(f"{line}\n" for line in lines))


def _read_numbers(path: Path) -> List[str]:
    try:
        text = path.read_text()
    except OSError as exc:
        raise PersistenceError(f"Could not read {path}: {exc}") from exc
    return [line.strip() for line in text.splitlines()]


def _parse(text: str, kind: type, path: Path):
    try:
        return kind(text)
    except ValueError as exc:
        raise PersistenceError(f"{path}: malformed value {text!r}") from exc
