from __future__ import annotations

import pytest

from blobworld.exceptions import PersistenceError
from blobworld.sim.core.persistence import DATA_FILE, load_state, save_state
from blobworld.sim.core.world import World

from support import small_config


def _chromosomes(world):
    return [agent.chromosome() for agent in world.agents]


def test_save_writes_header_and_one_file_per_slot(tmp_path):
    with World(small_config()) as world:
        world.state.generation = 7
        world.state.best_fitness = 3.25

        save_state(world, tmp_path / "state")

        lines = (tmp_path / "state" / DATA_FILE).read_text().splitlines()
        assert lines == ["7", "3.25"]
        for slot, agent in enumerate(world.agents):
            values = [float(line) for line in (tmp_path / "state" / f"{slot}.txt").read_text().splitlines()]
            assert values == agent.chromosome()


@pytest.mark.parametrize("population_size", [1, 3])
def test_round_trip_restores_chromosomes_and_counters(tmp_path, population_size):
    with World(small_config(population_size=population_size)) as source:
        source.state.generation = 12
        source.state.best_fitness = 1.5
        source.food.mark_eaten(0)
        save_state(source, tmp_path)
        saved = _chromosomes(source)

    with World(small_config(population_size=population_size, seed=99)) as target:
        load_state(target, tmp_path)

        assert target.state.generation == 12
        assert target.state.best_fitness == 1.5
        for loaded, expected in zip(_chromosomes(target), saved):
            assert loaded == pytest.approx(expected)
        assert all(agent.alive for agent in target.agents)
        assert target.food.remaining() == len(target.food)


def test_slot_count_mismatch_fails_without_changes(tmp_path):
    with World(small_config(population_size=3)) as source:
        save_state(source, tmp_path)

    with World(small_config(population_size=4)) as target:
        before = _chromosomes(target)

        with pytest.raises(PersistenceError, match="population size"):
            load_state(target, tmp_path)

        assert _chromosomes(target) == before
        assert target.state.generation == 1


def test_malformed_value_aborts_whole_load(tmp_path):
    with World(small_config()) as source:
        source.state.generation = 4
        save_state(source, tmp_path)
    (tmp_path / "2.txt").write_text("0.5\nnot-a-number\n")

    with World(small_config(seed=3)) as target:
        before = _chromosomes(target)

        with pytest.raises(PersistenceError, match="malformed"):
            load_state(target, tmp_path)

        assert _chromosomes(target) == before
        assert target.state.generation == 1


def test_short_chromosome_is_rejected(tmp_path):
    with World(small_config()) as source:
        save_state(source, tmp_path)
    (tmp_path / "0.txt").write_text("0.5\n0.25\n")

    with World(small_config()) as target:
        with pytest.raises(PersistenceError, match="0.txt"):
            load_state(target, tmp_path)


def test_missing_header_is_fatal(tmp_path):
    with World(small_config()) as world:
        with pytest.raises(PersistenceError, match="Could not read"):
            load_state(world, tmp_path / "nowhere")


def test_header_needs_two_values(tmp_path):
    with World(small_config()) as world:
        save_state(world, tmp_path)
        (tmp_path / DATA_FILE).write_text("3\n")

        with pytest.raises(PersistenceError):
            load_state(world, tmp_path)


def test_save_removes_stale_slots(tmp_path):
    with World(small_config(population_size=5)) as bigger:
        save_state(bigger, tmp_path)
    with World(small_config(population_size=2)) as smaller:
        save_state(smaller, tmp_path)
        load_state(smaller, tmp_path)

    assert sorted(path.name for path in tmp_path.iterdir()) == ["0.txt", "1.txt", DATA_FILE]


def test_rejected_load_leaves_seeded_draws_untouched(tmp_path):
    with World(small_config()) as source:
        save_state(source, tmp_path)
        strand = source.agents[0].chromosome()
    (tmp_path / "3.txt").write_text("0.5\n")

    with World(small_config(seed=5)) as failed, World(small_config(seed=5)) as clean:
        with pytest.raises(PersistenceError, match="3.txt"):
            load_state(failed, tmp_path)

        after_failure = failed.agent_from_strand(strand)
        untouched = clean.agent_from_strand(strand)
        assert after_failure.id == untouched.id
        assert after_failure.position == untouched.position


def test_failed_save_does_not_write_header(tmp_path):
    with World(small_config()) as world:
        (tmp_path / "2.txt").mkdir()

        with pytest.raises(PersistenceError, match="Could not save"):
            save_state(world, tmp_path)

        assert not (tmp_path / DATA_FILE).exists()
