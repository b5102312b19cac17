from __future__ import annotations

from pathlib import Path

import pytest

from blobworld.config import BoundaryPolicy, EnergyCost, FitnessPolicy, SimulationConfig, load_config
from blobworld.exceptions import ConfigurationError

CONFIG_DIR = Path(__file__).resolve().parents[2] / "configs"


def test_default_topology_matches_sensor_layout():
    config = SimulationConfig()

    assert config.sensors.feature_count == 12
    assert config.topology == (12, 4, 4, 2)
    assert config.consumption_radius == pytest.approx(7.0)


def test_topology_drops_border_inputs_when_disabled():
    config = load_config({"sensors": {"border_features": False, "ray_count": 6}})

    assert config.topology == (6, 4, 4, 2)


def test_load_config_parses_policies_and_nested_sections():
    config = load_config(
        {
            "population_size": 12,
            "agent": {"boundary_policy": "soft", "energy_cost": "linear", "fitness_policy": "eaten"},
            "network": {"hidden_layers": [8]},
            "food": {"count": 30},
        }
    )

    assert config.population_size == 12
    assert config.agent.boundary_policy is BoundaryPolicy.SOFT
    assert config.agent.energy_cost is EnergyCost.LINEAR
    assert config.agent.fitness_policy is FitnessPolicy.EATEN
    assert config.network.hidden_layers == (8,)
    assert config.food.count == 30
    assert config.arena.right == pytest.approx(900.0)


def test_unknown_policy_is_rejected():
    with pytest.raises(ConfigurationError, match="boundary_policy"):
        load_config({"agent": {"boundary_policy": "bouncy"}})


def test_unknown_key_is_rejected():
    with pytest.raises(ConfigurationError):
        load_config({"food": {"colour": "green"}})


@pytest.mark.parametrize(
    "raw",
    [
        {"population_size": 0},
        {"arena": {"left": 10.0, "right": 10.0}},
        {"network": {"outputs": 3}},
        {"agent": {"min_motion_magnitude": 0.0}},
        {"evolution": {"elite_count": -1}},
        {"evolution": {"mutation_rate": 1.5}},
        {"evolution": {"mutation_strength": -0.1}},
        {"agent": {"energy_cost": "linear", "linear_cost_divisor": 0.0}},
        {"sensors": {"sentinel_distance": 10.0}},
        {"sensors": {"sentinel_distance": 955.0}},
        {"max_workers": 0},
    ],
)
def test_validate_rejects_inconsistent_settings(raw):
    with pytest.raises(ConfigurationError):
        load_config(raw).validate()


def test_default_sentinel_exceeds_reach():
    config = SimulationConfig()

    assert config.sensors.sentinel_distance > config.reach
    config.validate()


def test_empty_sections_fall_back_to_defaults():
    config = load_config({"arena": None, "agent": None})

    assert config.arena == SimulationConfig().arena
    assert config.agent == SimulationConfig().agent


@pytest.mark.parametrize(
    "raw",
    [
        {"network": {"hidden_layers": 4}},
        {"network": {"hidden_layers": ["wide"]}},
        {"food": [1, 2]},
    ],
)
def test_malformed_sections_raise_configuration_error(raw):
    with pytest.raises(ConfigurationError):
        load_config(raw)


def test_from_yaml_reads_overrides(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text("seed: 7\nagent:\n  start_energy: 50.0\n")

    config = SimulationConfig.from_yaml(path)

    assert config.seed == 7
    assert config.agent.start_energy == pytest.approx(50.0)


def test_soft_walls_profile_loads():
    config = SimulationConfig.from_yaml(CONFIG_DIR / "soft_walls.yaml")

    config.validate()
    assert config.agent.boundary_policy is BoundaryPolicy.SOFT
    assert config.topology[0] == 8


@pytest.mark.config_change
def test_default_yaml_matches_dataclass_defaults():
    assert SimulationConfig.from_yaml(CONFIG_DIR / "default.yaml") == SimulationConfig()
