import csv
import json

from blobworld.headless import run_headless

from support import small_config


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_log_header(tmp_path):
    log_path = tmp_path / "run.csv"
    run_headless(steps=3, seed=1, log_path=log_path, deterministic_log=True, config=small_config())
    rows = _read_csv(log_path)
    assert len(rows) == 4
    assert rows[0] == [
        "tick",
        "generation",
        "alive",
        "deaths",
        "food_remaining",
        "food_eaten",
        "avg_energy",
        "best_fitness",
        "generation_advanced",
        "tick_ms",
    ]
    assert [row[0] for row in rows[1:]] == ["0", "1", "2"]
    assert all(float(row[-1]) == 0.0 for row in rows[1:])
    assert all(0 <= int(row[2]) <= 4 for row in rows[1:])


def test_headless_summary_output(tmp_path):
    summary_path = tmp_path / "summary.json"
    run_headless(
        steps=4,
        seed=3,
        log_path=None,
        deterministic_log=True,
        summary_path=summary_path,
        config=small_config(),
    )
    payload = json.loads(summary_path.read_text())
    assert payload["steps"] == 4
    assert payload["seed"] == 3
    assert payload["start_generation"] == 1
    assert payload["final_generation"] == 1 + payload["generations_completed"]
    assert "tick_ms" in payload
    assert "alive" in payload


def test_headless_save_then_resume(tmp_path):
    state_dir = tmp_path / "state"
    first = run_headless(steps=2, seed=4, log_path=None, config=small_config(), save_dir=state_dir)
    assert (state_dir / "data.txt").exists()

    resumed = run_headless(steps=1, seed=5, log_path=None, config=small_config(), load_dir=state_dir)
    assert resumed.state.generation >= first.state.generation
    assert resumed.state.best_fitness >= first.state.best_fitness
