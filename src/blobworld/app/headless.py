from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..config import SimulationConfig
from ..sim.core.persistence import load_state, save_state
from ..sim.core.world import World

logger = logging.getLogger(__name__)

_HEADER = [
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


def _format_row(metrics: object, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.generation,
        metrics.alive,
        metrics.deaths,
        metrics.food_remaining,
        metrics.food_eaten,
        f"{metrics.average_energy:.4f}",
        f"{metrics.best_fitness:.6f}",
        int(metrics.generation_advanced),
        f"{tick_ms:.3f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    summary_path: Optional[Path] = None,
    config: Optional[SimulationConfig] = None,
    load_dir: Optional[Path] = None,
    save_dir: Optional[Path] = None,
) -> World:
    config = config or SimulationConfig()
    if seed is not None:
        config.seed = seed

    tick_ms_series: list[float] = []
    alive_series: list[float] = []
    generations_completed = 0

    with World(config) as world:
        if load_dir:
            load_state(world, load_dir)
        world.state.resume()
        start_generation = world.state.generation

        writer = None
        csv_file = None
        if log_path:
            csv_file = Path(log_path).open("w", newline="")
            writer = csv.writer(csv_file)
            writer.writerow(_HEADER)

        try:
            for tick in range(steps):
                metrics = world.step(tick)
                tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
                tick_ms_series.append(tick_ms)
                alive_series.append(float(metrics.alive))
                if metrics.generation_advanced:
                    generations_completed += 1
                if writer:
                    writer.writerow(_format_row(metrics, tick_ms))
        finally:
            if csv_file:
                csv_file.close()

        if save_dir:
            save_state(world, save_dir)

        if summary_path:
            summary = {
                "steps": steps,
                "seed": config.seed,
                "deterministic_log": deterministic_log,
                "start_generation": start_generation,
                "final_generation": world.state.generation,
                "generations_completed": generations_completed,
                "best_fitness": world.state.best_fitness,
                "tick_ms": _summary_stats(tick_ms_series),
                "alive": _summary_stats(alive_series),
            }
            Path(summary_path).write_text(json.dumps(summary, indent=2))

    logger.info(
        "finished %d ticks: generation %d, best fitness %.4f",
        steps,
        world.state.generation,
        world.state.best_fitness,
    )
    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless blobworld simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file overriding the default configuration")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--load", type=Path, default=None, help="Save directory to resume from")
    parser.add_argument("--save", type=Path, default=None, help="Directory to save the final state into")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = SimulationConfig.from_yaml(args.config) if args.config else None
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        summary_path=args.summary,
        config=config,
        load_dir=args.load,
        save_dir=args.save,
    )


if __name__ == "__main__":
    main()
