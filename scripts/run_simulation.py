"""Run the acceleration reinforcement simulation headless."""

import argparse
import logging
from datetime import UTC, datetime

from rich import box
from rich.console import Console
from rich.table import Table

from neuralreinforcement.dtypes import ActivationType
from neuralreinforcement.logging_config import logger
from neuralreinforcement.network import EpisodeStats, build_network
from neuralreinforcement.simulation import AccelerationSimulation
from neuralreinforcement.simulation.acceleration import INPUT_DIM, OUTPUT_DIM
from neuralreinforcement.utils.config_loader import (
    DEFAULT_BATCHES,
    SimulationConfig,
    configure_meta_parameters,
    create_reinforcement_instance,
    load_simulation_config,
)
from neuralreinforcement.utils.seeding import ensure_seed, get_rng

ADD_DATASET = [
    ([0.0, 0.0], [0.0]),
    ([0.0, 1.0], [1.0]),
    ([1.0, 1.0], [2.0]),
    ([1.0, 0.0], [1.0]),
    ([-1.0, -6.0], [-7.0]),
    ([-1.0, 6.0], [5.0]),
]
XOR_DATASET = [
    ([0.0, 0.0], [0.0]),
    ([0.0, 1.0], [1.0]),
    ([1.0, 1.0], [0.0]),
    ([1.0, 0.0], [1.0]),
]


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Run the acceleration reinforcement simulation.")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "NONE"],
        help="Set the logging level (default: INFO). Use 'NONE' to disable logging.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to the YAML configuration file.",
    )
    parser.add_argument(
        "--batches",
        type=int,
        help=f"Number of reinforcement requests to run (default: {DEFAULT_BATCHES}).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed; overrides the seed of the configuration file.",
    )
    parser.add_argument(
        "--demo",
        type=str,
        default="none",
        choices=["add", "xor", "none"],
        help="Train a small supervised network before the simulation (default: none).",
    )
    return parser.parse_args()


def run_demo(demo: str, seed: int) -> float:
    """Fit a supervised toy dataset and return the final mean squared error."""
    rng = get_rng(seed)
    match demo:
        case "add":
            network = build_network(
                2,
                [(3, ActivationType.ID), (1, ActivationType.ID)],
                rng=rng,
            )
            return network.train(1000, 1e-2, ADD_DATASET)
        case "xor":
            network = build_network(
                2,
                [(8, ActivationType.SIGMOID_SIM), (1, ActivationType.SIGMOID)],
                rng=rng,
            )
            return network.train(5000, 5e-1, XOR_DATASET)
        case _:
            error_message = f"Unknown demo: {demo}."
            logger.error(error_message)
            raise ValueError(error_message)


def render_batch(
    console: Console,
    batch: int,
    simulation: AccelerationSimulation,
    stats: list[EpisodeStats],
) -> None:
    """Print the learning episodes and a deterministic roll-out of every agent."""
    trajectories = simulation.simulate()
    table = Table(
        title=f"Batch {batch} ({simulation.total_reinforcements} reinforcements)",
        box=box.SQUARE,
    )
    table.add_column("Agent", justify="right")
    table.add_column("Reward", justify="right")
    table.add_column("Advantage", justify="right")
    table.add_column("Steps", justify="right")
    table.add_column("Roll-out ticks", justify="right")
    table.add_column("Final distance", justify="right")
    table.add_column("Tracker mean", justify="right")
    for i, (episode, trajectory) in enumerate(zip(stats, trajectories, strict=True)):
        table.add_row(
            str(i),
            f"{episode.total_reward:.1f}",
            f"{episode.advantage:.2f}",
            str(episode.steps),
            str(len(trajectory)),
            f"{trajectory[-1].distance_to_target():.1f}",
            f"{simulation.reinforcement.scores[i].mean:.1f}",
        )
    console.print(table)


def main() -> None:
    """Run the acceleration reinforcement simulation."""
    args = parse_arguments()

    log_level = args.log_level.upper()
    if log_level == "NONE":
        logger.disabled = True
    else:
        logger.setLevel(log_level)
        for handler in logging.getLogger().handlers:
            if isinstance(handler, logging.FileHandler):
                handler.setLevel(log_level)

    config = load_simulation_config(args.config) if args.config else SimulationConfig()
    seed = ensure_seed(args.seed if args.seed is not None else config.seed)
    batches = args.batches if args.batches is not None else config.batches

    timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    logger.info(f"Session ID: {timestamp}")
    logger.info(f"Config file: {args.config}")
    logger.info(f"Seed: {seed}")
    logger.info(f"Batches: {batches}")

    console = Console()

    if args.demo != "none":
        error = run_demo(args.demo, seed)
        console.print(f"[bold]{args.demo}[/bold] demo: mean squared error = {error:.3e}")

    rng = get_rng(seed)
    meta_parameters = configure_meta_parameters(config)
    reinforcement = create_reinforcement_instance(config, INPUT_DIM, OUTPUT_DIM, rng)
    simulation = AccelerationSimulation(
        reinforcement,
        meta_parameters,
        max_ticks=config.max_ticks,
        reinforcements_per_request=config.reinforcements_per_batch,
    )
    logger.info(f"Meta parameters: {meta_parameters}")

    try:
        for batch in range(1, batches + 1):
            stats = simulation.reinforce()
            render_batch(console, batch, simulation, stats)
    except KeyboardInterrupt:
        message = "KeyboardInterrupt detected. Exiting the simulation."
        logger.info(message)
        console.print(message)


if __name__ == "__main__":
    main()
