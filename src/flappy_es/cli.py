"""
flappy-es entrypoint - evolve flappy bird controllers from the command line.

Usage:
    flappy-es --generations 50
    flappy-es --config config.yaml --seed 7 --plot fitness.png
    flappy-es --render --speed 150
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import ESConfig, load_config
from .exceptions import ConfigurationError
from .observers import GenerationObserver, HistoryRecorder, LoggingObserver, Pacer
from .population import Population

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Setup basic logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flappy-es",
        description="Evolve neural-network flappy bird players with an evolutionary strategy.",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--generations", type=int, default=100,
                        help="number of generations to run (default: 100)")
    parser.add_argument("--seed", type=int, help="random seed (overrides the config)")
    parser.add_argument("--render", action="store_true",
                        help="show the run in a pygame window")
    parser.add_argument("--speed", type=float,
                        help="playback speed in percent, 0-200 (adds a delay per tick)")
    parser.add_argument("--plot", help="save a fitness history plot to this path")
    parser.add_argument("--log-level", default="INFO",
                        help="logging level (default: INFO)")
    return parser


def build_config(args: argparse.Namespace) -> ESConfig:
    config = load_config(args.config) if args.config else ESConfig()
    if args.seed is not None:
        config.seed = args.seed
    return config.validate()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    history = HistoryRecorder()
    observers: List[GenerationObserver] = [LoggingObserver(), history]
    if args.speed is not None:
        observers.append(Pacer(args.speed))
    if args.render:
        from .viewer import PygameViewer
        observers.append(PygameViewer(config))

    population = Population(config, observers=observers)
    logger.info(
        f"Training {config.population_size} birds "
        f"({config.num_elites} elites, layers {config.layer_sizes}) "
        f"for {args.generations} generations"
    )
    try:
        population.train(args.generations)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")

    logger.info(
        f"Finished after {population.generation} generations. "
        f"Highscore: {population.highscore:.2f} pipes, "
        f"best fitness: {population.best_fitness:.2f}"
    )

    if args.plot and history.rows:
        from .reporting import plot_fitness_history
        fig = plot_fitness_history(history.rows)
        fig.savefig(args.plot)
        logger.info(f"Saved fitness plot to {args.plot}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
