"""Entry point for ``python -m moldfront``.

Loads a YAML config, plays a batch of games between the configured AI
strategies and logs how often each strategy won.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from moldfront.simulation.batch import run_batch, win_counts
from moldfront.simulation.config import SimulationConfig

logger = logging.getLogger("moldfront")

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)


def main() -> None:
    """Parse CLI args, run the batch, log the summary."""
    parser = argparse.ArgumentParser(
        prog="moldfront",
        description="Moldfront - competing mold colony simulator",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "-n",
        "--games",
        type=int,
        default=1,
        help="Number of games to play (default: 1)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the config seed",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = SimulationConfig.from_yaml(args.config)
    if args.seed is not None:
        config.seed = args.seed

    records = run_batch(config, args.games)
    wins = win_counts(records)
    logger.info(
        "Played %d games on a %dx%d board",
        len(records),
        config.width,
        config.height,
    )
    for name in sorted(set(config.players)):
        logger.info("  %-18s %3d wins", name, wins.get(name, 0))


if __name__ == "__main__":
    main()
