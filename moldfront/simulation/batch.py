"""Batch runner — play many independent games from one config.

Each game gets its own random stream spawned from the config seed, plus
its own board, players, event bus and tracker; nothing mutable is shared
between games.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass

import numpy as np

from moldfront.simulation.config import SimulationConfig
from moldfront.simulation.engine import GameResult, TurnEngine
from moldfront.simulation.observer import SimulationTracker

logger = logging.getLogger(__name__)


@dataclass
class GameRecord:
    """One finished game of a batch.

    Attributes:
        index: Position of the game in the batch.
        result: Final standings.
        tracker: Counters collected during the game.
    """

    index: int
    result: GameResult
    tracker: SimulationTracker


def run_batch(config: SimulationConfig, games: int) -> list[GameRecord]:
    """Play ``games`` independent games.

    Args:
        config: Game configuration; ``config.seed`` seeds the batch.
        games: Number of games to play.

    Returns:
        One record per game, in order.

    Raises:
        ValueError: If ``games`` is not positive.
    """
    if games <= 0:
        msg = f"games must be positive, got {games}"
        raise ValueError(msg)
    records: list[GameRecord] = []
    for index, seed in enumerate(np.random.SeedSequence(config.seed).spawn(games)):
        tracker = SimulationTracker()
        engine = TurnEngine(
            config=config,
            rng=np.random.default_rng(seed),
            observer=tracker,
        )
        result = engine.run()
        logger.info(
            "Game %d/%d: %d rounds, winner %s (%s)",
            index + 1,
            games,
            result.rounds_played,
            result.winner_id,
            result.winner_strategy,
        )
        records.append(GameRecord(index=index, result=result, tracker=tracker))
    return records


def win_counts(records: list[GameRecord]) -> Counter[str]:
    """Wins per strategy name across a batch."""
    return Counter(
        r.result.winner_strategy for r in records if r.result.winner_strategy
    )
