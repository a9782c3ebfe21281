"""Mycovariant draft — players pick one trait each from a shared pool.

The draft runs before the mutation phase of every round listed in
``GameBalance.mycovariant_draft_rounds``.  Players pick in order of
fewest living cells (ties by id), so the player who is behind gets first
choice.  Each player is offered a random handful of the mycovariants
still eligible for them and the strategy picks one.  A non-universal
pick leaves the pool for the rest of the game.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from moldfront.mycovariants.mycovariant import (
        Mycovariant,
        MycovariantRepository,
        PlayerMycovariant,
    )
    from moldfront.players.player import Player
    from moldfront.simulation.context import GameContext

logger = logging.getLogger(__name__)


@dataclass
class MycovariantPool:
    """Mycovariants still available to draft.

    Attributes:
        repository: Every mycovariant of the game.
        drafted: Ids of non-universal mycovariants already taken.
    """

    repository: MycovariantRepository
    drafted: set[int] = field(default_factory=set)

    def eligible_for(self, player: Player) -> list[Mycovariant]:
        """Mycovariants ``player`` may be offered, in id order."""
        return [
            m
            for m in sorted(self.repository.all(), key=lambda m: m.mycovariant_id)
            if not player.has_mycovariant(m.mycovariant_id)
            and (m.is_universal or m.mycovariant_id not in self.drafted)
        ]

    def take(self, mycovariant: Mycovariant) -> None:
        if not mycovariant.is_universal:
            self.drafted.add(mycovariant.mycovariant_id)


def draft_order(ctx: GameContext) -> list[Player]:
    counts = ctx.board.living_counts()
    return sorted(
        ctx.players.values(),
        key=lambda p: (counts.get(p.player_id, 0), p.player_id),
    )


def offer(
    ctx: GameContext,
    pool: MycovariantPool,
    player: Player,
) -> list[Mycovariant]:
    """Draw up to ``mycovariant_draft_size`` random eligible choices."""
    eligible = pool.eligible_for(player)
    size = min(len(eligible), ctx.balance.mycovariant_draft_size)
    order = ctx.rng.permutation(len(eligible))[:size]
    return [eligible[int(i)] for i in order]


def acquire(
    ctx: GameContext,
    player: Player,
    mycovariant: Mycovariant,
    *,
    ai_score: float | None = None,
) -> PlayerMycovariant:
    """Give ``mycovariant`` to ``player`` and run its acquire effect."""
    held = player.add_mycovariant(mycovariant)
    held.ai_score_at_draft = ai_score
    if mycovariant.on_acquire is not None:
        mycovariant.on_acquire(ctx, player, held)
    held.mark_triggered()
    ctx.observer.record_effect(player.player_id, "mycovariant_drafted")
    return held


def run_draft(ctx: GameContext, pool: MycovariantPool) -> list[PlayerMycovariant]:
    """Run one draft round.

    Players without a strategy pick at random.

    Returns:
        The picks, in draft order.
    """
    picks: list[PlayerMycovariant] = []
    for player in draft_order(ctx):
        choices = offer(ctx, pool, player)
        if not choices:
            logger.debug("%s has nothing left to draft", player.name)
            continue
        if player.strategy is not None:
            pick = player.strategy.choose_mycovariant(choices, player, ctx)
        else:
            pick = choices[int(ctx.rng.integers(len(choices)))]
        score = pick.score(ctx, player)
        pool.take(pick)
        picks.append(acquire(ctx, player, pick, ai_score=score))
        logger.info(
            "Round %d: %s drafted %s (score %.1f)",
            ctx.board.current_round,
            player.name,
            pick.name,
            score,
        )
    return picks
