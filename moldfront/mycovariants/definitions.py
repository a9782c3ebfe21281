"""Standard mycovariant set.

``build_default_mycovariants`` turns a ``GameBalance`` into the
repository drafted from during a game.  Scores are on a rough 1-10
scale; draft strategies compare them with ``Mycovariant.score``.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from moldfront.effects import mycovariants as effects
from moldfront.growth.resolver import near_edge
from moldfront.mutations.kinds import MutationId
from moldfront.mycovariants.mycovariant import (
    EARLY_GAME_ROUND,
    Mycovariant,
    MycovariantCategory,
    MycovariantId,
    MycovariantRepository,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from moldfront.players.player import Player
    from moldfront.simulation.balance import GameBalance
    from moldfront.simulation.context import GameContext

MODERATE_PRIORITY = 6.0

# (placement score below which, AI score)
_JET_SCORE_STEPS = ((1, 3.0), (5, 4.0), (10, 5.0), (12, 6.0), (14, 7.0), (18, 8.0))


def _fixed(value: float) -> Callable[[GameContext, Player], float]:
    return lambda ctx, player: value


def _early_or_late(early: float, late: float) -> Callable[[GameContext, Player], float]:
    def score(ctx: GameContext, player: Player) -> float:
        return early if ctx.board.current_round < EARLY_GAME_ROUND else late

    return score


def jetting_ai_score(placement_score: int) -> float:
    """Map the best jet placement score onto the draft scale."""
    for below, value in _JET_SCORE_STEPS:
        if placement_score < below:
            return value
    return 9.0 if placement_score < 22 else 10.0


def _jetting_score(
    direction: tuple[int, int],
) -> Callable[[GameContext, Player], float]:
    def score(ctx: GameContext, player: Player) -> float:
        _, best = effects.best_jet_origin(ctx, player, direction)
        return jetting_ai_score(best)

    return score


def _necrophoric_score(ctx: GameContext, player: Player) -> float:
    living = len(ctx.board.living_cells_of(player.player_id))
    return min(6.0, max(1.0, 1 + living * 5 / 50))


def _perimeter_score(ctx: GameContext, player: Player) -> float:
    border = sum(
        1
        for c in ctx.board.living_cells_of(player.player_id)
        if near_edge(ctx, c.tile_id)
    )
    return min(10.0, max(1.0, 1 + border * 9 / 100))


def _toxaphores_score(ctx: GameContext, player: Player) -> float:
    toxins = sum(1 for c in ctx.board.toxin_cells() if c.owner_id == player.player_id)
    if toxins == 0:
        return 1.0
    toxic_mutations = sum(
        1
        for mutation_id in (MutationId.MYCOTOXIN_TRACER, MutationId.SPOROCIDAL_BLOOM)
        if player.has_mutation(mutation_id)
    )
    score = 1 + 3 * math.log10(1 + toxins) + 1.5 * toxic_mutations
    return min(10.0, max(1.0, score))


def build_default_mycovariants(balance: GameBalance) -> MycovariantRepository:
    """Build the standard repository.

    Descriptions quote the balance constants in force, so the repository
    is rebuilt per game like the mutation catalog.
    """
    b = balance
    i = MycovariantId
    c = MycovariantCategory

    definitions = [
        Mycovariant(
            i.PLASMID_BOUNTY, "Plasmid Bounty",
            f"Immediately grants {b.plasmid_bounty_points} mutation points.",
            c.ECONOMY, _fixed(5.0),
            on_acquire=effects.plasmid_bounty,
            is_universal=True, prioritize_early=True,
        ),
        Mycovariant(
            i.MYCELIAL_BASTION, "Mycelial Bastion",
            f"Makes {b.mycelial_bastion_cells} random living cells resistant.",
            c.RESISTANCE, _fixed(4.0),
            on_acquire=effects.mycelial_bastion,
            is_universal=True,
        ),
        Mycovariant(
            i.BALLISTOSPORE_DISCHARGE, "Ballistospore Discharge",
            f"Drops {b.ballistospore_discharge_spores} toxins beside the "
            "strongest rivals.",
            c.FUNGICIDE, _fixed(MODERATE_PRIORITY),
            on_acquire=effects.ballistospore_discharge,
            is_universal=True,
        ),
    ]
    for mycovariant_id, heading in (
        (i.JETTING_MYCELIUM_NORTH, "North"),
        (i.JETTING_MYCELIUM_EAST, "East"),
        (i.JETTING_MYCELIUM_SOUTH, "South"),
        (i.JETTING_MYCELIUM_WEST, "West"),
    ):
        definitions.append(
            Mycovariant(
                mycovariant_id, f"Jetting Mycelium ({heading})",
                f"Shoots {b.jetting_mycelium_living_length} living cells "
                f"{heading.lower()} from one cell, then a cone of toxins.",
                c.GROWTH,
                _jetting_score(effects.JET_DIRECTIONS[mycovariant_id]),
                on_acquire=effects.jetting_mycelium,
            ),
        )
    definitions += [
        Mycovariant(
            i.NEUTRALIZING_MANTLE, "Neutralizing Mantle",
            "Enemy toxins placed next to your cells may fizzle.",
            c.RESISTANCE, _fixed(MODERATE_PRIORITY),
        ),
        Mycovariant(
            i.HYPHAL_RESISTANCE_TRANSFER, "Hyphal Resistance Transfer",
            "After growth, resistant cells may harden their neighbours.",
            c.RESISTANCE, _early_or_late(5.0, 3.0),
            synergy_with=(i.MYCELIAL_BASTION, i.SURGICAL_INOCULATION),
        ),
        Mycovariant(
            i.ENDURING_TOXAPHORES, "Enduring Toxaphores",
            f"Your toxins last {b.enduring_toxaphores_new_toxin_extension} "
            "cycles longer; existing ones are extended too.",
            c.FUNGICIDE, _toxaphores_score,
            on_acquire=effects.enduring_toxaphores,
        ),
        Mycovariant(
            i.NECROPHORIC_ADAPTATION, "Necrophoric Adaptation",
            "A dying cell may revive an adjacent dead cell.",
            c.RECLAMATION, _necrophoric_score,
            synergy_with=(i.RECLAMATION_RHIZOMORPHS,),
        ),
        Mycovariant(
            i.RECLAMATION_RHIZOMORPHS, "Reclamation Rhizomorphs",
            "A failed attempt to revive a dead cell may be retried once.",
            c.RECLAMATION, _early_or_late(6.0, 3.0),
            synergy_with=(i.NECROPHORIC_ADAPTATION,),
        ),
        Mycovariant(
            i.SURGICAL_INOCULATION, "Surgical Inoculation",
            "Plants one resistant cell deep in enemy territory.",
            c.RESISTANCE, _fixed(MODERATE_PRIORITY),
            on_acquire=effects.surgical_inoculation,
        ),
        Mycovariant(
            i.PERIMETER_PROLIFERATOR, "Perimeter Proliferator",
            f"Growth from within {b.perimeter_proliferator_edge_distance} tiles "
            "of the edge is "
            f"{b.perimeter_proliferator_growth_multiplier:g}x as likely.",
            c.GROWTH, _perimeter_score,
        ),
    ]
    return MycovariantRepository.build(definitions)
