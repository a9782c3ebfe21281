"""Growth resolver — one growth sub-cycle over every living cell.

Cells act in a single shuffled pass, so players grow logically at the
same time without any ordering bias.  Each source cell rolls against its
open neighbours (orthogonal at the base rate plus growth bonuses,
diagonal only through tendrils) and produces at most one new cell.  A
cell that grew nothing, including one with no open neighbour at all,
publishes ``GrowthFailed`` so that stall-triggered effects can act; if
none does, the failure counts toward the owner's tally for the round.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from moldfront.board.cell import GrowthSource
from moldfront.events.bus import GrowthFailed
from moldfront.mutations.kinds import DIAGONAL_EFFECTS, EffectKind, MutationId
from moldfront.mycovariants.mycovariant import MycovariantId

if TYPE_CHECKING:
    from moldfront.board.cell import Cell
    from moldfront.players.player import Player
    from moldfront.simulation.context import GameContext

logger = logging.getLogger(__name__)

GrowthAttempt = tuple[int, float, GrowthSource]


def near_edge(ctx: GameContext, tile_id: int) -> bool:
    """Whether a tile lies within the Perimeter Proliferator edge band."""
    board = ctx.board
    tile = board.tile(tile_id)
    distance = ctx.balance.perimeter_proliferator_edge_distance
    return (
        tile.x < distance
        or tile.y < distance
        or board.width - tile.x - 1 < distance
        or board.height - tile.y - 1 < distance
    )


def growth_attempts(
    ctx: GameContext,
    owner: Player,
    tile_id: int,
) -> list[GrowthAttempt]:
    """List every empty neighbour a cell could grow into, with its chance.

    A holder of Perimeter Proliferator growing from near the board edge
    has every chance multiplied.

    Args:
        ctx: Game context.
        owner: Owner of the source cell.
        tile_id: Tile of the source cell.

    Returns:
        ``(tile_id, chance, source)`` tuples, orthogonal tiles first.
    """
    board = ctx.board
    balance = ctx.balance
    orthogonal_chance = (
        balance.base_growth_chance
        + owner.get_mutation_effect(EffectKind.GROWTH_CHANCE)
        + owner.surge_level(MutationId.HYPHAL_SURGE)
        * balance.hyphal_surge_effect_per_level
    )
    attempts: list[GrowthAttempt] = [
        (tile.tile_id, orthogonal_chance, GrowthSource.HYPHAL_OUTGROWTH)
        for tile in board.orthogonal_neighbours(tile_id)
        if tile.cell is None
    ]
    induction = owner.get_mutation_effect(EffectKind.TENDRIL_DIRECTIONAL_MULTIPLIER)
    multiplier = 1.0 + induction
    for offset, tile in board.diagonal_neighbours(tile_id):
        if tile.cell is not None:
            continue
        chance = owner.get_mutation_effect(DIAGONAL_EFFECTS[offset]) * multiplier
        if chance > 0:
            attempts.append((tile.tile_id, chance, GrowthSource.TENDRIL_OUTGROWTH))
    perimeter = owner.has_mycovariant(MycovariantId.PERIMETER_PROLIFERATOR)
    if perimeter and near_edge(ctx, tile_id):
        boost = balance.perimeter_proliferator_growth_multiplier
        attempts = [(t, c * boost, s) for t, c, s in attempts]
    return attempts


def _grow_from(ctx: GameContext, cell: Cell, owner: Player) -> bool:
    attempts = growth_attempts(ctx, owner, cell.tile_id)
    order = ctx.rng.permutation(len(attempts))
    for index in order:
        tile_id, chance, source = attempts[int(index)]
        if ctx.rng.random() < chance and ctx.board.place_cell(
            tile_id,
            owner.player_id,
            source=source,
        ):
            return True
    failed = ctx.events.publish(
        GrowthFailed(
            tile_id=cell.tile_id,
            owner_id=owner.player_id,
            candidate_tile_ids=[attempts[int(i)][0] for i in order],
            round=ctx.board.current_round,
        ),
    )
    if not failed.handled:
        ctx.round_context.failed_growths[owner.player_id] += 1
    return False


def run_growth_cycle(ctx: GameContext) -> int:
    """Run one growth sub-cycle.

    Args:
        ctx: Game context.

    Returns:
        Number of living cells whose growth roll succeeded.
    """
    board = ctx.board
    sources = board.living_cells()
    grown = 0
    for index in ctx.rng.permutation(len(sources)):
        cell = sources[int(index)]
        # Earlier growth in this pass may have killed or moved the cell.
        if not cell.is_alive or board.cell(cell.tile_id) is not cell:
            continue
        owner = ctx.player(cell.owner_id)
        if owner is None:
            logger.warning(
                "Skipping growth for cell %d: unknown owner %s",
                cell.tile_id,
                cell.owner_id,
            )
            continue
        if _grow_from(ctx, cell, owner):
            grown += 1
    board.increment_growth_cycle()
    logger.debug(
        "Round %d cycle %d: %d cells grew",
        board.current_round,
        board.current_growth_cycle,
        grown,
    )
    return grown
