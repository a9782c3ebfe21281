"""Growth-category effects: Regenerative Hyphae and Creeping Mold."""

from __future__ import annotations

from typing import TYPE_CHECKING

from moldfront.board.cell import GrowthSource
from moldfront.effects.mycovariants import try_reclaim
from moldfront.mutations.kinds import EffectKind

if TYPE_CHECKING:
    from moldfront.events.bus import GrowthFailed, PostGrowthPhase
    from moldfront.simulation.context import GameContext


def regenerative_hyphae(ctx: GameContext, event: PostGrowthPhase) -> None:
    """Revive own dead cells orthogonally adjacent to own living cells."""
    board = ctx.board
    attempted = ctx.round_context.regenerated_tiles
    for player in ctx.players.values():
        chance = player.get_mutation_effect(EffectKind.RECLAIM_OWN_DEAD)
        if chance <= 0:
            continue
        revived = 0
        for cell in board.living_cells_of(player.player_id):
            for tile in board.orthogonal_neighbours(cell.tile_id):
                dead = tile.cell
                if dead is None or not dead.is_dead:
                    continue
                if dead.owner_id != player.player_id:
                    continue
                if tile.tile_id in attempted:
                    continue
                attempted.add(tile.tile_id)
                if try_reclaim(
                    ctx,
                    player,
                    tile.tile_id,
                    chance,
                    GrowthSource.REGENERATIVE_HYPHAE,
                ):
                    revived += 1
        if revived:
            ctx.observer.record_effect(player.player_id, "regenerative_hyphae", revived)


def _open_neighbours(ctx: GameContext, tile_id: int) -> int:
    return sum(1 for t in ctx.board.orthogonal_neighbours(tile_id) if t.cell is None)


def creeping_mold(ctx: GameContext, event: GrowthFailed) -> None:
    """Let a stalled cell creep onto a more open candidate tile."""
    if event.handled:
        return
    player = ctx.player(event.owner_id)
    if player is None:
        return
    chance = player.get_mutation_effect(EffectKind.CREEPING_MOVEMENT)
    if chance <= 0 or len(player.controlled_tile_ids) <= 1:
        return
    if ctx.rng.random() >= chance:
        return
    board = ctx.board
    current_open = _open_neighbours(ctx, event.tile_id)
    options = []
    for tile_id in event.candidate_tile_ids:
        tile = board.tile(tile_id)
        if tile.cell is not None:
            continue
        target_open = _open_neighbours(ctx, tile_id)
        if target_open >= 2 and target_open >= current_open:
            options.append(tile_id)
    if not options:
        return
    target = options[int(ctx.rng.integers(len(options)))]
    if board.relocate_cell(event.tile_id, target):
        event.handled = True
        ctx.observer.record_effect(player.player_id, "creeping_mold")

