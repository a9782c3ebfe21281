"""Cellular-resilience effects triggered by deaths, stalls and toxin expiry."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from moldfront.board.cell import GrowthSource
from moldfront.mutations.kinds import EffectKind, MutationId

if TYPE_CHECKING:
    from moldfront.board.tile import Tile
    from moldfront.events.bus import CellDeath, GrowthFailed, ToxinExpired
    from moldfront.players.player import Player
    from moldfront.simulation.context import GameContext


def necrosporulation(ctx: GameContext, event: CellDeath) -> None:
    """A dying cell may release a spore onto a random empty tile."""
    owner = ctx.player(event.owner_id)
    if owner is None:
        return
    chance = owner.get_mutation_effect(EffectKind.SPORE_ON_DEATH_CHANCE)
    if chance <= 0 or ctx.rng.random() >= chance:
        return
    empty = ctx.board.empty_tiles()
    if not empty:
        return
    target = empty[int(ctx.rng.integers(len(empty)))]
    if ctx.board.place_cell(
        target.tile_id,
        owner.player_id,
        source=GrowthSource.NECROSPORULATION,
    ):
        ctx.observer.record_spore_drop(
            owner.player_id,
            GrowthSource.NECROSPORULATION,
            1,
        )


def _dead_enemy_neighbours(
    ctx: GameContext,
    tile_id: int,
    player: Player,
    exclude: set[int],
) -> list[Tile]:
    tiles = [
        t
        for t in ctx.board.orthogonal_neighbours(tile_id)
        if t.cell is not None
        and t.cell.is_dead
        and t.cell.owner_id is not None
        and t.cell.owner_id != player.player_id
        and t.tile_id not in exclude
    ]
    ctx.rng.shuffle(tiles)
    return tiles


def necrohyphal_infiltration(ctx: GameContext, event: GrowthFailed) -> None:
    """Overrun an adjacent dead enemy cell, then cascade through the dead."""
    if event.handled:
        return
    player = ctx.player(event.owner_id)
    if player is None:
        return
    level = player.get_mutation_level(MutationId.NECROHYPHAL_INFILTRATION)
    if level <= 0:
        return
    balance = ctx.balance
    base_chance = level * balance.necrohyphal_infiltration_chance_per_level
    cascade_chance = level * balance.necrohyphal_infiltration_cascade_chance_per_level
    board = ctx.board

    for tile in _dead_enemy_neighbours(ctx, event.tile_id, player, set()):
        if ctx.rng.random() >= base_chance:
            continue
        if not board.reclaim(
            tile.tile_id,
            player.player_id,
            GrowthSource.NECROHYPHAL_INFILTRATION,
        ):
            continue
        event.handled = True
        reclaimed = {tile.tile_id}
        frontier = deque([tile.tile_id])
        while frontier:
            current = frontier.popleft()
            for nxt in _dead_enemy_neighbours(ctx, current, player, reclaimed):
                if ctx.rng.random() < cascade_chance and board.reclaim(
                    nxt.tile_id,
                    player.player_id,
                    GrowthSource.NECROHYPHAL_INFILTRATION,
                ):
                    reclaimed.add(nxt.tile_id)
                    frontier.append(nxt.tile_id)
        ctx.observer.record_effect(
            player.player_id,
            "necrohyphal_infiltration",
            len(reclaimed),
        )
        return


def catabolic_rebirth(ctx: GameContext, event: ToxinExpired) -> None:
    """Dead cells next to an expiring toxin may come back to life."""
    board = ctx.board
    for tile in board.orthogonal_neighbours(event.tile_id):
        cell = tile.cell
        if cell is None or not cell.is_dead:
            continue
        owner = ctx.player(cell.owner_id)
        if owner is None:
            continue
        chance = owner.get_mutation_effect(EffectKind.TOXIN_EXPIRATION_RESURRECTION)
        if chance <= 0 or ctx.rng.random() >= chance:
            continue
        if board.reclaim(tile.tile_id, owner.player_id, GrowthSource.CATABOLIC_REBIRTH):
            ctx.observer.record_effect(owner.player_id, "catabolic_rebirth")
