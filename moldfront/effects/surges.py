"""Mycelial-surge effects; each acts only while its surge window is open."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from moldfront.board.cell import GrowthSource
from moldfront.mutations.kinds import MutationId

if TYPE_CHECKING:
    from moldfront.board.tile import Tile
    from moldfront.events.bus import PostGrowthPhase, PreGrowthPhase
    from moldfront.players.player import Player
    from moldfront.simulation.context import GameContext


def chitin_fortification(ctx: GameContext, event: PreGrowthPhase) -> None:
    """Make ``level`` random living cells permanently resistant."""
    board = ctx.board
    for player in ctx.players.values():
        level = player.surge_level(MutationId.CHITIN_FORTIFICATION)
        if level <= 0:
            continue
        candidates = [
            c for c in board.living_cells_of(player.player_id) if not c.is_resistant
        ]
        wanted = level * ctx.balance.chitin_fortification_cells_per_level
        count = min(len(candidates), wanted)
        if count <= 0:
            continue
        chosen = ctx.rng.choice(len(candidates), size=count, replace=False)
        fortified = sum(
            1 for i in chosen if board.make_resistant(candidates[int(i)].tile_id)
        )
        ctx.observer.record_effect(player.player_id, "chitin_fortification", fortified)


def vector_path(
    origin: Tile,
    centre: tuple[int, int],
    length: int,
) -> list[tuple[int, int]]:
    """Grid points of a straight line of ``length`` steps toward ``centre``.

    The line is walked from the middle of the origin tile in steps of at
    most one tile per axis, so it may continue past the centre.  An
    origin on the centre has no direction and yields no points.
    """
    dx = centre[0] - origin.x
    dy = centre[1] - origin.y
    steps = max(abs(dx), abs(dy))
    if steps == 0:
        return []
    step_x, step_y = dx / steps, dy / steps
    x, y = origin.x + 0.5, origin.y + 0.5
    points = []
    for _ in range(length):
        x += step_x
        y += step_y
        points.append((math.floor(x), math.floor(y)))
    return points


def _vector_origin(
    ctx: GameContext,
    player: Player,
    centre: tuple[int, int],
    length: int,
) -> tuple[Tile, list[tuple[int, int]]] | None:
    """Pick the origin whose line meets the fewest own and most enemy cells.

    Ties on both counts go to the origin nearest the centre.  When every
    line crosses own cells, the pick is random among the best-ranked of
    the first ``hyphal_vectoring_candidate_cells_to_check`` candidates.
    """
    board = ctx.board
    ranked = []
    for cell in board.living_cells_of(player.player_id):
        origin = board.tile(cell.tile_id)
        path = vector_path(origin, centre, length)
        if not path:
            continue
        friendly = enemy = 0
        for x, y in path:
            if not board.in_bounds(x, y):
                continue
            other = board.tile_at(x, y).cell
            if other is None or not other.is_alive:
                continue
            if other.owner_id == player.player_id:
                friendly += 1
            else:
                enemy += 1
        distance = math.hypot(centre[0] - origin.x, centre[1] - origin.y)
        ranked.append((friendly, -enemy, distance, origin, path))
    if not ranked:
        return None
    ranked.sort(key=lambda entry: entry[:3])
    best = ranked[0]
    if best[0] > 0:
        limit = ctx.balance.hyphal_vectoring_candidate_cells_to_check
        tied = [e for e in ranked[:limit] if e[:2] == best[:2]]
        best = tied[int(ctx.rng.integers(len(tied)))]
    return best[3], best[4]


def hyphal_vectoring(ctx: GameContext, event: PostGrowthPhase) -> None:
    """Project a straight line of cells from the best origin toward the centre.

    Own living cells on the line are stepped over but still use up
    length; empty tiles are colonized, and anything else goes through
    ``Board.takeover`` with toxins allowed.
    """
    board = ctx.board
    balance = ctx.balance
    centre = (board.width // 2, board.height // 2)
    for player in ctx.players.values():
        level = player.surge_level(MutationId.HYPHAL_VECTORING)
        if level <= 0:
            continue
        length = (
            balance.hyphal_vectoring_base_tiles
            + level * balance.hyphal_vectoring_tiles_per_level
        )
        chosen = _vector_origin(ctx, player, centre, length)
        if chosen is None:
            continue
        _, path = chosen

        outcomes: dict[str, int] = {}
        for x, y in path:
            if not board.in_bounds(x, y):
                continue
            target = board.tile_at(x, y)
            cell = target.cell
            if cell is not None and cell.is_alive and cell.owner_id == player.player_id:
                continue
            if cell is None:
                board.place_cell(
                    target.tile_id,
                    player.player_id,
                    source=GrowthSource.HYPHAL_VECTORING,
                )
                key = "colonized"
            else:
                result = board.takeover(
                    target.tile_id,
                    player.player_id,
                    allow_toxin=True,
                    source=GrowthSource.HYPHAL_VECTORING,
                )
                key = result.name.lower()
            outcomes[key] = outcomes.get(key, 0) + 1
        for key, count in outcomes.items():
            ctx.observer.record_effect(
                player.player_id,
                f"hyphal_vectoring_{key}",
                count,
            )


def _mimetic_targets(ctx: GameContext, player: Player) -> list[Player]:
    """Opponents far enough ahead to be worth imitating."""
    board = ctx.board
    balance = ctx.balance
    counts = board.living_counts()
    own = counts.get(player.player_id, 0)
    advantage = 1.0 + balance.mimetic_resilience_min_cell_advantage
    result = []
    for other in ctx.players.values():
        if other.player_id == player.player_id:
            continue
        theirs = counts.get(other.player_id, 0)
        if theirs <= 0 or (own > 0 and theirs < own * advantage):
            continue
        control = len(board.cells_owned_by(other.player_id)) / board.total_tiles
        if control < balance.mimetic_resilience_min_board_control:
            continue
        result.append(other)
    return result


def _pick_mimetic_tile(ctx: GameContext, player: Player, source: Tile) -> Tile | None:
    """Choose a neighbour of ``source``: enemy living, enemy toxin, empty, dead."""
    enemy_living, enemy_toxin, empty, dead = [], [], [], []
    for tile in ctx.board.orthogonal_neighbours(source.tile_id):
        cell = tile.cell
        if cell is None:
            empty.append(tile)
        elif cell.is_alive:
            if not cell.is_resistant and cell.owner_id != player.player_id:
                enemy_living.append(tile)
        elif cell.is_toxin:
            if cell.owner_id != player.player_id:
                enemy_toxin.append(tile)
        else:
            dead.append(tile)
    for group in (enemy_living, enemy_toxin, empty, dead):
        if group:
            return group[int(ctx.rng.integers(len(group)))]
    return None


def mimetic_resilience(ctx: GameContext, event: PostGrowthPhase) -> None:
    """Copy leading rivals' resistant cells into tiles beside them."""
    board = ctx.board
    balance = ctx.balance
    cap = balance.mimetic_resilience_max_placements_per_opponent
    decay = balance.mimetic_resilience_chance_decay_per_success
    for player in ctx.players.values():
        if not player.is_surge_active(MutationId.MIMETIC_RESILIENCE):
            continue
        for rival in _mimetic_targets(ctx, player):
            sources = [
                c for c in board.living_cells_of(rival.player_id) if c.is_resistant
            ]
            ctx.rng.shuffle(sources)
            successes = 0
            for source in sources:
                chance = 1.0 - decay * successes
                if successes >= cap or chance <= 0:
                    break
                target = _pick_mimetic_tile(ctx, player, board.tile(source.tile_id))
                if target is None or ctx.rng.random() > chance:
                    continue
                if target.cell is None:
                    placed = board.place_cell(
                        target.tile_id,
                        player.player_id,
                        source=GrowthSource.MIMETIC_RESILIENCE,
                        resistant=True,
                    )
                else:
                    result = board.takeover(
                        target.tile_id,
                        player.player_id,
                        allow_toxin=True,
                        source=GrowthSource.MIMETIC_RESILIENCE,
                    )
                    placed = result.succeeded
                    if placed:
                        board.make_resistant(target.tile_id)
                if placed:
                    successes += 1
            if successes:
                ctx.observer.record_effect(
                    player.player_id,
                    "mimetic_resilience",
                    successes,
                )
