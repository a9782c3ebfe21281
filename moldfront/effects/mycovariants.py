"""Mycovariant effects.

Acquire effects run once, when a player drafts the mycovariant; the AI
picks where they land.  Passive handlers are subscribed on the event bus
like mutation effects and do nothing for players that do not hold the
mycovariant.  ``try_reclaim`` is shared by every effect that revives
dead cells, so Reclamation Rhizomorphs can grant its second attempt.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from moldfront.board.cell import DeathReason, GrowthSource
from moldfront.mycovariants.mycovariant import MycovariantId

if TYPE_CHECKING:
    from moldfront.board.tile import Tile
    from moldfront.events.bus import CellDeath, PostGrowthPhase, ToxinPlaced
    from moldfront.mycovariants.mycovariant import PlayerMycovariant
    from moldfront.players.player import Player
    from moldfront.simulation.context import GameContext

JET_DIRECTIONS: dict[int, tuple[int, int]] = {
    MycovariantId.JETTING_MYCELIUM_NORTH: (0, -1),
    MycovariantId.JETTING_MYCELIUM_EAST: (1, 0),
    MycovariantId.JETTING_MYCELIUM_SOUTH: (0, 1),
    MycovariantId.JETTING_MYCELIUM_WEST: (-1, 0),
}


def try_reclaim(
    ctx: GameContext,
    player: Player,
    tile_id: int,
    chance: float,
    source: GrowthSource,
) -> bool:
    """Roll ``chance`` to revive a dead cell for ``player``.

    A holder of Reclamation Rhizomorphs whose roll fails may get one more
    roll at the same chance.

    Returns:
        True if the cell was revived.
    """
    board = ctx.board
    if ctx.rng.random() < chance:
        return board.reclaim(tile_id, player.player_id, source)
    held = player.get_mycovariant(MycovariantId.RECLAMATION_RHIZOMORPHS)
    if held is None:
        return False
    if ctx.rng.random() >= ctx.balance.reclamation_rhizomorphs_second_attempt_chance:
        return False
    if ctx.rng.random() >= chance:
        return False
    if not board.reclaim(tile_id, player.player_id, source):
        return False
    held.increment("second_attempts")
    ctx.observer.record_effect(player.player_id, "reclamation_rhizomorphs")
    return True


# -- Acquire effects -----------------------------------------------------


def plasmid_bounty(ctx: GameContext, player: Player, held: PlayerMycovariant) -> None:
    points = ctx.balance.plasmid_bounty_points
    player.mutation_points += points
    held.increment("points", points)
    ctx.observer.record_mutation_point_income(player.player_id, points)


def mycelial_bastion(
    ctx: GameContext,
    player: Player,
    held: PlayerMycovariant,
) -> None:
    """Make a handful of random living cells permanently resistant."""
    board = ctx.board
    candidates = [
        c for c in board.living_cells_of(player.player_id) if not c.is_resistant
    ]
    count = min(len(candidates), ctx.balance.mycelial_bastion_cells)
    if count <= 0:
        return
    chosen = ctx.rng.choice(len(candidates), size=count, replace=False)
    fortified = sum(
        1 for i in chosen if board.make_resistant(candidates[int(i)].tile_id)
    )
    held.increment("resistant_cells", fortified)
    ctx.observer.record_effect(player.player_id, "mycelial_bastion", fortified)


def ballistospore_discharge(
    ctx: GameContext,
    player: Player,
    held: PlayerMycovariant,
) -> None:
    """Drop toxins next to the strongest rivals.

    Targets are empty tiles orthogonally adjacent to living cells of the
    rivals with the most living cells.  When there are too few of those,
    random empty tiles make up the rest.
    """
    board = ctx.board
    balance = ctx.balance
    empty = board.empty_tiles()
    spores = min(balance.ballistospore_discharge_spores, len(empty))
    if spores <= 0:
        return
    counts = board.living_counts()
    rivals = sorted(
        (pid for pid in ctx.players if pid != player.player_id),
        key=lambda pid: (-counts.get(pid, 0), pid),
    )
    targeted = set(rivals[: balance.ballistospore_discharge_target_players])
    near = [
        tile
        for tile in empty
        if any(
            n.cell is not None and n.cell.is_alive and n.cell.owner_id in targeted
            for n in board.orthogonal_neighbours(tile.tile_id)
        )
    ]
    if len(near) >= spores:
        picks = ctx.rng.choice(len(near), size=spores, replace=False)
        chosen = [near[int(i)] for i in picks]
    else:
        near_ids = {t.tile_id for t in near}
        rest = [t for t in empty if t.tile_id not in near_ids]
        picks = ctx.rng.choice(len(rest), size=spores - len(near), replace=False)
        chosen = near + [rest[int(i)] for i in picks]

    expiration = ctx.toxin_expiration(
        balance.ballistospore_discharge_toxin_duration,
        player,
    )
    dropped = sum(
        1
        for tile in chosen
        if board.convert_to_toxin(
            tile.tile_id,
            expiration,
            player.player_id,
            source=GrowthSource.BALLISTOSPORE,
        )
    )
    held.increment("drops", dropped)
    ctx.observer.record_spore_drop(
        player.player_id,
        GrowthSource.BALLISTOSPORE,
        dropped,
    )


def jet_tiles(
    ctx: GameContext,
    origin: Tile,
    direction: tuple[int, int],
) -> tuple[list[Tile], list[Tile]]:
    """Tiles hit by a jet from ``origin``, clipped to the board.

    Returns:
        The living line (straight ahead of the origin) and the toxin
        cone that fans out beyond its end, section by section.
    """
    board = ctx.board
    balance = ctx.balance
    dx, dy = direction
    side_x, side_y = -dy, dx
    length = balance.jetting_mycelium_living_length
    line = [
        board.tile_at(origin.x + dx * step, origin.y + dy * step)
        for step in range(1, length + 1)
        if board.in_bounds(origin.x + dx * step, origin.y + dy * step)
    ]
    cone = []
    distance = length
    for section_length, width in balance.jetting_mycelium_cone:
        half = width // 2
        for _ in range(section_length):
            distance += 1
            for offset in range(-half, half + 1):
                x = origin.x + dx * distance + side_x * offset
                y = origin.y + dy * distance + side_y * offset
                if board.in_bounds(x, y):
                    cone.append(board.tile_at(x, y))
    return line, cone


def jetting_placement_score(
    ctx: GameContext,
    player: Player,
    origin: Tile,
    direction: tuple[int, int],
) -> int:
    """Rate a jet: infested and poisoned enemies up, wasted own cells down."""
    line, cone = jet_tiles(ctx, origin, direction)
    own = player.player_id
    score = 0
    for tile in line:
        cell = tile.cell
        if cell is None or cell.is_resistant:
            continue
        if cell.is_alive:
            score += -2 if cell.owner_id == own else 5
        elif cell.is_dead and cell.owner_id == own:
            score += 2
    for tile in cone:
        cell = tile.cell
        if cell is None or not cell.is_alive or cell.is_resistant:
            continue
        score += -2 if cell.owner_id == own else 3
    return max(0, score)


def best_jet_origin(
    ctx: GameContext,
    player: Player,
    direction: tuple[int, int],
) -> tuple[Tile | None, int]:
    """The own living cell whose jet scores highest; ties go to the lowest id."""
    board = ctx.board
    best: Tile | None = None
    best_score = -1
    for cell in board.living_cells_of(player.player_id):
        origin = board.tile(cell.tile_id)
        score = jetting_placement_score(ctx, player, origin, direction)
        if score > best_score:
            best, best_score = origin, score
    return best, max(best_score, 0)


def jetting_mycelium(
    ctx: GameContext,
    player: Player,
    held: PlayerMycovariant,
) -> None:
    """Shoot a line of living cells, then a cone of toxins beyond it.

    The line grows onto empty tiles and takes over anything else except
    the player's own living cells and resistant cells.  The cone kills
    and toxifies enemy cells and turns empty or dead tiles into toxins;
    the player's own living cells are spared.
    """
    direction = JET_DIRECTIONS[held.mycovariant.mycovariant_id]
    origin, _ = best_jet_origin(ctx, player, direction)
    if origin is None:
        return
    board = ctx.board
    own = player.player_id
    source = GrowthSource.JETTING_MYCELIUM
    line, cone = jet_tiles(ctx, origin, direction)

    grown = 0
    for tile in line:
        cell = tile.cell
        if cell is None:
            if board.place_cell(tile.tile_id, own, source=source):
                grown += 1
        elif not (cell.is_alive and cell.owner_id == own):
            result = board.takeover(tile.tile_id, own, allow_toxin=True, source=source)
            if result.succeeded:
                grown += 1

    expiration = ctx.toxin_expiration(
        ctx.balance.jetting_mycelium_toxin_duration,
        player,
    )
    poisoned = 0
    for tile in cone:
        cell = tile.cell
        if cell is not None and cell.is_alive:
            if cell.owner_id == own:
                continue
            if board.kill_and_toxify(
                tile.tile_id,
                expiration,
                DeathReason.JETTING_MYCELIUM,
                own,
                source=source,
            ):
                poisoned += 1
        elif board.convert_to_toxin(tile.tile_id, expiration, own, source=source):
            poisoned += 1

    held.increment("grown", grown)
    held.increment("poisoned", poisoned)
    ctx.observer.record_effect(own, "jetting_mycelium", grown + poisoned)


def surgical_inoculation(
    ctx: GameContext,
    player: Player,
    held: PlayerMycovariant,
) -> None:
    """Plant one resistant cell, inside enemy territory when possible.

    The target is the enemy cell with the most empty or dead orthogonal
    neighbours; with no enemy cell to take, a random empty tile is used.
    """
    board = ctx.board
    own = player.player_id
    source = GrowthSource.SURGICAL_INOCULATION
    best_open = -1
    targets: list[int] = []
    for cell in board.living_cells():
        if cell.owner_id in (own, None) or cell.is_resistant:
            continue
        open_count = sum(
            1
            for t in board.orthogonal_neighbours(cell.tile_id)
            if t.cell is None or t.cell.is_dead
        )
        if open_count > best_open:
            best_open, targets = open_count, [cell.tile_id]
        elif open_count == best_open:
            targets.append(cell.tile_id)

    if targets:
        tile_id = targets[int(ctx.rng.integers(len(targets)))]
        if not board.takeover(tile_id, own, source=source).succeeded:
            return
    else:
        empty = board.empty_tiles()
        if not empty:
            return
        tile_id = empty[int(ctx.rng.integers(len(empty)))].tile_id
        if not board.place_cell(tile_id, own, source=source):
            return
    board.make_resistant(tile_id)
    held.increment("resistant_cells")
    ctx.observer.record_effect(own, "surgical_inoculation")


def enduring_toxaphores(
    ctx: GameContext,
    player: Player,
    held: PlayerMycovariant,
) -> None:
    """Extend every toxin the player already owns.

    Toxins placed later are extended by ``GameContext.toxin_expiration``.
    """
    board = ctx.board
    rounds = math.ceil(
        ctx.balance.enduring_toxaphores_existing_toxin_extension
        / board.growth_cycles_per_round,
    )
    extended = sum(
        1
        for cell in board.toxin_cells()
        if cell.owner_id == player.player_id
        and board.extend_toxin(cell.tile_id, rounds)
    )
    held.increment("extended_toxins", extended)
    ctx.observer.record_effect(player.player_id, "enduring_toxaphores", extended)


# -- Passive handlers ----------------------------------------------------


def neutralizing_mantle(ctx: GameContext, event: ToxinPlaced) -> None:
    """Let a holder next to the tile cancel an enemy toxin."""
    if event.neutralized:
        return
    neighbours = ctx.board.orthogonal_neighbours(event.tile_id)
    for player_id, player in sorted(ctx.players.items()):
        if player_id == event.owner_id:
            continue
        held = player.get_mycovariant(MycovariantId.NEUTRALIZING_MANTLE)
        if held is None:
            continue
        if not any(
            t.cell is not None and t.cell.is_alive and t.cell.owner_id == player_id
            for t in neighbours
        ):
            continue
        if ctx.rng.random() < ctx.balance.neutralizing_mantle_chance:
            event.neutralized = True
            held.increment("neutralized")
            ctx.observer.record_effect(player_id, "neutralizing_mantle")
            return


def hyphal_resistance_transfer(ctx: GameContext, event: PostGrowthPhase) -> None:
    """Spread resistance from resistant cells to their own neighbours."""
    board = ctx.board
    chance = ctx.balance.hyphal_resistance_transfer_chance
    for player in ctx.players.values():
        held = player.get_mycovariant(MycovariantId.HYPHAL_RESISTANCE_TRANSFER)
        if held is None:
            continue
        own = player.player_id
        anchors = [c.tile_id for c in board.living_cells_of(own) if c.is_resistant]
        seen: set[int] = set()
        transferred = 0
        for tile_id in anchors:
            for tile in board.all_neighbours(tile_id):
                cell = tile.cell
                if cell is None or not cell.is_alive or cell.is_resistant:
                    continue
                if cell.owner_id != own or tile.tile_id in seen:
                    continue
                seen.add(tile.tile_id)
                if ctx.rng.random() < chance and board.make_resistant(tile.tile_id):
                    transferred += 1
        if transferred:
            held.increment("resistant_cells", transferred)
            ctx.observer.record_effect(
                own,
                "hyphal_resistance_transfer",
                transferred,
            )


def necrophoric_adaptation(ctx: GameContext, event: CellDeath) -> None:
    """A dying cell may revive one dead cell orthogonally next to it."""
    player = ctx.player(event.owner_id)
    if player is None:
        return
    held = player.get_mycovariant(MycovariantId.NECROPHORIC_ADAPTATION)
    if held is None:
        return
    options = [
        t.tile_id
        for t in ctx.board.orthogonal_neighbours(event.tile_id)
        if t.cell is not None and t.cell.is_reclaimable
    ]
    if not options:
        return
    tile_id = options[int(ctx.rng.integers(len(options)))]
    if try_reclaim(
        ctx,
        player,
        tile_id,
        ctx.balance.necrophoric_adaptation_reclaim_chance,
        GrowthSource.NECROPHORIC_ADAPTATION,
    ):
        held.increment("reclaimed")
        ctx.observer.record_effect(player.player_id, "necrophoric_adaptation")
