"""Fungicide effects — toxins, poison auras and kill follow-ups.

Decay-phase handlers place toxins and poison neighbours before the decay
roll; death handlers react to the kills those toxins cause.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from moldfront.board.cell import DeathReason, GrowthSource
from moldfront.mutations.kinds import EffectKind, MutationId

if TYPE_CHECKING:
    from moldfront.board.tile import Tile
    from moldfront.events.bus import CellDeath, DecayPhase
    from moldfront.players.player import Player
    from moldfront.simulation.context import GameContext

_CASCADE_REASONS = frozenset(
    {
        DeathReason.PUTREFACTIVE_MYCOTOXIN,
        DeathReason.PUTREFACTIVE_CASCADE,
        DeathReason.PUTREFACTIVE_CASCADE_POISON,
    },
)


# -- Decay phase ---------------------------------------------------------


def sporocidal_bloom(ctx: GameContext, event: DecayPhase) -> None:
    """Scatter toxic spores over tiles the player does not hold.

    Living targets are killed and toxified; anything else becomes (or
    is refreshed as) a toxin.  At max level a quarter of the empty tiles
    are dropped from the target pool so more spores land on enemies.
    """
    board = ctx.board
    balance = ctx.balance
    for player in ctx.players.values():
        level = player.get_mutation_level(MutationId.SPOROCIDAL_BLOOM)
        if level <= 0:
            continue
        living = len(board.living_cells_of(player.player_id))
        per_level = balance.sporocidal_bloom_effect_per_level
        spores = math.floor(living * level * per_level)
        if spores <= 0:
            continue
        targets = [
            t
            for t in board.tiles
            if t.cell is None or t.cell.owner_id != player.player_id
        ]
        if level >= balance.sporocidal_bloom_max_level:
            empty = [t for t in targets if t.cell is None]
            occupied = [t for t in targets if t.cell is not None]
            drop = math.floor(len(empty) * 0.25)
            if drop:
                keep = ctx.rng.permutation(len(empty))[drop:]
                empty = [empty[i] for i in sorted(keep)]
            targets = occupied + empty
        if not targets:
            continue

        expiration = ctx.toxin_expiration(
            balance.sporocidal_bloom_toxin_duration,
            player,
        )
        kills = 0
        for _ in range(spores):
            tile = targets[int(ctx.rng.integers(len(targets)))]
            cell = tile.cell
            if cell is not None and cell.is_alive:
                if board.kill_and_toxify(
                    tile.tile_id,
                    expiration,
                    DeathReason.SPOROCIDAL_BLOOM,
                    player.player_id,
                    source=GrowthSource.SPOROCIDAL_BLOOM,
                ):
                    kills += 1
            else:
                board.convert_to_toxin(
                    tile.tile_id,
                    expiration,
                    player.player_id,
                    source=GrowthSource.SPOROCIDAL_BLOOM,
                )
        ctx.observer.record_spore_drop(
            player.player_id,
            GrowthSource.SPOROCIDAL_BLOOM,
            spores,
        )
        if kills:
            ctx.observer.record_effect(
                player.player_id,
                "sporocidal_bloom_kills",
                kills,
            )


def _tracer_targets(ctx: GameContext, player: Player) -> list[Tile]:
    """Empty tiles orthogonally adjacent to a living enemy cell."""
    board = ctx.board
    result = []
    for tile in board.empty_tiles():
        for nb in board.orthogonal_neighbours(tile.tile_id):
            cell = nb.cell
            if cell is not None and cell.is_alive and cell.owner_id != player.player_id:
                result.append(tile)
                break
    return result


def tracer_toxin_count(
    ctx: GameContext,
    player: Player,
    failed_growths: int,
) -> int:
    """Roll how many toxins Mycotoxin Tracer drops for ``player`` this round.

    The count has three parts: a square-root level base, a bonus from
    log-scaled failed growths, and a failure-rate bonus that matters
    most while the colony is small.  The total is capped at
    ``total_tiles // mycotoxin_tracer_max_toxins_divisor``.
    """
    level = player.get_mutation_level(MutationId.MYCOTOXIN_TRACER)
    if level <= 0:
        return 0
    balance = ctx.balance
    board = ctx.board
    failures = round(failed_growths / board.growth_cycles_per_round)
    cap = board.total_tiles // balance.mycotoxin_tracer_max_toxins_divisor

    base = math.floor(math.sqrt(level))
    from_level = int(ctx.rng.integers(0, base + 1))

    weight = balance.mycotoxin_tracer_failed_growth_weight_per_level
    weighted = failures * math.log2(level + 1) * weight
    from_failures = int(ctx.rng.integers(0, int(weighted) + 1))

    from_rate = 0
    living = len(board.living_cells_of(player.player_id))
    if living > 0 and failures > 0:
        rate = min(1.0, failures / living)
        max_bonus = min(len(ctx.players) - 1, failures)
        from_rate = round(rate * max_bonus * min(level * 0.1, 1.0))

    return min(from_level + from_failures + from_rate, cap)


def mycotoxin_tracer(ctx: GameContext, event: DecayPhase) -> None:
    """Drop toxins beside enemy colonies; the smallest colony goes first."""
    board = ctx.board
    counts = board.living_counts()
    players = sorted(ctx.players.values(), key=lambda p: counts.get(p.player_id, 0))
    for player in players:
        failed = event.failed_growths.get(player.player_id, 0)
        total = tracer_toxin_count(ctx, player, failed)
        if total <= 0:
            continue
        candidates = _tracer_targets(ctx, player)
        expiration = ctx.toxin_expiration(
            ctx.balance.mycotoxin_tracer_toxin_duration,
            player,
        )
        placed = 0
        while placed < total and candidates:
            tile = candidates.pop(int(ctx.rng.integers(len(candidates))))
            if board.convert_to_toxin(
                tile.tile_id,
                expiration,
                player.player_id,
                source=GrowthSource.MYCOTOXIN_TRACER,
            ):
                placed += 1
        if placed:
            ctx.observer.record_spore_drop(
                player.player_id,
                GrowthSource.MYCOTOXIN_TRACER,
                placed,
            )


def mycotoxin_potentiation(ctx: GameContext, event: DecayPhase) -> None:
    """Every toxin may poison the enemy living cells around it."""
    board = ctx.board
    for toxin in board.toxin_cells():
        # An earlier handler in this pass may have cleared the toxin.
        if board.cell(toxin.tile_id) is not toxin or not toxin.is_toxin:
            continue
        owner = ctx.player(toxin.owner_id)
        if owner is None:
            continue
        chance = owner.get_mutation_effect(EffectKind.TOXIN_KILL_AURA)
        if chance <= 0:
            continue
        for tile in board.all_neighbours(toxin.tile_id):
            cell = tile.cell
            if cell is None or not cell.is_alive or cell.owner_id == owner.player_id:
                continue
            if ctx.rng.random() < chance:
                board.kill_cell(
                    tile.tile_id,
                    DeathReason.MYCOTOXIN_POTENTIATION,
                    owner.player_id,
                    attacker_tile_id=toxin.tile_id,
                )


# -- Cell death ----------------------------------------------------------


def necrotoxic_conversion(ctx: GameContext, event: CellDeath) -> None:
    """The killer may reclaim a cell its toxins killed."""
    if not event.reason.is_toxic:
        return
    killer = ctx.player(event.killer_id)
    if killer is None:
        return
    chance = killer.get_mutation_effect(EffectKind.TOXIN_DEATH_RECLAIM)
    if chance <= 0:
        return
    cell = ctx.board.cell(event.tile_id)
    if cell is None or not cell.is_reclaimable:
        return
    if ctx.rng.random() < chance and ctx.board.reclaim(
        event.tile_id,
        killer.player_id,
        GrowthSource.NECROTOXIC_CONVERSION,
    ):
        ctx.observer.record_effect(killer.player_id, "necrotoxic_conversion")


def putrefactive_rejuvenation(ctx: GameContext, event: CellDeath) -> None:
    """Putrefactive kills shed age from the killer's nearby cells."""
    if event.reason is not DeathReason.PUTREFACTIVE_MYCOTOXIN:
        return
    killer = ctx.player(event.killer_id)
    if killer is None:
        return
    level = killer.get_mutation_level(MutationId.PUTREFACTIVE_REJUVENATION)
    if level <= 0:
        return
    balance = ctx.balance
    radius = balance.putrefactive_rejuvenation_radius
    if level >= balance.putrefactive_rejuvenation_max_level:
        radius *= balance.putrefactive_rejuvenation_max_level_radius_multiplier
    reduction = level * balance.putrefactive_rejuvenation_age_reduction_per_level

    board = ctx.board
    centre = board.tile(event.tile_id)
    removed = 0
    for cell in board.living_cells_of(killer.player_id):
        if board.tile(cell.tile_id).distance_to(centre) <= radius:
            removed += cell.reduce_age(reduction)
    if removed:
        ctx.observer.record_effect(
            killer.player_id,
            "putrefactive_rejuvenation",
            removed,
        )


def putrefactive_cascade(ctx: GameContext, event: CellDeath) -> None:
    """Carry a putrefactive kill one tile further along the line of attack.

    Each cascade kill publishes its own death, so the chain continues
    through this handler until a roll fails, the line leaves enemy
    territory, or the depth cap is reached.
    """
    if event.reason not in _CASCADE_REASONS or event.attacker_tile_id is None:
        return
    killer = ctx.player(event.killer_id)
    if killer is None:
        return
    level = killer.get_mutation_level(MutationId.PUTREFACTIVE_CASCADE)
    if level <= 0:
        return
    balance = ctx.balance
    if event.cascade_depth >= balance.putrefactive_cascade_max_depth:
        return
    if ctx.rng.random() >= level * balance.putrefactive_cascade_chance_per_level:
        return

    board = ctx.board
    killed = board.tile(event.tile_id)
    attacker = board.tile(event.attacker_tile_id)
    dx = (killed.x > attacker.x) - (killed.x < attacker.x)
    dy = (killed.y > attacker.y) - (killed.y < attacker.y)
    if dx == 0 and dy == 0:
        return
    nxt = board.offset(event.tile_id, dx, dy)
    if nxt is None:
        return
    cell = nxt.cell
    if cell is None or not cell.is_alive or cell.owner_id == killer.player_id:
        return

    depth = event.cascade_depth + 1
    if level >= balance.putrefactive_cascade_max_level:
        killed_next = board.kill_and_toxify(
            nxt.tile_id,
            ctx.toxin_expiration(balance.default_toxin_duration, killer),
            DeathReason.PUTREFACTIVE_CASCADE_POISON,
            killer.player_id,
            source=GrowthSource.PUTREFACTIVE_CASCADE,
            attacker_tile_id=event.tile_id,
            cascade_depth=depth,
        )
    else:
        killed_next = board.kill_cell(
            nxt.tile_id,
            DeathReason.PUTREFACTIVE_CASCADE,
            killer.player_id,
            attacker_tile_id=event.tile_id,
            cascade_depth=depth,
        )
    if killed_next:
        ctx.observer.record_effect(killer.player_id, "putrefactive_cascade")
