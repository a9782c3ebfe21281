"""Genetic-drift effects: free upgrades, toxin digestion and Necrophytic Bloom."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from moldfront.board.cell import GrowthSource
from moldfront.events.bus import NecrophyticBloomActivated
from moldfront.mutations.kinds import EffectKind, MutationId, MutationTier

if TYPE_CHECKING:
    from moldfront.events.bus import (
        CellDeath,
        DecayPhase,
        MutationPhaseStart,
        PreGrowthPhase,
    )
    from moldfront.mutations.mutation import Mutation
    from moldfront.players.player import Player
    from moldfront.simulation.context import GameContext

_HIGHER_TIERS = (MutationTier.TIER2, MutationTier.TIER3, MutationTier.TIER4)


def _auto_upgradable(
    ctx: GameContext,
    player: Player,
    current_round: int,
) -> dict[MutationTier, list[Mutation]]:
    """Free-upgrade candidates by tier, drawn from every category; no surges."""
    pools: dict[MutationTier, list[Mutation]] = {}
    for mutation in ctx.catalog.all():
        if mutation.is_surge:
            continue
        if player.can_upgrade(mutation, current_round, ignore_cost=True):
            pools.setdefault(mutation.tier, []).append(mutation)
    return pools


def _pick(ctx: GameContext, pool: list[Mutation]) -> Mutation:
    return pool[int(ctx.rng.integers(len(pool)))]


def mutator_phenotype(ctx: GameContext, event: MutationPhaseStart) -> None:
    """Auto-upgrade a random mutation, boosted by Hyperadaptive Drift.

    Without Hyperadaptive Drift this is one free tier-1 level.  With it,
    the pick may come from tiers 2-4 instead, a tier-1 pick may gain a
    second level, and at max level another tier-1 mutation is upgraded.
    """
    balance = ctx.balance
    for player in ctx.players.values():
        chance = player.get_mutation_effect(EffectKind.AUTO_UPGRADE_RANDOM)
        if chance <= 0 or ctx.rng.random() >= chance:
            continue
        drift = player.get_mutation_level(MutationId.HYPERADAPTIVE_DRIFT)
        pools = _auto_upgradable(ctx, player, event.round)
        tier_one = pools.get(MutationTier.TIER1, [])

        pool, tier = tier_one, MutationTier.TIER1
        higher_chance = drift * balance.hyperadaptive_drift_higher_tier_chance_per_level
        if drift > 0 and ctx.rng.random() < higher_chance:
            higher = [t for t in _HIGHER_TIERS if pools.get(t)]
            if higher:
                tier = higher[int(ctx.rng.integers(len(higher)))]
                pool = pools[tier]
        if not pool:
            continue

        pick = _pick(ctx, pool)
        upgrades = 1
        bonus_per_level = balance.hyperadaptive_drift_bonus_tier_one_chance_per_level
        bonus_chance = drift * bonus_per_level
        if drift > 0 and tier is MutationTier.TIER1 and ctx.rng.random() < bonus_chance:
            upgrades = 2
        gained = 0
        for _ in range(upgrades):
            if not player.try_auto_upgrade(pick, event.round):
                break
            gained += 1

        if drift >= balance.hyperadaptive_drift_max_level and tier_one:
            if player.try_auto_upgrade(_pick(ctx, tier_one), event.round):
                gained += 1
        if gained:
            ctx.observer.record_effect(player.player_id, "mutator_phenotype", gained)


def mycotoxin_catabolism(ctx: GameContext, event: PreGrowthPhase) -> None:
    """Digest toxins next to living cells, sometimes earning a point."""
    board = ctx.board
    balance = ctx.balance
    earned = ctx.round_context.catabolism_points
    cap = balance.mycotoxin_catabolism_max_points_per_round
    for player in ctx.players.values():
        chance = player.get_mutation_effect(EffectKind.TOXIN_CLEANUP_CHANCE)
        if chance <= 0:
            continue
        seen: set[int] = set()
        cleared = 0
        for cell in board.living_cells_of(player.player_id):
            for tile in board.orthogonal_neighbours(cell.tile_id):
                if tile.cell is None or not tile.cell.is_toxin or tile.tile_id in seen:
                    continue
                seen.add(tile.tile_id)
                if ctx.rng.random() >= chance:
                    continue
                if not board.remove_toxin(tile.tile_id, cleared_by=player.player_id):
                    continue
                cleared += 1
                if (
                    earned[player.player_id] < cap
                    and ctx.rng.random() < balance.mycotoxin_catabolism_point_chance
                ):
                    player.mutation_points += 1
                    earned[player.player_id] += 1
        if cleared:
            ctx.observer.record_effect(
                player.player_id,
                "mycotoxin_catabolism",
                cleared,
            )


# -- Necrophytic Bloom ---------------------------------------------------


def bloom_damping(occupied_ratio: float, threshold: float) -> float:
    """Per-death spore multiplier; fades to zero as the board fills up."""
    if occupied_ratio <= threshold:
        return 1.0
    raw = 1.0 - (occupied_ratio - threshold) / (1.0 - threshold)
    return min(1.0, max(0.0, raw))


def _release_spores(ctx: GameContext, player: Player, spores: int) -> None:
    board = ctx.board
    reclaimed = 0
    for _ in range(spores):
        tile_id = int(ctx.rng.integers(board.total_tiles))
        cell = board.cell(tile_id)
        if cell is None or not cell.is_reclaimable:
            continue
        if board.reclaim(tile_id, player.player_id, GrowthSource.NECROPHYTIC_BLOOM):
            reclaimed += 1
    ctx.observer.record_spore_drop(
        player.player_id,
        GrowthSource.NECROPHYTIC_BLOOM,
        spores,
    )
    if reclaimed:
        ctx.observer.record_effect(player.player_id, "necrophytic_bloom", reclaimed)


def necrophytic_bloom_activation(ctx: GameContext, event: DecayPhase) -> None:
    """Activate the bloom the first time occupancy reaches the threshold."""
    board = ctx.board
    if board.necrophytic_bloom_activated:
        return
    if board.occupied_ratio() < ctx.balance.necrophytic_bloom_activation_threshold:
        return
    board.necrophytic_bloom_activated = True
    ctx.events.publish(NecrophyticBloomActivated(event.round))


def necrophytic_bloom_burst(ctx: GameContext, event: NecrophyticBloomActivated) -> None:
    """Initial burst: every own dead cell releases its spores at once."""
    for player in ctx.players.values():
        level = player.get_mutation_level(MutationId.NECROPHYTIC_BLOOM)
        if level <= 0:
            continue
        dead = len(ctx.board.dead_cells_of(player.player_id))
        per_cell = level * ctx.balance.necrophytic_bloom_spores_per_death_per_level
        spores = math.floor(per_cell * dead)
        if spores > 0:
            _release_spores(ctx, player, spores)


def necrophytic_bloom_on_death(ctx: GameContext, event: CellDeath) -> None:
    """Once active, each death of the owner releases damped spores."""
    board = ctx.board
    if not board.necrophytic_bloom_activated:
        return
    owner = ctx.player(event.owner_id)
    if owner is None:
        return
    level = owner.get_mutation_level(MutationId.NECROPHYTIC_BLOOM)
    if level <= 0:
        return
    balance = ctx.balance
    damping = bloom_damping(
        board.occupied_ratio(),
        balance.necrophytic_bloom_activation_threshold,
    )
    spores = math.floor(
        level * balance.necrophytic_bloom_spores_per_death_per_level * damping,
    )
    if spores > 0:
        _release_spores(ctx, owner, spores)
