"""Decay resolver — the once-per-round death pass.

Every living, non-resistant cell rolls once against

    clamp(base + age component + enemy pressure - defense, 0, 1)

where enemy pressure is the sum of per-enemy slices (Silent Blight-style
decay, plus Putrefactive Mycotoxin when that enemy touches the cell),
boosted when the cell is fully encircled and capped overall.

When a cell dies, the roll also picks the reason: the interval
``[0, base + age + pressure)`` is split into ordered slices
(randomness, age, then each enemy slice), defense absorbs the leading
part, and the slice the shifted roll lands in names the cause of death
and, for enemy slices, the killer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from moldfront.board.cell import DeathReason
from moldfront.events.bus import DecayPhase
from moldfront.mutations.kinds import EffectKind

if TYPE_CHECKING:
    from moldfront.board.cell import Cell
    from moldfront.players.player import Player
    from moldfront.simulation.context import GameContext

logger = logging.getLogger(__name__)


@dataclass
class DeathSlice:
    """One contribution to a cell's death chance.

    Attributes:
        reason: Cause recorded if the roll lands in this slice.
        amount: Width of the slice.
        killer_id: Player credited with the kill, if any.
        attacker_tile_id: Tile the effect came from, if any.
    """

    reason: DeathReason
    amount: float
    killer_id: int | None = None
    attacker_tile_id: int | None = None


@dataclass
class DeathChance:
    """Breakdown of a cell's death chance for one decay pass.

    Attributes:
        slices: Ordered contributions: randomness, age, then enemies.
        defense: Survival bonus subtracted from the raw sum.
    """

    slices: list[DeathSlice] = field(default_factory=list)
    defense: float = 0.0

    @property
    def raw(self) -> float:
        return sum(s.amount for s in self.slices)

    @property
    def probability(self) -> float:
        return min(1.0, max(0.0, self.raw - self.defense))

    def attribute(self, roll: float) -> DeathSlice:
        """Return the slice a killing ``roll`` falls into."""
        position = roll + min(self.defense, self.raw)
        cumulative = 0.0
        for piece in self.slices:
            cumulative += piece.amount
            if position < cumulative:
                return piece
        return self.slices[-1]


def _enemy_slices(ctx: GameContext, cell: Cell, owner: Player) -> list[DeathSlice]:
    board = ctx.board
    encircled = board.is_surrounded_by_enemies(cell.tile_id)
    neighbours = board.orthogonal_neighbours(cell.tile_id)
    slices: list[DeathSlice] = []
    for enemy_id in sorted(ctx.players):
        if enemy_id == owner.player_id:
            continue
        enemy = ctx.players[enemy_id]
        boost = 1.0
        if encircled:
            boost += enemy.get_mutation_effect(EffectKind.ENCIRCLEMENT_MULTIPLIER)
        decay = enemy.get_mutation_effect(EffectKind.ENEMY_DECAY_CHANCE)
        if decay > 0:
            slices.append(DeathSlice(DeathReason.ENEMY_DECAY, decay * boost, enemy_id))
        adjacent = enemy.get_mutation_effect(EffectKind.ADJACENT_FUNGICIDE)
        if adjacent <= 0:
            continue
        for tile in neighbours:
            other = tile.cell
            if other is not None and other.is_alive and other.owner_id == enemy_id:
                slices.append(
                    DeathSlice(
                        DeathReason.PUTREFACTIVE_MYCOTOXIN,
                        adjacent * boost,
                        enemy_id,
                        tile.tile_id,
                    ),
                )
                break

    total = sum(s.amount for s in slices)
    cap = ctx.balance.max_enemy_decay_pressure
    if total > cap:
        scale = cap / total
        for piece in slices:
            piece.amount *= scale
    return slices


def death_chance(ctx: GameContext, cell: Cell, owner: Player) -> DeathChance:
    """Compute the death chance breakdown for ``cell``."""
    balance = ctx.balance
    delay = owner.get_mutation_effect(EffectKind.AGE_DEATH_DELAY)
    age = max(0.0, cell.growth_cycle_age - delay) * balance.age_death_factor_per_cycle
    slices = [
        DeathSlice(DeathReason.RANDOMNESS, balance.base_death_chance),
        DeathSlice(DeathReason.AGE, age),
    ]
    slices.extend(_enemy_slices(ctx, cell, owner))
    return DeathChance(
        slices=slices,
        defense=owner.get_mutation_effect(EffectKind.DEFENSE_SURVIVAL),
    )


def _age_survivor(ctx: GameContext, cell: Cell, owner: Player) -> None:
    threshold = owner.age_reset_threshold(
        ctx.balance.base_age_reset_threshold,
        ctx.balance.age_reset_reduction_per_level,
    )
    if cell.growth_cycle_age >= threshold:
        cell.growth_cycle_age = 0
    else:
        cell.growth_cycle_age += 1


def run_decay_phase(ctx: GameContext) -> int:
    """Publish the decay event, then roll every eligible cell once.

    Args:
        ctx: Game context.

    Returns:
        Number of cells killed by the decay roll itself (deaths caused
        by decay-phase effects are not included).
    """
    board = ctx.board
    ctx.events.publish(
        DecayPhase(board.current_round, dict(ctx.round_context.failed_growths)),
    )

    for cell in board.living_cells():
        if cell.owner_id not in ctx.players:
            logger.warning(
                "Skipping decay for cell %d: unknown owner %s",
                cell.tile_id,
                cell.owner_id,
            )

    player_ids = sorted(ctx.players)
    deaths = 0
    for index in ctx.rng.permutation(len(player_ids)):
        owner = ctx.players[player_ids[int(index)]]
        cells = sorted(
            (c for c in board.living_cells_of(owner.player_id) if not c.is_resistant),
            key=lambda c: c.tile_id,
        )
        for cell in cells:
            if board.cell(cell.tile_id) is not cell or not cell.is_alive:
                continue
            if cell.owner_id != owner.player_id or cell.is_resistant:
                continue
            if len(owner.controlled_tile_ids) <= 1:
                _age_survivor(ctx, cell, owner)
                continue
            chance = death_chance(ctx, cell, owner)
            roll = ctx.rng.random()
            if roll < chance.probability:
                cause = chance.attribute(roll)
                if board.kill_cell(
                    cell.tile_id,
                    cause.reason,
                    cause.killer_id,
                    attacker_tile_id=cause.attacker_tile_id,
                ):
                    deaths += 1
            else:
                _age_survivor(ctx, cell, owner)

    logger.debug("Round %d decay: %d deaths", board.current_round, deaths)
    return deaths
