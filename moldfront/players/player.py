"""Player — one mold colony's economy and mutation progression.

A player owns mutation points, the levels of the mutations it has
bought, any surges currently running, and the set of tile ids where it
has a living cell.  The tile set is maintained by the ``Board``; the
player never edits it directly.

Upgrade gating:

1. Every prerequisite must be at its required level.
2. The player must afford the cost (flat, or rising for surges).
3. The mutation must be below its max level.
4. A surge cannot be bought again while it is active.
5. A mutation whose prerequisites were completed this round must wait
   until the next round.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from moldfront.mutations.kinds import EffectKind, MutationId
from moldfront.mycovariants.mycovariant import PlayerMycovariant

if TYPE_CHECKING:
    import numpy as np

    from moldfront.ai.strategies import SpendingStrategy
    from moldfront.mutations.catalog import MutationCatalog
    from moldfront.mutations.mutation import Mutation
    from moldfront.mycovariants.mycovariant import Mycovariant


@dataclass
class PlayerMutation:
    """A mutation as owned by a player.

    Attributes:
        mutation: The catalog entry.
        current_level: Levels bought (or activations, for surges).
        first_upgrade_round: Round of the first level, if any.
    """

    mutation: Mutation
    current_level: int = 0
    first_upgrade_round: int | None = None


@dataclass
class ActiveSurge:
    """A surge window currently running.

    Attributes:
        mutation_id: Surge mutation id.
        level_at_activation: Level the surge was bought at.
        rounds_remaining: Rounds left, including the current one.
    """

    mutation_id: int
    level_at_activation: int
    rounds_remaining: int


@dataclass
class Player:
    """A competing colony.

    Attributes:
        player_id: Unique id, also used as owner id on cells.
        catalog: Mutation catalog shared by the game.
        name: Display name.
        strategy: Spending policy used during the mutation phase.
        mutation_points: Unspent points.
        base_income: Points received at the start of every round.
        mutations: Owned mutations keyed by id.
        prerequisites_met_round: Round in which each mutation's
            prerequisites were first all satisfied.
        active_surges: Running surges keyed by mutation id.
        controlled_tile_ids: Tiles holding this player's living cells.
        mycovariants: Drafted mycovariants in draft order.
    """

    player_id: int
    catalog: MutationCatalog
    name: str = ""
    strategy: SpendingStrategy | None = None
    mutation_points: int = 0
    base_income: int = 5
    mutations: dict[int, PlayerMutation] = field(default_factory=dict)
    prerequisites_met_round: dict[int, int] = field(default_factory=dict)
    active_surges: dict[int, ActiveSurge] = field(default_factory=dict)
    controlled_tile_ids: set[int] = field(default_factory=set)
    mycovariants: list[PlayerMycovariant] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"Player {self.player_id}"

    # -- Levels & effects ------------------------------------------------

    def get_mutation_level(self, mutation_id: int) -> int:
        owned = self.mutations.get(int(mutation_id))
        return owned.current_level if owned is not None else 0

    def has_mutation(self, mutation_id: int) -> bool:
        return self.get_mutation_level(mutation_id) > 0

    def get_mutation_effect(self, kind: EffectKind) -> float:
        """Sum of ``level * effect_per_level`` over owned mutations of ``kind``."""
        return sum(
            owned.current_level * owned.mutation.effect_per_level
            for owned in self.mutations.values()
            if owned.mutation.effect_kind is kind
        )

    def prerequisites_met(self, mutation: Mutation) -> bool:
        return all(
            self.get_mutation_level(p.mutation_id) >= p.required_level
            for p in mutation.prerequisites
        )

    # -- Upgrades --------------------------------------------------------

    def can_upgrade(
        self,
        mutation: Mutation,
        current_round: int,
        *,
        ignore_cost: bool = False,
    ) -> bool:
        """Whether ``mutation`` may gain a level this round.

        Args:
            mutation: Candidate mutation.
            current_round: The round being played.
            ignore_cost: Skip the affordability check (free upgrades).
        """
        level = self.get_mutation_level(mutation.mutation_id)
        if level >= mutation.max_level:
            return False
        if mutation.is_surge and self.is_surge_active(mutation.mutation_id):
            return False
        if not self.prerequisites_met(mutation):
            return False
        if self.prerequisites_met_round.get(mutation.mutation_id) == current_round:
            return False
        return ignore_cost or self.mutation_points >= mutation.upgrade_cost(level)

    def try_upgrade(self, mutation: Mutation, current_round: int) -> bool:
        """Buy one level of ``mutation``; on failure nothing changes.

        Returns:
            True if the level was bought.
        """
        if not self.can_upgrade(mutation, current_round):
            return False
        cost = mutation.upgrade_cost(self.get_mutation_level(mutation.mutation_id))
        self.mutation_points -= cost
        self._apply_level(mutation, current_round)
        return True

    def try_auto_upgrade(self, mutation: Mutation, current_round: int) -> bool:
        """Grant one free level of ``mutation`` under the usual gates.

        Surges are never granted this way.
        """
        if mutation.is_surge or not self.can_upgrade(
            mutation,
            current_round,
            ignore_cost=True,
        ):
            return False
        self._apply_level(mutation, current_round)
        return True

    def set_mutation_level(
        self,
        mutation_id: int,
        level: int,
        current_round: int = 0,
    ) -> None:
        """Force a mutation to ``level`` (scenario setup).

        Raises:
            ValueError: If the level is outside ``0..max_level``.
        """
        mutation = self.catalog.get_by_id(mutation_id)
        if not 0 <= level <= mutation.max_level:
            msg = (
                f"level {level} out of range for {mutation.name} "
                f"(max {mutation.max_level})"
            )
            raise ValueError(msg)
        owned = self.mutations.setdefault(
            mutation.mutation_id,
            PlayerMutation(mutation),
        )
        owned.current_level = level
        if level > 0 and owned.first_upgrade_round is None:
            owned.first_upgrade_round = current_round
        self._record_unlocks(mutation.mutation_id, current_round)

    def _apply_level(self, mutation: Mutation, current_round: int) -> None:
        owned = self.mutations.setdefault(
            mutation.mutation_id,
            PlayerMutation(mutation),
        )
        owned.current_level += 1
        if owned.first_upgrade_round is None:
            owned.first_upgrade_round = current_round
        if mutation.surge is not None:
            self.active_surges[mutation.mutation_id] = ActiveSurge(
                mutation.mutation_id,
                owned.current_level,
                mutation.surge.duration_rounds,
            )
        self._record_unlocks(mutation.mutation_id, current_round)

    def _record_unlocks(self, mutation_id: int, current_round: int) -> None:
        for dependent in self.catalog.dependents_of(mutation_id):
            if dependent.mutation_id in self.prerequisites_met_round:
                continue
            if self.prerequisites_met(dependent):
                self.prerequisites_met_round[dependent.mutation_id] = current_round

    # -- Surges ----------------------------------------------------------

    def is_surge_active(self, mutation_id: int) -> bool:
        return int(mutation_id) in self.active_surges

    def surge_level(self, mutation_id: int) -> int:
        """Activation level of a running surge, or 0."""
        surge = self.active_surges.get(int(mutation_id))
        return surge.level_at_activation if surge is not None else 0

    def tick_down_surges(self) -> list[int]:
        """Advance surge timers by one round.

        Returns:
            Ids of surges that expired.
        """
        expired: list[int] = []
        for mutation_id, surge in list(self.active_surges.items()):
            surge.rounds_remaining -= 1
            if surge.rounds_remaining <= 0:
                del self.active_surges[mutation_id]
                expired.append(mutation_id)
        return expired

    # -- Mycovariants ----------------------------------------------------

    def get_mycovariant(self, mycovariant_id: int) -> PlayerMycovariant | None:
        for held in self.mycovariants:
            if held.mycovariant.mycovariant_id == mycovariant_id:
                return held
        return None

    def has_mycovariant(self, mycovariant_id: int) -> bool:
        return self.get_mycovariant(mycovariant_id) is not None

    def add_mycovariant(self, mycovariant: Mycovariant) -> PlayerMycovariant:
        """Take ownership of ``mycovariant``.

        Raises:
            ValueError: If the player already holds it.
        """
        if self.has_mycovariant(mycovariant.mycovariant_id):
            msg = f"{self.name} already holds {mycovariant.name}"
            raise ValueError(msg)
        held = PlayerMycovariant(mycovariant, self.player_id)
        self.mycovariants.append(held)
        return held

    # -- Derived rules ---------------------------------------------------

    def age_reset_threshold(self, base: int, reduction_per_level: int) -> int:
        """Age at which a surviving cell's age resets to zero."""
        level = self.get_mutation_level(MutationId.CHRONORESILIENT_CYTOPLASM)
        return max(1, base - level * reduction_per_level)

    def adaptive_expression_bonus(self, rng: np.random.Generator) -> int:
        """Roll the Adaptive Expression bonus points for this round."""
        chance = self.get_mutation_effect(EffectKind.BONUS_MUTATION_POINT_CHANCE)
        if chance <= 0:
            return 0
        bonus = 1 if rng.random() < chance else 0
        if chance > 1 and rng.random() < chance - 1:
            bonus += 1
        return bonus

    def anabolic_inversion_bonus(self, rng: np.random.Generator, ratio: float) -> int:
        """Roll the Anabolic Inversion underdog bonus.

        Args:
            rng: Game random generator.
            ratio: Own living cells over the average of the other
                players, clamped to ``[0, 1]``.

        Returns:
            0, or a bonus of 1-5 points that leans higher the further
            behind the player is.
        """
        gap_bonus = self.get_mutation_effect(EffectKind.UNDERDOG_POINT_CHANCE)
        if gap_bonus <= 0:
            return 0
        ratio = min(1.0, max(0.0, ratio))
        if rng.random() >= (1.0 - ratio) + gap_bonus:
            return 0
        weight = 1.0 - ratio
        roll = rng.random()
        if roll < weight * 0.6:
            return 5 if rng.random() < weight else 4
        if roll < weight * 0.8:
            return 3
        if roll < weight * 0.9:
            return 2
        return 1
