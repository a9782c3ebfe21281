"""Spending strategies — how AI players turn mutation points into levels.

Every strategy follows the same loop: list the mutations the player may
upgrade right now, let the strategy pick one, buy it, repeat.  A
strategy may decline to pick (its preferences are exhausted); a final
exhaustive pass then buys random legal upgrades, so no strategy ever
ends a mutation phase with points it could have spent.

Each successful purchase costs at least one point, so the loop always
terminates.

Strategies also pick mycovariants in the draft: by default the choice
with the highest score wins, ties broken at random.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from moldfront.mutations.kinds import MutationCategory, MutationId

if TYPE_CHECKING:
    from collections.abc import Callable

    import numpy as np

    from moldfront.board.board import Board
    from moldfront.mutations.catalog import MutationCatalog
    from moldfront.mutations.mutation import Mutation
    from moldfront.mycovariants.mycovariant import Mycovariant
    from moldfront.players.player import Player
    from moldfront.simulation.context import GameContext

logger = logging.getLogger(__name__)


def upgradable_mutations(
    player: Player,
    catalog: MutationCatalog,
    current_round: int,
) -> list[Mutation]:
    """Mutations ``player`` can buy a level of right now, in id order."""
    return [m for m in catalog.all() if player.can_upgrade(m, current_round)]


class SpendingStrategy:
    """Base spending policy; subclasses override ``choose``."""

    name = "base"

    def choose(
        self,
        options: list[Mutation],
        player: Player,
        catalog: MutationCatalog,
        rng: np.random.Generator,
    ) -> Mutation | None:
        """Pick one of ``options``, or None to hand over to the fallback."""
        raise NotImplementedError

    def choose_mycovariant(
        self,
        choices: list[Mycovariant],
        player: Player,
        ctx: GameContext,
    ) -> Mycovariant:
        """Pick one draft choice; ``choices`` is never empty."""
        scores = [m.score(ctx, player) for m in choices]
        best = max(scores)
        top = [m for m, score in zip(choices, scores) if score == best]
        return top[int(ctx.rng.integers(len(top)))]

    def spend(
        self,
        player: Player,
        catalog: MutationCatalog,
        board: Board,
        rng: np.random.Generator,
    ) -> int:
        """Spend ``player``'s points until nothing more can be bought.

        Args:
            player: The player spending.
            catalog: Mutation registry.
            board: Board, for the current round and any positional
                heuristics.
            rng: Game random generator.

        Returns:
            Points spent.
        """
        start = player.mutation_points
        current_round = board.current_round
        while player.mutation_points > 0:
            options = upgradable_mutations(player, catalog, current_round)
            if not options:
                break
            pick = self.choose(options, player, catalog, rng)
            if pick is None or not player.try_upgrade(pick, current_round):
                break
        self._exhaust(player, catalog, current_round, rng)
        spent = start - player.mutation_points
        logger.debug(
            "%s (%s) spent %d points, %d left",
            player.name,
            self.name,
            spent,
            player.mutation_points,
        )
        return spent

    @staticmethod
    def _exhaust(
        player: Player,
        catalog: MutationCatalog,
        current_round: int,
        rng: np.random.Generator,
    ) -> None:
        while player.mutation_points > 0:
            options = upgradable_mutations(player, catalog, current_round)
            if not options:
                return
            pick = options[int(rng.integers(len(options)))]
            if not player.try_upgrade(pick, current_round):
                return


class RandomSpendingStrategy(SpendingStrategy):
    """Uniformly random among legal upgrades."""

    name = "random"

    def choose(
        self,
        options: list[Mutation],
        player: Player,
        catalog: MutationCatalog,
        rng: np.random.Generator,
    ) -> Mutation | None:
        return options[int(rng.integers(len(options)))]

    def choose_mycovariant(
        self,
        choices: list[Mycovariant],
        player: Player,
        ctx: GameContext,
    ) -> Mycovariant:
        return choices[int(ctx.rng.integers(len(choices)))]


@dataclass
class TierWeightedSpendingStrategy(SpendingStrategy):
    """Random pick weighted toward higher tiers.

    Attributes:
        exponent: Weight of a mutation is ``tier ** exponent``.
    """

    exponent: float = 1.5
    name = "tier_weighted"

    def choose(
        self,
        options: list[Mutation],
        player: Player,
        catalog: MutationCatalog,
        rng: np.random.Generator,
    ) -> Mutation | None:
        weights = [float(m.tier) ** self.exponent for m in options]
        total = sum(weights)
        probabilities = [w / total for w in weights]
        return options[int(rng.choice(len(options), p=probabilities))]


@dataclass
class CategoryPrioritySpendingStrategy(SpendingStrategy):
    """Prefer categories in a fixed order, random within a category.

    Attributes:
        priorities: Categories from most to least preferred.  Options
            outside every listed category are left to the fallback.
        name: Registry name of this configuration.
    """

    priorities: tuple[MutationCategory, ...] = (
        MutationCategory.GROWTH,
        MutationCategory.CELLULAR_RESILIENCE,
    )
    name: str = "category_priority"

    def choose(
        self,
        options: list[Mutation],
        player: Player,
        catalog: MutationCatalog,
        rng: np.random.Generator,
    ) -> Mutation | None:
        for category in self.priorities:
            pool = [m for m in options if m.category is category]
            if pool:
                return pool[int(rng.integers(len(pool)))]
        return None


@dataclass
class TargetChainSpendingStrategy(SpendingStrategy):
    """Work toward goal mutations through their prerequisite chains.

    Goals are pursued in order.  For each goal the chain from
    ``MutationCatalog.prerequisite_chain`` is walked in order and the
    first step that is both still short of its required level and
    buyable now is picked; the goal itself is then levelled to max.

    Attributes:
        goals: Target mutation ids, most important first.
        name: Registry name of this configuration.
    """

    goals: tuple[int, ...] = (
        MutationId.NECROPHYTIC_BLOOM,
        MutationId.HYPHAL_VECTORING,
    )
    name: str = "target_chain"
    _steps: dict[int, list[tuple[Mutation, int]]] = field(
        default_factory=dict,
        init=False,
        repr=False,
    )

    def _chain(
        self,
        catalog: MutationCatalog,
        goal: int,
    ) -> list[tuple[Mutation, int]]:
        steps = self._steps.get(goal)
        if steps is None:
            target = catalog.get_by_id(goal)
            steps = [*catalog.prerequisite_chain(goal), (target, target.max_level)]
            self._steps[goal] = steps
        return steps

    def choose(
        self,
        options: list[Mutation],
        player: Player,
        catalog: MutationCatalog,
        rng: np.random.Generator,
    ) -> Mutation | None:
        buyable = {m.mutation_id for m in options}
        for goal in self.goals:
            for mutation, required in self._chain(catalog, goal):
                if player.get_mutation_level(mutation.mutation_id) >= required:
                    continue
                if mutation.mutation_id in buyable:
                    return mutation
        return None


# -- Registry ------------------------------------------------------------

_STRATEGIES: dict[str, Callable[[], SpendingStrategy]] = {
    "random": RandomSpendingStrategy,
    "tier_weighted": TierWeightedSpendingStrategy,
    "category_priority": CategoryPrioritySpendingStrategy,
    "growth_first": lambda: CategoryPrioritySpendingStrategy(
        (MutationCategory.GROWTH, MutationCategory.MYCELIAL_SURGES),
        "growth_first",
    ),
    "fungicide_first": lambda: CategoryPrioritySpendingStrategy(
        (MutationCategory.FUNGICIDE, MutationCategory.CELLULAR_RESILIENCE),
        "fungicide_first",
    ),
    "target_chain": TargetChainSpendingStrategy,
    "cascade_rush": lambda: TargetChainSpendingStrategy(
        (MutationId.PUTREFACTIVE_CASCADE, MutationId.SILENT_BLIGHT),
        "cascade_rush",
    ),
}


def available_strategies() -> list[str]:
    return sorted(_STRATEGIES)


def make_strategy(name: str) -> SpendingStrategy:
    """Build a fresh strategy by registry name.

    Raises:
        ValueError: If ``name`` is not registered.
    """
    factory = _STRATEGIES.get(name)
    if factory is None:
        choices = ", ".join(available_strategies())
        msg = f"unknown strategy {name!r}; choose from {choices}"
        raise ValueError(msg)
    return factory()
