"""Tests for moldfront.ai — spending strategies."""

import pytest
from numpy.random import Generator

from moldfront.ai.strategies import (
    CategoryPrioritySpendingStrategy,
    TargetChainSpendingStrategy,
    TierWeightedSpendingStrategy,
    available_strategies,
    make_strategy,
    upgradable_mutations,
)
from moldfront.board.board import Board
from moldfront.mutations.catalog import MutationCatalog
from moldfront.mutations.kinds import MutationCategory, MutationId
from moldfront.players.player import Player


class TestSpending:
    """Tests shared by every registered strategy."""

    @pytest.mark.parametrize("name", available_strategies())
    def test_spends_until_nothing_is_buyable(
        self,
        name: str,
        catalog: MutationCatalog,
        small_board: Board,
        rng: Generator,
    ) -> None:
        player = Player(player_id=0, catalog=catalog, mutation_points=30)
        spent = make_strategy(name).spend(player, catalog, small_board, rng)
        assert spent == 30 - player.mutation_points
        assert spent > 0
        assert upgradable_mutations(player, catalog, small_board.current_round) == []

    def test_nothing_to_spend(
        self,
        catalog: MutationCatalog,
        small_board: Board,
        rng: Generator,
    ) -> None:
        player = Player(player_id=0, catalog=catalog, mutation_points=0)
        assert make_strategy("random").spend(player, catalog, small_board, rng) == 0


class TestStrategies:
    """Tests for individual strategy preferences."""

    def test_target_chain_climbs_prerequisites(
        self,
        catalog: MutationCatalog,
        small_board: Board,
        rng: Generator,
    ) -> None:
        strategy = TargetChainSpendingStrategy(goals=(MutationId.MYCOTROPIC_INDUCTION,))
        player = Player(player_id=0, catalog=catalog, mutation_points=12)
        strategy.spend(player, catalog, small_board, rng)
        assert player.get_mutation_level(MutationId.MYCELIAL_BLOOM) >= 10
        assert player.mutation_points == 0

    def test_category_priority_prefers_growth(
        self,
        catalog: MutationCatalog,
        small_board: Board,
        rng: Generator,
    ) -> None:
        strategy = CategoryPrioritySpendingStrategy((MutationCategory.GROWTH,))
        player = Player(player_id=0, catalog=catalog, mutation_points=3)
        strategy.spend(player, catalog, small_board, rng)
        owned = [m for m in player.mutations.values() if m.current_level > 0]
        assert owned
        assert all(m.mutation.category is MutationCategory.GROWTH for m in owned)

    def test_tier_weighted_picks_from_options(
        self,
        catalog: MutationCatalog,
        rng: Generator,
    ) -> None:
        player = Player(player_id=0, catalog=catalog, mutation_points=5)
        options = upgradable_mutations(player, catalog, 1)
        strategy = TierWeightedSpendingStrategy(exponent=2.0)
        for _ in range(20):
            assert strategy.choose(options, player, catalog, rng) in options


class TestRegistry:
    """Tests for make_strategy."""

    def test_unknown_name(self) -> None:
        with pytest.raises(ValueError, match="unknown strategy"):
            make_strategy("clairvoyant")

    def test_fresh_instances(self) -> None:
        first = make_strategy("target_chain")
        second = make_strategy("target_chain")
        assert first is not second
        assert first.name == "target_chain"

    def test_configured_names(self) -> None:
        for name in available_strategies():
            assert make_strategy(name).name == name
