"""Tests for moldfront.players — upgrade gating, surges and income rolls."""

import pytest
from numpy.random import Generator

from moldfront.mutations.catalog import MutationCatalog
from moldfront.mutations.kinds import (
    EffectKind,
    MutationCategory,
    MutationId,
    MutationTier,
)
from moldfront.mutations.mutation import Mutation, Prerequisite
from moldfront.players.player import Player


def _gated_catalog() -> MutationCatalog:
    """Three roots and one mutation requiring all three at level 5."""

    def make(mutation_id: int, *prerequisites: Prerequisite) -> Mutation:
        return Mutation(
            mutation_id=mutation_id,
            name=f"M{mutation_id}",
            description="",
            category=MutationCategory.GROWTH,
            tier=MutationTier.TIER1,
            effect_kind=EffectKind.GROWTH_CHANCE,
            effect_per_level=0.01,
            max_level=5,
            points_per_upgrade=1,
            prerequisites=tuple(prerequisites),
        )

    return MutationCatalog.build(
        [
            make(0),
            make(1),
            make(2),
            make(3, Prerequisite(0, 5), Prerequisite(1, 5), Prerequisite(2, 5)),
        ],
    )


class TestMutationLevels:
    """Tests for levels and summed effects."""

    def test_effect_sums_over_kind(self, catalog: MutationCatalog) -> None:
        player = Player(player_id=0, catalog=catalog)
        player.set_mutation_level(MutationId.MYCELIAL_BLOOM, 4)
        assert player.get_mutation_effect(EffectKind.GROWTH_CHANCE) == pytest.approx(
            4 * catalog.get_by_id(MutationId.MYCELIAL_BLOOM).effect_per_level,
        )
        assert player.get_mutation_effect(EffectKind.DEFENSE_SURVIVAL) == 0.0

    def test_set_level_out_of_range(self, catalog: MutationCatalog) -> None:
        player = Player(player_id=0, catalog=catalog)
        with pytest.raises(ValueError, match="out of range"):
            player.set_mutation_level(MutationId.CREEPING_MOLD, 99)

    def test_default_name(self, catalog: MutationCatalog) -> None:
        assert Player(player_id=3, catalog=catalog).name == "Player 3"


class TestUpgradeGating:
    """Tests for can_upgrade / try_upgrade."""

    def test_three_prerequisites_at_level_five(self) -> None:
        catalog = _gated_catalog()
        gated = catalog.get_by_id(3)
        player = Player(player_id=0, catalog=catalog, mutation_points=100)
        player.set_mutation_level(0, 5, current_round=1)
        player.set_mutation_level(1, 5, current_round=1)
        player.set_mutation_level(2, 4, current_round=1)
        assert not player.can_upgrade(gated, 2)

        assert player.try_upgrade(catalog.get_by_id(2), 3)
        assert player.get_mutation_level(2) == 5
        assert player.prerequisites_met_round[3] == 3
        assert not player.can_upgrade(gated, 3)
        assert player.can_upgrade(gated, 4)

    def test_same_round_unlock_fails_twice(self) -> None:
        catalog = _gated_catalog()
        gated = catalog.get_by_id(3)
        player = Player(player_id=0, catalog=catalog, mutation_points=100)
        for mutation_id in (0, 1, 2):
            player.set_mutation_level(mutation_id, 5, current_round=6)
        points = player.mutation_points
        assert not player.try_upgrade(gated, 6)
        assert not player.try_upgrade(gated, 6)
        assert player.get_mutation_level(3) == 0
        assert player.mutation_points == points
        assert player.try_upgrade(gated, 7)

    def test_upgrade_deducts_cost(self, catalog: MutationCatalog) -> None:
        bloom = catalog.get_by_id(MutationId.MYCELIAL_BLOOM)
        player = Player(player_id=0, catalog=catalog, mutation_points=2)
        assert player.try_upgrade(bloom, 1)
        assert player.mutation_points == 2 - bloom.points_per_upgrade
        owned = player.mutations[MutationId.MYCELIAL_BLOOM]
        assert owned.current_level == 1
        assert owned.first_upgrade_round == 1

    def test_cannot_afford(self, catalog: MutationCatalog) -> None:
        blight = catalog.get_by_id(MutationId.SILENT_BLIGHT)
        player = Player(player_id=0, catalog=catalog, mutation_points=0)
        assert not player.can_upgrade(blight, 1)
        assert player.can_upgrade(blight, 1, ignore_cost=True)

    def test_max_level(self, catalog: MutationCatalog) -> None:
        mutation = catalog.get_by_id(MutationId.ANABOLIC_INVERSION)
        player = Player(player_id=0, catalog=catalog, mutation_points=100)
        player.set_mutation_level(MutationId.ANABOLIC_INVERSION, mutation.max_level)
        assert not player.can_upgrade(mutation, 5)

    def test_missing_prerequisite(self, catalog: MutationCatalog) -> None:
        tendril = catalog.get_by_id(MutationId.TENDRIL_NORTHWEST)
        player = Player(player_id=0, catalog=catalog, mutation_points=100)
        player.set_mutation_level(MutationId.MYCELIAL_BLOOM, 9)
        assert not player.can_upgrade(tendril, 5)

    def test_auto_upgrade_is_free_but_gated(self, catalog: MutationCatalog) -> None:
        blight = catalog.get_by_id(MutationId.SILENT_BLIGHT)
        surge = catalog.get_by_id(MutationId.HYPHAL_SURGE)
        player = Player(player_id=0, catalog=catalog, mutation_points=0)
        player.set_mutation_level(MutationId.MYCELIAL_BLOOM, 5)
        assert player.try_auto_upgrade(blight, 1)
        assert player.mutation_points == 0
        assert not player.try_auto_upgrade(surge, 1)


class TestSurges:
    """Tests for timed surge activations."""

    def test_activation_and_expiry(self, catalog: MutationCatalog) -> None:
        surge = catalog.get_by_id(MutationId.HYPHAL_SURGE)
        player = Player(player_id=0, catalog=catalog, mutation_points=50)
        player.set_mutation_level(MutationId.MYCELIAL_BLOOM, 5)

        assert player.try_upgrade(surge, 1)
        assert player.mutation_points == 50 - surge.upgrade_cost(0)
        assert player.is_surge_active(MutationId.HYPHAL_SURGE)
        assert player.surge_level(MutationId.HYPHAL_SURGE) == 1
        assert not player.can_upgrade(surge, 1)

        duration = surge.surge.duration_rounds
        for _ in range(duration - 1):
            assert player.tick_down_surges() == []
        assert player.tick_down_surges() == [MutationId.HYPHAL_SURGE]
        assert not player.is_surge_active(MutationId.HYPHAL_SURGE)
        assert player.surge_level(MutationId.HYPHAL_SURGE) == 0

        points = player.mutation_points
        assert player.try_upgrade(surge, 4)
        assert player.mutation_points == points - surge.upgrade_cost(1)
        assert player.surge_level(MutationId.HYPHAL_SURGE) == 2


class TestDerivedRules:
    """Tests for age reset and income bonuses."""

    def test_age_reset_threshold(self, catalog: MutationCatalog) -> None:
        player = Player(player_id=0, catalog=catalog)
        assert player.age_reset_threshold(50, 5) == 50
        player.set_mutation_level(MutationId.CHRONORESILIENT_CYTOPLASM, 2)
        assert player.age_reset_threshold(50, 5) == 40
        player.set_mutation_level(MutationId.CHRONORESILIENT_CYTOPLASM, 15)
        assert player.age_reset_threshold(50, 5) == 1

    def test_no_bonus_without_mutations(
        self,
        catalog: MutationCatalog,
        rng: Generator,
    ) -> None:
        player = Player(player_id=0, catalog=catalog)
        assert player.adaptive_expression_bonus(rng) == 0
        assert player.anabolic_inversion_bonus(rng, 0.0) == 0

    def test_adaptive_expression_bounds(
        self,
        catalog: MutationCatalog,
        rng: Generator,
    ) -> None:
        player = Player(player_id=0, catalog=catalog)
        player.set_mutation_level(MutationId.ADAPTIVE_EXPRESSION, 5)
        bonuses = {player.adaptive_expression_bonus(rng) for _ in range(200)}
        assert bonuses <= {0, 1}
        assert 1 in bonuses

    def test_anabolic_inversion_pays_trailing_player(
        self,
        catalog: MutationCatalog,
        rng: Generator,
    ) -> None:
        player = Player(player_id=0, catalog=catalog)
        player.set_mutation_level(MutationId.ANABOLIC_INVERSION, 1)
        bonuses = [player.anabolic_inversion_bonus(rng, 0.0) for _ in range(200)]
        assert all(1 <= b <= 5 for b in bonuses)
        assert max(bonuses) == 5
