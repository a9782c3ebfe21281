"""Tests for moldfront.growth — growth attempts and sub-cycles."""

import pytest
from conftest import assert_controlled_tiles_consistent, make_context
from numpy.random import Generator

from moldfront.board.cell import DeathReason, GrowthSource
from moldfront.events.bus import GameEvent, GrowthFailed
from moldfront.growth.resolver import growth_attempts, run_growth_cycle
from moldfront.mutations.kinds import MutationId
from moldfront.simulation.balance import GameBalance
from moldfront.simulation.context import GameContext


class TestGrowthAttempts:
    """Tests for per-cell growth candidates and chances."""

    def test_orthogonal_only_without_tendrils(self, context: GameContext) -> None:
        board = context.board
        tile_id = board.tile_at(3, 3).tile_id
        board.place_cell(tile_id, 0)
        attempts = growth_attempts(context, context.players[0], tile_id)
        assert len(attempts) == 4
        for _, chance, source in attempts:
            assert chance == pytest.approx(context.balance.base_growth_chance)
            assert source is GrowthSource.HYPHAL_OUTGROWTH

    def test_occupied_neighbours_excluded(self, context: GameContext) -> None:
        board = context.board
        tile_id = board.tile_at(0, 0).tile_id
        board.place_cell(tile_id, 0)
        board.place_cell(board.tile_at(1, 0).tile_id, 1)
        attempts = growth_attempts(context, context.players[0], tile_id)
        assert [a[0] for a in attempts] == [board.tile_at(0, 1).tile_id]

    def test_tendril_and_induction(self, context: GameContext) -> None:
        board = context.board
        player = context.players[0]
        player.set_mutation_level(MutationId.MYCELIAL_BLOOM, 10)
        player.set_mutation_level(MutationId.TENDRIL_NORTHWEST, 3)
        tile_id = board.tile_at(3, 3).tile_id
        board.place_cell(tile_id, 0)

        diagonal = [
            a
            for a in growth_attempts(context, player, tile_id)
            if a[2] is not GrowthSource.HYPHAL_OUTGROWTH
        ]
        assert len(diagonal) == 1
        target, chance, source = diagonal[0]
        assert target == board.tile_at(2, 2).tile_id
        assert source is GrowthSource.TENDRIL_OUTGROWTH
        per_level = context.balance.tendril_effect_per_level
        assert chance == pytest.approx(3 * per_level)

        for mutation_id in (
            MutationId.TENDRIL_NORTHEAST,
            MutationId.TENDRIL_SOUTHEAST,
            MutationId.TENDRIL_SOUTHWEST,
        ):
            player.set_mutation_level(mutation_id, 1)
        player.set_mutation_level(MutationId.MYCOTROPIC_INDUCTION, 1)
        boost = 1 + context.balance.mycotropic_induction_effect_per_level
        chances = {
            a[0]: a[1]
            for a in growth_attempts(context, player, tile_id)
            if a[2] is GrowthSource.TENDRIL_OUTGROWTH
        }
        assert len(chances) == 4
        northwest = board.tile_at(2, 2).tile_id
        assert chances[northwest] == pytest.approx(3 * per_level * boost)

    def test_hyphal_surge_boosts_orthogonal(self, context: GameContext) -> None:
        board = context.board
        player = context.players[0]
        player.mutation_points = 100
        player.set_mutation_level(MutationId.MYCELIAL_BLOOM, 5)
        player.try_upgrade(context.catalog.get_by_id(MutationId.HYPHAL_SURGE), 1)
        tile_id = board.tile_at(3, 3).tile_id
        board.place_cell(tile_id, 0)
        bloom = 5 * context.balance.mycelial_bloom_effect_per_level
        expected = (
            context.balance.base_growth_chance
            + bloom
            + context.balance.hyphal_surge_effect_per_level
        )
        for _, chance, _ in growth_attempts(context, player, tile_id):
            assert chance == pytest.approx(expected)


class TestGrowthCycle:
    """Tests for run_growth_cycle."""

    def test_enclosed_cell_grows_nothing(self, context: GameContext) -> None:
        board = context.board
        centre = board.tile_at(3, 3).tile_id
        board.place_cell(centre, 0)
        for tile in board.all_neighbours(centre):
            board.place_cell(tile.tile_id, 1)
            board.kill_cell(tile.tile_id, DeathReason.AGE)
        occupied = board.occupied_count()
        failures: list[GrowthFailed] = []
        context.events.subscribe(GameEvent.GROWTH_FAILED, failures.append)

        assert run_growth_cycle(context) == 0
        assert board.occupied_count() == occupied
        assert context.round_context.failed_growths[0] == 1
        assert len(failures) == 1
        assert failures[0].tile_id == centre
        assert failures[0].candidate_tile_ids == []
        assert board.current_growth_cycle == 1

    def test_certain_growth(self, rng: Generator) -> None:
        ctx = make_context(GameBalance(base_growth_chance=1.0), rng)
        board = ctx.board
        board.place_cell(board.tile_at(3, 3).tile_id, 0)
        board.place_cell(board.tile_at(0, 7).tile_id, 1)

        assert run_growth_cycle(ctx) == 2
        assert len(board.living_cells_of(0)) == 2
        assert len(board.living_cells_of(1)) == 2
        assert_controlled_tiles_consistent(board)

    def test_failed_growth_counted(self, rng: Generator) -> None:
        ctx = make_context(GameBalance(base_growth_chance=0.0), rng)
        board = ctx.board
        board.place_cell(board.tile_at(3, 3).tile_id, 0)
        board.place_cell(board.tile_at(5, 5).tile_id, 0)
        failures: list[GrowthFailed] = []
        ctx.events.subscribe(GameEvent.GROWTH_FAILED, failures.append)

        run_growth_cycle(ctx)
        assert len(failures) == 2
        assert ctx.round_context.failed_growths[0] == 2
        assert all(len(f.candidate_tile_ids) == 4 for f in failures)

    def test_handled_failure_not_counted(self, rng: Generator) -> None:
        ctx = make_context(GameBalance(base_growth_chance=0.0), rng)
        board = ctx.board
        board.place_cell(board.tile_at(3, 3).tile_id, 0)

        def settle(event: GrowthFailed) -> None:
            event.handled = True

        ctx.events.subscribe(GameEvent.GROWTH_FAILED, settle)
        run_growth_cycle(ctx)
        assert ctx.round_context.failed_growths[0] == 0

    def test_unknown_owner_is_skipped(
        self,
        context: GameContext,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        context.board.place_cell(0, 9)
        with caplog.at_level("WARNING", logger="moldfront.growth.resolver"):
            assert run_growth_cycle(context) == 0
        assert "unknown owner" in caplog.text
