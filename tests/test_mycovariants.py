"""Tests for moldfront.mycovariants — the repository, draft and effects."""

import math
from functools import partial

import pytest
from conftest import assert_controlled_tiles_consistent, make_context
from numpy.random import Generator

from moldfront.ai.strategies import make_strategy
from moldfront.board.cell import DeathReason, GrowthSource
from moldfront.effects import mycovariants
from moldfront.events.bus import GameEvent, PostGrowthPhase
from moldfront.growth.resolver import growth_attempts
from moldfront.mycovariants.definitions import (
    build_default_mycovariants,
    jetting_ai_score,
)
from moldfront.mycovariants.draft import (
    MycovariantPool,
    acquire,
    draft_order,
    offer,
    run_draft,
)
from moldfront.mycovariants.mycovariant import (
    Mycovariant,
    MycovariantCategory,
    MycovariantId,
    MycovariantRepository,
)
from moldfront.simulation.balance import GameBalance
from moldfront.simulation.context import GameContext


class _ScriptedRng:
    """Returns fixed ``random()`` draws in order."""

    def __init__(self, draws: list[float]) -> None:
        self.draws = list(draws)

    def random(self) -> float:
        return self.draws.pop(0)


def _place(ctx: GameContext, x: int, y: int, owner: int) -> int:
    tile_id = ctx.board.tile_at(x, y).tile_id
    ctx.board.place_cell(tile_id, owner)
    return tile_id


def _give(ctx: GameContext, player_id: int, mycovariant_id: MycovariantId) -> None:
    repository = build_default_mycovariants(ctx.balance)
    acquire(ctx, ctx.players[player_id], repository.get_by_id(mycovariant_id))


class TestRepository:
    """Tests for the standard mycovariant set."""

    def test_standard_set(self, balance: GameBalance) -> None:
        repository = build_default_mycovariants(balance)
        assert len(repository) == len(MycovariantId)
        universal = {m.mycovariant_id for m in repository.all() if m.is_universal}
        assert universal == {
            MycovariantId.PLASMID_BOUNTY,
            MycovariantId.MYCELIAL_BASTION,
            MycovariantId.BALLISTOSPORE_DISCHARGE,
        }

    def test_unknown_id(self, balance: GameBalance) -> None:
        with pytest.raises(KeyError, match="unknown mycovariant"):
            build_default_mycovariants(balance).get_by_id(9999)

    def test_duplicate_id(self) -> None:
        entry = Mycovariant(
            1, "Twin", "", MycovariantCategory.GROWTH, lambda ctx, player: 1.0
        )
        with pytest.raises(ValueError, match="duplicate mycovariant id"):
            MycovariantRepository.build([entry, entry])

    def test_undefined_synergy(self) -> None:
        entry = Mycovariant(
            1,
            "Loner",
            "",
            MycovariantCategory.GROWTH,
            lambda ctx, player: 1.0,
            synergy_with=(2,),
        )
        with pytest.raises(ValueError, match="undefined synergy"):
            MycovariantRepository.build([entry])

    def test_jetting_score_steps(self) -> None:
        assert jetting_ai_score(0) == 3.0
        assert jetting_ai_score(5) == 5.0
        assert jetting_ai_score(13) == 7.0
        assert jetting_ai_score(21) == 9.0
        assert jetting_ai_score(40) == 10.0


class TestPlayerMycovariants:
    """Tests for Player's mycovariant bookkeeping."""

    def test_add_and_lookup(self, context: GameContext) -> None:
        player = context.players[0]
        repository = build_default_mycovariants(context.balance)
        mantle = repository.get_by_id(MycovariantId.NEUTRALIZING_MANTLE)
        held = player.add_mycovariant(mantle)
        assert player.has_mycovariant(MycovariantId.NEUTRALIZING_MANTLE)
        assert player.get_mycovariant(MycovariantId.NEUTRALIZING_MANTLE) is held
        assert not player.has_mycovariant(MycovariantId.PLASMID_BOUNTY)
        with pytest.raises(ValueError, match="already holds"):
            player.add_mycovariant(mantle)


class TestDraft:
    """Tests for the pool, draft order and picks."""

    def test_fewest_living_cells_pick_first(self, context: GameContext) -> None:
        for x in range(3):
            _place(context, x, 0, 0)
        _place(context, 5, 5, 1)
        assert [p.player_id for p in draft_order(context)] == [1, 0]

    def test_offer_is_a_random_handful(self, context: GameContext) -> None:
        pool = MycovariantPool(build_default_mycovariants(context.balance))
        choices = offer(context, pool, context.players[0])
        assert len(choices) == context.balance.mycovariant_draft_size
        assert len({m.mycovariant_id for m in choices}) == len(choices)

    def test_non_universal_picks_leave_the_pool(self, context: GameContext) -> None:
        repository = build_default_mycovariants(context.balance)
        pool = MycovariantPool(repository)
        mantle = repository.get_by_id(MycovariantId.NEUTRALIZING_MANTLE)
        bounty = repository.get_by_id(MycovariantId.PLASMID_BOUNTY)
        pool.take(mantle)
        pool.take(bounty)
        acquire(context, context.players[0], bounty)

        eligible = {m.mycovariant_id for m in pool.eligible_for(context.players[1])}
        assert MycovariantId.NEUTRALIZING_MANTLE not in eligible
        assert MycovariantId.PLASMID_BOUNTY in eligible
        own = {m.mycovariant_id for m in pool.eligible_for(context.players[0])}
        assert MycovariantId.PLASMID_BOUNTY not in own

    def test_run_draft_gives_everyone_one_pick(self, context: GameContext) -> None:
        _place(context, 1, 1, 0)
        _place(context, 6, 6, 1)
        pool = MycovariantPool(build_default_mycovariants(context.balance))
        picks = run_draft(context, pool)

        assert len(picks) == 2
        for player in context.players.values():
            assert len(player.mycovariants) == 1
            held = player.mycovariants[0]
            assert held.triggered
            assert held.ai_score_at_draft is not None
        exclusive = [
            h.mycovariant.mycovariant_id
            for h in picks
            if not h.mycovariant.is_universal
        ]
        assert len(exclusive) == len(set(exclusive))
        assert pool.drafted == set(exclusive)
        assert_controlled_tiles_consistent(context.board)

    def test_strategy_takes_highest_score(self, context: GameContext) -> None:
        repository = build_default_mycovariants(context.balance)
        choices = [
            repository.get_by_id(MycovariantId.MYCELIAL_BASTION),
            repository.get_by_id(MycovariantId.NEUTRALIZING_MANTLE),
            repository.get_by_id(MycovariantId.PLASMID_BOUNTY),
        ]
        strategy = make_strategy("tier_weighted")
        pick = strategy.choose_mycovariant(choices, context.players[0], context)
        assert pick.mycovariant_id == MycovariantId.PLASMID_BOUNTY

    def test_synergy_raises_score(self, context: GameContext) -> None:
        player = context.players[0]
        repository = build_default_mycovariants(context.balance)
        necrophoric = repository.get_by_id(MycovariantId.NECROPHORIC_ADAPTATION)
        before = necrophoric.score(context, player)
        player.add_mycovariant(
            repository.get_by_id(MycovariantId.RECLAMATION_RHIZOMORPHS),
        )
        assert necrophoric.score(context, player) == pytest.approx(before + 3.0)

    def test_random_strategy_picks_a_choice(self, context: GameContext) -> None:
        repository = build_default_mycovariants(context.balance)
        choices = repository.all()[:3]
        strategy = make_strategy("random")
        for _ in range(10):
            assert (
                strategy.choose_mycovariant(choices, context.players[0], context)
                in choices
            )


class TestAcquireEffects:
    """Tests for mycovariants that act when drafted."""

    def test_plasmid_bounty(self, context: GameContext) -> None:
        player = context.players[0]
        player.mutation_points = 2
        _give(context, 0, MycovariantId.PLASMID_BOUNTY)
        assert player.mutation_points == 2 + context.balance.plasmid_bounty_points
        held = player.get_mycovariant(MycovariantId.PLASMID_BOUNTY)
        assert held.effect_counts["points"] == context.balance.plasmid_bounty_points

    def test_mycelial_bastion(self, context: GameContext) -> None:
        for x in range(8):
            _place(context, x, 0, 0)
        _give(context, 0, MycovariantId.MYCELIAL_BASTION)
        resistant = [c for c in context.board.living_cells_of(0) if c.is_resistant]
        assert len(resistant) == context.balance.mycelial_bastion_cells

    def test_ballistospore_lands_beside_rivals(self, context: GameContext) -> None:
        board = context.board
        own = _place(context, 0, 0, 0)
        rival = _place(context, 4, 4, 1)
        _give(context, 0, MycovariantId.BALLISTOSPORE_DISCHARGE)

        toxins = board.toxin_cells()
        assert len(toxins) == context.balance.ballistospore_discharge_spores
        assert all(c.owner_id == 0 for c in toxins)
        assert all(c.source_of_growth is GrowthSource.BALLISTOSPORE for c in toxins)
        for tile in board.orthogonal_neighbours(rival):
            assert tile.cell is not None
            assert tile.cell.is_toxin
        assert board.cell(own).is_alive
        assert board.cell(rival).is_alive

    def test_jetting_mycelium_line_and_cone(self, rng: Generator) -> None:
        ctx = make_context(GameBalance(), rng, width=20, height=20)
        board = ctx.board
        origin = _place(ctx, 10, 19, 0)
        infested = _place(ctx, 10, 17, 1)
        poisoned = _place(ctx, 10, 12, 1)
        _give(ctx, 0, MycovariantId.JETTING_MYCELIUM_NORTH)

        line = {board.tile_at(10, y).tile_id for y in range(15, 19)}
        assert {c.tile_id for c in board.living_cells_of(0)} == line | {origin}
        assert board.cell(infested).source_of_growth is GrowthSource.JETTING_MYCELIUM
        victim = board.cell(poisoned)
        assert victim.is_toxin
        assert victim.owner_id == 0
        assert victim.cause_of_death is DeathReason.JETTING_MYCELIUM
        sections = ctx.balance.jetting_mycelium_cone
        cone = sum(length * width for length, width in sections)
        assert len(board.toxin_cells()) == cone
        assert board.living_cells_of(1) == []
        assert_controlled_tiles_consistent(board)

    def test_jet_origin_faces_the_enemy(self, rng: Generator) -> None:
        ctx = make_context(GameBalance(), rng, width=20, height=20)
        _place(ctx, 2, 19, 0)
        facing = _place(ctx, 15, 19, 0)
        _place(ctx, 15, 16, 1)
        origin, score = mycovariants.best_jet_origin(ctx, ctx.players[0], (0, -1))
        assert origin is not None
        assert origin.tile_id == facing
        assert score == 5

    def test_surgical_inoculation_takes_open_enemy(self, context: GameContext) -> None:
        _place(context, 7, 7, 0)
        _place(context, 0, 0, 1)
        target = _place(context, 4, 4, 1)
        _give(context, 0, MycovariantId.SURGICAL_INOCULATION)
        cell = context.board.cell(target)
        assert cell.owner_id == 0
        assert cell.is_resistant
        assert cell.source_of_growth is GrowthSource.SURGICAL_INOCULATION
        assert_controlled_tiles_consistent(context.board)

    def test_surgical_inoculation_without_enemies(self, context: GameContext) -> None:
        _place(context, 0, 0, 0)
        _give(context, 0, MycovariantId.SURGICAL_INOCULATION)
        living = context.board.living_cells_of(0)
        assert len(living) == 2
        assert sum(1 for c in living if c.is_resistant) == 1

    def test_enduring_toxaphores(self, context: GameContext) -> None:
        board = context.board
        player = context.players[0]
        tile_id = board.tile_at(2, 2).tile_id
        board.convert_to_toxin(tile_id, board.current_round + 2, 0)
        _give(context, 0, MycovariantId.ENDURING_TOXAPHORES)

        extension = context.balance.enduring_toxaphores_existing_toxin_extension
        rounds = math.ceil(extension / board.growth_cycles_per_round)
        assert board.cell(tile_id).toxin_expiration_round == (
            board.current_round + 2 + rounds
        )
        new_toxins = context.balance.enduring_toxaphores_new_toxin_extension
        assert context.toxin_expiration(6, player) == board.toxin_expiration_round(
            6 + new_toxins,
        )


class TestPassiveEffects:
    """Tests for mycovariants that react to events."""

    def test_neutralizing_mantle_cancels_enemy_toxin(self, rng: Generator) -> None:
        ctx = make_context(GameBalance(neutralizing_mantle_chance=1.0), rng)
        ctx.events.subscribe(
            GameEvent.TOXIN_PLACED,
            partial(mycovariants.neutralizing_mantle, ctx),
        )
        _give(ctx, 1, MycovariantId.NEUTRALIZING_MANTLE)
        _place(ctx, 3, 3, 1)
        board = ctx.board
        expiration = board.current_round + 2
        beside = board.tile_at(3, 4).tile_id
        far = board.tile_at(7, 7).tile_id
        own = board.tile_at(2, 3).tile_id

        assert not board.convert_to_toxin(beside, expiration, 0)
        assert board.cell(beside) is None
        assert board.convert_to_toxin(far, expiration, 0)
        assert board.convert_to_toxin(own, expiration, 1)
        held = ctx.players[1].get_mycovariant(MycovariantId.NEUTRALIZING_MANTLE)
        assert held.effect_counts["neutralized"] == 1

    def test_hyphal_resistance_transfer(self, rng: Generator) -> None:
        ctx = make_context(GameBalance(hyphal_resistance_transfer_chance=1.0), rng)
        _give(ctx, 0, MycovariantId.HYPHAL_RESISTANCE_TRANSFER)
        anchor = _place(ctx, 3, 3, 0)
        ctx.board.make_resistant(anchor)
        beside = _place(ctx, 3, 4, 0)
        diagonal = _place(ctx, 4, 4, 0)
        far = _place(ctx, 7, 7, 0)
        enemy = _place(ctx, 2, 2, 1)

        mycovariants.hyphal_resistance_transfer(ctx, PostGrowthPhase(1))
        assert ctx.board.cell(beside).is_resistant
        assert ctx.board.cell(diagonal).is_resistant
        assert not ctx.board.cell(far).is_resistant
        assert not ctx.board.cell(enemy).is_resistant

    def test_necrophoric_adaptation_revives_neighbour(self, rng: Generator) -> None:
        ctx = make_context(GameBalance(necrophoric_adaptation_reclaim_chance=1.0), rng)
        ctx.events.subscribe(
            GameEvent.CELL_DEATH,
            partial(mycovariants.necrophoric_adaptation, ctx),
        )
        _give(ctx, 0, MycovariantId.NECROPHORIC_ADAPTATION)
        board = ctx.board
        dead = _place(ctx, 3, 4, 0)
        board.kill_cell(dead, DeathReason.AGE)
        board.kill_cell(_place(ctx, 3, 3, 0), DeathReason.AGE)

        revived = board.cell(dead)
        assert revived.is_alive
        assert revived.owner_id == 0
        assert revived.source_of_growth is GrowthSource.NECROPHORIC_ADAPTATION
        assert_controlled_tiles_consistent(board)

    def test_rhizomorphs_grant_second_attempt(self, context: GameContext) -> None:
        board = context.board
        player = context.players[0]
        dead = _place(context, 2, 2, 0)
        board.kill_cell(dead, DeathReason.AGE)
        context.rng = _ScriptedRng([0.9])
        assert not mycovariants.try_reclaim(
            context, player, dead, 0.5, GrowthSource.RECLAIM
        )

        _give(context, 0, MycovariantId.RECLAMATION_RHIZOMORPHS)
        context.rng = _ScriptedRng([0.9, 0.1, 0.3])
        assert mycovariants.try_reclaim(
            context, player, dead, 0.5, GrowthSource.RECLAIM
        )
        assert board.cell(dead).is_alive
        held = player.get_mycovariant(MycovariantId.RECLAMATION_RHIZOMORPHS)
        assert held.effect_counts["second_attempts"] == 1

    def test_perimeter_proliferator_boosts_edge_growth(self, rng: Generator) -> None:
        ctx = make_context(GameBalance(), rng, width=20, height=20)
        player = ctx.players[0]
        edge = _place(ctx, 1, 10, 0)
        middle = _place(ctx, 10, 10, 0)
        base = ctx.balance.base_growth_chance
        _give(ctx, 0, MycovariantId.PERIMETER_PROLIFERATOR)

        boost = ctx.balance.perimeter_proliferator_growth_multiplier
        for _, chance, _ in growth_attempts(ctx, player, edge):
            assert chance == pytest.approx(base * boost)
        for _, chance, _ in growth_attempts(ctx, player, middle):
            assert chance == pytest.approx(base)
