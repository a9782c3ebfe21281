"""TurnEngine — the main round loop.

Owns one game's state and advances it in the canonical round order:

1. Reset per-round counters; run the mycovariant draft on draft rounds
2. Mutation phase (free upgrades, income, strategy spending)
3. Growth phase (toxin expiry, pre-growth effects, growth sub-cycles,
   post-growth effects)
4. Decay phase (decay-phase effects, then the death roll)
5. Bookkeeping (surge timers, endgame countdown, round counter)

Everything random draws from the single generator held here, so the
same seed and config always replay the same game.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np
from numpy.random import Generator

from moldfront.ai.strategies import make_strategy
from moldfront.board.board import Board
from moldfront.board.cell import GrowthSource
from moldfront.decay.resolver import run_decay_phase
from moldfront.effects.registry import register_default_effects
from moldfront.events.bus import MutationPhaseStart, PostGrowthPhase, PreGrowthPhase
from moldfront.growth.resolver import run_growth_cycle
from moldfront.mutations.catalog import MutationCatalog
from moldfront.mutations.definitions import build_default_catalog
from moldfront.mycovariants.definitions import build_default_mycovariants
from moldfront.mycovariants.draft import MycovariantPool, run_draft
from moldfront.mycovariants.mycovariant import MycovariantRepository
from moldfront.players.player import Player
from moldfront.simulation.balance import GameBalance
from moldfront.simulation.config import SimulationConfig
from moldfront.simulation.context import GameContext
from moldfront.simulation.observer import SimulationObserver

logger = logging.getLogger(__name__)


@dataclass
class GameResult:
    """Final state of one game.

    Attributes:
        rounds_played: Rounds completed.
        living_cells: Living cells per player at the end.
        dead_cells: Dead (non-toxin) cells per player at the end.
        strategies: Strategy name per player.
        winner_id: Player with the most living cells; ties go to the
            lowest id.
    """

    rounds_played: int
    living_cells: dict[int, int]
    dead_cells: dict[int, int]
    strategies: dict[int, str]
    winner_id: int | None

    @property
    def winner_strategy(self) -> str | None:
        if self.winner_id is None:
            return None
        return self.strategies.get(self.winner_id)


@dataclass
class TurnEngine:
    """Drives one game forward round by round.

    Attributes:
        config: Loaded game configuration.
        rng: The game's random generator; seeded from ``config.seed``
            when not supplied.
        observer: Analytics sink shared by the board and every effect.
        balance: Rule constants (from the config).
        catalog: Mutation registry built from the balance.
        mycovariants: Mycovariant repository built from the balance.
        mycovariant_pool: Mycovariants still available to draft.
        board: The grid, carrying the event bus and the players.
        context: Dependencies handed to resolvers and effects.
        endgame_rounds_remaining: Countdown once the board is nearly
            full, or None before that.
        game_over: Whether the endgame countdown has run out.
    """

    config: SimulationConfig
    rng: Generator | None = None
    observer: SimulationObserver = field(default_factory=SimulationObserver)
    balance: GameBalance = field(init=False)
    catalog: MutationCatalog = field(init=False)
    mycovariants: MycovariantRepository = field(init=False, repr=False)
    mycovariant_pool: MycovariantPool = field(init=False, repr=False)
    board: Board = field(init=False)
    context: GameContext = field(init=False, repr=False)
    endgame_rounds_remaining: int | None = field(init=False, default=None)
    game_over: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        """Build catalog, mycovariant pool, board, players and wire the effects."""
        if self.rng is None:
            self.rng = np.random.default_rng(self.config.seed)
        self.balance = self.config.balance
        self.catalog = build_default_catalog(self.balance)
        self.mycovariants = build_default_mycovariants(self.balance)
        self.mycovariant_pool = MycovariantPool(self.mycovariants)
        self.board = Board(
            width=self.config.width,
            height=self.config.height,
            growth_cycles_per_round=self.config.growth_cycles_per_round,
            observer=self.observer,
        )
        self.context = GameContext(
            board=self.board,
            catalog=self.catalog,
            balance=self.balance,
            rng=self.rng,
            observer=self.observer,
        )
        register_default_effects(self.context)
        for player_id, strategy_name in enumerate(self.config.players):
            self.board.add_player(
                Player(
                    player_id=player_id,
                    catalog=self.catalog,
                    strategy=make_strategy(strategy_name),
                    mutation_points=self.config.starting_mutation_points,
                    base_income=self.balance.base_mutation_point_income,
                ),
            )
        self._place_starting_spores()

    @property
    def players(self) -> dict[int, Player]:
        return self.board.players

    @property
    def rounds_played(self) -> int:
        return self.board.current_round - 1

    # -- Setup -----------------------------------------------------------

    def _place_starting_spores(self) -> None:
        """Place one spore per player, evenly spaced on a ring around the centre."""
        board = self.board
        count = len(self.players)
        centre_x, centre_y = (board.width - 1) / 2, (board.height - 1) / 2
        radius = 0.0 if count == 1 else min(board.width, board.height) / 4
        for index, player_id in enumerate(sorted(self.players)):
            angle = 2 * math.pi * index / count
            x = round(centre_x + radius * math.cos(angle))
            y = round(centre_y + radius * math.sin(angle))
            x = min(board.width - 1, max(0, x))
            y = min(board.height - 1, max(0, y))
            tile = board.tile_at(x, y)
            if tile.cell is not None:
                empty = board.empty_tiles()
                if not empty:
                    msg = f"no room for player {player_id}'s starting spore"
                    raise ValueError(msg)
                tile = min(empty, key=lambda t, origin=tile: origin.distance_to(t))
            board.place_cell(tile.tile_id, player_id, source=GrowthSource.INITIAL_SPORE)

    # -- Phases ----------------------------------------------------------

    def run_mycovariant_draft(self) -> None:
        run_draft(self.context, self.mycovariant_pool)

    def assign_mutation_points(self) -> None:
        """Mutation phase: free upgrades, round income, then spending."""
        board = self.board
        self.context.events.publish(MutationPhaseStart(board.current_round))

        counts = board.living_counts()
        for player_id, player in sorted(self.players.items()):
            others = [n for pid, n in counts.items() if pid != player_id]
            average = sum(others) / len(others) if others else 0.0
            ratio = counts.get(player_id, 0) / average if average > 0 else 1.0
            income = (
                player.base_income
                + player.adaptive_expression_bonus(self.rng)
                + player.anabolic_inversion_bonus(self.rng, ratio)
            )
            player.mutation_points += income
            self.observer.record_mutation_point_income(player_id, income)

        for player_id, player in sorted(self.players.items()):
            if player.strategy is None:
                continue
            spent = player.strategy.spend(player, self.catalog, board, self.rng)
            if spent:
                self.observer.record_mutation_points_spent(player_id, spent)

    def run_growth_phase(self) -> None:
        """Expire toxins, then run the round's growth sub-cycles."""
        board = self.board
        expired = board.expire_toxins()
        if expired:
            logger.debug("Round %d: %d toxins expired", board.current_round, expired)
        self.context.events.publish(PreGrowthPhase(board.current_round))
        for _ in range(self.config.growth_cycles_per_round):
            run_growth_cycle(self.context)
        self.context.events.publish(PostGrowthPhase(board.current_round))

    def run_decay_phase(self) -> None:
        run_decay_phase(self.context)

    def _finish_round(self) -> None:
        board = self.board
        for player in self.players.values():
            for mutation_id in player.tick_down_surges():
                logger.debug(
                    "Round %d: surge %d ended for %s",
                    board.current_round,
                    mutation_id,
                    player.name,
                )

        if self.endgame_rounds_remaining is None:
            threshold = self.balance.endgame_occupancy_threshold
            if board.should_trigger_endgame(threshold):
                self.endgame_rounds_remaining = (
                    self.balance.rounds_after_endgame_threshold
                )
                logger.info(
                    "Round %d: board %.0f%% occupied, endgame in %d rounds",
                    board.current_round,
                    board.occupied_ratio() * 100,
                    self.endgame_rounds_remaining,
                )
        else:
            self.endgame_rounds_remaining -= 1
        if self.endgame_rounds_remaining is not None:
            self.game_over = self.endgame_rounds_remaining <= 0

        board.increment_round()

    def run_round(self) -> None:
        """Advance the game by one full round."""
        self.context.round_context.reset()
        if self.board.current_round in self.balance.mycovariant_draft_rounds:
            self.run_mycovariant_draft()
        self.assign_mutation_points()
        self.run_growth_phase()
        self.run_decay_phase()
        logger.debug(
            "Round %d: living %s",
            self.board.current_round,
            self.board.living_counts(),
        )
        self._finish_round()

    def run(self, max_rounds: int | None = None) -> GameResult:
        """Play until the endgame countdown ends or the round cap is hit.

        Args:
            max_rounds: Round cap; defaults to ``config.max_rounds``.

        Returns:
            The final result.
        """
        limit = self.config.max_rounds if max_rounds is None else max_rounds
        while not self.game_over and self.rounds_played < limit:
            self.run_round()
        return self.result()

    def result(self) -> GameResult:
        """Snapshot the current standings."""
        counts = self.board.living_counts()
        ids = sorted(self.players)
        winner = max(ids, key=lambda pid: counts.get(pid, 0)) if ids else None
        return GameResult(
            rounds_played=self.rounds_played,
            living_cells={pid: counts.get(pid, 0) for pid in ids},
            dead_cells={pid: len(self.board.dead_cells_of(pid)) for pid in ids},
            strategies={
                pid: player.strategy.name if player.strategy else ""
                for pid, player in self.players.items()
            },
            winner_id=winner,
        )
