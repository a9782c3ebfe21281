"""Shared fixtures for the Moldfront test suite."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.random import Generator

from moldfront.board.board import Board
from moldfront.mutations.catalog import MutationCatalog
from moldfront.mutations.definitions import build_default_catalog
from moldfront.players.player import Player
from moldfront.simulation.balance import GameBalance
from moldfront.simulation.context import GameContext


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def balance() -> GameBalance:
    """Default rule constants."""
    return GameBalance()


@pytest.fixture
def catalog(balance: GameBalance) -> MutationCatalog:
    """The standard mutation catalog."""
    return build_default_catalog(balance)


@pytest.fixture
def small_board() -> Board:
    """A small 8x8 board for fast tests."""
    return Board(width=8, height=8)


@pytest.fixture
def two_players(
    small_board: Board,
    catalog: MutationCatalog,
) -> tuple[Player, Player]:
    """Players 0 and 1 registered on ``small_board``, no cells yet."""
    first = Player(player_id=0, catalog=catalog)
    second = Player(player_id=1, catalog=catalog)
    small_board.add_player(first)
    small_board.add_player(second)
    return first, second


@pytest.fixture
def context(
    small_board: Board,
    catalog: MutationCatalog,
    balance: GameBalance,
    rng: Generator,
    two_players: tuple[Player, Player],
) -> GameContext:
    """A game context over ``small_board`` with no effects registered."""
    return GameContext(
        board=small_board,
        catalog=catalog,
        balance=balance,
        rng=rng,
        observer=small_board.observer,
    )


def make_context(
    balance: GameBalance,
    rng: Generator,
    *,
    width: int = 8,
    height: int = 8,
    players: int = 2,
) -> GameContext:
    """Build a fresh context with custom balance constants."""
    catalog = build_default_catalog(balance)
    board = Board(width=width, height=height)
    for player_id in range(players):
        board.add_player(Player(player_id=player_id, catalog=catalog))
    return GameContext(
        board=board,
        catalog=catalog,
        balance=balance,
        rng=rng,
        observer=board.observer,
    )


def assert_controlled_tiles_consistent(board: Board) -> None:
    """Every player's tile set matches the living cells it owns."""
    for player_id, player in board.players.items():
        owned = {c.tile_id for c in board.living_cells_of(player_id)}
        assert player.controlled_tile_ids == owned
