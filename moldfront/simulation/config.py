"""Config — load game parameters from YAML files.

Board size, round limits, the player line-up and every rule constant
live in YAML and are parsed into typed dataclasses here.  Rule
constants sit under a nested ``balance:`` mapping that overrides
``GameBalance`` field by field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from moldfront.simulation.balance import GameBalance


def _default_players() -> list[str]:
    return ["random", "tier_weighted"]


@dataclass
class SimulationConfig:
    """Top-level game configuration.

    Attributes:
        seed: RNG seed for deterministic replay; batches spawn one
            stream per game from it.
        width: Number of board columns.
        height: Number of board rows.
        players: Spending strategy name for each player, in id order.
        max_rounds: Round cap for a single game.
        growth_cycles_per_round: Growth sub-cycles per round.
        starting_mutation_points: Points every player starts with.
        balance: Rule constants.
    """

    seed: int = 42
    width: int = 100
    height: int = 100
    players: list[str] = field(default_factory=_default_players)
    max_rounds: int = 150
    growth_cycles_per_round: int = 5
    starting_mutation_points: int = 5
    balance: GameBalance = field(default_factory=GameBalance)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ValueError: If the document is not a mapping or names an
                unknown balance constant.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            msg = f"{path}: expected a mapping at top level, got {type(data).__name__}"
            raise ValueError(msg)

        players = data.get("players", _default_players())
        if not isinstance(players, list) or not players:
            msg = f"{path}: 'players' must be a non-empty list of strategy names"
            raise ValueError(msg)

        balance = data.get("balance")
        if balance is not None and not isinstance(balance, dict):
            msg = f"{path}: 'balance' must be a mapping of constant overrides"
            raise ValueError(msg)

        return cls(
            seed=data.get("seed", cls.seed),
            width=data.get("width", cls.width),
            height=data.get("height", cls.height),
            players=[str(name) for name in players],
            max_rounds=data.get("max_rounds", cls.max_rounds),
            growth_cycles_per_round=data.get(
                "growth_cycles_per_round",
                cls.growth_cycles_per_round,
            ),
            starting_mutation_points=data.get(
                "starting_mutation_points",
                cls.starting_mutation_points,
            ),
            balance=GameBalance.from_mapping(balance),
        )
