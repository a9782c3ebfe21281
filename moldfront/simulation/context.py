"""Shared state threaded through resolvers and effect handlers.

``GameContext`` bundles everything one game owns: the board, the
catalog, the balance constants, the single random generator and the
observer.  ``RoundContext`` holds per-round counters that reset at the
start of every round.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from moldfront.mutations.kinds import MutationId
from moldfront.mycovariants.mycovariant import MycovariantId
from moldfront.simulation.observer import SimulationObserver

if TYPE_CHECKING:
    import numpy as np

    from moldfront.board.board import Board
    from moldfront.events.bus import EffectCoordinator
    from moldfront.mutations.catalog import MutationCatalog
    from moldfront.players.player import Player
    from moldfront.simulation.balance import GameBalance


@dataclass
class RoundContext:
    """Counters scoped to a single round.

    Attributes:
        failed_growths: Unsettled growth failures per player.
        catabolism_points: Points earned from Mycotoxin Catabolism.
        regenerated_tiles: Tiles already revived by Regenerative Hyphae.
    """

    failed_growths: Counter[int] = field(default_factory=Counter)
    catabolism_points: Counter[int] = field(default_factory=Counter)
    regenerated_tiles: set[int] = field(default_factory=set)

    def reset(self) -> None:
        self.failed_growths.clear()
        self.catabolism_points.clear()
        self.regenerated_tiles.clear()


@dataclass
class GameContext:
    """Per-game dependencies shared by every phase.

    Attributes:
        board: The grid; also carries the event bus and players.
        catalog: Mutation registry.
        balance: Rule constants.
        rng: The game's only source of randomness.
        observer: Analytics sink.
        round_context: Counters for the round being played.
    """

    board: Board
    catalog: MutationCatalog
    balance: GameBalance
    rng: np.random.Generator
    observer: SimulationObserver = field(default_factory=SimulationObserver)
    round_context: RoundContext = field(default_factory=RoundContext)

    @property
    def events(self) -> EffectCoordinator:
        return self.board.events

    @property
    def players(self) -> dict[int, Player]:
        return self.board.players

    def player(self, player_id: int | None) -> Player | None:
        if player_id is None:
            return None
        return self.board.players.get(player_id)

    def toxin_expiration(
        self,
        duration_cycles: int,
        owner: Player | None = None,
    ) -> int:
        """Expiry round for a toxin, extended by the owner's traits.

        Mycotoxin Potentiation adds cycles per level; Enduring Toxaphores
        adds a flat number of cycles.
        """
        if owner is not None:
            level = owner.get_mutation_level(MutationId.MYCOTOXIN_POTENTIATION)
            duration_cycles += (
                level * self.balance.mycotoxin_potentiation_duration_extension_per_level
            )
            if owner.has_mycovariant(MycovariantId.ENDURING_TOXAPHORES):
                duration_cycles += self.balance.enduring_toxaphores_new_toxin_extension
        return self.board.toxin_expiration_round(duration_cycles)
