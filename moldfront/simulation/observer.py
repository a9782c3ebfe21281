"""Observer — hooks the core calls on notable simulation events.

The core never depends on a concrete reporting implementation.  It
talks to a ``SimulationObserver`` whose methods are all no-ops; the
batch runner swaps in ``SimulationTracker`` to aggregate counters across
a game (deaths by reason, spores dropped, points earned and spent).
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field

from moldfront.board.cell import DeathReason, GrowthSource


class SimulationObserver:
    """Receives simulation notifications.  Every method is a no-op."""

    def record_cell_death(
        self,
        player_id: int,
        reason: DeathReason,
        killer_id: int | None = None,
    ) -> None:
        """A cell owned by ``player_id`` died."""

    def record_cell_growth(self, player_id: int, source: GrowthSource) -> None:
        """A living cell appeared for ``player_id``."""

    def record_mutation_point_income(self, player_id: int, points: int) -> None:
        """``player_id`` received ``points`` at the start of a round."""

    def record_mutation_points_spent(self, player_id: int, points: int) -> None:
        """``player_id`` spent ``points`` during the mutation phase."""

    def record_spore_drop(
        self,
        player_id: int,
        source: GrowthSource,
        count: int,
    ) -> None:
        """A mutation effect dropped ``count`` spores or toxins."""

    def record_effect(self, player_id: int, effect: str, count: int = 1) -> None:
        """A named mutation effect fired ``count`` times."""


@dataclass
class SimulationTracker(SimulationObserver):
    """Counting observer used by the batch runner.

    Attributes:
        deaths: Deaths suffered per player, by reason.
        kills: Kills credited per killer, by reason.
        growth: Cells gained per player, by source.
        income: Total mutation points received per player.
        spent: Total mutation points spent per player.
        spores: Spores dropped per player, by source.
        effects: Named effect counters per player.
    """

    deaths: dict[int, Counter[DeathReason]] = field(
        default_factory=lambda: defaultdict(Counter),
    )
    kills: dict[int, Counter[DeathReason]] = field(
        default_factory=lambda: defaultdict(Counter),
    )
    growth: dict[int, Counter[GrowthSource]] = field(
        default_factory=lambda: defaultdict(Counter),
    )
    income: Counter[int] = field(default_factory=Counter)
    spent: Counter[int] = field(default_factory=Counter)
    spores: dict[int, Counter[GrowthSource]] = field(
        default_factory=lambda: defaultdict(Counter),
    )
    effects: dict[int, Counter[str]] = field(
        default_factory=lambda: defaultdict(Counter),
    )

    def record_cell_death(
        self,
        player_id: int,
        reason: DeathReason,
        killer_id: int | None = None,
    ) -> None:
        self.deaths[player_id][reason] += 1
        if killer_id is not None:
            self.kills[killer_id][reason] += 1

    def record_cell_growth(self, player_id: int, source: GrowthSource) -> None:
        self.growth[player_id][source] += 1

    def record_mutation_point_income(self, player_id: int, points: int) -> None:
        self.income[player_id] += points

    def record_mutation_points_spent(self, player_id: int, points: int) -> None:
        self.spent[player_id] += points

    def record_spore_drop(
        self,
        player_id: int,
        source: GrowthSource,
        count: int,
    ) -> None:
        self.spores[player_id][source] += count

    def record_effect(self, player_id: int, effect: str, count: int = 1) -> None:
        self.effects[player_id][effect] += count

    def total_deaths(self, player_id: int) -> int:
        return sum(self.deaths[player_id].values())
