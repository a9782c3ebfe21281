"""Cell — the occupant of a single board tile.

A cell is alive, dead, or a toxin.  It carries ownership history, an age
counter advanced by the decay pass, and the bookkeeping needed by
mutation effects (cause of death, growth source, reclaim count).  Cells
never change themselves on a board directly; the ``Board`` drives every
transition so that each one is published as an event.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class CellState(Enum):
    """Lifecycle state of a cell."""

    ALIVE = auto()
    DEAD = auto()
    TOXIN = auto()


class DeathReason(Enum):
    """Why a living cell died."""

    AGE = "age"
    RANDOMNESS = "randomness"
    ENEMY_DECAY = "enemy_decay"
    PUTREFACTIVE_MYCOTOXIN = "putrefactive_mycotoxin"
    MYCOTOXIN_POTENTIATION = "mycotoxin_potentiation"
    SPOROCIDAL_BLOOM = "sporocidal_bloom"
    PUTREFACTIVE_CASCADE = "putrefactive_cascade"
    PUTREFACTIVE_CASCADE_POISON = "putrefactive_cascade_poison"
    JETTING_MYCELIUM = "jetting_mycelium"
    INFESTED = "infested"
    UNKNOWN = "unknown"

    @property
    def is_toxic(self) -> bool:
        """Whether this death was caused by a toxin-based effect."""
        return self in _TOXIC_REASONS


_TOXIC_REASONS = frozenset(
    {
        DeathReason.PUTREFACTIVE_MYCOTOXIN,
        DeathReason.MYCOTOXIN_POTENTIATION,
        DeathReason.SPOROCIDAL_BLOOM,
        DeathReason.PUTREFACTIVE_CASCADE,
        DeathReason.PUTREFACTIVE_CASCADE_POISON,
    },
)


class GrowthSource(Enum):
    """How a cell came to occupy its tile."""

    INITIAL_SPORE = "initial_spore"
    HYPHAL_OUTGROWTH = "hyphal_outgrowth"
    TENDRIL_OUTGROWTH = "tendril_outgrowth"
    HYPHAL_SURGE = "hyphal_surge"
    HYPHAL_VECTORING = "hyphal_vectoring"
    CREEPING_MOLD = "creeping_mold"
    NECROSPORULATION = "necrosporulation"
    REGENERATIVE_HYPHAE = "regenerative_hyphae"
    NECROHYPHAL_INFILTRATION = "necrohyphal_infiltration"
    NECROTOXIC_CONVERSION = "necrotoxic_conversion"
    NECROPHYTIC_BLOOM = "necrophytic_bloom"
    CATABOLIC_REBIRTH = "catabolic_rebirth"
    MIMETIC_RESILIENCE = "mimetic_resilience"
    MYCOTOXIN_TRACER = "mycotoxin_tracer"
    SPOROCIDAL_BLOOM = "sporocidal_bloom"
    PUTREFACTIVE_CASCADE = "putrefactive_cascade"
    JETTING_MYCELIUM = "jetting_mycelium"
    BALLISTOSPORE = "ballistospore"
    SURGICAL_INOCULATION = "surgical_inoculation"
    NECROPHORIC_ADAPTATION = "necrophoric_adaptation"
    RECLAIM = "reclaim"
    UNKNOWN = "unknown"


class TakeoverResult(Enum):
    """Outcome of ``Board.takeover``.

    Callers branch on this for analytics; a takeover never fails
    silently.
    """

    ALREADY_OWNED = auto()
    INFESTED = auto()
    RECLAIMED = auto()
    CATABOLIC_GROWTH = auto()
    INVALID_RESISTANT = auto()
    INVALID = auto()

    @property
    def succeeded(self) -> bool:
        """Whether the new owner now holds a living cell on the tile."""
        return self in (
            TakeoverResult.INFESTED,
            TakeoverResult.RECLAIMED,
            TakeoverResult.CATABOLIC_GROWTH,
        )


@dataclass
class Cell:
    """A single cell sitting on a board tile.

    Attributes:
        tile_id: Canonical id of the tile holding this cell.
        owner_id: Current owner, or None for an unowned toxin.
        state: Alive, dead or toxin.
        original_owner_id: First owner; never changes.
        last_owner_id: Owner before the most recent ownership change.
        growth_cycle_age: Decay passes survived since the last reset.
        is_resistant: Immune to every death, conversion and takeover.
        toxin_expiration_round: Round at which a toxin is removed.
        cause_of_death: Why the cell last died.
        source_of_growth: How the cell was created or last revived.
        reclaim_count: Times revived from the dead state.
        birth_round: Round in which the cell last became alive.
    """

    tile_id: int
    owner_id: int | None
    state: CellState = CellState.ALIVE
    original_owner_id: int | None = None
    last_owner_id: int | None = None
    growth_cycle_age: int = 0
    is_resistant: bool = False
    toxin_expiration_round: int | None = None
    cause_of_death: DeathReason | None = None
    source_of_growth: GrowthSource = GrowthSource.UNKNOWN
    reclaim_count: int = 0
    birth_round: int = 0

    def __post_init__(self) -> None:
        """Pin the original owner to the first owner."""
        if self.original_owner_id is None:
            self.original_owner_id = self.owner_id

    @property
    def is_alive(self) -> bool:
        return self.state is CellState.ALIVE

    @property
    def is_dead(self) -> bool:
        return self.state is CellState.DEAD

    @property
    def is_toxin(self) -> bool:
        return self.state is CellState.TOXIN

    @property
    def is_reclaimable(self) -> bool:
        """Dead, not resistant, and therefore revivable."""
        return self.is_dead and not self.is_resistant

    def has_toxin_expired(self, current_round: int) -> bool:
        """Return True once a toxin has reached its expiration round.

        Args:
            current_round: The round to test against.
        """
        return (
            self.is_toxin
            and self.toxin_expiration_round is not None
            and current_round >= self.toxin_expiration_round
        )

    # -- Transitions (driven by Board) --------------------------------

    def mark_dead(self, reason: DeathReason) -> None:
        self.state = CellState.DEAD
        self.cause_of_death = reason
        self.growth_cycle_age = 0

    def mark_toxin(
        self,
        expiration_round: int,
        owner_id: int | None,
        source: GrowthSource = GrowthSource.UNKNOWN,
    ) -> None:
        if self.owner_id is not None and self.owner_id != owner_id:
            self.last_owner_id = self.owner_id
        self.state = CellState.TOXIN
        self.owner_id = owner_id
        self.toxin_expiration_round = expiration_round
        self.source_of_growth = source
        self.growth_cycle_age = 0

    def revive(
        self,
        owner_id: int,
        source: GrowthSource,
        current_round: int,
    ) -> None:
        """Bring a dead or toxin cell back to life for ``owner_id``."""
        if self.is_dead:
            self.reclaim_count += 1
        if self.owner_id != owner_id:
            self.last_owner_id = self.owner_id
        self.state = CellState.ALIVE
        self.owner_id = owner_id
        self.toxin_expiration_round = None
        self.cause_of_death = None
        self.source_of_growth = source
        self.growth_cycle_age = 0
        self.birth_round = current_round

    def change_owner(
        self,
        owner_id: int,
        source: GrowthSource,
        current_round: int,
    ) -> None:
        """Transfer a living cell to a new owner (infestation)."""
        self.last_owner_id = self.owner_id
        self.owner_id = owner_id
        self.source_of_growth = source
        self.growth_cycle_age = 0
        self.birth_round = current_round

    def reduce_age(self, cycles: int) -> int:
        """Lower the age by up to ``cycles``.

        Returns:
            The number of cycles actually removed.
        """
        removed = min(self.growth_cycle_age, max(0, cycles))
        self.growth_cycle_age -= removed
        return removed
