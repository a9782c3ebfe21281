"""EffectCoordinator — the event bus that mutation effects subscribe to.

The orchestrator fires phase-boundary events and the board fires
cell-transition events.  Each mutation effect that is not a plain
additive rate is a single handler subscribed to one of these events, so
neither the orchestrator nor the resolvers carry a branch per mutation.

Handlers run synchronously, in subscription order.  A handler may mutate
the board through its public operations, which in turn may publish
further events; dispatch is re-entrant.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, ClassVar

from moldfront.board.cell import DeathReason, GrowthSource


class GameEvent(Enum):
    """Named events a handler can subscribe to."""

    MUTATION_PHASE_START = auto()
    PRE_GROWTH_PHASE = auto()
    POST_GROWTH_PHASE = auto()
    DECAY_PHASE = auto()
    CELL_DEATH = auto()
    TOXIN_PLACED = auto()
    TOXIN_EXPIRED = auto()
    CELL_COLONIZED = auto()
    CELL_RECLAIMED = auto()
    CELL_INFESTED = auto()
    GROWTH_FAILED = auto()
    NECROPHYTIC_BLOOM_ACTIVATED = auto()


# -- Payloads ---------------------------------------------------------


@dataclass
class MutationPhaseStart:
    kind: ClassVar[GameEvent] = GameEvent.MUTATION_PHASE_START
    round: int


@dataclass
class PreGrowthPhase:
    kind: ClassVar[GameEvent] = GameEvent.PRE_GROWTH_PHASE
    round: int


@dataclass
class PostGrowthPhase:
    kind: ClassVar[GameEvent] = GameEvent.POST_GROWTH_PHASE
    round: int


@dataclass
class DecayPhase:
    """Start of the decay phase.

    Attributes:
        round: Current round.
        failed_growths: Failed growth sub-cycles per player this round.
    """

    kind: ClassVar[GameEvent] = GameEvent.DECAY_PHASE
    round: int
    failed_growths: dict[int, int] = field(default_factory=dict)


@dataclass
class CellDeath:
    """A living cell died.

    Attributes:
        tile_id: Where the cell died.
        owner_id: Owner at the time of death.
        reason: Cause of death.
        killer_id: Player credited with the kill, if any.
        attacker_tile_id: Tile the lethal effect came from, if known.
        cascade_depth: How many cascade hops produced this death.
    """

    kind: ClassVar[GameEvent] = GameEvent.CELL_DEATH
    tile_id: int
    owner_id: int
    reason: DeathReason
    killer_id: int | None = None
    attacker_tile_id: int | None = None
    cascade_depth: int = 0


@dataclass
class ToxinPlaced:
    """A toxin is about to be placed.

    Setting ``neutralized`` to True in a handler cancels the placement.
    """

    kind: ClassVar[GameEvent] = GameEvent.TOXIN_PLACED
    tile_id: int
    owner_id: int | None
    neutralized: bool = False


@dataclass
class ToxinExpired:
    """A toxin left the board.

    Attributes:
        tile_id: Tile that became empty.
        owner_id: Owner of the removed toxin.
        cleared_by: Player whose effect removed it early, or None when
            it simply expired.
    """

    kind: ClassVar[GameEvent] = GameEvent.TOXIN_EXPIRED
    tile_id: int
    owner_id: int | None
    cleared_by: int | None = None


@dataclass
class CellColonized:
    kind: ClassVar[GameEvent] = GameEvent.CELL_COLONIZED
    tile_id: int
    owner_id: int
    source: GrowthSource


@dataclass
class CellReclaimed:
    kind: ClassVar[GameEvent] = GameEvent.CELL_RECLAIMED
    tile_id: int
    owner_id: int
    previous_owner_id: int | None
    source: GrowthSource


@dataclass
class CellInfested:
    kind: ClassVar[GameEvent] = GameEvent.CELL_INFESTED
    tile_id: int
    owner_id: int
    previous_owner_id: int | None
    source: GrowthSource


@dataclass
class GrowthFailed:
    """A living cell failed every growth roll in a sub-cycle.

    A handler that turns the failure into some other expansion sets
    ``handled``; later handlers see it and stand down.

    Attributes:
        tile_id: The source cell's tile.
        owner_id: The source cell's owner.
        candidate_tile_ids: Empty tiles that were rolled for, in the
            order they were attempted.
        round: Current round.
        handled: Whether a handler already acted on this failure.
    """

    kind: ClassVar[GameEvent] = GameEvent.GROWTH_FAILED
    tile_id: int
    owner_id: int
    candidate_tile_ids: list[int]
    round: int
    handled: bool = False


@dataclass
class NecrophyticBloomActivated:
    kind: ClassVar[GameEvent] = GameEvent.NECROPHYTIC_BLOOM_ACTIVATED
    round: int


Handler = Callable[[Any], None]


@dataclass
class EffectCoordinator:
    """Ordered registry of handlers per event.

    Attributes:
        handlers: Subscribed callbacks keyed by event, in call order.
    """

    handlers: dict[GameEvent, list[Handler]] = field(
        init=False,
        repr=False,
    )

    def __post_init__(self) -> None:
        """Start with an empty handler list for every event."""
        self.handlers = {event: [] for event in GameEvent}

    def subscribe(self, event: GameEvent, handler: Handler) -> None:
        """Append ``handler`` to the call list for ``event``.

        Args:
            event: Event to listen for.
            handler: Callable receiving the event payload.
        """
        self.handlers[event].append(handler)

    def unsubscribe(self, event: GameEvent, handler: Handler) -> None:
        """Remove a previously subscribed handler.

        Raises:
            ValueError: If the handler was never subscribed.
        """
        self.handlers[event].remove(handler)

    def publish(self, payload: Any) -> Any:
        """Dispatch ``payload`` to every handler of its event.

        Args:
            payload: One of the payload dataclasses in this module.

        Returns:
            The same payload, so cancelable events can be inspected.

        Raises:
            TypeError: If the payload does not carry an event kind.
        """
        event = getattr(payload, "kind", None)
        if not isinstance(event, GameEvent):
            msg = f"{type(payload).__name__} is not an event payload"
            raise TypeError(msg)
        for handler in tuple(self.handlers[event]):
            handler(payload)
        return payload

    def handler_count(self, event: GameEvent) -> int:
        return len(self.handlers[event])
