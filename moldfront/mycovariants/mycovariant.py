"""Mycovariant — a one-off trait drafted between rounds.

Unlike mutations, mycovariants have no levels and cost no points.
Players pick them in a draft at fixed rounds.  Some act once when they
are drafted (``on_acquire``); the rest are passive and are honoured by
the effect handlers and rules that check ``Player.has_mycovariant``.

``ai_score`` rates how useful a mycovariant is to a player right now;
``Mycovariant.score`` adds the synergy and early-game bonuses on top.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from moldfront.players.player import Player
    from moldfront.simulation.context import GameContext

SYNERGY_AI_BONUS = 3.0
EARLY_GAME_ROUND = 20
EARLY_GAME_AI_BONUS = 3.0


class MycovariantCategory(Enum):
    """Thematic bucket a mycovariant belongs to."""

    ECONOMY = "economy"
    GROWTH = "growth"
    RESISTANCE = "resistance"
    FUNGICIDE = "fungicide"
    RECLAMATION = "reclamation"


class MycovariantId(IntEnum):
    """Stable ids of the standard mycovariant set."""

    PLASMID_BOUNTY = 100
    MYCELIAL_BASTION = 101
    BALLISTOSPORE_DISCHARGE = 102
    JETTING_MYCELIUM_NORTH = 110
    JETTING_MYCELIUM_EAST = 111
    JETTING_MYCELIUM_SOUTH = 112
    JETTING_MYCELIUM_WEST = 113
    NEUTRALIZING_MANTLE = 120
    HYPHAL_RESISTANCE_TRANSFER = 121
    ENDURING_TOXAPHORES = 122
    NECROPHORIC_ADAPTATION = 123
    RECLAMATION_RHIZOMORPHS = 124
    SURGICAL_INOCULATION = 125
    PERIMETER_PROLIFERATOR = 126


AcquireEffect = Callable[["GameContext", "Player", "PlayerMycovariant"], None]
ScoreFunction = Callable[["GameContext", "Player"], float]


@dataclass(frozen=True)
class Mycovariant:
    """A single draftable entry.

    Attributes:
        mycovariant_id: Stable integer id.
        name: Display name.
        description: One-line flavour text.
        category: Thematic bucket.
        ai_score: Base desirability for a player, roughly 1-10.
        on_acquire: One-off effect applied when drafted; None for
            passive mycovariants.
        is_universal: Stays in the pool after being drafted, so every
            player may take it.
        synergy_with: Ids whose ownership earns a scoring bonus.
        prioritize_early: Earns a scoring bonus early in the game.
    """

    mycovariant_id: int
    name: str
    description: str
    category: MycovariantCategory
    ai_score: ScoreFunction
    on_acquire: AcquireEffect | None = None
    is_universal: bool = False
    synergy_with: tuple[int, ...] = ()
    prioritize_early: bool = False

    def score(self, ctx: GameContext, player: Player) -> float:
        """Desirability used by draft strategies."""
        total = self.ai_score(ctx, player)
        if any(player.has_mycovariant(other) for other in self.synergy_with):
            total += SYNERGY_AI_BONUS
        if self.prioritize_early and ctx.board.current_round < EARLY_GAME_ROUND:
            total += EARLY_GAME_AI_BONUS
        return total


@dataclass
class PlayerMycovariant:
    """A mycovariant as held by a player.

    Attributes:
        mycovariant: The repository entry.
        player_id: Holder.
        triggered: Whether the acquire effect has run.
        ai_score_at_draft: Score the drafting strategy saw, if any.
        effect_counts: Times each named effect fired for the holder.
    """

    mycovariant: Mycovariant
    player_id: int
    triggered: bool = False
    ai_score_at_draft: float | None = None
    effect_counts: Counter[str] = field(default_factory=Counter)

    def mark_triggered(self) -> None:
        self.triggered = True

    def increment(self, effect: str, count: int = 1) -> None:
        self.effect_counts[effect] += count


@dataclass
class MycovariantRepository:
    """Registry of mycovariants keyed by id.

    Attributes:
        mycovariants: Registered entries in registration order.
    """

    mycovariants: dict[int, Mycovariant] = field(default_factory=dict)

    @classmethod
    def build(cls, definitions: Iterable[Mycovariant]) -> MycovariantRepository:
        """Register every definition.

        Raises:
            ValueError: On a duplicate id or a synergy with an undefined
                mycovariant.
        """
        repository = cls()
        for mycovariant in definitions:
            if mycovariant.mycovariant_id in repository.mycovariants:
                msg = f"duplicate mycovariant id {mycovariant.mycovariant_id}"
                raise ValueError(msg)
            repository.mycovariants[mycovariant.mycovariant_id] = mycovariant
        for mycovariant in repository.mycovariants.values():
            for other in mycovariant.synergy_with:
                if other not in repository.mycovariants:
                    msg = (
                        f"mycovariant {mycovariant.name} lists undefined "
                        f"synergy id {other}"
                    )
                    raise ValueError(msg)
        return repository

    def get_by_id(self, mycovariant_id: int) -> Mycovariant:
        """Look up a mycovariant.

        Raises:
            KeyError: If no mycovariant has ``mycovariant_id``.
        """
        try:
            return self.mycovariants[int(mycovariant_id)]
        except KeyError:
            msg = f"unknown mycovariant id {mycovariant_id}"
            raise KeyError(msg) from None

    def __len__(self) -> int:
        return len(self.mycovariants)

    def all(self) -> list[Mycovariant]:
        return list(self.mycovariants.values())
