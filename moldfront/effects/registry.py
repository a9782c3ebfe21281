"""Wire the standard mutation and mycovariant effects onto a game's event bus.

Subscription order is part of the game rules: handlers for the same
event run in exactly the order listed in ``DEFAULT_EFFECTS``.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from moldfront.effects import drift, fungicide, growth, mycovariants, resilience, surges
from moldfront.events.bus import GameEvent

if TYPE_CHECKING:
    from collections.abc import Callable

    from moldfront.simulation.context import GameContext

logger = logging.getLogger(__name__)

DEFAULT_EFFECTS: list[tuple[GameEvent, Callable[[GameContext, Any], None]]] = [
    (GameEvent.MUTATION_PHASE_START, drift.mutator_phenotype),
    (GameEvent.PRE_GROWTH_PHASE, drift.mycotoxin_catabolism),
    (GameEvent.PRE_GROWTH_PHASE, surges.chitin_fortification),
    (GameEvent.POST_GROWTH_PHASE, growth.regenerative_hyphae),
    (GameEvent.POST_GROWTH_PHASE, surges.hyphal_vectoring),
    (GameEvent.POST_GROWTH_PHASE, surges.mimetic_resilience),
    (GameEvent.POST_GROWTH_PHASE, mycovariants.hyphal_resistance_transfer),
    (GameEvent.DECAY_PHASE, fungicide.sporocidal_bloom),
    (GameEvent.DECAY_PHASE, fungicide.mycotoxin_tracer),
    (GameEvent.DECAY_PHASE, fungicide.mycotoxin_potentiation),
    (GameEvent.DECAY_PHASE, drift.necrophytic_bloom_activation),
    (GameEvent.CELL_DEATH, fungicide.necrotoxic_conversion),
    (GameEvent.CELL_DEATH, fungicide.putrefactive_rejuvenation),
    (GameEvent.CELL_DEATH, fungicide.putrefactive_cascade),
    (GameEvent.CELL_DEATH, resilience.necrosporulation),
    (GameEvent.CELL_DEATH, drift.necrophytic_bloom_on_death),
    (GameEvent.CELL_DEATH, mycovariants.necrophoric_adaptation),
    (GameEvent.NECROPHYTIC_BLOOM_ACTIVATED, drift.necrophytic_bloom_burst),
    (GameEvent.TOXIN_PLACED, mycovariants.neutralizing_mantle),
    (GameEvent.TOXIN_EXPIRED, resilience.catabolic_rebirth),
    (GameEvent.GROWTH_FAILED, growth.creeping_mold),
    (GameEvent.GROWTH_FAILED, resilience.necrohyphal_infiltration),
]


def register_default_effects(ctx: GameContext) -> None:
    """Subscribe every standard effect handler, bound to ``ctx``."""
    for event, handler in DEFAULT_EFFECTS:
        ctx.events.subscribe(event, partial(handler, ctx))
    logger.debug("Registered %d effect handlers", len(DEFAULT_EFFECTS))
