"""Enumerations shared by the mutation catalog and its consumers."""

from __future__ import annotations

from enum import Enum, IntEnum, auto


class MutationCategory(Enum):
    """Thematic bucket a mutation belongs to."""

    GROWTH = "growth"
    CELLULAR_RESILIENCE = "cellular_resilience"
    FUNGICIDE = "fungicide"
    GENETIC_DRIFT = "genetic_drift"
    MYCELIAL_SURGES = "mycelial_surges"


class MutationTier(IntEnum):
    """Ordered unlock tier; governs upgrade cost."""

    TIER1 = 1
    TIER2 = 2
    TIER3 = 3
    TIER4 = 4
    TIER5 = 5
    TIER6 = 6
    TIER7 = 7


class EffectKind(Enum):
    """What a mutation's per-level magnitude feeds into.

    ``Player.get_mutation_effect`` sums ``level * effect_per_level`` over
    every owned mutation of the same kind.
    """

    GROWTH_CHANCE = auto()
    GROWTH_DIAGONAL_NW = auto()
    GROWTH_DIAGONAL_NE = auto()
    GROWTH_DIAGONAL_SE = auto()
    GROWTH_DIAGONAL_SW = auto()
    TENDRIL_DIRECTIONAL_MULTIPLIER = auto()
    RECLAIM_OWN_DEAD = auto()
    CREEPING_MOVEMENT = auto()
    DEFENSE_SURVIVAL = auto()
    AGE_DEATH_DELAY = auto()
    SPORE_ON_DEATH_CHANCE = auto()
    NECROHYPHAL_INFILTRATION = auto()
    TOXIN_EXPIRATION_RESURRECTION = auto()
    FUNGICIDE_SPORE_DROP = auto()
    ENEMY_DECAY_CHANCE = auto()
    ENCIRCLEMENT_MULTIPLIER = auto()
    TOXIN_KILL_AURA = auto()
    ADJACENT_FUNGICIDE = auto()
    SPOROCIDAL_SPORE_DROP = auto()
    TOXIN_DEATH_RECLAIM = auto()
    AGE_REDUCTION_ON_POISON = auto()
    AUTO_UPGRADE_RANDOM = auto()
    BONUS_MUTATION_POINT_CHANCE = auto()
    TOXIN_CLEANUP_CHANCE = auto()
    UNDERDOG_POINT_CHANCE = auto()
    NECROPHYTIC_SPORE_DROP = auto()
    HYPERADAPTIVE_DRIFT = auto()
    HYPHAL_SURGE = auto()
    HYPHAL_VECTORING = auto()
    RESISTANCE_GRANT = auto()
    MIMETIC_RESILIENCE = auto()


class MutationId(IntEnum):
    """Stable ids of the standard mutation set."""

    MYCELIAL_BLOOM = 0
    HOMEOSTATIC_HARMONY = 1
    MYCOTOXIN_TRACER = 2
    MUTATOR_PHENOTYPE = 3
    CHRONORESILIENT_CYTOPLASM = 4
    MYCOTOXIN_POTENTIATION = 5
    TENDRIL_NORTHWEST = 6
    TENDRIL_NORTHEAST = 7
    TENDRIL_SOUTHEAST = 8
    TENDRIL_SOUTHWEST = 9
    ADAPTIVE_EXPRESSION = 10
    NECROSPORULATION = 11
    MYCOTROPIC_INDUCTION = 12
    PUTREFACTIVE_MYCOTOXIN = 13
    ANABOLIC_INVERSION = 14
    REGENERATIVE_HYPHAE = 15
    CREEPING_MOLD = 16
    SPOROCIDAL_BLOOM = 17
    NECROPHYTIC_BLOOM = 18
    MYCOTOXIN_CATABOLISM = 19
    HYPERADAPTIVE_DRIFT = 20
    NECROHYPHAL_INFILTRATION = 21
    NECROTOXIC_CONVERSION = 22
    HYPHAL_SURGE = 23
    HYPHAL_VECTORING = 24
    CATABOLIC_REBIRTH = 25
    PUTREFACTIVE_REJUVENATION = 26
    CHITIN_FORTIFICATION = 27
    PUTREFACTIVE_CASCADE = 28
    MIMETIC_RESILIENCE = 29
    SILENT_BLIGHT = 30
    ENCYSTED_SPORES = 31


# Diagonal offset (dx, dy) -> tendril effect; y grows downward.
DIAGONAL_EFFECTS: dict[tuple[int, int], EffectKind] = {
    (-1, -1): EffectKind.GROWTH_DIAGONAL_NW,
    (1, -1): EffectKind.GROWTH_DIAGONAL_NE,
    (1, 1): EffectKind.GROWTH_DIAGONAL_SE,
    (-1, 1): EffectKind.GROWTH_DIAGONAL_SW,
}
