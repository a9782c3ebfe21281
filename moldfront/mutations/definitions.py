"""Standard mutation set.

``build_default_catalog`` turns a ``GameBalance`` into the catalog used
by a game.  Definitions are grouped by category and may reference each
other across groups; ``MutationCatalog.build`` sorts out the order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from moldfront.mutations.catalog import MutationCatalog
from moldfront.mutations.kinds import (
    EffectKind,
    MutationCategory,
    MutationId,
    MutationTier,
)
from moldfront.mutations.mutation import Mutation, Prerequisite, SurgeSpec

if TYPE_CHECKING:
    from moldfront.simulation.balance import GameBalance

_GROWTH = MutationCategory.GROWTH
_RESILIENCE = MutationCategory.CELLULAR_RESILIENCE
_FUNGICIDE = MutationCategory.FUNGICIDE
_DRIFT = MutationCategory.GENETIC_DRIFT
_SURGES = MutationCategory.MYCELIAL_SURGES


def _req(mutation_id: MutationId, level: int) -> Prerequisite:
    return Prerequisite(int(mutation_id), level)


def build_default_catalog(balance: GameBalance) -> MutationCatalog:
    """Build the standard catalog from ``balance``."""
    b = balance

    def make(
        mutation_id: MutationId,
        name: str,
        description: str,
        category: MutationCategory,
        tier: MutationTier,
        effect_kind: EffectKind,
        effect_per_level: float,
        max_level: int,
        *prerequisites: Prerequisite,
        surge: SurgeSpec | None = None,
    ) -> Mutation:
        return Mutation(
            mutation_id=int(mutation_id),
            name=name,
            description=description,
            category=category,
            tier=tier,
            effect_kind=effect_kind,
            effect_per_level=effect_per_level,
            max_level=max_level,
            points_per_upgrade=b.tier_cost(tier),
            prerequisites=tuple(prerequisites),
            surge=surge,
        )

    t1, t2, t3 = MutationTier.TIER1, MutationTier.TIER2, MutationTier.TIER3
    t4, t5, t6 = MutationTier.TIER4, MutationTier.TIER5, MutationTier.TIER6
    m = MutationId
    e = EffectKind

    growth = [
        make(
            m.MYCELIAL_BLOOM, "Mycelial Bloom",
            "Raises the chance of orthogonal growth.",
            _GROWTH, t1, e.GROWTH_CHANCE,
            b.mycelial_bloom_effect_per_level, b.mycelial_bloom_max_level,
        ),
        make(
            m.TENDRIL_NORTHWEST, "Tendril Northwest",
            "Allows growth toward the upper-left diagonal.",
            _GROWTH, t2, e.GROWTH_DIAGONAL_NW,
            b.tendril_effect_per_level, b.tendril_max_level,
            _req(m.MYCELIAL_BLOOM, 10),
        ),
        make(
            m.TENDRIL_NORTHEAST, "Tendril Northeast",
            "Allows growth toward the upper-right diagonal.",
            _GROWTH, t2, e.GROWTH_DIAGONAL_NE,
            b.tendril_effect_per_level, b.tendril_max_level,
            _req(m.MYCELIAL_BLOOM, 10),
        ),
        make(
            m.TENDRIL_SOUTHEAST, "Tendril Southeast",
            "Allows growth toward the lower-right diagonal.",
            _GROWTH, t2, e.GROWTH_DIAGONAL_SE,
            b.tendril_effect_per_level, b.tendril_max_level,
            _req(m.MYCELIAL_BLOOM, 10),
        ),
        make(
            m.TENDRIL_SOUTHWEST, "Tendril Southwest",
            "Allows growth toward the lower-left diagonal.",
            _GROWTH, t2, e.GROWTH_DIAGONAL_SW,
            b.tendril_effect_per_level, b.tendril_max_level,
            _req(m.MYCELIAL_BLOOM, 10),
        ),
        make(
            m.MYCOTROPIC_INDUCTION, "Mycotropic Induction",
            "Multiplies every diagonal growth chance.",
            _GROWTH, t3, e.TENDRIL_DIRECTIONAL_MULTIPLIER,
            b.mycotropic_induction_effect_per_level, b.mycotropic_induction_max_level,
            _req(m.TENDRIL_NORTHWEST, 1),
            _req(m.TENDRIL_NORTHEAST, 1),
            _req(m.TENDRIL_SOUTHEAST, 1),
            _req(m.TENDRIL_SOUTHWEST, 1),
        ),
        make(
            m.REGENERATIVE_HYPHAE, "Regenerative Hyphae",
            "After growth, may revive adjacent own dead cells.",
            _GROWTH, t4, e.RECLAIM_OWN_DEAD,
            b.regenerative_hyphae_reclaim_chance, b.regenerative_hyphae_max_level,
            _req(m.NECROSPORULATION, 2),
            _req(m.MYCOTROPIC_INDUCTION, 1),
        ),
        make(
            m.CREEPING_MOLD, "Creeping Mold",
            "A cell that fails to grow may creep into a more open tile.",
            _GROWTH, t4, e.CREEPING_MOVEMENT,
            b.creeping_mold_move_chance_per_level, b.creeping_mold_max_level,
            _req(m.MYCOTROPIC_INDUCTION, 3),
        ),
    ]

    resilience = [
        make(
            m.HOMEOSTATIC_HARMONY, "Homeostatic Harmony",
            "Reduces the chance of dying during decay.",
            _RESILIENCE, t1, e.DEFENSE_SURVIVAL,
            b.homeostatic_harmony_effect_per_level, b.homeostatic_harmony_max_level,
        ),
        make(
            m.CHRONORESILIENT_CYTOPLASM, "Chronoresilient Cytoplasm",
            "Delays age-related decay and shortens the age reset cycle.",
            _RESILIENCE, t2, e.AGE_DEATH_DELAY,
            b.chronoresilient_cytoplasm_effect_per_level,
            b.chronoresilient_cytoplasm_max_level,
            _req(m.HOMEOSTATIC_HARMONY, 5),
        ),
        make(
            m.NECROSPORULATION, "Necrosporulation",
            "A dying cell may release a spore onto an empty tile.",
            _RESILIENCE, t3, e.SPORE_ON_DEATH_CHANCE,
            b.necrosporulation_effect_per_level, b.necrosporulation_max_level,
            _req(m.CHRONORESILIENT_CYTOPLASM, 5),
        ),
        make(
            m.NECROHYPHAL_INFILTRATION, "Necrohyphal Infiltration",
            "Failed growth may overrun adjacent dead enemy cells.",
            _RESILIENCE, t5, e.NECROHYPHAL_INFILTRATION,
            b.necrohyphal_infiltration_chance_per_level,
            b.necrohyphal_infiltration_max_level,
            _req(m.REGENERATIVE_HYPHAE, 1),
            _req(m.MYCOTOXIN_POTENTIATION, 1),
        ),
        make(
            m.CATABOLIC_REBIRTH, "Catabolic Rebirth",
            "Expiring toxins may revive adjacent own dead cells.",
            _RESILIENCE, t6, e.TOXIN_EXPIRATION_RESURRECTION,
            b.catabolic_rebirth_resurrection_chance_per_level,
            b.catabolic_rebirth_max_level,
            _req(m.NECROHYPHAL_INFILTRATION, 1),
            _req(m.ANABOLIC_INVERSION, 1),
        ),
    ]

    fungicide = [
        make(
            m.MYCOTOXIN_TRACER, "Mycotoxin Tracer",
            "Drops toxins beside enemy colonies, more when growth stalls.",
            _FUNGICIDE, t1, e.FUNGICIDE_SPORE_DROP,
            b.mycotoxin_tracer_failed_growth_weight_per_level,
            b.mycotoxin_tracer_max_level,
        ),
        make(
            m.SILENT_BLIGHT, "Silent Blight",
            "Raises the decay chance of every enemy cell.",
            _FUNGICIDE, t1, e.ENEMY_DECAY_CHANCE,
            b.silent_blight_effect_per_level, b.silent_blight_max_level,
        ),
        make(
            m.MYCOTOXIN_POTENTIATION, "Mycotoxin Potentiation",
            "Toxins last longer and poison adjacent enemy cells.",
            _FUNGICIDE, t2, e.TOXIN_KILL_AURA,
            b.mycotoxin_potentiation_kill_chance_per_level,
            b.mycotoxin_potentiation_max_level,
            _req(m.MYCOTOXIN_TRACER, 5),
        ),
        make(
            m.ENCYSTED_SPORES, "Encysted Spores",
            "Amplifies enemy decay pressure on fully surrounded cells.",
            _FUNGICIDE, t2, e.ENCIRCLEMENT_MULTIPLIER,
            b.encysted_spores_effect_per_level, b.encysted_spores_max_level,
            _req(m.SILENT_BLIGHT, 10),
        ),
        make(
            m.PUTREFACTIVE_MYCOTOXIN, "Putrefactive Mycotoxin",
            "Raises the death chance of orthogonally adjacent enemy cells.",
            _FUNGICIDE, t3, e.ADJACENT_FUNGICIDE,
            b.putrefactive_mycotoxin_effect_per_level,
            b.putrefactive_mycotoxin_max_level,
            _req(m.MYCOTOXIN_POTENTIATION, 1),
        ),
        make(
            m.SPOROCIDAL_BLOOM, "Sporocidal Bloom",
            "Scatters toxic spores across tiles the colony does not hold.",
            _FUNGICIDE, t4, e.SPOROCIDAL_SPORE_DROP,
            b.sporocidal_bloom_effect_per_level, b.sporocidal_bloom_max_level,
            _req(m.PUTREFACTIVE_MYCOTOXIN, 1),
            _req(m.MYCELIAL_BLOOM, 7),
        ),
        make(
            m.NECROTOXIC_CONVERSION, "Necrotoxic Conversion",
            "Cells killed by toxins may be reclaimed by the killer.",
            _FUNGICIDE, t5, e.TOXIN_DEATH_RECLAIM,
            b.necrotoxic_conversion_reclaim_chance_per_level,
            b.necrotoxic_conversion_max_level,
            _req(m.SPOROCIDAL_BLOOM, 1),
            _req(m.MUTATOR_PHENOTYPE, 5),
        ),
        make(
            m.PUTREFACTIVE_REJUVENATION, "Putrefactive Rejuvenation",
            "Putrefactive kills rejuvenate nearby own cells.",
            _FUNGICIDE, t5, e.AGE_REDUCTION_ON_POISON,
            b.putrefactive_rejuvenation_age_reduction_per_level,
            b.putrefactive_rejuvenation_max_level,
            _req(m.PUTREFACTIVE_MYCOTOXIN, 2),
            _req(m.CHRONORESILIENT_CYTOPLASM, 1),
        ),
        make(
            m.PUTREFACTIVE_CASCADE, "Putrefactive Cascade",
            "Putrefactive kills may chain along the line of attack.",
            _FUNGICIDE, t6, e.ADJACENT_FUNGICIDE,
            b.putrefactive_cascade_effectiveness_bonus,
            b.putrefactive_cascade_max_level,
            _req(m.PUTREFACTIVE_REJUVENATION, 1),
            _req(m.HYPHAL_VECTORING, 1),
        ),
    ]

    drift = [
        make(
            m.MUTATOR_PHENOTYPE, "Mutator Phenotype",
            "Each round may upgrade a random tier-1 mutation for free.",
            _DRIFT, t1, e.AUTO_UPGRADE_RANDOM,
            b.mutator_phenotype_effect_per_level, b.mutator_phenotype_max_level,
        ),
        make(
            m.ADAPTIVE_EXPRESSION, "Adaptive Expression",
            "May earn bonus mutation points each round.",
            _DRIFT, t2, e.BONUS_MUTATION_POINT_CHANCE,
            b.adaptive_expression_effect_per_level, b.adaptive_expression_max_level,
            _req(m.MUTATOR_PHENOTYPE, 5),
        ),
        make(
            m.MYCOTOXIN_CATABOLISM, "Mycotoxin Catabolism",
            "Digests adjacent toxins, sometimes for mutation points.",
            _DRIFT, t2, e.TOXIN_CLEANUP_CHANCE,
            b.mycotoxin_catabolism_cleanup_chance_per_level,
            b.mycotoxin_catabolism_max_level,
            _req(m.MUTATOR_PHENOTYPE, 2),
        ),
        make(
            m.ANABOLIC_INVERSION, "Anabolic Inversion",
            "Trailing colonies may earn weighted bonus points.",
            _DRIFT, t3, e.UNDERDOG_POINT_CHANCE,
            b.anabolic_inversion_gap_bonus_per_level, b.anabolic_inversion_max_level,
            _req(m.ADAPTIVE_EXPRESSION, 3),
        ),
        make(
            m.NECROPHYTIC_BLOOM, "Necrophytic Bloom",
            "Late in the game, dead cells release reclaiming spores.",
            _DRIFT, t4, e.NECROPHYTIC_SPORE_DROP,
            b.necrophytic_bloom_spores_per_death_per_level,
            b.necrophytic_bloom_max_level,
            _req(m.ANABOLIC_INVERSION, 1),
            _req(m.NECROSPORULATION, 1),
        ),
        make(
            m.HYPERADAPTIVE_DRIFT, "Hyperadaptive Drift",
            "Mutator Phenotype may reach higher tiers and fire twice.",
            _DRIFT, t5, e.HYPERADAPTIVE_DRIFT,
            b.hyperadaptive_drift_higher_tier_chance_per_level,
            b.hyperadaptive_drift_max_level,
            _req(m.NECROPHYTIC_BLOOM, 1),
            _req(m.MUTATOR_PHENOTYPE, 8),
            _req(m.MYCOTOXIN_POTENTIATION, 1),
            _req(m.ADAPTIVE_EXPRESSION, 1),
            _req(m.CHRONORESILIENT_CYTOPLASM, 1),
        ),
    ]

    surges = [
        make(
            m.HYPHAL_SURGE, "Hyphal Surge",
            "Temporarily boosts orthogonal growth.",
            _SURGES, t2, e.HYPHAL_SURGE,
            b.hyphal_surge_effect_per_level, b.hyphal_surge_max_level,
            _req(m.MYCELIAL_BLOOM, 5),
            surge=SurgeSpec(
                b.hyphal_surge_points_per_activation,
                b.hyphal_surge_point_increase_per_level,
                b.hyphal_surge_duration,
            ),
        ),
        make(
            m.CHITIN_FORTIFICATION, "Chitin Fortification",
            "Makes a few living cells permanently resistant.",
            _SURGES, t2, e.RESISTANCE_GRANT,
            b.chitin_fortification_cells_per_level, b.chitin_fortification_max_level,
            _req(m.HOMEOSTATIC_HARMONY, 5),
            surge=SurgeSpec(
                b.chitin_fortification_points_per_activation,
                b.chitin_fortification_point_increase_per_level,
                b.chitin_fortification_duration,
            ),
        ),
        make(
            m.HYPHAL_VECTORING, "Hyphal Vectoring",
            "Projects a line of cells toward the board centre.",
            _SURGES, t3, e.HYPHAL_VECTORING,
            b.hyphal_vectoring_tiles_per_level, b.hyphal_vectoring_max_level,
            _req(m.MYCELIAL_BLOOM, 7),
            surge=SurgeSpec(
                b.hyphal_vectoring_points_per_activation,
                b.hyphal_vectoring_point_increase_per_level,
                b.hyphal_vectoring_duration,
            ),
        ),
        make(
            m.MIMETIC_RESILIENCE, "Mimetic Resilience",
            "Copies a leading rival's resistant cells next to them.",
            _SURGES, t3, e.MIMETIC_RESILIENCE,
            1.0, b.mimetic_resilience_max_level,
            _req(m.HOMEOSTATIC_HARMONY, 5),
            _req(m.MYCOTOXIN_TRACER, 3),
            surge=SurgeSpec(
                b.mimetic_resilience_points_per_activation,
                b.mimetic_resilience_point_increase_per_level,
                b.mimetic_resilience_duration,
            ),
        ),
    ]

    return MutationCatalog.build(growth + resilience + fungicide + drift + surges)
