"""GameBalance — every tunable rule constant in one place.

These are plain numbers with no dynamic schema.  Defaults reproduce the
standard game; a ``balance:`` mapping in the YAML config overrides any
of them by field name (see ``SimulationConfig.from_yaml``).

Toxin lifetimes are expressed in growth sub-cycles and converted to
rounds by the board.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any


def _default_tier_costs() -> dict[int, int]:
    return {1: 1, 2: 2, 3: 4, 4: 5, 5: 6, 6: 7, 7: 8}


@dataclass
class GameBalance:
    """Rule constants for growth, decay, income, mutations and mycovariants.

    Attributes are grouped by the rule they drive; names follow the
    mutation they belong to.
    """

    # Global growth / decay
    base_growth_chance: float = 0.015
    base_death_chance: float = 0.032
    age_death_factor_per_cycle: float = 0.008
    base_age_reset_threshold: int = 50
    age_reset_reduction_per_level: int = 5
    max_enemy_decay_pressure: float = 0.25

    # Economy
    base_mutation_point_income: int = 5
    tier_costs: dict[int, int] = field(default_factory=_default_tier_costs)

    # Endgame
    endgame_occupancy_threshold: float = 0.90
    rounds_after_endgame_threshold: int = 3

    # Toxins (lifetimes in growth cycles)
    default_toxin_duration: int = 6

    # Growth
    mycelial_bloom_effect_per_level: float = 0.0025
    mycelial_bloom_max_level: int = 150
    tendril_effect_per_level: float = 0.01
    tendril_max_level: int = 10
    mycotropic_induction_effect_per_level: float = 0.25
    mycotropic_induction_max_level: int = 5
    regenerative_hyphae_reclaim_chance: float = 0.021
    regenerative_hyphae_max_level: int = 5
    creeping_mold_move_chance_per_level: float = 0.035
    creeping_mold_max_level: int = 4

    # Cellular resilience
    homeostatic_harmony_effect_per_level: float = 0.003
    homeostatic_harmony_max_level: int = 100
    chronoresilient_cytoplasm_effect_per_level: float = 4.0
    chronoresilient_cytoplasm_max_level: int = 15
    necrosporulation_effect_per_level: float = 0.04
    necrosporulation_max_level: int = 5
    necrohyphal_infiltration_chance_per_level: float = 0.004
    necrohyphal_infiltration_cascade_chance_per_level: float = 0.019
    necrohyphal_infiltration_max_level: int = 5
    catabolic_rebirth_resurrection_chance_per_level: float = 0.12
    catabolic_rebirth_max_level: int = 3

    # Fungicide
    mycotoxin_tracer_failed_growth_weight_per_level: float = 0.013
    mycotoxin_tracer_max_level: int = 50
    mycotoxin_tracer_toxin_duration: int = 21
    mycotoxin_tracer_max_toxins_divisor: int = 60
    silent_blight_effect_per_level: float = 0.0025
    silent_blight_max_level: int = 100
    encysted_spores_effect_per_level: float = 0.05
    encysted_spores_max_level: int = 5
    mycotoxin_potentiation_duration_extension_per_level: int = 1
    mycotoxin_potentiation_kill_chance_per_level: float = 0.016
    mycotoxin_potentiation_max_level: int = 10
    putrefactive_mycotoxin_effect_per_level: float = 0.015
    putrefactive_mycotoxin_max_level: int = 5
    sporocidal_bloom_effect_per_level: float = 0.08
    sporocidal_bloom_toxin_duration: int = 12
    sporocidal_bloom_max_level: int = 5
    necrotoxic_conversion_reclaim_chance_per_level: float = 0.04
    necrotoxic_conversion_max_level: int = 5
    putrefactive_rejuvenation_age_reduction_per_level: int = 4
    putrefactive_rejuvenation_radius: int = 3
    putrefactive_rejuvenation_max_level_radius_multiplier: int = 3
    putrefactive_rejuvenation_max_level: int = 4
    putrefactive_cascade_effectiveness_bonus: float = 0.004
    putrefactive_cascade_chance_per_level: float = 0.22
    putrefactive_cascade_max_depth: int = 10
    putrefactive_cascade_max_level: int = 3

    # Genetic drift
    mutator_phenotype_effect_per_level: float = 0.1
    mutator_phenotype_max_level: int = 10
    adaptive_expression_effect_per_level: float = 0.19
    adaptive_expression_max_level: int = 5
    mycotoxin_catabolism_cleanup_chance_per_level: float = 0.025
    mycotoxin_catabolism_point_chance: float = 0.08
    mycotoxin_catabolism_max_points_per_round: int = 3
    mycotoxin_catabolism_max_level: int = 10
    anabolic_inversion_gap_bonus_per_level: float = 0.30
    anabolic_inversion_max_level: int = 3
    necrophytic_bloom_activation_threshold: float = 0.20
    necrophytic_bloom_spores_per_death_per_level: float = 40.0
    necrophytic_bloom_max_level: int = 5
    hyperadaptive_drift_higher_tier_chance_per_level: float = 0.28
    hyperadaptive_drift_bonus_tier_one_chance_per_level: float = 0.3
    hyperadaptive_drift_max_level: int = 4

    # Mycelial surges
    hyphal_surge_effect_per_level: float = 0.009
    hyphal_surge_max_level: int = 10
    hyphal_surge_points_per_activation: int = 7
    hyphal_surge_point_increase_per_level: int = 1
    hyphal_surge_duration: int = 2
    hyphal_vectoring_base_tiles: int = 3
    hyphal_vectoring_tiles_per_level: int = 1
    hyphal_vectoring_max_level: int = 5
    hyphal_vectoring_points_per_activation: int = 9
    hyphal_vectoring_point_increase_per_level: int = 1
    hyphal_vectoring_duration: int = 4
    hyphal_vectoring_candidate_cells_to_check: int = 50
    chitin_fortification_cells_per_level: int = 1
    chitin_fortification_max_level: int = 10
    chitin_fortification_points_per_activation: int = 2
    chitin_fortification_point_increase_per_level: int = 1
    chitin_fortification_duration: int = 3
    mimetic_resilience_min_cell_advantage: float = 0.20
    mimetic_resilience_min_board_control: float = 0.01
    mimetic_resilience_max_placements_per_opponent: int = 20
    mimetic_resilience_chance_decay_per_success: float = 0.05
    mimetic_resilience_max_level: int = 3
    mimetic_resilience_points_per_activation: int = 8
    mimetic_resilience_point_increase_per_level: int = 2
    mimetic_resilience_duration: int = 4

    # Mycovariants
    mycovariant_draft_rounds: tuple[int, ...] = (15,)
    mycovariant_draft_size: int = 3
    plasmid_bounty_points: int = 7
    mycelial_bastion_cells: int = 5
    ballistospore_discharge_spores: int = 15
    ballistospore_discharge_target_players: int = 3
    ballistospore_discharge_toxin_duration: int = 12
    jetting_mycelium_living_length: int = 4
    jetting_mycelium_cone: tuple[tuple[int, int], ...] = ((4, 1), (5, 3), (5, 5))
    jetting_mycelium_toxin_duration: int = 16
    neutralizing_mantle_chance: float = 0.20
    hyphal_resistance_transfer_chance: float = 0.10
    enduring_toxaphores_new_toxin_extension: int = 7
    enduring_toxaphores_existing_toxin_extension: int = 3
    necrophoric_adaptation_reclaim_chance: float = 0.5
    reclamation_rhizomorphs_second_attempt_chance: float = 0.25
    perimeter_proliferator_growth_multiplier: float = 2.0
    perimeter_proliferator_edge_distance: int = 4

    def tier_cost(self, tier: int) -> int:
        """Points per upgrade for a mutation of the given tier.

        Raises:
            KeyError: If the tier has no configured cost.
        """
        return self.tier_costs[int(tier)]

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> GameBalance:
        """Build a balance from overrides keyed by field name.

        Args:
            data: Field overrides; missing fields keep their defaults.

        Returns:
            A populated GameBalance.

        Raises:
            ValueError: If ``data`` names a field that does not exist.
        """
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"unknown balance keys: {', '.join(unknown)}"
            raise ValueError(msg)
        if "tier_costs" in data:
            costs = {int(k): int(v) for k, v in data["tier_costs"].items()}
            data["tier_costs"] = {**_default_tier_costs(), **costs}
        if "mycovariant_draft_rounds" in data:
            rounds = data["mycovariant_draft_rounds"]
            data["mycovariant_draft_rounds"] = tuple(int(r) for r in rounds)
        if "jetting_mycelium_cone" in data:
            data["jetting_mycelium_cone"] = tuple(
                (int(length), int(width))
                for length, width in data["jetting_mycelium_cone"]
            )
        return cls(**data)
