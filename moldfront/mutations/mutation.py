"""Mutation — an immutable upgradable trait definition.

A mutation carries its tier, category, effect kind and per-level
magnitude, its cap, its cost, and the prerequisites that gate it.
Surges additionally carry a ``SurgeSpec``: they are bought as timed
activations whose price rises with each level.
"""

from __future__ import annotations

from dataclasses import dataclass

from moldfront.mutations.kinds import EffectKind, MutationCategory, MutationTier


@dataclass(frozen=True)
class Prerequisite:
    """Requirement that another mutation reach a minimum level.

    Attributes:
        mutation_id: Id of the required mutation.
        required_level: Minimum level that satisfies the requirement.
    """

    mutation_id: int
    required_level: int = 1


@dataclass(frozen=True)
class SurgeSpec:
    """Activation pricing and duration of a timed surge.

    Attributes:
        points_per_activation: Base cost of an activation.
        point_increase_per_level: Extra cost per current level.
        duration_rounds: Rounds the surge stays active.
    """

    points_per_activation: int
    point_increase_per_level: int
    duration_rounds: int

    def activation_cost(self, current_level: int) -> int:
        increase = self.point_increase_per_level * current_level
        return self.points_per_activation + increase


@dataclass(frozen=True)
class Mutation:
    """A single catalog entry.

    Attributes:
        mutation_id: Stable integer id.
        name: Display name.
        description: One-line flavour text.
        category: Thematic bucket.
        tier: Unlock tier.
        effect_kind: What the per-level magnitude feeds into.
        effect_per_level: Magnitude added per level.
        max_level: Highest reachable level.
        points_per_upgrade: Flat cost of one level (non-surges).
        prerequisites: Mutations that must reach a level first.
        surge: Activation pricing; None for permanent mutations.
    """

    mutation_id: int
    name: str
    description: str
    category: MutationCategory
    tier: MutationTier
    effect_kind: EffectKind
    effect_per_level: float
    max_level: int
    points_per_upgrade: int
    prerequisites: tuple[Prerequisite, ...] = ()
    surge: SurgeSpec | None = None

    @property
    def is_surge(self) -> bool:
        return self.surge is not None

    def upgrade_cost(self, current_level: int) -> int:
        """Points needed to gain (or, for surges, activate) the next level."""
        if self.surge is not None:
            return self.surge.activation_cost(current_level)
        return self.points_per_upgrade
