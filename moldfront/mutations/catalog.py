"""MutationCatalog — the read-only registry of every mutation.

The catalog is built once per game and handed explicitly to players,
strategies and effects.  Registration order is a topological order of
the prerequisite graph: a mutation can only be registered after every
mutation it depends on.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable
from dataclasses import dataclass, field

from moldfront.mutations.mutation import Mutation


@dataclass
class MutationCatalog:
    """Registry of mutations keyed by id.

    Attributes:
        mutations: Registered mutations in registration order.
    """

    mutations: dict[int, Mutation] = field(default_factory=dict)
    _dependents: dict[int, list[int]] = field(
        default_factory=dict,
        init=False,
        repr=False,
    )
    _chains: dict[int, tuple[tuple[Mutation, int], ...]] = field(
        default_factory=dict,
        init=False,
        repr=False,
    )

    @classmethod
    def build(cls, definitions: Iterable[Mutation]) -> MutationCatalog:
        """Register definitions in dependency order.

        Definitions may be given in any order.  Ties between mutations
        that are ready at the same time are broken by id, so the result
        is deterministic.

        Raises:
            ValueError: On a duplicate id, a self-prerequisite, a
                reference to an undefined mutation, or a cycle.
        """
        pending: dict[int, Mutation] = {}
        for mutation in definitions:
            if mutation.mutation_id in pending:
                msg = f"duplicate mutation id {mutation.mutation_id}"
                raise ValueError(msg)
            pending[mutation.mutation_id] = mutation

        indegree = {mid: 0 for mid in pending}
        children: dict[int, list[int]] = {mid: [] for mid in pending}
        for mid, mutation in pending.items():
            for prereq in mutation.prerequisites:
                if prereq.mutation_id == mid:
                    msg = f"mutation {mutation.name} lists itself as a prerequisite"
                    raise ValueError(msg)
                if prereq.mutation_id not in pending:
                    msg = (
                        f"mutation {mutation.name} requires undefined "
                        f"mutation id {prereq.mutation_id}"
                    )
                    raise ValueError(msg)
                indegree[mid] += 1
                children[prereq.mutation_id].append(mid)

        ready = [mid for mid, degree in indegree.items() if degree == 0]
        heapq.heapify(ready)
        catalog = cls()
        while ready:
            mid = heapq.heappop(ready)
            catalog.register(pending[mid])
            for child in children[mid]:
                indegree[child] -= 1
                if indegree[child] == 0:
                    heapq.heappush(ready, child)

        if len(catalog.mutations) != len(pending):
            stuck = sorted(set(pending) - set(catalog.mutations))
            msg = f"prerequisite cycle among mutation ids {stuck}"
            raise ValueError(msg)
        return catalog

    def register(self, mutation: Mutation) -> None:
        """Add one mutation whose prerequisites are already registered.

        Raises:
            ValueError: On a duplicate id or an unregistered prerequisite.
        """
        if mutation.mutation_id in self.mutations:
            msg = f"duplicate mutation id {mutation.mutation_id}"
            raise ValueError(msg)
        for prereq in mutation.prerequisites:
            if prereq.mutation_id not in self.mutations:
                msg = (
                    f"mutation {mutation.name} requires unregistered "
                    f"mutation id {prereq.mutation_id}"
                )
                raise ValueError(msg)
        self.mutations[mutation.mutation_id] = mutation
        self._dependents[mutation.mutation_id] = []
        for prereq in mutation.prerequisites:
            self._dependents[prereq.mutation_id].append(mutation.mutation_id)
        self._chains.clear()

    # -- Lookups ---------------------------------------------------------

    def get_by_id(self, mutation_id: int) -> Mutation:
        """Return the mutation with ``mutation_id``.

        Raises:
            KeyError: If no such mutation is registered.
        """
        try:
            return self.mutations[int(mutation_id)]
        except KeyError:
            msg = f"unknown mutation id {mutation_id}"
            raise KeyError(msg) from None

    def __contains__(self, mutation_id: object) -> bool:
        return mutation_id in self.mutations

    def __len__(self) -> int:
        return len(self.mutations)

    def all(self) -> list[Mutation]:
        return list(self.mutations.values())

    def roots(self) -> list[Mutation]:
        """Mutations with no prerequisites."""
        return [m for m in self.mutations.values() if not m.prerequisites]

    def dependents_of(self, mutation_id: int) -> list[Mutation]:
        """Mutations that list ``mutation_id`` as a direct prerequisite."""
        ids = self._dependents.get(int(mutation_id), [])
        return [self.mutations[mid] for mid in ids]

    def prerequisite_chain(self, mutation_id: int) -> list[tuple[Mutation, int]]:
        """Full transitive prerequisite set of a mutation.

        Each entry pairs a mutation with the highest level any path
        requires of it.  Entries are in registration order, so every
        mutation appears after the mutations it depends on.  The target
        itself is not included.

        Raises:
            KeyError: If ``mutation_id`` is not registered.
        """
        mutation_id = int(mutation_id)
        cached = self._chains.get(mutation_id)
        if cached is None:
            target = self.get_by_id(mutation_id)
            required: dict[int, int] = {}
            stack = list(target.prerequisites)
            while stack:
                prereq = stack.pop()
                level = required.get(prereq.mutation_id, 0)
                if prereq.required_level > level:
                    required[prereq.mutation_id] = prereq.required_level
                if level == 0:
                    stack.extend(self.mutations[prereq.mutation_id].prerequisites)
            order = {mid: index for index, mid in enumerate(self.mutations)}
            cached = tuple(
                (self.mutations[mid], level)
                for mid, level in sorted(required.items(), key=lambda kv: order[kv[0]])
            )
            self._chains[mutation_id] = cached
        return list(cached)
