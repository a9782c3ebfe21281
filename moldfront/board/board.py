"""Board — the grid of tiles and the only gateway for cell transitions.

The Board owns every tile and keeps each player's controlled-tile set in
step with the cells on the grid.  All state changes (placement, death,
toxin conversion, reclamation, takeover, relocation) go through the
public operations here, and each one publishes an event on the
``EffectCoordinator`` so mutation effects can react to it.

Invalid attempts (a resistant target, converting a living cell, reviving
a cell that is not dead) return ``False`` or a ``TakeoverResult``
instead of raising; callers routinely check before acting.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from moldfront.board.cell import (
    Cell,
    CellState,
    DeathReason,
    GrowthSource,
    TakeoverResult,
)
from moldfront.board.tile import Tile
from moldfront.events.bus import (
    CellColonized,
    CellDeath,
    CellInfested,
    CellReclaimed,
    EffectCoordinator,
    ToxinExpired,
    ToxinPlaced,
)
from moldfront.simulation.observer import SimulationObserver

if TYPE_CHECKING:
    from moldfront.players.player import Player

# -- Constants -----------------------------------------------------------

_ORTHOGONAL = [(0, -1), (1, 0), (0, 1), (-1, 0)]
_DIAGONAL = [(-1, -1), (1, -1), (1, 1), (-1, 1)]


@dataclass
class Board:
    """A 2D grid of tiles shared by all players.

    Attributes:
        width: Number of columns.
        height: Number of rows.
        growth_cycles_per_round: Growth sub-cycles run each round; used
            to turn toxin lifetimes (in cycles) into rounds.
        events: Event bus that receives every cell transition.
        observer: Analytics sink.
        players: Registered players keyed by id.
        current_round: 1-based round counter.
        current_growth_cycle: Total growth sub-cycles run so far.
        necrophytic_bloom_activated: Whether the occupancy threshold for
            Necrophytic Bloom has been crossed.
        tiles: Flat tile list indexed by tile id.
    """

    width: int
    height: int
    growth_cycles_per_round: int = 5
    events: EffectCoordinator = field(default_factory=EffectCoordinator)
    observer: SimulationObserver = field(default_factory=SimulationObserver)
    players: dict[int, Player] = field(default_factory=dict)
    current_round: int = 1
    current_growth_cycle: int = 0
    necrophytic_bloom_activated: bool = False
    tiles: list[Tile] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Create every tile once."""
        if self.width <= 0 or self.height <= 0:
            msg = f"board dimensions must be positive, got {self.width}x{self.height}"
            raise ValueError(msg)
        self.tiles = [
            Tile(x=x, y=y, tile_id=y * self.width + x)
            for y in range(self.height)
            for x in range(self.width)
        ]

    # -- Geometry --------------------------------------------------------

    @property
    def total_tiles(self) -> int:
        return self.width * self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def tile_at(self, x: int, y: int) -> Tile:
        """Return the tile at grid coordinates ``(x, y)``.

        Raises:
            IndexError: If coordinates are out of bounds.
        """
        if not self.in_bounds(x, y):
            msg = f"({x}, {y}) out of bounds for {self.width}x{self.height}"
            raise IndexError(msg)
        return self.tiles[y * self.width + x]

    def tile(self, tile_id: int) -> Tile:
        """Return the tile with the given id.

        Raises:
            IndexError: If the id is outside the board.
        """
        if not 0 <= tile_id < self.total_tiles:
            msg = f"tile id {tile_id} out of range for {self.width}x{self.height}"
            raise IndexError(msg)
        return self.tiles[tile_id]

    def cell(self, tile_id: int) -> Cell | None:
        return self.tile(tile_id).cell

    def offset(self, tile_id: int, dx: int, dy: int) -> Tile | None:
        """Return the tile ``(dx, dy)`` away, or None past the edge."""
        origin = self.tile(tile_id)
        nx, ny = origin.x + dx, origin.y + dy
        if not self.in_bounds(nx, ny):
            return None
        return self.tiles[ny * self.width + nx]

    def orthogonal_neighbours(self, tile_id: int) -> list[Tile]:
        """Up to four edge-adjacent tiles."""
        return self._neighbours(tile_id, _ORTHOGONAL)

    def diagonal_neighbours(self, tile_id: int) -> list[tuple[tuple[int, int], Tile]]:
        """Up to four corner-adjacent tiles, paired with their offset."""
        origin = self.tile(tile_id)
        result: list[tuple[tuple[int, int], Tile]] = []
        for dx, dy in _DIAGONAL:
            nx, ny = origin.x + dx, origin.y + dy
            if self.in_bounds(nx, ny):
                result.append(((dx, dy), self.tiles[ny * self.width + nx]))
        return result

    def all_neighbours(self, tile_id: int) -> list[Tile]:
        """Up to eight surrounding tiles."""
        return self._neighbours(tile_id, _ORTHOGONAL + _DIAGONAL)

    def _neighbours(self, tile_id: int, offsets: list[tuple[int, int]]) -> list[Tile]:
        origin = self.tile(tile_id)
        result: list[Tile] = []
        for dx, dy in offsets:
            nx, ny = origin.x + dx, origin.y + dy
            if self.in_bounds(nx, ny):
                result.append(self.tiles[ny * self.width + nx])
        return result

    # -- Queries ---------------------------------------------------------

    def cells(self) -> Iterator[Cell]:
        for tile in self.tiles:
            if tile.cell is not None:
                yield tile.cell

    def living_cells(self) -> list[Cell]:
        return [c for c in self.cells() if c.is_alive]

    def cells_owned_by(self, player_id: int) -> list[Cell]:
        """Every cell (any state) currently owned by ``player_id``."""
        return [c for c in self.cells() if c.owner_id == player_id]

    def living_cells_of(self, player_id: int) -> list[Cell]:
        return [c for c in self.cells() if c.is_alive and c.owner_id == player_id]

    def dead_cells_of(self, player_id: int) -> list[Cell]:
        return [c for c in self.cells() if c.is_dead and c.owner_id == player_id]

    def toxin_cells(self) -> list[Cell]:
        return [c for c in self.cells() if c.is_toxin]

    def empty_tiles(self) -> list[Tile]:
        return [t for t in self.tiles if t.cell is None]

    def occupied_count(self) -> int:
        return sum(1 for t in self.tiles if t.cell is not None)

    def occupied_ratio(self) -> float:
        """Fraction of tiles holding any cell.  Pure; no side effects."""
        return self.occupied_count() / self.total_tiles

    def living_counts(self) -> dict[int, int]:
        """Living cells per registered player (zero for the wiped out)."""
        counts = {pid: 0 for pid in self.players}
        for cell in self.cells():
            if cell.is_alive and cell.owner_id is not None:
                counts[cell.owner_id] = counts.get(cell.owner_id, 0) + 1
        return counts

    def is_surrounded_by_enemies(self, tile_id: int) -> bool:
        """True if every neighbouring tile holds a living enemy cell."""
        cell = self.cell(tile_id)
        if cell is None:
            return False
        for tile in self.all_neighbours(tile_id):
            other = tile.cell
            if other is None or not other.is_alive or other.owner_id == cell.owner_id:
                return False
        return True

    # -- Players & round bookkeeping -------------------------------------

    def add_player(self, player: Player) -> None:
        """Register a player.

        Raises:
            ValueError: If the id is already taken.
        """
        if player.player_id in self.players:
            msg = f"duplicate player id {player.player_id}"
            raise ValueError(msg)
        self.players[player.player_id] = player

    def increment_round(self) -> None:
        self.current_round += 1

    def increment_growth_cycle(self) -> None:
        self.current_growth_cycle += 1

    def toxin_expiration_round(self, duration_cycles: int) -> int:
        """Convert a toxin lifetime in growth cycles to an expiry round.

        Args:
            duration_cycles: Lifetime expressed in growth sub-cycles.

        Raises:
            ValueError: If the lifetime is not positive.
        """
        if duration_cycles <= 0:
            msg = f"toxin lifetime must be positive, got {duration_cycles}"
            raise ValueError(msg)
        rounds = math.ceil(duration_cycles / self.growth_cycles_per_round)
        return self.current_round + rounds

    def should_trigger_endgame(self, threshold: float) -> bool:
        return self.occupied_ratio() >= threshold

    # -- Mutating operations ---------------------------------------------

    def place_cell(
        self,
        tile_id: int,
        owner_id: int,
        *,
        as_toxin: bool = False,
        source: GrowthSource = GrowthSource.UNKNOWN,
        expiration_round: int | None = None,
        resistant: bool = False,
    ) -> bool:
        """Create a new cell on an empty tile.

        Occupied tiles must go through ``takeover`` instead.

        Args:
            tile_id: Target tile.
            owner_id: Owner of the new cell.
            as_toxin: Place a toxin instead of a living cell.
            source: How the cell came to be.
            expiration_round: Toxin expiry; required with ``as_toxin``.
            resistant: Create the living cell already resistant.

        Returns:
            True if a cell was placed.
        """
        tile = self.tile(tile_id)
        if tile.cell is not None:
            return False
        if as_toxin:
            if expiration_round is None:
                msg = "placing a toxin requires an expiration round"
                raise ValueError(msg)
            return self.convert_to_toxin(tile_id, expiration_round, owner_id)
        tile.cell = Cell(
            tile_id=tile_id,
            owner_id=owner_id,
            source_of_growth=source,
            birth_round=self.current_round,
            is_resistant=resistant,
        )
        self._gain_tile(owner_id, tile_id)
        self.observer.record_cell_growth(owner_id, source)
        self.events.publish(CellColonized(tile_id, owner_id, source))
        return True

    def kill_cell(
        self,
        tile_id: int,
        reason: DeathReason,
        killer_id: int | None = None,
        *,
        attacker_tile_id: int | None = None,
        cascade_depth: int = 0,
    ) -> bool:
        """Kill the living cell on ``tile_id``.

        Returns:
            True if a living, non-resistant cell died.
        """
        cell = self.cell(tile_id)
        if cell is None or not cell.is_alive or cell.is_resistant:
            return False
        owner_id = cell.owner_id
        cell.mark_dead(reason)
        if owner_id is not None:
            self._lose_tile(owner_id, tile_id)
            self.observer.record_cell_death(owner_id, reason, killer_id)
            self.events.publish(
                CellDeath(
                    tile_id=tile_id,
                    owner_id=owner_id,
                    reason=reason,
                    killer_id=killer_id,
                    attacker_tile_id=attacker_tile_id,
                    cascade_depth=cascade_depth,
                ),
            )
        return True

    def convert_to_toxin(
        self,
        tile_id: int,
        expiration_round: int,
        owner_id: int | None = None,
        *,
        source: GrowthSource = GrowthSource.UNKNOWN,
    ) -> bool:
        """Turn an empty tile, dead cell or toxin into a (fresh) toxin.

        A living cell must be killed first; ``kill_and_toxify`` does
        both.  Handlers of ``ToxinPlaced`` may neutralize the toxin.

        Args:
            tile_id: Target tile.
            expiration_round: Round at which the toxin expires.
            owner_id: Player the toxin belongs to, if any.
            source: Effect placing the toxin (analytics only).

        Returns:
            True if the tile now holds the new toxin.

        Raises:
            ValueError: If ``expiration_round`` is not after the current
                round.
        """
        if expiration_round <= self.current_round:
            msg = (
                f"toxin expiration round {expiration_round} must be after "
                f"current round {self.current_round}"
            )
            raise ValueError(msg)
        tile = self.tile(tile_id)
        cell = tile.cell
        if cell is not None and (cell.is_resistant or cell.is_alive):
            return False
        placed = self.events.publish(ToxinPlaced(tile_id, owner_id))
        if placed.neutralized:
            return False
        # A handler may have reshaped the tile; re-check.
        cell = tile.cell
        if cell is not None and (cell.is_resistant or cell.is_alive):
            return False
        if cell is None:
            tile.cell = Cell(
                tile_id=tile_id,
                owner_id=owner_id,
                state=CellState.TOXIN,
                toxin_expiration_round=expiration_round,
                source_of_growth=source,
                birth_round=self.current_round,
            )
        else:
            cell.mark_toxin(expiration_round, owner_id, source)
        return True

    def kill_and_toxify(
        self,
        tile_id: int,
        expiration_round: int,
        reason: DeathReason,
        killer_id: int | None,
        *,
        source: GrowthSource = GrowthSource.UNKNOWN,
        attacker_tile_id: int | None = None,
        cascade_depth: int = 0,
    ) -> bool:
        """Kill the living cell on ``tile_id`` and leave a toxin behind.

        Death handlers run before the conversion; if one of them revives
        the cell, the toxin is not placed.

        Returns:
            True if the cell was killed.
        """
        if not self.kill_cell(
            tile_id,
            reason,
            killer_id,
            attacker_tile_id=attacker_tile_id,
            cascade_depth=cascade_depth,
        ):
            return False
        self.convert_to_toxin(tile_id, expiration_round, killer_id, source=source)
        return True

    def remove_toxin(self, tile_id: int, cleared_by: int | None = None) -> bool:
        """Clear a toxin from its tile, leaving the tile empty.

        Args:
            tile_id: Tile holding the toxin.
            cleared_by: Player whose effect cleaned it up early; None for
                natural expiry.

        Returns:
            True if a toxin was removed.
        """
        tile = self.tile(tile_id)
        cell = tile.cell
        if cell is None or not cell.is_toxin or cell.is_resistant:
            return False
        tile.cell = None
        self.events.publish(ToxinExpired(tile_id, cell.owner_id, cleared_by))
        return True

    def extend_toxin(self, tile_id: int, rounds: int) -> bool:
        """Push a toxin's expiration round back by ``rounds``.

        Returns:
            True if the tile held a toxin with an expiration round.
        """
        cell = self.cell(tile_id)
        if cell is None or not cell.is_toxin or cell.toxin_expiration_round is None:
            return False
        cell.toxin_expiration_round += rounds
        return True

    def expire_toxins(self) -> int:
        """Remove every toxin whose expiration round has been reached.

        Returns:
            Number of toxins removed.
        """
        expired = [
            c.tile_id
            for c in self.toxin_cells()
            if c.has_toxin_expired(self.current_round)
        ]
        return sum(1 for tile_id in expired if self.remove_toxin(tile_id))

    def reclaim(
        self,
        tile_id: int,
        new_owner_id: int,
        source: GrowthSource = GrowthSource.RECLAIM,
    ) -> bool:
        """Revive a dead cell for ``new_owner_id``.

        Returns:
            True if the cell was dead, not resistant, and is now alive.
        """
        cell = self.cell(tile_id)
        if cell is None or not cell.is_reclaimable:
            return False
        previous = cell.owner_id
        cell.revive(new_owner_id, source, self.current_round)
        self._gain_tile(new_owner_id, tile_id)
        self.observer.record_cell_growth(new_owner_id, source)
        self.events.publish(CellReclaimed(tile_id, new_owner_id, previous, source))
        return True

    def takeover(
        self,
        tile_id: int,
        new_owner_id: int,
        *,
        allow_toxin: bool = False,
        source: GrowthSource = GrowthSource.UNKNOWN,
    ) -> TakeoverResult:
        """Have ``new_owner_id`` supplant whatever occupies ``tile_id``.

        Args:
            tile_id: Target tile.
            new_owner_id: Player taking the tile.
            allow_toxin: Whether a toxin may be overgrown.
            source: Effect driving the takeover.

        Returns:
            Which of the takeover cases applied.
        """
        cell = self.cell(tile_id)
        if cell is None:
            return TakeoverResult.INVALID
        if cell.is_resistant:
            return TakeoverResult.INVALID_RESISTANT
        if cell.is_alive:
            if cell.owner_id == new_owner_id:
                return TakeoverResult.ALREADY_OWNED
            previous = cell.owner_id
            cell.change_owner(new_owner_id, source, self.current_round)
            if previous is not None:
                self._lose_tile(previous, tile_id)
                self.observer.record_cell_death(
                    previous,
                    DeathReason.INFESTED,
                    new_owner_id,
                )
            self._gain_tile(new_owner_id, tile_id)
            self.observer.record_cell_growth(new_owner_id, source)
            self.events.publish(
                CellInfested(tile_id, new_owner_id, previous, source),
            )
            return TakeoverResult.INFESTED
        if cell.is_dead:
            self.reclaim(tile_id, new_owner_id, source)
            return TakeoverResult.RECLAIMED
        if cell.is_toxin and allow_toxin:
            previous = cell.owner_id
            cell.revive(new_owner_id, source, self.current_round)
            self._gain_tile(new_owner_id, tile_id)
            self.observer.record_cell_growth(new_owner_id, source)
            self.events.publish(CellReclaimed(tile_id, new_owner_id, previous, source))
            return TakeoverResult.CATABOLIC_GROWTH
        return TakeoverResult.INVALID

    def relocate_cell(self, from_tile_id: int, to_tile_id: int) -> bool:
        """Move a living cell onto an adjacent empty tile.

        The source tile becomes empty.  Used by Creeping Mold.

        Returns:
            True if the move happened.
        """
        source_tile = self.tile(from_tile_id)
        target_tile = self.tile(to_tile_id)
        cell = source_tile.cell
        if cell is None or not cell.is_alive or cell.is_resistant:
            return False
        if target_tile.cell is not None or cell.owner_id is None:
            return False
        owner_id = cell.owner_id
        source_tile.cell = None
        self._lose_tile(owner_id, from_tile_id)
        cell.tile_id = to_tile_id
        cell.source_of_growth = GrowthSource.CREEPING_MOLD
        target_tile.cell = cell
        self._gain_tile(owner_id, to_tile_id)
        self.events.publish(
            CellColonized(to_tile_id, owner_id, GrowthSource.CREEPING_MOLD),
        )
        return True

    def make_resistant(self, tile_id: int) -> bool:
        """Make a living cell permanently resistant.

        Returns:
            True if the cell was living and not already resistant.
        """
        cell = self.cell(tile_id)
        if cell is None or not cell.is_alive or cell.is_resistant:
            return False
        cell.is_resistant = True
        return True

    # -- Internals -------------------------------------------------------

    def _gain_tile(self, player_id: int, tile_id: int) -> None:
        player = self.players.get(player_id)
        if player is not None:
            player.controlled_tile_ids.add(tile_id)

    def _lose_tile(self, player_id: int, tile_id: int) -> None:
        player = self.players.get(player_id)
        if player is not None:
            player.controlled_tile_ids.discard(tile_id)
