"""Tile — a fixed grid position that holds at most one cell."""

from __future__ import annotations

from dataclasses import dataclass, field

from moldfront.board.cell import Cell


@dataclass
class Tile:
    """A permanent board position.

    Attributes:
        x: Column index.
        y: Row index.
        tile_id: ``y * width + x``; the canonical key everywhere.
        cell: The current occupant, if any.
    """

    x: int
    y: int
    tile_id: int
    cell: Cell | None = field(default=None, repr=False)

    @property
    def is_occupied(self) -> bool:
        return self.cell is not None

    def distance_to(self, other: Tile) -> int:
        """Chebyshev distance (king moves) to another tile."""
        return max(abs(self.x - other.x), abs(self.y - other.y))
