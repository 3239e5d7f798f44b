"""Contains all global enumeration classes used throughout the project."""

from __future__ import annotations

from enum import Enum


class Neighbor(Enum):
    """Defines the eight neighbors of a cell, in clockwise order starting at the top-left.

    The values double as indices into a rule's 'around' ids and into the neighbor views passed to a cell's refine step.
    Vectors are (dx, dy) offsets with y growing upward.
    """

    TOP_LEFT = 0
    """Diagonal neighbor above and to the left."""
    TOP = 1
    """Neighbor directly above."""
    TOP_RIGHT = 2
    """Diagonal neighbor above and to the right."""
    RIGHT = 3
    """Neighbor directly to the right."""
    BOTTOM_RIGHT = 4
    """Diagonal neighbor below and to the right."""
    BOTTOM = 5
    """Neighbor directly below."""
    BOTTOM_LEFT = 6
    """Diagonal neighbor below and to the left."""
    LEFT = 7
    """Neighbor directly to the left."""

    def reverse(self) -> Neighbor:
        """Returns the neighbor on the opposite side of the cell."""
        # Opposite neighbors are always four steps apart in clockwise order.
        return Neighbor((self.value + 4) % 8)

    def to_vector(self) -> tuple[int, int]:
        """Returns the (dx, dy) offset of the neighbor relative to the cell."""
        match self:
            case Neighbor.TOP_LEFT:
                return (-1, 1)
            case Neighbor.TOP:
                return (0, 1)
            case Neighbor.TOP_RIGHT:
                return (1, 1)
            case Neighbor.RIGHT:
                return (1, 0)
            case Neighbor.BOTTOM_RIGHT:
                return (1, -1)
            case Neighbor.BOTTOM:
                return (0, -1)
            case Neighbor.BOTTOM_LEFT:
                return (-1, -1)
            case Neighbor.LEFT:
                return (-1, 0)

    def pattern_index(self) -> int:
        """Returns the index of the neighbor within a row-major 3x3 pattern whose first row lies below the center."""
        dx, dy = self.to_vector()
        return (dy + 1) * 3 + (dx + 1)


class Direction(Enum):
    """Defines the cardinal directions used for directional tile adjacency."""

    LEFT = 0
    """Left direction."""
    RIGHT = 1
    """Right direction."""
    UP = 2
    """Upward direction."""
    DOWN = 3
    """Downward direction."""

    def reverse(self) -> Direction:
        """Returns the opposite direction of the current direction."""
        match self:
            case Direction.LEFT:
                return Direction.RIGHT
            case Direction.RIGHT:
                return Direction.LEFT
            case Direction.UP:
                return Direction.DOWN
            case Direction.DOWN:
                return Direction.UP

    def to_vector(self) -> tuple[int, int]:
        """Returns the (dx, dy) vector representation for the direction (y grows upward)."""
        match self:
            case Direction.LEFT:
                return (-1, 0)
            case Direction.RIGHT:
                return (1, 0)
            case Direction.UP:
                return (0, 1)
            case Direction.DOWN:
                return (0, -1)

    def to_neighbor(self) -> Neighbor:
        """Returns the neighbor lying one step in this direction."""
        match self:
            case Direction.LEFT:
                return Neighbor.LEFT
            case Direction.RIGHT:
                return Neighbor.RIGHT
            case Direction.UP:
                return Neighbor.TOP
            case Direction.DOWN:
                return Neighbor.BOTTOM


class CellCollapseOrder(Enum):
    """Defines the order in which a world picks the next cell to force-collapse."""

    ROW_BY_ROW = "Row by Row (Default)"
    """Starts with the cell at the origin. Proceeds along x, then along y."""
    COL_BY_COL = "Column by Column"
    """Starts with the cell at the origin. Proceeds along y, then along x."""
    LOWEST_ENTROPY_FIRST = "Lowest Entropy First"
    """Always picks the cell with the lowest entropy as the cell to collapse next."""
    RANDOM = "Random"
    """Always picks the next cell to collapse randomly."""
