"""Implements a rectangular grid that is solved cell by cell through refinement and forced collapses."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
import heapq
import logging
import random
from typing import Any, TYPE_CHECKING

import numpy as np

from constants import VOID_TILE
from enums import CellCollapseOrder, Neighbor
from supertile.tile import Resolved, ResolvedTile, Superimposed, SuperTile, Unresolved

if TYPE_CHECKING:
    from collections.abc import Iterable

    from numpy.typing import NDArray

    from supertile.rules import RuleSet
    from supertile.tile import NeighborView


logger = logging.getLogger(__name__)


class World:
    """A width x height grid of cells solved with the Wave Function Collapse algorithm.

    Every cell starts as a fully undecided 'SuperTile'. Collapsing a cell first refines it against its current neighbors
    and, if that does not decide it, draws one of its candidates at random. The new information is then propagated
    through a worklist: each undecided neighbor is refined, and whenever a cell gets decided or loses candidates, its own
    undecided neighbors are refined in turn. A cell left without candidates holds the void tile, which its neighbors treat
    like a missing neighbor. There is no backtracking.

    Cells are addressed as (x, y) with y growing upward. Cells outside the grid place no constraint on their neighbors.

    Attributes:
        contradictions: The number of cells that ended up holding the void tile.
    """

    contradictions: int

    # === CONSTRUCTOR PARAMETERS (initialized in __init__()) ===

    # The rules all cells are refined with.
    _rules: RuleSet
    # (width, height) of the grid (in cells).
    _size: tuple[int, int]
    # Random number generator used for forced collapses and for randomized cell orders.
    _rng: random.Random
    # Strategy for selecting the next cell to force-collapse in solve().
    _cell_collapse_order: CellCollapseOrder

    # === RUNTIME STATE ===

    # 2D array indexed [x, y] holding a 'SuperTile' for each undecided cell and the tile id of each decided one.
    _cell_grid: NDArray[Any]
    # Heap structure of cell coords for selecting the next cell to collapse (ordered by position/entropy/randomly).
    _uncollapsed_cells_coords: list[_HeapItem]

    def __init__(
        self,
        rules: RuleSet,
        width: int,
        height: int,
        rng: random.Random | None = None,
        cell_collapse_order: CellCollapseOrder = CellCollapseOrder.ROW_BY_ROW,
    ) -> None:
        """Creates a grid of fully undecided cells.

        Args:
            rules: The rules all cells are refined with.
            width: The width of the grid (in cells).
            height: The height of the grid (in cells).
            rng: Random number generator used for forced collapses and randomized cell orders. A new unseeded
                generator is used if omitted, pass a seeded one for reproducible results.
            cell_collapse_order: Strategy for selecting the next cell to force-collapse in solve().

        Raises:
            ValueError: If width or height is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"world size must be positive, got {width}x{height}")

        self.contradictions = 0

        self._rules = rules
        self._size = (width, height)
        self._rng = rng if rng is not None else random.Random()
        self._cell_collapse_order = cell_collapse_order

        self._cell_grid = np.empty(self._size, dtype=object)
        self._uncollapsed_cells_coords = []
        for y in range(height):
            for x in range(width):
                self._cell_grid[x, y] = SuperTile(rules)
                self._add_to_uncollapsed_cells_coords((x, y))

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) of the grid (in cells)."""
        return self._size

    def read(self, x: int, y: int) -> int | None:
        """Returns the tile of a decided cell, or None while the cell is undecided."""
        self._check_coords(x, y)
        cell = self._cell_grid[x, y]
        return None if isinstance(cell, SuperTile) else cell

    def candidates(self, x: int, y: int) -> tuple[int, ...]:
        """Returns the tiles a cell may still hold (a single tile once it is decided)."""
        self._check_coords(x, y)
        cell = self._cell_grid[x, y]
        return cell.candidates if isinstance(cell, SuperTile) else (cell,)

    def is_collapsed(self, x: int, y: int) -> bool:
        """Checks if a cell holds a single tile."""
        return self.read(x, y) is not None

    def is_solved(self) -> bool:
        """Checks if every cell holds a single tile."""
        return not any(isinstance(cell, SuperTile) for cell in self._cell_grid.flat)

    def collapse(self, x: int, y: int) -> int:
        """Decides a cell and propagates the consequences to the rest of the grid.

        The cell is refined against its current neighbors first. If several candidates remain, one of them is drawn at
        random according to the candidate weights.

        Args:
            x: The x coordinate of the cell.
            y: The y coordinate of the cell.

        Returns:
            The tile the cell holds (the void tile if it had no candidates left).
        """
        self._check_coords(x, y)
        cell = self._cell_grid[x, y]
        if not isinstance(cell, SuperTile):
            return cell

        match cell.refine(self._neighbor_views(x, y), self._rules):
            case Resolved(tile=tile):
                pass
            case Unresolved():
                tile = cell.force_collapse(self._rng)

        self._resolve((x, y), tile)
        self._propagate([(x, y)])
        return tile

    def solve(self) -> NDArray[np.int_]:
        """Collapses cells in the configured order until every cell is decided.

        Returns:
            The tile grid (see tiles()).
        """
        next_coords = self._choose_next_cell()
        while next_coords is not None:
            self.collapse(*next_coords)
            next_coords = self._choose_next_cell()

        logger.debug("Solved %dx%d world with %d contradictions", *self._size, self.contradictions)
        return self.tiles()

    def tiles(self) -> NDArray[np.int_]:
        """Returns a 2D array indexed [x, y] of the tile held by each cell (-1 for undecided cells)."""
        tiles = np.full(self._size, -1, dtype=np.int_)
        for (x, y), cell in np.ndenumerate(self._cell_grid):
            if not isinstance(cell, SuperTile):
                tiles[x, y] = cell
        return tiles

    def _check_coords(self, x: int, y: int) -> None:
        """Raises if the coords lie outside of the grid."""
        if not (0 <= x < self._size[0] and 0 <= y < self._size[1]):
            raise IndexError(f"cell ({x}, {y}) lies outside of the {self._size[0]}x{self._size[1]} world")

    def _in_bounds(self, coords: tuple[int, int]) -> bool:
        """Checks if the coords lie inside the grid."""
        return 0 <= coords[0] < self._size[0] and 0 <= coords[1] < self._size[1]

    def _neighbor_coords(self, coords: tuple[int, int]) -> list[tuple[int, int]]:
        """Returns the coords of all neighbors inside the grid, clockwise from the top-left."""
        neighbor_coords = []
        for neighbor in Neighbor:
            dx, dy = neighbor.to_vector()
            candidate_coords = (coords[0] + dx, coords[1] + dy)
            if self._in_bounds(candidate_coords):
                neighbor_coords.append(candidate_coords)
        return neighbor_coords

    def _neighbor_views(self, x: int, y: int) -> list[NeighborView]:
        """Builds the eight read-only neighbor views of a cell, clockwise from the top-left."""
        views: list[NeighborView] = []
        for neighbor in Neighbor:
            dx, dy = neighbor.to_vector()
            neighbor_coords = (x + dx, y + dy)
            if not self._in_bounds(neighbor_coords):
                views.append(None)
                continue

            cell = self._cell_grid[neighbor_coords]
            views.append(Superimposed(cell) if isinstance(cell, SuperTile) else ResolvedTile(cell))
        return views

    def _resolve(self, coords: tuple[int, int], tile: int) -> None:
        """Replaces a cell's super tile by its final tile."""
        assert isinstance(self._cell_grid[coords], SuperTile)
        self._cell_grid[coords] = tile
        if tile == VOID_TILE:
            self.contradictions += 1
            logger.debug("Contradiction at cell %s", coords)

    def _propagate(self, changed_coords: Iterable[tuple[int, int]]) -> None:
        """Refines the neighbors of changed cells until no cell changes anymore."""
        worklist = deque(
            neighbor_coords for coords in changed_coords for neighbor_coords in self._neighbor_coords(coords)
        )
        refinements = 0

        while worklist:
            coords = worklist.popleft()
            cell = self._cell_grid[coords]
            if not isinstance(cell, SuperTile):
                continue

            refinements += 1
            match cell.refine(self._neighbor_views(*coords), self._rules):
                case Resolved(tile=tile):
                    self._resolve(coords, tile)
                case Unresolved(changed=True):
                    if self._cell_collapse_order == CellCollapseOrder.LOWEST_ENTROPY_FIRST:
                        self._add_to_uncollapsed_cells_coords(coords)
                case Unresolved(changed=False):
                    continue

            worklist.extend(self._neighbor_coords(coords))

        logger.debug("Propagation finished after %d refinements", refinements)

    def _add_to_uncollapsed_cells_coords(self, coords: tuple[int, int]) -> None:
        """Adds cell coords to the priority queue based on collapse order."""
        match self._cell_collapse_order:
            case CellCollapseOrder.ROW_BY_ROW:
                heapq.heappush(self._uncollapsed_cells_coords, _HeapItem(coords[1] * self._size[0] + coords[0], coords))
            case CellCollapseOrder.COL_BY_COL:
                heapq.heappush(self._uncollapsed_cells_coords, _HeapItem(coords[0] * self._size[1] + coords[1], coords))
            case CellCollapseOrder.LOWEST_ENTROPY_FIRST:
                # Small random noise breaks ties between cells of equal entropy.
                entropy = self._cell_grid[coords].entropy() + self._rng.uniform(0.0, 0.00000001)
                heapq.heappush(self._uncollapsed_cells_coords, _HeapItem(entropy, coords))
            case CellCollapseOrder.RANDOM:
                heapq.heappush(self._uncollapsed_cells_coords, _HeapItem(self._rng.random(), coords))

    def _choose_next_cell(self) -> tuple[int, int] | None:
        """Pops and returns the coordinates of the next undecided cell (None if there is none)."""
        while self._uncollapsed_cells_coords:
            next_coords = heapq.heappop(self._uncollapsed_cells_coords)._coords
            if isinstance(self._cell_grid[next_coords], SuperTile):
                return next_coords
        return None


@dataclass(order=True)
class _HeapItem:
    """Dataclass storing cell coordinates for the priority queue."""

    # The priority value (e.g. entropy or derived from coordinates).
    _priority: float
    # The coordinates of the cell.
    _coords: tuple[int, int] = field(compare=False)
