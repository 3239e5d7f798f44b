"""Implements the superposition of a single cell and its refinement against neighbor information."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import TYPE_CHECKING

import constants
from supertile.rules import score_rules
from supertile.sampler import choose_rand, count

if TYPE_CHECKING:
    import random
    from collections.abc import Sequence

    from supertile.rules import RuleSet


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedTile:
    """Neighbor view of a cell that already holds a single tile (possibly the void tile)."""

    tile: int


@dataclass(frozen=True)
class Superimposed:
    """Read-only neighbor view of a cell that is still undecided."""

    domain: SuperTile

    @property
    def candidates(self) -> tuple[int, ...]:
        """The tiles the neighbor may still hold, in ascending order."""
        return self.domain.candidates


# What a cell knows about one of its neighbors. None stands for "no neighbor" (e.g. outside of the grid) and places no
# constraint, just like a neighbor resolved to the void tile.
NeighborView = ResolvedTile | Superimposed | None


@dataclass(frozen=True)
class Resolved:
    """Refinement outcome: the cell holds exactly this tile from now on (the void tile on a contradiction)."""

    tile: int


@dataclass(frozen=True)
class Unresolved:
    """Refinement outcome: several candidates remain; 'changed' tells whether any were removed."""

    changed: bool


RefineOutcome = Resolved | Unresolved


class SuperTile:
    """The superposition of tiles a single cell may still hold.

    A super tile starts with every tile that is the center of some rule, weighted by how many rules it is the center of.
    Each refinement keeps only the candidates that at least one of their rules allows given the current neighbor
    information, and re-weights them by the total score of their matching rules. Candidates never come back: the set
    only shrinks until the owning engine replaces the cell by a single tile.

    The candidate and weight sequences are immutable tuples that are replaced (never modified) by a refinement, so
    neighbors can read them safely through a 'Superimposed' view.
    """

    # The tiles the cell may still hold, in ascending order.
    _candidates: tuple[int, ...]
    # The weight of each candidate (parallel to '_candidates'). Only up to date right after a refinement.
    _weights: tuple[int, ...]

    def __init__(self, rules: RuleSet) -> None:
        """Creates a fully undecided cell for the given rules.

        Args:
            rules: The rule set the cell will be refined with. Its rules are sorted by center, so counting the runs of
                equal centers yields each tile's number of rules, which serves as its initial weight.
        """
        candidates, weights = count(rules.centers())
        self._candidates = tuple(candidates)
        self._weights = tuple(weights)

    @property
    def candidates(self) -> tuple[int, ...]:
        """The tiles the cell may still hold, in ascending order."""
        return self._candidates

    @property
    def weights(self) -> tuple[int, ...]:
        """The weight of each candidate. Only meaningful right after a refinement (or before the first one)."""
        return self._weights

    def refine(self, neighbors: Sequence[NeighborView], rules: RuleSet) -> RefineOutcome:
        """Narrows the candidates down to those consistent with the neighbors.

        A candidate survives if at least one of its rules matches the neighbors and the scores of its matching rules add
        up to more than zero. The sum becomes the candidate's new weight. Calling this again with unchanged neighbor
        information leaves the cell unchanged.

        Args:
            neighbors: The eight neighbor views, clockwise from the top-left neighbor (see 'enums.Neighbor').
            rules: The rule set the cell was created for.

        Returns:
            'Resolved' with the last remaining candidate, or with the void tile if none remain. Otherwise 'Unresolved',
                telling whether this call removed any candidates.

        Raises:
            ValueError: If there are not exactly eight neighbor views.
        """
        if len(neighbors) != constants.NEIGHBOR_COUNT:
            raise ValueError(f"expected {constants.NEIGHBOR_COUNT} neighbor views, got {len(neighbors)}")

        neighbor_tiles = [_neighbor_tiles(view) for view in neighbors]
        initial_count = len(self._candidates)

        candidates = []
        weights = []
        for candidate in self._candidates:
            candidate_rules = rules.rules_for(candidate)
            if not any(rule.eval(neighbor_tiles) for rule in candidate_rules):
                continue

            weight = score_rules(candidate_rules, neighbor_tiles)
            # Allowed but weightless candidates (only zero-score rules match) could never be drawn.
            if weight == 0:
                continue

            candidates.append(candidate)
            weights.append(weight)

        self._candidates = tuple(candidates)
        self._weights = tuple(weights)

        match len(candidates):
            case 0:
                return Resolved(constants.VOID_TILE)
            case 1:
                return Resolved(candidates[0])
            case remaining:
                return Unresolved(remaining < initial_count)

    def force_collapse(self, rng: random.Random) -> int:
        """Randomly picks one of the candidates, weighted by the candidate weights.

        Should only be called once refinement can no longer narrow the cell down. The cell keeps only the chosen tile.

        Args:
            rng: The random number generator to draw from.

        Returns:
            The chosen tile.

        Raises:
            EmptyDomainError: If the cell has no candidates (or only weightless ones).
        """
        index = choose_rand(self._weights, rng)
        tile = self._candidates[index]
        logger.debug("Forced collapse to tile %d out of %d candidates", tile, len(self._candidates))

        self._candidates = (tile,)
        self._weights = (self._weights[index],)
        return tile

    def entropy(self) -> float:
        """Calculates the Shannon entropy of the candidate weights."""
        total = sum(self._weights)
        if len(self._weights) <= 1 or total <= 0:
            return 0.0
        weight_log_weights = sum(weight * math.log2(weight) for weight in self._weights if weight > 0)
        return math.log2(total) - weight_log_weights / total

    def __repr__(self) -> str:
        return f"SuperTile({dict(zip(self._candidates, self._weights))})"


def _neighbor_tiles(view: NeighborView) -> tuple[int, ...]:
    """Returns the sorted tiles a neighbor may hold (empty if it places no constraint)."""
    match view:
        case None | ResolvedTile(tile=constants.VOID_TILE):
            return ()
        case ResolvedTile(tile=tile):
            return (tile,)
        case Superimposed():
            return view.candidates
        case _:
            raise TypeError(f"unsupported neighbor view: {view!r}")
