"""Manages the catalog of 3x3 tile adjacency rules used to refine cells."""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
import logging
from numbers import Integral
from typing import Any, overload, TYPE_CHECKING

import numpy as np

from constants import (
    AROUND_PERMUTATION,
    DEFAULT_RULE_SCORE,
    NEIGHBOR_COUNT,
    PATTERN_CENTER_INDEX,
    RULE_SCORE_MAX,
    TILE_ID_MAX,
    VOID_TILE,
    WILDCARD,
)
from supertile.errors import MalformedRuleError
from supertile.sampler import count

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping, Sequence

    from numpy.typing import NDArray

    from supertile.adjacency import TileAdjacency


logger = logging.getLogger(__name__)

# Width of a row in the rule table: center, eight neighbor ids, score.
_TABLE_WIDTH = 1 + NEIGHBOR_COUNT + 1


@dataclass(frozen=True, order=True)
class Rule:
    """A single legal arrangement of a center tile and its eight neighbors.

    Rules are ordered by center first, then by their neighbor ids, then by score, which keeps all rules of one center
    contiguous inside a sorted rule set.

    Attributes:
        center: The tile id of the center cell. Never the void tile.
        around: The eight expected neighbor ids, clockwise from the top-left neighbor (see 'enums.Neighbor'). An entry
            may be 'constants.WILDCARD' to express that any neighbor is acceptable in that direction.
        score: The weight this rule adds to its center tile whenever it matches.
    """

    center: int
    around: tuple[int, ...]
    score: int = DEFAULT_RULE_SCORE

    def __post_init__(self) -> None:
        """Validates the rule's tile ids and score."""
        if isinstance(self.around, str) or not hasattr(self.around, "__iter__"):
            raise MalformedRuleError(f"neighbor ids must be a sequence of tile ids, got {self.around!r}")
        # around is always stored as a tuple.
        object.__setattr__(self, "around", tuple(self.around))

        if not is_integer(self.center) or not VOID_TILE < self.center <= TILE_ID_MAX:
            raise MalformedRuleError(f"center must be a tile id in [1, {TILE_ID_MAX}], got {self.center!r}")
        if len(self.around) != NEIGHBOR_COUNT:
            raise MalformedRuleError(f"a rule needs {NEIGHBOR_COUNT} neighbor ids, got {len(self.around)}")
        for tile in self.around:
            if not is_integer(tile) or not (tile == WILDCARD or VOID_TILE <= tile <= TILE_ID_MAX):
                raise MalformedRuleError(f"neighbor ids must lie in [0, {TILE_ID_MAX}], got {tile!r}")
        if not is_integer(self.score) or not 0 <= self.score <= RULE_SCORE_MAX:
            raise MalformedRuleError(f"score must be an integer in [0, {RULE_SCORE_MAX}], got {self.score!r}")

    @classmethod
    def from_pattern(cls, pattern: Any, score: int = DEFAULT_RULE_SCORE) -> Rule:
        """Creates a rule from a row-major 3x3 pattern of tile ids.

        The pattern's middle cell becomes the center. The border cells are reordered clockwise starting at the top-left
        neighbor, where the first row of the pattern is the row below the center. The pattern [1, 2, ..., 9] therefore
        yields center 5 and neighbors [7, 8, 9, 6, 3, 2, 1, 4].

        Args:
            pattern: Nine tile ids, either flat or as three rows of three.
            score: The weight this rule adds to its center tile whenever it matches.

        Returns:
            The canonical rule for the pattern.

        Raises:
            MalformedRuleError: If the pattern does not hold 3x3 non-negative integer tile ids, or if the score is
                invalid.
        """
        try:
            array = np.asarray(pattern)
        except ValueError as error:
            raise MalformedRuleError(f"pattern is not a 3x3 grid of tile ids: {pattern!r}") from error

        if array.shape not in ((9,), (3, 3)):
            raise MalformedRuleError(f"pattern must hold 3x3 tile ids, got shape {array.shape}")
        if not np.issubdtype(array.dtype, np.integer):
            raise MalformedRuleError(f"pattern must hold integer tile ids, got {array.dtype}")

        flat = [int(tile) for tile in array.reshape(9)]
        if min(flat) < VOID_TILE:
            raise MalformedRuleError(f"pattern tile ids must not be negative: {flat}")

        return cls(
            center=flat[PATTERN_CENTER_INDEX],
            around=tuple(flat[index] for index in AROUND_PERMUTATION),
            score=score,
        )

    def eval(self, neighbors: Sequence[Sequence[int]]) -> bool:
        """Checks if the rule is consistent with the given neighbor candidates.

        Args:
            neighbors: Eight sorted, duplicate-free lists of tile ids that may still occupy each neighbor, clockwise from
                the top-left. An empty list places no constraint on its direction.

        Returns:
            True if every non-empty neighbor list contains the tile id this rule expects in that direction.
        """
        for expected, tiles in zip(self.around, neighbors):
            if not tiles or expected == WILDCARD:
                continue
            index = bisect_left(tiles, expected)
            if index == len(tiles) or tiles[index] != expected:
                return False
        return True

    def score_eval(self, neighbors: Sequence[Sequence[int]]) -> int:
        """Returns the rule's score if it matches the neighbors, otherwise 0."""
        return self.score if self.eval(neighbors) else 0


def score_rules(rules: Sequence[Rule], neighbors: Sequence[Sequence[int]]) -> int:
    """Sums the scores of all rules that match the given neighbor candidates.

    Produces the same result as summing 'Rule.score_eval()' over the rules, but walks the neighbor lists alongside the
    (sorted) rules as a merge-join instead of searching each list from scratch for every rule. One cursor per direction
    always rests on the first neighbor id that is not smaller than the id last looked up in that direction. Moving to a
    larger id only advances the cursor. Moving to a smaller id (which happens whenever an earlier direction's id
    changes) searches back within the part of the list the cursor has already passed.

    Args:
        rules: The rules to score, ideally sorted (as returned by 'RuleSet.rules_for()'). Unsorted input yields the
            same sum, only less efficiently.
        neighbors: Eight sorted, duplicate-free lists of tile ids, clockwise from the top-left. An empty list places no
            constraint on its direction.

    Returns:
        The total score of all matching rules.
    """
    cursors = [0] * NEIGHBOR_COUNT
    total = 0
    for rule in rules:
        for direction, expected in enumerate(rule.around):
            tiles = neighbors[direction]
            if not tiles or expected == WILDCARD:
                continue

            cursor = cursors[direction]
            if cursor > 0 and tiles[cursor - 1] >= expected:
                cursor = bisect_left(tiles, expected, 0, cursor)
            else:
                while cursor < len(tiles) and tiles[cursor] < expected:
                    cursor += 1
            cursors[direction] = cursor

            if cursor == len(tiles) or tiles[cursor] != expected:
                break
        else:
            total += rule.score
    return total


class RuleSet:
    """An immutable, sorted and duplicate-free collection of rules.

    The rules are compacted into a numpy table with one row per rule (center, eight neighbor ids, score). Sorting the
    rows lexicographically keeps the rules of each center in one contiguous block, which allows looking them up by
    binary search on the center column.
    """

    # The sorted, duplicate-free rule table of shape (rule count, 10). Read-only.
    _table: NDArray[np.int64]
    # View of the table's first column (the center of each rule).
    _centers: NDArray[np.int64]
    # The rules in table order.
    _rules: tuple[Rule, ...]

    def __init__(self, entries: Iterable[Any] = ()) -> None:
        """Creates a rule set from 3x3 patterns.

        Args:
            entries: Each entry is either a pattern (nine tile ids, flat or as three rows of three) or a tuple
                (pattern, score). Patterns without a score use 'constants.DEFAULT_RULE_SCORE'. Equal rules are kept
                once.

        Raises:
            MalformedRuleError: If an entry cannot be turned into a rule.
        """
        self._compact(Rule.from_pattern(*_split_entry(entry)) for entry in entries)

    @classmethod
    def from_rules(cls, rules: Iterable[Rule]) -> RuleSet:
        """Creates a rule set from already canonical rules."""
        rule_set = cls()
        rule_set._compact(rules)
        return rule_set

    @classmethod
    def from_adjacency(cls, records: Iterable[TileAdjacency | Mapping[str, Any]]) -> RuleSet:
        """Creates a rule set from per-tile directional adjacency records.

        The records are first expanded into symmetric directional rules (see 'supertile.adjacency.AdjacencyRules'), which
        are then compiled into 3x3 rules that only constrain the four cardinal neighbors.

        Args:
            records: 'TileAdjacency' records, or mappings with the keys 'id', 'above', 'below', 'left', 'right' and
                optionally 'weight'.

        Returns:
            The compiled rule set.

        Raises:
            MalformedRuleError: If a record is invalid or a tile allows too many neighbor combinations.
        """
        from supertile.adjacency import AdjacencyRules

        return cls.from_rules(AdjacencyRules(records).compile())

    def rules_for(self, center: int) -> tuple[Rule, ...]:
        """Returns all rules with the given center tile (an empty tuple if there are none)."""
        start = int(np.searchsorted(self._centers, center, side="left"))
        stop = int(np.searchsorted(self._centers, center, side="right"))
        return self._rules[start:stop]

    def centers(self) -> NDArray[np.int64]:
        """Returns the center tile id of every rule, in (sorted) rule order."""
        return self._centers

    def tiles(self) -> tuple[int, ...]:
        """Returns all distinct center tile ids in ascending order."""
        return tuple(count(self._centers)[0])

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    @overload
    def __getitem__(self, index: int) -> Rule: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Rule, ...]: ...

    def __getitem__(self, index: int | slice) -> Rule | tuple[Rule, ...]:
        return self._rules[index]

    def __repr__(self) -> str:
        return f"RuleSet({len(self._rules)} rules, {len(self.tiles())} tiles)"

    def _compact(self, rules: Iterable[Rule]) -> None:
        """Sorts and deduplicates the rules into the read-only rule table."""
        rows = [(rule.center, *rule.around, rule.score) for rule in rules]
        if rows:
            # np.unique() on rows sorts them lexicographically and removes duplicates in one pass.
            table = np.unique(np.array(rows, dtype=np.int64), axis=0)
        else:
            table = np.empty((0, _TABLE_WIDTH), dtype=np.int64)
        table.flags.writeable = False

        self._table = table
        self._centers = table[:, 0]
        self._rules = tuple(Rule(row[0], tuple(row[1:-1]), row[-1]) for row in table.tolist())

        logger.debug("Compacted %d rules into %d unique rules", len(rows), len(self._rules))


def _split_entry(entry: Any) -> tuple[Any, int]:
    """Separates an optional score from a pattern entry."""
    if isinstance(entry, tuple) and len(entry) == 2 and np.ndim(entry[0]) > 0:
        pattern, score = entry
        return pattern, DEFAULT_RULE_SCORE if score is None else score
    return entry, DEFAULT_RULE_SCORE


def is_integer(value: Any) -> bool:
    """Checks for an integer that is not a bool."""
    return isinstance(value, Integral) and not isinstance(value, bool)
