"""Directional tile adjacency rules and their compilation into 3x3 rules."""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
import itertools
import logging
import math
from typing import Any, TYPE_CHECKING

from constants import (
    ADJACENCY_MAX_RULES_PER_TILE,
    DEFAULT_RULE_SCORE,
    NEIGHBOR_COUNT,
    RULE_SCORE_MAX,
    TILE_ID_MAX,
    VOID_TILE,
    WILDCARD,
)
from enums import Direction
from supertile.errors import MalformedRuleError
from supertile.rules import is_integer, Rule

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping


logger = logging.getLogger(__name__)

# Record keys holding neighbor lists, and the direction each of them describes.
_RECORD_DIRECTIONS: dict[str, Direction] = {
    "above": Direction.UP,
    "below": Direction.DOWN,
    "left": Direction.LEFT,
    "right": Direction.RIGHT,
}


@dataclass(frozen=True)
class TileAdjacency:
    """Declares which tiles may be placed next to a tile in each cardinal direction.

    Attributes:
        id: The tile this record describes.
        above: Tiles allowed directly above the tile.
        below: Tiles allowed directly below the tile.
        left: Tiles allowed directly to the left of the tile.
        right: Tiles allowed directly to the right of the tile.
        weight: The score of every rule compiled for the tile.
    """

    id: int
    above: tuple[int, ...] = ()
    below: tuple[int, ...] = ()
    left: tuple[int, ...] = ()
    right: tuple[int, ...] = ()
    weight: int = DEFAULT_RULE_SCORE

    def __post_init__(self) -> None:
        """Validates the record's tile ids and weight."""
        _check_tile(self.id, f"record id {self.id!r}")
        for key in _RECORD_DIRECTIONS:
            for tile in getattr(self, key):
                _check_tile(tile, f"'{key}' entry {tile!r} of tile {self.id}")
        if not is_integer(self.weight) or not 0 <= self.weight <= RULE_SCORE_MAX:
            raise MalformedRuleError(
                f"weight of tile {self.id} must be an integer in [0, {RULE_SCORE_MAX}], got {self.weight!r}"
            )

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any]) -> TileAdjacency:
        """Creates a record from a mapping with the keys 'id', 'above', 'below', 'left', 'right' and 'weight'.

        Only 'id' is required. Missing neighbor lists are empty, a missing weight is 'constants.DEFAULT_RULE_SCORE'.

        Raises:
            MalformedRuleError: If keys are missing or unknown, or if values are invalid.
        """
        unknown = set(record) - {"id", "weight", *_RECORD_DIRECTIONS}
        if unknown:
            raise MalformedRuleError(f"unknown adjacency record keys: {sorted(unknown)}")
        if "id" not in record:
            raise MalformedRuleError(f"adjacency record without 'id': {dict(record)!r}")

        neighbors = {}
        for key in _RECORD_DIRECTIONS:
            value = record.get(key, ())
            if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
                raise MalformedRuleError(f"'{key}' of tile {record['id']!r} must be a list of tile ids")
            neighbors[key] = tuple(value)

        return cls(id=record["id"], weight=record.get("weight", DEFAULT_RULE_SCORE), **neighbors)

    def neighbors(self) -> dict[Direction, tuple[int, ...]]:
        """Returns the allowed neighbors of the tile by direction."""
        return {direction: getattr(self, key) for key, direction in _RECORD_DIRECTIONS.items()}


@dataclass(frozen=True)
class PairRule:
    """States that 'second' may lie one step in 'direction' of 'origin'."""

    direction: Direction
    origin: int
    second: int

    def sort_key(self) -> tuple[int, int, int]:
        """Returns the key that orders rules by direction, then origin, then second."""
        return self.direction.value, self.origin, self.second

    def mirror(self) -> PairRule:
        """Returns the same fact seen from the other tile."""
        return PairRule(self.direction.reverse(), self.second, self.origin)


class AdjacencyRules:
    """A sorted, duplicate-free and symmetric set of directional adjacency rules.

    Every fact 'b may lie above a' is stored together with its mirror 'a may lie below b', no matter which of the two
    tiles' records declared it. All rules of one direction, and within it all rules of one origin, form contiguous
    ranges that are found by binary search.
    """

    # The rules, sorted by (direction, origin, second).
    _rules: tuple[PairRule, ...]
    # The sort key of each rule (parallel to '_rules'), used for binary search.
    _keys: list[tuple[int, int, int]]
    # Every tile that has a record or appears in a rule, in ascending order.
    _tiles: tuple[int, ...]
    # The declared weight of each tile that has a record.
    _weights: dict[int, int]

    def __init__(self, records: Iterable[TileAdjacency | Mapping[str, Any]]) -> None:
        """Expands adjacency records into symmetric directional rules.

        Several records for the same tile are merged, but must agree on the weight.

        Args:
            records: 'TileAdjacency' records or mappings accepted by 'TileAdjacency.from_mapping()'.

        Raises:
            MalformedRuleError: If a record is invalid, or if two records of one tile declare different weights.
        """
        facts: set[PairRule] = set()
        self._weights = {}

        for raw_record in records:
            record = raw_record if isinstance(raw_record, TileAdjacency) else TileAdjacency.from_mapping(raw_record)

            if self._weights.setdefault(record.id, record.weight) != record.weight:
                raise MalformedRuleError(f"conflicting weights for tile {record.id}")

            for direction, seconds in record.neighbors().items():
                for second in seconds:
                    fact = PairRule(direction, record.id, second)
                    facts.add(fact)
                    facts.add(fact.mirror())

        self._rules = tuple(sorted(facts, key=PairRule.sort_key))
        self._keys = [rule.sort_key() for rule in self._rules]
        self._tiles = tuple(sorted({rule.origin for rule in self._rules} | set(self._weights)))

        logger.debug("Expanded %d adjacency records into %d directional rules", len(self._weights), len(self._rules))

    def direction_rules(self, direction: Direction) -> tuple[PairRule, ...]:
        """Returns all rules for one direction."""
        start = bisect_left(self._keys, (direction.value,))
        stop = bisect_left(self._keys, (direction.value + 1,))
        return self._rules[start:stop]

    def relevant_rules(self, origin: int, direction: Direction) -> tuple[PairRule, ...]:
        """Returns all rules for one origin tile and direction."""
        start = bisect_left(self._keys, (direction.value, origin))
        stop = bisect_left(self._keys, (direction.value, origin + 1))
        return self._rules[start:stop]

    def allowed(self, origin: int, direction: Direction) -> tuple[int, ...]:
        """Returns the tiles that may lie one step in 'direction' of 'origin', in ascending order."""
        return tuple(rule.second for rule in self.relevant_rules(origin, direction))

    def tiles(self) -> tuple[int, ...]:
        """Returns every tile that has a record or appears in a rule."""
        return self._tiles

    def weight(self, tile: int) -> int:
        """Returns the declared weight of a tile ('constants.DEFAULT_RULE_SCORE' for tiles without a record)."""
        return self._weights.get(tile, DEFAULT_RULE_SCORE)

    def compile(self) -> Iterator[Rule]:
        """Generates the 3x3 rules equivalent to the directional rules.

        Each combination of allowed neighbors above, right of, below and left of a tile becomes one rule. Diagonal
        neighbors are wildcards. A direction without any allowed tile expects the void tile, so the tile can only be
        placed where that neighbor is missing. Every rule scores the tile's weight.

        Raises:
            MalformedRuleError: If a tile allows more than 'constants.ADJACENCY_MAX_RULES_PER_TILE' combinations.
        """
        cardinal = [Direction.UP, Direction.RIGHT, Direction.DOWN, Direction.LEFT]
        for tile in self._tiles:
            options = [self.allowed(tile, direction) or (VOID_TILE,) for direction in cardinal]
            combinations = math.prod(len(option) for option in options)
            if combinations > ADJACENCY_MAX_RULES_PER_TILE:
                raise MalformedRuleError(
                    f"tile {tile} allows {combinations} neighbor combinations (at most "
                    f"{ADJACENCY_MAX_RULES_PER_TILE} are supported)"
                )
            logger.debug("Compiling %d rules for tile %d", combinations, tile)

            for combination in itertools.product(*options):
                around = [WILDCARD] * NEIGHBOR_COUNT
                for direction, second in zip(cardinal, combination):
                    around[direction.to_neighbor().value] = second
                yield Rule(tile, tuple(around), self.weight(tile))

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[PairRule]:
        return iter(self._rules)


def _check_tile(tile: Any, what: str) -> None:
    """Raises if the value is not a usable (non-void) tile id."""
    if not is_integer(tile) or not VOID_TILE < tile <= TILE_ID_MAX:
        raise MalformedRuleError(f"{what} must be a tile id in [1, {TILE_ID_MAX}]")
