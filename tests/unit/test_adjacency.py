"""Unit tests for directional adjacency rules and their compilation."""

import pytest

from constants import RULE_SCORE_MAX, WILDCARD
from enums import Direction
from supertile.adjacency import AdjacencyRules, PairRule, TileAdjacency
from supertile.errors import MalformedRuleError
from supertile.rules import Rule, RuleSet


@pytest.fixture
def corner_records():
    """Records declaring only part of each adjacency (the rest follows from mirroring)."""
    return [
        {"id": 1, "above": [2], "right": [1]},
        TileAdjacency(id=2, left=(2,), weight=3),
    ]


def test_records_are_mirrored(corner_records):
    """Every declared fact also holds seen from the other tile."""
    rules = AdjacencyRules(corner_records)

    assert rules.allowed(1, Direction.UP) == (2,)
    assert rules.allowed(2, Direction.DOWN) == (1,)
    assert rules.allowed(1, Direction.RIGHT) == (1,)
    assert rules.allowed(1, Direction.LEFT) == (1,)
    assert rules.allowed(2, Direction.LEFT) == (2,)
    assert rules.allowed(2, Direction.RIGHT) == (2,)
    assert rules.allowed(1, Direction.DOWN) == ()

    facts = set(rules)
    assert all(rule.mirror() in facts for rule in facts)
    assert len(rules) == 6


def test_rules_are_sorted_and_ranged(stripe_records):
    """Rules are ordered by direction, origin and second; range queries return contiguous blocks."""
    rules = AdjacencyRules(stripe_records)
    ordered = list(rules)

    assert ordered == sorted(ordered, key=PairRule.sort_key)
    for direction in Direction:
        block = rules.direction_rules(direction)
        assert len(block) == 2
        assert all(rule.direction == direction for rule in block)
        for origin in (1, 2):
            assert rules.relevant_rules(origin, direction) == tuple(
                rule for rule in block if rule.origin == origin
            )


def test_duplicate_facts_are_kept_once():
    """Declaring a fact and its mirror explicitly yields the same rules."""
    rules = AdjacencyRules([{"id": 1, "above": [2]}, {"id": 2, "below": [1]}])

    assert list(rules) == [PairRule(Direction.UP, 1, 2), PairRule(Direction.DOWN, 2, 1)]


def test_tiles_and_weights(corner_records):
    """Tiles without a record get the default weight."""
    rules = AdjacencyRules(corner_records + [{"id": 7}])

    assert rules.tiles() == (1, 2, 7)
    assert rules.weight(1) == 1
    assert rules.weight(2) == 3
    assert rules.weight(7) == 1


def test_compile_constrains_cardinal_neighbors_only(corner_records):
    """Compiled rules expect the allowed tiles on the four sides, the void tile where none is allowed."""
    rule_set = RuleSet.from_adjacency(corner_records)

    assert rule_set.rules_for(1) == (Rule(1, (WILDCARD, 2, WILDCARD, 1, WILDCARD, 0, WILDCARD, 1), 1),)
    assert rule_set.rules_for(2) == (Rule(2, (WILDCARD, 0, WILDCARD, 2, WILDCARD, 1, WILDCARD, 2), 3),)


def test_compile_expands_every_combination():
    """Each combination of allowed side tiles becomes one rule."""
    rule_set = RuleSet.from_adjacency(
        [
            {"id": 1, "above": [1, 2], "below": [1, 2], "left": [1, 2], "right": [1, 2]},
            {"id": 2, "above": [1, 2], "below": [1, 2], "left": [1, 2], "right": [1, 2]},
        ]
    )

    assert len(rule_set.rules_for(1)) == 16
    assert len(rule_set.rules_for(2)) == 16


def test_compile_limits_combinations():
    """Tiles allowing too many neighbor combinations are rejected."""
    tiles = list(range(1, 21))
    record = {"id": 1, "above": tiles, "below": tiles, "left": tiles, "right": tiles}

    with pytest.raises(MalformedRuleError):
        RuleSet.from_adjacency([record])


@pytest.mark.parametrize(
    "record",
    [
        {"above": [1]},
        {"id": 0},
        {"id": 1, "above": [0]},
        {"id": 1, "above": "2"},
        {"id": 1, "above": 2},
        {"id": 1, "diagonal": [2]},
        {"id": 1, "weight": -1},
        {"id": 1, "weight": RULE_SCORE_MAX + 1},
        {"id": True},
    ],
)
def test_malformed_records(record):
    """Invalid records are rejected at construction time."""
    with pytest.raises(MalformedRuleError):
        AdjacencyRules([record])


def test_conflicting_weights():
    """Two records of one tile must agree on its weight."""
    with pytest.raises(MalformedRuleError):
        AdjacencyRules([{"id": 1, "weight": 1}, {"id": 1, "weight": 2}])
