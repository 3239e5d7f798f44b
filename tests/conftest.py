"""Shared pytest fixtures for rule, cell and world tests."""

import random

import pytest

from supertile.rules import Rule, RuleSet


@pytest.fixture
def rng():
    """Seeded random number generator."""
    return random.Random(1234)


@pytest.fixture
def four_square_patterns():
    """Four 3x3 patterns whose centers each require a different arrangement of the other tiles."""
    return [
        [
            4, 2, 4,
            2, 1, 2,
            4, 2, 4,
        ],
        [
            3, 4, 3,
            1, 2, 1,
            3, 4, 3,
        ],
        [
            2, 1, 2,
            4, 3, 4,
            2, 1, 2,
        ],
        [
            1, 2, 1,
            3, 4, 3,
            1, 2, 1,
        ],
    ]  # fmt: skip


@pytest.fixture
def four_square_rules(four_square_patterns):
    """Rule set built from the four square patterns."""
    return RuleSet(four_square_patterns)


@pytest.fixture
def uniform_rules():
    """Small hand-made rule set where every rule expects the same tile on all eight sides.

    Tile 1 accepts all-2 (score 1) or all-3 (score 2) neighbors, tile 2 accepts all-1 neighbors, tile 3 accepts all-1
    (score 0) or all-2 neighbors.
    """
    return RuleSet.from_rules(
        [
            Rule(1, (2,) * 8, 1),
            Rule(1, (3,) * 8, 2),
            Rule(2, (1,) * 8, 1),
            Rule(3, (1,) * 8, 0),
            Rule(3, (2,) * 8, 1),
        ]
    )


@pytest.fixture
def stripe_records():
    """Adjacency records for two tiles forming horizontal stripes."""
    return [
        {"id": 1, "above": [2], "below": [2], "left": [1], "right": [1]},
        {"id": 2, "above": [1], "below": [1], "left": [2], "right": [2]},
    ]
