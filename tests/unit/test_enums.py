"""Unit tests for neighbor and direction conventions."""

from constants import AROUND_PERMUTATION, PATTERN_CENTER_INDEX
from enums import Direction, Neighbor


def test_neighbors_are_clockwise_from_top_left():
    """Neighbor vectors walk around the cell clockwise, starting at the top-left."""
    assert [neighbor.to_vector() for neighbor in Neighbor] == [
        (-1, 1),
        (0, 1),
        (1, 1),
        (1, 0),
        (1, -1),
        (0, -1),
        (-1, -1),
        (-1, 0),
    ]


def test_pattern_indices_follow_rule_permutation():
    """Each neighbor reads the pattern cell the rule permutation assigns to it."""
    assert tuple(neighbor.pattern_index() for neighbor in Neighbor) == AROUND_PERMUTATION
    assert PATTERN_CENTER_INDEX not in AROUND_PERMUTATION


def test_neighbor_reverse():
    """Reversing points to the opposite side; reversing twice is the identity."""
    for neighbor in Neighbor:
        dx, dy = neighbor.to_vector()
        assert neighbor.reverse().to_vector() == (-dx, -dy)
        assert neighbor.reverse().reverse() == neighbor


def test_direction_matches_neighbor():
    """Cardinal directions map to the neighbor with the same vector."""
    for direction in Direction:
        assert direction.to_neighbor().to_vector() == direction.to_vector()
        assert direction.reverse().to_neighbor() == direction.to_neighbor().reverse()
