"""Run-length counting and weighted random selection over tile frequencies."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from supertile.errors import EmptyDomainError

if TYPE_CHECKING:
    import random
    from collections.abc import Sequence


logger = logging.getLogger(__name__)


def count(items: Sequence[int]) -> tuple[list[int], list[int]]:
    """Run-length encodes a sequence of tile ids.

    Every maximal run of equal consecutive values becomes one (value, run length) pair, in the order the runs appear.
    Identical values that are not contiguous produce separate runs, so callers that want per-value totals must pass a
    sorted sequence.

    Args:
        items: The tile ids to encode.

    Returns:
        A tuple (values, run_lengths) of two lists of equal length.
    """
    array = np.asarray(items, dtype=np.int64)
    if array.size == 0:
        return [], []

    # A run starts at index 0 and wherever a value differs from its predecessor.
    run_starts = np.flatnonzero(np.concatenate(([True], array[1:] != array[:-1])))
    run_lengths = np.diff(np.append(run_starts, array.size))
    return array[run_starts].tolist(), run_lengths.tolist()


def choose(weights: Sequence[int], draw: int) -> int:
    """Maps a draw from [1, sum(weights)] to an index using the inverse cumulative distribution.

    Args:
        weights: Non-negative weights, one per index.
        draw: An integer in the closed interval [1, sum(weights)].

    Returns:
        The first index at which the draw, reduced by all weights up to and including that index, drops to zero or
            below. Index i is returned for exactly weights[i] of the possible draws.

    Raises:
        ValueError: If the draw lies outside [1, sum(weights)].
    """
    remaining = draw
    if remaining >= 1:
        for index, weight in enumerate(weights):
            remaining -= weight
            if remaining <= 0:
                return index
    raise ValueError(f"draw {draw} is outside of [1, {sum(weights)}]")


def choose_rand(weights: Sequence[int], rng: random.Random) -> int:
    """Randomly picks an index with probability proportional to its weight.

    Args:
        weights: Non-negative weights, one per index.
        rng: The random number generator to draw from.

    Returns:
        The chosen index.

    Raises:
        EmptyDomainError: If there are no weights or they sum to zero.
    """
    total = sum(weights)
    if not weights or total <= 0:
        raise EmptyDomainError(f"cannot draw from {len(weights)} weights with a total of {total}")

    draw = rng.randint(1, total)
    index = choose(weights, draw)
    logger.debug("Drew %d of %d, chose index %d of %d", draw, total, index, len(weights))
    return index
