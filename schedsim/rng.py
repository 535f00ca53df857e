"""Seeded random source for randomized disciplines."""

from __future__ import annotations

from random import Random
from typing import Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def make_rng(seed: Optional[int]) -> Random:
    """Return a generator private to one run; never the module-level one."""
    return Random(seed)


def draw_weighted(rng: Random, weighted: Sequence[Tuple[T, int]]) -> T:
    """
    Draw one item by ticket weight.

    A ticket is drawn uniformly from ``[0, total)`` and matched against the
    cumulative weights in the given order.
    """
    if not weighted:
        msg = "cannot draw from an empty pool"
        raise ValueError(msg)

    total = sum(weight for _, weight in weighted)
    ticket = rng.randrange(total)
    cumulative = 0
    for item, weight in weighted:
        cumulative += weight
        if ticket < cumulative:
            return item
    # unreachable while every weight is positive
    return weighted[-1][0]
