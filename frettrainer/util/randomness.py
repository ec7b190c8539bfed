from __future__ import annotations

"""Randomness helpers: seeding and discrete weighted draws."""

import os
import random
from typing import Optional, Sequence

import numpy as np


def seed_if_needed() -> Optional[int]:
    """Seed RNGs if SEED env var is set. Returns the seed used, if any."""
    seed = os.environ.get("SEED")
    if seed is None:
        return None
    try:
        s = int(seed)
    except ValueError:
        return None
    random.seed(s)
    np.random.seed(s)
    return s


def make_rng(seed: Optional[int] = None) -> random.Random:
    return random.Random(seed)


def weighted_index(weights: Sequence[float], rng: Optional[random.Random] = None) -> int:
    """Cumulative-weight draw over a discrete distribution.

    Walks the weights subtracting from a uniform sample in [0, total); the
    last index absorbs floating point leftovers.
    """
    if not weights:
        raise ValueError("weights must be non-empty")
    total = float(sum(weights))
    if total <= 0:
        raise ValueError("weights must sum to a positive value")
    r = (rng or random).random() * total
    for i, w in enumerate(weights):
        r -= w
        if r <= 0:
            return i
    return len(weights) - 1
