"""
Reproducible shuffling for draws.

Unseeded players are shuffled before they are placed. Passing the same
``rng_seed`` with the same input always gives the same order, so a draw can
be regenerated byte for byte; ``None`` draws from fresh system randomness.
"""

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def make_rng(rng_seed: Optional[int] = None) -> random.Random:
    return random.Random(rng_seed)


def shuffled(items: Sequence[T], rng: random.Random) -> List[T]:
    """Return a shuffled copy of ``items``."""
    result = list(items)
    rng.shuffle(result)
    return result
