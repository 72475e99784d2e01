import random
from typing import List, Sequence, TypeVar

T = TypeVar('T')


def shuffle(items: Sequence[T], rng=None) -> List[T]:
    """Return a uniformly random permutation of ``items`` (Fisher-Yates).

    The input is left untouched. ``rng`` defaults to the ``random`` module.
    """
    rng = rng or random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
