"""Identity and shuffle helpers."""

import random
import uuid
from typing import Iterable, Optional, TypeVar

T = TypeVar("T")

ID_LENGTH = 8


def generate_id(taken: Iterable[str] = ()) -> str:
    """Return a short opaque id not present in taken."""
    taken = set(taken)
    while True:
        candidate = uuid.uuid4().hex[:ID_LENGTH]
        if candidate not in taken:
            return candidate


def shuffle(items: Iterable[T], rng: Optional[random.Random] = None) -> list[T]:
    """Fisher-Yates shuffle into a new list; input is left untouched."""
    rng = rng or random.Random()
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result
