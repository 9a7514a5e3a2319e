"""
Source of randomness for the engine.

Anything with the `randint` / `shuffle` / `choice` methods of random.Random will do.
Tests pass in a seeded or scripted instance so the outcome of every roll is known up front.
"""

import random
from typing import MutableSequence, Protocol, Sequence, TypeVar

T = TypeVar("T")

DIE_FACES = 6


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...

    def shuffle(self, x: MutableSequence) -> None: ...

    def choice(self, seq: Sequence[T]) -> T: ...


def default_random() -> RandomSource:
    return random.SystemRandom()


def roll_dice(rng: RandomSource) -> int:
    """Sum of two fair dice."""
    return rng.randint(1, DIE_FACES) + rng.randint(1, DIE_FACES)
