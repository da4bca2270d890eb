"""
Random Choice - Uniform selection over fragment alternatives
============================================================

Every random decision made while composing a reply goes through
RandomChoice, so a seeded or scripted source makes replies
reproducible in tests.
"""

import random
from typing import Optional, Protocol, Sequence, TypeVar, Union

from core.exceptions import EmptyAlternativeSet

T = TypeVar("T")


class RandomSource(Protocol):
    """Anything with random.Random's randint() and random()."""

    def randint(self, a: int, b: int) -> int:
        ...

    def random(self) -> float:
        ...


class RandomChoice:
    """
    Picks fragments for reply templates.

    Example:
        chooser = RandomChoice(random.Random(7))
        chooser.pick(["!", ".", "..."])
        chooser.maybe_pick(["avidly", "eagerly"])  # may return ""
    """

    def __init__(self, source: Optional[RandomSource] = None):
        self.source = source if source is not None else random.Random()

    @classmethod
    def seeded(cls, seed: Optional[int]) -> "RandomChoice":
        """Build a chooser over random.Random(seed)."""
        return cls(random.Random(seed))

    def pick(self, alternatives: Sequence[T]) -> T:
        """
        Select one alternative uniformly at random.

        Raises:
            EmptyAlternativeSet: If alternatives is empty
        """
        if not alternatives:
            raise EmptyAlternativeSet("Cannot pick from an empty set of alternatives")
        index = self.source.randint(0, len(alternatives) - 1)
        return alternatives[index]

    def coin(self) -> bool:
        """Fair coin flip."""
        return self.source.random() < 0.5

    def maybe_pick(self, alternatives: Sequence[T]) -> Union[T, str]:
        """Half the time pick(alternatives), otherwise an empty string."""
        if self.coin():
            return self.pick(alternatives)
        return ""
