"""Random sources that dice are rolled against.

The evaluators only ever ask a source for a single die at a time, so any
object with a ``roll_single_die(sides)`` method can drive a roll.
"""

from __future__ import annotations

import random
from collections.abc import Iterable
from typing import Protocol, runtime_checkable


@runtime_checkable
class DiceRollSource(Protocol):
    def roll_single_die(self, sides: int) -> int:
        """Return a value in ``1..sides`` inclusive."""
        ...


class RandomDiceRollSource:
    """Adapts a ``random.Random`` instance to DiceRollSource.

    Without an explicit generator a fresh one is created, seeded from the OS.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()

    def roll_single_die(self, sides: int) -> int:
        return self._rng.randint(1, sides)


class IteratorDiceRollSource:
    """Replays a fixed sequence of die faces, in order.

    Used to reproduce a roll exactly, e.g. in tests or when replaying a
    recorded session.
    """

    def __init__(self, values: Iterable[int]) -> None:
        self._values = iter(values)
        self.consumed = 0

    def roll_single_die(self, sides: int) -> int:
        try:
            value = next(self._values)
        except StopIteration:
            raise RuntimeError(
                f"Scripted source ran out of values after {self.consumed} dice"
            ) from None
        if not 1 <= value <= sides:
            raise ValueError(f"Scripted value {value} does not fit a {sides}-sided die")
        self.consumed += 1
        return value


def as_source(source: DiceRollSource | random.Random | None) -> DiceRollSource:
    """Normalize the ``source`` argument accepted by the public roll functions."""
    if source is None or isinstance(source, random.Random):
        return RandomDiceRollSource(source)
    return source
