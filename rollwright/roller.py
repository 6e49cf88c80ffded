"""Public entry point: parse once, roll as many times as needed.

Usage::

    from rollwright.roller import Roller

    result = Roller("10d6 e6 K8 +4 : attack").roll()
    print(result)
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterator
from dataclasses import replace

from rollwright.arithmetic import evaluate_single
from rollwright.builder import build_command
from rollwright.config import Settings, settings
from rollwright.nodes import Command, RepeatedExpression, iter_dice
from rollwright.repeat import evaluate_repeated
from rollwright.results import RollResult
from rollwright.sources import DiceRollSource, as_source

logger = logging.getLogger(__name__)

REASON_CHAR = ":"


class Roller:
    """A parsed and validated dice command.

    Construction fails with DiceParseError or DiceValidationError, so an
    invalid command never rolls a die.
    """

    def __init__(self, text: str, *, limits: Settings | None = None) -> None:
        self._limits = limits or settings
        self._text = text
        self._command = build_command(text, limits=self._limits)

    def __repr__(self) -> str:
        return f"Roller({self._text!r})"

    def __str__(self) -> str:
        return self._text

    @property
    def text(self) -> str:
        """The command as given, reason included."""
        return self._text

    @property
    def command(self) -> Command:
        return self._command

    @property
    def reason(self) -> str | None:
        return self._command.reason

    def dice(self) -> Iterator[str]:
        """Yield the notation of every dice term, left to right.

        >>> list(Roller("1d6 + 1d4 + 1d10 + 1d20").dice())
        ['1d6', '1d4', '1d10', '1d20']
        """
        for term in iter_dice(self._command):
            yield term.text

    def trim_reason(self) -> None:
        """Drop the reason, if any."""
        idx = self._text.find(REASON_CHAR)
        if idx == -1:
            return
        self._text = self._text[:idx].rstrip()
        self._command = replace(self._command, reason=None)

    def roll(self, source: DiceRollSource | random.Random | None = None) -> RollResult:
        """Roll the command.

        Args:
            source: A DiceRollSource, a ``random.Random`` to draw from, or
                None for a fresh generator seeded by the OS.

        Returns:
            A SingleRollResult, or a RepeatedRollResult for ``(expr) ^ N``.

        Raises:
            DiceArithmeticError: On division by zero or overflow.
        """
        dice_source = as_source(source)
        body = self._command.body
        if isinstance(body, RepeatedExpression):
            result = evaluate_repeated(body, dice_source, limits=self._limits)
        else:
            result = evaluate_single(
                body, dice_source, text=self._command.text, limits=self._limits
            )
        result.reason = self._command.reason
        logger.debug("Rolled %r", self._text)
        return result


def roll(text: str, source: DiceRollSource | random.Random | None = None) -> RollResult:
    """Parse ``text`` and roll it once.

    Raises:
        DiceParseError: If the text does not match the grammar.
        DiceValidationError: If the text is out of bounds.
        DiceArithmeticError: On division by zero or overflow.
    """
    return Roller(text).roll(source)
