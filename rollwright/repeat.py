"""Repetition driver for ``(expr) ^ N``, ``^+ N`` and ``^# N``."""

from __future__ import annotations

import logging
from decimal import Decimal

from rollwright.arithmetic import evaluate_single
from rollwright.config import Settings
from rollwright.nodes import RepeatedExpression, RepeatMode
from rollwright.results import RepeatedRollResult
from rollwright.sources import DiceRollSource

logger = logging.getLogger(__name__)


def evaluate_repeated(
    repeated: RepeatedExpression,
    source: DiceRollSource,
    *,
    limits: Settings | None = None,
) -> RepeatedRollResult:
    """Roll the inner expression ``repeated.times`` times, one after the other.

    Args:
        repeated: The repeated expression.
        source: Where die faces come from. Iterations draw from it in order.
        limits: Reroll and explosion caps for the inner dice.

    Returns:
        A RepeatedRollResult. In sum mode ``combined_total`` is the sum of
        every iteration's total; in sort mode the iterations are ordered by
        ascending total, ties keeping their roll order.
    """
    rolls = [
        evaluate_single(repeated.inner, source, text=repeated.text, limits=limits)
        for _ in range(repeated.times)
    ]

    combined_total = None
    if repeated.mode is RepeatMode.sum:
        combined_total = sum((roll.total.as_decimal() for roll in rolls), Decimal(0))

    is_sorted = repeated.mode is RepeatMode.sort
    if is_sorted:
        rolls.sort(key=lambda roll: roll.total.as_decimal())

    logger.debug("Repeated %r %d times (%s)", repeated.text, repeated.times, repeated.mode.value)
    return RepeatedRollResult(
        expression=repeated.text,
        rolls=rolls,
        combined_total=combined_total,
        sorted=is_sorted,
    )
