"""Dice rolling engine for a single dice term.

Stages run in a fixed order, each one working on the dice still live after
the previous stage:

1. roll ``count`` dice
2. rerolls (``r``, ``ir``)
3. explosions (``e``, ``ie`` / ``!``)
4. drops and keeps (``D``, ``d``, ``K``, ``k``), in the order written
5. scoring: successes minus failures, or the plain sum

Dice are marked rather than removed, so the history keeps every die in the
order it was rolled. When a modifier kind is given twice the last one wins;
different kinds within a stage apply in the order they were written.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from rollwright.config import Settings, settings
from rollwright.nodes import DiceTerm, Modifier, ModifierKind
from rollwright.results import (
    Critic,
    DieOrigin,
    DieRoll,
    RollEntry,
    RollTotal,
    SuccessTotal,
    ValueTotal,
)
from rollwright.sources import DiceRollSource

logger = logging.getLogger(__name__)

_REROLLS = (ModifierKind.reroll, ModifierKind.indefinite_reroll)
_EXPLOSIONS = (ModifierKind.explode, ModifierKind.indefinite_explode)
_SELECTIONS = (
    ModifierKind.drop_high,
    ModifierKind.drop_low,
    ModifierKind.keep_high,
    ModifierKind.keep_low,
)


def _effective(modifiers: Iterable[Modifier], kinds: tuple[ModifierKind, ...]) -> list[Modifier]:
    """Return the modifiers of one stage: last of each kind, in written order."""
    last: dict[ModifierKind, tuple[int, Modifier]] = {}
    for index, modifier in enumerate(modifiers):
        if modifier.kind in kinds:
            last[modifier.kind] = (index, modifier)
    return [modifier for _, modifier in sorted(last.values(), key=lambda pair: pair[0])]


class _TermRoll:
    """Mutable state of one term while its stages run."""

    def __init__(self, term: DiceTerm, source: DiceRollSource, limits: Settings) -> None:
        self.term = term
        self.source = source
        self.limits = limits
        self.dice: list[DieRoll] = []
        self.explosions = 0

    def roll_die(self, origin: DieOrigin) -> DieRoll:
        if self.term.sides is None:
            # Fudge: uniform over -1, 0, +1.
            die = DieRoll(value=self.source.roll_single_die(3) - 2, origin=origin)
        else:
            value = self.source.roll_single_die(self.term.sides)
            critic = Critic.none
            if value == self.term.sides:
                critic = Critic.max
            elif value == 1:
                critic = Critic.min
            die = DieRoll(value=value, origin=origin, critic=critic)
        self.dice.append(die)
        return die

    def live(self) -> list[DieRoll]:
        return [die for die in self.dice if die.live]

    # -----------------------------------------------------------------------
    # Rerolls
    # -----------------------------------------------------------------------

    def reroll(self, modifier: Modifier) -> None:
        threshold = modifier.value
        for die in self.live():
            if die.value > threshold:
                continue
            if modifier.kind is ModifierKind.reroll:
                die.rerolled = True
                self.roll_die(DieOrigin.reroll)
                continue
            current = die
            for _ in range(self.limits.max_rerolls):
                current.rerolled = True
                current = self.roll_die(DieOrigin.reroll)
                if current.value > threshold:
                    break
            else:
                logger.debug(
                    "Reroll cap of %d reached for %r", self.limits.max_rerolls, self.term.text
                )

    # -----------------------------------------------------------------------
    # Explosions
    # -----------------------------------------------------------------------

    def explode(self, modifier: Modifier) -> None:
        threshold = modifier.value if modifier.value is not None else self.term.sides
        triggering = [die for die in self.live() if not die.exploded and die.value >= threshold]
        if modifier.kind is ModifierKind.explode:
            for die in triggering:
                die.exploded = True
                self.roll_die(DieOrigin.explosion)
            return

        for die in triggering:
            current = die
            while current.value >= threshold:
                if self.explosions >= self.limits.max_explosions:
                    logger.debug(
                        "Explosion cap of %d reached for %r",
                        self.limits.max_explosions,
                        self.term.text,
                    )
                    return
                current.exploded = True
                self.explosions += 1
                current = self.roll_die(DieOrigin.explosion)

    # -----------------------------------------------------------------------
    # Drops and keeps
    # -----------------------------------------------------------------------

    def drop(self, n: int, *, highest: bool) -> None:
        live = [(index, die) for index, die in enumerate(self.dice) if die.live]
        n = max(0, min(n, len(live)))
        sign = -1 if highest else 1
        # Among equal values the earliest rolled die goes first.
        ranked = sorted(live, key=lambda pair: (sign * pair[1].value, pair[0]))
        for _, die in ranked[:n]:
            die.dropped = True

    def keep(self, n: int, *, highest: bool) -> None:
        live_count = len(self.live())
        n = max(0, min(n, live_count))
        self.drop(live_count - n, highest=not highest)

    # -----------------------------------------------------------------------
    # Scoring
    # -----------------------------------------------------------------------

    def total(self) -> RollTotal:
        values = [die.value for die in self.live()]
        scoring = self.term.scoring
        if scoring is None:
            return ValueTotal(value=sum(values))
        return SuccessTotal(successes=sum(scoring.score(value) for value in values))


def roll_term(
    term: DiceTerm,
    source: DiceRollSource,
    *,
    limits: Settings | None = None,
) -> tuple[RollEntry, RollTotal]:
    """Roll one dice term.

    Args:
        term: The term to roll.
        source: Where die faces come from.
        limits: Reroll and explosion caps. Defaults to the global settings.

    Returns:
        The history entry listing every die rolled, and the term's total:
        a SuccessTotal when the term has target/failure clauses, a
        ValueTotal otherwise.
    """
    state = _TermRoll(term, source, limits or settings)
    for _ in range(term.count):
        state.roll_die(DieOrigin.initial)

    for modifier in _effective(term.modifiers, _REROLLS):
        state.reroll(modifier)
    for modifier in _effective(term.modifiers, _EXPLOSIONS):
        state.explode(modifier)
    # Keep after drop selects from what the drop left, and the other way round.
    for modifier in _effective(term.modifiers, _SELECTIONS):
        if modifier.kind in (ModifierKind.drop_high, ModifierKind.drop_low):
            state.drop(modifier.value, highest=modifier.kind is ModifierKind.drop_high)
        else:
            state.keep(modifier.value, highest=modifier.kind is ModifierKind.keep_high)

    total = state.total()
    logger.debug("Rolled %r: %s", term.text, total)
    entry = RollEntry(expression=term.text, sides=term.sides, dice=state.dice)
    return entry, total
