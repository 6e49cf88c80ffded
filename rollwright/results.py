"""Pydantic models for roll histories and results.

Every model carries a ``kind`` discriminator so a result, once dumped to
JSON, can be validated back into the right type with RollResultAdapter.
"""

from __future__ import annotations

import enum
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from rollwright.nodes import Operator

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Critic(str, enum.Enum):
    """Whether a die landed on one of its extreme faces."""

    none = "none"
    min = "min"
    max = "max"


class DieOrigin(str, enum.Enum):
    """Why a die was rolled."""

    initial = "initial"
    reroll = "reroll"
    explosion = "explosion"


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class DieRoll(BaseModel):
    """One die, with its fate. Dice are never removed from a history."""

    value: int
    origin: DieOrigin = DieOrigin.initial
    dropped: bool = False
    rerolled: bool = False
    exploded: bool = False
    critic: Critic = Critic.none

    @property
    def live(self) -> bool:
        """True when the die still counts toward the total."""
        return not (self.dropped or self.rerolled)


class RollEntry(BaseModel):
    kind: Literal["roll"] = "roll"
    expression: str
    # None for fudge dice.
    sides: int | None
    dice: list[DieRoll]

    @property
    def live_dice(self) -> list[DieRoll]:
        return [die for die in self.dice if die.live]


class ValueEntry(BaseModel):
    kind: Literal["value"] = "value"
    value: Decimal


class OperatorEntry(BaseModel):
    kind: Literal["operator"] = "operator"
    operator: Operator


class ParenEntry(BaseModel):
    kind: Literal["paren"] = "paren"
    symbol: Literal["(", ")"]


HistoryEntry = Annotated[
    RollEntry | ValueEntry | OperatorEntry | ParenEntry,
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------


class ValueTotal(BaseModel):
    kind: Literal["value"] = "value"
    value: Decimal

    def as_decimal(self) -> Decimal:
        return self.value


class SuccessTotal(BaseModel):
    """Successes minus failures. Can be negative."""

    kind: Literal["success"] = "success"
    successes: int

    def as_decimal(self) -> Decimal:
        return Decimal(self.successes)


RollTotal = Annotated[ValueTotal | SuccessTotal, Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class SingleRollResult(BaseModel):
    kind: Literal["single"] = "single"
    expression: str
    history: list[HistoryEntry]
    total: RollTotal
    reason: str | None = None

    def __str__(self) -> str:
        from rollwright.rendering import render

        return render(self)


class RepeatedRollResult(BaseModel):
    """Outcome of ``(expr) ^ N``: one SingleRollResult per iteration."""

    kind: Literal["repeated"] = "repeated"
    expression: str
    rolls: list[SingleRollResult]
    # Only set for ^+.
    combined_total: Decimal | None = None
    sorted: bool = False
    reason: str | None = None

    def __str__(self) -> str:
        from rollwright.rendering import render

        return render(self)


RollResult = Annotated[SingleRollResult | RepeatedRollResult, Field(discriminator="kind")]

RollResultAdapter: TypeAdapter[RollResult] = TypeAdapter(RollResult)
