"""Typed expression tree produced by the builder.

Nodes are frozen dataclasses so two parses of the same text compare equal.
The ``text`` fields keep the slice of the source each node came from (for a
Command, the expression without its reason) and are excluded from comparison.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Operator(str, enum.Enum):
    """Binary arithmetic operator. All share one precedence level."""

    add = "+"
    sub = "-"
    mul = "*"
    div = "/"


class ModifierKind(str, enum.Enum):
    """Dice modifier, valued by its notation."""

    explode = "e"
    indefinite_explode = "ie"
    reroll = "r"
    indefinite_reroll = "ir"
    keep_high = "K"
    keep_low = "k"
    drop_high = "D"
    drop_low = "d"


class RepeatMode(str, enum.Enum):
    """How the iterations of a repeated expression are combined."""

    plain = "plain"
    sum = "sum"
    sort = "sort"


# ---------------------------------------------------------------------------
# Dice terms
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Modifier:
    kind: ModifierKind
    # None only for explosions without an explicit threshold (max face).
    value: int | None = None


@dataclass(frozen=True)
class Scoring:
    """Target/failure clauses of a dice term.

    A die scores 2 when it meets the double target, else 1 when it meets the
    target (threshold or list). Failure is counted independently, so one die
    can both succeed and fail.
    """

    target: int | None = None
    target_values: frozenset[int] | None = None
    double_target: int | None = None
    failure: int | None = None

    def successes(self, value: int) -> int:
        if self.double_target is not None and value >= self.double_target:
            return 2
        if self.target_values is not None:
            return 1 if value in self.target_values else 0
        if self.target is not None and value >= self.target:
            return 1
        return 0

    def is_failure(self, value: int) -> bool:
        return self.failure is not None and value <= self.failure

    def score(self, value: int) -> int:
        return self.successes(value) - (1 if self.is_failure(value) else 0)


@dataclass(frozen=True)
class DiceTerm:
    count: int
    # None means fudge dice.
    sides: int | None
    modifiers: tuple[Modifier, ...] = ()
    scoring: Scoring | None = None
    text: str = field(default="", compare=False)

    @property
    def is_fudge(self) -> bool:
        return self.sides is None


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IntegerLiteral:
    value: int


@dataclass(frozen=True)
class FloatLiteral:
    value: Decimal


@dataclass(frozen=True)
class Group:
    inner: Expression


@dataclass(frozen=True)
class BinaryOp:
    op: Operator
    left: Expression
    right: Expression


Expression = DiceTerm | IntegerLiteral | FloatLiteral | Group | BinaryOp


@dataclass(frozen=True)
class RepeatedExpression:
    inner: Expression
    times: int
    mode: RepeatMode = RepeatMode.plain
    text: str = field(default="", compare=False)


@dataclass(frozen=True)
class Command:
    """A whole parsed input: the expression to roll and an optional reason."""

    body: Expression | RepeatedExpression
    reason: str | None = None
    text: str = field(default="", compare=False)


def iter_dice(node: Expression | RepeatedExpression | Command) -> Iterator[DiceTerm]:
    """Yield every dice term of a tree, left to right."""
    if isinstance(node, Command):
        yield from iter_dice(node.body)
    elif isinstance(node, RepeatedExpression):
        yield from iter_dice(node.inner)
    elif isinstance(node, Group):
        yield from iter_dice(node.inner)
    elif isinstance(node, BinaryOp):
        yield from iter_dice(node.left)
        yield from iter_dice(node.right)
    elif isinstance(node, DiceTerm):
        yield node
