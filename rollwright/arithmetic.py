"""Reduces an expression tree to a Decimal total and a merged history.

Operators share one precedence level and fold strictly left to right, so
``2 + 3 * 4`` is 20. Intermediate results keep at most two fractional
digits, matching the literal grammar.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import (
    ROUND_HALF_UP,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)

from rollwright.config import Settings, settings
from rollwright.dice import roll_term
from rollwright.errors import DiceArithmeticError
from rollwright.nodes import (
    BinaryOp,
    DiceTerm,
    Expression,
    FloatLiteral,
    Group,
    IntegerLiteral,
    Operator,
)
from rollwright.results import (
    HistoryEntry,
    OperatorEntry,
    ParenEntry,
    SingleRollResult,
    SuccessTotal,
    ValueEntry,
    ValueTotal,
)
from rollwright.sources import DiceRollSource

logger = logging.getLogger(__name__)

_CONTEXT = Context(
    prec=28,
    rounding=ROUND_HALF_UP,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)
_CENT = Decimal("0.01")
_UNIT = Decimal(1)


@dataclass
class Evaluation:
    """Value of a (sub-)expression and the history that produced it."""

    value: Decimal
    history: list[HistoryEntry]
    # True when the value counts successes rather than summing faces.
    successes: bool = False


def _normalize(value: Decimal) -> Decimal:
    exponent = value.as_tuple().exponent
    if exponent < -2:
        value = value.quantize(_CENT)
    elif exponent > 0:
        # Division can yield e.g. 2E+1; keep plain integers.
        value = value.quantize(_UNIT)
    if value.is_zero():
        value = value.copy_abs()
    return value


def apply(op: Operator, left: Decimal, right: Decimal) -> Decimal:
    """Apply one binary operator.

    Raises:
        DiceArithmeticError: On division by zero or overflow.
    """
    try:
        with localcontext(_CONTEXT):
            if op is Operator.add:
                result = left + right
            elif op is Operator.sub:
                result = left - right
            elif op is Operator.mul:
                result = left * right
            else:
                if right.is_zero():
                    raise DiceArithmeticError("Can't divide by zero")
                result = left / right
            return _normalize(result)
    except (InvalidOperation, Overflow) as e:
        raise DiceArithmeticError(f"Numeric overflow computing {left} {op.value} {right}") from e


def evaluate(
    expr: Expression,
    source: DiceRollSource,
    *,
    limits: Settings | None = None,
) -> Evaluation:
    """Roll every dice term of ``expr`` left to right and fold the result.

    Success-scored dice terms contribute their success count. The result
    only counts successes when every leaf does and the operators are + or -.
    """
    limits = limits or settings
    if isinstance(expr, DiceTerm):
        entry, total = roll_term(expr, source, limits=limits)
        return Evaluation(
            value=total.as_decimal(),
            history=[entry],
            successes=isinstance(total, SuccessTotal),
        )
    if isinstance(expr, IntegerLiteral):
        value = Decimal(expr.value)
        return Evaluation(value=value, history=[ValueEntry(value=value)])
    if isinstance(expr, FloatLiteral):
        return Evaluation(value=expr.value, history=[ValueEntry(value=expr.value)])
    if isinstance(expr, Group):
        inner = evaluate(expr.inner, source, limits=limits)
        return Evaluation(
            value=inner.value,
            history=[ParenEntry(symbol="("), *inner.history, ParenEntry(symbol=")")],
            successes=inner.successes,
        )

    left = evaluate(expr.left, source, limits=limits)
    right = evaluate(expr.right, source, limits=limits)
    return Evaluation(
        value=apply(expr.op, left.value, right.value),
        history=[*left.history, OperatorEntry(operator=expr.op), *right.history],
        successes=(
            left.successes
            and right.successes
            and expr.op in (Operator.add, Operator.sub)
        ),
    )


def evaluate_single(
    expr: Expression,
    source: DiceRollSource,
    *,
    text: str,
    limits: Settings | None = None,
) -> SingleRollResult:
    """Evaluate ``expr`` once and package it as a SingleRollResult."""
    evaluation = evaluate(expr, source, limits=limits)
    if evaluation.successes:
        total = SuccessTotal(successes=int(evaluation.value))
    else:
        total = ValueTotal(value=evaluation.value)
    return SingleRollResult(expression=text, history=evaluation.history, total=total)
