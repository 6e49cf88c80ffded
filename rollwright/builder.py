"""Builds the typed expression tree from a Lark parse tree.

Bounds are checked here, while walking the tree, so an invalid command is
rejected before a single die is rolled.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import NamedTuple

from lark import Token, Transformer, v_args
from lark.exceptions import VisitError

from rollwright.config import Settings, settings
from rollwright.errors import DiceError, DiceValidationError
from rollwright.grammar import parse_tree
from rollwright.nodes import (
    BinaryOp,
    Command,
    DiceTerm,
    Expression,
    FloatLiteral,
    Group,
    IntegerLiteral,
    Modifier,
    ModifierKind,
    Operator,
    RepeatedExpression,
    RepeatMode,
    Scoring,
)

logger = logging.getLogger(__name__)

_REPEAT_MODES = {"+": RepeatMode.sum, "#": RepeatMode.sort}


class _Clause(NamedTuple):
    """One target/failure clause, before the clauses of a term are merged."""

    kind: str
    value: int | frozenset[int]


_CLAUSE_LABELS = {
    "target": "target (t)",
    "target_values": "target (t)",
    "double_target": "double target (tt)",
    "failure": "failure (f)",
}


def _scoring_from_clauses(clauses: list[_Clause], text: str) -> Scoring | None:
    seen: dict[str, _Clause] = {}
    for clause in clauses:
        label = _CLAUSE_LABELS[clause.kind]
        if any(_CLAUSE_LABELS[kind] == label for kind in seen):
            raise DiceValidationError(f"Duplicate {label} clause in {text!r}")
        seen[clause.kind] = clause

    if "target_values" in seen and "double_target" in seen:
        raise DiceValidationError(
            f"A target list can't be combined with a double target in {text!r}"
        )

    # A zero threshold is the same as leaving the clause out.
    fields = {
        kind: clause.value
        for kind, clause in seen.items()
        if kind == "target_values" or clause.value != 0
    }
    if not fields:
        return None
    return Scoring(**fields)


class _ExpressionBuilder(Transformer):
    def __init__(self, source: str, limits: Settings) -> None:
        super().__init__()
        self._source = source
        self._limits = limits

    # -----------------------------------------------------------------------
    # Dice
    # -----------------------------------------------------------------------

    @v_args(meta=True)
    def dice(self, meta, children) -> DiceTerm:
        text = self._source[meta.start_pos : meta.end_pos]
        count = 1
        sides: int | None = None
        modifiers: list[Modifier] = []
        clauses: list[_Clause] = []
        for child in children:
            if isinstance(child, Modifier):
                modifiers.append(child)
            elif isinstance(child, _Clause):
                clauses.append(child)
            elif child.type == "NB_DICE":
                count = int(child)
            elif child.type == "NUMBER":
                sides = int(child)

        if count > self._limits.max_dice:
            raise DiceValidationError(f"Too many dice: {count} (max {self._limits.max_dice})")
        if sides is None:
            if modifiers or clauses:
                logger.debug("Ignoring options of fudge dice %r", text)
            return DiceTerm(count=count, sides=None, text=text)
        if sides < 1:
            raise DiceValidationError(f"Dice can't have 0 sides: {text!r}")
        if sides > self._limits.max_sides:
            raise DiceValidationError(f"Too many sides: {sides} (max {self._limits.max_sides})")

        return DiceTerm(
            count=count,
            sides=sides,
            modifiers=tuple(modifiers),
            scoring=_scoring_from_clauses(clauses, text),
            text=text,
        )

    def _modifier(self, kind: ModifierKind, children) -> Modifier:
        return Modifier(kind, int(children[0]) if children else None)

    def explode(self, children) -> Modifier:
        return self._modifier(ModifierKind.explode, children)

    def i_explode(self, children) -> Modifier:
        return self._modifier(ModifierKind.indefinite_explode, children)

    def reroll(self, children) -> Modifier:
        return self._modifier(ModifierKind.reroll, children)

    def i_reroll(self, children) -> Modifier:
        return self._modifier(ModifierKind.indefinite_reroll, children)

    def keep_hi(self, children) -> Modifier:
        return self._modifier(ModifierKind.keep_high, children)

    def keep_lo(self, children) -> Modifier:
        return self._modifier(ModifierKind.keep_low, children)

    def drop_hi(self, children) -> Modifier:
        return self._modifier(ModifierKind.drop_high, children)

    def drop_lo(self, children) -> Modifier:
        return self._modifier(ModifierKind.drop_low, children)

    def target(self, children) -> _Clause:
        (value,) = children
        if isinstance(value, frozenset):
            return _Clause("target_values", value)
        return _Clause("target", int(value))

    def target_list(self, children) -> frozenset[int]:
        values = frozenset(int(child) for child in children)
        if not values:
            raise DiceValidationError("A target list needs at least one value")
        return values

    def double_target(self, children) -> _Clause:
        return _Clause("double_target", int(children[0]))

    def failure(self, children) -> _Clause:
        return _Clause("failure", int(children[0]))

    # -----------------------------------------------------------------------
    # Expressions
    # -----------------------------------------------------------------------

    def integer_literal(self, children) -> IntegerLiteral:
        return IntegerLiteral(int(children[0]))

    def float_literal(self, children) -> FloatLiteral:
        return FloatLiteral(Decimal(str(children[0])))

    def group(self, children) -> Group:
        return Group(children[0])

    def expr(self, children) -> Expression:
        # Equal precedence, left associative: a + b * c is (a + b) * c.
        node = children[0]
        for i in range(1, len(children), 2):
            node = BinaryOp(Operator(str(children[i])), node, children[i + 1])
        return node

    @v_args(meta=True)
    def repeated_expr(self, meta, children) -> RepeatedExpression:
        inner = children[0]
        mode = RepeatMode.plain
        if len(children) == 3:
            mode = _REPEAT_MODES[str(children[1])]
        times = int(children[-1])
        if times < 1:
            raise DiceValidationError("Can't repeat an expression 0 times")
        if times > self._limits.max_repeat:
            raise DiceValidationError(
                f"Too many repetitions: {times} (max {self._limits.max_repeat})"
            )
        head = self._source[meta.start_pos : meta.end_pos].split("^", 1)[0].strip()
        return RepeatedExpression(inner=inner, times=times, mode=mode, text=head[1:-1].strip())

    def command(self, children) -> Command:
        body = children[0]
        reason = None
        text = self._source
        if len(children) > 1 and isinstance(children[1], Token):
            reason = children[1][1:].strip()
            text = self._source[: children[1].start_pos]
        return Command(body=body, reason=reason, text=text.strip())


def build_command(text: str, *, limits: Settings | None = None) -> Command:
    """Parse and validate a dice command.

    Args:
        text: Dice notation, e.g. "10d6 e6 K8 +4 : attack".
        limits: Bounds to validate against. Defaults to the global settings.

    Returns:
        The typed expression tree.

    Raises:
        DiceParseError: If the text does not match the grammar.
        DiceValidationError: If the text is grammatical but out of bounds.
    """
    tree = parse_tree(text)
    try:
        return _ExpressionBuilder(text, limits or settings).transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, DiceError):
            raise e.orig_exc from None
        raise
