"""Lark grammar for dice commands.

Syntax summary::

    xdy [OPTIONS] [TARGET] [FAILURE] [: REASON]

    e#, ie#, !#   explode (once / indefinitely) on # or more, default max face
    r#, ir#       reroll (once / indefinitely) on # or less
    K#, k#        keep the # highest / lowest
    D#, d#        drop the # highest / lowest
    t#, t[a,b]    success on # or more / on any listed value
    tt#           two successes on # or more
    f#            failure on # or less
    (expr) ^ N    repeat N times, ^+ sums the totals, ^# sorts them

The Earley parser with the dynamic lexer lets the same letter mean different
things depending on position: ``d`` is both the roll marker and drop-lowest,
``f`` both fudge sides and the failure clause.
"""

from __future__ import annotations

import logging

from lark import Lark, Tree
from lark.exceptions import UnexpectedInput

from rollwright.errors import DiceParseError

logger = logging.getLogger(__name__)

GRAMMAR = r"""
command: (repeated_expr | expr) REASON?

repeated_expr: "(" expr ")" "^" REPEAT_MODE? NUMBER

expr: leaf (OPERATOR leaf)*

?leaf: dice
     | FLOAT -> float_literal
     | INTEGER -> integer_literal
     | "(" expr ")" -> group

dice: NB_DICE? ROLL_MARKER (NUMBER | FUDGE) _option* _scoring?

_option: explode
       | i_explode
       | reroll
       | i_reroll
       | keep_hi
       | keep_lo
       | drop_hi
       | drop_lo

explode: "e" NUMBER?
i_explode: ("ie" | "!") NUMBER?
reroll: "r" NUMBER
i_reroll: "ir" NUMBER
keep_hi: "K" NUMBER
keep_lo: "k" NUMBER
drop_hi: "D" NUMBER
drop_lo: "d" NUMBER

_scoring: _clause (_clause _clause?)?
_clause: target | double_target | failure

target: "t" (NUMBER | target_list)
target_list: "[" (NUMBER ("," NUMBER)*)? "]"
double_target: "tt" NUMBER
failure: "f" NUMBER

NB_DICE: /[1-9][0-9]*/
ROLL_MARKER: "d" | "D"
FUDGE: "F" | "f"
NUMBER: /[0-9]+/
FLOAT: /[+-]?[0-9]+\.[0-9]{1,2}/
INTEGER: /[+-]?[0-9]+/
OPERATOR: "+" | "-" | "*" | "/"
REPEAT_MODE: "+" | "#"
REASON: /:.*/s

WS: /[ \t]+/
%ignore WS
"""

_parser = Lark(
    GRAMMAR,
    start="command",
    parser="earley",
    lexer="dynamic",
    propagate_positions=True,
    maybe_placeholders=False,
)


def _describe_terminal(name: str) -> str:
    """Turn a Lark terminal name into something a user can read."""
    try:
        pattern = _parser.get_terminal(name).pattern
    except KeyError:
        return "end of input" if name == "$END" else name
    if pattern.type == "str":
        return repr(pattern.value)
    return name


def parse_tree(text: str) -> Tree:
    """Parse ``text`` into a labeled Lark tree.

    Raises:
        DiceParseError: If the text does not match the grammar.
    """
    try:
        tree = _parser.parse(text)
    except UnexpectedInput as e:
        names = getattr(e, "allowed", None) or getattr(e, "expected", None) or ()
        expected = sorted({_describe_terminal(name) for name in names})
        position = e.pos_in_stream
        if position is None or position < 0:
            # Lark reports -1 when the input ended too early.
            position = len(text)
        column = position + 1
        found = repr(text[position]) if position < len(text) else "end of input"
        message = f"Invalid dice expression {text!r}: unexpected {found} at column {column}"
        if expected:
            message += f", expected one of: {', '.join(expected)}"
        raise DiceParseError(
            message, position=position, column=column, expected=expected
        ) from e
    logger.debug("Parsed %r", text)
    return tree
