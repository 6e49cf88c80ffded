"""Exception hierarchy for dice expressions.

Every error raised by the package derives from DiceError, which is a
ValueError so callers validating user input can catch either.
"""

from __future__ import annotations


class DiceError(ValueError):
    """Raised when a dice expression is invalid or cannot be evaluated."""


class DiceParseError(DiceError):
    """Raised when the input does not match the dice grammar.

    Attributes:
        position: 0-based offset of the offending character in the input.
        column: 1-based column of the offending character.
        expected: Human-readable descriptions of the tokens that would have
            been accepted at that position.
    """

    def __init__(self, message: str, *, position: int, column: int, expected: list[str]) -> None:
        super().__init__(message)
        self.position = position
        self.column = column
        self.expected = expected


class DiceValidationError(DiceError):
    """Raised when an expression is grammatical but out of bounds."""


class DiceArithmeticError(DiceError, ArithmeticError):
    """Raised on division by zero or numeric overflow while evaluating."""
