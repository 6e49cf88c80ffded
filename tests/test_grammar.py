"""Tests for the Lark grammar and parse error reporting."""

import pytest

from rollwright.errors import DiceError, DiceParseError
from rollwright.grammar import parse_tree


class TestParseTree:
    @pytest.mark.parametrize(
        "text",
        [
            "d6",
            "1d6",
            "2D20",
            "4dF",
            "10d6 e6 K8 +4",
            "10d10 ie10 r2",
            "3d10 ! k2",
            "6d6 t[2, 4, 6]",
            "10d10 t7 tt9 f1",
            "3d6 * 1.5",
            "(1d6 + 2) * -3",
            "(2d6 + 6) ^ 8",
            "(2d6 + 2) ^+ 6",
            "(2d6 + 2) ^# 6",
            "1d20 : initiative: first round",
            "\t2d6  +\t3",
        ],
    )
    def test_accepts(self, text: str) -> None:
        assert parse_tree(text) is not None

    @pytest.mark.parametrize(
        "text",
        ["", "roll some dice", "0d6", "2d6 +", "1d6 2", "3d6 * 1.505", "(2d6) ^", "[1,2]"],
    )
    def test_rejects(self, text: str) -> None:
        with pytest.raises(DiceParseError):
            parse_tree(text)

    def test_parse_error_is_a_dice_error(self) -> None:
        with pytest.raises(DiceError):
            parse_tree("nope")

    def test_parse_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_tree("nope")


class TestParseErrorDetails:
    def test_unexpected_character_position(self) -> None:
        with pytest.raises(DiceParseError) as exc_info:
            parse_tree("1d6x")
        assert exc_info.value.position == 3
        assert exc_info.value.column == 4
        assert "'x'" in str(exc_info.value)

    def test_end_of_input_position(self) -> None:
        with pytest.raises(DiceParseError) as exc_info:
            parse_tree("2d6 +")
        assert exc_info.value.position == len("2d6 +")
        assert "end of input" in str(exc_info.value)

    def test_empty_input(self) -> None:
        with pytest.raises(DiceParseError) as exc_info:
            parse_tree("")
        assert exc_info.value.position == 0
        assert exc_info.value.column == 1

    def test_expected_tokens_are_listed(self) -> None:
        with pytest.raises(DiceParseError) as exc_info:
            parse_tree("1d6x")
        assert exc_info.value.expected
        assert exc_info.value.expected == sorted(exc_info.value.expected)
        assert "expected one of" in str(exc_info.value)
