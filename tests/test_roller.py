"""Tests for the Roller entry point and repeated rolls."""

import random
from decimal import Decimal
from unittest.mock import patch

import pytest

from rollwright.config import Settings
from rollwright.errors import DiceParseError, DiceValidationError
from rollwright.results import (
    RepeatedRollResult,
    RollResultAdapter,
    SingleRollResult,
    SuccessTotal,
    ValueTotal,
)
from rollwright.roller import Roller, roll


class TestRoller:
    def test_roll(self, scripted) -> None:
        result = Roller("2d6 + 6").roll(scripted(3, 5))
        assert isinstance(result, SingleRollResult)
        assert result.total == ValueTotal(value=Decimal(14))
        assert result.expression == "2d6 + 6"

    def test_plain_number(self, scripted) -> None:
        assert Roller("20").roll(scripted()).total.as_decimal() == 20

    def test_roller_is_reusable(self, scripted) -> None:
        roller = Roller("1d6")
        source = scripted(2, 5)
        assert roller.roll(source).total.as_decimal() == 2
        assert roller.roll(source).total.as_decimal() == 5

    def test_accepts_random_instance(self) -> None:
        first = Roller("10d6").roll(random.Random(7))
        second = Roller("10d6").roll(random.Random(7))
        assert first == second

    def test_default_source_uses_random(self) -> None:
        with patch("rollwright.sources.random.Random.randint", return_value=4):
            result = roll("3d6")
        assert result.total.as_decimal() == 12

    def test_module_level_roll(self, scripted) -> None:
        assert roll("3d6", scripted(3, 6, 3)).total.as_decimal() == 12

    def test_text_and_str(self) -> None:
        roller = Roller("1d20 + 2 : to hit")
        assert roller.text == "1d20 + 2 : to hit"
        assert str(roller) == "1d20 + 2 : to hit"


class TestDice:
    def test_lists_dice_terms(self) -> None:
        assert list(Roller("1d6 + 1d4 + 1d10 + 1d20").dice()) == ["1d6", "1d4", "1d10", "1d20"]

    def test_includes_modifiers(self) -> None:
        assert list(Roller("(4d6 K3 + 1) ^ 6").dice()) == ["4d6 K3"]

    def test_no_dice(self) -> None:
        assert list(Roller("2 + 3").dice()) == []


class TestReason:
    def test_reason(self, scripted) -> None:
        roller = Roller("1d20 : initiative")
        assert roller.reason == "initiative"
        assert roller.roll(scripted(12)).reason == "initiative"

    def test_reason_keeps_colons(self, scripted) -> None:
        result = Roller("1d20: initiative: round 1").roll(scripted(12))
        assert result.reason == "initiative: round 1"

    def test_trim_reason(self, scripted) -> None:
        roller = Roller("1d20 + 2 : to hit")
        roller.trim_reason()
        assert roller.text == "1d20 + 2"
        assert roller.reason is None
        assert roller.roll(scripted(12)).reason is None

    def test_trim_reason_without_reason(self) -> None:
        roller = Roller("1d20")
        roller.trim_reason()
        assert roller.text == "1d20"

    def test_repeated_reason(self, scripted) -> None:
        result = Roller("(1d6) ^ 2 : damage").roll(scripted(1, 2))
        assert result.reason == "damage"
        assert all(single.reason is None for single in result.rolls)


class TestRepeated:
    def test_plain(self, scripted) -> None:
        result = Roller("(2d6 + 6) ^ 8").roll(scripted(*[3, 5] * 8))
        assert isinstance(result, RepeatedRollResult)
        assert len(result.rolls) == 8
        assert all(single.total.as_decimal() == 14 for single in result.rolls)
        assert result.combined_total is None
        assert not result.sorted
        assert result.expression == "2d6 + 6"

    def test_iterations_are_independent(self, scripted) -> None:
        result = Roller("(1d6) ^ 3").roll(scripted(4, 1, 6))
        assert [single.total.as_decimal() for single in result.rolls] == [4, 1, 6]

    def test_sum(self, scripted) -> None:
        result = Roller("(2d6 + 6) ^+ 2").roll(scripted(3, 5, 4, 2))
        assert result.combined_total == 26
        assert [single.total.as_decimal() for single in result.rolls] == [14, 12]

    def test_sort(self, scripted) -> None:
        result = Roller("(1d6) ^# 4").roll(scripted(5, 2, 6, 2))
        assert result.sorted
        assert [single.total.as_decimal() for single in result.rolls] == [2, 2, 5, 6]

    def test_sort_is_stable(self, scripted) -> None:
        result = Roller("(1d6 + 1d6) ^# 2").roll(scripted(5, 1, 2, 4))
        # Both iterations total 6; roll order is kept.
        assert [single.history[0].dice[0].value for single in result.rolls] == [5, 2]

    def test_successes_repeat(self, scripted) -> None:
        result = Roller("(3d10 t8) ^+ 2").roll(scripted(8, 9, 1, 10, 2, 3))
        assert [single.total for single in result.rolls] == [
            SuccessTotal(successes=2),
            SuccessTotal(successes=1),
        ]
        assert result.combined_total == 3


class TestValidation:
    def test_parse_error(self) -> None:
        with pytest.raises(DiceParseError):
            Roller("roll some dice")

    @pytest.mark.parametrize("text", ["5001d6", "1d5001", "(1d6) ^ 5001", "(1d6) ^ 0"])
    def test_out_of_bounds(self, text: str) -> None:
        with pytest.raises(DiceValidationError):
            Roller(text)

    @pytest.mark.parametrize("text", ["1d6 + 5001d6", "1d6 +", "1d6 + 1d0"])
    def test_no_dice_rolled_on_error(self, scripted, text: str) -> None:
        source = scripted(*[1] * 10)
        with pytest.raises((DiceParseError, DiceValidationError)):
            roll(text, source)
        assert source.consumed == 0

    def test_custom_limits(self, scripted) -> None:
        limits = Settings(_env_file=None, max_repeat=3)
        with pytest.raises(DiceValidationError, match="max 3"):
            Roller("(1d6) ^ 4", limits=limits)
        result = Roller("(1d6) ^ 3", limits=limits).roll(scripted(1, 2, 3))
        assert len(result.rolls) == 3


class TestSerialization:
    def test_single_round_trip(self, scripted) -> None:
        result = Roller("(4d6 e6 K3 + 1.5) * 2 : stat").roll(scripted(6, 2, 3, 4, 1))
        restored = RollResultAdapter.validate_json(result.model_dump_json())
        assert restored == result

    def test_repeated_round_trip(self, scripted) -> None:
        result = Roller("(2dF + 3d10 t8) ^+ 2").roll(scripted(1, 3, 8, 9, 1, 2, 2, 10, 10, 10))
        restored = RollResultAdapter.validate_json(result.model_dump_json())
        assert isinstance(restored, RepeatedRollResult)
        assert restored == result
