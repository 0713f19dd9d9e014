"""Tests for pw_common.cents."""

import pytest

from src.pw_common.cents import amount_to_display, parse_outcome, validate_amount
from src.pw_common.enums import Outcome
from src.pw_common.errors import InvalidAmountError, InvalidOutcomeError


class TestValidateAmount:
    def test_positive_int(self) -> None:
        assert validate_amount(100) == 100

    @pytest.mark.parametrize("bad", [0, -1, 1.5, "100", None, True])
    def test_rejects(self, bad: object) -> None:
        with pytest.raises(InvalidAmountError):
            validate_amount(bad)


class TestParseOutcome:
    def test_enum_passthrough(self) -> None:
        assert parse_outcome(Outcome.NO) is Outcome.NO

    def test_case_and_whitespace_insensitive(self) -> None:
        assert parse_outcome(" yes ") is Outcome.YES

    @pytest.mark.parametrize("bad", ["MAYBE", "", None, 1])
    def test_rejects(self, bad: object) -> None:
        with pytest.raises(InvalidOutcomeError):
            parse_outcome(bad)


class TestAmountToDisplay:
    def test_formats_with_separator(self) -> None:
        assert amount_to_display(1500) == "1,500 WSC"

    def test_negative(self) -> None:
        assert amount_to_display(-200) == "-200 WSC"
