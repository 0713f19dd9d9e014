"""Tests for pw_common.enums: values must match the DB CHECK constraints."""

from src.pw_common.enums import (
    OUTCOME_BEARING_STATUSES,
    LedgerSource,
    MarketStatus,
    Outcome,
    WagerStatus,
)


class TestMarketStatus:
    def test_values(self) -> None:
        assert [s.value for s in MarketStatus] == [
            "ACTIVE", "LOCKED", "RESOLVED", "DISPUTED", "FINALIZED",
        ]

    def test_is_str(self) -> None:
        assert MarketStatus.ACTIVE == "ACTIVE"

    def test_outcome_bearing(self) -> None:
        assert OUTCOME_BEARING_STATUSES == {
            MarketStatus.RESOLVED, MarketStatus.DISPUTED, MarketStatus.FINALIZED,
        }


class TestOutcome:
    def test_exactly_two_sides(self) -> None:
        assert {o.value for o in Outcome} == {"YES", "NO"}


class TestLedgerSource:
    def test_values(self) -> None:
        assert {s.value for s in LedgerSource} == {
            "WELCOME", "WAGER_PLACED", "WIN_PAYOUT", "REFUND", "BAILOUT",
        }


class TestWagerStatus:
    def test_values(self) -> None:
        assert {s.value for s in WagerStatus} == {"PENDING", "WON", "LOST", "REFUNDED"}
