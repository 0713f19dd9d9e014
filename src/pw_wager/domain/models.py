"""Domain models for pw_wager: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.pw_common.enums import LedgerSource, MarketStatus, Outcome, WagerStatus


@dataclass(frozen=True)
class Wager:
    """Immutable once placed; settlement reads wagers and writes ledger entries."""

    id: int
    account_id: int
    market_id: int
    outcome: Outcome
    amount: int
    placed_at: datetime


@dataclass
class WagerHistoryItem:
    wager_id: int
    market_id: int
    question: str
    outcome: Outcome
    amount: int
    placed_at: datetime
    market_status: MarketStatus
    market_outcome: Outcome | None
    settled_source: LedgerSource | None   # WIN_PAYOUT / REFUND entry for this wager
    settled_amount: int                   # 0 until credited

    @property
    def status(self) -> WagerStatus:
        return derive_wager_status(self.market_status, self.settled_source)


@dataclass
class AccountStats:
    total_wagers: int
    wins: int
    losses: int
    refunds: int
    pending: int
    total_wagered: int
    total_won: int

    @property
    def win_rate(self) -> float:
        """Won / decided (refunds and pending excluded). Display only."""
        decided = self.wins + self.losses
        return self.wins / decided if decided else 0.0


def derive_wager_status(
    market_status: MarketStatus, settled_source: LedgerSource | None
) -> WagerStatus:
    if market_status is not MarketStatus.FINALIZED:
        return WagerStatus.PENDING
    if settled_source is LedgerSource.REFUND:
        return WagerStatus.REFUNDED
    if settled_source is LedgerSource.WIN_PAYOUT:
        return WagerStatus.WON
    return WagerStatus.LOST
