"""Pydantic schemas for pw_wager API."""

from pydantic import BaseModel

from src.pw_common.cents import amount_to_display
from src.pw_wager.domain.models import AccountStats, Wager, WagerHistoryItem


class PlaceWagerRequest(BaseModel):
    # Both validated by WagerService so errors carry the wager error codes
    outcome: str
    amount: int


class WagerResponse(BaseModel):
    id: int
    market_id: int
    outcome: str
    amount: int
    amount_display: str
    placed_at: str

    @classmethod
    def from_domain(cls, w: Wager) -> "WagerResponse":
        return cls(
            id=w.id,
            market_id=w.market_id,
            outcome=w.outcome.value,
            amount=w.amount,
            amount_display=amount_to_display(w.amount),
            placed_at=w.placed_at.isoformat(),
        )


class WagerHistoryItemOut(BaseModel):
    wager_id: int
    market_id: int
    question: str
    outcome: str
    amount: int
    status: str
    market_status: str
    market_outcome: str | None
    settled_amount: int
    placed_at: str

    @classmethod
    def from_domain(cls, h: WagerHistoryItem) -> "WagerHistoryItemOut":
        return cls(
            wager_id=h.wager_id,
            market_id=h.market_id,
            question=h.question,
            outcome=h.outcome.value,
            amount=h.amount,
            status=h.status.value,
            market_status=h.market_status.value,
            market_outcome=h.market_outcome.value if h.market_outcome else None,
            settled_amount=h.settled_amount,
            placed_at=h.placed_at.isoformat(),
        )


class WagerHistoryResponse(BaseModel):
    items: list[WagerHistoryItemOut]
    next_cursor: str | None
    has_more: bool


class AccountStatsOut(BaseModel):
    total_wagers: int
    wins: int
    losses: int
    refunds: int
    pending: int
    win_rate: float
    total_wagered: int
    total_won: int

    @classmethod
    def from_domain(cls, s: AccountStats) -> "AccountStatsOut":
        return cls(
            total_wagers=s.total_wagers,
            wins=s.wins,
            losses=s.losses,
            refunds=s.refunds,
            pending=s.pending,
            win_rate=round(s.win_rate, 4),
            total_wagered=s.total_wagered,
            total_won=s.total_won,
        )
