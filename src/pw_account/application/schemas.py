"""Pydantic schemas for pw_account API."""

from pydantic import BaseModel

from src.pw_account.domain.models import Account, LeaderboardEntry, LedgerEntry
from src.pw_common.cents import amount_to_display

# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    account_id: int
    display_name: str
    balance: int
    balance_display: str

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        return cls(
            account_id=account.id,
            display_name=account.display_name,
            balance=account.balance,
            balance_display=amount_to_display(account.balance),
        )


class LedgerEntryItem(BaseModel):
    id: int
    source: str
    amount: int
    amount_display: str
    balance_after: int
    description: str | None
    reference_type: str | None
    reference_id: str | None
    created_at: str

    @classmethod
    def from_domain(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            source=entry.source.value,
            amount=entry.amount,
            amount_display=amount_to_display(entry.amount),
            balance_after=entry.balance_after,
            description=entry.description,
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
            created_at=entry.created_at.isoformat() if entry.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool


class BailoutResponse(BaseModel):
    credited: int
    balance: int
    balance_display: str


class LeaderboardItem(BaseModel):
    rank: int
    account_id: int
    display_name: str
    balance: int
    balance_display: str

    @classmethod
    def from_domain(cls, entry: LeaderboardEntry) -> "LeaderboardItem":
        return cls(
            rank=entry.rank,
            account_id=entry.account_id,
            display_name=entry.display_name,
            balance=entry.balance,
            balance_display=amount_to_display(entry.balance),
        )
