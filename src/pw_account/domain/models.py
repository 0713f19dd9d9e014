"""Domain models for pw_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.pw_common.enums import LedgerSource


@dataclass
class Account:
    id: int
    external_id: str          # identity-provider subject (JWT "sub")
    display_name: str
    balance: int              # smallest unit; always == SUM(ledger_entries.amount)
    created_at: datetime
    updated_at: datetime


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    account_id: int
    amount: int                      # positive=credit negative=debit
    source: LedgerSource
    balance_after: int               # balance snapshot after this entry
    description: str | None = None
    reference_type: str | None = None
    reference_id: str | None = None
    created_at: datetime | None = None


@dataclass
class LeaderboardEntry:
    rank: int
    account_id: int
    display_name: str
    balance: int


@dataclass
class ConservationViolation:
    account_id: int
    balance: int
    ledger_sum: int
