"""Domain models for pw_market: pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

from src.pw_common.enums import MarketStatus, Outcome


@dataclass
class Market:
    id: int
    creator_id: int
    question: str
    status: MarketStatus
    outcome: Outcome | None           # set iff status in RESOLVED/DISPUTED/FINALIZED
    resolved_at: datetime | None      # set together with outcome
    deadline: datetime                # wagers rejected at or after this instant
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class PoolTotals:
    """Sums of wager amounts per side; always derived, never cached."""

    yes: int = 0
    no: int = 0

    @property
    def total(self) -> int:
        return self.yes + self.no

    def for_outcome(self, outcome: Outcome) -> int:
        return self.yes if outcome is Outcome.YES else self.no


@dataclass
class MarketView:
    market: Market
    pools: PoolTotals
