"""Pydantic schemas for pw_market API requests and responses.

Pool totals are always computed from the wagers table at read time.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.pw_common.cents import amount_to_display
from src.pw_market.domain.models import Market, MarketView, PoolTotals


class CreateMarketRequest(BaseModel):
    # Length is validated by MarketService after trimming
    question: str = Field(..., max_length=1000)
    deadline: datetime


class DeclareOutcomeRequest(BaseModel):
    outcome: str


class PoolTotalsOut(BaseModel):
    yes: int
    no: int
    total: int
    total_display: str

    @classmethod
    def from_domain(cls, pools: PoolTotals) -> "PoolTotalsOut":
        return cls(
            yes=pools.yes,
            no=pools.no,
            total=pools.total,
            total_display=amount_to_display(pools.total),
        )


class MarketDetail(BaseModel):
    id: int
    creator_id: int
    question: str
    status: str
    outcome: str | None
    resolved_at: str | None
    deadline: str
    created_at: str
    pools: PoolTotalsOut

    @classmethod
    def from_domain(cls, m: Market, pools: PoolTotals) -> "MarketDetail":
        return cls(
            id=m.id,
            creator_id=m.creator_id,
            question=m.question,
            status=m.status.value,
            outcome=m.outcome.value if m.outcome else None,
            resolved_at=m.resolved_at.isoformat() if m.resolved_at else None,
            deadline=m.deadline.isoformat(),
            created_at=m.created_at.isoformat(),
            pools=PoolTotalsOut.from_domain(pools),
        )

    @classmethod
    def from_view(cls, view: MarketView) -> "MarketDetail":
        return cls.from_domain(view.market, view.pools)


class MarketListResponse(BaseModel):
    items: list[MarketDetail]
    next_cursor: str | None
    has_more: bool
