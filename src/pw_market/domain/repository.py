"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory double that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pw_common.enums import MarketStatus, Outcome
from src.pw_market.domain.lifecycle import FINALIZABLE_STATUSES
from src.pw_market.domain.models import Market, MarketView, PoolTotals


class MarketRepositoryProtocol(Protocol):
    async def create_market(
        self, db: AsyncSession, creator_id: int, question: str, deadline: datetime
    ) -> Market: ...

    async def get_market(self, db: AsyncSession, market_id: int) -> Market | None: ...

    async def get_market_for_update(
        self, db: AsyncSession, market_id: int
    ) -> Market | None: ...

    async def list_markets(
        self,
        db: AsyncSession,
        status: MarketStatus | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[MarketView]: ...

    async def pool_totals(self, db: AsyncSession, market_id: int) -> PoolTotals: ...

    async def record_outcome(
        self, db: AsyncSession, market_id: int, outcome: Outcome, resolved_at: datetime
    ) -> Market | None: ...

    async def mark_disputed(self, db: AsyncSession, market_id: int) -> Market | None: ...

    async def lock_expired(self, db: AsyncSession, now: datetime) -> list[Market]: ...

    async def pending_auto_lock(self, db: AsyncSession, now: datetime) -> list[int]: ...

    async def pending_auto_finalize(
        self, db: AsyncSession, cutoff: datetime
    ) -> list[int]: ...

    async def list_by_status(
        self, db: AsyncSession, status: MarketStatus
    ) -> list[Market]: ...

    async def mark_finalized(
        self,
        db: AsyncSession,
        market_id: int,
        outcome: Outcome,
        resolved_at: datetime,
        from_statuses: frozenset[MarketStatus] = FINALIZABLE_STATUSES,
    ) -> Market | None: ...
