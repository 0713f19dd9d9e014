"""Repository Protocol: dependency inversion for testability."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pw_common.enums import Outcome
from src.pw_wager.domain.models import AccountStats, Wager, WagerHistoryItem


class WagerRepositoryProtocol(Protocol):
    async def insert_wager(
        self,
        db: AsyncSession,
        account_id: int,
        market_id: int,
        outcome: Outcome,
        amount: int,
        placed_at: datetime,
    ) -> Wager: ...

    async def list_for_market(self, db: AsyncSession, market_id: int) -> list[Wager]: ...

    async def list_for_account(
        self,
        db: AsyncSession,
        account_id: int,
        cursor_id: int | None,
        limit: int,
    ) -> list[WagerHistoryItem]: ...

    async def account_stats(self, db: AsyncSession, account_id: int) -> AccountStats: ...
