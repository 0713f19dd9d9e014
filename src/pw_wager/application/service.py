"""WagerService: places wagers and reports an account's betting history.

place_wager is one SERIALIZABLE transaction: the balance check, market
checks, debit, ledger entry and wager insert commit together or not at all.
Pool totals are never stored; readers sum the wagers table.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pw_account.domain.repository import AccountRepositoryProtocol
from src.pw_account.infrastructure.persistence import AccountRepository
from src.pw_common.cents import amount_to_display, parse_outcome, validate_amount
from src.pw_common.cursor import cursor_decode, cursor_encode
from src.pw_common.database import LedgerStore
from src.pw_common.datetime_utils import Clock, ensure_utc, utc_now
from src.pw_common.enums import LedgerSource, MarketStatus, Outcome, ReferenceType
from src.pw_common.errors import (
    AccountNotFoundError,
    InsufficientFundsError,
    MarketExpiredError,
    MarketNotFoundError,
    MarketNotOpenError,
)
from src.pw_market.domain.repository import MarketRepositoryProtocol
from src.pw_market.infrastructure.persistence import MarketRepository
from src.pw_wager.application.schemas import (
    AccountStatsOut,
    WagerHistoryItemOut,
    WagerHistoryResponse,
)
from src.pw_wager.domain.models import Wager
from src.pw_wager.domain.repository import WagerRepositoryProtocol
from src.pw_wager.infrastructure.persistence import WagerRepository

logger = logging.getLogger(__name__)


class WagerService:
    def __init__(
        self,
        store: LedgerStore,
        repo: WagerRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        markets: MarketRepositoryProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._repo: WagerRepositoryProtocol = repo or WagerRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._clock = clock

    async def place_wager(
        self,
        account_id: int,
        market_id: int,
        outcome: Outcome | str,
        amount: object,
    ) -> Wager:
        side = parse_outcome(outcome)
        stake = validate_amount(amount)

        async def work(db: AsyncSession) -> Wager:
            account = await self._accounts.get_account_for_update(db, account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            if account.balance < stake:
                raise InsufficientFundsError(stake, account.balance)

            market = await self._markets.get_market(db, market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
            if market.status is not MarketStatus.ACTIVE:
                raise MarketNotOpenError(market_id, market.status.value)
            now = self._clock()
            if now >= ensure_utc(market.deadline):
                raise MarketExpiredError(market_id)

            await self._accounts.debit(
                db,
                account_id,
                stake,
                LedgerSource.WAGER_PLACED,
                f"Wager {amount_to_display(stake)} on {side.value} in market #{market_id}",
                ReferenceType.MARKET.value,
                str(market_id),
            )
            return await self._repo.insert_wager(
                db, account_id, market_id, side, stake, now
            )

        wager = await self._store.run_serializable(work)
        logger.info(
            "wager placed wager_id=%s account_id=%s market_id=%s outcome=%s amount=%d",
            wager.id, account_id, market_id, side.value, stake,
        )
        return wager

    async def wager_history(
        self, account_id: int, cursor: str | None, limit: int
    ) -> WagerHistoryResponse:
        cursor_id = cursor_decode(cursor)
        async with self._store.session() as db:
            items = await self._repo.list_for_account(db, account_id, cursor_id, limit + 1)
        has_more = len(items) > limit
        page = items[:limit]
        next_cursor = cursor_encode(page[-1].wager_id) if has_more and page else None
        return WagerHistoryResponse(
            items=[WagerHistoryItemOut.from_domain(h) for h in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def account_stats(self, account_id: int) -> AccountStatsOut:
        async with self._store.session() as db:
            stats = await self._repo.account_stats(db, account_id)
        return AccountStatsOut.from_domain(stats)
