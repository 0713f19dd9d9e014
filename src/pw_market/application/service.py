"""MarketService: market creation, reads, and the creator/bettor transitions.

Declaring an outcome records it and stamps resolved_at; it never moves money.
Payouts happen only in SettlementService.finalize, after the dispute window.
Events are published after the transaction commits.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.pw_account.domain.repository import AccountRepositoryProtocol
from src.pw_account.infrastructure.persistence import AccountRepository
from src.pw_common.cents import parse_outcome
from src.pw_common.cursor import cursor_decode, cursor_encode
from src.pw_common.database import LedgerStore
from src.pw_common.datetime_utils import Clock, ensure_utc, utc_now
from src.pw_common.enums import MarketStatus, Outcome
from src.pw_common.errors import (
    AccountNotFoundError,
    ForbiddenError,
    InvalidDeadlineError,
    InvalidQuestionError,
    InvalidStateTransitionError,
    MarketNotFoundError,
)
from src.pw_market.application.schemas import MarketDetail, MarketListResponse
from src.pw_market.domain.lifecycle import ensure_transition
from src.pw_market.domain.models import Market, PoolTotals
from src.pw_market.domain.repository import MarketRepositoryProtocol
from src.pw_market.infrastructure.persistence import MarketRepository
from src.pw_notify.domain.events import (
    DisputeRaised,
    MarketCreated,
    MarketLocked,
    MarketResolved,
)
from src.pw_notify.domain.sink import NotificationSink

logger = logging.getLogger(__name__)

QUESTION_MIN_LENGTH = 10
QUESTION_MAX_LENGTH = 140


class MarketService:
    def __init__(
        self,
        store: LedgerStore,
        sink: NotificationSink,
        repo: MarketRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        min_lead: timedelta = timedelta(hours=1),
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._sink = sink
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._min_lead = min_lead
        self._clock = clock

    # ------------------------------------------------------------------
    # Creation and reads
    # ------------------------------------------------------------------

    async def create_market(
        self, creator_id: int, question: str, deadline: datetime
    ) -> Market:
        text = question.strip()
        if not QUESTION_MIN_LENGTH <= len(text) <= QUESTION_MAX_LENGTH:
            raise InvalidQuestionError(
                f"must be {QUESTION_MIN_LENGTH}-{QUESTION_MAX_LENGTH} characters"
            )
        if deadline.tzinfo is None:
            raise InvalidDeadlineError("must include a timezone")
        deadline = ensure_utc(deadline)
        if deadline < self._clock() + self._min_lead:
            raise InvalidDeadlineError(
                f"must be at least {int(self._min_lead.total_seconds() // 60)} minutes ahead"
            )

        async def work(db: AsyncSession) -> Market:
            if await self._accounts.get_account(db, creator_id) is None:
                raise AccountNotFoundError(creator_id)
            return await self._repo.create_market(db, creator_id, text, deadline)

        market = await self._store.run_serializable(work)
        logger.info("market created market_id=%s creator_id=%s", market.id, creator_id)
        self._sink.publish(
            MarketCreated(
                market_id=market.id,
                question=market.question,
                creator_id=creator_id,
                deadline=market.deadline,
            )
        )
        return market

    async def get_market(self, market_id: int) -> MarketDetail:
        async with self._store.session() as db:
            market = await self._repo.get_market(db, market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
            pools = await self._repo.pool_totals(db, market_id)
        return MarketDetail.from_domain(market, pools)

    async def list_markets(
        self,
        status: MarketStatus | None,
        cursor: str | None,
        limit: int,
    ) -> MarketListResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without COUNT(*)
        async with self._store.session() as db:
            views = await self._repo.list_markets(db, status, cursor_id, limit + 1)
        has_more = len(views) > limit
        page = views[:limit]
        next_cursor = cursor_encode(page[-1].market.id) if has_more and page else None
        return MarketListResponse(
            items=[MarketDetail.from_view(v) for v in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def pool_totals(self, market_id: int) -> PoolTotals:
        """Current (yes, no) sums; recomputed from the wagers table on every call."""
        async with self._store.session() as db:
            return await self._repo.pool_totals(db, market_id)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def declare_outcome(
        self, market_id: int, caller_id: int, outcome: Outcome | str
    ) -> Market:
        """Creator records the outcome: ACTIVE/LOCKED -> RESOLVED."""
        declared = parse_outcome(outcome)
        resolved_at = self._clock()

        async def work(db: AsyncSession) -> Market:
            market = await self._repo.get_market_for_update(db, market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
            if market.creator_id != caller_id:
                raise ForbiddenError("only the market creator can declare the outcome")
            ensure_transition(market_id, market.status, MarketStatus.RESOLVED)
            resolved = await self._repo.record_outcome(db, market_id, declared, resolved_at)
            if resolved is None:
                raise InvalidStateTransitionError(
                    market_id, market.status.value, MarketStatus.RESOLVED.value
                )
            return resolved

        market = await self._store.run_serializable(work)
        logger.info(
            "market resolved market_id=%s outcome=%s by=%s",
            market_id, declared.value, caller_id,
        )
        self._sink.publish(
            MarketResolved(
                market_id=market.id,
                question=market.question,
                outcome=declared.value,
                resolved_at=resolved_at,
            )
        )
        return market

    async def raise_dispute(self, market_id: int, caller_id: int) -> Market:
        """Any account holder flags a declaration: RESOLVED -> DISPUTED."""

        async def work(db: AsyncSession) -> Market:
            market = await self._repo.get_market_for_update(db, market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
            ensure_transition(market_id, market.status, MarketStatus.DISPUTED)
            if await self._accounts.get_account(db, caller_id) is None:
                raise AccountNotFoundError(caller_id)
            disputed = await self._repo.mark_disputed(db, market_id)
            if disputed is None:
                raise InvalidStateTransitionError(
                    market_id, market.status.value, MarketStatus.DISPUTED.value
                )
            return disputed

        market = await self._store.run_serializable(work)
        logger.warning("market disputed market_id=%s by=%s", market_id, caller_id)
        self._sink.publish(
            DisputeRaised(
                market_id=market.id,
                question=market.question,
                disputed_by=caller_id,
                outcome=market.outcome.value if market.outcome else "",
            )
        )
        return market

    async def lock_expired_markets(self, now: datetime | None = None) -> list[Market]:
        """Bulk ACTIVE -> LOCKED for every market whose deadline has passed."""
        at = now or self._clock()

        async def work(db: AsyncSession) -> list[Market]:
            return await self._repo.lock_expired(db, at)

        locked = await self._store.run_serializable(work)
        for market in locked:
            logger.info("market locked market_id=%s", market.id)
            self._sink.publish(
                MarketLocked(
                    market_id=market.id,
                    question=market.question,
                    creator_id=market.creator_id,
                )
            )
        return locked

    # ------------------------------------------------------------------
    # Scheduler queries
    # ------------------------------------------------------------------

    async def pending_auto_lock(self, now: datetime | None = None) -> list[int]:
        async with self._store.session() as db:
            return await self._repo.pending_auto_lock(db, now or self._clock())

    async def pending_auto_finalize(self, dispute_window: timedelta) -> list[int]:
        """RESOLVED markets whose declaration is older than the dispute window.

        DISPUTED markets are never returned; only an administrator finalizes them.
        """
        cutoff = self._clock() - dispute_window
        async with self._store.session() as db:
            return await self._repo.pending_auto_finalize(db, cutoff)

    async def list_disputed(self) -> list[Market]:
        async with self._store.session() as db:
            return await self._repo.list_by_status(db, MarketStatus.DISPUTED)
