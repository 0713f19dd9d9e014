"""SettlementService: the only code path that pays out a market.

finalize() runs as one SERIALIZABLE transaction:
  1. lock the market row (FOR UPDATE); its status must be in `allowed`
     (RESOLVED or DISPUTED for an administrator, RESOLVED only for the scheduler)
  2. pick the effective outcome (declared, or an administrator override)
  3. load every wager and build the plan (payout or refund-all)
  4. credit each recipient with a WIN_PAYOUT / REFUND ledger entry
  5. conditional UPDATE to FINALIZED from the same `allowed` set; zero rows
     means a concurrent finalize won

Notifications go out only after the commit.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.pw_account.domain.repository import AccountRepositoryProtocol
from src.pw_account.infrastructure.persistence import AccountRepository
from src.pw_common.database import LedgerStore
from src.pw_common.datetime_utils import Clock, utc_now
from src.pw_common.enums import LedgerSource, MarketStatus, ReferenceType
from src.pw_common.errors import InternalError, MarketNotFoundError, NotFinalizableError
from src.pw_market.domain.lifecycle import FINALIZABLE_STATUSES
from src.pw_market.domain.models import Market
from src.pw_market.domain.repository import MarketRepositoryProtocol
from src.pw_market.infrastructure.persistence import MarketRepository
from src.pw_notify.domain.events import (
    MarketFinalized,
    WagerLost,
    WagerRefunded,
    WagerWon,
)
from src.pw_notify.domain.sink import NotificationSink
from src.pw_settlement.domain.payout import (
    Credit,
    Declared,
    OutcomeSource,
    Overridden,
    SettlementPlan,
    plan_settlement,
)
from src.pw_wager.domain.repository import WagerRepositoryProtocol
from src.pw_wager.infrastructure.persistence import WagerRepository

logger = logging.getLogger(__name__)


@dataclass
class _Settled:
    market: Market
    plan: SettlementPlan
    was_disputed: bool


def _credit_description(market_id: int, plan: SettlementPlan, credit: Credit) -> str:
    w = credit.wager
    if plan.refund:
        return f"Refund for wager #{w.id} on market #{market_id} (no winning wagers)"
    return (
        f"Win payout for wager #{w.id} on market #{market_id} "
        f"(wager: {w.amount}, payout: {credit.amount}, profit: {credit.profit})"
    )


class SettlementService:
    def __init__(
        self,
        store: LedgerStore,
        sink: NotificationSink,
        markets: MarketRepositoryProtocol | None = None,
        wagers: WagerRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._sink = sink
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._wagers: WagerRepositoryProtocol = wagers or WagerRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._clock = clock

    async def finalize(
        self,
        market_id: int,
        source: OutcomeSource = Declared(),
        allowed: frozenset[MarketStatus] = FINALIZABLE_STATUSES,
    ) -> int:
        """Settle a market whose status is in `allowed`. Returns the number of credited wagers."""

        async def work(db: AsyncSession) -> _Settled:
            market = await self._markets.get_market_for_update(db, market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
            if market.status not in allowed:
                raise NotFinalizableError(market_id, market.status.value)

            if isinstance(source, Overridden):
                outcome = source.outcome
            elif market.outcome is not None:
                outcome = market.outcome
            else:
                raise InternalError(f"Market {market_id} is {market.status.value} without outcome")

            wagers = await self._wagers.list_for_market(db, market_id)
            plan = plan_settlement(wagers, outcome)
            ledger_source = LedgerSource.REFUND if plan.refund else LedgerSource.WIN_PAYOUT
            for credit in plan.credits:
                await self._accounts.credit(
                    db,
                    credit.wager.account_id,
                    credit.amount,
                    ledger_source,
                    _credit_description(market_id, plan, credit),
                    ReferenceType.WAGER.value,
                    str(credit.wager.id),
                )

            finalized = await self._markets.mark_finalized(
                db, market_id, outcome, self._clock(), from_statuses=allowed
            )
            if finalized is None:
                raise NotFinalizableError(market_id, MarketStatus.FINALIZED.value)
            return _Settled(
                market=finalized,
                plan=plan,
                was_disputed=market.status is MarketStatus.DISPUTED,
            )

        settled = await self._store.run_serializable(work)
        plan = settled.plan
        logger.info(
            "market finalized market_id=%s outcome=%s total_pool=%d winning_pool=%d "
            "credited=%d paid=%d remainder=%d refund=%s override=%s",
            market_id, plan.outcome.value, plan.total_pool, plan.winning_pool,
            len(plan.credits), plan.total_paid, plan.remainder, plan.refund,
            isinstance(source, Overridden),
        )
        self._notify(settled)
        return len(plan.credits)

    def _notify(self, settled: _Settled) -> None:
        market, plan = settled.market, settled.plan
        for credit in plan.credits:
            w = credit.wager
            if plan.refund:
                self._sink.publish(
                    WagerRefunded(
                        market_id=market.id,
                        question=market.question,
                        account_id=w.account_id,
                        wager_id=w.id,
                        amount=w.amount,
                    )
                )
            else:
                self._sink.publish(
                    WagerWon(
                        market_id=market.id,
                        question=market.question,
                        account_id=w.account_id,
                        wager_id=w.id,
                        amount=w.amount,
                        payout=credit.amount,
                        profit=credit.profit,
                    )
                )
        for w in plan.losers:
            self._sink.publish(
                WagerLost(
                    market_id=market.id,
                    question=market.question,
                    account_id=w.account_id,
                    wager_id=w.id,
                    amount=w.amount,
                )
            )
        self._sink.publish(
            MarketFinalized(
                market_id=market.id,
                question=market.question,
                outcome=plan.outcome.value,
                winners_count=0 if plan.refund else len(plan.credits),
                total_paid=plan.total_paid,
                was_disputed=settled.was_disputed,
                refunded=plan.refund,
            )
        )
