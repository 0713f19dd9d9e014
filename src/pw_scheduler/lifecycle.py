"""LifecycleScheduler: background task driving time-based market transitions.

Each tick runs two independent scans:
  1. lock: ACTIVE markets past their deadline -> LOCKED (one bulk UPDATE)
  2. finalize: RESOLVED markets older than the dispute window -> settlement.
     Settlement re-checks RESOLVED on the locked row, so a dispute raised
     after the scan query still wins.

A failure in one scan, or on one market, is logged and skipped; the market
is picked up again on the next tick. stop() lets an in-flight tick finish.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta

from src.pw_common.errors import NotFinalizableError
from src.pw_market.application.service import MarketService
from src.pw_market.domain.lifecycle import AUTO_FINALIZE_STATUSES
from src.pw_settlement.application.service import SettlementService
from src.pw_settlement.domain.payout import Declared

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    locked: list[int] = field(default_factory=list)
    finalized: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
    lock_scan_failed: bool = False


class LifecycleScheduler:
    def __init__(
        self,
        markets: MarketService,
        settlement: SettlementService,
        interval_seconds: float = 60.0,
        dispute_window: timedelta = timedelta(hours=24),
    ) -> None:
        self._markets = markets
        self._settlement = settlement
        self._interval = interval_seconds
        self._dispute_window = dispute_window
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name="lifecycle-scheduler")
        logger.info(
            "scheduler started interval=%ss dispute_window=%s",
            self._interval, self._dispute_window,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("scheduler stopped")

    async def _run(self) -> None:
        # First tick immediately, then every interval until stopped
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("scheduler tick failed")
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except TimeoutError:
                pass

    async def run_once(self) -> TickReport:
        report = TickReport()
        await self._lock_scan(report)
        await self._finalize_scan(report)
        if report.locked or report.finalized or report.failed:
            logger.info(
                "scheduler tick locked=%d finalized=%d failed=%d",
                len(report.locked), len(report.finalized), len(report.failed),
            )
        return report

    async def _lock_scan(self, report: TickReport) -> None:
        try:
            locked = await self._markets.lock_expired_markets()
        except Exception:
            logger.exception("lock scan failed")
            report.lock_scan_failed = True
            return
        report.locked.extend(m.id for m in locked)

    async def _finalize_scan(self, report: TickReport) -> None:
        try:
            due = await self._markets.pending_auto_finalize(self._dispute_window)
        except Exception:
            logger.exception("finalize scan query failed")
            return
        for market_id in due:
            try:
                await self._settlement.finalize(
                    market_id, Declared(), allowed=AUTO_FINALIZE_STATUSES
                )
            except NotFinalizableError:
                # Disputed or finalized since the scan query; nothing to do
                logger.info("skip finalize market_id=%s: no longer RESOLVED", market_id)
            except Exception:
                logger.exception("auto-finalize failed market_id=%s", market_id)
                report.failed.append(market_id)
            else:
                report.finalized.append(market_id)
