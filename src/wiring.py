"""Composition root: the only place that reads `settings`.

build_container() creates the LedgerStore, the notification sink and every
service once per process; they are handed to the app through
`app.state.container`. Tests call assemble() with in-memory repositories.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta

import redis.asyncio as aioredis

from config.settings import Settings
from src.pw_account.application.service import AccountService
from src.pw_account.domain.repository import AccountRepositoryProtocol
from src.pw_account.infrastructure.persistence import AccountRepository
from src.pw_admin.application.service import AdminService
from src.pw_common.database import LedgerStore
from src.pw_common.datetime_utils import Clock, utc_now
from src.pw_common.redis_client import close_redis, create_redis
from src.pw_gateway.auth.jwt_handler import TokenCodec
from src.pw_market.application.service import MarketService
from src.pw_market.domain.repository import MarketRepositoryProtocol
from src.pw_market.infrastructure.persistence import MarketRepository
from src.pw_notify.domain.sink import NotificationSink
from src.pw_notify.infrastructure.sinks import LoggingNotificationSink, RedisNotificationSink
from src.pw_scheduler.lifecycle import LifecycleScheduler
from src.pw_settlement.application.service import SettlementService
from src.pw_wager.application.service import WagerService
from src.pw_wager.domain.repository import WagerRepositoryProtocol
from src.pw_wager.infrastructure.persistence import WagerRepository

logger = logging.getLogger(__name__)


@dataclass
class Container:
    store: LedgerStore
    sink: NotificationSink
    tokens: TokenCodec
    accounts: AccountService
    markets: MarketService
    wagers: WagerService
    settlement: SettlementService
    admin: AdminService
    scheduler: LifecycleScheduler
    admin_external_ids: frozenset[str] = frozenset()
    scheduler_enabled: bool = True
    redis: aioredis.Redis | None = None

    async def start(self) -> None:
        await self.store.ping()
        if isinstance(self.sink, RedisNotificationSink):
            self.sink.start()
        if self.scheduler_enabled:
            self.scheduler.start()

    async def stop(self) -> None:
        # Scheduler first so an in-flight finalize can still publish
        await self.scheduler.stop()
        if isinstance(self.sink, RedisNotificationSink):
            await self.sink.stop()
        if self.redis is not None:
            await close_redis(self.redis)
        await self.store.dispose()


def assemble(
    store: LedgerStore,
    sink: NotificationSink,
    tokens: TokenCodec,
    *,
    account_repo: AccountRepositoryProtocol | None = None,
    market_repo: MarketRepositoryProtocol | None = None,
    wager_repo: WagerRepositoryProtocol | None = None,
    admin_external_ids: Iterable[str] = (),
    welcome_bonus: int = 1000,
    bailout_amount: int = 500,
    bailout_cooldown: timedelta = timedelta(hours=24),
    min_lead: timedelta = timedelta(hours=1),
    dispute_window: timedelta = timedelta(hours=24),
    scheduler_interval_seconds: float = 60.0,
    scheduler_enabled: bool = True,
    clock: Clock = utc_now,
    redis: aioredis.Redis | None = None,
) -> Container:
    account_repo = account_repo or AccountRepository()
    market_repo = market_repo or MarketRepository()
    wager_repo = wager_repo or WagerRepository()

    accounts = AccountService(
        store,
        account_repo,
        welcome_bonus=welcome_bonus,
        bailout_amount=bailout_amount,
        bailout_cooldown=bailout_cooldown,
        clock=clock,
    )
    markets = MarketService(
        store, sink, market_repo, account_repo, min_lead=min_lead, clock=clock
    )
    wagers = WagerService(store, wager_repo, account_repo, market_repo, clock=clock)
    settlement = SettlementService(
        store, sink, market_repo, wager_repo, account_repo, clock=clock
    )
    admin = AdminService(store, markets, settlement, account_repo)
    scheduler = LifecycleScheduler(
        markets,
        settlement,
        interval_seconds=scheduler_interval_seconds,
        dispute_window=dispute_window,
    )
    return Container(
        store=store,
        sink=sink,
        tokens=tokens,
        accounts=accounts,
        markets=markets,
        wagers=wagers,
        settlement=settlement,
        admin=admin,
        scheduler=scheduler,
        admin_external_ids=frozenset(admin_external_ids),
        scheduler_enabled=scheduler_enabled,
        redis=redis,
    )


def build_container(settings: Settings) -> Container:
    store = LedgerStore.from_url(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        max_retries=settings.STORE_MAX_RETRIES,
    )
    redis: aioredis.Redis | None = None
    sink: NotificationSink
    if settings.NOTIFY_ENABLED:
        redis = create_redis(
            settings.REDIS_URL, socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS
        )
        sink = RedisNotificationSink(
            redis,
            settings.NOTIFY_CHANNEL,
            drain_timeout=settings.NOTIFY_DRAIN_TIMEOUT_SECONDS,
        )
    else:
        sink = LoggingNotificationSink()
    tokens = TokenCodec(
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        expire_minutes=settings.JWT_EXPIRE_MINUTES,
    )
    logger.info(
        "container built notify=%s scheduler=%s dispute_window=%sm",
        "redis" if redis else "log",
        settings.SCHEDULER_ENABLED,
        settings.DISPUTE_WINDOW_MINUTES,
    )
    return assemble(
        store,
        sink,
        tokens,
        admin_external_ids=settings.ADMIN_EXTERNAL_IDS,
        welcome_bonus=settings.WELCOME_BONUS,
        bailout_amount=settings.BAILOUT_AMOUNT,
        bailout_cooldown=timedelta(hours=settings.BAILOUT_COOLDOWN_HOURS),
        min_lead=timedelta(minutes=settings.MARKET_MIN_LEAD_MINUTES),
        dispute_window=timedelta(minutes=settings.DISPUTE_WINDOW_MINUTES),
        scheduler_interval_seconds=settings.SCHEDULER_INTERVAL_SECONDS,
        scheduler_enabled=settings.SCHEDULER_ENABLED,
        redis=redis,
    )
