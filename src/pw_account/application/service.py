"""AccountService: opening, reading and topping up play-money accounts.

Every mutation runs through LedgerStore.run_serializable so the balance
update and its ledger entry commit together or not at all.
"""

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.pw_account.application.schemas import (
    AccountResponse,
    BailoutResponse,
    LeaderboardItem,
    LedgerEntryItem,
    LedgerResponse,
)
from src.pw_account.domain.models import Account
from src.pw_account.domain.repository import AccountRepositoryProtocol
from src.pw_account.infrastructure.persistence import AccountRepository
from src.pw_common.cents import amount_to_display
from src.pw_common.cursor import cursor_decode, cursor_encode
from src.pw_common.database import LedgerStore
from src.pw_common.datetime_utils import Clock, ensure_utc, utc_now
from src.pw_common.enums import LedgerSource
from src.pw_common.errors import (
    AccountNotFoundError,
    BailoutCooldownError,
    BailoutNotEligibleError,
)

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(
        self,
        store: LedgerStore,
        repo: AccountRepositoryProtocol | None = None,
        welcome_bonus: int = 1000,
        bailout_amount: int = 500,
        bailout_cooldown: timedelta = timedelta(hours=24),
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._welcome_bonus = welcome_bonus
        self._bailout_amount = bailout_amount
        self._bailout_cooldown = bailout_cooldown
        self._clock = clock

    async def open_account(self, external_id: str, display_name: str) -> Account:
        """Open an account and credit the welcome bonus in one transaction.

        Idempotent per external_id: a second call returns the existing
        account without a second bonus.
        """

        async def work(db: AsyncSession) -> Account:
            created = await self._repo.create_account(db, external_id, display_name)
            if created is None:
                existing = await self._repo.get_by_external_id(db, external_id)
                if existing is None:
                    raise AccountNotFoundError(external_id)
                return existing
            if self._welcome_bonus <= 0:
                return created
            account, _ = await self._repo.credit(
                db,
                created.id,
                self._welcome_bonus,
                LedgerSource.WELCOME,
                "Welcome bonus",
            )
            logger.info(
                "account opened account_id=%s external_id=%s bonus=%d",
                account.id, external_id, self._welcome_bonus,
            )
            return account

        return await self._store.run_serializable(work)

    async def get_or_open(self, external_id: str, display_name: str) -> Account:
        async with self._store.session() as db:
            account = await self._repo.get_by_external_id(db, external_id)
        if account is not None:
            return account
        return await self.open_account(external_id, display_name)

    async def get_account(self, account_id: int) -> AccountResponse:
        async with self._store.session() as db:
            account = await self._repo.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return AccountResponse.from_domain(account)

    async def list_ledger(
        self,
        account_id: int,
        cursor: str | None,
        limit: int,
        source: LedgerSource | None = None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        async with self._store.session() as db:
            entries = await self._repo.list_ledger_entries(
                db, account_id, cursor_id, limit + 1, source
            )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def bailout(self, account_id: int) -> BailoutResponse:
        """Credit bailout_amount to a broke account, at most once per cooldown."""

        async def work(db: AsyncSession) -> Account:
            account = await self._repo.get_account_for_update(db, account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            if account.balance >= 1:
                raise BailoutNotEligibleError(account.balance)
            last = await self._repo.last_entry_at(db, account_id, LedgerSource.BAILOUT)
            if last is not None:
                available_at = ensure_utc(last) + self._bailout_cooldown
                if self._clock() < available_at:
                    raise BailoutCooldownError(available_at.isoformat())
            updated, _ = await self._repo.credit(
                db,
                account_id,
                self._bailout_amount,
                LedgerSource.BAILOUT,
                f"Bailout of {amount_to_display(self._bailout_amount)}",
            )
            return updated

        account = await self._store.run_serializable(work)
        logger.info("bailout credited account_id=%s amount=%d", account_id, self._bailout_amount)
        return BailoutResponse(
            credited=self._bailout_amount,
            balance=account.balance,
            balance_display=amount_to_display(account.balance),
        )

    async def leaderboard(self, limit: int = 50) -> list[LeaderboardItem]:
        async with self._store.session() as db:
            entries = await self._repo.top_accounts(db, limit)
        return [LeaderboardItem.from_domain(e) for e in entries]
