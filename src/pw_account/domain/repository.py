"""Repository Protocol: dependency inversion for testability.

Unit tests inject an in-memory double that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pw_account.domain.models import (
    Account,
    ConservationViolation,
    LeaderboardEntry,
    LedgerEntry,
)
from src.pw_common.enums import LedgerSource


class AccountRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, account_id: int) -> Account | None: ...

    async def get_account_for_update(
        self, db: AsyncSession, account_id: int
    ) -> Account | None: ...

    async def get_by_external_id(
        self, db: AsyncSession, external_id: str
    ) -> Account | None: ...

    async def create_account(
        self, db: AsyncSession, external_id: str, display_name: str
    ) -> Account | None: ...

    async def credit(
        self,
        db: AsyncSession,
        account_id: int,
        amount: int,
        source: LedgerSource,
        description: str,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> tuple[Account, LedgerEntry]: ...

    async def debit(
        self,
        db: AsyncSession,
        account_id: int,
        amount: int,
        source: LedgerSource,
        description: str,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> tuple[Account, LedgerEntry]: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        account_id: int,
        cursor_id: int | None,
        limit: int,
        source: LedgerSource | None,
    ) -> list[LedgerEntry]: ...

    async def last_entry_at(
        self, db: AsyncSession, account_id: int, source: LedgerSource
    ) -> datetime | None: ...

    async def top_accounts(self, db: AsyncSession, limit: int) -> list[LeaderboardEntry]: ...

    async def find_conservation_violations(
        self, db: AsyncSession
    ) -> list[ConservationViolation]: ...
