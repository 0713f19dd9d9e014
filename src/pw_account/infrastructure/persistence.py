"""AccountRepository: concrete implementation of AccountRepositoryProtocol.

Every balance mutation is an atomic UPDATE ... RETURNING immediately followed
by the matching ledger INSERT, so balance == SUM(ledger_entries.amount) holds
at every commit. A debit returning 0 rows means insufficient funds.

Transaction ownership: the CALLER (application service via
LedgerStore.run_serializable) starts and commits the transaction.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pw_account.domain.models import (
    Account,
    ConservationViolation,
    LeaderboardEntry,
    LedgerEntry,
)
from src.pw_common.enums import LedgerSource
from src.pw_common.errors import AccountNotFoundError, InsufficientFundsError, InternalError

# ---------------------------------------------------------------------------
# SQL: accounts
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = "id, external_id, display_name, balance, created_at, updated_at"

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id = :account_id
""")

_GET_ACCOUNT_FOR_UPDATE_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id = :account_id
    FOR UPDATE
""")

_GET_BY_EXTERNAL_ID_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE external_id = :external_id
""")

_CREATE_ACCOUNT_SQL = text(f"""
    INSERT INTO accounts (external_id, display_name, balance)
    VALUES (:external_id, :display_name, 0)
    ON CONFLICT (external_id) DO NOTHING
    RETURNING {_ACCOUNT_COLUMNS}
""")

_CREDIT_SQL = text(f"""
    UPDATE accounts
    SET balance = balance + :amount,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_DEBIT_SQL = text(f"""
    UPDATE accounts
    SET balance = balance - :amount,
        updated_at = NOW()
    WHERE id = :account_id AND balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_TOP_ACCOUNTS_SQL = text("""
    SELECT ROW_NUMBER() OVER (ORDER BY balance DESC, id ASC) AS rank,
           id, display_name, balance
    FROM accounts
    ORDER BY balance DESC, id ASC
    LIMIT :limit
""")

_CONSERVATION_SQL = text("""
    SELECT a.id AS account_id, a.balance, COALESCE(SUM(l.amount), 0) AS ledger_sum
    FROM accounts a
    LEFT JOIN ledger_entries l ON l.account_id = a.id
    GROUP BY a.id, a.balance
    HAVING a.balance <> COALESCE(SUM(l.amount), 0)
    ORDER BY a.id
""")

# ---------------------------------------------------------------------------
# SQL: ledger_entries (append-only)
# ---------------------------------------------------------------------------

_LEDGER_COLUMNS = (
    "id, account_id, amount, source, balance_after, "
    "description, reference_type, reference_id, created_at"
)

_INSERT_LEDGER_SQL = text(f"""
    INSERT INTO ledger_entries
        (account_id, amount, source, balance_after,
         description, reference_type, reference_id)
    VALUES
        (:account_id, :amount, :source, :balance_after,
         :description, :reference_type, :reference_id)
    RETURNING {_LEDGER_COLUMNS}
""")

_LIST_LEDGER_SQL = text(f"""
    SELECT {_LEDGER_COLUMNS}
    FROM ledger_entries
    WHERE account_id = :account_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:source AS TEXT) IS NULL OR source = CAST(:source AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_LAST_ENTRY_AT_SQL = text("""
    SELECT MAX(created_at)
    FROM ledger_entries
    WHERE account_id = :account_id AND source = :source
""")


def _row_to_account(row: object) -> Account:
    return Account(
        id=row.id,  # type: ignore[attr-defined]
        external_id=row.external_id,  # type: ignore[attr-defined]
        display_name=row.display_name,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        source=LedgerSource(row.source),  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """Concrete repository: all balance changes atomic at the SQL level."""

    async def get_account(self, db: AsyncSession, account_id: int) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def get_account_for_update(
        self, db: AsyncSession, account_id: int
    ) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_FOR_UPDATE_SQL, {"account_id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def get_by_external_id(
        self, db: AsyncSession, external_id: str
    ) -> Account | None:
        result = await db.execute(_GET_BY_EXTERNAL_ID_SQL, {"external_id": external_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def create_account(
        self, db: AsyncSession, external_id: str, display_name: str
    ) -> Account | None:
        result = await db.execute(
            _CREATE_ACCOUNT_SQL,
            {"external_id": external_id, "display_name": display_name},
        )
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def credit(
        self,
        db: AsyncSession,
        account_id: int,
        amount: int,
        source: LedgerSource,
        description: str,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> tuple[Account, LedgerEntry]:
        result = await db.execute(_CREDIT_SQL, {"account_id": account_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        account = _row_to_account(row)
        entry = await self._append_entry(
            db, account, amount, source, description, reference_type, reference_id
        )
        return account, entry

    async def debit(
        self,
        db: AsyncSession,
        account_id: int,
        amount: int,
        source: LedgerSource,
        description: str,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> tuple[Account, LedgerEntry]:
        result = await db.execute(_DEBIT_SQL, {"account_id": account_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            current = await self.get_account(db, account_id)
            if current is None:
                raise AccountNotFoundError(account_id)
            raise InsufficientFundsError(amount, current.balance)
        account = _row_to_account(row)
        entry = await self._append_entry(
            db, account, -amount, source, description, reference_type, reference_id
        )
        return account, entry

    async def _append_entry(
        self,
        db: AsyncSession,
        account: Account,
        amount: int,
        source: LedgerSource,
        description: str,
        reference_type: str | None,
        reference_id: str | None,
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "account_id": account.id,
                "amount": amount,
                "source": source.value,
                "balance_after": account.balance,
                "description": description,
                "reference_type": reference_type,
                "reference_id": reference_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_ledger(row)

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        account_id: int,
        cursor_id: int | None,
        limit: int,
        source: LedgerSource | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "account_id": account_id,
                "cursor_id": cursor_id,
                "source": source.value if source else None,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]

    async def last_entry_at(
        self, db: AsyncSession, account_id: int, source: LedgerSource
    ) -> datetime | None:
        result = await db.execute(
            _LAST_ENTRY_AT_SQL, {"account_id": account_id, "source": source.value}
        )
        return result.scalar_one_or_none()

    async def top_accounts(self, db: AsyncSession, limit: int) -> list[LeaderboardEntry]:
        result = await db.execute(_TOP_ACCOUNTS_SQL, {"limit": limit})
        return [
            LeaderboardEntry(
                rank=row.rank,
                account_id=row.id,
                display_name=row.display_name,
                balance=row.balance,
            )
            for row in result.fetchall()
        ]

    async def find_conservation_violations(
        self, db: AsyncSession
    ) -> list[ConservationViolation]:
        result = await db.execute(_CONSERVATION_SQL)
        return [
            ConservationViolation(
                account_id=row.account_id,
                balance=row.balance,
                ledger_sum=int(row.ledger_sum),
            )
            for row in result.fetchall()
        ]
