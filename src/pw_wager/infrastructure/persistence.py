"""WagerRepository: concrete implementation of WagerRepositoryProtocol.

Wager rows are INSERT-only. A wager's settlement is found through the ledger:
WIN_PAYOUT / REFUND entries carry reference_type='WAGER' and the wager id.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pw_common.enums import LedgerSource, MarketStatus, Outcome
from src.pw_common.errors import InternalError
from src.pw_wager.domain.models import AccountStats, Wager, WagerHistoryItem

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_WAGER_COLUMNS = "id, account_id, market_id, outcome, amount, placed_at"

_INSERT_WAGER_SQL = text(f"""
    INSERT INTO wagers (account_id, market_id, outcome, amount, placed_at)
    VALUES (:account_id, :market_id, :outcome, :amount, :placed_at)
    RETURNING {_WAGER_COLUMNS}
""")

_LIST_FOR_MARKET_SQL = text(f"""
    SELECT {_WAGER_COLUMNS}
    FROM wagers
    WHERE market_id = :market_id
    ORDER BY id
""")

# At most one settlement entry exists per wager
_SETTLEMENT_JOIN = """
    LEFT JOIN ledger_entries le
           ON le.reference_type = 'WAGER'
          AND le.reference_id = CAST(w.id AS TEXT)
          AND le.source IN ('WIN_PAYOUT', 'REFUND')
"""

_LIST_FOR_ACCOUNT_SQL = text(f"""
    SELECT w.id AS wager_id, w.market_id, m.question, w.outcome, w.amount, w.placed_at,
           m.status AS market_status, m.outcome AS market_outcome,
           le.source AS settled_source, COALESCE(le.amount, 0) AS settled_amount
    FROM wagers w
    JOIN markets m ON m.id = w.market_id
    {_SETTLEMENT_JOIN}
    WHERE w.account_id = :account_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR w.id < CAST(:cursor_id AS BIGINT))
    ORDER BY w.id DESC
    LIMIT :limit
""")

_ACCOUNT_STATS_SQL = text(f"""
    SELECT COUNT(*) AS total_wagers,
           COALESCE(SUM(w.amount), 0) AS total_wagered,
           COUNT(*) FILTER (WHERE le.source = 'WIN_PAYOUT') AS wins,
           COUNT(*) FILTER (WHERE m.status = 'FINALIZED' AND le.id IS NULL) AS losses,
           COUNT(*) FILTER (WHERE le.source = 'REFUND') AS refunds,
           COUNT(*) FILTER (WHERE m.status <> 'FINALIZED') AS pending,
           COALESCE(SUM(le.amount) FILTER (WHERE le.source = 'WIN_PAYOUT'), 0) AS total_won
    FROM wagers w
    JOIN markets m ON m.id = w.market_id
    {_SETTLEMENT_JOIN}
    WHERE w.account_id = :account_id
""")


def _row_to_wager(row: object) -> Wager:
    return Wager(
        id=row.id,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        market_id=row.market_id,  # type: ignore[attr-defined]
        outcome=Outcome(row.outcome),  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        placed_at=row.placed_at,  # type: ignore[attr-defined]
    )


def _row_to_history(row: object) -> WagerHistoryItem:
    market_outcome = row.market_outcome  # type: ignore[attr-defined]
    settled_source = row.settled_source  # type: ignore[attr-defined]
    return WagerHistoryItem(
        wager_id=row.wager_id,  # type: ignore[attr-defined]
        market_id=row.market_id,  # type: ignore[attr-defined]
        question=row.question,  # type: ignore[attr-defined]
        outcome=Outcome(row.outcome),  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        placed_at=row.placed_at,  # type: ignore[attr-defined]
        market_status=MarketStatus(row.market_status),  # type: ignore[attr-defined]
        market_outcome=Outcome(market_outcome) if market_outcome else None,
        settled_source=LedgerSource(settled_source) if settled_source else None,
        settled_amount=int(row.settled_amount),  # type: ignore[attr-defined]
    )


class WagerRepository:
    async def insert_wager(
        self,
        db: AsyncSession,
        account_id: int,
        market_id: int,
        outcome: Outcome,
        amount: int,
        placed_at: datetime,
    ) -> Wager:
        result = await db.execute(
            _INSERT_WAGER_SQL,
            {
                "account_id": account_id,
                "market_id": market_id,
                "outcome": outcome.value,
                "amount": amount,
                "placed_at": placed_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Wager insert returned no rows")
        return _row_to_wager(row)

    async def list_for_market(self, db: AsyncSession, market_id: int) -> list[Wager]:
        result = await db.execute(_LIST_FOR_MARKET_SQL, {"market_id": market_id})
        return [_row_to_wager(row) for row in result.fetchall()]

    async def list_for_account(
        self,
        db: AsyncSession,
        account_id: int,
        cursor_id: int | None,
        limit: int,
    ) -> list[WagerHistoryItem]:
        result = await db.execute(
            _LIST_FOR_ACCOUNT_SQL,
            {"account_id": account_id, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_history(row) for row in result.fetchall()]

    async def account_stats(self, db: AsyncSession, account_id: int) -> AccountStats:
        result = await db.execute(_ACCOUNT_STATS_SQL, {"account_id": account_id})
        row = result.fetchone()
        if row is None:
            return AccountStats(0, 0, 0, 0, 0, 0, 0)
        return AccountStats(
            total_wagers=row.total_wagers,
            wins=row.wins,
            losses=row.losses,
            refunds=row.refunds,
            pending=row.pending,
            total_wagered=int(row.total_wagered),
            total_won=int(row.total_won),
        )
