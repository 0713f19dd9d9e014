"""MarketRepository: concrete implementation of MarketRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Status changes are conditional UPDATEs (WHERE status IN ...): a row count of
zero means another transaction moved the market first, and the caller
decides which error that is.
"""

from datetime import datetime

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pw_common.enums import MarketStatus, Outcome
from src.pw_common.errors import InternalError
from src.pw_market.domain.lifecycle import FINALIZABLE_STATUSES
from src.pw_market.domain.models import Market, MarketView, PoolTotals

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_MARKET_COLUMNS = (
    "id, creator_id, question, status, outcome, resolved_at, "
    "deadline, created_at, updated_at"
)

_CREATE_MARKET_SQL = text(f"""
    INSERT INTO markets (creator_id, question, status, deadline)
    VALUES (:creator_id, :question, 'ACTIVE', :deadline)
    RETURNING {_MARKET_COLUMNS}
""")

_GET_MARKET_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE id = :market_id
""")

_GET_MARKET_FOR_UPDATE_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE id = :market_id
    FOR UPDATE
""")

_LIST_MARKETS_SQL = text("""
    SELECT m.id, m.creator_id, m.question, m.status, m.outcome, m.resolved_at,
           m.deadline, m.created_at, m.updated_at,
           COALESCE(SUM(w.amount) FILTER (WHERE w.outcome = 'YES'), 0) AS yes_pool,
           COALESCE(SUM(w.amount) FILTER (WHERE w.outcome = 'NO'), 0) AS no_pool
    FROM markets m
    LEFT JOIN wagers w ON w.market_id = m.id
    WHERE
        (CAST(:status AS TEXT) IS NULL OR m.status = CAST(:status AS TEXT))
        AND (CAST(:cursor_id AS BIGINT) IS NULL OR m.id < CAST(:cursor_id AS BIGINT))
    GROUP BY m.id
    ORDER BY m.id DESC
    LIMIT :limit
""")

_POOL_TOTALS_SQL = text("""
    SELECT COALESCE(SUM(amount) FILTER (WHERE outcome = 'YES'), 0) AS yes_pool,
           COALESCE(SUM(amount) FILTER (WHERE outcome = 'NO'), 0) AS no_pool
    FROM wagers
    WHERE market_id = :market_id
""")

_RECORD_OUTCOME_SQL = text(f"""
    UPDATE markets
    SET status = 'RESOLVED',
        outcome = :outcome,
        resolved_at = :resolved_at,
        updated_at = NOW()
    WHERE id = :market_id AND status IN ('ACTIVE', 'LOCKED')
    RETURNING {_MARKET_COLUMNS}
""")

_MARK_DISPUTED_SQL = text(f"""
    UPDATE markets
    SET status = 'DISPUTED',
        updated_at = NOW()
    WHERE id = :market_id AND status = 'RESOLVED'
    RETURNING {_MARKET_COLUMNS}
""")

_LOCK_EXPIRED_SQL = text(f"""
    UPDATE markets
    SET status = 'LOCKED',
        updated_at = NOW()
    WHERE status = 'ACTIVE' AND deadline <= :now
    RETURNING {_MARKET_COLUMNS}
""")

_PENDING_AUTO_LOCK_SQL = text("""
    SELECT id
    FROM markets
    WHERE status = 'ACTIVE' AND deadline <= :now
    ORDER BY id
""")

_PENDING_AUTO_FINALIZE_SQL = text("""
    SELECT id
    FROM markets
    WHERE status = 'RESOLVED' AND resolved_at < :cutoff
    ORDER BY id
""")

_LIST_BY_STATUS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE status = :status
    ORDER BY id
""")

_MARK_FINALIZED_SQL = text(f"""
    UPDATE markets
    SET status = 'FINALIZED',
        outcome = :outcome,
        resolved_at = :resolved_at,
        updated_at = NOW()
    WHERE id = :market_id AND status IN :from_statuses
    RETURNING {_MARKET_COLUMNS}
""").bindparams(bindparam("from_statuses", expanding=True))

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_market(row: object) -> Market:
    outcome = row.outcome  # type: ignore[attr-defined]
    return Market(
        id=row.id,  # type: ignore[attr-defined]
        creator_id=row.creator_id,  # type: ignore[attr-defined]
        question=row.question,  # type: ignore[attr-defined]
        status=MarketStatus(row.status),  # type: ignore[attr-defined]
        outcome=Outcome(outcome) if outcome else None,
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
        deadline=row.deadline,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_pools(row: object) -> PoolTotals:
    return PoolTotals(
        yes=int(row.yes_pool),  # type: ignore[attr-defined]
        no=int(row.no_pool),  # type: ignore[attr-defined]
    )


class MarketRepository:
    async def create_market(
        self, db: AsyncSession, creator_id: int, question: str, deadline: datetime
    ) -> Market:
        result = await db.execute(
            _CREATE_MARKET_SQL,
            {"creator_id": creator_id, "question": question, "deadline": deadline},
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Market insert returned no rows")
        return _row_to_market(row)

    async def get_market(self, db: AsyncSession, market_id: int) -> Market | None:
        result = await db.execute(_GET_MARKET_SQL, {"market_id": market_id})
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def get_market_for_update(
        self, db: AsyncSession, market_id: int
    ) -> Market | None:
        result = await db.execute(_GET_MARKET_FOR_UPDATE_SQL, {"market_id": market_id})
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def list_markets(
        self,
        db: AsyncSession,
        status: MarketStatus | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[MarketView]:
        result = await db.execute(
            _LIST_MARKETS_SQL,
            {
                "status": status.value if status else None,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [
            MarketView(market=_row_to_market(row), pools=_row_to_pools(row))
            for row in result.fetchall()
        ]

    async def pool_totals(self, db: AsyncSession, market_id: int) -> PoolTotals:
        result = await db.execute(_POOL_TOTALS_SQL, {"market_id": market_id})
        row = result.fetchone()
        return _row_to_pools(row) if row else PoolTotals()

    async def record_outcome(
        self, db: AsyncSession, market_id: int, outcome: Outcome, resolved_at: datetime
    ) -> Market | None:
        result = await db.execute(
            _RECORD_OUTCOME_SQL,
            {"market_id": market_id, "outcome": outcome.value, "resolved_at": resolved_at},
        )
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def mark_disputed(self, db: AsyncSession, market_id: int) -> Market | None:
        result = await db.execute(_MARK_DISPUTED_SQL, {"market_id": market_id})
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def lock_expired(self, db: AsyncSession, now: datetime) -> list[Market]:
        result = await db.execute(_LOCK_EXPIRED_SQL, {"now": now})
        return [_row_to_market(row) for row in result.fetchall()]

    async def pending_auto_lock(self, db: AsyncSession, now: datetime) -> list[int]:
        result = await db.execute(_PENDING_AUTO_LOCK_SQL, {"now": now})
        return [row.id for row in result.fetchall()]

    async def pending_auto_finalize(
        self, db: AsyncSession, cutoff: datetime
    ) -> list[int]:
        result = await db.execute(_PENDING_AUTO_FINALIZE_SQL, {"cutoff": cutoff})
        return [row.id for row in result.fetchall()]

    async def list_by_status(
        self, db: AsyncSession, status: MarketStatus
    ) -> list[Market]:
        result = await db.execute(_LIST_BY_STATUS_SQL, {"status": status.value})
        return [_row_to_market(row) for row in result.fetchall()]

    async def mark_finalized(
        self,
        db: AsyncSession,
        market_id: int,
        outcome: Outcome,
        resolved_at: datetime,
        from_statuses: frozenset[MarketStatus] = FINALIZABLE_STATUSES,
    ) -> Market | None:
        result = await db.execute(
            _MARK_FINALIZED_SQL,
            {
                "market_id": market_id,
                "outcome": outcome.value,
                "resolved_at": resolved_at,
                "from_statuses": sorted(s.value for s in from_statuses),
            },
        )
        row = result.fetchone()
        return _row_to_market(row) if row else None
