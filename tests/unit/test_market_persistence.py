# tests/unit/test_market_persistence.py
"""Unit tests for MarketRepository using MagicMock AsyncSession."""
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pw_common.enums import MarketStatus, Outcome
from src.pw_common.errors import InternalError
from src.pw_market.domain.lifecycle import AUTO_FINALIZE_STATUSES
from src.pw_market.infrastructure.persistence import MarketRepository

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _make_market_row(**kwargs):
    """Build a mock DB row with all required fields."""
    row = MagicMock()
    row.id = kwargs.get("id", 1)
    row.creator_id = kwargs.get("creator_id", 1)
    row.question = kwargs.get("question", "Will it rain in Lisbon tomorrow?")
    row.status = kwargs.get("status", "ACTIVE")
    row.outcome = kwargs.get("outcome")
    row.resolved_at = kwargs.get("resolved_at")
    row.deadline = kwargs.get("deadline", _NOW)
    row.created_at = _NOW
    row.updated_at = _NOW
    row.yes_pool = kwargs.get("yes_pool", 0)
    row.no_pool = kwargs.get("no_pool", 0)
    return row


def _result(one=None, many=None):
    result = MagicMock()
    result.fetchone.return_value = one
    result.fetchall.return_value = many or []
    return result


@pytest.fixture
def db():
    return MagicMock()


class TestCreateMarket:
    async def test_returns_active_market(self, db):
        db.execute = AsyncMock(return_value=_result(one=_make_market_row(id=5)))
        market = await MarketRepository().create_market(db, 1, "Will it rain?", _NOW)
        assert market.id == 5
        assert market.status is MarketStatus.ACTIVE
        assert market.outcome is None

    async def test_no_row_is_internal_error(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))
        with pytest.raises(InternalError):
            await MarketRepository().create_market(db, 1, "Will it rain?", _NOW)


class TestGetMarket:
    async def test_maps_outcome(self, db):
        row = _make_market_row(status="RESOLVED", outcome="NO", resolved_at=_NOW)
        db.execute = AsyncMock(return_value=_result(one=row))
        market = await MarketRepository().get_market(db, 1)
        assert market is not None
        assert market.status is MarketStatus.RESOLVED
        assert market.outcome is Outcome.NO

    async def test_returns_none_when_not_found(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))
        assert await MarketRepository().get_market_for_update(db, 404) is None


class TestListMarkets:
    async def test_returns_views_with_pools(self, db):
        rows = [_make_market_row(id=i, yes_pool=100 * i, no_pool=50) for i in (3, 2)]
        db.execute = AsyncMock(return_value=_result(many=rows))
        views = await MarketRepository().list_markets(db, MarketStatus.ACTIVE, None, 20)
        assert [v.market.id for v in views] == [3, 2]
        assert views[0].pools.yes == 300
        assert views[0].pools.total == 350
        params = db.execute.call_args.args[1]
        assert params == {"status": "ACTIVE", "cursor_id": None, "limit": 20}

    async def test_status_filter_none(self, db):
        db.execute = AsyncMock(return_value=_result(many=[]))
        await MarketRepository().list_markets(db, None, 9, 5)
        assert db.execute.call_args.args[1]["status"] is None


class TestPoolTotals:
    async def test_sums(self, db):
        row = MagicMock(yes_pool=300, no_pool=200)
        db.execute = AsyncMock(return_value=_result(one=row))
        pools = await MarketRepository().pool_totals(db, 1)
        assert (pools.yes, pools.no, pools.total) == (300, 200, 500)


class TestConditionalUpdates:
    async def test_record_outcome_zero_rows(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))
        assert await MarketRepository().record_outcome(db, 1, Outcome.YES, _NOW) is None
        assert db.execute.call_args.args[1]["outcome"] == "YES"

    async def test_mark_disputed(self, db):
        row = _make_market_row(status="DISPUTED", outcome="YES", resolved_at=_NOW)
        db.execute = AsyncMock(return_value=_result(one=row))
        market = await MarketRepository().mark_disputed(db, 1)
        assert market is not None
        assert market.status is MarketStatus.DISPUTED

    async def test_mark_finalized(self, db):
        row = _make_market_row(status="FINALIZED", outcome="NO", resolved_at=_NOW)
        db.execute = AsyncMock(return_value=_result(one=row))
        market = await MarketRepository().mark_finalized(db, 1, Outcome.NO, _NOW)
        assert market is not None
        assert market.status is MarketStatus.FINALIZED
        assert db.execute.call_args.args[1] == {
            "market_id": 1, "outcome": "NO", "resolved_at": _NOW,
            "from_statuses": ["DISPUTED", "RESOLVED"],
        }

    async def test_mark_finalized_resolved_only(self, db):
        db.execute = AsyncMock(return_value=_result(one=None))
        market = await MarketRepository().mark_finalized(
            db, 1, Outcome.YES, _NOW, from_statuses=AUTO_FINALIZE_STATUSES
        )
        assert market is None
        assert db.execute.call_args.args[1]["from_statuses"] == ["RESOLVED"]

    async def test_lock_expired(self, db):
        rows = [_make_market_row(id=1, status="LOCKED"), _make_market_row(id=2, status="LOCKED")]
        db.execute = AsyncMock(return_value=_result(many=rows))
        locked = await MarketRepository().lock_expired(db, _NOW)
        assert [m.status for m in locked] == [MarketStatus.LOCKED, MarketStatus.LOCKED]


class TestSchedulerQueries:
    async def test_pending_auto_finalize_ids(self, db):
        db.execute = AsyncMock(return_value=_result(many=[MagicMock(id=4), MagicMock(id=8)]))
        assert await MarketRepository().pending_auto_finalize(db, _NOW) == [4, 8]
        assert db.execute.call_args.args[1] == {"cutoff": _NOW}

    async def test_pending_auto_lock_ids(self, db):
        db.execute = AsyncMock(return_value=_result(many=[MagicMock(id=1)]))
        assert await MarketRepository().pending_auto_lock(db, _NOW) == [1]
