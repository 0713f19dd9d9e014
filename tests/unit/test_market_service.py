"""MarketService over the in-memory store."""
from datetime import datetime, timedelta

import pytest

from src.pw_common.enums import MarketStatus, Outcome
from src.pw_common.errors import (
    AccountNotFoundError,
    ForbiddenError,
    InvalidDeadlineError,
    InvalidOutcomeError,
    InvalidQuestionError,
    InvalidStateTransitionError,
    MarketNotFoundError,
)
from tests.fakes import QUESTION


class TestCreateMarket:
    async def test_creates_active_market(self, world):
        alice = await world.open("alice")
        deadline = world.clock() + timedelta(hours=3)
        market = await world.container.markets.create_market(alice, f"  {QUESTION}  ", deadline)
        assert market.status is MarketStatus.ACTIVE
        assert market.question == QUESTION
        assert market.outcome is None
        [event] = world.sink.of_type("market.created")
        assert event.market_id == market.id

    @pytest.mark.parametrize("question", ["too short", "x" * 141, "   "])
    async def test_rejects_question_length(self, world, question):
        alice = await world.open("alice")
        with pytest.raises(InvalidQuestionError):
            await world.container.markets.create_market(
                alice, question, world.clock() + timedelta(hours=3)
            )

    async def test_rejects_deadline_inside_min_lead(self, world):
        alice = await world.open("alice")
        with pytest.raises(InvalidDeadlineError):
            await world.container.markets.create_market(
                alice, QUESTION, world.clock() + timedelta(minutes=59)
            )

    async def test_rejects_naive_deadline(self, world):
        alice = await world.open("alice")
        with pytest.raises(InvalidDeadlineError):
            await world.container.markets.create_market(alice, QUESTION, datetime(2030, 1, 1))

    async def test_unknown_creator(self, world):
        with pytest.raises(AccountNotFoundError):
            await world.container.markets.create_market(
                42, QUESTION, world.clock() + timedelta(hours=3)
            )
        assert world.state.markets == {}


class TestReads:
    async def test_get_market_with_pools(self, world):
        alice = await world.open("alice")
        bob = await world.open("bob")
        market = await world.market(alice)
        await world.container.wagers.place_wager(alice, market, "YES", 100)
        await world.container.wagers.place_wager(bob, market, "NO", 40)

        detail = await world.container.markets.get_market(market)
        assert detail.pools.yes == 100
        assert detail.pools.no == 40
        assert detail.pools.total == 140

    async def test_get_market_missing(self, world):
        with pytest.raises(MarketNotFoundError):
            await world.container.markets.get_market(1)

    async def test_list_filter_and_cursor(self, world):
        alice = await world.open("alice")
        ids = [await world.market(alice) for _ in range(3)]
        await world.container.markets.declare_outcome(ids[0], alice, "YES")

        active = await world.container.markets.list_markets(MarketStatus.ACTIVE, None, 1)
        assert [m.id for m in active.items] == [ids[2]]
        assert active.has_more is True

        rest = await world.container.markets.list_markets(
            MarketStatus.ACTIVE, active.next_cursor, 10
        )
        assert [m.id for m in rest.items] == [ids[1]]
        assert rest.has_more is False


class TestDeclareOutcome:
    async def test_creator_resolves(self, world):
        alice = await world.open("alice")
        market = await world.market(alice)
        resolved = await world.container.markets.declare_outcome(market, alice, "no")
        assert resolved.status is MarketStatus.RESOLVED
        assert resolved.outcome is Outcome.NO
        assert resolved.resolved_at == world.clock()
        assert len(world.sink.of_type("market.resolved")) == 1

    async def test_resolve_from_locked(self, world):
        alice = await world.open("alice")
        market = await world.market(alice)
        world.clock.advance(timedelta(hours=3))
        await world.container.markets.lock_expired_markets()
        assert world.status(market) is MarketStatus.LOCKED
        await world.container.markets.declare_outcome(market, alice, "YES")
        assert world.status(market) is MarketStatus.RESOLVED

    async def test_non_creator_forbidden(self, world):
        alice = await world.open("alice")
        bob = await world.open("bob")
        market = await world.market(alice)
        with pytest.raises(ForbiddenError):
            await world.container.markets.declare_outcome(market, bob, "YES")
        assert world.status(market) is MarketStatus.ACTIVE
        assert world.sink.of_type("market.resolved") == []

    async def test_invalid_outcome(self, world):
        alice = await world.open("alice")
        market = await world.market(alice)
        with pytest.raises(InvalidOutcomeError):
            await world.container.markets.declare_outcome(market, alice, "MAYBE")

    async def test_cannot_resolve_twice(self, world):
        alice = await world.open("alice")
        market = await world.market(alice)
        await world.container.markets.declare_outcome(market, alice, "YES")
        with pytest.raises(InvalidStateTransitionError):
            await world.container.markets.declare_outcome(market, alice, "NO")
        assert world.state.markets[market].outcome is Outcome.YES


class TestRaiseDispute:
    async def test_any_account_holder_disputes(self, world):
        alice = await world.open("alice")
        bob = await world.open("bob")
        market = await world.market(alice)
        await world.container.markets.declare_outcome(market, alice, "YES")
        disputed = await world.container.markets.raise_dispute(market, bob)
        assert disputed.status is MarketStatus.DISPUTED
        assert disputed.outcome is Outcome.YES
        [event] = world.sink.of_type("market.disputed")
        assert event.disputed_by == bob

    async def test_only_from_resolved(self, world):
        alice = await world.open("alice")
        market = await world.market(alice)
        with pytest.raises(InvalidStateTransitionError):
            await world.container.markets.raise_dispute(market, alice)

    async def test_second_dispute_rejected(self, world):
        alice = await world.open("alice")
        market = await world.market(alice)
        await world.container.markets.declare_outcome(market, alice, "YES")
        await world.container.markets.raise_dispute(market, alice)
        with pytest.raises(InvalidStateTransitionError):
            await world.container.markets.raise_dispute(market, alice)

    async def test_unknown_caller(self, world):
        alice = await world.open("alice")
        market = await world.market(alice)
        await world.container.markets.declare_outcome(market, alice, "YES")
        with pytest.raises(AccountNotFoundError):
            await world.container.markets.raise_dispute(market, 999)
        assert world.status(market) is MarketStatus.RESOLVED


class TestTimeDriven:
    async def test_lock_expired_only_past_deadline(self, world):
        alice = await world.open("alice")
        soon = await world.market(alice, hours=2)
        later = await world.market(alice, hours=5)
        world.clock.advance(timedelta(hours=2))

        assert await world.container.markets.pending_auto_lock() == [soon]
        locked = await world.container.markets.lock_expired_markets()
        assert [m.id for m in locked] == [soon]
        assert world.status(later) is MarketStatus.ACTIVE
        [event] = world.sink.of_type("market.locked")
        assert event.creator_id == alice

    async def test_pending_auto_finalize_respects_window(self, world):
        alice = await world.open("alice")
        market = await world.market(alice)
        await world.container.markets.declare_outcome(market, alice, "YES")
        window = timedelta(hours=24)

        world.clock.advance(timedelta(hours=23))
        assert await world.container.markets.pending_auto_finalize(window) == []
        world.clock.advance(timedelta(hours=2))
        assert await world.container.markets.pending_auto_finalize(window) == [market]

    async def test_list_disputed(self, world):
        alice = await world.open("alice")
        m1 = await world.market(alice)
        await world.market(alice)
        await world.container.markets.declare_outcome(m1, alice, "NO")
        await world.container.markets.raise_dispute(m1, alice)
        assert [m.id for m in await world.container.markets.list_disputed()] == [m1]


def test_question_fixture_fits_bounds():
    assert 10 <= len(QUESTION) <= 140
