"""AccountService over the in-memory store."""
from datetime import timedelta

import pytest

from src.pw_common.enums import LedgerSource
from src.pw_common.errors import (
    AccountNotFoundError,
    BailoutCooldownError,
    BailoutNotEligibleError,
)
from tests.fakes import build_world


class TestOpenAccount:
    async def test_welcome_bonus_credited(self, world):
        account = await world.container.accounts.open_account("sub-alice", "alice")
        assert account.balance == 1000
        [entry] = world.state.ledger
        assert entry.source is LedgerSource.WELCOME
        assert entry.amount == 1000
        assert entry.balance_after == 1000

    async def test_idempotent_per_external_id(self, world):
        first = await world.container.accounts.open_account("sub-alice", "alice")
        again = await world.container.accounts.open_account("sub-alice", "Alice 2")
        assert again.id == first.id
        assert len(world.state.accounts) == 1
        assert len(world.state.ledger) == 1

    async def test_zero_bonus_writes_no_entry(self):
        world = build_world(welcome_bonus=0)
        account = await world.container.accounts.open_account("sub-bob", "bob")
        assert account.balance == 0
        assert world.state.ledger == []

    async def test_get_or_open(self, world):
        a = await world.container.accounts.get_or_open("sub-carol", "carol")
        b = await world.container.accounts.get_or_open("sub-carol", "carol")
        assert a.id == b.id


class TestReads:
    async def test_get_account(self, world):
        alice = await world.open("alice")
        resp = await world.container.accounts.get_account(alice)
        assert resp.balance == 1000
        assert resp.balance_display == "1,000 WSC"

    async def test_get_account_missing(self, world):
        with pytest.raises(AccountNotFoundError):
            await world.container.accounts.get_account(404)

    async def test_ledger_pagination(self, world):
        alice = await world.open("alice")
        market = await world.market(alice)
        for _ in range(4):
            await world.container.wagers.place_wager(alice, market, "YES", 10)

        page1 = await world.container.accounts.list_ledger(alice, None, 3)
        assert len(page1.items) == 3
        assert page1.has_more is True
        assert page1.items[0].id > page1.items[-1].id

        page2 = await world.container.accounts.list_ledger(alice, page1.next_cursor, 3)
        assert len(page2.items) == 2
        assert page2.has_more is False
        assert page2.next_cursor is None
        assert page2.items[-1].source == "WELCOME"

    async def test_ledger_source_filter(self, world):
        alice = await world.open("alice")
        market = await world.market(alice)
        await world.container.wagers.place_wager(alice, market, "NO", 25)
        resp = await world.container.accounts.list_ledger(
            alice, None, 10, LedgerSource.WAGER_PLACED
        )
        assert [i.amount for i in resp.items] == [-25]

    async def test_leaderboard_order(self, world):
        a = await world.open("a", balance=1000)
        b = await world.open("b", balance=3000)
        c = await world.open("c", balance=2000)
        board = await world.container.accounts.leaderboard(limit=2)
        assert [row.account_id for row in board] == [b, c]
        assert [row.rank for row in board] == [1, 2]
        assert a not in [row.account_id for row in board]


class TestBailout:
    async def test_credits_broke_account(self):
        world = build_world(welcome_bonus=0)
        alice = await world.open("alice")
        resp = await world.container.accounts.bailout(alice)
        assert resp.credited == 500
        assert resp.balance == 500
        assert world.state.ledger[-1].source is LedgerSource.BAILOUT

    async def test_not_eligible_with_balance(self, world):
        alice = await world.open("alice")
        with pytest.raises(BailoutNotEligibleError):
            await world.container.accounts.bailout(alice)
        assert world.balance(alice) == 1000

    async def test_cooldown(self):
        world = build_world(welcome_bonus=0, bailout_amount=100)
        alice = await world.open("alice")
        market = await world.market(alice)
        await world.container.accounts.bailout(alice)
        await world.container.wagers.place_wager(alice, market, "YES", 100)

        world.clock.advance(timedelta(hours=23))
        with pytest.raises(BailoutCooldownError):
            await world.container.accounts.bailout(alice)

        world.clock.advance(timedelta(hours=1))
        resp = await world.container.accounts.bailout(alice)
        assert resp.balance == 100

    async def test_missing_account(self, world):
        with pytest.raises(AccountNotFoundError):
            await world.container.accounts.bailout(99)
