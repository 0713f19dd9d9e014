"""HTTP flow: create market, wager, resolve, dispute, settle."""
from datetime import timedelta

from tests.fakes import ADMIN_ID, QUESTION, bearer


def _deadline(world, hours: int = 2) -> str:
    return (world.clock() + timedelta(hours=hours)).isoformat()


async def _create(client, world, who="sub-creator"):
    resp = await client.post(
        "/api/v1/markets",
        json={"question": QUESTION, "deadline": _deadline(world)},
        headers=bearer(world, who),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


class TestMarketEndpoints:
    async def test_requires_token(self, client, world):
        resp = await client.post(
            "/api/v1/markets", json={"question": QUESTION, "deadline": _deadline(world)}
        )
        assert resp.status_code == 401

    async def test_create_and_get(self, client, world):
        market_id = await _create(client, world)
        resp = await client.get(f"/api/v1/markets/{market_id}")
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["status"] == "ACTIVE"
        assert body["data"]["pools"] == {"yes": 0, "no": 0, "total": 0, "total_display": "0 WSC"}

    async def test_short_question_rejected(self, client, world):
        resp = await client.post(
            "/api/v1/markets",
            json={"question": "short", "deadline": _deadline(world)},
            headers=bearer(world, "sub-creator"),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3006

    async def test_missing_market(self, client):
        resp = await client.get("/api/v1/markets/999")
        assert resp.status_code == 404
        assert resp.json()["code"] == 3001

    async def test_list_by_status(self, client, world):
        first = await _create(client, world)
        second = await _create(client, world)
        await client.post(
            f"/api/v1/markets/{first}/resolve",
            json={"outcome": "YES"},
            headers=bearer(world, "sub-creator"),
        )
        resp = await client.get("/api/v1/markets", params={"status": "ACTIVE"})
        items = resp.json()["data"]["items"]
        assert [m["id"] for m in items] == [second]


class TestWagerEndpoints:
    async def test_place_wager_updates_pools(self, client, world):
        market_id = await _create(client, world)
        resp = await client.post(
            f"/api/v1/markets/{market_id}/wagers",
            json={"outcome": "YES", "amount": 250},
            headers=bearer(world, "sub-alice"),
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["amount_display"] == "250 WSC"

        detail = (await client.get(f"/api/v1/markets/{market_id}")).json()["data"]
        assert detail["pools"]["yes"] == 250

    async def test_insufficient_funds(self, client, world):
        market_id = await _create(client, world)
        resp = await client.post(
            f"/api/v1/markets/{market_id}/wagers",
            json={"outcome": "NO", "amount": 5000},
            headers=bearer(world, "sub-alice"),
        )
        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == 2001
        assert body["data"] is None

    async def test_zero_amount(self, client, world):
        market_id = await _create(client, world)
        resp = await client.post(
            f"/api/v1/markets/{market_id}/wagers",
            json={"outcome": "NO", "amount": 0},
            headers=bearer(world, "sub-alice"),
        )
        assert resp.json()["code"] == 4002

    async def test_expired(self, client, world):
        market_id = await _create(client, world)
        world.clock.advance(timedelta(hours=3))
        resp = await client.post(
            f"/api/v1/markets/{market_id}/wagers",
            json={"outcome": "YES", "amount": 10},
            headers=bearer(world, "sub-alice"),
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == 3003


class TestSettlementFlow:
    async def test_resolve_then_auto_finalize(self, client, world):
        market_id = await _create(client, world)
        for who, side in (("sub-alice", "YES"), ("sub-bob", "NO")):
            await client.post(
                f"/api/v1/markets/{market_id}/wagers",
                json={"outcome": side, "amount": 100},
                headers=bearer(world, who),
            )

        resp = await client.post(
            f"/api/v1/markets/{market_id}/resolve",
            json={"outcome": "YES"},
            headers=bearer(world, "sub-creator"),
        )
        assert resp.json()["data"]["status"] == "RESOLVED"

        world.clock.advance(timedelta(hours=25))
        await world.container.scheduler.run_once()

        me = (await client.get("/api/v1/me", headers=bearer(world, "sub-alice"))).json()["data"]
        assert me["balance"] == 1100
        assert me["stats"]["wins"] == 1

        wagers = (
            await client.get("/api/v1/me/wagers", headers=bearer(world, "sub-bob"))
        ).json()["data"]["items"]
        assert wagers[0]["status"] == "LOST"

    async def test_non_creator_cannot_resolve(self, client, world):
        market_id = await _create(client, world)
        resp = await client.post(
            f"/api/v1/markets/{market_id}/resolve",
            json={"outcome": "NO"},
            headers=bearer(world, "sub-mallory"),
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 1002

    async def test_dispute_then_admin_override(self, client, world):
        market_id = await _create(client, world)
        for who, side in (("sub-alice", "YES"), ("sub-bob", "NO")):
            await client.post(
                f"/api/v1/markets/{market_id}/wagers",
                json={"outcome": side, "amount": 100},
                headers=bearer(world, who),
            )
        await client.post(
            f"/api/v1/markets/{market_id}/resolve",
            json={"outcome": "YES"},
            headers=bearer(world, "sub-creator"),
        )
        resp = await client.post(
            f"/api/v1/markets/{market_id}/dispute", headers=bearer(world, "sub-bob")
        )
        assert resp.json()["data"]["status"] == "DISPUTED"

        world.clock.advance(timedelta(days=3))
        report = await world.container.scheduler.run_once()
        assert report.finalized == []

        resp = await client.post(
            f"/api/v1/admin/markets/{market_id}/finalize",
            json={"outcome": "NO"},
            headers=bearer(world, ADMIN_ID),
        )
        assert resp.json()["data"] == {"market_id": market_id, "payouts_processed": 1}

        bob = (await client.get("/api/v1/me", headers=bearer(world, "sub-bob"))).json()["data"]
        assert bob["balance"] == 1100
