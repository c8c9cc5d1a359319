"""Integration tests for /admin endpoints (requires running PG)."""

from collections.abc import Awaitable, Callable

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio(loop_scope="session")

NewUser = Callable[[], Awaitable[dict[str, str]]]

ADMIN = "/api/v1/admin"


async def _user_id(client: AsyncClient, headers: dict[str, str]) -> str:
    resp = await client.get("/api/v1/account/balance", headers=headers)
    return str(resp.json()["data"]["user_id"])


async def _funded(client: AsyncClient, new_user: NewUser) -> tuple[dict[str, str], str]:
    headers = await new_user()
    await client.post("/api/v1/account/deposit", json={"amount_cents": 100000}, headers=headers)
    return headers, await _user_id(client, headers)


class TestRoleGate:
    async def test_user_forbidden(self, client: AsyncClient, new_user: NewUser) -> None:
        headers = await new_user()
        resp = await client.get(f"{ADMIN}/tiers", headers=headers)
        assert resp.status_code == 403

    async def test_seeded_tiers(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        resp = await client.get(f"{ADMIN}/tiers", headers=admin_headers)
        assert resp.status_code == 200
        levels = [t["level"] for t in resp.json()["data"]]
        assert 1 in levels


class TestAccountControls:
    async def test_adjust_balance_writes_ledger(
        self, client: AsyncClient, new_user: NewUser, admin_headers: dict[str, str]
    ) -> None:
        headers, user_id = await _funded(client, new_user)

        resp = await client.post(
            f"{ADMIN}/adjust-balance",
            json={"user_id": user_id, "direction": "DEBIT", "amount_cents": 2500, "reason": "fee"},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["balance_cents"] == 97500
        ledger = await client.get("/api/v1/account/ledger", headers=headers)
        top = ledger.json()["data"]["items"][0]
        assert top["entry_type"] == "ADMIN_DEBIT"
        assert top["description"] == "fee"

    async def test_debit_cannot_go_negative(
        self, client: AsyncClient, new_user: NewUser, admin_headers: dict[str, str]
    ) -> None:
        _, user_id = await _funded(client, new_user)

        resp = await client.post(
            f"{ADMIN}/adjust-balance",
            json={"user_id": user_id, "direction": "DEBIT", "amount_cents": 100001, "reason": "x"},
            headers=admin_headers,
        )

        assert resp.status_code == 422

    async def test_toggle_grab_blocks_match(
        self, client: AsyncClient, new_user: NewUser, admin_headers: dict[str, str]
    ) -> None:
        headers, user_id = await _funded(client, new_user)

        toggled = await client.post(f"{ADMIN}/accounts/{user_id}/toggle-grab", headers=admin_headers)
        assert toggled.json()["data"]["grab_enabled"] is False

        resp = await client.post("/api/v1/tasks/match", headers=headers)
        assert resp.status_code == 422
        assert resp.json()["data"]["reason"] == "GRAB_DISABLED"

    async def test_reset_progress_cancels_pending(
        self, client: AsyncClient, new_user: NewUser, admin_headers: dict[str, str]
    ) -> None:
        headers, user_id = await _funded(client, new_user)
        await client.post("/api/v1/tasks/match", headers=headers)

        resp = await client.post(
            f"{ADMIN}/accounts/{user_id}/reset-progress", headers=admin_headers
        )

        assert resp.json()["data"]["cancelled_orders"] == 1
        again = await client.post("/api/v1/tasks/match", headers=headers)
        assert again.status_code == 200

    async def test_set_tier(
        self, client: AsyncClient, new_user: NewUser, admin_headers: dict[str, str]
    ) -> None:
        headers, user_id = await _funded(client, new_user)

        resp = await client.put(
            f"{ADMIN}/accounts/{user_id}/tier", json={"level": 2}, headers=admin_headers
        )

        assert resp.status_code == 200
        balance = await client.get("/api/v1/account/balance", headers=headers)
        assert balance.json()["data"]["tier_level"] == 2


class TestDispatchOverride:
    async def test_override_drives_next_order(
        self, client: AsyncClient, new_user: NewUser, admin_headers: dict[str, str]
    ) -> None:
        headers, user_id = await _funded(client, new_user)
        saved = await client.put(
            f"{ADMIN}/accounts/{user_id}/dispatch-overrides",
            json={"position": 1, "min_amount_cents": 20000, "max_amount_cents": 30000},
            headers=admin_headers,
        )
        assert saved.json()["data"]["status"] == "PENDING"

        matched = (await client.post("/api/v1/tasks/match", headers=headers)).json()["data"]
        assert matched["origin"] == "DISPATCH"

        await client.post(
            "/api/v1/tasks/confirm", json={"match_token": matched["match_token"]}, headers=headers
        )
        listed = await client.get(
            f"{ADMIN}/accounts/{user_id}/dispatch-overrides", headers=admin_headers
        )
        assert listed.json()["data"][0]["status"] == "USED"

    async def test_delete_unknown(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        resp = await client.delete(f"{ADMIN}/dispatch-overrides/999999999", headers=admin_headers)
        assert resp.status_code == 404


class TestCatalog:
    async def test_create_list_delete(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        created = await client.post(
            f"{ADMIN}/products",
            json={"title": "Integration Mug", "price_cents": 1250, "tier_level": 99},
            headers=admin_headers,
        )
        assert created.status_code == 201
        product_id = created.json()["data"]["id"]

        listed = await client.get(f"{ADMIN}/products", params={"limit": 100}, headers=admin_headers)
        assert product_id in [p["id"] for p in listed.json()["data"]["items"]]

        deleted = await client.delete(f"{ADMIN}/products/{product_id}", headers=admin_headers)
        assert deleted.status_code == 200


class TestSystemParams:
    async def test_round_trip(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        current = (await client.get(f"{ADMIN}/system-params", headers=admin_headers)).json()["data"]

        resp = await client.put(f"{ADMIN}/system-params", json=current, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json()["data"] == current
