"""Integration tests for the match -> confirm flow (requires running PG).

Every test registers its own user so pending orders never leak across tests.
"""

import asyncio
from collections.abc import Awaitable, Callable

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio(loop_scope="session")

NewUser = Callable[[], Awaitable[dict[str, str]]]

TASKS = "/api/v1/tasks"


async def _funded_user(client: AsyncClient, new_user: NewUser, cents: int = 100000) -> dict[str, str]:
    headers = await new_user()
    await client.post("/api/v1/account/deposit", json={"amount_cents": cents}, headers=headers)
    return headers


async def _balance(client: AsyncClient, headers: dict[str, str]) -> dict[str, object]:
    resp = await client.get("/api/v1/account/balance", headers=headers)
    return dict(resp.json()["data"])


class TestMatch:
    async def test_unfunded_account_rejected(self, client: AsyncClient, new_user: NewUser) -> None:
        headers = await new_user()
        resp = await client.post(f"{TASKS}/match", headers=headers)
        assert resp.status_code == 422
        assert resp.json()["data"]["reason"] == "INSUFFICIENT_BALANCE"

    async def test_match_does_not_move_funds(self, client: AsyncClient, new_user: NewUser) -> None:
        headers = await _funded_user(client, new_user)

        resp = await client.post(f"{TASKS}/match", headers=headers)

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["match_token"].startswith("mt_")
        assert data["amount_cents"] >= 1000
        assert data["total_return_cents"] == data["amount_cents"] + data["commission_cents"]
        balance = await _balance(client, headers)
        assert balance["balance_cents"] == 100000
        assert balance["daily_order_count"] == 0

    async def test_second_match_reports_pending(
        self, client: AsyncClient, new_user: NewUser
    ) -> None:
        headers = await _funded_user(client, new_user)
        first = await client.post(f"{TASKS}/match", headers=headers)

        second = await client.post(f"{TASKS}/match", headers=headers)

        assert second.status_code == 409
        assert second.json()["data"] == {
            "reason": "PENDING_ORDER",
            "order_id": first.json()["data"]["order_id"],
        }

    async def test_concurrent_matches_create_one_order(
        self, client: AsyncClient, new_user: NewUser
    ) -> None:
        headers = await _funded_user(client, new_user)

        results = await asyncio.gather(
            *(client.post(f"{TASKS}/match", headers=headers) for _ in range(4))
        )

        assert sorted(r.status_code for r in results) == [200, 409, 409, 409]
        orders = await client.get(
            f"{TASKS}/my-orders", params={"status": "PENDING"}, headers=headers
        )
        assert len(orders.json()["data"]["items"]) == 1


class TestConfirm:
    async def test_confirm_credits_commission(self, client: AsyncClient, new_user: NewUser) -> None:
        headers = await _funded_user(client, new_user)
        matched = (await client.post(f"{TASKS}/match", headers=headers)).json()["data"]

        resp = await client.post(
            f"{TASKS}/confirm", json={"match_token": matched["match_token"]}, headers=headers
        )

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["order_id"] == matched["order_id"]
        assert data["new_daily_count"] == 1
        assert data["balance_cents"] == 100000 + matched["commission_cents"]

        ledger = await client.get(
            "/api/v1/account/ledger", params={"entry_type": "TASK_COMMISSION"}, headers=headers
        )
        entry = ledger.json()["data"]["items"][0]
        assert entry["amount_cents"] == matched["commission_cents"]
        assert entry["reference_id"] == matched["order_id"]

    async def test_token_is_single_use(self, client: AsyncClient, new_user: NewUser) -> None:
        headers = await _funded_user(client, new_user)
        token = (await client.post(f"{TASKS}/match", headers=headers)).json()["data"]["match_token"]
        await client.post(f"{TASKS}/confirm", json={"match_token": token}, headers=headers)

        again = await client.post(f"{TASKS}/confirm", json={"match_token": token}, headers=headers)

        assert again.status_code == 422
        assert again.json()["data"]["reason"] == "INVALID_OR_EXPIRED_TOKEN"

    async def test_concurrent_confirms_settle_once(
        self, client: AsyncClient, new_user: NewUser
    ) -> None:
        headers = await _funded_user(client, new_user)
        matched = (await client.post(f"{TASKS}/match", headers=headers)).json()["data"]

        results = await asyncio.gather(
            *(
                client.post(
                    f"{TASKS}/confirm", json={"match_token": matched["match_token"]}, headers=headers
                )
                for _ in range(3)
            )
        )

        assert sorted(r.status_code for r in results) == [200, 422, 422]
        balance = await _balance(client, headers)
        assert balance["balance_cents"] == 100000 + matched["commission_cents"]
        assert balance["daily_order_count"] == 1

    async def test_other_users_token_rejected(
        self, client: AsyncClient, new_user: NewUser
    ) -> None:
        owner = await _funded_user(client, new_user)
        intruder = await _funded_user(client, new_user)
        token = (await client.post(f"{TASKS}/match", headers=owner)).json()["data"]["match_token"]

        stolen = await client.post(f"{TASKS}/confirm", json={"match_token": token}, headers=intruder)
        assert stolen.status_code == 422

        # Rejection must not burn the owner's token
        mine = await client.post(f"{TASKS}/confirm", json={"match_token": token}, headers=owner)
        assert mine.status_code == 200

    async def test_match_again_after_confirm(self, client: AsyncClient, new_user: NewUser) -> None:
        headers = await _funded_user(client, new_user)
        token = (await client.post(f"{TASKS}/match", headers=headers)).json()["data"]["match_token"]
        await client.post(f"{TASKS}/confirm", json={"match_token": token}, headers=headers)

        resp = await client.post(f"{TASKS}/match", headers=headers)

        assert resp.status_code == 200


class TestSubmit:
    async def test_submit_by_order_id(self, client: AsyncClient, new_user: NewUser) -> None:
        headers = await _funded_user(client, new_user)
        matched = (await client.post(f"{TASKS}/match", headers=headers)).json()["data"]

        resp = await client.post(
            f"{TASKS}/submit", json={"order_id": matched["order_id"]}, headers=headers
        )
        assert resp.status_code == 200

        again = await client.post(
            f"{TASKS}/submit", json={"order_id": matched["order_id"]}, headers=headers
        )
        assert again.status_code == 409
        assert again.json()["data"]["reason"] == "ALREADY_PROCESSED"

    async def test_unknown_order(self, client: AsyncClient, new_user: NewUser) -> None:
        headers = await new_user()
        resp = await client.post(f"{TASKS}/submit", json={"order_id": "1"}, headers=headers)
        assert resp.status_code == 404


class TestOrderHistory:
    async def test_lists_completed(self, client: AsyncClient, new_user: NewUser) -> None:
        headers = await _funded_user(client, new_user)
        matched = (await client.post(f"{TASKS}/match", headers=headers)).json()["data"]
        await client.post(
            f"{TASKS}/confirm", json={"match_token": matched["match_token"]}, headers=headers
        )

        resp = await client.get(
            f"{TASKS}/my-orders", params={"status": "COMPLETED"}, headers=headers
        )

        items = resp.json()["data"]["items"]
        assert [i["order_id"] for i in items] == [matched["order_id"]]
        assert items[0]["settled_at"] is not None


class TestRetiredStart:
    async def test_start_is_gone(self, client: AsyncClient, new_user: NewUser) -> None:
        headers = await new_user()
        resp = await client.post(f"{TASKS}/start", headers=headers)
        assert resp.status_code == 410
