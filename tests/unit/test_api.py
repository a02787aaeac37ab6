"""API tests through the ASGI app with the upstream gateway mocked."""

import json
from unittest.mock import AsyncMock

from httpx import AsyncClient

from src.cm_common.enums import ConsignmentStatus
from src.cm_holding.domain.clock import RemoteEligibility
from src.cm_holding.domain.models import Coupon, Holding
from src.cm_upstream.domain.models import ActionResult

AUTH = {"Authorization": "Bearer tok-123"}
NOW = 1_700_000_000


def _holding(**overrides: object) -> Holding:
    fields: dict = {
        "id": "42",
        "title": "Bronze Deer",
        "price": 75000,
        "market_price": None,
        "purchase_time": NOW - 49 * 3600,
        "session_id": "3",
        "zone_id": "6",
    }
    fields.update(overrides)
    return Holding(**fields)


class TestHealth:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestAuth:
    async def test_missing_token(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/holdings/42/actions")
        assert resp.status_code == 401

    async def test_token_forwarded(self, client: AsyncClient, gateway: AsyncMock) -> None:
        gateway.get_holding.return_value = _holding()
        await client.get("/api/v1/holdings/42/eligibility", headers=AUTH)
        gateway.get_holding.assert_awaited_once_with("tok-123", "42")


class TestReservationEndpoints:
    async def test_quote(self, client: AsyncClient) -> None:
        body = {
            "collectible_id": "c1", "session_id": "3", "zone_id": "6", "package_id": "11",
            "ceiling_price_cents": 100000, "available_hashrate": 20, "account_balance_cents": 500000,
        }
        resp = await client.post("/api/v1/reservations/quote", json=body, headers=AUTH)

        assert resp.status_code == 200
        payload = resp.json()
        assert payload["code"] == 0
        assert payload["data"]["frozen_amount_cents"] == 100000
        assert payload["request_id"].startswith("req_")

    async def test_submit_missing_ids(self, client: AsyncClient, gateway: AsyncMock) -> None:
        gateway.get_collectible_detail.return_value = None
        body = {
            "collectible_id": "c1", "session_id": "3", "zone_id": 0,
            "ceiling_price_cents": 100000, "available_hashrate": 20, "account_balance_cents": 500000,
        }
        resp = await client.post("/api/v1/reservations", json=body, headers=AUTH)

        assert resp.status_code == 422
        assert resp.json()["code"] == 1002
        gateway.submit_bid.assert_not_awaited()

    async def test_submit_ok(self, client: AsyncClient, gateway: AsyncMock) -> None:
        gateway.submit_bid.return_value = ActionResult(ok=True, code=1, message="预约成功", data={"id": 88})
        body = {
            "collectible_id": "c1", "session_id": "3", "zone_id": "6", "package_id": "11",
            "ceiling_price_cents": 100000, "available_hashrate": 20, "account_balance_cents": 500000,
        }
        resp = await client.post("/api/v1/reservations", json=body, headers=AUTH)

        assert resp.status_code == 200
        assert resp.json()["message"] == "预约成功"
        assert resp.json()["data"]["reservation_id"] == "88"

    async def test_reservation_not_found(self, client: AsyncClient, gateway: AsyncMock) -> None:
        gateway.get_reservation_detail.return_value = None
        resp = await client.get("/api/v1/reservations/404", headers=AUTH)
        assert resp.status_code == 404
        assert resp.json()["code"] == 2005


class TestHoldingEndpoints:
    async def test_actions(self, client: AsyncClient, gateway: AsyncMock) -> None:
        gateway.get_holding.return_value = _holding()
        gateway.list_unconsumed_coupons.return_value = [Coupon(id="1", session_id="3", zone_id="6")]

        resp = await client.get("/api/v1/holdings/42/actions", headers=AUTH)

        data = resp.json()["data"]
        assert data["can_consign"] is True
        assert data["eligibility"]["source"] == "LOCAL"

    async def test_forced_delivery_needs_confirmation(self, client: AsyncClient, gateway: AsyncMock) -> None:
        gateway.get_holding.return_value = _holding(consignment_status=ConsignmentStatus.REJECTED)

        resp = await client.post("/api/v1/holdings/42/delivery", json={}, headers=AUTH)

        assert resp.status_code == 409
        assert resp.json()["code"] == 5004
        gateway.submit_delivery.assert_not_awaited()

    async def test_forced_delivery_confirmed(self, client: AsyncClient, gateway: AsyncMock) -> None:
        gateway.get_holding.return_value = _holding(consignment_status=ConsignmentStatus.REJECTED)
        gateway.submit_delivery.return_value = ActionResult(ok=True, code=1, message="提货成功")

        resp = await client.post("/api/v1/holdings/42/delivery", json={"confirm_forced": True}, headers=AUTH)

        assert resp.status_code == 200
        assert resp.json()["data"]["forced"] is True

    async def test_consignment_locked(self, client: AsyncClient, gateway: AsyncMock) -> None:
        gateway.get_holding.return_value = _holding()
        gateway.get_consignment_eligibility.return_value = RemoteEligibility(unlocked=False, remaining_seconds=7200)

        resp = await client.post("/api/v1/holdings/42/consignment", headers=AUTH)

        assert resp.status_code == 422
        assert resp.json()["code"] == 3001

    async def test_countdown_stream(self, client: AsyncClient, gateway: AsyncMock) -> None:
        gateway.get_holding.return_value = _holding()
        gateway.get_consignment_eligibility.return_value = RemoteEligibility(unlocked=False, remaining_seconds=1)

        resp = await client.get("/api/v1/holdings/42/countdown", headers=AUTH)

        assert resp.headers["content-type"].startswith("text/event-stream")
        frames = [json.loads(line[len("data: "):]) for line in resp.text.splitlines() if line.startswith("data: ")]
        assert frames[0]["remaining_seconds"] == 1
        assert frames[-1]["unlocked"] is True
