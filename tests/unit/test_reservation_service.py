"""Unit tests for ReservationApplicationService using a mock gateway."""

from unittest.mock import AsyncMock

import pytest

from src.cm_common.enums import ReservationStatus
from src.cm_common.errors import (
    BidQuantityOutOfRangeError,
    InsufficientBalanceError,
    MissingIdentifiersError,
    ReservationNotFoundError,
    UpstreamRejectedError,
    ZoneNotResolvableError,
)
from src.cm_reservation.application.schemas import QuoteRequest, SubmitBidRequest
from src.cm_reservation.application.service import ReservationApplicationService
from src.cm_reservation.domain.models import Reservation
from src.cm_session.domain.models import CollectibleDetail
from src.cm_upstream.domain.models import ActionResult


def _bid(**overrides: object) -> SubmitBidRequest:
    fields: dict = {
        "collectible_id": "c1",
        "session_id": "3",
        "zone_id": "6",
        "package_id": "11",
        "ceiling_price_cents": 100000,
        "available_hashrate": 20,
        "account_balance_cents": 500000,
    }
    fields.update(overrides)
    return SubmitBidRequest(**fields)


def _gateway() -> AsyncMock:
    gw = AsyncMock()
    gw.submit_bid.return_value = ActionResult(ok=True, code=1, message="预约成功", data={"reservation_id": 88})
    gw.get_session_detail.return_value = None
    return gw


class TestQuote:
    async def test_quote_with_known_context(self) -> None:
        gw = _gateway()
        svc = ReservationApplicationService(gw, base_hashrate=5, max_quantity=100)

        quote = await svc.quote("tok", QuoteRequest(**_bid(extra_hashrate=3).model_dump()))

        assert quote.frozen_amount_cents == 100000
        assert quote.frozen_amount_display == "¥1,000.00"
        assert quote.max_extra_hashrate == 15
        assert quote.required_hashrate == 8
        assert quote.affordable
        assert quote.price_source == "PRELOADED"
        gw.get_collectible_detail.assert_not_awaited()

    async def test_quote_reports_blocker_instead_of_raising(self) -> None:
        svc = ReservationApplicationService(_gateway(), base_hashrate=5, max_quantity=100)

        quote = await svc.quote("tok", QuoteRequest(**_bid(account_balance_cents=100).model_dump()))

        assert not quote.affordable
        assert "Insufficient balance" in quote.blocker

    async def test_quote_looks_up_missing_ceiling(self) -> None:
        gw = _gateway()
        gw.get_collectible_detail.return_value = CollectibleDetail(id="c1", price_zone_label="500元区")
        svc = ReservationApplicationService(gw, base_hashrate=5, max_quantity=100)

        quote = await svc.quote("tok", QuoteRequest(**_bid(ceiling_price_cents=None).model_dump()))

        assert quote.ceiling_price_cents == 50000
        assert quote.zone_id == "6"
        gw.get_collectible_detail.assert_awaited_once()

    async def test_unresolvable_ceiling(self) -> None:
        gw = _gateway()
        gw.get_collectible_detail.return_value = None
        svc = ReservationApplicationService(gw, base_hashrate=5, max_quantity=100)

        with pytest.raises(ZoneNotResolvableError):
            await svc.quote("tok", QuoteRequest(**_bid(ceiling_price_cents=None).model_dump()))


class TestSubmitBid:
    async def test_submits_resolved_ids(self) -> None:
        gw = _gateway()
        svc = ReservationApplicationService(gw, base_hashrate=5, max_quantity=100)

        result = await svc.submit_bid("tok", _bid(extra_hashrate=2))

        assert result.reservation_id == "88"
        assert result.frozen_amount_cents == 100000
        assert result.message == "预约成功"
        submitted = gw.submit_bid.await_args.args[1]
        assert (submitted.session_id, submitted.zone_id, submitted.package_id) == ("3", "6", "11")
        assert submitted.extra_hashrate == 2

    async def test_resolves_missing_zone(self) -> None:
        gw = _gateway()
        gw.get_collectible_detail.return_value = CollectibleDetail(
            id="c1", price_zone_label="1K区", session_id="3", zone_id="6", package_id="11"
        )
        svc = ReservationApplicationService(gw, base_hashrate=5, max_quantity=100)

        result = await svc.submit_bid("tok", _bid(zone_id=None, package_id=None, ceiling_price_cents=None))

        assert result.zone_id == "6"
        assert result.frozen_amount_cents == 100000

    async def test_zero_zone_id_treated_as_missing(self) -> None:
        gw = _gateway()
        gw.get_collectible_detail.return_value = None
        svc = ReservationApplicationService(gw, base_hashrate=5, max_quantity=100)

        with pytest.raises(MissingIdentifiersError) as exc_info:
            await svc.submit_bid("tok", _bid(zone_id=0))

        assert "zone_id" in exc_info.value.message
        gw.submit_bid.assert_not_awaited()

    async def test_quantity_checked_before_network(self) -> None:
        gw = _gateway()
        svc = ReservationApplicationService(gw, base_hashrate=5, max_quantity=100)

        with pytest.raises(BidQuantityOutOfRangeError):
            await svc.submit_bid("tok", _bid(quantity=0))

        gw.get_collectible_detail.assert_not_awaited()

    async def test_explicit_zero_max_quantity_is_kept(self) -> None:
        gw = _gateway()
        svc = ReservationApplicationService(gw, base_hashrate=5, max_quantity=0)

        with pytest.raises(BidQuantityOutOfRangeError):
            await svc.submit_bid("tok", _bid(quantity=1))

        gw.submit_bid.assert_not_awaited()

    async def test_balance_checked_before_submit(self) -> None:
        gw = _gateway()
        svc = ReservationApplicationService(gw, base_hashrate=5, max_quantity=100)

        with pytest.raises(InsufficientBalanceError):
            await svc.submit_bid("tok", _bid(account_balance_cents=99999))

        gw.submit_bid.assert_not_awaited()

    async def test_upstream_rejection_verbatim(self) -> None:
        gw = _gateway()
        gw.submit_bid.return_value = ActionResult(ok=False, code=0, message="本场次已结束")
        svc = ReservationApplicationService(gw, base_hashrate=5, max_quantity=100)

        with pytest.raises(UpstreamRejectedError) as exc_info:
            await svc.submit_bid("tok", _bid())

        assert exc_info.value.message == "本场次已结束"


class TestGetReservation:
    async def test_refund_fields(self) -> None:
        gw = _gateway()
        gw.get_reservation_detail.return_value = Reservation(
            id="88", session_id="3", zone_id="6", package_id="11",
            frozen_amount=100000, status=ReservationStatus.APPROVED, actual_buy_price=75000,
        )
        svc = ReservationApplicationService(gw)

        result = await svc.get_reservation("tok", "88")

        assert result.status == "APPROVED"
        assert result.is_terminal
        assert result.refund_diff_cents == 25000
        assert result.refund_amount_display == "¥250.00"

    async def test_not_found(self) -> None:
        gw = _gateway()
        gw.get_reservation_detail.return_value = None

        with pytest.raises(ReservationNotFoundError):
            await ReservationApplicationService(gw).get_reservation("tok", "404")
