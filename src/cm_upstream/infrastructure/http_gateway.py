"""HttpUpstreamGateway: httpx implementation of UpstreamGatewayProtocol.

Every upstream response is an envelope {code, msg|message, data}. code == 1
(settings.UPSTREAM_SUCCESS_CODE) is success; some read endpoints answer 0 or
omit code, which reads also accept. Mutations succeed only on the success
code. A non-2xx HTTP status is never a success, whatever the body says.
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from config.settings import settings
from src.cm_common.cents import cents_to_yuan_str
from src.cm_common.errors import (
    MalformedUpstreamResponseError,
    UpstreamRejectedError,
    UpstreamUnavailableError,
)
from src.cm_holding.domain.clock import RemoteEligibility
from src.cm_holding.domain.coupons import dedupe_coupons
from src.cm_holding.domain.models import Coupon, Holding
from src.cm_reservation.domain.models import Reservation
from src.cm_session.domain.models import CollectibleDetail, Session
from src.cm_upstream.domain.models import ActionResult, BidSubmission

logger = logging.getLogger(__name__)

_COLLECTIBLE_DETAIL = "/api/collectionItem/detail"
_SESSION_DETAIL = "/api/collectionSession/detail"
_BID_BUY = "/api/collectionReservation/bidBuy"
_RESERVATION_DETAIL = "/api/collectionReservation/reservationDetail"
_HOLDING_DETAIL = "/api/userCollection/detail"
_CONSIGNMENT_CHECK = "/api/collectionConsignment/consignmentCheck"
_CONSIGNMENT_COUPONS = "/api/user/consignmentCoupons"
_CONSIGN = "/api/collectionConsignment/consign"
_DELIVER = "/api/collectionConsignment/deliver"

_COUPON_STATUS_UNUSED = 1

T = TypeVar("T")


class UpstreamEnvelope(BaseModel):
    code: int | None = None
    msg: str | None = None
    message: str | None = None
    data: Any = None

    def is_success(self, success_code: int) -> bool:
        return self.code == success_code

    def has_data(self, success_code: int) -> bool:
        return self.code is None or self.code in (0, success_code)

    def text(self, default: str) -> str:
        return self.msg or self.message or default

    def data_dict(self) -> dict[str, Any]:
        return self.data if isinstance(self.data, dict) else {}


class HttpUpstreamGateway:
    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        success_code: int | None = None,
        coupon_page_limit: int | None = None,
        coupon_max_pages: int | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=settings.UPSTREAM_BASE_URL,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
        )
        self._success_code = success_code if success_code is not None else settings.UPSTREAM_SUCCESS_CODE
        self._page_limit = coupon_page_limit or settings.COUPON_PAGE_LIMIT
        self._max_pages = coupon_max_pages or settings.COUPON_MAX_PAGES

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------

    @staticmethod
    def _headers(token: str) -> dict[str, str]:
        if not token:
            return {}
        return {"ba-user-token": token, "ba-token": token, "batoken": token}

    async def _request(
        self,
        method: str,
        path: str,
        token: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> UpstreamEnvelope:
        try:
            resp = await self._client.request(
                method, path, params=params, json=json, headers=self._headers(token)
            )
        except httpx.HTTPError as exc:
            logger.warning("Upstream %s %s failed: %s", method, path, exc)
            raise UpstreamUnavailableError(type(exc).__name__) from exc

        if not resp.is_success:
            logger.warning("Upstream %s %s returned HTTP %d", method, path, resp.status_code)
            message, code = self._error_body(resp)
            if message:
                raise UpstreamRejectedError(message, code)
            raise UpstreamUnavailableError(f"HTTP {resp.status_code}")

        try:
            return UpstreamEnvelope.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise MalformedUpstreamResponseError(f"{method} {path}") from exc

    @staticmethod
    def _error_body(resp: httpx.Response) -> tuple[str | None, int | None]:
        """msg/message and code of an error reply, when its body is an envelope."""
        try:
            envelope = UpstreamEnvelope.model_validate(resp.json())
        except (ValueError, ValidationError):
            return None, None
        return envelope.msg or envelope.message, envelope.code

    @staticmethod
    def _decode(what: str, parse: Callable[[], T]) -> T:
        try:
            return parse()
        except ValueError as exc:
            raise MalformedUpstreamResponseError(f"{what}: {exc}") from exc

    async def _read(
        self, path: str, token: str, params: dict[str, Any]
    ) -> dict[str, Any] | None:
        envelope = await self._request("GET", path, token, params=params)
        if not envelope.has_data(self._success_code):
            raise UpstreamRejectedError(envelope.text("Request failed"), envelope.code)
        return envelope.data if isinstance(envelope.data, dict) and envelope.data else None

    async def _act(
        self, path: str, token: str, body: dict[str, Any], default_message: str
    ) -> ActionResult:
        envelope = await self._request("POST", path, token, json=body)
        ok = envelope.is_success(self._success_code)
        return ActionResult(
            ok=ok,
            code=envelope.code,
            message=envelope.text(default_message if ok else f"{default_message} failed"),
            data=envelope.data_dict(),
        )

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    async def get_collectible_detail(
        self, token: str, collectible_id: str
    ) -> CollectibleDetail | None:
        data = await self._read(_COLLECTIBLE_DETAIL, token, {"id": collectible_id})
        if not data:
            return None
        return self._decode("collectible detail", lambda: CollectibleDetail.from_wire(collectible_id, data))

    async def get_session_detail(self, token: str, session_id: str) -> Session | None:
        data = await self._read(_SESSION_DETAIL, token, {"id": session_id})
        if not data:
            return None
        return self._decode("session detail", lambda: Session.from_wire(session_id, data))

    async def get_reservation_detail(
        self, token: str, reservation_id: str
    ) -> Reservation | None:
        data = await self._read(_RESERVATION_DETAIL, token, {"id": reservation_id})
        if not data:
            return None
        return self._decode("reservation detail", lambda: Reservation.from_wire(data))

    async def get_holding(self, token: str, holding_id: str) -> Holding | None:
        data = await self._read(_HOLDING_DETAIL, token, {"user_collection_id": holding_id})
        if not data:
            return None
        holding = self._decode("holding detail", lambda: Holding.from_wire(data))
        return holding if holding.id else None

    async def get_consignment_eligibility(
        self, token: str, holding_id: str
    ) -> RemoteEligibility | None:
        data = await self._read(_CONSIGNMENT_CHECK, token, {"user_collection_id": holding_id})
        if not data:
            return None
        return self._decode("consignment check", lambda: RemoteEligibility.from_wire(data))

    async def list_unconsumed_coupons(self, token: str) -> list[Coupon]:
        pages: list[list[Coupon]] = []
        seen = 0
        page = 1
        has_more = True
        while has_more and page <= self._max_pages:
            data = await self._read(
                _CONSIGNMENT_COUPONS,
                token,
                {"page": page, "limit": self._page_limit, "status": _COUPON_STATUS_UNUSED},
            ) or {}
            raw_list = data.get("list") if isinstance(data.get("list"), list) else []
            coupons = self._decode(
                "coupon page", lambda: [Coupon.from_wire(c) for c in raw_list if isinstance(c, dict)]
            )
            if not coupons:
                break
            pages.append(coupons)
            seen += len(coupons)

            if isinstance(data.get("has_more"), bool):
                has_more = data["has_more"]
            elif isinstance(data.get("total"), int) and data["total"] > 0:
                has_more = seen < data["total"]
            else:
                has_more = len(coupons) >= self._page_limit
            page += 1

        if has_more and page > self._max_pages:
            logger.warning(
                "Coupon pages exceed safety limit: max_pages=%d loaded=%d",
                self._max_pages, seen,
            )
        return dedupe_coupons(pages)

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------

    async def submit_bid(self, token: str, bid: BidSubmission) -> ActionResult:
        body = {
            "session_id": bid.session_id,
            "zone_id": bid.zone_id,
            "package_id": bid.package_id,
            "extra_hashrate": bid.extra_hashrate,
            "quantity": bid.quantity,
        }
        return await self._act(_BID_BUY, token, body, "Reservation")

    async def submit_consignment(
        self, token: str, holding_id: str, price: int
    ) -> ActionResult:
        body = {"user_collection_id": holding_id, "price": cents_to_yuan_str(price)}
        return await self._act(_CONSIGN, token, body, "Consignment")

    async def submit_delivery(self, token: str, holding_id: str) -> ActionResult:
        return await self._act(_DELIVER, token, {"user_collection_id": holding_id}, "Delivery")


_gateway: HttpUpstreamGateway | None = None


def get_upstream_gateway() -> HttpUpstreamGateway:
    """Get or create the shared gateway (one httpx connection pool per process)."""
    global _gateway  # noqa: PLW0603
    if _gateway is None:
        _gateway = HttpUpstreamGateway()
    return _gateway


async def close_upstream_gateway() -> None:
    global _gateway  # noqa: PLW0603
    if _gateway is not None:
        await _gateway.aclose()
        _gateway = None
