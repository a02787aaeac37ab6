"""Upstream gateway Protocol: the collaborator operations the engine consumes.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the HTTP implementation.

Reads return None when the backend has no data. Business-rule failures on reads
raise UpstreamRejectedError; mutating calls return ActionResult so the caller
decides how to surface the server message. Transport failures raise
UpstreamUnavailableError.
"""

from typing import Protocol

from src.cm_holding.domain.clock import RemoteEligibility
from src.cm_holding.domain.models import Coupon, Holding
from src.cm_reservation.domain.models import Reservation
from src.cm_session.domain.models import CollectibleDetail, Session
from src.cm_upstream.domain.models import ActionResult, BidSubmission


class UpstreamGatewayProtocol(Protocol):
    async def get_collectible_detail(
        self, token: str, collectible_id: str
    ) -> CollectibleDetail | None: ...

    async def get_session_detail(self, token: str, session_id: str) -> Session | None: ...

    async def submit_bid(self, token: str, bid: BidSubmission) -> ActionResult: ...

    async def get_reservation_detail(
        self, token: str, reservation_id: str
    ) -> Reservation | None: ...

    async def get_holding(self, token: str, holding_id: str) -> Holding | None: ...

    async def get_consignment_eligibility(
        self, token: str, holding_id: str
    ) -> RemoteEligibility | None: ...

    async def list_unconsumed_coupons(self, token: str) -> list[Coupon]: ...

    async def submit_consignment(
        self, token: str, holding_id: str, price: int
    ) -> ActionResult: ...

    async def submit_delivery(self, token: str, holding_id: str) -> ActionResult: ...
