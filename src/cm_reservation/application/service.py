"""ReservationApplicationService: bid quoting, submission and settlement reads.

Submission order:
  1. quantity bounds (no network)
  2. resolve missing session/zone/package ids and the zone ceiling
  3. refuse incomplete ids (1002) or an unknown ceiling (1001)
  4. hashrate / balance / extra-hashrate checks against the frozen amount
  5. submit to the backend; a failure code surfaces its message verbatim
"""

import logging

from config.settings import settings
from src.cm_common.cents import cents_to_display
from src.cm_common.errors import (
    ExtraHashrateOutOfRangeError,
    InsufficientBalanceError,
    InsufficientHashrateError,
    MissingIdentifiersError,
    ReservationNotFoundError,
    UpstreamRejectedError,
    ZoneNotResolvableError,
)
from src.cm_reservation.application.schemas import (
    BidInput,
    QuoteResponse,
    ReservationResponse,
    SubmitBidResponse,
)
from src.cm_reservation.domain.funds import (
    check_bid_affordable,
    check_extra_hashrate,
    check_quantity,
    frozen_amount,
    max_extra_hashrate,
    required_hashrate,
)
from src.cm_session.domain.models import Zone
from src.cm_session.domain.resolver import ResolutionCache, ResolvedIds, ZoneSessionResolver
from src.cm_upstream.domain.gateway import UpstreamGatewayProtocol
from src.cm_upstream.domain.models import BidSubmission

logger = logging.getLogger(__name__)


class ReservationApplicationService:
    def __init__(
        self,
        gateway: UpstreamGatewayProtocol,
        resolver: ZoneSessionResolver | None = None,
        base_hashrate: int | None = None,
        max_quantity: int | None = None,
    ) -> None:
        self._gateway = gateway
        self._resolver = resolver or ZoneSessionResolver(gateway)
        self._base_hashrate = base_hashrate if base_hashrate is not None else settings.BASE_HASHRATE
        self._max_quantity = max_quantity if max_quantity is not None else settings.MAX_BID_QUANTITY

    async def _resolve(
        self, token: str, body: BidInput, cache: ResolutionCache | None
    ) -> ResolvedIds:
        cache = cache if cache is not None else ResolutionCache()
        cache.preload(
            body.collectible_id,
            session_id=body.session_id,
            zone_id=body.zone_id,
            package_id=body.package_id,
            ceiling_price=body.ceiling_price_cents,
        )
        resolved = await self._resolver.resolve(token, body.collectible_id, cache=cache)
        if resolved.ceiling_price is None and not cache.was_attempted(body.collectible_id):
            # Ids came complete from the caller but the ceiling did not: look it up once
            fresh = await self._resolver.resolve(token, body.collectible_id, cache=ResolutionCache())
            resolved = cache.record(body.collectible_id, resolved.merge(fresh))
            cache.mark_attempted(body.collectible_id)
        return resolved

    def _frozen(self, resolved: ResolvedIds, collectible_id: str, quantity: int) -> int:
        if resolved.ceiling_price is None:
            raise ZoneNotResolvableError(collectible_id)
        zone = Zone(id=resolved.zone_id or "", name="", ceiling_price=resolved.ceiling_price)
        return frozen_amount(zone, quantity)

    def _check_wallet(self, body: BidInput, frozen: int) -> None:
        check_bid_affordable(
            available_hashrate=body.available_hashrate,
            account_balance=body.account_balance_cents,
            base_hashrate=self._base_hashrate,
            extra_hashrate=body.extra_hashrate,
            frozen=frozen,
            quantity=body.quantity,
        )
        check_extra_hashrate(
            body.extra_hashrate, body.available_hashrate, self._base_hashrate, body.quantity
        )

    async def quote(
        self, token: str, body: BidInput, cache: ResolutionCache | None = None
    ) -> QuoteResponse:
        check_quantity(body.quantity, self._max_quantity)
        resolved = await self._resolve(token, body, cache)
        frozen = self._frozen(resolved, body.collectible_id, body.quantity)

        blocker: str | None = None
        try:
            self._check_wallet(body, frozen)
        except (
            InsufficientHashrateError,
            InsufficientBalanceError,
            ExtraHashrateOutOfRangeError,
        ) as exc:
            blocker = exc.message

        return QuoteResponse(
            session_id=resolved.session_id,
            zone_id=resolved.zone_id,
            package_id=resolved.package_id,
            ceiling_price_cents=resolved.ceiling_price or 0,
            ceiling_price_display=cents_to_display(resolved.ceiling_price or 0),
            price_source=resolved.price_source.name if resolved.price_source else None,
            quantity=body.quantity,
            frozen_amount_cents=frozen,
            frozen_amount_display=cents_to_display(frozen),
            base_hashrate=self._base_hashrate,
            extra_hashrate=body.extra_hashrate,
            max_extra_hashrate=max_extra_hashrate(
                body.available_hashrate, self._base_hashrate, body.quantity
            ),
            required_hashrate=required_hashrate(
                self._base_hashrate, body.extra_hashrate, body.quantity
            ),
            affordable=blocker is None,
            blocker=blocker,
        )

    async def submit_bid(
        self, token: str, body: BidInput, cache: ResolutionCache | None = None
    ) -> SubmitBidResponse:
        check_quantity(body.quantity, self._max_quantity)
        resolved = await self._resolve(token, body, cache)
        if not resolved.is_complete:
            logger.warning(
                "Bid for collectible %s refused, missing %s",
                body.collectible_id, ", ".join(resolved.missing),
            )
            raise MissingIdentifiersError(resolved.missing)
        frozen = self._frozen(resolved, body.collectible_id, body.quantity)
        self._check_wallet(body, frozen)

        result = await self._gateway.submit_bid(
            token,
            BidSubmission(
                session_id=resolved.session_id,
                zone_id=resolved.zone_id,
                package_id=resolved.package_id,
                extra_hashrate=body.extra_hashrate,
                quantity=body.quantity,
            ),
        )
        if not result.ok:
            raise UpstreamRejectedError(result.message, result.code)

        logger.info(
            "Bid submitted: collectible=%s session=%s zone=%s frozen=%d",
            body.collectible_id, resolved.session_id, resolved.zone_id, frozen,
        )
        return SubmitBidResponse(
            reservation_id=result.reservation_id,
            session_id=resolved.session_id,
            zone_id=resolved.zone_id,
            package_id=resolved.package_id,
            quantity=body.quantity,
            extra_hashrate=body.extra_hashrate,
            frozen_amount_cents=frozen,
            frozen_amount_display=cents_to_display(frozen),
            message=result.message,
        )

    async def get_reservation(self, token: str, reservation_id: str) -> ReservationResponse:
        reservation = await self._gateway.get_reservation_detail(token, reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return ReservationResponse.from_domain(reservation)
