"""DispositionApplicationService: delivery and consignment of a holding.

Every action reloads the holding from the backend, folds the observed
consignment status into the persistent history flag, resolves eligibility
(remote first, local clock as fallback) and only then asks the state machine
for a plan. Local state changes are applied after the backend confirms.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import replace

from config.settings import settings
from src.cm_common.cents import cents_to_display
from src.cm_common.datetime_utils import epoch_now
from src.cm_common.enums import LegacyCouponPolicy
from src.cm_common.errors import (
    HoldingNotFoundError,
    MalformedUpstreamResponseError,
    UpstreamRejectedError,
    UpstreamUnavailableError,
)
from src.cm_holding.application.schemas import (
    ConsignmentResponse,
    CountdownTick,
    DeliveryResponse,
    EligibilityResponse,
    HoldingActionsResponse,
)
from src.cm_holding.domain.clock import Eligibility, RemoteEligibility, format_countdown, resolve_eligibility
from src.cm_holding.domain.countdown import countdown_stream
from src.cm_holding.domain.coupons import CouponMatch, match_coupons
from src.cm_holding.domain.models import Holding
from src.cm_holding.domain.repository import HistoryFlagStoreProtocol
from src.cm_holding.domain.state_machine import (
    apply_consignment_success,
    apply_delivery_success,
    availability,
    plan_consignment,
    plan_delivery,
)
from src.cm_upstream.domain.gateway import UpstreamGatewayProtocol

logger = logging.getLogger(__name__)


def coupon_usage_suffix(consumed: int | None, remaining: int | None) -> str:
    """' (消耗寄售券 1 张，剩余 2 张)' when the backend reports coupon usage."""
    if consumed is None:
        return ""
    if remaining is None:
        return f" (消耗寄售券 {consumed} 张)"
    return f" (消耗寄售券 {consumed} 张，剩余 {remaining} 张)"


class DispositionApplicationService:
    def __init__(
        self,
        gateway: UpstreamGatewayProtocol,
        history: HistoryFlagStoreProtocol,
        now: Callable[[], int] = epoch_now,
        legacy_policy: LegacyCouponPolicy | None = None,
        eligibility_timeout: float | None = None,
        window_hours: int | None = None,
        tick_interval: float | None = None,
    ) -> None:
        self._gateway = gateway
        self._history = history
        self._now = now
        self._legacy_policy = legacy_policy or LegacyCouponPolicy(settings.LEGACY_COUPON_POLICY.upper())
        self._eligibility_timeout = (
            eligibility_timeout if eligibility_timeout is not None else settings.ELIGIBILITY_TIMEOUT_SECONDS
        )
        self._window_hours = window_hours if window_hours is not None else settings.MATURATION_HOURS
        self._tick_interval = tick_interval if tick_interval is not None else settings.COUNTDOWN_TICK_SECONDS

    # ------------------------------------------------------------------
    # loading
    # ------------------------------------------------------------------

    async def get_holding(self, token: str, holding_id: str) -> Holding:
        holding = await self._gateway.get_holding(token, holding_id)
        if holding is None:
            raise HoldingNotFoundError(holding_id)
        has_history = await self._history.observe(holding.id, holding.consignment_status)
        if has_history and not holding.has_history:
            holding = replace(holding, has_consignment_history=True)
        return holding

    async def _remote_eligibility(self, token: str, holding_id: str) -> RemoteEligibility | None:
        try:
            return await asyncio.wait_for(
                self._gateway.get_consignment_eligibility(token, holding_id),
                timeout=self._eligibility_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Eligibility check timed out after %.1fs for holding %s, using local clock",
                self._eligibility_timeout, holding_id,
            )
        except (UpstreamUnavailableError, MalformedUpstreamResponseError, UpstreamRejectedError) as exc:
            logger.warning(
                "Eligibility check failed for holding %s, using local clock: %s", holding_id, exc.message
            )
        return None

    async def _eligibility(self, token: str, holding: Holding) -> Eligibility:
        remote = await self._remote_eligibility(token, holding.id)
        return resolve_eligibility(remote, holding.purchase_time, self._now(), self._window_hours)

    async def _coupons(self, token: str, holding: Holding) -> CouponMatch:
        coupons = await self._gateway.list_unconsumed_coupons(token)
        return match_coupons(coupons, holding.session_id, holding.zone_id, self._legacy_policy)

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    async def get_eligibility(self, token: str, holding_id: str) -> EligibilityResponse:
        holding = await self.get_holding(token, holding_id)
        return EligibilityResponse.from_domain(await self._eligibility(token, holding))

    async def get_holding_actions(self, token: str, holding_id: str) -> HoldingActionsResponse:
        holding = await self.get_holding(token, holding_id)
        eligibility = await self._eligibility(token, holding)
        coupons = await self._coupons(token, holding)
        return HoldingActionsResponse.build(
            holding, eligibility, coupons, availability(holding, eligibility, coupons)
        )

    async def countdown(self, token: str, holding_id: str) -> AsyncIterator[CountdownTick]:
        """Resolve eligibility now, then return the tick stream for it.

        Lookup errors raise here, before any tick is produced.
        """
        holding = await self.get_holding(token, holding_id)
        eligibility = await self._eligibility(token, holding)
        return self._ticks(eligibility)

    async def _ticks(self, eligibility: Eligibility) -> AsyncIterator[CountdownTick]:
        if eligibility.unlocked:
            yield CountdownTick(remaining_seconds=0, remaining_text=format_countdown(0), unlocked=True)
            return
        if eligibility.remaining_seconds is None:
            yield CountdownTick(remaining_seconds=None, remaining_text=None, unlocked=False)
            return
        async for secs in countdown_stream(eligibility.remaining_seconds, self._tick_interval):
            yield CountdownTick(
                remaining_seconds=secs, remaining_text=format_countdown(secs), unlocked=secs <= 0
            )

    # ------------------------------------------------------------------
    # actions
    # ------------------------------------------------------------------

    async def request_delivery(
        self, token: str, holding_id: str, confirm_forced: bool = False
    ) -> DeliveryResponse:
        holding = await self.get_holding(token, holding_id)
        eligibility = await self._eligibility(token, holding)
        plan = plan_delivery(holding, eligibility, confirm_forced)

        result = await self._gateway.submit_delivery(token, plan.holding_id)
        if not result.ok:
            logger.info("Delivery of holding %s rejected: %s", holding_id, result.message)
            raise UpstreamRejectedError(result.message, result.code)

        delivered = apply_delivery_success(holding)
        logger.info("Holding %s delivered (forced=%s)", holding_id, plan.forced)
        return DeliveryResponse(
            holding_id=delivered.id,
            forced=plan.forced,
            delivery_status=delivered.delivery_status.value,
            message=result.message,
        )

    async def request_consignment(self, token: str, holding_id: str) -> ConsignmentResponse:
        holding = await self.get_holding(token, holding_id)
        eligibility = await self._eligibility(token, holding)
        coupons = await self._coupons(token, holding)
        plan = plan_consignment(holding, eligibility, coupons)

        result = await self._gateway.submit_consignment(token, plan.holding_id, plan.price)
        if not result.ok:
            logger.info("Consignment of holding %s rejected: %s", holding_id, result.message)
            raise UpstreamRejectedError(result.message, result.code)

        consigned = apply_consignment_success(holding)
        await self._history.mark(consigned.id)
        logger.info(
            "Holding %s consigned at %d cents (exact coupon match=%s)",
            holding_id, plan.price, coupons.exact,
        )
        return ConsignmentResponse(
            holding_id=consigned.id,
            price_cents=plan.price,
            price_display=cents_to_display(plan.price),
            consignment_status=consigned.consignment_status.value,
            coupon_consumed=result.coupon_consumed,
            coupon_remaining=result.coupon_remaining,
            message=result.message + coupon_usage_suffix(result.coupon_consumed, result.coupon_remaining),
        )
