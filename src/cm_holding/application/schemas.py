"""Pydantic schemas for the cm_holding API."""

from pydantic import BaseModel

from src.cm_common.cents import cents_to_display
from src.cm_holding.domain.clock import Eligibility, format_countdown
from src.cm_holding.domain.coupons import CouponMatch
from src.cm_holding.domain.models import Holding
from src.cm_holding.domain.state_machine import ActionAvailability

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class DeliveryRequest(BaseModel):
    confirm_forced: bool = False


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class EligibilityResponse(BaseModel):
    unlocked: bool
    remaining_seconds: int | None
    remaining_text: str | None
    hours_left: int | None
    source: str
    has_valid_purchase_time: bool

    @classmethod
    def from_domain(cls, e: Eligibility) -> "EligibilityResponse":
        return cls(
            unlocked=e.unlocked,
            remaining_seconds=e.remaining_seconds,
            remaining_text=format_countdown(e.remaining_seconds) if e.remaining_seconds is not None else None,
            hours_left=e.hours_left,
            source=e.source.value,
            has_valid_purchase_time=e.has_valid_purchase_time,
        )


class CouponMatchResponse(BaseModel):
    available_count: int
    exact: bool
    has_ticket: bool

    @classmethod
    def from_domain(cls, m: CouponMatch) -> "CouponMatchResponse":
        return cls(available_count=m.available_count, exact=m.exact, has_ticket=m.has_ticket)


class HoldingActionsResponse(BaseModel):
    holding_id: str
    title: str
    price_cents: int | None
    price_display: str | None
    session_id: str | None
    zone_id: str | None
    consignment_status: str
    delivery_status: str
    is_consigning: bool
    has_sold: bool
    is_delivered: bool
    has_history: bool
    eligibility: EligibilityResponse
    coupons: CouponMatchResponse
    can_deliver: bool
    can_consign: bool
    requires_forced_confirmation: bool
    delivery_blocker: str | None
    consignment_blocker: str | None

    @classmethod
    def build(
        cls,
        holding: Holding,
        eligibility: Eligibility,
        coupons: CouponMatch,
        actions: ActionAvailability,
    ) -> "HoldingActionsResponse":
        return cls(
            holding_id=holding.id,
            title=holding.title,
            price_cents=holding.price,
            price_display=cents_to_display(holding.price) if holding.price is not None else None,
            session_id=holding.session_id,
            zone_id=holding.zone_id,
            consignment_status=holding.consignment_status.value,
            delivery_status=holding.delivery_status.value,
            is_consigning=holding.is_consigning,
            has_sold=holding.has_sold,
            is_delivered=holding.is_delivered,
            has_history=holding.has_history,
            eligibility=EligibilityResponse.from_domain(eligibility),
            coupons=CouponMatchResponse.from_domain(coupons),
            can_deliver=actions.can_deliver,
            can_consign=actions.can_consign,
            requires_forced_confirmation=actions.requires_forced_confirmation,
            delivery_blocker=actions.delivery_blocker,
            consignment_blocker=actions.consignment_blocker,
        )


class DeliveryResponse(BaseModel):
    holding_id: str
    forced: bool
    delivery_status: str
    message: str


class ConsignmentResponse(BaseModel):
    holding_id: str
    price_cents: int
    price_display: str
    consignment_status: str
    coupon_consumed: int | None
    coupon_remaining: int | None
    message: str


class CountdownTick(BaseModel):
    remaining_seconds: int | None  # None when locked with no known duration
    remaining_text: str | None
    unlocked: bool
