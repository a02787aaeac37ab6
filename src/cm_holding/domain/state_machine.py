"""Disposition state machine for a single holding.

    HOLDING ──consign──▶ CONSIGNING ──▶ SOLD (terminal)
       │                     └──────▶ REJECTED ─▶ HOLDING + history flag
       ├──deliver──▶ DELIVERED (terminal)
    HOLDING + history ──forced deliver (confirmed)──▶ DELIVERED

plan_* functions only decide; they never mutate. The caller submits the plan
to the backend and applies the transition only after the backend confirms.
Guards run in the same order for every caller, so a sold holding is refused
here even if a UI gate was bypassed.
"""

from dataclasses import dataclass, replace

from src.cm_common.enums import ConsignmentStatus, DeliveryStatus
from src.cm_common.errors import (
    ForcedDeliveryConfirmationRequired,
    HoldingConsigningError,
    HoldingDeliveredError,
    HoldingSoldError,
    InvalidConsignmentPriceError,
    MaturationLockedError,
    NoMatchingCouponError,
)
from src.cm_holding.domain.clock import Eligibility
from src.cm_holding.domain.coupons import CouponMatch
from src.cm_holding.domain.models import Holding


@dataclass(frozen=True)
class DeliveryPlan:
    holding_id: str
    forced: bool


@dataclass(frozen=True)
class ConsignmentPlan:
    holding_id: str
    price: int  # cents, the holding's last known price


@dataclass(frozen=True)
class ActionAvailability:
    """What the UI may offer for a holding right now."""

    can_deliver: bool
    can_consign: bool
    requires_forced_confirmation: bool
    delivery_blocker: str | None
    consignment_blocker: str | None


def _check_not_locked_in(holding: Holding) -> None:
    if holding.is_consigning:
        raise HoldingConsigningError(holding.id)
    if holding.has_sold:
        raise HoldingSoldError(holding.id)
    if holding.is_delivered:
        raise HoldingDeliveredError(holding.id)


def _check_matured(eligibility: Eligibility) -> None:
    if not eligibility.unlocked:
        raise MaturationLockedError(eligibility.hours_left)


def plan_delivery(
    holding: Holding, eligibility: Eligibility, confirm_forced: bool = False
) -> DeliveryPlan:
    _check_not_locked_in(holding)
    _check_matured(eligibility)
    if holding.has_history and not confirm_forced:
        raise ForcedDeliveryConfirmationRequired(holding.id)
    return DeliveryPlan(holding_id=holding.id, forced=holding.has_history)


def plan_consignment(
    holding: Holding, eligibility: Eligibility, coupons: CouponMatch
) -> ConsignmentPlan:
    _check_not_locked_in(holding)
    _check_matured(eligibility)
    if not coupons.has_ticket:
        raise NoMatchingCouponError(holding.session_id, holding.zone_id)
    if holding.price is None or holding.price <= 0:
        raise InvalidConsignmentPriceError(holding.id)
    return ConsignmentPlan(holding_id=holding.id, price=holding.price)


def availability(
    holding: Holding, eligibility: Eligibility, coupons: CouponMatch
) -> ActionAvailability:
    """Evaluate both plans without raising, for display."""
    delivery_blocker: str | None = None
    consignment_blocker: str | None = None
    try:
        plan_delivery(holding, eligibility, confirm_forced=True)
    except (HoldingConsigningError, HoldingSoldError, HoldingDeliveredError, MaturationLockedError) as exc:
        delivery_blocker = exc.message
    try:
        plan_consignment(holding, eligibility, coupons)
    except (
        HoldingConsigningError,
        HoldingSoldError,
        HoldingDeliveredError,
        MaturationLockedError,
        NoMatchingCouponError,
        InvalidConsignmentPriceError,
    ) as exc:
        consignment_blocker = exc.message
    return ActionAvailability(
        can_deliver=delivery_blocker is None,
        can_consign=consignment_blocker is None,
        requires_forced_confirmation=holding.has_history,
        delivery_blocker=delivery_blocker,
        consignment_blocker=consignment_blocker,
    )


def apply_delivery_success(holding: Holding) -> Holding:
    return replace(holding, delivery_status=DeliveryStatus.DELIVERED)


def apply_consignment_success(holding: Holding) -> Holding:
    return holding.observe(ConsignmentStatus.CONSIGNING)
