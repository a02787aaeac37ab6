"""Reservation funds calculator.

A bid freezes the zone's ceiling price, not the eventual purchase price: the
matched item is unknown until the backend settles. Once settled, the
difference between frozen and actual price flows back to the user.

All amounts are int cents. The checks here are advisory; the settlement
backend is the final authority.
"""

from typing import TYPE_CHECKING

from src.cm_common.enums import ReservationStatus
from src.cm_common.errors import (
    BidQuantityOutOfRangeError,
    ExtraHashrateOutOfRangeError,
    InsufficientBalanceError,
    InsufficientHashrateError,
)

if TYPE_CHECKING:
    from src.cm_session.domain.models import Zone


def frozen_amount(zone: "Zone", quantity: int = 1) -> int:
    return zone.ceiling_price * quantity


def refund_diff(frozen: int, actual_buy_price: int) -> int:
    """max(0, frozen - actual): never negative, even if the match overshoots."""
    return max(0, frozen - actual_buy_price)


def settlement_refund(
    status: ReservationStatus, frozen: int, actual_buy_price: int | None
) -> int:
    """Amount returned to the wallet once a reservation reaches `status`.

    REJECTED / CANCELLED refund everything; APPROVED refunds the differential;
    PENDING refunds nothing yet.
    """
    if status in (ReservationStatus.REJECTED, ReservationStatus.CANCELLED):
        return frozen
    if status is ReservationStatus.APPROVED and actual_buy_price is not None:
        return refund_diff(frozen, actual_buy_price)
    return 0


def required_hashrate(base_hashrate: int, extra_hashrate: int, quantity: int = 1) -> int:
    return (base_hashrate + extra_hashrate) * quantity


def max_extra_hashrate(available_hashrate: int, base_hashrate: int, quantity: int = 1) -> int:
    """Upper bound for the user-adjustable extra hashrate."""
    return max(0, available_hashrate // quantity - base_hashrate)


def check_quantity(quantity: int, max_quantity: int) -> None:
    if not (1 <= quantity <= max_quantity):
        raise BidQuantityOutOfRangeError(quantity, max_quantity)


def check_extra_hashrate(
    extra_hashrate: int, available_hashrate: int, base_hashrate: int, quantity: int = 1
) -> None:
    maximum = max_extra_hashrate(available_hashrate, base_hashrate, quantity)
    if not (0 <= extra_hashrate <= maximum):
        raise ExtraHashrateOutOfRangeError(extra_hashrate, maximum)


def check_bid_affordable(
    *,
    available_hashrate: int,
    account_balance: int,
    base_hashrate: int,
    extra_hashrate: int,
    frozen: int,
    quantity: int = 1,
) -> None:
    """Raise before any network call if the wallet cannot cover the bid."""
    needed = required_hashrate(base_hashrate, extra_hashrate, quantity)
    if available_hashrate < needed:
        raise InsufficientHashrateError(needed, available_hashrate)
    if account_balance < frozen:
        raise InsufficientBalanceError(frozen, account_balance)
