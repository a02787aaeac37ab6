"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Session/Zone resolution
  2xxx: Funds/Reservation
  3xxx: Eligibility
  4xxx: Coupon
  5xxx: Disposition
  6xxx: Upstream collaborator
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Session/Zone ---

class ZoneNotResolvableError(AppError):
    def __init__(self, collectible_id: str) -> None:
        super().__init__(1001, f"Cannot resolve price zone for collectible {collectible_id}", 422)


class MissingIdentifiersError(AppError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__(1002, f"Missing identifiers: {', '.join(missing)}", 422)


# --- 2xxx: Funds/Reservation ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )


class InsufficientHashrateError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2002,
            f"Insufficient hashrate: required {required}, available {available}",
            422,
        )


class ExtraHashrateOutOfRangeError(AppError):
    def __init__(self, extra: int, maximum: int) -> None:
        super().__init__(2003, f"Extra hashrate {extra} out of range [0, {maximum}]", 422)


class BidQuantityOutOfRangeError(AppError):
    def __init__(self, quantity: int, maximum: int) -> None:
        super().__init__(2004, f"Quantity {quantity} must be in [1, {maximum}]", 422)


class ReservationNotFoundError(AppError):
    def __init__(self, reservation_id: str) -> None:
        super().__init__(2005, f"Reservation not found: {reservation_id}", 404)


# --- 3xxx: Eligibility ---

class MaturationLockedError(AppError):
    def __init__(self, hours_left: int | None) -> None:
        if hours_left is None:
            detail = "please retry later"
        else:
            detail = f"{max(1, hours_left)} hour(s) remaining"
        super().__init__(3001, f"Holding is within the 48-hour lock: {detail}", 422)
        self.hours_left = hours_left


# --- 4xxx: Coupon ---

class NoMatchingCouponError(AppError):
    def __init__(self, session_id: str | None, zone_id: str | None) -> None:
        if session_id and zone_id:
            msg = f"No consignment coupon for session {session_id} zone {zone_id}"
        else:
            msg = "No consignment coupon available"
        super().__init__(4001, msg, 422)


# --- 5xxx: Disposition ---

class HoldingConsigningError(AppError):
    def __init__(self, holding_id: str) -> None:
        super().__init__(5001, f"Holding {holding_id} is being consigned", 422)


class HoldingSoldError(AppError):
    def __init__(self, holding_id: str) -> None:
        super().__init__(5002, f"Holding {holding_id} has already been sold", 422)


class HoldingDeliveredError(AppError):
    def __init__(self, holding_id: str) -> None:
        super().__init__(5003, f"Holding {holding_id} has already been delivered", 422)


class ForcedDeliveryConfirmationRequired(AppError):
    def __init__(self, holding_id: str) -> None:
        super().__init__(
            5004,
            f"Holding {holding_id} was once consigned; forced delivery will be performed. "
            "Resubmit with confirm_forced=true to proceed.",
            409,
        )


class InvalidConsignmentPriceError(AppError):
    def __init__(self, holding_id: str) -> None:
        super().__init__(5005, f"Holding {holding_id} has no valid price for consignment", 422)


class HoldingNotFoundError(AppError):
    def __init__(self, holding_id: str) -> None:
        super().__init__(5006, f"Holding not found: {holding_id}", 404)


# --- 6xxx: Upstream ---

class UpstreamRejectedError(AppError):
    """Business-rule rejection from the backend; message is shown verbatim."""

    def __init__(self, message: str, upstream_code: int | None = None) -> None:
        super().__init__(6001, message, 422)
        self.upstream_code = upstream_code


class UpstreamUnavailableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6002, f"Upstream unavailable, please retry: {detail}", 503)


class MalformedUpstreamResponseError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6003, f"Malformed upstream response: {detail}", 502)

