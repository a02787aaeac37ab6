"""Global enums.

The upstream backend reports statuses as numeric codes in some payloads and as
strings in others. Every enum here has a `from_wire` parser so the engine only
ever compares enum members.
"""

from enum import Enum


class ConsignmentStatus(str, Enum):
    NOT_CONSIGNED = "NOT_CONSIGNED"
    PENDING = "PENDING"
    CONSIGNING = "CONSIGNING"
    REJECTED = "REJECTED"
    SOLD = "SOLD"

    @classmethod
    def from_wire(cls, value: object) -> "ConsignmentStatus":
        return _parse(cls, value, _CONSIGNMENT_CODES, cls.NOT_CONSIGNED)


class DeliveryStatus(str, Enum):
    NOT_DELIVERED = "NOT_DELIVERED"
    DELIVERED = "DELIVERED"

    @classmethod
    def from_wire(cls, value: object) -> "DeliveryStatus":
        return _parse(cls, value, _DELIVERY_CODES, cls.NOT_DELIVERED)


class ReservationStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    @classmethod
    def from_wire(cls, value: object) -> "ReservationStatus":
        return _parse(cls, value, _RESERVATION_CODES, cls.PENDING)

    @property
    def is_terminal(self) -> bool:
        return self is not ReservationStatus.PENDING


class EligibilitySource(str, Enum):
    """Which authority decided an eligibility result."""
    REMOTE = "REMOTE"
    LOCAL = "LOCAL"


class PriceConfidence(int, Enum):
    """Ranking of ceiling-price sources; higher wins."""
    ITEM_PRICE = 1
    EXPLICIT_FIELD = 2
    ZONE_LABEL = 3
    PRELOADED = 4


class LegacyCouponPolicy(str, Enum):
    """How to count coupons for holdings with no session/zone ids."""
    OPTIMISTIC = "OPTIMISTIC"
    STRICT = "STRICT"


_CONSIGNMENT_CODES: dict[int, ConsignmentStatus] = {
    0: ConsignmentStatus.NOT_CONSIGNED,
    1: ConsignmentStatus.PENDING,
    2: ConsignmentStatus.CONSIGNING,
    3: ConsignmentStatus.REJECTED,
    4: ConsignmentStatus.SOLD,
}

_DELIVERY_CODES: dict[int, DeliveryStatus] = {
    0: DeliveryStatus.NOT_DELIVERED,
    1: DeliveryStatus.DELIVERED,
}

_RESERVATION_CODES: dict[int, ReservationStatus] = {
    0: ReservationStatus.PENDING,
    1: ReservationStatus.APPROVED,
    2: ReservationStatus.REJECTED,
    3: ReservationStatus.CANCELLED,
}


def _parse(enum_cls, value, codes, default):  # type: ignore[no-untyped-def]
    """Map a numeric code, numeric string, or member name onto an enum member.

    None maps to `default`; anything else unrecognised raises ValueError.
    """
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid {enum_cls.__name__}: {value!r}")
    if isinstance(value, int):
        if value in codes:
            return codes[value]
        raise ValueError(f"Invalid {enum_cls.__name__} code: {value}")
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return _parse(enum_cls, int(text), codes, default)
        try:
            return enum_cls(text.upper())
        except ValueError:
            raise ValueError(f"Invalid {enum_cls.__name__}: {value!r}") from None
    raise ValueError(f"Invalid {enum_cls.__name__}: {value!r}")
