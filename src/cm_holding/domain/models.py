"""Domain models for cm_holding: pure dataclasses, no transport dependency."""

from dataclasses import dataclass, replace
from typing import Any

from src.cm_common.cents import yuan_to_cents
from src.cm_common.datetime_utils import normalize_epoch_seconds
from src.cm_common.enums import ConsignmentStatus, DeliveryStatus
from src.cm_common.ids import clean_id, first_id


@dataclass
class Holding:
    id: str
    title: str
    price: int | None             # cents, last known buy price; None if unparseable
    market_price: int | None      # cents
    purchase_time: int | None     # epoch seconds
    session_id: str | None = None
    zone_id: str | None = None
    package_id: str | None = None
    delivery_status: DeliveryStatus = DeliveryStatus.NOT_DELIVERED
    consignment_status: ConsignmentStatus = ConsignmentStatus.NOT_CONSIGNED
    # Set once the consignment status has ever left NOT_CONSIGNED; never cleared
    has_consignment_history: bool = False

    def __post_init__(self) -> None:
        if self.consignment_status is not ConsignmentStatus.NOT_CONSIGNED:
            self.has_consignment_history = True

    @property
    def is_consigning(self) -> bool:
        return self.consignment_status in (ConsignmentStatus.PENDING, ConsignmentStatus.CONSIGNING)

    @property
    def has_sold(self) -> bool:
        return self.consignment_status is ConsignmentStatus.SOLD

    @property
    def is_delivered(self) -> bool:
        return self.delivery_status is DeliveryStatus.DELIVERED

    @property
    def has_history(self) -> bool:
        return self.has_consignment_history

    @property
    def is_terminal(self) -> bool:
        return self.is_delivered or self.has_sold

    def observe(self, status: ConsignmentStatus) -> "Holding":
        """New snapshot with a freshly observed consignment status; history only ever grows."""
        return replace(
            self,
            consignment_status=status,
            has_consignment_history=self.has_consignment_history
            or status is not ConsignmentStatus.NOT_CONSIGNED,
        )

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> "Holding":
        original = raw.get("original_record") if isinstance(raw.get("original_record"), dict) else {}
        buy_price = raw.get("buy_price") if raw.get("buy_price") not in (None, "") else raw.get("price")
        holding_id = first_id(
            raw.get("user_collection_id"), original.get("user_collection_id"), raw.get("id"), raw.get("item_id")
        )
        return cls(
            id=holding_id or "",
            title=str(raw.get("title") or ""),
            price=yuan_to_cents(buy_price),
            market_price=yuan_to_cents(raw.get("market_price")),
            purchase_time=normalize_epoch_seconds(raw.get("pay_time") or raw.get("buy_time")),
            session_id=first_id(raw.get("session_id"), original.get("session_id")),
            zone_id=first_id(raw.get("zone_id"), original.get("zone_id")),
            package_id=clean_id(raw.get("package_id")),
            delivery_status=DeliveryStatus.from_wire(raw.get("delivery_status")),
            consignment_status=ConsignmentStatus.from_wire(raw.get("consignment_status")),
        )


@dataclass(frozen=True)
class Coupon:
    """Single-use consignment authorisation scoped to one session + zone."""

    id: str | None
    session_id: str | None
    zone_id: str | None

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> "Coupon":
        return cls(
            id=clean_id(raw.get("id")),
            session_id=clean_id(raw.get("session_id")),
            zone_id=clean_id(raw.get("zone_id")),
        )
