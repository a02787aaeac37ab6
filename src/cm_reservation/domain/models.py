"""Reservation domain model: pure dataclass, no transport dependency."""

from dataclasses import dataclass
from typing import Any

from src.cm_common.cents import yuan_to_cents
from src.cm_common.datetime_utils import normalize_epoch_seconds
from src.cm_common.enums import ReservationStatus
from src.cm_common.ids import clean_id
from src.cm_reservation.domain.funds import refund_diff, settlement_refund


@dataclass
class Reservation:
    id: str
    session_id: str | None
    zone_id: str | None
    package_id: str | None
    frozen_amount: int  # cents, zone ceiling x quantity at submission
    status: ReservationStatus = ReservationStatus.PENDING
    base_hashrate: int = 5
    extra_hashrate: int = 0
    quantity: int = 1
    # Settlement outcome, written by the backend only
    match_time: int | None = None
    actual_buy_price: int | None = None  # cents
    zone_name: str | None = None
    session_title: str | None = None

    @property
    def refund_diff(self) -> int | None:
        """Differential refunded after an approved match; None until known."""
        if self.status is not ReservationStatus.APPROVED or self.actual_buy_price is None:
            return None
        return refund_diff(self.frozen_amount, self.actual_buy_price)

    @property
    def refund_amount(self) -> int:
        """Total returned to the wallet for this reservation so far."""
        return settlement_refund(self.status, self.frozen_amount, self.actual_buy_price)

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> "Reservation":
        def _int(key: str, default: int) -> int:
            try:
                return int(raw.get(key) if raw.get(key) is not None else default)
            except (TypeError, ValueError):
                return default

        return cls(
            id=str(raw.get("id")),
            session_id=clean_id(raw.get("session_id")),
            zone_id=clean_id(raw.get("zone_id")),
            package_id=clean_id(raw.get("package_id")),
            frozen_amount=yuan_to_cents(raw.get("freeze_amount")) or 0,
            status=ReservationStatus.from_wire(raw.get("status")),
            base_hashrate=_int("base_hashrate_cost", 5),
            extra_hashrate=_int("extra_hashrate_cost", 0),
            quantity=_int("quantity", 1),
            match_time=normalize_epoch_seconds(raw.get("match_time")),
            actual_buy_price=yuan_to_cents(raw.get("actual_buy_price")),
            zone_name=raw.get("zone_name"),
            session_title=raw.get("session_title"),
        )
