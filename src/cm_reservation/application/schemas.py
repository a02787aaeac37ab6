"""Pydantic schemas for the cm_reservation API."""

from pydantic import BaseModel, Field, field_validator

from src.cm_common.cents import cents_to_display
from src.cm_common.ids import clean_id
from src.cm_reservation.domain.models import Reservation

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BidInput(BaseModel):
    """What the client knows when it opens the bid panel.

    Ids the client already has (from the session page) are passed through;
    anything missing is resolved from the collectible detail. Wallet figures
    come from the client's last wallet read and are checked only advisorily.
    """

    collectible_id: str
    session_id: str | None = None
    zone_id: str | None = None
    package_id: str | None = None
    ceiling_price_cents: int | None = Field(None, gt=0, description="Zone ceiling if already known")
    extra_hashrate: int = Field(0, ge=0)
    quantity: int = 1
    available_hashrate: int = Field(..., ge=0)
    account_balance_cents: int = Field(..., ge=0)

    @field_validator("session_id", "zone_id", "package_id", mode="before")
    @classmethod
    def zero_is_unset(cls, v: object) -> str | None:
        return clean_id(v)


class QuoteRequest(BidInput):
    pass


class SubmitBidRequest(BidInput):
    pass


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class QuoteResponse(BaseModel):
    session_id: str | None
    zone_id: str | None
    package_id: str | None
    ceiling_price_cents: int
    ceiling_price_display: str
    price_source: str | None
    quantity: int
    frozen_amount_cents: int
    frozen_amount_display: str
    base_hashrate: int
    extra_hashrate: int
    max_extra_hashrate: int
    required_hashrate: int
    affordable: bool
    blocker: str | None = None


class SubmitBidResponse(BaseModel):
    reservation_id: str | None
    session_id: str
    zone_id: str
    package_id: str
    quantity: int
    extra_hashrate: int
    frozen_amount_cents: int
    frozen_amount_display: str
    message: str


class ReservationResponse(BaseModel):
    id: str
    session_id: str | None
    zone_id: str | None
    package_id: str | None
    zone_name: str | None
    session_title: str | None
    status: str
    is_terminal: bool
    quantity: int
    base_hashrate: int
    extra_hashrate: int
    frozen_amount_cents: int
    frozen_amount_display: str
    actual_buy_price_cents: int | None
    refund_diff_cents: int | None
    refund_amount_cents: int
    refund_amount_display: str
    match_time: int | None

    @classmethod
    def from_domain(cls, r: Reservation) -> "ReservationResponse":
        return cls(
            id=r.id,
            session_id=r.session_id,
            zone_id=r.zone_id,
            package_id=r.package_id,
            zone_name=r.zone_name,
            session_title=r.session_title,
            status=r.status.value,
            is_terminal=r.status.is_terminal,
            quantity=r.quantity,
            base_hashrate=r.base_hashrate,
            extra_hashrate=r.extra_hashrate,
            frozen_amount_cents=r.frozen_amount,
            frozen_amount_display=cents_to_display(r.frozen_amount),
            actual_buy_price_cents=r.actual_buy_price,
            refund_diff_cents=r.refund_diff,
            refund_amount_cents=r.refund_amount,
            refund_amount_display=cents_to_display(r.refund_amount),
            match_time=r.match_time,
        )
