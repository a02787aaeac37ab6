"""Request/result models exchanged with the upstream trading backend."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class BidSubmission:
    session_id: str
    zone_id: str
    package_id: str
    extra_hashrate: int
    quantity: int = 1


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a mutating upstream call.

    `message` is the server's text and is shown to the user verbatim.
    """

    ok: bool
    code: int | None
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def reservation_id(self) -> str | None:
        value = self.data.get("reservation_id") or self.data.get("id")
        return str(value) if value else None

    @property
    def coupon_consumed(self) -> int | None:
        value = self.data.get("coupon_used", self.data.get("coupon_consumed"))
        return _opt_int(value)

    @property
    def coupon_remaining(self) -> int | None:
        return _opt_int(self.data.get("coupon_remaining"))


def _opt_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None
