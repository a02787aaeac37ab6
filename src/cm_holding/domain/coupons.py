"""Consignment coupon matching.

A coupon authorises consigning a holding only when both its session and zone
equal the holding's. Legacy holdings without those ids cannot be matched
exactly; LegacyCouponPolicy decides what to report for them.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from src.cm_common.enums import LegacyCouponPolicy
from src.cm_holding.domain.models import Coupon

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CouponMatch:
    available_count: int
    exact: bool  # False when counted without session/zone ids

    @property
    def has_ticket(self) -> bool:
        return self.available_count > 0


def coupon_matches(coupon: Coupon, session_id: str | None, zone_id: str | None) -> bool:
    if not session_id or not zone_id:
        return False
    return str(coupon.session_id) == str(session_id) and str(coupon.zone_id) == str(zone_id)


def match_coupons(
    coupons: Sequence[Coupon],
    session_id: str | None,
    zone_id: str | None,
    legacy_policy: LegacyCouponPolicy = LegacyCouponPolicy.OPTIMISTIC,
) -> CouponMatch:
    if session_id and zone_id:
        matched = sum(1 for c in coupons if coupon_matches(c, session_id, zone_id))
        logger.debug(
            "Coupon matching: total=%d matched=%d session=%s zone=%s",
            len(coupons), matched, session_id, zone_id,
        )
        return CouponMatch(available_count=matched, exact=True)

    if legacy_policy is LegacyCouponPolicy.STRICT:
        return CouponMatch(available_count=0, exact=False)

    logger.warning(
        "Holding missing session/zone ids, reporting all %d coupons", len(coupons)
    )
    return CouponMatch(available_count=len(coupons), exact=False)


def dedupe_coupons(pages: Iterable[Sequence[Coupon]]) -> list[Coupon]:
    """Flatten coupon pages, dropping repeats that shift across page boundaries.

    Coupons with an id are keyed by id; anonymous ones by position.
    """
    seen: dict[str, Coupon] = {}
    for page_no, page in enumerate(pages, start=1):
        for index, coupon in enumerate(page):
            key = coupon.id or f"{coupon.session_id or 's'}-{coupon.zone_id or 'z'}-{page_no}-{index}"
            seen.setdefault(key, coupon)
    return list(seen.values())
