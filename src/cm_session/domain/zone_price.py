"""Price-zone label parsing and ceiling-price resolution.

Zone labels encode the zone's ceiling in yuan:
  "500元区" -> 500
  "1K区"    -> 1000
  "2k区"    -> 2000
"""

import math
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from src.cm_common.enums import PriceConfidence

if TYPE_CHECKING:
    from src.cm_session.domain.models import CollectibleDetail, Zone

_K_PATTERN = re.compile(r"(\d+)\s*K", re.IGNORECASE)
_INT_PATTERN = re.compile(r"(\d+)")


def parse_zone_price(label: str | None) -> int:
    """Ceiling price in yuan encoded by a zone label, 0 if none."""
    if not label:
        return 0
    if "K" in label.upper():
        match = _K_PATTERN.search(label)
        if match:
            return int(match.group(1)) * 1000
    match = _INT_PATTERN.search(label)
    return int(match.group(1)) if match else 0


def resolve_ceiling_price(
    detail: "CollectibleDetail", fallback_price: int | None = None
) -> tuple[int | None, PriceConfidence | None]:
    """Pick the ceiling price (cents) from the richest signal on a detail payload.

    Order: parsed zone label, explicit max-price field, the item's own price,
    then the caller's fallback price.
    """
    parsed = parse_zone_price(detail.price_zone_label)
    if parsed > 0:
        return parsed * 100, PriceConfidence.ZONE_LABEL
    if detail.zone_max_price is not None and detail.zone_max_price > 0:
        return detail.zone_max_price, PriceConfidence.EXPLICIT_FIELD
    for price in (detail.price, fallback_price):
        if price is not None and price > 0:
            return price, PriceConfidence.ITEM_PRICE
    return None, None


def match_zone(
    zones: Sequence["Zone"], label: str | None, target_price_cents: int | None
) -> "Zone | None":
    """Find the zone a collectible belongs to.

    Exact name match on the label first; otherwise the first zone whose name
    contains the floor of the target price in yuan.
    """
    if label:
        for zone in zones:
            if zone.name == label:
                return zone
    if target_price_cents is None or target_price_cents <= 0:
        return None
    needle = str(math.floor(target_price_cents / 100))
    for zone in zones:
        if zone.name and needle in zone.name:
            return zone
    return None
