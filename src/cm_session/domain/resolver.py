"""Zone/session resolver: completes the identifiers a bid needs.

A bid must carry session, zone and package ids plus the zone ceiling price.
Entry points often know only some of them; the rest is looked up from the
collectible-detail and session-detail collaborators.

Resolution is best effort: collaborator failures are logged and the caller
gets back whatever was already known. The final refusal for incomplete ids
happens at submission.
"""

import logging
from dataclasses import dataclass, replace

from src.cm_common.enums import PriceConfidence
from src.cm_common.errors import AppError
from src.cm_common.ids import clean_id
from src.cm_session.domain.zone_price import match_zone, resolve_ceiling_price
from src.cm_upstream.domain.gateway import UpstreamGatewayProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedIds:
    session_id: str | None = None
    zone_id: str | None = None
    package_id: str | None = None
    ceiling_price: int | None = None  # cents
    price_source: PriceConfidence | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.session_id and self.zone_id and self.package_id)

    @property
    def missing(self) -> list[str]:
        return [
            name
            for name, value in (
                ("session_id", self.session_id),
                ("zone_id", self.zone_id),
                ("package_id", self.package_id),
            )
            if not value
        ]

    def fill(
        self,
        session_id: object = None,
        zone_id: object = None,
        package_id: object = None,
    ) -> "ResolvedIds":
        """Fill only the ids that are still missing."""
        return replace(
            self,
            session_id=self.session_id or clean_id(session_id),
            zone_id=self.zone_id or clean_id(zone_id),
            package_id=self.package_id or clean_id(package_id),
        )

    def with_price(self, price: int | None, source: PriceConfidence | None) -> "ResolvedIds":
        """Adopt `price` unless the current one came from an equal or richer source."""
        if price is None or price <= 0 or source is None:
            return self
        if self.ceiling_price is not None and self.price_source is not None:
            if self.price_source >= source:
                return self
        return replace(self, ceiling_price=price, price_source=source)

    def merge(self, other: "ResolvedIds") -> "ResolvedIds":
        merged = self.fill(other.session_id, other.zone_id, other.package_id)
        return merged.with_price(other.ceiling_price, other.price_source)


class ResolutionCache:
    """Per-caller memo of resolution outcomes, keyed by collectible id.

    Owned by the caller (one per page/request flow) and passed into the
    resolver. Each collectible is looked up remotely at most once.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ResolvedIds] = {}
        self._attempted: set[str] = set()

    def get(self, collectible_id: str) -> ResolvedIds | None:
        return self._entries.get(collectible_id)

    def preload(
        self,
        collectible_id: str,
        session_id: object = None,
        zone_id: object = None,
        package_id: object = None,
        ceiling_price: int | None = None,
    ) -> None:
        """Seed context the caller already trusts (e.g. the session page's zone)."""
        source = PriceConfidence.PRELOADED if ceiling_price else None
        self.record(
            collectible_id,
            ResolvedIds().fill(session_id, zone_id, package_id).with_price(ceiling_price, source),
        )

    def record(self, collectible_id: str, resolved: ResolvedIds) -> ResolvedIds:
        current = self._entries.get(collectible_id)
        merged = resolved if current is None else current.merge(resolved)
        self._entries[collectible_id] = merged
        return merged

    def was_attempted(self, collectible_id: str) -> bool:
        return collectible_id in self._attempted

    def mark_attempted(self, collectible_id: str) -> None:
        self._attempted.add(collectible_id)


class ZoneSessionResolver:
    def __init__(self, gateway: UpstreamGatewayProtocol) -> None:
        self._gateway = gateway

    async def resolve(
        self,
        token: str,
        collectible_id: str,
        known: ResolvedIds | None = None,
        cache: ResolutionCache | None = None,
    ) -> ResolvedIds:
        """Complete the ids for `collectible_id`. Never raises."""
        cache = cache if cache is not None else ResolutionCache()
        current = known or ResolvedIds()
        cached = cache.get(collectible_id)
        if cached is not None:
            current = current.merge(cached)

        if current.is_complete or cache.was_attempted(collectible_id):
            return current
        cache.mark_attempted(collectible_id)

        try:
            current = await self._lookup(token, collectible_id, current)
        except AppError as exc:
            logger.warning(
                "Zone/session resolution failed for collectible %s: %s", collectible_id, exc.message
            )
        return cache.record(collectible_id, current)

    async def _lookup(self, token: str, collectible_id: str, current: ResolvedIds) -> ResolvedIds:
        detail = await self._gateway.get_collectible_detail(token, collectible_id)
        if detail is None:
            logger.warning("Collectible %s has no detail payload", collectible_id)
            return current

        current = current.fill(detail.session_id, detail.zone_id, detail.package_id)
        price, source = resolve_ceiling_price(detail)
        current = current.with_price(price, source)

        if not current.session_id or (current.zone_id and not detail.price_zone_label):
            return current

        session = await self._gateway.get_session_detail(token, current.session_id)
        if session is None or not session.zones:
            logger.warning("Session %s has no zones to match against", current.session_id)
            return current

        zone = match_zone(session.zones, detail.price_zone_label, current.ceiling_price)
        if zone is None:
            logger.warning(
                "No zone in session %s matches label=%r price=%s",
                session.id, detail.price_zone_label, current.ceiling_price,
            )
            return current

        logger.debug("Collectible %s matched zone %s (%s)", collectible_id, zone.id, zone.name)
        current = replace(current, zone_id=zone.id)
        if zone.ceiling_price > 0:
            current = current.with_price(zone.ceiling_price, PriceConfidence.EXPLICIT_FIELD)
        return current
