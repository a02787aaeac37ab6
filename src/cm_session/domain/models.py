"""Domain models for cm_session: frozen dataclasses, read-only to the engine."""

from dataclasses import dataclass, field
from typing import Any

from src.cm_common.cents import yuan_to_cents
from src.cm_common.ids import clean_id, first_id
from src.cm_session.domain.zone_price import parse_zone_price


@dataclass(frozen=True)
class Zone:
    id: str
    name: str
    ceiling_price: int  # cents; 0 when neither explicit nor parseable from name

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> "Zone":
        name = str(raw.get("name") or "")
        ceiling = yuan_to_cents(raw.get("max_price"))
        if ceiling is None or ceiling <= 0:
            ceiling = parse_zone_price(name) * 100
        return cls(id=str(raw.get("id")), name=name, ceiling_price=ceiling)


@dataclass(frozen=True)
class Session:
    id: str
    title: str
    start_time: str | None = None
    end_time: str | None = None
    zones: tuple[Zone, ...] = field(default_factory=tuple)

    @classmethod
    def from_wire(cls, session_id: str, raw: dict[str, Any]) -> "Session":
        zones_raw = raw.get("zones")
        if not isinstance(zones_raw, list):
            zones_raw = []
        zones = tuple(
            Zone.from_wire(z) for z in zones_raw if isinstance(z, dict) and clean_id(z.get("id"))
        )
        return cls(
            id=session_id,
            title=str(raw.get("title") or raw.get("name") or ""),
            start_time=raw.get("start_time") or raw.get("startTime"),
            end_time=raw.get("end_time") or raw.get("endTime"),
            zones=zones,
        )

    def zone_by_id(self, zone_id: str) -> Zone | None:
        for zone in self.zones:
            if zone.id == zone_id:
                return zone
        return None


@dataclass(frozen=True)
class CollectibleDetail:
    """What the collectible-detail collaborator knows about a collectible.

    Prices are cents. Every field is optional because older items carry
    only a subset.
    """

    id: str
    price: int | None = None
    price_zone_label: str | None = None
    zone_max_price: int | None = None
    session_id: str | None = None
    zone_id: str | None = None
    package_id: str | None = None

    @classmethod
    def from_wire(cls, collectible_id: str, raw: dict[str, Any]) -> "CollectibleDetail":
        session = raw.get("session") if isinstance(raw.get("session"), dict) else {}
        zone = raw.get("zone") if isinstance(raw.get("zone"), dict) else {}
        package = raw.get("package") if isinstance(raw.get("package"), dict) else {}
        explicit_max = None
        for key in ("zone_max_price", "zoneMaxPrice", "max_price", "maxPrice"):
            explicit_max = yuan_to_cents(raw.get(key))
            if explicit_max is not None and explicit_max > 0:
                break
            explicit_max = None
        label = raw.get("price_zone")
        return cls(
            id=collectible_id,
            price=yuan_to_cents(raw.get("price")),
            price_zone_label=str(label) if label else None,
            zone_max_price=explicit_max,
            session_id=first_id(
                raw.get("session_id"), raw.get("sessionId"), session.get("id"), session.get("session_id")
            ),
            zone_id=first_id(
                raw.get("zone_id"), raw.get("price_zone_id"), raw.get("zoneId"),
                raw.get("priceZoneId"), zone.get("id"),
            ),
            package_id=first_id(raw.get("package_id"), raw.get("packageId"), package.get("id")),
        )
