"""Tests for ZoneSessionResolver and ResolutionCache using a mock gateway."""

from unittest.mock import AsyncMock

from src.cm_common.enums import PriceConfidence
from src.cm_common.errors import UpstreamUnavailableError
from src.cm_session.domain.models import CollectibleDetail, Session, Zone
from src.cm_session.domain.resolver import ResolutionCache, ResolvedIds, ZoneSessionResolver

_SESSION = Session(
    id="3",
    title="Spring",
    zones=(
        Zone(id="5", name="500元区", ceiling_price=50000),
        Zone(id="6", name="1K区", ceiling_price=100000),
    ),
)


def _gateway(detail: CollectibleDetail | None, session: Session | None = _SESSION) -> AsyncMock:
    gw = AsyncMock()
    gw.get_collectible_detail.return_value = detail
    gw.get_session_detail.return_value = session
    return gw


class TestResolvedIds:
    def test_complete(self) -> None:
        assert ResolvedIds("3", "6", "11").is_complete
        assert not ResolvedIds("3", None, "11").is_complete

    def test_missing(self) -> None:
        assert ResolvedIds(session_id="3").missing == ["zone_id", "package_id"]

    def test_fill_keeps_known(self) -> None:
        ids = ResolvedIds(session_id="3").fill(session_id="9", zone_id=0, package_id=11)
        assert (ids.session_id, ids.zone_id, ids.package_id) == ("3", None, "11")

    def test_price_never_downgraded(self) -> None:
        ids = ResolvedIds().with_price(100000, PriceConfidence.PRELOADED)
        ids = ids.with_price(75000, PriceConfidence.ITEM_PRICE)
        assert ids.ceiling_price == 100000
        assert ids.price_source is PriceConfidence.PRELOADED

    def test_price_upgraded(self) -> None:
        ids = ResolvedIds().with_price(75000, PriceConfidence.ITEM_PRICE)
        ids = ids.with_price(100000, PriceConfidence.ZONE_LABEL)
        assert ids.ceiling_price == 100000


class TestResolve:
    async def test_complete_ids_skip_network(self) -> None:
        gw = _gateway(None)
        resolver = ZoneSessionResolver(gw)

        result = await resolver.resolve("t", "c1", ResolvedIds("3", "6", "11"))

        assert result.is_complete
        gw.get_collectible_detail.assert_not_awaited()

    async def test_ids_from_detail(self) -> None:
        gw = _gateway(CollectibleDetail(id="c1", price=75000, session_id="3", zone_id="6", package_id="11"))

        result = await ZoneSessionResolver(gw).resolve("t", "c1")

        assert (result.session_id, result.zone_id, result.package_id) == ("3", "6", "11")
        assert result.ceiling_price == 75000
        gw.get_session_detail.assert_not_awaited()

    async def test_zone_matched_from_session_by_label(self) -> None:
        gw = _gateway(CollectibleDetail(id="c1", price=75000, price_zone_label="1K区", session_id="3", package_id="11"))

        result = await ZoneSessionResolver(gw).resolve("t", "c1")

        assert result.zone_id == "6"
        assert result.ceiling_price == 100000
        assert result.price_source is PriceConfidence.ZONE_LABEL
        gw.get_session_detail.assert_awaited_once_with("t", "3")

    async def test_zone_matched_by_price(self) -> None:
        gw = _gateway(CollectibleDetail(id="c1", price=50000, session_id="3", package_id="11"))

        result = await ZoneSessionResolver(gw).resolve("t", "c1")

        assert result.zone_id == "5"
        assert result.price_source is PriceConfidence.EXPLICIT_FIELD

    async def test_preloaded_price_not_overwritten(self) -> None:
        gw = _gateway(CollectibleDetail(id="c1", price=75000, session_id="3", zone_id="6"))
        cache = ResolutionCache()
        cache.preload("c1", ceiling_price=100000)

        result = await ZoneSessionResolver(gw).resolve("t", "c1", cache=cache)

        assert result.ceiling_price == 100000
        assert result.price_source is PriceConfidence.PRELOADED

    async def test_at_most_one_attempt_per_cache(self) -> None:
        gw = _gateway(CollectibleDetail(id="c1", session_id="3"), session=None)
        cache = ResolutionCache()
        resolver = ZoneSessionResolver(gw)

        await resolver.resolve("t", "c1", cache=cache)
        second = await resolver.resolve("t", "c1", cache=cache)

        assert second.session_id == "3"
        assert gw.get_collectible_detail.await_count == 1

    async def test_failure_returns_known_values(self) -> None:
        gw = AsyncMock()
        gw.get_collectible_detail.side_effect = UpstreamUnavailableError("ConnectError")

        result = await ZoneSessionResolver(gw).resolve("t", "c1", ResolvedIds(session_id="3"))

        assert result.session_id == "3"
        assert not result.is_complete

    async def test_missing_detail(self) -> None:
        result = await ZoneSessionResolver(_gateway(None)).resolve("t", "c1")
        assert result == ResolvedIds()
