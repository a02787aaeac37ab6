"""Shared test fixtures."""

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.cm_holding.api.router import get_disposition_service
from src.cm_holding.application.service import DispositionApplicationService
from src.cm_holding.infrastructure.history_store import InMemoryHistoryFlagStore
from src.cm_reservation.api.router import get_reservation_service
from src.cm_reservation.application.service import ReservationApplicationService
from src.main import app

FIXED_NOW = 1_700_000_000


@pytest.fixture
def gateway() -> AsyncMock:
    """Mock upstream gateway; tests set return values per collaborator call."""
    gw = AsyncMock()
    gw.get_consignment_eligibility.return_value = None
    gw.get_session_detail.return_value = None
    gw.list_unconsumed_coupons.return_value = []
    return gw


@pytest.fixture
def history() -> InMemoryHistoryFlagStore:
    return InMemoryHistoryFlagStore()


@pytest.fixture
async def client(gateway: AsyncMock, history: InMemoryHistoryFlagStore) -> AsyncIterator[AsyncClient]:
    """Async HTTP client for testing FastAPI endpoints against the mock gateway."""
    app.dependency_overrides[get_reservation_service] = lambda: ReservationApplicationService(
        gateway, base_hashrate=5, max_quantity=100
    )
    app.dependency_overrides[get_disposition_service] = lambda: DispositionApplicationService(
        gateway, history, now=lambda: FIXED_NOW, tick_interval=0.001
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
