"""cm_holding REST API: disposition of a single holding.

The countdown endpoint is a Server-Sent Events stream: one `data:` frame per
tick until the lock opens. Starlette cancels the generator when the client
disconnects, which stops the ticking.
"""

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from src.cm_common.redis_client import get_redis
from src.cm_common.response import ApiResponse, respond
from src.cm_gateway.auth.dependencies import get_upstream_token
from src.cm_holding.application.schemas import CountdownTick, DeliveryRequest
from src.cm_holding.application.service import DispositionApplicationService
from src.cm_holding.infrastructure.history_store import RedisHistoryFlagStore
from src.cm_upstream.infrastructure.http_gateway import get_upstream_gateway

router = APIRouter(prefix="/holdings", tags=["holdings"])


async def get_disposition_service() -> DispositionApplicationService:
    history = RedisHistoryFlagStore(await get_redis())
    return DispositionApplicationService(get_upstream_gateway(), history)


ServiceDep = Annotated[DispositionApplicationService, Depends(get_disposition_service)]
TokenDep = Annotated[str, Depends(get_upstream_token)]


@router.get("/{holding_id}/actions")
async def get_holding_actions(
    holding_id: str,
    token: TokenDep,
    service: ServiceDep,
    request: Request,
) -> ApiResponse:
    data = await service.get_holding_actions(token, holding_id)
    return respond(request, data)


@router.get("/{holding_id}/eligibility")
async def get_eligibility(
    holding_id: str,
    token: TokenDep,
    service: ServiceDep,
    request: Request,
) -> ApiResponse:
    data = await service.get_eligibility(token, holding_id)
    return respond(request, data)


async def _sse(ticks: AsyncIterator[CountdownTick]) -> AsyncIterator[str]:
    async for tick in ticks:
        yield f"data: {tick.model_dump_json()}\n\n"


@router.get("/{holding_id}/countdown")
async def stream_countdown(
    holding_id: str,
    token: TokenDep,
    service: ServiceDep,
) -> StreamingResponse:
    ticks = await service.countdown(token, holding_id)
    return StreamingResponse(
        _sse(ticks),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/{holding_id}/delivery")
async def request_delivery(
    holding_id: str,
    body: DeliveryRequest,
    token: TokenDep,
    service: ServiceDep,
    request: Request,
) -> ApiResponse:
    data = await service.request_delivery(token, holding_id, body.confirm_forced)
    return respond(request, data, message=data.message)


@router.post("/{holding_id}/consignment")
async def request_consignment(
    holding_id: str,
    token: TokenDep,
    service: ServiceDep,
    request: Request,
) -> ApiResponse:
    data = await service.request_consignment(token, holding_id)
    return respond(request, data, message=data.message)
