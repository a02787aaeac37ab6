"""cm_reservation REST API: quote, submit and read reservations."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.cm_common.response import ApiResponse, respond
from src.cm_gateway.auth.dependencies import get_upstream_token
from src.cm_reservation.application.schemas import QuoteRequest, SubmitBidRequest
from src.cm_reservation.application.service import ReservationApplicationService
from src.cm_upstream.infrastructure.http_gateway import get_upstream_gateway

router = APIRouter(prefix="/reservations", tags=["reservations"])


def get_reservation_service() -> ReservationApplicationService:
    return ReservationApplicationService(get_upstream_gateway())


ServiceDep = Annotated[ReservationApplicationService, Depends(get_reservation_service)]
TokenDep = Annotated[str, Depends(get_upstream_token)]


@router.post("/quote")
async def quote_bid(
    body: QuoteRequest,
    token: TokenDep,
    service: ServiceDep,
    request: Request,
) -> ApiResponse:
    data = await service.quote(token, body)
    return respond(request, data)


@router.post("")
async def submit_bid(
    body: SubmitBidRequest,
    token: TokenDep,
    service: ServiceDep,
    request: Request,
) -> ApiResponse:
    data = await service.submit_bid(token, body)
    return respond(request, data, message=data.message)


@router.get("/{reservation_id}")
async def get_reservation(
    reservation_id: str,
    token: TokenDep,
    service: ServiceDep,
    request: Request,
) -> ApiResponse:
    data = await service.get_reservation(token, reservation_id)
    return respond(request, data)
