"""mk_negotiation REST endpoints.

POST /listings/{listing_id}/bids        — place a maximum bid
GET  /listings/{listing_id}/auction     — auction snapshot + history
GET  /listings/{listing_id}/bids/me     — caller's bid standing
POST /listings/{listing_id}/offers      — make an offer
GET  /listings/{listing_id}/offers/me   — caller's offer state
GET  /listings/{listing_id}/offers      — every offer (seller only)
POST /offers/{offer_id}/respond         — seller accepts / declines

Reads are full re-fetches: clients poll them to reconcile whatever the
realtime channel missed.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.database import get_db_session
from src.mk_common.response import ApiResponse, success_response
from src.mk_gateway.auth.dependencies import get_current_caller
from src.mk_gateway.middleware.request_log import request_id_of
from src.mk_negotiation.application import service as svc
from src.mk_negotiation.application.coordinator import NegotiationCoordinator
from src.mk_negotiation.application.schemas import (
    MakeOfferRequest,
    PlaceBidRequest,
    RespondToOfferRequest,
)
from src.mk_verification.domain.models import Caller

listing_router = APIRouter(prefix="/listings", tags=["negotiation"])
offer_router = APIRouter(prefix="/offers", tags=["negotiation"])

CallerDep = Annotated[Caller, Depends(get_current_caller)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]
CoordinatorDep = Annotated[NegotiationCoordinator, Depends(svc.get_coordinator)]


@listing_router.post("/{listing_id}/bids", status_code=status.HTTP_201_CREATED)
async def place_bid(
    listing_id: str,
    body: PlaceBidRequest,
    request: Request,
    caller: CallerDep,
    db: DbDep,
    coordinator: CoordinatorDep,
) -> ApiResponse:
    result = await svc.place_bid(coordinator, listing_id, body, caller, db)
    return success_response(result.model_dump(mode="json"), request_id_of(request))


@listing_router.get("/{listing_id}/auction")
async def get_auction_state(
    listing_id: str,
    request: Request,
    caller: CallerDep,
    db: DbDep,
    coordinator: CoordinatorDep,
) -> ApiResponse:
    result = await svc.get_auction_state(coordinator, listing_id, db)
    return success_response(result.model_dump(mode="json"), request_id_of(request))


@listing_router.get("/{listing_id}/bids/me")
async def get_my_bid_status(
    listing_id: str,
    request: Request,
    caller: CallerDep,
    db: DbDep,
    coordinator: CoordinatorDep,
) -> ApiResponse:
    result = await svc.get_user_bid_status(coordinator, listing_id, caller, db)
    return success_response(result.model_dump(mode="json"), request_id_of(request))


@listing_router.post("/{listing_id}/offers", status_code=status.HTTP_201_CREATED)
async def make_offer(
    listing_id: str,
    body: MakeOfferRequest,
    request: Request,
    caller: CallerDep,
    db: DbDep,
    coordinator: CoordinatorDep,
) -> ApiResponse:
    result = await svc.make_offer(coordinator, listing_id, body, caller, db)
    return success_response(result.model_dump(mode="json"), request_id_of(request))


@listing_router.get("/{listing_id}/offers/me")
async def get_my_offer_state(
    listing_id: str,
    request: Request,
    caller: CallerDep,
    db: DbDep,
    coordinator: CoordinatorDep,
) -> ApiResponse:
    result = await svc.get_offer_state(coordinator, listing_id, caller, db)
    return success_response(result.model_dump(mode="json"), request_id_of(request))


@listing_router.get("/{listing_id}/offers")
async def list_offers(
    listing_id: str,
    request: Request,
    caller: CallerDep,
    db: DbDep,
    coordinator: CoordinatorDep,
) -> ApiResponse:
    result = await svc.list_offers(coordinator, listing_id, caller, db)
    return success_response(result.model_dump(mode="json"), request_id_of(request))


@offer_router.post("/{offer_id}/respond")
async def respond_to_offer(
    offer_id: str,
    body: RespondToOfferRequest,
    request: Request,
    caller: CallerDep,
    db: DbDep,
    coordinator: CoordinatorDep,
) -> ApiResponse:
    result = await svc.respond_to_offer(coordinator, offer_id, body, caller, db)
    return success_response(result.model_dump(mode="json"), request_id_of(request))
