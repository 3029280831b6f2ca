"""mk_listing REST endpoints.

POST /listings                 — create (requires can_create_listings)
GET  /listings/{listing_id}    — detail with effective status + badge
"""

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mk_common.database import get_db_session
from src.mk_common.response import ApiResponse, success_response
from src.mk_gateway.auth.dependencies import get_current_caller
from src.mk_gateway.middleware.request_log import request_id_of
from src.mk_listing.application.schemas import CreateListingRequest
from src.mk_listing.application.service import ListingApplicationService
from src.mk_verification.domain.models import Caller

router = APIRouter(prefix="/listings", tags=["listings"])

_service = ListingApplicationService(
    ending_soon_window=timedelta(hours=settings.ENDING_SOON_HOURS),
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_listing(
    body: CreateListingRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_listing(body, caller, db)
    return success_response(result.model_dump(mode="json"), request_id_of(request))


@router.get("/{listing_id}")
async def get_listing(
    listing_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_listing(listing_id, db)
    return success_response(result.model_dump(mode="json"), request_id_of(request))
