"""Account API: what the current caller may do.

GET /accounts/me                — identity + tier
GET /accounts/me/capabilities   — capability flags derived from the tier
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from src.mk_common.response import ApiResponse, success_response
from src.mk_gateway.auth.dependencies import get_current_account
from src.mk_gateway.middleware.request_log import request_id_of
from src.mk_verification.domain.gate import capabilities
from src.mk_verification.domain.models import Account

router = APIRouter(prefix="/accounts", tags=["accounts"])


class AccountInfo(BaseModel):
    account_id: str
    display_name: str
    verification_tier: str
    strike_count: int


class CapabilitiesResponse(BaseModel):
    account_id: str
    verification_tier: str
    capabilities: dict[str, bool]


@router.get("/me")
async def get_me(
    request: Request,
    account: Annotated[Account, Depends(get_current_account)],
) -> ApiResponse:
    data = AccountInfo(
        account_id=account.id,
        display_name=account.display_name,
        verification_tier=account.tier.value,
        strike_count=account.strike_count,
    )
    return success_response(data.model_dump(), request_id_of(request))


@router.get("/me/capabilities")
async def get_my_capabilities(
    request: Request,
    account: Annotated[Account, Depends(get_current_account)],
) -> ApiResponse:
    data = CapabilitiesResponse(
        account_id=account.id,
        verification_tier=account.tier.value,
        capabilities=capabilities(account.tier).as_dict(),
    )
    return success_response(data.model_dump(), request_id_of(request))
