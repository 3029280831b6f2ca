"""FastAPI dependencies that turn a Bearer token into a Caller.

Usage in any protected router:
    from src.mk_gateway.auth.dependencies import get_current_caller

    @router.post("/listings/{listing_id}/bids")
    async def place_bid(caller: Annotated[Caller, Depends(get_current_caller)]):
        ...
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.database import get_db_session
from src.mk_common.errors import AccountDisabledError, InvalidCredentialsError
from src.mk_gateway.account.db_models import AccountModel
from src.mk_gateway.auth.jwt_handler import decode_access_token
from src.mk_verification.domain.gate import parse_tier
from src.mk_verification.domain.models import Account, Caller

# Tokens come from the identity service; the URL only feeds Swagger's Authorize button.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


def _to_account(row: AccountModel) -> Account:
    return Account(
        id=row.id,
        display_name=row.display_name,
        tier=parse_tier(row.verification_tier),
        strike_count=row.strike_count,
        is_active=row.is_active,
    )


async def get_current_account(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> Account:
    """Validate the token and load the account fresh from the database.

    Raises HTTP 401 on a bad token or unknown account, and 403
    (AccountDisabledError) when the account is disabled.
    """
    try:
        account_id = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    result = await db.execute(select(AccountModel).where(AccountModel.id == account_id))
    row = result.scalar_one_or_none()
    if row is None:
        raise _CREDENTIALS_EXCEPTION
    if not row.is_active:
        raise AccountDisabledError()
    return _to_account(row)


async def get_current_caller(
    account: Annotated[Account, Depends(get_current_account)],
) -> Caller:
    return Caller(account_id=account.id, tier=account.tier)
