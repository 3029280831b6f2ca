"""Access-token encoding and verification.

Tokens are issued by the identity service, not here; this module only has to
agree with it on HS256 + JWT_SECRET. `create_access_token` exists for local
tooling and tests.

The token carries identity only. Verification tier is never read from claims:
it is loaded from the accounts table on every request, so a tier change takes
effect without waiting for token expiry.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.mk_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM
_TOKEN_TYPE = "access"


def create_access_token(account_id: str, expires_in: timedelta | None = None) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": account_id,
        "type": _TOKEN_TYPE,
        "iat": now,
        "exp": now + (expires_in or timedelta(minutes=settings.JWT_EXPIRE_MINUTES)),
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_access_token(token: str) -> str:
    """Return the account id (`sub`) of a valid, unexpired access token.

    Raises:
        InvalidCredentialsError: bad signature, expired, wrong type or no subject.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[_ALGORITHM])
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != _TOKEN_TYPE:
        raise InvalidCredentialsError()
    account_id = payload.get("sub")
    if not account_id:
        raise InvalidCredentialsError()
    return str(account_id)
