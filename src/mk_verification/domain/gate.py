"""VerificationGate: verification tier -> capability set.

Pure lookup. Unknown tiers fail closed to the unverified set instead of
raising, since every mutating request passes through here.
"""

from typing import Literal

from src.mk_common.enums import VerificationTier
from src.mk_common.errors import UnauthorizedError
from src.mk_verification.domain.models import Caller, Capabilities

CapabilityName = Literal[
    "can_send_messages",
    "can_place_bids",
    "can_make_offers",
    "can_create_listings",
    "can_buy_and_sell",
    "can_access_advanced_features",
]

_NONE = Capabilities(
    can_send_messages=False,
    can_place_bids=False,
    can_make_offers=False,
    can_create_listings=False,
    can_buy_and_sell=False,
    can_access_advanced_features=False,
)

_VERIFIED = Capabilities(
    can_send_messages=True,
    can_place_bids=True,
    can_make_offers=True,
    can_create_listings=True,
    can_buy_and_sell=True,
    can_access_advanced_features=False,
)

_TRADER = Capabilities(
    can_send_messages=True,
    can_place_bids=True,
    can_make_offers=True,
    can_create_listings=True,
    can_buy_and_sell=True,
    can_access_advanced_features=True,
)

_TABLE: dict[VerificationTier, Capabilities] = {
    VerificationTier.UNVERIFIED: _NONE,
    VerificationTier.VERIFIED: _VERIFIED,
    VerificationTier.TRADER: _TRADER,
}


def parse_tier(raw: object) -> VerificationTier:
    """Coerce a stored/claimed tier value; anything unrecognised is UNVERIFIED."""
    if isinstance(raw, VerificationTier):
        return raw
    if isinstance(raw, str):
        try:
            return VerificationTier(raw.strip().lower())
        except ValueError:
            return VerificationTier.UNVERIFIED
    return VerificationTier.UNVERIFIED


def capabilities(tier: object) -> Capabilities:
    return _TABLE.get(parse_tier(tier), _NONE)


def require_capability(caller: Caller, capability: CapabilityName, action: str) -> None:
    """Raise UnauthorizedError if the caller's tier lacks `capability`."""
    if not getattr(capabilities(caller.tier), capability):
        raise UnauthorizedError(
            f"Account tier '{parse_tier(caller.tier).value}' may not {action}"
        )
