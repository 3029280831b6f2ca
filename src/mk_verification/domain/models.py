"""Domain models for mk_verification — pure dataclasses, no I/O."""

from dataclasses import dataclass

from src.mk_common.enums import VerificationTier


@dataclass(frozen=True)
class Capabilities:
    can_send_messages: bool
    can_place_bids: bool
    can_make_offers: bool
    can_create_listings: bool
    can_buy_and_sell: bool
    can_access_advanced_features: bool

    def as_dict(self) -> dict[str, bool]:
        return {
            "can_send_messages": self.can_send_messages,
            "can_place_bids": self.can_place_bids,
            "can_make_offers": self.can_make_offers,
            "can_create_listings": self.can_create_listings,
            "can_buy_and_sell": self.can_buy_and_sell,
            "can_access_advanced_features": self.can_access_advanced_features,
        }


@dataclass(frozen=True)
class Caller:
    """Identity of the account making a request, resolved fresh per call."""

    account_id: str
    tier: VerificationTier


@dataclass
class Account:
    id: str
    display_name: str
    tier: VerificationTier
    strike_count: int = 0  # moderation signal, read-only here
    is_active: bool = True
