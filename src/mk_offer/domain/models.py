"""Offer domain models — pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass, field
from datetime import datetime

from src.mk_listing.domain.models import Listing


@dataclass
class Offer:
    id: str
    listing_id: str
    user_id: str
    amount: int
    message: str | None
    status: str = "pending"  # pending / accepted / declined / expired
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"


@dataclass
class OfferResolution:
    """Outcome of a seller response; `auto_declined` is only non-empty on accept."""

    offer: Offer
    listing: Listing
    auto_declined: list[Offer] = field(default_factory=list)

    @property
    def triggers_sale(self) -> bool:
        return self.offer.status == "accepted"


@dataclass(frozen=True)
class OfferState:
    has_pending_offer: bool
    latest_offer: Offer | None


@dataclass(frozen=True)
class OfferCreated:
    offer: Offer
    listing: Listing
