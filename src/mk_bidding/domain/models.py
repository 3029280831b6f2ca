"""Bid domain models — pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime

from src.mk_listing.domain.models import Listing


@dataclass
class Bid:
    """One admitted bid. `amount` is the bidder's maximum, never shown directly."""

    id: str
    listing_id: str
    user_id: str
    amount: int
    seq: int  # admission order assigned under the listing lock
    created_at: datetime


@dataclass(frozen=True)
class AuctionSnapshot:
    """Fold of a listing's bid history. Recomputed on every read."""

    listing_id: str
    current_price: int  # visible price
    highest_bid: int | None  # leader's maximum
    highest_bidder_id: str | None
    bid_count: int
    minimum_next_bid: int


@dataclass(frozen=True)
class UserBidStatus:
    has_bid: bool
    is_highest_bidder: bool
    user_highest_bid: int  # what the user is visibly bidding right now
    user_maximum_bid: int


@dataclass(frozen=True)
class BidHistoryEntry:
    bid_id: str
    user_id: str
    amount: int  # visible price right after this bid was admitted
    created_at: datetime


@dataclass(frozen=True)
class BidPlacement:
    bid: Bid
    listing: Listing
    snapshot: AuctionSnapshot

    @property
    def is_highest_bidder(self) -> bool:
        return self.snapshot.highest_bidder_id == self.bid.user_id


@dataclass(frozen=True)
class AuctionOutcome:
    """Result of settling a time-ended auction. `closed=False` means nothing was done."""

    listing_id: str
    seller_id: str
    title: str
    closed: bool
    winner_id: str | None = None
    sale_amount: int | None = None
