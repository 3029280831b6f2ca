# src/mk_negotiation/application/schemas.py
"""Request/response schemas for bids, offers and auction state."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from src.mk_bidding.domain.models import (
    AuctionSnapshot,
    BidHistoryEntry,
    BidPlacement,
    UserBidStatus,
)
from src.mk_common.money import MAX_AMOUNT, pounds_to_display
from src.mk_negotiation.domain.models import AuctionState
from src.mk_offer.domain.models import Offer, OfferResolution, OfferState

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class PlaceBidRequest(BaseModel):
    amount: int = Field(
        ..., le=MAX_AMOUNT, description="Maximum bid in whole pounds; never shown to others"
    )


class MakeOfferRequest(BaseModel):
    amount: int = Field(..., le=MAX_AMOUNT)
    message: str | None = Field(None, max_length=1000)


class RespondToOfferRequest(BaseModel):
    decision: Literal["accepted", "declined"]


# ---------------------------------------------------------------------------
# Bidding
# ---------------------------------------------------------------------------


class AuctionSnapshotOut(BaseModel):
    listing_id: str
    current_price: int
    current_price_display: str
    highest_bidder_id: str | None
    bid_count: int
    minimum_next_bid: int

    @classmethod
    def from_domain(cls, s: AuctionSnapshot) -> "AuctionSnapshotOut":
        # highest_bid is the leader's secret maximum; never exposed
        return cls(
            listing_id=s.listing_id,
            current_price=s.current_price,
            current_price_display=pounds_to_display(s.current_price),
            highest_bidder_id=s.highest_bidder_id,
            bid_count=s.bid_count,
            minimum_next_bid=s.minimum_next_bid,
        )


class BidHistoryEntryOut(BaseModel):
    bid_id: str
    user_id: str
    amount: int
    created_at: datetime

    @classmethod
    def from_domain(cls, e: BidHistoryEntry) -> "BidHistoryEntryOut":
        return cls(bid_id=e.bid_id, user_id=e.user_id, amount=e.amount, created_at=e.created_at)


class AuctionStateResponse(BaseModel):
    status: str
    auction: AuctionSnapshotOut
    history: list[BidHistoryEntryOut]

    @classmethod
    def from_domain(cls, state: AuctionState) -> "AuctionStateResponse":
        return cls(
            status=state.effective_status.value,
            auction=AuctionSnapshotOut.from_domain(state.snapshot),
            history=[BidHistoryEntryOut.from_domain(e) for e in state.history],
        )


class PlaceBidResponse(BaseModel):
    bid_id: str
    maximum_bid: int
    is_highest_bidder: bool
    auction: AuctionSnapshotOut

    @classmethod
    def from_domain(cls, p: BidPlacement) -> "PlaceBidResponse":
        return cls(
            bid_id=p.bid.id,
            maximum_bid=p.bid.amount,
            is_highest_bidder=p.is_highest_bidder,
            auction=AuctionSnapshotOut.from_domain(p.snapshot),
        )


class UserBidStatusResponse(BaseModel):
    has_bid: bool
    is_highest_bidder: bool
    user_highest_bid: int
    user_maximum_bid: int

    @classmethod
    def from_domain(cls, s: UserBidStatus) -> "UserBidStatusResponse":
        return cls(
            has_bid=s.has_bid,
            is_highest_bidder=s.is_highest_bidder,
            user_highest_bid=s.user_highest_bid,
            user_maximum_bid=s.user_maximum_bid,
        )


# ---------------------------------------------------------------------------
# Offers
# ---------------------------------------------------------------------------


class OfferOut(BaseModel):
    id: str
    listing_id: str
    user_id: str
    amount: int
    message: str | None
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, o: Offer) -> "OfferOut":
        return cls(
            id=o.id,
            listing_id=o.listing_id,
            user_id=o.user_id,
            amount=o.amount,
            message=o.message,
            status=o.status,
            created_at=o.created_at,
            updated_at=o.updated_at,
        )


class OfferStateResponse(BaseModel):
    has_pending_offer: bool
    latest_offer: OfferOut | None

    @classmethod
    def from_domain(cls, s: OfferState) -> "OfferStateResponse":
        return cls(
            has_pending_offer=s.has_pending_offer,
            latest_offer=OfferOut.from_domain(s.latest_offer) if s.latest_offer else None,
        )


class OfferListResponse(BaseModel):
    items: list[OfferOut]


class RespondToOfferResponse(BaseModel):
    offer: OfferOut
    listing_status: str
    auto_declined_offer_ids: list[str]

    @classmethod
    def from_domain(cls, r: OfferResolution, listing_status: str) -> "RespondToOfferResponse":
        return cls(
            offer=OfferOut.from_domain(r.offer),
            listing_status=listing_status,
            auto_declined_offer_ids=[o.id for o in r.auto_declined],
        )
