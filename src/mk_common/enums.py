"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class VerificationTier(str, Enum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    TRADER = "trader"


class ListingType(str, Enum):
    AUCTION = "auction"
    CLASSIFIED = "classified"


class StoredListingStatus(str, Enum):
    """Persisted status. Authoritative once it leaves ACTIVE."""
    ACTIVE = "active"
    SOLD = "sold"
    EXPIRED = "expired"
    COMPLETED = "completed"


class EffectiveListingStatus(str, Enum):
    """Status derived from stored status + wall clock; never persisted."""
    ACTIVE = "active"
    ENDING_SOON = "endingSoon"
    ENDED = "ended"
    SOLD = "sold"
    EXPIRED = "expired"
    COMPLETED = "completed"


class OfferStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class OfferDecision(str, Enum):
    ACCEPTED = "accepted"
    DECLINED = "declined"


class NotificationType(str, Enum):
    NEW_BID = "new_bid"
    NEW_OFFER = "new_offer"
    OFFER_ACCEPTED = "offer_accepted"
    OFFER_DECLINED = "offer_declined"
    # Cascades and sweeps
    OFFER_AUTO_DECLINED = "offer_auto_declined"
    OFFER_EXPIRED = "offer_expired"
    AUCTION_SOLD = "auction_sold"
    AUCTION_WON = "auction_won"
    AUCTION_ENDED_NO_BIDS = "auction_ended_no_bids"


class RejectionReason(str, Enum):
    UNAUTHORIZED = "Unauthorized"
    INVALID_AMOUNT = "InvalidAmount"
    AUCTION_CLOSED = "AuctionClosed"
    BIDDING_ALREADY_STARTED = "BiddingAlreadyStarted"
    DUPLICATE_PENDING_OFFER = "DuplicatePendingOffer"
    ALREADY_RESOLVED = "AlreadyResolved"
    OFFERS_NOT_ALLOWED = "OffersNotAllowed"
    NOT_FOUND = "NotFound"
