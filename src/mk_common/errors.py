"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity
  2xxx: Capability / ownership
  3xxx: Listing
  4xxx: Bid
  5xxx: Offer
  9xxx: System

Business-rule rejections derive from NegotiationRejected and carry a
RejectionReason. StorageFailureError does not: it is the one
condition that must never be mistaken for a rejected bid or offer.
"""

from src.mk_common.enums import RejectionReason
from src.mk_common.money import MAX_AMOUNT


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class NegotiationRejected(AppError):
    """A precondition of a bid/offer/listing mutation was not met."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int,
        reason: RejectionReason,
    ) -> None:
        self.reason = reason
        super().__init__(code, message, http_status)


# --- 1xxx: Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Account is disabled", 403)


# --- 2xxx: Capability / ownership ---

class UnauthorizedError(NegotiationRejected):
    def __init__(self, detail: str, code: int = 2001) -> None:
        super().__init__(code, detail, 403, RejectionReason.UNAUTHORIZED)


class SelfBidError(UnauthorizedError):
    def __init__(self) -> None:
        super().__init__("Sellers cannot bid on their own listing", code=2002)


class NotListingSellerError(UnauthorizedError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(f"Only the seller may act on listing {listing_id}", code=2003)


# --- 3xxx: Listing ---

class ListingNotFoundError(NegotiationRejected):
    def __init__(self, listing_id: str) -> None:
        super().__init__(3001, f"Listing not found: {listing_id}", 404, RejectionReason.NOT_FOUND)


class AuctionClosedError(NegotiationRejected):
    def __init__(self, listing_id: str, effective_status: str) -> None:
        super().__init__(
            3002,
            f"Listing {listing_id} is not accepting bids (status: {effective_status})",
            422,
            RejectionReason.AUCTION_CLOSED,
        )


class InvalidListingError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3003, f"Invalid listing: {detail}", 422)


# --- 4xxx: Bid ---

class InvalidAmountError(NegotiationRejected):
    def __init__(self, amount: int, minimum: int) -> None:
        self.amount = amount
        self.minimum = minimum
        super().__init__(
            4001,
            (
                f"Bid of {amount} exceeds the maximum of {MAX_AMOUNT}"
                if amount > MAX_AMOUNT
                else f"Bid of {amount} is too low: minimum is {minimum}"
            ),
            422,
            RejectionReason.INVALID_AMOUNT,
        )


# --- 5xxx: Offer ---

class OfferNotFoundError(NegotiationRejected):
    def __init__(self, offer_id: str) -> None:
        super().__init__(5001, f"Offer not found: {offer_id}", 404, RejectionReason.NOT_FOUND)


class OffersNotAllowedError(NegotiationRejected):
    def __init__(self, listing_id: str) -> None:
        super().__init__(
            5002,
            f"Listing {listing_id} does not accept offers",
            422,
            RejectionReason.OFFERS_NOT_ALLOWED,
        )


class BiddingAlreadyStartedError(NegotiationRejected):
    def __init__(self, listing_id: str) -> None:
        super().__init__(
            5003,
            f"Bidding has started on listing {listing_id}; offers are closed",
            409,
            RejectionReason.BIDDING_ALREADY_STARTED,
        )


class DuplicatePendingOfferError(NegotiationRejected):
    def __init__(self, listing_id: str) -> None:
        super().__init__(
            5004,
            f"You already have a pending offer on listing {listing_id}",
            409,
            RejectionReason.DUPLICATE_PENDING_OFFER,
        )


class AlreadyResolvedError(NegotiationRejected):
    def __init__(self, offer_id: str, status: str) -> None:
        super().__init__(
            5005,
            f"Offer {offer_id} is already {status}",
            409,
            RejectionReason.ALREADY_RESOLVED,
        )


class InvalidOfferAmountError(NegotiationRejected):
    def __init__(self, amount: int) -> None:
        super().__init__(
            5006,
            f"Offer amount must be between 1 and {MAX_AMOUNT}, got {amount}",
            422,
            RejectionReason.INVALID_AMOUNT,
        )


# --- 9xxx: System ---

class StorageFailureError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Storage failure: {detail}", 503)
