"""OfferLedger — single-pending-offer-per-buyer negotiation, serialized per listing.

Shares the listing lock registry with BidLedger, so "no offers once bidding
has started" is checked against a bid count no bid can race past.
"""
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_bidding.engine.ledger import BidLedger
from src.mk_common.database import atomic
from src.mk_common.datetime_utils import Clock, utc_now
from src.mk_common.enums import OfferDecision, OfferStatus
from src.mk_common.errors import (
    AlreadyResolvedError,
    AuctionClosedError,
    BiddingAlreadyStartedError,
    DuplicatePendingOfferError,
    InvalidOfferAmountError,
    ListingNotFoundError,
    NegotiationRejected,
    NotListingSellerError,
    OfferNotFoundError,
    OffersNotAllowedError,
    UnauthorizedError,
)
from src.mk_common.id_generator import generate_id
from src.mk_common.listing_locks import ListingLockRegistry
from src.mk_common.money import is_valid_amount
from src.mk_listing.domain.models import Listing
from src.mk_listing.domain.repository import ListingRepositoryProtocol
from src.mk_listing.domain.status import ENDING_SOON_WINDOW, effective_status, is_open
from src.mk_offer.domain.models import Offer, OfferCreated, OfferResolution, OfferState
from src.mk_offer.domain.repository import OfferRepositoryProtocol
from src.mk_offer.domain.state_machine import transition
from src.mk_verification.domain.gate import require_capability
from src.mk_verification.domain.models import Caller

logger = logging.getLogger(__name__)

# Runs inside the listing lock and transaction after an offer is accepted.
SaleHook = Callable[[OfferResolution, AsyncSession], Awaitable[None]]


class OfferLedger:
    def __init__(
        self,
        listings: ListingRepositoryProtocol,
        offers: OfferRepositoryProtocol,
        bid_ledger: BidLedger,
        locks: ListingLockRegistry,
        clock: Clock = utc_now,
        ending_soon_window: timedelta = ENDING_SOON_WINDOW,
    ) -> None:
        self._listings = listings
        self._offers = offers
        self._bid_ledger = bid_ledger
        self._locks = locks
        self._clock = clock
        self._ending_soon_window = ending_soon_window

    # ------------------------------------------------------------------
    # Buyer side
    # ------------------------------------------------------------------

    async def make_offer(
        self,
        listing_id: str,
        caller: Caller,
        amount: int,
        message: str | None,
        db: AsyncSession,
    ) -> OfferCreated:
        try:
            require_capability(caller, "can_make_offers", "make offers")
            async with self._locks.for_listing(listing_id):
                async with atomic(db):
                    created = await self._make_offer_inner(listing_id, caller, amount, message, db)
        except NegotiationRejected as exc:
            logger.info(
                "Offer rejected listing=%s user=%s amount=%s reason=%s",
                listing_id, caller.account_id, amount, exc.reason.value,
            )
            raise
        logger.info(
            "Offer created id=%s listing=%s user=%s amount=%s",
            created.offer.id, listing_id, caller.account_id, amount,
        )
        return created

    async def _make_offer_inner(
        self,
        listing_id: str,
        caller: Caller,
        amount: int,
        message: str | None,
        db: AsyncSession,
    ) -> OfferCreated:
        listing = await self._listings.get_for_update(listing_id, db)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        if caller.account_id == listing.seller_id:
            raise UnauthorizedError("Sellers cannot make offers on their own listing")
        if not listing.allow_best_offer:
            raise OffersNotAllowedError(listing_id)
        if await self._bid_ledger.bid_count(listing_id, db) > 0:
            raise BiddingAlreadyStartedError(listing_id)
        if await self._offers.get_pending(listing_id, caller.account_id, db) is not None:
            raise DuplicatePendingOfferError(listing_id)

        now = self._clock()
        if not is_open(listing, now, self._ending_soon_window):
            status = effective_status(listing, now, self._ending_soon_window)
            raise AuctionClosedError(listing_id, status.value)
        if not is_valid_amount(amount):
            raise InvalidOfferAmountError(amount)

        offer = Offer(
            id=generate_id(),
            listing_id=listing_id,
            user_id=caller.account_id,
            amount=amount,
            message=message.strip() if message and message.strip() else None,
            status=OfferStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        await self._offers.save(offer, db)
        return OfferCreated(offer=offer, listing=listing)

    # ------------------------------------------------------------------
    # Seller side
    # ------------------------------------------------------------------

    async def respond_to_offer(
        self,
        offer_id: str,
        caller: Caller,
        decision: OfferDecision,
        db: AsyncSession,
        on_accept: SaleHook | None = None,
    ) -> OfferResolution:
        """Resolve a pending offer exactly once.

        Accepting declines every other pending offer on the listing and runs
        `on_accept` before the transaction commits.
        """
        try:
            require_capability(caller, "can_buy_and_sell", "respond to offers")
            located = await self._offers.get_by_id(offer_id, db)
            if located is None:
                raise OfferNotFoundError(offer_id)
            async with self._locks.for_listing(located.listing_id):
                async with atomic(db):
                    resolution = await self._respond_inner(
                        offer_id, located.listing_id, caller, decision, db, on_accept
                    )
        except NegotiationRejected as exc:
            logger.info(
                "Offer response rejected offer=%s user=%s decision=%s reason=%s",
                offer_id, caller.account_id, decision.value, exc.reason.value,
            )
            raise
        logger.info(
            "Offer %s %s by seller=%s (auto-declined %d)",
            offer_id, resolution.offer.status, caller.account_id, len(resolution.auto_declined),
        )
        return resolution

    async def _respond_inner(
        self,
        offer_id: str,
        listing_id: str,
        caller: Caller,
        decision: OfferDecision,
        db: AsyncSession,
        on_accept: SaleHook | None,
    ) -> OfferResolution:
        listing = await self._listings.get_for_update(listing_id, db)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        if caller.account_id != listing.seller_id:
            raise NotListingSellerError(listing_id)

        # Re-read under the lock: the status seen before queueing may be stale.
        offer = await self._offers.get_by_id(offer_id, db)
        if offer is None:
            raise OfferNotFoundError(offer_id)

        now = self._clock()
        await self._apply(offer, OfferStatus(decision.value), now, db)

        resolution = OfferResolution(offer=offer, listing=listing)
        if decision == OfferDecision.ACCEPTED:
            for other in await self._offers.list_by_listing(
                listing_id, db, status=OfferStatus.PENDING.value
            ):
                if other.id == offer.id:
                    continue
                await self._apply(other, OfferStatus.DECLINED, now, db)
                resolution.auto_declined.append(other)
            if on_accept is not None:
                await on_accept(resolution, db)
        return resolution

    # ------------------------------------------------------------------
    # Time sweep trigger
    # ------------------------------------------------------------------

    async def expire_offer(self, offer_id: str, db: AsyncSession) -> Offer:
        """pending -> expired. Called by an external sweep; no caller identity."""
        located = await self._offers.get_by_id(offer_id, db)
        if located is None:
            raise OfferNotFoundError(offer_id)
        async with self._locks.for_listing(located.listing_id):
            async with atomic(db):
                offer = await self._offers.get_by_id(offer_id, db)
                if offer is None:
                    raise OfferNotFoundError(offer_id)
                await self._apply(offer, OfferStatus.EXPIRED, self._clock(), db)
        logger.info("Offer expired id=%s listing=%s", offer.id, offer.listing_id)
        return offer

    async def _apply(
        self, offer: Offer, target: OfferStatus, now: datetime, db: AsyncSession
    ) -> None:
        transition(offer, target, now)
        # Guards against a writer in another process that resolved it first.
        if not await self._offers.update_status(offer, OfferStatus.PENDING.value, db):
            stored = await self._offers.get_by_id(offer.id, db)
            raise AlreadyResolvedError(offer.id, stored.status if stored else "unknown")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def offer_state(self, listing_id: str, user_id: str, db: AsyncSession) -> OfferState:
        await self._require_listing(listing_id, db)
        pending = await self._offers.get_pending(listing_id, user_id, db)
        latest = pending or await self._offers.get_latest_for_user(listing_id, user_id, db)
        return OfferState(has_pending_offer=pending is not None, latest_offer=latest)

    async def list_offers(
        self, listing_id: str, caller: Caller, db: AsyncSession
    ) -> list[Offer]:
        """Seller-only view of every offer on the listing, newest first."""
        listing = await self._require_listing(listing_id, db)
        if caller.account_id != listing.seller_id:
            raise NotListingSellerError(listing_id)
        return await self._offers.list_by_listing(listing_id, db)

    async def _require_listing(self, listing_id: str, db: AsyncSession) -> Listing:
        listing = await self._listings.get_by_id(listing_id, db)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing
