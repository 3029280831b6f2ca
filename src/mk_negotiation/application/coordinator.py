"""NegotiationCoordinator — the façade clients use to bid, offer and respond.

On every accepted mutation it emits one notification per affected party and
one realtime refresh for the listing, always after the ledger has committed.
Rejections return a Rejected value with no side effects. Nothing is retried.
"""
import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_bidding.domain.models import AuctionOutcome, BidPlacement, UserBidStatus
from src.mk_bidding.engine.ledger import BidLedger
from src.mk_common.datetime_utils import Clock, utc_now
from src.mk_common.enums import (
    NotificationType,
    OfferDecision,
    StoredListingStatus,
)
from src.mk_common.errors import ListingNotFoundError, NegotiationRejected
from src.mk_common.money import pounds_to_display
from src.mk_listing.domain.repository import ListingRepositoryProtocol
from src.mk_listing.domain.status import ENDING_SOON_WINDOW, effective_status
from src.mk_negotiation.domain.models import AuctionState
from src.mk_negotiation.domain.results import Accepted, Rejected
from src.mk_notification.domain.events import (
    ListingChanged,
    ListingPublisherProtocol,
    NotificationEvent,
    NotificationSinkProtocol,
)
from src.mk_offer.domain.models import Offer, OfferCreated, OfferResolution, OfferState
from src.mk_offer.engine.ledger import OfferLedger
from src.mk_verification.domain.models import Caller

logger = logging.getLogger(__name__)

_SWEEP_BATCH = 100


class NegotiationCoordinator:
    def __init__(
        self,
        bid_ledger: BidLedger,
        offer_ledger: OfferLedger,
        listings: ListingRepositoryProtocol,
        sink: NotificationSinkProtocol,
        publisher: ListingPublisherProtocol,
        clock: Clock = utc_now,
        ending_soon_window: timedelta = ENDING_SOON_WINDOW,
    ) -> None:
        self._bids = bid_ledger
        self._offers = offer_ledger
        self._listings = listings
        self._sink = sink
        self._publisher = publisher
        self._clock = clock
        self._ending_soon_window = ending_soon_window

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def ending_soon_window(self) -> timedelta:
        return self._ending_soon_window

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def place_bid(
        self, listing_id: str, caller: Caller, amount: int, db: AsyncSession
    ) -> Accepted[BidPlacement] | Rejected:
        try:
            placement = await self._bids.place_bid(listing_id, caller, amount, db)
        except NegotiationRejected as exc:
            return Rejected(exc)

        listing = placement.listing
        price = placement.snapshot.current_price
        await self._sink.emit(
            NotificationEvent(
                type=NotificationType.NEW_BID,
                listing_id=listing_id,
                recipient_user_id=listing.seller_id,
                message=f'New bid on your listing "{listing.title}": now {pounds_to_display(price)}',
                payload={
                    "listing_id": listing_id,
                    "listing_title": listing.title,
                    "bid_amount": price,
                    "bidder_id": caller.account_id,
                },
            )
        )
        await self._refresh(listing_id, NotificationType.NEW_BID.value)
        return Accepted(placement)

    async def make_offer(
        self,
        listing_id: str,
        caller: Caller,
        amount: int,
        message: str | None,
        db: AsyncSession,
    ) -> Accepted[OfferCreated] | Rejected:
        try:
            created = await self._offers.make_offer(listing_id, caller, amount, message, db)
        except NegotiationRejected as exc:
            return Rejected(exc)

        listing = created.listing
        await self._sink.emit(
            NotificationEvent(
                type=NotificationType.NEW_OFFER,
                listing_id=listing_id,
                recipient_user_id=listing.seller_id,
                message=(
                    f"New offer of {pounds_to_display(amount)} "
                    f'on your listing "{listing.title}"'
                ),
                payload={
                    "listing_id": listing_id,
                    "listing_title": listing.title,
                    "offer_id": created.offer.id,
                    "offer_amount": amount,
                    "offerer_id": caller.account_id,
                },
            )
        )
        await self._refresh(listing_id, NotificationType.NEW_OFFER.value)
        return Accepted(created)

    async def respond_to_offer(
        self,
        offer_id: str,
        caller: Caller,
        decision: OfferDecision,
        db: AsyncSession,
    ) -> Accepted[OfferResolution] | Rejected:
        try:
            resolution = await self._offers.respond_to_offer(
                offer_id, caller, decision, db, on_accept=self._record_offer_sale
            )
        except NegotiationRejected as exc:
            return Rejected(exc)

        offer, listing = resolution.offer, resolution.listing
        accepted = decision == OfferDecision.ACCEPTED
        await self._sink.emit(
            NotificationEvent(
                type=NotificationType.OFFER_ACCEPTED if accepted else NotificationType.OFFER_DECLINED,
                listing_id=listing.id,
                recipient_user_id=offer.user_id,
                message=(
                    f"Your offer of {pounds_to_display(offer.amount)} on "
                    f'"{listing.title}" was {offer.status}'
                ),
                payload={
                    "listing_id": listing.id,
                    "listing_title": listing.title,
                    "offer_id": offer.id,
                    "offer_amount": offer.amount,
                    "status": offer.status,
                },
            )
        )
        for other in resolution.auto_declined:
            await self._sink.emit(
                NotificationEvent(
                    type=NotificationType.OFFER_AUTO_DECLINED,
                    listing_id=listing.id,
                    recipient_user_id=other.user_id,
                    message=(
                        f'Your offer on "{listing.title}" was declined because '
                        "another offer was accepted."
                    ),
                    payload={
                        "listing_id": listing.id,
                        "listing_title": listing.title,
                        "offer_id": other.id,
                        "status": other.status,
                        "reason": "another_offer_accepted",
                    },
                )
            )
        await self._refresh(listing.id, f"offer_{offer.status}")
        return Accepted(resolution)

    async def expire_offer(self, offer_id: str, db: AsyncSession) -> Accepted[Offer] | Rejected:
        """Sweep trigger: a pending offer ran out of time."""
        try:
            offer = await self._offers.expire_offer(offer_id, db)
        except NegotiationRejected as exc:
            return Rejected(exc)

        await self._sink.emit(
            NotificationEvent(
                type=NotificationType.OFFER_EXPIRED,
                listing_id=offer.listing_id,
                recipient_user_id=offer.user_id,
                message=f"Your offer of {pounds_to_display(offer.amount)} has expired.",
                payload={"listing_id": offer.listing_id, "offer_id": offer.id},
            )
        )
        await self._refresh(offer.listing_id, NotificationType.OFFER_EXPIRED.value)
        return Accepted(offer)

    async def close_expired_auction(
        self, listing_id: str, db: AsyncSession
    ) -> Accepted[AuctionOutcome] | Rejected:
        try:
            outcome = await self._bids.close_auction(listing_id, db, self._record_auction_close)
        except NegotiationRejected as exc:
            return Rejected(exc)
        if not outcome.closed:
            return Accepted(outcome)

        for event in _auction_close_events(outcome):
            await self._sink.emit(event)
        await self._refresh(listing_id, "auction_closed")
        return Accepted(outcome)

    async def close_expired_auctions(
        self, db: AsyncSession, limit: int = _SWEEP_BATCH
    ) -> list[AuctionOutcome]:
        """Settle every active auction whose end time has passed."""
        due = await self._listings.list_expired_active_auctions(self._clock(), limit, db)
        outcomes: list[AuctionOutcome] = []
        for listing in due:
            result = await self.close_expired_auction(listing.id, db)
            if isinstance(result, Accepted) and result.value.closed:
                outcomes.append(result.value)
        logger.info("Auction sweep closed %d of %d due listings", len(outcomes), len(due))
        return outcomes

    # ------------------------------------------------------------------
    # Reads: idempotent full re-fetches, safe to poll alongside push
    # ------------------------------------------------------------------

    async def get_auction_state(
        self, listing_id: str, db: AsyncSession
    ) -> Accepted[AuctionState] | Rejected:
        listing = await self._listings.get_by_id(listing_id, db)
        if listing is None:
            return Rejected(ListingNotFoundError(listing_id))
        snapshot, history = await self._bids.auction_state(listing_id, db)
        return Accepted(
            AuctionState(
                snapshot=snapshot,
                effective_status=effective_status(
                    listing, self._clock(), self._ending_soon_window
                ),
                history=history,
            )
        )

    async def get_user_bid_status(
        self, listing_id: str, caller: Caller, db: AsyncSession
    ) -> Accepted[UserBidStatus] | Rejected:
        try:
            return Accepted(await self._bids.user_bid_status(listing_id, caller.account_id, db))
        except NegotiationRejected as exc:
            return Rejected(exc)

    async def get_offer_state(
        self, listing_id: str, caller: Caller, db: AsyncSession
    ) -> Accepted[OfferState] | Rejected:
        try:
            return Accepted(await self._offers.offer_state(listing_id, caller.account_id, db))
        except NegotiationRejected as exc:
            return Rejected(exc)

    async def list_offers(
        self, listing_id: str, caller: Caller, db: AsyncSession
    ) -> Accepted[list[Offer]] | Rejected:
        try:
            return Accepted(await self._offers.list_offers(listing_id, caller, db))
        except NegotiationRejected as exc:
            return Rejected(exc)

    # ------------------------------------------------------------------
    # Listing status collaborator hooks (run inside the ledger transaction)
    # ------------------------------------------------------------------

    async def _record_offer_sale(self, resolution: OfferResolution, db: AsyncSession) -> None:
        await self._listings.update_status(
            resolution.listing.id,
            StoredListingStatus.SOLD.value,
            db,
            sale_buyer_id=resolution.offer.user_id,
            sale_amount=resolution.offer.amount,
        )

    async def _record_auction_close(self, outcome: AuctionOutcome, db: AsyncSession) -> None:
        if outcome.winner_id is None:
            await self._listings.update_status(
                outcome.listing_id, StoredListingStatus.EXPIRED.value, db
            )
            return
        await self._listings.update_status(
            outcome.listing_id,
            StoredListingStatus.SOLD.value,
            db,
            sale_buyer_id=outcome.winner_id,
            sale_amount=outcome.sale_amount,
        )

    async def _refresh(self, listing_id: str, event: str) -> None:
        await self._publisher.publish(ListingChanged(listing_id=listing_id, event=event))


def _auction_close_events(outcome: AuctionOutcome) -> list[NotificationEvent]:
    if outcome.winner_id is None or outcome.sale_amount is None:
        return [
            NotificationEvent(
                type=NotificationType.AUCTION_ENDED_NO_BIDS,
                listing_id=outcome.listing_id,
                recipient_user_id=outcome.seller_id,
                message=f'Auction ended for "{outcome.title}" with no bids.',
                payload={"listing_id": outcome.listing_id},
            )
        ]
    amount = pounds_to_display(outcome.sale_amount)
    payload = {
        "listing_id": outcome.listing_id,
        "buyer_id": outcome.winner_id,
        "seller_id": outcome.seller_id,
        "amount": outcome.sale_amount,
    }
    return [
        NotificationEvent(
            type=NotificationType.AUCTION_SOLD,
            listing_id=outcome.listing_id,
            recipient_user_id=outcome.seller_id,
            message=f'Your auction "{outcome.title}" was won for {amount}.',
            payload=payload,
        ),
        NotificationEvent(
            type=NotificationType.AUCTION_WON,
            listing_id=outcome.listing_id,
            recipient_user_id=outcome.winner_id,
            message=f'Congratulations! You won "{outcome.title}" for {amount}.',
            payload=payload,
        ),
    ]
