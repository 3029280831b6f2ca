"""BidLedger — per-listing serialized bid admission over an append-only history."""
import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_bidding.domain import proxy
from src.mk_bidding.domain.models import (
    AuctionOutcome,
    AuctionSnapshot,
    Bid,
    BidHistoryEntry,
    BidPlacement,
    UserBidStatus,
)
from src.mk_bidding.domain.repository import BidRepositoryProtocol
from src.mk_common.database import atomic
from src.mk_common.datetime_utils import Clock, utc_now
from src.mk_common.enums import EffectiveListingStatus
from src.mk_common.errors import (
    AuctionClosedError,
    InvalidAmountError,
    ListingNotFoundError,
    NegotiationRejected,
    SelfBidError,
)
from src.mk_common.id_generator import generate_id, next_sequence
from src.mk_common.listing_locks import ListingLockRegistry
from src.mk_common.money import is_valid_amount
from src.mk_listing.domain.models import Listing
from src.mk_listing.domain.repository import ListingRepositoryProtocol
from src.mk_listing.domain.status import ENDING_SOON_WINDOW, effective_status, is_open
from src.mk_verification.domain.gate import require_capability
from src.mk_verification.domain.models import Caller

logger = logging.getLogger(__name__)

# Runs inside the listing lock and transaction when an ended auction is settled.
CloseHook = Callable[[AuctionOutcome, AsyncSession], Awaitable[None]]


class BidLedger:
    def __init__(
        self,
        listings: ListingRepositoryProtocol,
        bids: BidRepositoryProtocol,
        locks: ListingLockRegistry,
        increment: int = proxy.DEFAULT_BID_INCREMENT,
        ending_soon_window: timedelta = ENDING_SOON_WINDOW,
        clock: Clock = utc_now,
    ) -> None:
        self._listings = listings
        self._bids = bids
        self._locks = locks
        self._increment = increment
        self._ending_soon_window = ending_soon_window
        self._clock = clock

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    async def place_bid(
        self, listing_id: str, caller: Caller, amount: int, db: AsyncSession
    ) -> BidPlacement:
        """Admit a maximum bid. Checks run in a fixed order; the first failure wins:
        capability → listing open → not the seller → amount.

        A bid queued behind another on the same listing is validated only after
        the earlier one commits, i.e. against the raised price.
        """
        try:
            require_capability(caller, "can_place_bids", "place bids")
            async with self._locks.for_listing(listing_id):
                async with atomic(db):
                    placement = await self._place_bid_inner(listing_id, caller, amount, db)
        except NegotiationRejected as exc:
            logger.info(
                "Bid rejected listing=%s user=%s amount=%s reason=%s",
                listing_id, caller.account_id, amount, exc.reason.value,
            )
            raise

        logger.info(
            "Bid accepted listing=%s user=%s max=%s price=%s leader=%s",
            listing_id,
            caller.account_id,
            amount,
            placement.snapshot.current_price,
            placement.snapshot.highest_bidder_id,
        )
        return placement

    async def _place_bid_inner(
        self, listing_id: str, caller: Caller, amount: int, db: AsyncSession
    ) -> BidPlacement:
        now = self._clock()
        listing = await self._listings.get_for_update(listing_id, db)
        if listing is None:
            raise ListingNotFoundError(listing_id)

        if not is_open(listing, now, self._ending_soon_window):
            status = effective_status(listing, now, self._ending_soon_window)
            raise AuctionClosedError(listing_id, status.value)

        if caller.account_id == listing.seller_id:
            raise SelfBidError()

        history = await self._bids.list_by_listing(listing_id, db)
        before = self._fold(listing, history)
        if not is_valid_amount(amount) or amount < before.minimum_next_bid:
            raise InvalidAmountError(amount, before.minimum_next_bid)

        bid = Bid(
            id=generate_id(),
            listing_id=listing_id,
            user_id=caller.account_id,
            amount=amount,
            seq=next_sequence(),
            created_at=now,
        )
        await self._bids.append(bid, db)
        return BidPlacement(
            bid=bid,
            listing=listing,
            snapshot=self._fold(listing, [*history, bid]),
        )

    # ------------------------------------------------------------------
    # Settlement (triggered by the expiry sweep)
    # ------------------------------------------------------------------

    async def close_auction(
        self, listing_id: str, db: AsyncSession, on_close: CloseHook
    ) -> AuctionOutcome:
        """Settle an auction whose time is up but whose stored status is still active.

        Any other state returns `closed=False` untouched, so the sweep can be
        re-run safely.
        """
        async with self._locks.for_listing(listing_id):
            async with atomic(db):
                listing = await self._listings.get_for_update(listing_id, db)
                if listing is None:
                    raise ListingNotFoundError(listing_id)
                status = effective_status(listing, self._clock(), self._ending_soon_window)
                if not listing.is_auction or status != EffectiveListingStatus.ENDED:
                    return AuctionOutcome(
                        listing_id=listing.id,
                        seller_id=listing.seller_id,
                        title=listing.title,
                        closed=False,
                    )
                snapshot = self._fold(listing, await self._bids.list_by_listing(listing_id, db))
                outcome = AuctionOutcome(
                    listing_id=listing.id,
                    seller_id=listing.seller_id,
                    title=listing.title,
                    closed=True,
                    winner_id=snapshot.highest_bidder_id,
                    sale_amount=snapshot.current_price if snapshot.bid_count else None,
                )
                await on_close(outcome, db)

        logger.info(
            "Auction closed listing=%s winner=%s amount=%s",
            listing_id, outcome.winner_id, outcome.sale_amount,
        )
        return outcome

    # ------------------------------------------------------------------
    # Reads: lock-free, idempotent, safe to poll
    # ------------------------------------------------------------------

    async def snapshot(self, listing_id: str, db: AsyncSession) -> AuctionSnapshot:
        listing, history = await self._load(listing_id, db)
        return self._fold(listing, history)

    async def current_price(self, listing_id: str, db: AsyncSession) -> int:
        return (await self.snapshot(listing_id, db)).current_price

    async def user_bid_status(
        self, listing_id: str, user_id: str, db: AsyncSession
    ) -> UserBidStatus:
        listing, history = await self._load(listing_id, db)
        return proxy.user_bid_status(history, user_id, self._fold(listing, history))

    async def history(self, listing_id: str, db: AsyncSession) -> list[BidHistoryEntry]:
        listing, bids = await self._load(listing_id, db)
        return proxy.bid_history(listing.id, bids, listing.price, self._increment)

    async def auction_state(
        self, listing_id: str, db: AsyncSession
    ) -> tuple[AuctionSnapshot, list[BidHistoryEntry]]:
        """Snapshot and history from a single read of the bid table."""
        listing, bids = await self._load(listing_id, db)
        return (
            self._fold(listing, bids),
            proxy.bid_history(listing.id, bids, listing.price, self._increment),
        )

    async def bid_count(self, listing_id: str, db: AsyncSession) -> int:
        return await self._bids.count_by_listing(listing_id, db)

    async def _load(self, listing_id: str, db: AsyncSession) -> tuple[Listing, list[Bid]]:
        listing = await self._listings.get_by_id(listing_id, db)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing, await self._bids.list_by_listing(listing_id, db)

    def _fold(self, listing: Listing, bids: list[Bid]) -> AuctionSnapshot:
        return proxy.fold(listing.id, bids, listing.price, self._increment)
