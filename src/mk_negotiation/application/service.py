"""Wiring for the negotiation core plus the thin HTTP-facing helpers.

A single coordinator per process: both ledgers must share one
ListingLockRegistry, otherwise a bid and an offer on the same listing could
interleave.
"""

from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mk_bidding.engine.ledger import BidLedger
from src.mk_bidding.infrastructure.persistence import BidRepository
from src.mk_common.database import async_session_factory
from src.mk_common.enums import EffectiveListingStatus, OfferDecision
from src.mk_common.listing_locks import ListingLockRegistry
from src.mk_common.redis_client import get_redis
from src.mk_listing.domain.status import effective_status
from src.mk_listing.infrastructure.persistence import ListingRepository
from src.mk_negotiation.application.coordinator import NegotiationCoordinator
from src.mk_negotiation.application.schemas import (
    AuctionStateResponse,
    MakeOfferRequest,
    OfferListResponse,
    OfferOut,
    OfferStateResponse,
    PlaceBidRequest,
    PlaceBidResponse,
    RespondToOfferRequest,
    RespondToOfferResponse,
    UserBidStatusResponse,
)
from src.mk_negotiation.domain.results import Accepted, Rejected, T
from src.mk_notification.infrastructure.publisher import RedisListingPublisher
from src.mk_notification.infrastructure.sink import DatabaseNotificationSink
from src.mk_offer.engine.ledger import OfferLedger
from src.mk_offer.infrastructure.persistence import OfferRepository
from src.mk_verification.domain.models import Caller

_coordinator: NegotiationCoordinator | None = None


def build_coordinator() -> NegotiationCoordinator:
    listings = ListingRepository()
    locks = ListingLockRegistry()
    window = timedelta(hours=settings.ENDING_SOON_HOURS)
    bid_ledger = BidLedger(
        listings,
        BidRepository(),
        locks,
        increment=settings.BID_INCREMENT,
        ending_soon_window=window,
    )
    offer_ledger = OfferLedger(
        listings, OfferRepository(), bid_ledger, locks, ending_soon_window=window
    )
    return NegotiationCoordinator(
        bid_ledger,
        offer_ledger,
        listings,
        sink=DatabaseNotificationSink(async_session_factory),
        publisher=RedisListingPublisher(get_redis, settings.REALTIME_CHANNEL_PREFIX),
        ending_soon_window=window,
    )


def get_coordinator() -> NegotiationCoordinator:
    """Process-wide coordinator (lazy singleton), used as a FastAPI dependency."""
    global _coordinator  # noqa: PLW0603
    if _coordinator is None:
        _coordinator = build_coordinator()
    return _coordinator


def unwrap(result: Accepted[T] | Rejected) -> T:
    """Turn a Rejected back into its AppError so the global handler renders it."""
    if isinstance(result, Rejected):
        raise result.error
    return result.value


async def place_bid(
    coordinator: NegotiationCoordinator,
    listing_id: str,
    req: PlaceBidRequest,
    caller: Caller,
    db: AsyncSession,
) -> PlaceBidResponse:
    placement = unwrap(await coordinator.place_bid(listing_id, caller, req.amount, db))
    return PlaceBidResponse.from_domain(placement)


async def get_auction_state(
    coordinator: NegotiationCoordinator, listing_id: str, db: AsyncSession
) -> AuctionStateResponse:
    return AuctionStateResponse.from_domain(
        unwrap(await coordinator.get_auction_state(listing_id, db))
    )


async def get_user_bid_status(
    coordinator: NegotiationCoordinator, listing_id: str, caller: Caller, db: AsyncSession
) -> UserBidStatusResponse:
    return UserBidStatusResponse.from_domain(
        unwrap(await coordinator.get_user_bid_status(listing_id, caller, db))
    )


async def make_offer(
    coordinator: NegotiationCoordinator,
    listing_id: str,
    req: MakeOfferRequest,
    caller: Caller,
    db: AsyncSession,
) -> OfferOut:
    created = unwrap(
        await coordinator.make_offer(listing_id, caller, req.amount, req.message, db)
    )
    return OfferOut.from_domain(created.offer)


async def get_offer_state(
    coordinator: NegotiationCoordinator, listing_id: str, caller: Caller, db: AsyncSession
) -> OfferStateResponse:
    return OfferStateResponse.from_domain(
        unwrap(await coordinator.get_offer_state(listing_id, caller, db))
    )


async def list_offers(
    coordinator: NegotiationCoordinator, listing_id: str, caller: Caller, db: AsyncSession
) -> OfferListResponse:
    offers = unwrap(await coordinator.list_offers(listing_id, caller, db))
    return OfferListResponse(items=[OfferOut.from_domain(o) for o in offers])


async def respond_to_offer(
    coordinator: NegotiationCoordinator,
    offer_id: str,
    req: RespondToOfferRequest,
    caller: Caller,
    db: AsyncSession,
) -> RespondToOfferResponse:
    decision = OfferDecision(req.decision)
    resolution = unwrap(await coordinator.respond_to_offer(offer_id, caller, decision, db))
    # The sale hook has already committed; reflect it without another read.
    if resolution.triggers_sale:
        listing_status = EffectiveListingStatus.SOLD
    else:
        listing_status = effective_status(
            resolution.listing, coordinator.clock(), coordinator.ending_soon_window
        )
    return RespondToOfferResponse.from_domain(resolution, listing_status.value)
