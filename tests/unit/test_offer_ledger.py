"""Unit tests for OfferLedger: preconditions, exactly-once resolution, cascades."""
import asyncio
from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.mk_bidding.engine.ledger import BidLedger
from src.mk_common.enums import OfferDecision, RejectionReason, VerificationTier
from src.mk_common.errors import (
    AlreadyResolvedError,
    AuctionClosedError,
    BiddingAlreadyStartedError,
    DuplicatePendingOfferError,
    InvalidOfferAmountError,
    ListingNotFoundError,
    NotListingSellerError,
    OfferNotFoundError,
    OffersNotAllowedError,
    UnauthorizedError,
)
from src.mk_common.listing_locks import ListingLockRegistry
from src.mk_common.money import MAX_AMOUNT
from src.mk_listing.domain.models import Listing
from src.mk_offer.engine.ledger import OfferLedger
from src.mk_verification.domain.models import Caller
from tests.fakes import (
    FakeClock,
    FakeSession,
    InMemoryBidRepository,
    InMemoryListingRepository,
    InMemoryOfferRepository,
)


def _make_listing(clock: FakeClock, **kwargs: Any) -> Listing:
    defaults: dict[str, Any] = {
        "id": "lst-1",
        "seller_id": "seller",
        "title": "Oak table",
        "listing_type": "classified",
        "price": 1000,
        "allow_best_offer": True,
        "created_at": clock.now - timedelta(days=1),
        "expires_at": clock.now + timedelta(days=7),
    }
    defaults.update(kwargs)
    return Listing(**defaults)


def _caller(account_id: str, tier: VerificationTier = VerificationTier.VERIFIED) -> Caller:
    return Caller(account_id=account_id, tier=tier)


SELLER = _caller("seller")


@pytest.fixture
def offers() -> InMemoryOfferRepository:
    return InMemoryOfferRepository()


@pytest.fixture
def listings(clock: FakeClock) -> InMemoryListingRepository:
    return InMemoryListingRepository(
        _make_listing(clock),
        _make_listing(clock, id="lst-auction", listing_type="auction"),
        _make_listing(clock, id="lst-no-offers", allow_best_offer=False),
        _make_listing(clock, id="lst-ended", expires_at=clock.now - timedelta(hours=1)),
    )


@pytest.fixture
def ledger(
    listings: InMemoryListingRepository,
    offers: InMemoryOfferRepository,
    clock: FakeClock,
) -> OfferLedger:
    locks = ListingLockRegistry()
    bid_ledger = BidLedger(listings, InMemoryBidRepository(), locks, clock=clock)
    return OfferLedger(listings, offers, bid_ledger, locks, clock=clock)


class TestMakeOfferScenario:
    async def test_offer_then_duplicate_then_bidding_closes_offers(
        self, ledger: OfferLedger, db: FakeSession
    ) -> None:
        buyer = _caller("buyer")
        created = await ledger.make_offer("lst-auction", buyer, 900, None, db)
        assert created.offer.status == "pending"
        assert created.offer.amount == 900

        with pytest.raises(DuplicatePendingOfferError) as dup:
            await ledger.make_offer("lst-auction", buyer, 950, None, db)
        assert dup.value.reason == RejectionReason.DUPLICATE_PENDING_OFFER

        await ledger._bid_ledger.place_bid("lst-auction", _caller("bidder"), 1000, db)
        with pytest.raises(BiddingAlreadyStartedError) as started:
            await ledger.make_offer("lst-auction", _caller("other-buyer"), 950, None, db)
        assert started.value.reason == RejectionReason.BIDDING_ALREADY_STARTED

    async def test_message_is_trimmed_and_blank_dropped(
        self, ledger: OfferLedger, db: FakeSession
    ) -> None:
        first = await ledger.make_offer("lst-1", _caller("b1"), 900, "  quick sale?  ", db)
        second = await ledger.make_offer("lst-1", _caller("b2"), 900, "   ", db)
        assert first.offer.message == "quick sale?"
        assert second.offer.message is None


class TestMakeOfferPreconditions:
    async def test_capability_first(self, ledger: OfferLedger, db: FakeSession) -> None:
        caller = _caller("buyer", VerificationTier.UNVERIFIED)
        with pytest.raises(UnauthorizedError):
            await ledger.make_offer("missing", caller, -1, None, db)

    async def test_unknown_listing(self, ledger: OfferLedger, db: FakeSession) -> None:
        with pytest.raises(ListingNotFoundError):
            await ledger.make_offer("missing", _caller("buyer"), 900, None, db)

    async def test_seller_cannot_offer(self, ledger: OfferLedger, db: FakeSession) -> None:
        with pytest.raises(UnauthorizedError):
            await ledger.make_offer("lst-1", SELLER, 900, None, db)

    async def test_offers_not_allowed(self, ledger: OfferLedger, db: FakeSession) -> None:
        with pytest.raises(OffersNotAllowedError) as exc_info:
            await ledger.make_offer("lst-no-offers", _caller("buyer"), 900, None, db)
        assert exc_info.value.reason == RejectionReason.OFFERS_NOT_ALLOWED

    async def test_ended_listing(self, ledger: OfferLedger, db: FakeSession) -> None:
        with pytest.raises(AuctionClosedError):
            await ledger.make_offer("lst-ended", _caller("buyer"), 900, None, db)

    async def test_configured_window_keeps_listing_open_until_expiry(
        self, listings: InMemoryListingRepository, clock: FakeClock, db: FakeSession
    ) -> None:
        soon = _make_listing(clock, id="lst-soon", expires_at=clock.now + timedelta(minutes=30))
        listings.rows[soon.id] = soon
        locks = ListingLockRegistry()
        bid_ledger = BidLedger(listings, InMemoryBidRepository(), locks, clock=clock)
        ledger = OfferLedger(
            listings,
            InMemoryOfferRepository(),
            bid_ledger,
            locks,
            clock=clock,
            ending_soon_window=timedelta(hours=2),
        )
        created = await ledger.make_offer("lst-soon", _caller("buyer"), 900, None, db)
        assert created.offer.status == "pending"
        with pytest.raises(AuctionClosedError, match="status: ended"):
            await ledger.make_offer("lst-ended", _caller("buyer"), 900, None, db)

    @pytest.mark.parametrize("amount", [0, -100])
    async def test_non_positive_amount(
        self, ledger: OfferLedger, db: FakeSession, amount: int
    ) -> None:
        with pytest.raises(InvalidOfferAmountError) as exc_info:
            await ledger.make_offer("lst-1", _caller("buyer"), amount, None, db)
        assert exc_info.value.reason == RejectionReason.INVALID_AMOUNT

    async def test_amount_above_storage_ceiling(
        self, ledger: OfferLedger, offers: InMemoryOfferRepository, db: FakeSession
    ) -> None:
        with pytest.raises(InvalidOfferAmountError) as exc_info:
            await ledger.make_offer("lst-1", _caller("buyer"), MAX_AMOUNT + 1, None, db)
        assert exc_info.value.reason == RejectionReason.INVALID_AMOUNT
        assert offers.rows == {}
        assert db.commits == 0

    async def test_new_offer_allowed_after_previous_resolved(
        self, ledger: OfferLedger, db: FakeSession
    ) -> None:
        created = await ledger.make_offer("lst-1", _caller("buyer"), 800, None, db)
        await ledger.respond_to_offer(created.offer.id, SELLER, OfferDecision.DECLINED, db)
        again = await ledger.make_offer("lst-1", _caller("buyer"), 850, None, db)
        assert again.offer.status == "pending"

    async def test_concurrent_duplicate_offers_admit_one(
        self, ledger: OfferLedger, offers: InMemoryOfferRepository, db: FakeSession
    ) -> None:
        buyer = _caller("buyer")
        results = await asyncio.gather(
            ledger.make_offer("lst-1", buyer, 900, None, db),
            ledger.make_offer("lst-1", buyer, 910, None, db),
            return_exceptions=True,
        )
        assert sum(isinstance(r, DuplicatePendingOfferError) for r in results) == 1
        assert len(offers.rows) == 1


class TestBidOfferMutualExclusion:
    async def test_offer_and_bid_race_is_serialized(
        self, ledger: OfferLedger, offers: InMemoryOfferRepository, db: FakeSession
    ) -> None:
        # Offer queued first: it sees zero bids and is admitted; the bid is not blocked.
        results = await asyncio.gather(
            ledger.make_offer("lst-auction", _caller("buyer"), 900, None, db),
            ledger._bid_ledger.place_bid("lst-auction", _caller("bidder"), 1000, db),
            return_exceptions=True,
        )
        assert not any(isinstance(r, Exception) for r in results)

        # Once a bid exists, no offer gets through regardless of timing.
        with pytest.raises(BiddingAlreadyStartedError):
            await ledger.make_offer("lst-auction", _caller("late"), 900, None, db)


class TestRespondToOffer:
    async def test_accept_then_decline_is_already_resolved(
        self, ledger: OfferLedger, offers: InMemoryOfferRepository, db: FakeSession
    ) -> None:
        created = await ledger.make_offer("lst-1", _caller("buyer"), 900, None, db)

        resolution = await ledger.respond_to_offer(
            created.offer.id, SELLER, OfferDecision.ACCEPTED, db
        )
        assert resolution.offer.status == "accepted"
        assert resolution.triggers_sale is True

        with pytest.raises(AlreadyResolvedError) as exc_info:
            await ledger.respond_to_offer(created.offer.id, SELLER, OfferDecision.DECLINED, db)
        assert exc_info.value.reason == RejectionReason.ALREADY_RESOLVED
        assert offers.rows[created.offer.id].status == "accepted"

    async def test_decline(self, ledger: OfferLedger, db: FakeSession) -> None:
        created = await ledger.make_offer("lst-1", _caller("buyer"), 900, None, db)
        hook = AsyncMock()
        resolution = await ledger.respond_to_offer(
            created.offer.id, SELLER, OfferDecision.DECLINED, db, on_accept=hook
        )
        assert resolution.offer.status == "declined"
        assert resolution.auto_declined == []
        hook.assert_not_awaited()

    async def test_accept_cascades_to_other_pending_offers(
        self, ledger: OfferLedger, offers: InMemoryOfferRepository, db: FakeSession
    ) -> None:
        winner = await ledger.make_offer("lst-1", _caller("b1"), 950, None, db)
        other = await ledger.make_offer("lst-1", _caller("b2"), 900, None, db)
        declined_earlier = await ledger.make_offer("lst-1", _caller("b3"), 800, None, db)
        await ledger.respond_to_offer(
            declined_earlier.offer.id, SELLER, OfferDecision.DECLINED, db
        )
        hook = AsyncMock()

        resolution = await ledger.respond_to_offer(
            winner.offer.id, SELLER, OfferDecision.ACCEPTED, db, on_accept=hook
        )

        assert [o.id for o in resolution.auto_declined] == [other.offer.id]
        assert offers.rows[other.offer.id].status == "declined"
        hook.assert_awaited_once_with(resolution, db)

    async def test_concurrent_responses_resolve_exactly_once(
        self, ledger: OfferLedger, offers: InMemoryOfferRepository, db: FakeSession
    ) -> None:
        created = await ledger.make_offer("lst-1", _caller("buyer"), 900, None, db)
        results = await asyncio.gather(
            ledger.respond_to_offer(created.offer.id, SELLER, OfferDecision.ACCEPTED, db),
            ledger.respond_to_offer(created.offer.id, SELLER, OfferDecision.DECLINED, db),
            return_exceptions=True,
        )
        assert isinstance(results[1], AlreadyResolvedError)
        assert offers.rows[created.offer.id].status == "accepted"

    async def test_only_seller_may_respond(self, ledger: OfferLedger, db: FakeSession) -> None:
        created = await ledger.make_offer("lst-1", _caller("buyer"), 900, None, db)
        with pytest.raises(NotListingSellerError):
            await ledger.respond_to_offer(
                created.offer.id, _caller("buyer"), OfferDecision.ACCEPTED, db
            )

    async def test_responder_needs_buy_and_sell(self, ledger: OfferLedger, db: FakeSession) -> None:
        created = await ledger.make_offer("lst-1", _caller("buyer"), 900, None, db)
        unverified_seller = _caller("seller", VerificationTier.UNVERIFIED)
        with pytest.raises(UnauthorizedError):
            await ledger.respond_to_offer(
                created.offer.id, unverified_seller, OfferDecision.ACCEPTED, db
            )

    async def test_unknown_offer(self, ledger: OfferLedger, db: FakeSession) -> None:
        with pytest.raises(OfferNotFoundError):
            await ledger.respond_to_offer("nope", SELLER, OfferDecision.ACCEPTED, db)


class TestExpireOffer:
    async def test_pending_expires(self, ledger: OfferLedger, db: FakeSession) -> None:
        created = await ledger.make_offer("lst-1", _caller("buyer"), 900, None, db)
        expired = await ledger.expire_offer(created.offer.id, db)
        assert expired.status == "expired"

    async def test_resolved_offer_cannot_expire(
        self, ledger: OfferLedger, db: FakeSession
    ) -> None:
        created = await ledger.make_offer("lst-1", _caller("buyer"), 900, None, db)
        await ledger.respond_to_offer(created.offer.id, SELLER, OfferDecision.ACCEPTED, db)
        with pytest.raises(AlreadyResolvedError):
            await ledger.expire_offer(created.offer.id, db)


class TestReads:
    async def test_offer_state_tracks_pending_then_latest(
        self, ledger: OfferLedger, db: FakeSession
    ) -> None:
        empty = await ledger.offer_state("lst-1", "buyer", db)
        assert empty.has_pending_offer is False
        assert empty.latest_offer is None

        created = await ledger.make_offer("lst-1", _caller("buyer"), 900, None, db)
        pending = await ledger.offer_state("lst-1", "buyer", db)
        assert pending.has_pending_offer is True
        assert pending.latest_offer is not None
        assert pending.latest_offer.id == created.offer.id

        await ledger.respond_to_offer(created.offer.id, SELLER, OfferDecision.DECLINED, db)
        resolved = await ledger.offer_state("lst-1", "buyer", db)
        assert resolved.has_pending_offer is False
        assert resolved.latest_offer is not None
        assert resolved.latest_offer.status == "declined"

    async def test_list_offers_is_seller_only(self, ledger: OfferLedger, db: FakeSession) -> None:
        await ledger.make_offer("lst-1", _caller("b1"), 900, None, db)
        await ledger.make_offer("lst-1", _caller("b2"), 950, None, db)

        listed = await ledger.list_offers("lst-1", SELLER, db)
        assert [o.user_id for o in listed] == ["b2", "b1"]

        with pytest.raises(NotListingSellerError):
            await ledger.list_offers("lst-1", _caller("b1"), db)
