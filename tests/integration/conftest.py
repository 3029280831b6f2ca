"""HTTP-level fixtures.

The app runs over httpx's ASGITransport with the database session, the
caller and the coordinator replaced through FastAPI dependency overrides,
so these tests need neither PostgreSQL nor Redis.
"""

from collections.abc import AsyncIterator, Callable
from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.mk_bidding.engine.ledger import BidLedger
from src.mk_common.database import get_db_session
from src.mk_common.listing_locks import ListingLockRegistry
from src.mk_gateway.auth.dependencies import get_current_caller
from src.mk_listing.domain.models import Listing
from src.mk_negotiation.application.coordinator import NegotiationCoordinator
from src.mk_negotiation.application.service import get_coordinator
from src.mk_offer.engine.ledger import OfferLedger
from tests.fakes import (
    CallerSwitch,
    FakeClock,
    FakeSession,
    InMemoryBidRepository,
    InMemoryListingRepository,
    InMemoryOfferRepository,
    RecordingPublisher,
    RecordingSink,
)


@pytest.fixture
def listings(clock: FakeClock) -> InMemoryListingRepository:
    return InMemoryListingRepository(
        Listing(
            id="lst-auction",
            seller_id="seller",
            title="Mountain bike",
            listing_type="auction",
            price=1000,
            allow_best_offer=True,
            created_at=clock.now - timedelta(days=1),
            expires_at=clock.now + timedelta(days=3),
        ),
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def coordinator(
    listings: InMemoryListingRepository, sink: RecordingSink, clock: FakeClock
) -> NegotiationCoordinator:
    locks = ListingLockRegistry()
    bids = BidLedger(listings, InMemoryBidRepository(), locks, clock=clock)
    offers = OfferLedger(listings, InMemoryOfferRepository(), bids, locks, clock=clock)
    return NegotiationCoordinator(bids, offers, listings, sink, RecordingPublisher(), clock=clock)


@pytest.fixture
def as_user() -> CallerSwitch:
    return CallerSwitch()


@pytest.fixture
async def client(
    coordinator: NegotiationCoordinator, as_user: CallerSwitch, db: FakeSession
) -> AsyncIterator[AsyncClient]:
    async def _db() -> AsyncIterator[FakeSession]:
        yield db

    overrides: dict[Callable[..., object], Callable[..., object]] = {
        get_db_session: _db,
        get_current_caller: lambda: as_user.current,
        get_coordinator: lambda: coordinator,
    }
    app.dependency_overrides.update(overrides)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
