# tests/unit/test_listing_service.py
"""Unit tests for ListingApplicationService using the in-memory repository."""
from datetime import timedelta
from typing import Any

import pytest
from pydantic import ValidationError

from src.mk_common.enums import VerificationTier
from src.mk_common.errors import InvalidListingError, ListingNotFoundError, UnauthorizedError
from src.mk_listing.application.schemas import CreateListingRequest
from src.mk_listing.application.service import ListingApplicationService
from src.mk_verification.domain.models import Caller
from tests.fakes import FakeClock, FakeSession, InMemoryListingRepository

SELLER = Caller(account_id="seller", tier=VerificationTier.VERIFIED)


def _make_request(clock: FakeClock, **kwargs: Any) -> CreateListingRequest:
    defaults: dict[str, Any] = {
        "title": "Signed vinyl",
        "listing_type": "auction",
        "price": 250,
        "allow_best_offer": True,
        "expires_at": clock.now + timedelta(days=7),
    }
    defaults.update(kwargs)
    return CreateListingRequest(**defaults)


@pytest.fixture
def repo() -> InMemoryListingRepository:
    return InMemoryListingRepository()


@pytest.fixture
def service(repo: InMemoryListingRepository, clock: FakeClock) -> ListingApplicationService:
    return ListingApplicationService(repo=repo, clock=clock)


class TestCreateListing:
    async def test_creates_active_listing(
        self,
        service: ListingApplicationService,
        repo: InMemoryListingRepository,
        clock: FakeClock,
        db: FakeSession,
    ) -> None:
        detail = await service.create_listing(_make_request(clock), SELLER, db)

        assert detail.seller_id == "seller"
        assert detail.status == "active"
        assert detail.badge.label == "Active"
        assert detail.price_display == "£250"
        assert repo.rows[detail.id].title == "Signed vinyl"
        assert db.commits == 1

    async def test_unverified_cannot_create(
        self, service: ListingApplicationService, clock: FakeClock, db: FakeSession
    ) -> None:
        caller = Caller(account_id="seller", tier=VerificationTier.UNVERIFIED)
        with pytest.raises(UnauthorizedError):
            await service.create_listing(_make_request(clock), caller, db)

    @pytest.mark.parametrize("price", [0, -10])
    async def test_price_must_be_positive(
        self, service: ListingApplicationService, clock: FakeClock, db: FakeSession, price: int
    ) -> None:
        with pytest.raises(InvalidListingError):
            await service.create_listing(_make_request(clock, price=price), SELLER, db)

    async def test_expiry_must_be_in_future(
        self, service: ListingApplicationService, clock: FakeClock, db: FakeSession
    ) -> None:
        req = _make_request(clock, expires_at=clock.now - timedelta(seconds=1))
        with pytest.raises(InvalidListingError):
            await service.create_listing(req, SELLER, db)

    def test_blank_title_rejected_by_schema(self, clock: FakeClock) -> None:
        with pytest.raises(ValidationError):
            _make_request(clock, title="   ")

    def test_unknown_listing_type_rejected_by_schema(self, clock: FakeClock) -> None:
        with pytest.raises(ValidationError):
            _make_request(clock, listing_type="raffle")


class TestGetListing:
    async def test_status_is_resolved_on_read(
        self,
        service: ListingApplicationService,
        clock: FakeClock,
        db: FakeSession,
    ) -> None:
        created = await service.create_listing(
            _make_request(clock, expires_at=clock.now + timedelta(days=2)), SELLER, db
        )

        clock.advance(days=1, hours=1)
        soon = await service.get_listing(created.id, db)
        assert soon.status == "endingSoon"
        assert soon.badge.pulse is True

        clock.advance(days=2)
        ended = await service.get_listing(created.id, db)
        assert ended.status == "ended"
        assert ended.badge.label == "Ended"

    async def test_unknown(self, service: ListingApplicationService, db: FakeSession) -> None:
        with pytest.raises(ListingNotFoundError):
            await service.get_listing("nope", db)
