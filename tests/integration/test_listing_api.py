"""HTTP tests for listing creation/detail, capabilities and health."""
from collections.abc import Iterator
from datetime import timedelta

import pytest
from httpx import AsyncClient

from src.main import app
from src.mk_common.enums import VerificationTier
from src.mk_gateway.auth.dependencies import get_current_account
from src.mk_listing.api import router as listing_api
from src.mk_listing.application.service import ListingApplicationService
from src.mk_verification.domain.models import Account
from tests.fakes import CallerSwitch, FakeClock, InMemoryListingRepository


@pytest.fixture(autouse=True)
def listing_service(
    monkeypatch: pytest.MonkeyPatch, listings: InMemoryListingRepository, clock: FakeClock
) -> ListingApplicationService:
    service = ListingApplicationService(repo=listings, clock=clock)
    monkeypatch.setattr(listing_api, "_service", service)
    return service


class TestListingEndpoints:
    async def test_create_and_read_back(
        self, client: AsyncClient, as_user: CallerSwitch, clock: FakeClock
    ) -> None:
        as_user.act_as("seller-2")
        resp = await client.post(
            "/api/v1/listings",
            json={
                "title": "Camera",
                "listing_type": "classified",
                "price": 300,
                "allow_best_offer": True,
                "expires_at": (clock.now + timedelta(hours=5)).isoformat(),
            },
        )
        assert resp.status_code == 201
        created = resp.json()["data"]
        assert created["seller_id"] == "seller-2"
        assert created["status"] == "endingSoon"
        assert created["badge"] == {"label": "Ending Soon", "pulse": True}

        detail = await client.get(f"/api/v1/listings/{created['id']}")
        assert detail.status_code == 200
        assert detail.json()["data"]["title"] == "Camera"

    async def test_unverified_cannot_list(
        self, client: AsyncClient, as_user: CallerSwitch, clock: FakeClock
    ) -> None:
        as_user.act_as("newbie", VerificationTier.UNVERIFIED)
        resp = await client.post(
            "/api/v1/listings",
            json={
                "title": "Camera",
                "listing_type": "auction",
                "price": 300,
                "expires_at": (clock.now + timedelta(days=5)).isoformat(),
            },
        )
        assert resp.status_code == 403

    async def test_past_expiry_rejected(
        self, client: AsyncClient, as_user: CallerSwitch, clock: FakeClock
    ) -> None:
        as_user.act_as("seller-2")
        resp = await client.post(
            "/api/v1/listings",
            json={
                "title": "Camera",
                "listing_type": "auction",
                "price": 300,
                "expires_at": (clock.now - timedelta(days=1)).isoformat(),
            },
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3003


@pytest.fixture
def as_account() -> Iterator[None]:
    app.dependency_overrides[get_current_account] = lambda: Account(
        id="acct-1", display_name="Sam", tier=VerificationTier.VERIFIED
    )
    yield
    app.dependency_overrides.pop(get_current_account, None)


class TestAccountEndpoints:
    async def test_capabilities(self, client: AsyncClient, as_account: None) -> None:
        resp = await client.get("/api/v1/accounts/me/capabilities")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["verification_tier"] == "verified"
        assert data["capabilities"]["can_place_bids"] is True
        assert data["capabilities"]["can_access_advanced_features"] is False

    async def test_missing_token_is_401(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/accounts/me/capabilities")
        assert resp.status_code == 401


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.json()["status"] == "ok"
