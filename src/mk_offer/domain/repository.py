# src/mk_offer/domain/repository.py
"""OfferRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_offer.domain.models import Offer


class OfferRepositoryProtocol(Protocol):
    async def save(self, offer: Offer, db: AsyncSession) -> None: ...

    async def get_by_id(self, offer_id: str, db: AsyncSession) -> Offer | None: ...

    async def update_status(self, offer: Offer, expected_status: str, db: AsyncSession) -> bool:
        """Conditional update; False when the stored status was no longer `expected_status`."""
        ...

    async def get_pending(
        self, listing_id: str, user_id: str, db: AsyncSession
    ) -> Offer | None: ...

    async def get_latest_for_user(
        self, listing_id: str, user_id: str, db: AsyncSession
    ) -> Offer | None: ...

    async def list_by_listing(
        self, listing_id: str, db: AsyncSession, status: str | None = None
    ) -> list[Offer]: ...
