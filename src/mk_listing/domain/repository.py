# src/mk_listing/domain/repository.py
"""ListingRepository Protocol — interface contract for persistence layer."""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_listing.domain.models import Listing


class ListingRepositoryProtocol(Protocol):
    async def save(self, listing: Listing, db: AsyncSession) -> None: ...

    async def get_by_id(self, listing_id: str, db: AsyncSession) -> Listing | None: ...

    async def get_for_update(self, listing_id: str, db: AsyncSession) -> Listing | None:
        """Row-locking read; only called from inside a ledger's listing lock."""
        ...

    async def update_status(
        self,
        listing_id: str,
        status: str,
        db: AsyncSession,
        sale_buyer_id: str | None = None,
        sale_amount: int | None = None,
    ) -> None: ...

    async def list_expired_active_auctions(
        self, now: datetime, limit: int, db: AsyncSession
    ) -> list[Listing]: ...
