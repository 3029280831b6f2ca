# src/mk_bidding/domain/repository.py
"""BidRepository Protocol — append-only bid storage."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_bidding.domain.models import Bid


class BidRepositoryProtocol(Protocol):
    async def append(self, bid: Bid, db: AsyncSession) -> None: ...

    async def list_by_listing(self, listing_id: str, db: AsyncSession) -> list[Bid]:
        """All bids for the listing in admission (seq) order."""
        ...

    async def count_by_listing(self, listing_id: str, db: AsyncSession) -> int: ...
