# src/mk_bidding/infrastructure/persistence.py
"""BidRepository — raw SQL, insert-only."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_bidding.domain.models import Bid

_INSERT_BID_SQL = text("""
    INSERT INTO bids (id, listing_id, user_id, amount, seq, created_at)
    VALUES (:id, :listing_id, :user_id, :amount, :seq, :created_at)
""")

_LIST_BIDS_SQL = text("""
    SELECT id, listing_id, user_id, amount, seq, created_at
    FROM bids WHERE listing_id = :listing_id
    ORDER BY seq ASC
""")

_COUNT_BIDS_SQL = text("SELECT COUNT(*) FROM bids WHERE listing_id = :listing_id")


def _row_to_bid(row: Any) -> Bid:
    return Bid(
        id=row.id,
        listing_id=row.listing_id,
        user_id=row.user_id,
        amount=row.amount,
        seq=row.seq,
        created_at=row.created_at,
    )


class BidRepository:
    """Concrete implementation of BidRepositoryProtocol. Never updates or deletes."""

    async def append(self, bid: Bid, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_BID_SQL,
            {
                "id": bid.id,
                "listing_id": bid.listing_id,
                "user_id": bid.user_id,
                "amount": bid.amount,
                "seq": bid.seq,
                "created_at": bid.created_at,
            },
        )

    async def list_by_listing(self, listing_id: str, db: AsyncSession) -> list[Bid]:
        rows = (await db.execute(_LIST_BIDS_SQL, {"listing_id": listing_id})).fetchall()
        return [_row_to_bid(row) for row in rows]

    async def count_by_listing(self, listing_id: str, db: AsyncSession) -> int:
        result = await db.execute(_COUNT_BIDS_SQL, {"listing_id": listing_id})
        return int(result.scalar_one())
