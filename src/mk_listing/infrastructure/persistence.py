# src/mk_listing/infrastructure/persistence.py
"""ListingRepository — raw SQL persistence implementation."""
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_listing.domain.models import Listing

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_LISTING_SQL = text("""
    INSERT INTO listings (id, seller_id, title, listing_type, price,
        allow_best_offer, status, expires_at, created_at)
    VALUES (:id, :seller_id, :title, :listing_type, :price,
        :allow_best_offer, :status, :expires_at, :created_at)
""")

_SELECT_COLUMNS = """
    id, seller_id, title, listing_type, price, allow_best_offer, status,
    sale_buyer_id, sale_amount, expires_at, created_at, updated_at
"""

_GET_LISTING_SQL = text(f"SELECT {_SELECT_COLUMNS} FROM listings WHERE id = :id")

_GET_LISTING_FOR_UPDATE_SQL = text(
    f"SELECT {_SELECT_COLUMNS} FROM listings WHERE id = :id FOR UPDATE"
)

_UPDATE_STATUS_SQL = text("""
    UPDATE listings
    SET status = :status,
        sale_buyer_id = COALESCE(:sale_buyer_id, sale_buyer_id),
        sale_amount = COALESCE(:sale_amount, sale_amount),
        updated_at = NOW()
    WHERE id = :id
""")

_LIST_EXPIRED_AUCTIONS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM listings
    WHERE listing_type = 'auction' AND status = 'active' AND expires_at < :now
    ORDER BY expires_at ASC
    LIMIT :limit
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_listing(row: Any) -> Listing:
    return Listing(
        id=row.id,
        seller_id=row.seller_id,
        title=row.title,
        listing_type=row.listing_type,
        price=row.price,
        allow_best_offer=row.allow_best_offer,
        status=row.status,
        sale_buyer_id=row.sale_buyer_id,
        sale_amount=row.sale_amount,
        expires_at=row.expires_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ListingRepository:
    """Concrete implementation of ListingRepositoryProtocol using raw SQL."""

    async def save(self, listing: Listing, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_LISTING_SQL,
            {
                "id": listing.id,
                "seller_id": listing.seller_id,
                "title": listing.title,
                "listing_type": listing.listing_type,
                "price": listing.price,
                "allow_best_offer": listing.allow_best_offer,
                "status": listing.status,
                "expires_at": listing.expires_at,
                "created_at": listing.created_at,
            },
        )

    async def get_by_id(self, listing_id: str, db: AsyncSession) -> Listing | None:
        row = (await db.execute(_GET_LISTING_SQL, {"id": listing_id})).fetchone()
        return _row_to_listing(row) if row else None

    async def get_for_update(self, listing_id: str, db: AsyncSession) -> Listing | None:
        row = (await db.execute(_GET_LISTING_FOR_UPDATE_SQL, {"id": listing_id})).fetchone()
        return _row_to_listing(row) if row else None

    async def update_status(
        self,
        listing_id: str,
        status: str,
        db: AsyncSession,
        sale_buyer_id: str | None = None,
        sale_amount: int | None = None,
    ) -> None:
        await db.execute(
            _UPDATE_STATUS_SQL,
            {
                "id": listing_id,
                "status": status,
                "sale_buyer_id": sale_buyer_id,
                "sale_amount": sale_amount,
            },
        )

    async def list_expired_active_auctions(
        self, now: datetime, limit: int, db: AsyncSession
    ) -> list[Listing]:
        rows = (
            await db.execute(_LIST_EXPIRED_AUCTIONS_SQL, {"now": now, "limit": limit})
        ).fetchall()
        return [_row_to_listing(row) for row in rows]
