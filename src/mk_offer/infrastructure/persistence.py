# src/mk_offer/infrastructure/persistence.py
"""OfferRepository — raw SQL persistence implementation."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_offer.domain.models import Offer

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_OFFER_SQL = text("""
    INSERT INTO offers (id, listing_id, user_id, amount, message, status, created_at, updated_at)
    VALUES (:id, :listing_id, :user_id, :amount, :message, :status, :created_at, :updated_at)
""")

# Compare-and-set on status: a resolved offer is never rewritten.
_UPDATE_STATUS_SQL = text("""
    UPDATE offers
    SET status = :status, updated_at = :updated_at
    WHERE id = :id AND status = :expected_status
""")

_SELECT_COLUMNS = "id, listing_id, user_id, amount, message, status, created_at, updated_at"

_GET_OFFER_SQL = text(f"SELECT {_SELECT_COLUMNS} FROM offers WHERE id = :id")

_GET_PENDING_SQL = text(f"""
    SELECT {_SELECT_COLUMNS} FROM offers
    WHERE listing_id = :listing_id AND user_id = :user_id AND status = 'pending'
""")

_GET_LATEST_SQL = text(f"""
    SELECT {_SELECT_COLUMNS} FROM offers
    WHERE listing_id = :listing_id AND user_id = :user_id
    ORDER BY created_at DESC, id DESC
    LIMIT 1
""")

_LIST_BY_LISTING_SQL = text(f"""
    SELECT {_SELECT_COLUMNS} FROM offers
    WHERE listing_id = :listing_id
      AND (CAST(:status AS TEXT) IS NULL OR status = :status)
    ORDER BY created_at DESC, id DESC
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_offer(row: Any) -> Offer:
    return Offer(
        id=row.id,
        listing_id=row.listing_id,
        user_id=row.user_id,
        amount=row.amount,
        message=row.message,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OfferRepository:
    """Concrete implementation of OfferRepositoryProtocol using raw SQL."""

    async def save(self, offer: Offer, db: AsyncSession) -> None:
        await db.execute(
            _INSERT_OFFER_SQL,
            {
                "id": offer.id,
                "listing_id": offer.listing_id,
                "user_id": offer.user_id,
                "amount": offer.amount,
                "message": offer.message,
                "status": offer.status,
                "created_at": offer.created_at,
                "updated_at": offer.updated_at,
            },
        )

    async def get_by_id(self, offer_id: str, db: AsyncSession) -> Offer | None:
        row = (await db.execute(_GET_OFFER_SQL, {"id": offer_id})).fetchone()
        return _row_to_offer(row) if row else None

    async def update_status(self, offer: Offer, expected_status: str, db: AsyncSession) -> bool:
        result = await db.execute(
            _UPDATE_STATUS_SQL,
            {
                "id": offer.id,
                "status": offer.status,
                "updated_at": offer.updated_at,
                "expected_status": expected_status,
            },
        )
        return bool(result.rowcount)

    async def get_pending(
        self, listing_id: str, user_id: str, db: AsyncSession
    ) -> Offer | None:
        row = (
            await db.execute(_GET_PENDING_SQL, {"listing_id": listing_id, "user_id": user_id})
        ).fetchone()
        return _row_to_offer(row) if row else None

    async def get_latest_for_user(
        self, listing_id: str, user_id: str, db: AsyncSession
    ) -> Offer | None:
        row = (
            await db.execute(_GET_LATEST_SQL, {"listing_id": listing_id, "user_id": user_id})
        ).fetchone()
        return _row_to_offer(row) if row else None

    async def list_by_listing(
        self, listing_id: str, db: AsyncSession, status: str | None = None
    ) -> list[Offer]:
        rows = (
            await db.execute(_LIST_BY_LISTING_SQL, {"listing_id": listing_id, "status": status})
        ).fetchall()
        return [_row_to_offer(row) for row in rows]
