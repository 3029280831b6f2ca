"""002: create listings table

Revision ID: 002
Revises: 001
Create Date: 2026-10-01
"""
from typing import Sequence, Union

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE listings (
            id                  VARCHAR(64)     PRIMARY KEY,
            seller_id           VARCHAR(64)     NOT NULL REFERENCES accounts(id),
            title               VARCHAR(200)    NOT NULL,
            listing_type        VARCHAR(20)     NOT NULL,
            price               BIGINT          NOT NULL,
            allow_best_offer    BOOLEAN         NOT NULL DEFAULT FALSE,
            status              VARCHAR(20)     NOT NULL DEFAULT 'active',
            sale_buyer_id       VARCHAR(64),
            sale_amount         BIGINT,
            expires_at          TIMESTAMPTZ     NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_listings_type     CHECK (listing_type IN ('auction', 'classified')),
            CONSTRAINT ck_listings_price    CHECK (price > 0),
            CONSTRAINT ck_listings_status   CHECK (status IN ('active', 'sold', 'expired', 'completed')),
            CONSTRAINT ck_listings_sale     CHECK (
                status <> 'sold' OR (sale_buyer_id IS NOT NULL AND sale_amount > 0)
            )
        );
    """)
    op.execute("CREATE INDEX idx_listings_seller ON listings (seller_id, created_at DESC);")
    op.execute("""
        CREATE INDEX idx_listings_active_auction_expiry
        ON listings (expires_at)
        WHERE listing_type = 'auction' AND status = 'active';
    """)
    op.execute("""
        CREATE TRIGGER trg_listings_updated_at
            BEFORE UPDATE ON listings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_listings_updated_at ON listings;")
    op.execute("DROP TABLE IF EXISTS listings;")
