"""004: create offers table

Revision ID: 004
Revises: 003
Create Date: 2026-10-01
"""
from typing import Sequence, Union

from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE offers (
            id              VARCHAR(26)     PRIMARY KEY,
            listing_id      VARCHAR(64)     NOT NULL REFERENCES listings(id),
            user_id         VARCHAR(64)     NOT NULL REFERENCES accounts(id),
            amount          BIGINT          NOT NULL,
            message         TEXT,
            status          VARCHAR(20)     NOT NULL DEFAULT 'pending',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_offers_amount     CHECK (amount > 0),
            CONSTRAINT ck_offers_status     CHECK (
                status IN ('pending', 'accepted', 'declined', 'expired')
            )
        );
    """)
    # At most one pending offer per (listing, buyer).
    op.execute("""
        CREATE UNIQUE INDEX uq_offers_one_pending
        ON offers (listing_id, user_id)
        WHERE status = 'pending';
    """)
    op.execute("CREATE INDEX idx_offers_listing ON offers (listing_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_offers_updated_at
            BEFORE UPDATE ON offers
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_offers_updated_at ON offers;")
    op.execute("DROP TABLE IF EXISTS offers;")
