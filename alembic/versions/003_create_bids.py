"""003: create bids table (append-only)

Revision ID: 003
Revises: 002
Create Date: 2026-10-01
"""
from typing import Sequence, Union

from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bids (
            id              VARCHAR(26)     PRIMARY KEY,
            listing_id      VARCHAR(64)     NOT NULL REFERENCES listings(id),
            user_id         VARCHAR(64)     NOT NULL REFERENCES accounts(id),
            amount          BIGINT          NOT NULL,
            seq             BIGINT          NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_bids_seq          UNIQUE (seq),
            CONSTRAINT ck_bids_amount       CHECK (amount > 0)
        );
    """)
    op.execute("CREATE INDEX idx_bids_listing_seq ON bids (listing_id, seq);")
    # Bids are history: forbid rewrites at the storage layer too.
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_bids_append_only()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'bids is append-only';
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER trg_bids_append_only
            BEFORE UPDATE OR DELETE ON bids
            FOR EACH ROW EXECUTE FUNCTION fn_bids_append_only();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_bids_append_only ON bids;")
    op.execute("DROP FUNCTION IF EXISTS fn_bids_append_only();")
    op.execute("DROP TABLE IF EXISTS bids;")
