"""001: create timestamp trigger function and accounts table

Revision ID: 001
Revises:
Create Date: 2026-10-01
"""
from typing import Sequence, Union

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE accounts (
            id                  VARCHAR(64)     PRIMARY KEY,
            display_name        VARCHAR(128)    NOT NULL,
            verification_tier   VARCHAR(20)     NOT NULL DEFAULT 'unverified',
            strike_count        INT             NOT NULL DEFAULT 0,
            is_active           BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_accounts_strike_count CHECK (strike_count >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_accounts_updated_at ON accounts;")
    op.execute("DROP TABLE IF EXISTS accounts;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
