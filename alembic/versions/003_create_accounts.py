"""003: create accounts table

Revision ID: 003
Revises: 002
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            id                  UUID        PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id             VARCHAR(64) NOT NULL,
            balance             BIGINT      NOT NULL DEFAULT 0,
            frozen_balance      BIGINT      NOT NULL DEFAULT 0,
            tier_level          INTEGER     NOT NULL DEFAULT 1,
            daily_order_count   INTEGER     NOT NULL DEFAULT 0,
            grab_enabled        BOOLEAN     NOT NULL DEFAULT TRUE,
            version             BIGINT      NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_accounts_user_id          UNIQUE (user_id),
            CONSTRAINT ck_accounts_balance_gte_0    CHECK (balance >= 0),
            CONSTRAINT ck_accounts_frozen_gte_0     CHECK (frozen_balance >= 0),
            CONSTRAINT ck_accounts_daily_count_gte_0 CHECK (daily_order_count >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_accounts_tier_level ON accounts (tier_level);")
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE accounts IS 'Funds per user: all amounts in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
