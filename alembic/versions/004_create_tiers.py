"""004: create tiers table and seed VIP 1-5

Revision ID: 004
Revises: 003
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE tiers (
            level               INTEGER     PRIMARY KEY,
            name                VARCHAR(64) NOT NULL,
            commission_rate_bps INTEGER     NOT NULL,
            daily_quota         INTEGER     NOT NULL,
            min_balance         BIGINT      NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_tiers_level_gte_1   CHECK (level >= 1),
            CONSTRAINT ck_tiers_rate_range    CHECK (commission_rate_bps BETWEEN 0 AND 10000),
            CONSTRAINT ck_tiers_quota_gte_0   CHECK (daily_quota >= 0),
            CONSTRAINT ck_tiers_min_bal_gte_0 CHECK (min_balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_tiers_updated_at
            BEFORE UPDATE ON tiers
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    # min_balance in cents: 0 / 100 / 500 / 2000 / 10000 units
    op.execute("""
        INSERT INTO tiers (level, name, commission_rate_bps, daily_quota, min_balance) VALUES
            (1, 'VIP 1',  50, 40,       0),
            (2, 'VIP 2', 100, 45,   10000),
            (3, 'VIP 3', 150, 50,   50000),
            (4, 'VIP 4', 200, 55,  200000),
            (5, 'VIP 5', 250, 60, 1000000)
        ON CONFLICT (level) DO NOTHING;
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS tiers CASCADE;")
