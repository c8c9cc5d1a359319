"""007: create dispatch_overrides table

Revision ID: 007
Revises: 006
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE dispatch_overrides (
            id           BIGSERIAL   PRIMARY KEY,
            user_id      VARCHAR(64) NOT NULL,
            position     INTEGER     NOT NULL,
            min_amount   BIGINT      NOT NULL,
            max_amount   BIGINT      NOT NULL,
            status       VARCHAR(10) NOT NULL DEFAULT 'PENDING',
            triggered_at TIMESTAMPTZ,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_dispatch_user_position UNIQUE (user_id, position),
            CONSTRAINT ck_dispatch_position_gte_1 CHECK (position >= 1),
            CONSTRAINT ck_dispatch_range CHECK (min_amount >= 0 AND min_amount <= max_amount),
            CONSTRAINT ck_dispatch_status CHECK (status IN ('PENDING', 'USED'))
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_dispatch_overrides_updated_at
            BEFORE UPDATE ON dispatch_overrides
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS dispatch_overrides CASCADE;")
