"""006: create task_orders table

Revision ID: 006
Revises: 005
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE task_orders (
            id                   VARCHAR(64)  PRIMARY KEY,
            user_id              VARCHAR(64)  NOT NULL,
            amount               BIGINT       NOT NULL,
            commission           BIGINT       NOT NULL,
            commission_rate_bps  INTEGER      NOT NULL,
            status               VARCHAR(20)  NOT NULL DEFAULT 'PENDING',
            origin               VARCHAR(20)  NOT NULL DEFAULT 'MATCH',
            dispatch_override_id BIGINT,
            product_id           BIGINT,
            product_title        VARCHAR(200),
            product_image_url    VARCHAR(500),
            unit_price           BIGINT,
            quantity             INTEGER,
            created_at           TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at           TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            settled_at           TIMESTAMPTZ,
            CONSTRAINT ck_task_orders_amount_gt_0      CHECK (amount > 0),
            CONSTRAINT ck_task_orders_commission_gte_0 CHECK (commission >= 0),
            CONSTRAINT ck_task_orders_status CHECK (
                status IN ('PENDING', 'COMPLETED', 'CANCELLED')
            ),
            CONSTRAINT ck_task_orders_origin CHECK (
                origin IN ('LEGACY', 'MATCH', 'DISPATCH')
            )
        );
    """)
    # At most one PENDING order per account
    op.execute("""
        CREATE UNIQUE INDEX uq_task_orders_one_pending
        ON task_orders (user_id)
        WHERE status = 'PENDING';
    """)
    # ids are numeric strings; list and paginate them as numbers
    op.execute(
        "CREATE INDEX idx_task_orders_user_id ON task_orders (user_id, (CAST(id AS BIGINT)) DESC);"
    )
    op.execute("""
        CREATE TRIGGER trg_task_orders_updated_at
            BEFORE UPDATE ON task_orders
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS task_orders CASCADE;")
