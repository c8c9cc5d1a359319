"""005: create products table

Revision ID: 005
Revises: 004
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE products (
            id          BIGSERIAL    PRIMARY KEY,
            title       VARCHAR(200) NOT NULL,
            image_url   VARCHAR(500),
            price       BIGINT       NOT NULL,
            tier_level  INTEGER,
            created_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_products_price_gt_0 CHECK (price > 0)
        );
    """)
    op.execute("CREATE INDEX idx_products_price ON products (price);")
    op.execute("COMMENT ON TABLE products IS 'Catalog items bound to matched orders; tier_level NULL/0 = all tiers';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS products CASCADE;")
