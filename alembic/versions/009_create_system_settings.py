"""009: create system_settings table

Revision ID: 009
Revises: 008
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "009"
down_revision: Union[str, None] = "008"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE system_settings (
            key         VARCHAR(64) PRIMARY KEY,
            value       TEXT        NOT NULL,
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("COMMENT ON TABLE system_settings IS 'Admin overrides of Settings defaults (match.* keys)';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS system_settings CASCADE;")
