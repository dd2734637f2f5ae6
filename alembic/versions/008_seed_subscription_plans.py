"""008: seed subscription plans

Revision ID: 008
Revises: 007
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Free 20%, Pro 35%, Premium 50%; prices in kobo
    op.execute("""
        INSERT INTO subscription_plans (name, price, duration_months, commission_rate_bps)
        VALUES
            ('Free',    0,       1, 2000),
            ('Pro',     500000,  1, 3500),
            ('Premium', 1000000, 1, 5000)
        ON CONFLICT (name) DO NOTHING;
    """)


def downgrade() -> None:
    op.execute("DELETE FROM subscription_plans WHERE name IN ('Free', 'Pro', 'Premium');")
