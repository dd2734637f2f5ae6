"""007: create withdrawal_requests table

Revision ID: 007
Revises: 006
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE withdrawal_requests (
            id              VARCHAR(36)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id         VARCHAR(64)     NOT NULL,
            amount          BIGINT          NOT NULL,
            processing_fee  BIGINT          NOT NULL,
            net_amount      BIGINT          NOT NULL,
            account_name    VARCHAR(255)    NOT NULL,
            account_number  VARCHAR(10)     NOT NULL,
            bank_name       VARCHAR(255)    NOT NULL,
            bank_code       VARCHAR(16),
            status          VARCHAR(16)     NOT NULL DEFAULT 'pending',
            admin_notes     TEXT,
            processed_at    TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_withdrawal_requests_amount CHECK (amount > processing_fee),
            CONSTRAINT ck_withdrawal_requests_fee CHECK (processing_fee >= 0),
            CONSTRAINT ck_withdrawal_requests_net CHECK (net_amount = amount - processing_fee),
            CONSTRAINT ck_withdrawal_requests_status
                CHECK (status IN ('pending', 'completed', 'failed'))
        );
    """)
    op.execute("CREATE INDEX idx_withdrawal_requests_user ON withdrawal_requests (user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_withdrawal_requests_pending ON withdrawal_requests (created_at) WHERE status = 'pending';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS withdrawal_requests CASCADE;")
