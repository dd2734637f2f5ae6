"""005: create wallets and wallet_ledger_entries tables

Revision ID: 005
Revises: 004
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallets (
            id              VARCHAR(36)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id         VARCHAR(64)     NOT NULL,
            balance         BIGINT          NOT NULL DEFAULT 0,
            total_earned    BIGINT          NOT NULL DEFAULT 0,
            total_withdrawn BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_wallets_user_id           UNIQUE (user_id),
            CONSTRAINT ck_wallets_balance           CHECK (balance >= 0),
            CONSTRAINT ck_wallets_total_earned      CHECK (total_earned >= 0),
            CONSTRAINT ck_wallets_total_withdrawn   CHECK (total_withdrawn >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_wallets_updated_at
            BEFORE UPDATE ON wallets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        CREATE TABLE wallet_ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            entry_type      VARCHAR(32)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            reference_type  VARCHAR(32),
            reference_id    VARCHAR(64),
            description     TEXT,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wallet_ledger_entry_type CHECK (entry_type IN (
                'SALE_COMMISSION', 'REFERRAL_COMMISSION', 'SUBSCRIPTION_REFERRAL',
                'WITHDRAWAL_HOLD', 'WITHDRAWAL_REFUND'
            )),
            CONSTRAINT ck_wallet_ledger_amount_nonzero CHECK (amount <> 0)
        );
    """)
    op.execute("CREATE INDEX idx_wallet_ledger_user ON wallet_ledger_entries (user_id, id DESC);")
    op.execute("COMMENT ON TABLE wallet_ledger_entries IS 'Append-only audit trail of wallet mutations';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_ledger_entries CASCADE;")
    op.execute("DROP TABLE IF EXISTS wallets CASCADE;")
