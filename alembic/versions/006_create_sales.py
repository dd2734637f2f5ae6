"""006: create sales, referral_commissions, downloads and processed_payments

Revision ID: 006
Revises: 005
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE processed_payments (
            reference       VARCHAR(128)    PRIMARY KEY,
            purchase_type   VARCHAR(16)     NOT NULL,
            processed_at    TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_processed_payments_type
                CHECK (purchase_type IN ('product', 'subscription'))
        );
    """)

    op.execute("""
        CREATE TABLE sales (
            id                          VARCHAR(36)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            product_id                  VARCHAR(36)     NOT NULL REFERENCES products(id),
            buyer_id                    VARCHAR(64),
            buyer_email                 VARCHAR(255)    NOT NULL,
            sale_amount                 BIGINT          NOT NULL,
            commission_amount           BIGINT          NOT NULL,
            referral_commission_amount  BIGINT          NOT NULL DEFAULT 0,
            admin_amount                BIGINT          NOT NULL,
            transaction_id              VARCHAR(128)    NOT NULL,
            referral_code               VARCHAR(32),
            status                      VARCHAR(16)     NOT NULL DEFAULT 'completed',
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_sales_transaction_id UNIQUE (transaction_id),
            CONSTRAINT ck_sales_amount_positive CHECK (sale_amount > 0),
            CONSTRAINT ck_sales_parts_nonnegative CHECK (
                commission_amount >= 0 AND referral_commission_amount >= 0 AND admin_amount >= 0
            ),
            CONSTRAINT ck_sales_split_conserved CHECK (
                commission_amount + referral_commission_amount + admin_amount = sale_amount
            ),
            CONSTRAINT ck_sales_status CHECK (status IN ('pending', 'completed'))
        );
    """)
    op.execute("CREATE INDEX idx_sales_buyer ON sales (buyer_id);")
    op.execute("CREATE INDEX idx_sales_product ON sales (product_id);")

    op.execute("""
        CREATE TABLE referral_commissions (
            id                  VARCHAR(36)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            referrer_id         VARCHAR(64)     NOT NULL,
            referred_user_id    VARCHAR(64)     NOT NULL,
            product_id          VARCHAR(36)     NOT NULL REFERENCES products(id),
            sale_id             VARCHAR(36)     NOT NULL REFERENCES sales(id),
            commission_amount   BIGINT          NOT NULL,
            commission_rate_bps INT             NOT NULL,
            status              VARCHAR(16)     NOT NULL DEFAULT 'pending',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_referral_commissions_sale
                UNIQUE (referrer_id, referred_user_id, product_id, sale_id),
            CONSTRAINT ck_referral_commissions_amount CHECK (commission_amount > 0),
            CONSTRAINT ck_referral_commissions_status CHECK (status IN ('pending', 'completed'))
        );
    """)
    op.execute("CREATE INDEX idx_referral_commissions_referrer ON referral_commissions (referrer_id);")

    op.execute("""
        CREATE TABLE downloads (
            id              VARCHAR(36)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id         VARCHAR(64),
            product_id      VARCHAR(36)     NOT NULL REFERENCES products(id),
            buyer_email     VARCHAR(255)    NOT NULL,
            sale_id         VARCHAR(36)     REFERENCES sales(id),
            download_count  INT             NOT NULL DEFAULT 0,
            expires_at      TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_downloads_count CHECK (download_count >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_downloads_product_email ON downloads (product_id, LOWER(buyer_email));")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS downloads CASCADE;")
    op.execute("DROP TABLE IF EXISTS referral_commissions CASCADE;")
    op.execute("DROP TABLE IF EXISTS sales CASCADE;")
    op.execute("DROP TABLE IF EXISTS processed_payments CASCADE;")
