"""003: create products table

Revision ID: 003
Revises: 002
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE products (
            id              VARCHAR(36)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            title           VARCHAR(255)    NOT NULL,
            description     TEXT,
            price           BIGINT          NOT NULL,
            file_path       VARCHAR(512),
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            download_count  INT             NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_products_price_positive   CHECK (price > 0),
            CONSTRAINT ck_products_download_count   CHECK (download_count >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_products_updated_at
            BEFORE UPDATE ON products
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE products IS 'Digital products; price in kobo';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS products CASCADE;")
