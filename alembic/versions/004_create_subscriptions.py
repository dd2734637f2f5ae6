"""004: create subscription_plans and user_subscriptions tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE subscription_plans (
            id                  VARCHAR(36)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            name                VARCHAR(64)     NOT NULL,
            price               BIGINT          NOT NULL,
            duration_months     INT             NOT NULL DEFAULT 1,
            commission_rate_bps INT             NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_subscription_plans_name       UNIQUE (name),
            CONSTRAINT ck_subscription_plans_price      CHECK (price >= 0),
            CONSTRAINT ck_subscription_plans_duration   CHECK (duration_months >= 1),
            CONSTRAINT ck_subscription_plans_rate       CHECK (commission_rate_bps BETWEEN 0 AND 10000)
        );
    """)
    # At most one free tier
    op.execute("""
        CREATE UNIQUE INDEX uq_subscription_plans_single_free
            ON subscription_plans ((price = 0)) WHERE price = 0;
    """)

    op.execute("""
        CREATE TABLE user_subscriptions (
            id              VARCHAR(36)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id         VARCHAR(64)     NOT NULL,
            plan_id         VARCHAR(36)     NOT NULL REFERENCES subscription_plans(id),
            status          VARCHAR(16)     NOT NULL,
            start_date      TIMESTAMPTZ     NOT NULL,
            end_date        TIMESTAMPTZ     NOT NULL,
            transaction_id  VARCHAR(128),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_user_subscriptions_transaction_id UNIQUE (transaction_id),
            CONSTRAINT ck_user_subscriptions_status
                CHECK (status IN ('active', 'expired', 'cancelled')),
            CONSTRAINT ck_user_subscriptions_dates CHECK (end_date > start_date)
        );
    """)
    op.execute("""
        CREATE UNIQUE INDEX uq_user_subscriptions_one_active
            ON user_subscriptions (user_id) WHERE status = 'active';
    """)
    op.execute("CREATE INDEX idx_user_subscriptions_user ON user_subscriptions (user_id, status);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_subscriptions CASCADE;")
    op.execute("DROP TABLE IF EXISTS subscription_plans CASCADE;")
