"""002: create profiles table

Revision ID: 002
Revises: 001
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE profiles (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id         VARCHAR(64)     NOT NULL,
            email           VARCHAR(255)    NOT NULL,
            full_name       VARCHAR(255),
            referral_code   VARCHAR(32),
            referred_by     VARCHAR(64),
            is_admin        BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_profiles_user_id       UNIQUE (user_id),
            CONSTRAINT uq_profiles_referral_code UNIQUE (referral_code)
        );
    """)
    op.execute("CREATE INDEX idx_profiles_email_lower ON profiles (LOWER(email));")
    op.execute("""
        CREATE TRIGGER trg_profiles_updated_at
            BEFORE UPDATE ON profiles
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE profiles IS 'User profiles mirrored from the hosted auth provider';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS profiles CASCADE;")
