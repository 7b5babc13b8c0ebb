"""006: create coin top-ups and withdrawal requests

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE coin_topups (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id         VARCHAR(64)     NOT NULL,
            amount          BIGINT          NOT NULL,
            receipt_ref     VARCHAR(500)    NOT NULL,
            status          VARCHAR(10)     NOT NULL DEFAULT 'pending',
            admin_note      VARCHAR(500),
            processed_by    VARCHAR(64),
            processed_at    TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_coin_topups_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_coin_topups_status CHECK (status IN ('pending', 'approved', 'rejected'))
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_coin_topups_updated_at
            BEFORE UPDATE ON coin_topups
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("CREATE INDEX idx_coin_topups_user ON coin_topups (user_id, created_at DESC);")

    op.execute("""
        CREATE TABLE withdrawal_requests (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            seller_id           VARCHAR(64)     NOT NULL,
            amount              BIGINT          NOT NULL,
            bank_name           VARCHAR(128)    NOT NULL,
            bank_account_name   VARCHAR(128)    NOT NULL,
            bank_account_number VARCHAR(64)     NOT NULL,
            status              VARCHAR(10)     NOT NULL DEFAULT 'pending',
            admin_note          VARCHAR(500),
            processed_by        VARCHAR(64),
            processed_at        TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_withdrawals_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_withdrawals_status CHECK (status IN ('pending', 'approved', 'rejected'))
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_withdrawal_requests_updated_at
            BEFORE UPDATE ON withdrawal_requests
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE INDEX idx_withdrawals_seller
        ON withdrawal_requests (seller_id, created_at DESC);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS withdrawal_requests CASCADE;")
    op.execute("DROP TABLE IF EXISTS coin_topups CASCADE;")
