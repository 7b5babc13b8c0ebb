"""005: create orders table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            buyer_id        UUID            NOT NULL REFERENCES users (id),
            account_id      UUID            REFERENCES accounts (id),
            product_id      UUID            REFERENCES products (id),
            amount          BIGINT          NOT NULL,
            status          VARCHAR(10)     NOT NULL DEFAULT 'pending',
            payment_note    VARCHAR(500),
            approved_at     TIMESTAMPTZ,
            approved_by     UUID            REFERENCES users (id),
            rejected_at     TIMESTAMPTZ,
            rejected_by     UUID            REFERENCES users (id),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_orders_one_item CHECK (
                (account_id IS NOT NULL AND product_id IS NULL) OR
                (account_id IS NULL AND product_id IS NOT NULL)
            ),
            CONSTRAINT ck_orders_amount_gte_0 CHECK (amount >= 0),
            CONSTRAINT ck_orders_status CHECK (status IN ('pending', 'approved', 'rejected')),
            CONSTRAINT ck_orders_approved_stamp CHECK (
                status <> 'approved' OR (approved_at IS NOT NULL AND approved_by IS NOT NULL)
            ),
            CONSTRAINT ck_orders_rejected_stamp CHECK (
                status <> 'rejected' OR (rejected_at IS NOT NULL AND rejected_by IS NOT NULL)
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("CREATE INDEX idx_orders_buyer ON orders (buyer_id, created_at DESC);")
    op.execute("CREATE INDEX idx_orders_pending ON orders (created_at) WHERE status = 'pending';")
    op.execute("""
        CREATE INDEX idx_orders_account_approved
        ON orders (account_id, buyer_id)
        WHERE status = 'approved' AND account_id IS NOT NULL;
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
