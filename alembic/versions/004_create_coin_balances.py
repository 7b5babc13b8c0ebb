"""004: create coin balances and ledger

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE coin_balances (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            owner_kind      VARCHAR(10)     NOT NULL,
            owner_id        VARCHAR(64)     NOT NULL,
            balance         BIGINT          NOT NULL DEFAULT 0,
            total_earned    BIGINT          NOT NULL DEFAULT 0,
            version         BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_coin_balances_owner       UNIQUE (owner_kind, owner_id),
            CONSTRAINT ck_coin_balances_owner_kind  CHECK (owner_kind IN ('BUYER', 'SELLER')),
            CONSTRAINT ck_coin_balances_balance     CHECK (balance >= 0),
            CONSTRAINT ck_coin_balances_earned      CHECK (total_earned >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_coin_balances_updated_at
            BEFORE UPDATE ON coin_balances
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        CREATE TABLE coin_ledger_entries (
            id              BIGSERIAL       PRIMARY KEY,
            owner_kind      VARCHAR(10)     NOT NULL,
            owner_id        VARCHAR(64)     NOT NULL,
            entry_type      VARCHAR(30)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(64),
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_coin_ledger_entry_type CHECK (
                entry_type IN ('TOPUP', 'PURCHASE_DEBIT', 'SALE_CREDIT', 'WITHDRAWAL')
            ),
            CONSTRAINT ck_coin_ledger_reference_type CHECK (
                reference_type IS NULL OR reference_type IN ('ORDER', 'TOPUP', 'WITHDRAWAL')
            ),
            CONSTRAINT ck_coin_ledger_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_coin_ledger_owner
        ON coin_ledger_entries (owner_kind, owner_id, id DESC);
    """)
    op.execute("""
        CREATE INDEX idx_coin_ledger_reference
        ON coin_ledger_entries (reference_type, reference_id)
        WHERE reference_id IS NOT NULL;
    """)
    op.execute("COMMENT ON TABLE coin_ledger_entries IS 'Coin movements, append-only; amounts in coins';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS coin_ledger_entries CASCADE;")
    op.execute("DROP TABLE IF EXISTS coin_balances CASCADE;")
