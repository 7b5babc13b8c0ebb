"""003: create accounts and products tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            seller_id           UUID            REFERENCES sellers (id),
            created_by          UUID            REFERENCES users (id),
            title               VARCHAR(255)    NOT NULL,
            description         TEXT,
            category            VARCHAR(64),
            price               BIGINT          NOT NULL DEFAULT 0,
            is_free             BOOLEAN         NOT NULL DEFAULT FALSE,
            is_sold             BOOLEAN         NOT NULL DEFAULT FALSE,
            sold_to             UUID            REFERENCES users (id),
            sold_at             TIMESTAMPTZ,
            account_username    VARCHAR(255)    NOT NULL,
            account_password    VARCHAR(255)    NOT NULL,
            account_email       VARCHAR(255),
            account_phone       VARCHAR(32),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_accounts_price_gte_0   CHECK (price >= 0),
            CONSTRAINT ck_accounts_sold_buyer    CHECK (NOT is_sold OR sold_to IS NOT NULL)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("CREATE INDEX idx_accounts_seller ON accounts (seller_id, created_at DESC);")
    op.execute("CREATE INDEX idx_accounts_unsold ON accounts (created_at DESC) WHERE is_sold = FALSE;")

    op.execute("""
        CREATE TABLE products (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            seller_id       UUID            REFERENCES sellers (id),
            created_by      UUID            REFERENCES users (id),
            title           VARCHAR(255)    NOT NULL,
            description     TEXT,
            category        VARCHAR(64),
            price           BIGINT          NOT NULL DEFAULT 0,
            is_free         BOOLEAN         NOT NULL DEFAULT FALSE,
            download_url    VARCHAR(1000),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_products_price_gte_0 CHECK (price >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_products_updated_at
            BEFORE UPDATE ON products
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("CREATE INDEX idx_products_seller ON products (seller_id, created_at DESC);")
    op.execute("COMMENT ON TABLE accounts IS 'Single-unit listings, sold exactly once; prices in VND';")
    op.execute("COMMENT ON TABLE products IS 'Source-code downloads, unlimited sales; prices in VND';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS products CASCADE;")
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
