"""CatalogRepository — accounts, products and seller profiles.

The sale of an account is `mark_account_sold`, a conditional
UPDATE ... WHERE is_sold = FALSE. Under N concurrent buyers exactly one
statement matches a row; the rest see 0 rows and must treat the account as
already sold.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_catalog.domain.models import AccountCredentials, Item, ItemRef, ItemUpdate, Seller
from src.bz_common.enums import ItemKind
from src.bz_common.errors import InternalError

_ACCOUNT_COLUMNS = (
    "id, title, price, is_free, seller_id, is_sold, sold_to, sold_at, "
    "category, description, created_at"
)
_PRODUCT_COLUMNS = "id, title, price, is_free, seller_id, category, description, created_at"
_SELLER_COLUMNS = (
    "id, user_id, display_name, bank_name, bank_account_name, bank_account_number, created_at"
)

_GET_ACCOUNT_SQL = text(f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = :id")
_GET_PRODUCT_SQL = text(f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = :id")

_MARK_ACCOUNT_SOLD_SQL = text("""
    UPDATE accounts
    SET is_sold = TRUE,
        sold_to = :buyer_id,
        sold_at = NOW(),
        updated_at = NOW()
    WHERE id = :id AND is_sold = FALSE
    RETURNING id
""")

_LIST_ACCOUNTS_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE (CAST(:seller_id AS UUID) IS NULL OR seller_id = :seller_id)
      AND (:include_sold OR is_sold = FALSE)
      AND (NOT :free_only OR is_free = TRUE)
    ORDER BY created_at DESC
    LIMIT :limit
""")

_LIST_PRODUCTS_SQL = text(f"""
    SELECT {_PRODUCT_COLUMNS}
    FROM products
    WHERE (CAST(:seller_id AS UUID) IS NULL OR seller_id = :seller_id)
      AND (NOT :free_only OR is_free = TRUE)
    ORDER BY created_at DESC
    LIMIT :limit
""")

_INSERT_ACCOUNT_SQL = text(f"""
    INSERT INTO accounts
        (seller_id, created_by, title, description, category, price, is_free,
         account_username, account_password, account_email, account_phone)
    VALUES
        (:seller_id, :created_by, :title, :description, :category, :price, :is_free,
         :account_username, :account_password, :account_email, :account_phone)
    RETURNING {_ACCOUNT_COLUMNS}
""")

_INSERT_PRODUCT_SQL = text(f"""
    INSERT INTO products
        (seller_id, created_by, title, description, category, price, is_free, download_url)
    VALUES
        (:seller_id, :created_by, :title, :description, :category, :price, :is_free,
         :download_url)
    RETURNING {_PRODUCT_COLUMNS}
""")

_GET_CREDENTIALS_SQL = text("""
    SELECT account_username, account_password, account_email, account_phone
    FROM accounts
    WHERE id = :id
""")

_UPDATE_ACCOUNT_SQL = text(f"""
    UPDATE accounts
    SET title = COALESCE(:title, title),
        description = COALESCE(:description, description),
        category = COALESCE(:category, category),
        price = COALESCE(:price, price),
        is_free = COALESCE(:is_free, is_free),
        seller_id = COALESCE(CAST(:seller_id AS UUID), seller_id),
        account_username = COALESCE(:account_username, account_username),
        account_password = COALESCE(:account_password, account_password),
        account_email = COALESCE(:account_email, account_email),
        account_phone = COALESCE(:account_phone, account_phone)
    WHERE id = :id AND is_sold = FALSE
    RETURNING {_ACCOUNT_COLUMNS}
""")

_UPDATE_PRODUCT_SQL = text(f"""
    UPDATE products
    SET title = COALESCE(:title, title),
        description = COALESCE(:description, description),
        category = COALESCE(:category, category),
        price = COALESCE(:price, price),
        is_free = COALESCE(:is_free, is_free),
        seller_id = COALESCE(CAST(:seller_id AS UUID), seller_id),
        download_url = COALESCE(:download_url, download_url)
    WHERE id = :id
    RETURNING {_PRODUCT_COLUMNS}
""")

# Orders keep their item reference, so only never-ordered items can go
_DELETE_ACCOUNT_SQL = text("""
    DELETE FROM accounts
    WHERE id = :id
      AND NOT EXISTS (SELECT 1 FROM orders WHERE account_id = :id)
    RETURNING id
""")

_DELETE_PRODUCT_SQL = text("""
    DELETE FROM products
    WHERE id = :id
      AND NOT EXISTS (SELECT 1 FROM orders WHERE product_id = :id)
    RETURNING id
""")

_GET_SELLER_BY_ID_SQL = text(f"SELECT {_SELLER_COLUMNS} FROM sellers WHERE id = :id")
_GET_SELLER_BY_USER_SQL = text(f"SELECT {_SELLER_COLUMNS} FROM sellers WHERE user_id = :user_id")

_INSERT_SELLER_SQL = text(f"""
    INSERT INTO sellers
        (user_id, display_name, bank_name, bank_account_name, bank_account_number)
    VALUES
        (:user_id, :display_name, :bank_name, :bank_account_name, :bank_account_number)
    RETURNING {_SELLER_COLUMNS}
""")

_LIST_SELLERS_BY_USERS_SQL = text("""
    SELECT user_id, id FROM sellers WHERE user_id = ANY(CAST(:user_ids AS UUID[]))
""")

# A seller with listings or unwithdrawn coins keeps its profile
_DELETE_SELLER_SQL = text("""
    DELETE FROM sellers s
    WHERE s.id = :id
      AND NOT EXISTS (SELECT 1 FROM accounts a WHERE a.seller_id = s.id)
      AND NOT EXISTS (SELECT 1 FROM products p WHERE p.seller_id = s.id)
      AND NOT EXISTS (
          SELECT 1 FROM coin_balances b
          WHERE b.owner_kind = 'SELLER' AND b.owner_id = CAST(s.id AS TEXT) AND b.balance > 0
      )
    RETURNING id
""")

_GET_ADMIN_BANK_SELLER_SQL = text("""
    SELECT s.id, s.user_id, s.display_name, s.bank_name, s.bank_account_name,
           s.bank_account_number, s.created_at
    FROM sellers s
    JOIN users u ON u.id = s.user_id
    WHERE (u.is_admin OR LOWER(u.email) = LOWER(CAST(:root_email AS TEXT)))
      AND s.bank_name IS NOT NULL
      AND s.bank_account_name IS NOT NULL
      AND s.bank_account_number IS NOT NULL
    ORDER BY s.created_at
    LIMIT 1
""")


def _opt_str(value: object) -> str | None:
    return str(value) if value is not None else None


def _row_to_account(row: object) -> Item:
    return Item(
        kind=ItemKind.ACCOUNT,
        id=str(row.id),  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        price=int(row.price),  # type: ignore[attr-defined]
        is_free=row.is_free,  # type: ignore[attr-defined]
        seller_id=_opt_str(row.seller_id),  # type: ignore[attr-defined]
        is_sold=row.is_sold,  # type: ignore[attr-defined]
        sold_to=_opt_str(row.sold_to),  # type: ignore[attr-defined]
        sold_at=row.sold_at,  # type: ignore[attr-defined]
        category=row.category,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_product(row: object) -> Item:
    return Item(
        kind=ItemKind.PRODUCT,
        id=str(row.id),  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        price=int(row.price),  # type: ignore[attr-defined]
        is_free=row.is_free,  # type: ignore[attr-defined]
        seller_id=_opt_str(row.seller_id),  # type: ignore[attr-defined]
        category=row.category,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_seller(row: object) -> Seller:
    return Seller(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        display_name=row.display_name,  # type: ignore[attr-defined]
        bank_name=row.bank_name,  # type: ignore[attr-defined]
        bank_account_name=row.bank_account_name,  # type: ignore[attr-defined]
        bank_account_number=row.bank_account_number,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class CatalogRepository:
    async def get_item(self, db: AsyncSession, ref: ItemRef) -> Item | None:
        if ref.kind is ItemKind.ACCOUNT:
            row = (await db.execute(_GET_ACCOUNT_SQL, {"id": ref.item_id})).fetchone()
            return _row_to_account(row) if row else None
        row = (await db.execute(_GET_PRODUCT_SQL, {"id": ref.item_id})).fetchone()
        return _row_to_product(row) if row else None

    async def mark_account_sold(
        self, db: AsyncSession, account_id: str, buyer_id: str
    ) -> bool:
        result = await db.execute(
            _MARK_ACCOUNT_SOLD_SQL, {"id": account_id, "buyer_id": buyer_id}
        )
        return result.fetchone() is not None

    async def list_items(
        self,
        db: AsyncSession,
        kind: ItemKind,
        seller_id: str | None,
        include_sold: bool,
        free_only: bool,
        limit: int,
    ) -> list[Item]:
        params = {"seller_id": seller_id, "free_only": free_only, "limit": limit}
        if kind is ItemKind.ACCOUNT:
            result = await db.execute(
                _LIST_ACCOUNTS_SQL, {**params, "include_sold": include_sold}
            )
            return [_row_to_account(row) for row in result.fetchall()]
        result = await db.execute(_LIST_PRODUCTS_SQL, params)
        return [_row_to_product(row) for row in result.fetchall()]

    async def create_account(
        self,
        db: AsyncSession,
        seller_id: str | None,
        created_by: str,
        title: str,
        description: str | None,
        category: str | None,
        price: int,
        is_free: bool,
        credentials: AccountCredentials,
    ) -> Item:
        result = await db.execute(
            _INSERT_ACCOUNT_SQL,
            {
                "seller_id": seller_id,
                "created_by": created_by,
                "title": title,
                "description": description,
                "category": category,
                "price": price,
                "is_free": is_free,
                "account_username": credentials.account_username,
                "account_password": credentials.account_password,
                "account_email": credentials.account_email,
                "account_phone": credentials.account_phone,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Account insert returned no rows — this should never happen")
        return _row_to_account(row)

    async def create_product(
        self,
        db: AsyncSession,
        seller_id: str | None,
        created_by: str,
        title: str,
        description: str | None,
        category: str | None,
        price: int,
        is_free: bool,
        download_url: str | None,
    ) -> Item:
        result = await db.execute(
            _INSERT_PRODUCT_SQL,
            {
                "seller_id": seller_id,
                "created_by": created_by,
                "title": title,
                "description": description,
                "category": category,
                "price": price,
                "is_free": is_free,
                "download_url": download_url,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Product insert returned no rows — this should never happen")
        return _row_to_product(row)

    async def get_account_credentials(
        self, db: AsyncSession, account_id: str
    ) -> AccountCredentials | None:
        row = (await db.execute(_GET_CREDENTIALS_SQL, {"id": account_id})).fetchone()
        if row is None:
            return None
        return AccountCredentials(
            account_username=row.account_username,
            account_password=row.account_password,
            account_email=row.account_email,
            account_phone=row.account_phone,
        )

    async def get_seller_by_id(self, db: AsyncSession, seller_id: str) -> Seller | None:
        row = (await db.execute(_GET_SELLER_BY_ID_SQL, {"id": seller_id})).fetchone()
        return _row_to_seller(row) if row else None

    async def get_seller_by_user_id(self, db: AsyncSession, user_id: str) -> Seller | None:
        row = (await db.execute(_GET_SELLER_BY_USER_SQL, {"user_id": user_id})).fetchone()
        return _row_to_seller(row) if row else None

    async def create_seller(
        self,
        db: AsyncSession,
        user_id: str,
        display_name: str,
        bank_name: str | None,
        bank_account_name: str | None,
        bank_account_number: str | None,
    ) -> Seller:
        result = await db.execute(
            _INSERT_SELLER_SQL,
            {
                "user_id": user_id,
                "display_name": display_name,
                "bank_name": bank_name,
                "bank_account_name": bank_account_name,
                "bank_account_number": bank_account_number,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Seller insert returned no rows — this should never happen")
        return _row_to_seller(row)

    async def update_item(self, db: AsyncSession, ref: ItemRef, changes: ItemUpdate) -> Item | None:
        """Apply `changes`; None when the item is missing or is a sold account."""
        params = {
            "id": ref.item_id,
            "title": changes.title,
            "description": changes.description,
            "category": changes.category,
            "price": changes.price,
            "is_free": changes.is_free,
            "seller_id": changes.seller_id,
        }
        if ref.kind is ItemKind.ACCOUNT:
            result = await db.execute(
                _UPDATE_ACCOUNT_SQL,
                {
                    **params,
                    "account_username": changes.account_username,
                    "account_password": changes.account_password,
                    "account_email": changes.account_email,
                    "account_phone": changes.account_phone,
                },
            )
            row = result.fetchone()
            return _row_to_account(row) if row else None
        result = await db.execute(
            _UPDATE_PRODUCT_SQL, {**params, "download_url": changes.download_url}
        )
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def delete_item(self, db: AsyncSession, ref: ItemRef) -> bool:
        sql = _DELETE_ACCOUNT_SQL if ref.kind is ItemKind.ACCOUNT else _DELETE_PRODUCT_SQL
        result = await db.execute(sql, {"id": ref.item_id})
        return result.fetchone() is not None

    async def get_seller_ids_by_user(
        self, db: AsyncSession, user_ids: list[str]
    ) -> dict[str, str]:
        if not user_ids:
            return {}
        result = await db.execute(_LIST_SELLERS_BY_USERS_SQL, {"user_ids": user_ids})
        return {str(row.user_id): str(row.id) for row in result.fetchall()}

    async def delete_seller(self, db: AsyncSession, seller_id: str) -> bool:
        result = await db.execute(_DELETE_SELLER_SQL, {"id": seller_id})
        return result.fetchone() is not None

    async def get_admin_bank_seller(
        self, db: AsyncSession, root_email: str | None
    ) -> Seller | None:
        """Oldest admin seller profile with complete bank details."""
        row = (
            await db.execute(_GET_ADMIN_BANK_SELLER_SQL, {"root_email": root_email})
        ).fetchone()
        return _row_to_seller(row) if row else None
