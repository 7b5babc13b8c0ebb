"""CatalogRepository Protocol — interface contract for items and seller profiles."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_catalog.domain.models import AccountCredentials, Item, ItemRef, ItemUpdate, Seller
from src.bz_common.enums import ItemKind


class CatalogRepositoryProtocol(Protocol):
    async def get_item(self, db: AsyncSession, ref: ItemRef) -> Item | None: ...

    async def mark_account_sold(
        self, db: AsyncSession, account_id: str, buyer_id: str
    ) -> bool: ...

    async def list_items(
        self,
        db: AsyncSession,
        kind: ItemKind,
        seller_id: str | None,
        include_sold: bool,
        free_only: bool,
        limit: int,
    ) -> list[Item]: ...

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
    ) -> Item: ...

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
    ) -> Item: ...

    async def get_account_credentials(
        self, db: AsyncSession, account_id: str
    ) -> AccountCredentials | None: ...

    async def get_seller_by_id(self, db: AsyncSession, seller_id: str) -> Seller | None: ...

    async def get_seller_by_user_id(self, db: AsyncSession, user_id: str) -> Seller | None: ...

    async def create_seller(
        self,
        db: AsyncSession,
        user_id: str,
        display_name: str,
        bank_name: str | None,
        bank_account_name: str | None,
        bank_account_number: str | None,
    ) -> Seller: ...

    async def update_item(
        self, db: AsyncSession, ref: ItemRef, changes: ItemUpdate
    ) -> Item | None: ...

    async def delete_item(self, db: AsyncSession, ref: ItemRef) -> bool: ...

    async def get_seller_ids_by_user(
        self, db: AsyncSession, user_ids: list[str]
    ) -> dict[str, str]: ...

    async def delete_seller(self, db: AsyncSession, seller_id: str) -> bool: ...

    async def get_admin_bank_seller(
        self, db: AsyncSession, root_email: str | None
    ) -> Seller | None: ...
