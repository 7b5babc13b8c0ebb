"""CatalogApplicationService — seller profiles and item listings.

Writes commit here; reads run without an explicit transaction. Editing and
removing listings is admin-only.
"""

import logging
from typing import NoReturn

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bz_catalog.application.schemas import (
    CreateAccountRequest,
    CreateProductRequest,
    CreateSellerRequest,
    ItemListResponse,
    ItemResponse,
    SellerResponse,
)
from src.bz_catalog.domain.models import AccountCredentials, Item, ItemRef, ItemUpdate
from src.bz_catalog.domain.repository import CatalogRepositoryProtocol
from src.bz_catalog.infrastructure.persistence import CatalogRepository
from src.bz_common.enums import ItemKind
from src.bz_common.errors import (
    ForbiddenError,
    ItemAlreadySoldError,
    ItemInUseError,
    ItemNotFoundError,
    SellerExistsError,
    SellerNotFoundError,
)
from src.bz_gateway.auth.permissions import Principal, can_list_item, require_admin

logger = logging.getLogger(__name__)


class CatalogApplicationService:
    def __init__(self, repo: CatalogRepositoryProtocol | None = None) -> None:
        self._repo: CatalogRepositoryProtocol = repo or CatalogRepository()

    async def create_seller(
        self, db: AsyncSession, principal: Principal, req: CreateSellerRequest
    ) -> SellerResponse:
        try:
            if await self._repo.get_seller_by_user_id(db, principal.user_id) is not None:
                raise SellerExistsError()
            seller = await self._repo.create_seller(
                db,
                principal.user_id,
                req.display_name,
                req.bank_name,
                req.bank_account_name,
                req.bank_account_number,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return SellerResponse.from_seller(seller)

    async def get_item(self, db: AsyncSession, ref: ItemRef) -> ItemResponse:
        item = await self._repo.get_item(db, ref)
        if item is None:
            raise ItemNotFoundError(str(ref))
        return ItemResponse.from_item(item, settings.COIN_UNIT_PRICE)

    async def list_items(
        self,
        db: AsyncSession,
        kind: ItemKind,
        seller_id: str | None,
        include_sold: bool,
        free_only: bool,
        limit: int,
    ) -> ItemListResponse:
        items = await self._repo.list_items(db, kind, seller_id, include_sold, free_only, limit)
        return ItemListResponse(
            items=[ItemResponse.from_item(i, settings.COIN_UNIT_PRICE) for i in items]
        )

    async def create_account(
        self, db: AsyncSession, principal: Principal, req: CreateAccountRequest
    ) -> ItemResponse:
        credentials = AccountCredentials(
            account_username=req.account_username,
            account_password=req.account_password,
            account_email=req.account_email,
            account_phone=req.account_phone,
        )
        try:
            seller_id = await self._resolve_listing_seller(db, principal, req.seller_id)
            item = await self._repo.create_account(
                db,
                seller_id,
                principal.user_id,
                req.title,
                req.description,
                req.category,
                req.price,
                req.is_free,
                credentials,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return ItemResponse.from_item(item, settings.COIN_UNIT_PRICE)

    async def create_product(
        self, db: AsyncSession, principal: Principal, req: CreateProductRequest
    ) -> ItemResponse:
        try:
            seller_id = await self._resolve_listing_seller(db, principal, req.seller_id)
            item: Item = await self._repo.create_product(
                db,
                seller_id,
                principal.user_id,
                req.title,
                req.description,
                req.category,
                req.price,
                req.is_free,
                req.download_url,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return ItemResponse.from_item(item, settings.COIN_UNIT_PRICE)

    async def update_item(
        self, db: AsyncSession, principal: Principal, ref: ItemRef, changes: ItemUpdate
    ) -> ItemResponse:
        """Edit a listing. Sold accounts are frozen: their buyer already has the credentials."""
        require_admin(principal)
        try:
            if changes.seller_id is not None and (
                await self._repo.get_seller_by_id(db, changes.seller_id) is None
            ):
                raise SellerNotFoundError(changes.seller_id)
            item = await self._repo.update_item(db, ref, changes)
            if item is None:
                existing = await self._repo.get_item(db, ref)
                if existing is None:
                    raise ItemNotFoundError(str(ref))
                raise ItemAlreadySoldError(str(ref))
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Item %s updated by %s", ref, principal.user_id)
        return ItemResponse.from_item(item, settings.COIN_UNIT_PRICE)

    async def delete_item(self, db: AsyncSession, principal: Principal, ref: ItemRef) -> None:
        require_admin(principal)
        try:
            if not await self._repo.delete_item(db, ref):
                await self._raise_undeletable(db, ref)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Item %s deleted by %s", ref, principal.user_id)

    async def _raise_undeletable(self, db: AsyncSession, ref: ItemRef) -> NoReturn:
        if await self._repo.get_item(db, ref) is None:
            raise ItemNotFoundError(str(ref))
        raise ItemInUseError(str(ref))

    async def _resolve_listing_seller(
        self, db: AsyncSession, principal: Principal, requested: str | None
    ) -> str | None:
        """Sellers always list as themselves; admins may pick a seller or none."""
        if not can_list_item(principal):
            raise ForbiddenError("only sellers and admins can list items")
        if not principal.is_admin:
            return principal.seller_id
        if requested is None:
            return None
        if await self._repo.get_seller_by_id(db, requested) is None:
            raise SellerNotFoundError(requested)
        return requested
