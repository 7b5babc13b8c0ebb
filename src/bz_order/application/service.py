"""OrderApplicationService — receipt-based checkout and buyer-facing order queries."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bz_catalog.domain.models import Item, ItemRef
from src.bz_catalog.domain.repository import CatalogRepositoryProtocol
from src.bz_catalog.infrastructure.persistence import CatalogRepository
from src.bz_common.coins import price_to_coins
from src.bz_common.enums import OrderStatus
from src.bz_common.errors import (
    CredentialsUnavailableError,
    ForbiddenError,
    ItemNotFoundError,
    ItemNotPurchasableError,
)
from src.bz_gateway.auth.permissions import Principal, can_view_order
from src.bz_order.application.ledger import OrderLedger
from src.bz_order.application.schemas import (
    CheckoutRequest,
    CredentialsResponse,
    OrderListResponse,
    OrderResponse,
)
from src.bz_order.domain.repository import OrderRepositoryProtocol
from src.bz_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class OrderApplicationService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        catalog: CatalogRepositoryProtocol | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._catalog: CatalogRepositoryProtocol = catalog or CatalogRepository()
        self._ledger = OrderLedger(self._repo)

    async def checkout(
        self, db: AsyncSession, principal: Principal, req: CheckoutRequest
    ) -> OrderResponse:
        """Create a pending order; the amount is always priced server-side."""
        ref = req.to_ref()
        try:
            item = await self._load_item(db, ref)
            if item.is_free:
                raise ItemNotPurchasableError(str(ref), "free items are claimed, not bought")
            order = await self._ledger.create_order(
                db,
                principal.user_id,
                item,
                price_to_coins(item.price, settings.COIN_UNIT_PRICE),
                OrderStatus.PENDING,
                payment_note=req.payment_note,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return OrderResponse.from_order(order)

    async def get_order(
        self, db: AsyncSession, principal: Principal, order_id: str
    ) -> OrderResponse:
        order = await self._ledger.get_order(db, order_id)
        item = await self._catalog.get_item(db, order.item_ref)
        seller_id = item.seller_id if item else None
        if not can_view_order(principal, order.buyer_id, seller_id):
            raise ForbiddenError("not your order")
        return OrderResponse.from_order(order)

    async def list_my_orders(
        self,
        db: AsyncSession,
        principal: Principal,
        status: OrderStatus | None,
        limit: int,
    ) -> OrderListResponse:
        orders = await self._repo.list_by_buyer(db, principal.user_id, status, limit)
        return OrderListResponse(orders=[OrderResponse.from_order(o) for o in orders])

    async def get_credentials(
        self, db: AsyncSession, principal: Principal, order_id: str
    ) -> CredentialsResponse:
        """Login details of a purchased account.

        Buyers see them once their order is approved; admins may look up any
        account order, for support.
        """
        order = await self._ledger.get_order(db, order_id)
        if order.account_id is None:
            raise ForbiddenError("only account orders carry credentials")
        account_id = order.account_id
        if principal.is_admin:
            logger.info(
                "Admin %s read credentials of account %s via order %s",
                principal.user_id, account_id, order_id,
            )
        elif order.buyer_id != principal.user_id:
            raise ForbiddenError("credentials are only available to the account's buyer")
        elif not await self._repo.has_approved_order(db, principal.user_id, account_id):
            raise CredentialsUnavailableError(account_id)
        credentials = await self._catalog.get_account_credentials(db, account_id)
        if credentials is None:
            raise ItemNotFoundError(str(ItemRef.account(account_id)))
        return CredentialsResponse(
            account_id=account_id,
            account_username=credentials.account_username,
            account_password=credentials.account_password,
            account_email=credentials.account_email,
            account_phone=credentials.account_phone,
        )

    async def _load_item(self, db: AsyncSession, ref: ItemRef) -> Item:
        item = await self._catalog.get_item(db, ref)
        if item is None:
            raise ItemNotFoundError(str(ref))
        return item
