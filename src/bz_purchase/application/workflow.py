"""PurchaseWorkflow — instant coin purchases and free-item claims.

Both create an order that is approved from the start. Every mutation runs in
one transaction: when the account turns out to be sold, or the seller credit
fails, the buyer's debit is rolled back with everything else.
"""

import logging

from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bz_catalog.domain.models import Item, ItemRef
from src.bz_catalog.domain.repository import CatalogRepositoryProtocol
from src.bz_catalog.infrastructure.persistence import CatalogRepository
from src.bz_common.coins import price_to_coins
from src.bz_common.enums import LedgerEntryType, OrderStatus, ReferenceType
from src.bz_common.errors import (
    ItemAlreadySoldError,
    ItemNotFoundError,
    ItemNotPurchasableError,
    PriceMismatchError,
)
from src.bz_gateway.auth.permissions import Principal
from src.bz_notify.application.dispatch import get_notifier, schedule_notification
from src.bz_notify.domain.models import NotificationKind
from src.bz_notify.domain.notifier import NotifierProtocol
from src.bz_order.application.ledger import OrderLedger
from src.bz_order.application.schemas import OrderResponse
from src.bz_order.domain.models import Order
from src.bz_purchase.application.schemas import PurchaseResult
from src.bz_wallet.application.balance_store import BalanceStore
from src.bz_wallet.domain.models import BalanceOwner

logger = logging.getLogger(__name__)

COIN_PAYMENT_NOTE = "coin payment"
FREE_CLAIM_NOTE = "free claim"


class PurchaseWorkflow:
    def __init__(
        self,
        ledger: OrderLedger | None = None,
        catalog: CatalogRepositoryProtocol | None = None,
        balances: BalanceStore | None = None,
        notifier: NotifierProtocol | None = None,
        unit_price: int | None = None,
    ) -> None:
        self._ledger = ledger or OrderLedger()
        self._catalog: CatalogRepositoryProtocol = catalog or CatalogRepository()
        self._balances = balances or BalanceStore()
        self._notifier = notifier
        self._unit_price = unit_price or settings.COIN_UNIT_PRICE

    async def purchase_with_coins(
        self,
        db: AsyncSession,
        principal: Principal,
        ref: ItemRef,
        expected_coins: int | None = None,
        background_tasks: BackgroundTasks | None = None,
    ) -> PurchaseResult:
        buyer = BalanceOwner.buyer(principal.user_id)
        try:
            item = await self._load_item(db, ref)
            if item.is_free:
                raise ItemNotPurchasableError(str(ref), "free items are claimed, not bought")
            if not item.is_available:
                raise ItemAlreadySoldError(str(ref))
            required = price_to_coins(item.price, self._unit_price)
            if expected_coins is not None and expected_coins < required:
                raise PriceMismatchError(expected_coins, required)

            if required > 0:
                await self._balances.debit(
                    db,
                    buyer,
                    required,
                    LedgerEntryType.PURCHASE_DEBIT,
                    description=f"Purchase of {item.title} ({ref})",
                )
            order = await self._ledger.create_order(
                db,
                principal.user_id,
                item,
                required,
                OrderStatus.APPROVED,
                approver_id=principal.user_id,
                payment_note=COIN_PAYMENT_NOTE,
            )
            await self._mark_sold(db, item, principal.user_id)
            if item.seller_id is not None and required > 0:
                await self._balances.credit(
                    db,
                    BalanceOwner.seller(item.seller_id),
                    required,
                    LedgerEntryType.SALE_CREDIT,
                    ReferenceType.ORDER,
                    order.id,
                    f"Sale of {item.title}",
                )
            balance_after = await self._balances.get_balance(db, buyer)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Coin purchase %s: buyer=%s item=%s coins=%d",
            order.id, principal.user_id, ref, required,
        )
        self._notify(order, item, background_tasks)
        return PurchaseResult(
            order=OrderResponse.from_order(order),
            item_title=item.title,
            coins_spent=required,
            balance_after=balance_after,
        )

    async def claim_free_item(
        self,
        db: AsyncSession,
        principal: Principal,
        ref: ItemRef,
        background_tasks: BackgroundTasks | None = None,
    ) -> PurchaseResult:
        """Record a zero-amount approved order; accounts go to exactly one claimer."""
        buyer = BalanceOwner.buyer(principal.user_id)
        try:
            item = await self._load_item(db, ref)
            if not item.is_free:
                raise ItemNotPurchasableError(str(ref), "only free items can be claimed")
            if not item.is_available:
                raise ItemAlreadySoldError(str(ref))
            order = await self._ledger.create_order(
                db,
                principal.user_id,
                item,
                0,
                OrderStatus.APPROVED,
                approver_id=principal.user_id,
                payment_note=FREE_CLAIM_NOTE,
            )
            await self._mark_sold(db, item, principal.user_id)
            balance_after = await self._balances.get_balance(db, buyer)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Free claim %s: buyer=%s item=%s", order.id, principal.user_id, ref)
        self._notify(order, item, background_tasks)
        return PurchaseResult(
            order=OrderResponse.from_order(order),
            item_title=item.title,
            coins_spent=0,
            balance_after=balance_after,
        )

    async def _load_item(self, db: AsyncSession, ref: ItemRef) -> Item:
        item = await self._catalog.get_item(db, ref)
        if item is None:
            raise ItemNotFoundError(str(ref))
        return item

    async def _mark_sold(self, db: AsyncSession, item: Item, buyer_id: str) -> None:
        # products sell without limit
        if not item.is_single_unit:
            return
        if not await self._catalog.mark_account_sold(db, item.id, buyer_id):
            raise ItemAlreadySoldError(str(item.ref))

    def _notify(
        self, order: Order, item: Item, background_tasks: BackgroundTasks | None
    ) -> None:
        schedule_notification(
            self._notifier or get_notifier(),
            NotificationKind.PURCHASE_COMPLETED,
            order.buyer_id,
            item.title,
            order.amount,
            order.id,
            background_tasks,
        )
