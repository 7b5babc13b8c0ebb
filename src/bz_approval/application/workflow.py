"""ApprovalWorkflow — admin/seller review of receipt-based orders.

Approve runs the status transition, the account sale and the seller credit in
one transaction: if any step fails nothing is applied and the order stays
pending. The buyer notification is queued after commit and never delays the response.
"""

import logging

from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_approval.application.schemas import PendingOrdersResponse, ReviewResult
from src.bz_catalog.domain.models import Item
from src.bz_catalog.domain.repository import CatalogRepositoryProtocol
from src.bz_catalog.infrastructure.persistence import CatalogRepository
from src.bz_common.enums import LedgerEntryType, OrderStatus, ReferenceType
from src.bz_common.errors import ForbiddenError, ItemAlreadySoldError, ItemNotFoundError
from src.bz_gateway.auth.permissions import Principal, can_approve_order
from src.bz_notify.application.dispatch import get_notifier, schedule_notification
from src.bz_notify.domain.models import NotificationKind
from src.bz_notify.domain.notifier import NotifierProtocol
from src.bz_order.application.ledger import OrderLedger
from src.bz_order.application.schemas import OrderResponse
from src.bz_order.domain.models import Order
from src.bz_wallet.application.balance_store import BalanceStore
from src.bz_wallet.domain.models import BalanceOwner

logger = logging.getLogger(__name__)


class ApprovalWorkflow:
    def __init__(
        self,
        ledger: OrderLedger | None = None,
        catalog: CatalogRepositoryProtocol | None = None,
        balances: BalanceStore | None = None,
        notifier: NotifierProtocol | None = None,
    ) -> None:
        self._ledger = ledger or OrderLedger()
        self._catalog: CatalogRepositoryProtocol = catalog or CatalogRepository()
        self._balances = balances or BalanceStore()
        self._notifier = notifier

    async def approve(
        self,
        db: AsyncSession,
        principal: Principal,
        order_id: str,
        background_tasks: BackgroundTasks | None = None,
    ) -> ReviewResult:
        credited = 0
        try:
            order, item = await self._load_for_review(db, principal, order_id)
            order.ensure_can_transition(OrderStatus.APPROVED)
            approved = await self._ledger.transition_status(
                db, order_id, OrderStatus.APPROVED, principal.user_id
            )
            if item.is_single_unit and not await self._catalog.mark_account_sold(
                db, item.id, approved.buyer_id
            ):
                raise ItemAlreadySoldError(str(item.ref))
            if item.seller_id is not None and approved.amount > 0:
                credited = await self._credit_seller(db, item, approved)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Order %s approved by %s: item=%s amount=%d seller_credit=%d",
            order_id, principal.user_id, item.ref, approved.amount, credited,
        )
        schedule_notification(
            self._notifier or get_notifier(),
            NotificationKind.ORDER_APPROVED,
            approved.buyer_id,
            item.title,
            approved.amount,
            approved.id,
            background_tasks,
        )
        return ReviewResult(
            order=OrderResponse.from_order(approved),
            item_title=item.title,
            seller_credited=credited,
        )

    async def reject(
        self,
        db: AsyncSession,
        principal: Principal,
        order_id: str,
        background_tasks: BackgroundTasks | None = None,
    ) -> ReviewResult:
        """Reject a pending order. Balances and items are left untouched."""
        try:
            order, item = await self._load_for_review(db, principal, order_id)
            order.ensure_can_transition(OrderStatus.REJECTED)
            rejected = await self._ledger.transition_status(
                db, order_id, OrderStatus.REJECTED, principal.user_id
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Order %s rejected by %s", order_id, principal.user_id)
        schedule_notification(
            self._notifier or get_notifier(),
            NotificationKind.ORDER_REJECTED,
            rejected.buyer_id,
            item.title,
            rejected.amount,
            rejected.id,
            background_tasks,
        )
        return ReviewResult(order=OrderResponse.from_order(rejected), item_title=item.title)

    async def list_pending(
        self, db: AsyncSession, principal: Principal, limit: int
    ) -> PendingOrdersResponse:
        """All pending orders for admins; a seller sees orders on their own items."""
        if principal.is_admin:
            seller_id = None
        elif principal.is_seller:
            seller_id = principal.seller_id
        else:
            raise ForbiddenError("only sellers and admins review orders")
        orders = await self._ledger.list_pending(db, seller_id, limit)
        return PendingOrdersResponse(orders=[OrderResponse.from_order(o) for o in orders])

    async def _load_for_review(
        self, db: AsyncSession, principal: Principal, order_id: str
    ) -> tuple[Order, Item]:
        order = await self._ledger.get_order(db, order_id)
        item = await self._catalog.get_item(db, order.item_ref)
        if item is None:
            raise ItemNotFoundError(str(order.item_ref))
        if not can_approve_order(principal, item.seller_id):
            raise ForbiddenError("only an admin or the item's seller can review this order")
        return order, item

    async def _credit_seller(self, db: AsyncSession, item: Item, order: Order) -> int:
        seller = BalanceOwner.seller(item.seller_id)  # type: ignore[arg-type]
        try:
            await self._balances.credit(
                db,
                seller,
                order.amount,
                LedgerEntryType.SALE_CREDIT,
                ReferenceType.ORDER,
                order.id,
                f"Sale of {item.title}",
            )
        except Exception:
            logger.error(
                "RECONCILIATION: seller credit failed for order %s (%s, %d coins); "
                "approval rolled back",
                order.id, seller, order.amount,
            )
            raise
        return order.amount
