"""OrderLedger — single source of truth for order status.

Used by the approval and purchase workflows inside their own transaction;
nothing here commits.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_catalog.domain.models import Item
from src.bz_common.enums import OrderStatus
from src.bz_common.errors import (
    AlreadyProcessedError,
    InvalidAmountError,
    ItemAlreadySoldError,
    OrderNotFoundError,
)
from src.bz_order.domain.models import Order
from src.bz_order.domain.repository import OrderRepositoryProtocol
from src.bz_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class OrderLedger:
    def __init__(self, repo: OrderRepositoryProtocol | None = None) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()

    async def create_order(
        self,
        db: AsyncSession,
        buyer_id: str,
        item: Item,
        amount: int,
        initial_status: OrderStatus,
        approver_id: str | None = None,
        payment_note: str | None = None,
    ) -> Order:
        """Insert an order for `item`.

        `initial_status` is PENDING for receipt-based checkout and APPROVED for
        coin purchases and free claims (approver = the buyer). A sold account
        cannot be ordered again.
        """
        if not item.is_available:
            raise ItemAlreadySoldError(str(item.ref))
        if amount < 0:
            raise InvalidAmountError(amount)
        if initial_status is OrderStatus.REJECTED:
            raise ValueError("Orders cannot be created in rejected state")
        if initial_status is OrderStatus.APPROVED and approver_id is None:
            raise ValueError("Approved orders need an approver")
        order = await self._repo.create(
            db,
            buyer_id,
            item.ref,
            amount,
            initial_status,
            approver_id if initial_status is OrderStatus.APPROVED else None,
            payment_note,
        )
        logger.info(
            "Order %s created: buyer=%s item=%s amount=%d status=%s",
            order.id, buyer_id, item.ref, amount, order.status.value,
        )
        return order

    async def get_order(self, db: AsyncSession, order_id: str) -> Order:
        order = await self._repo.get_by_id(db, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def list_pending(
        self, db: AsyncSession, seller_id: str | None, limit: int
    ) -> list[Order]:
        """Oldest first; `seller_id=None` means every pending order."""
        return await self._repo.list_pending_for_review(db, seller_id, limit)

    async def transition_status(
        self,
        db: AsyncSession,
        order_id: str,
        new_status: OrderStatus,
        approver_id: str,
    ) -> Order:
        """Move a pending order to a terminal status.

        The repository update only matches a pending row, so of two racing
        callers exactly one gets the order back; the other gets
        AlreadyProcessedError.
        """
        if not new_status.is_terminal:
            raise ValueError(f"Cannot transition an order to {new_status.value}")
        updated = await self._repo.update_status_if_pending(db, order_id, new_status, approver_id)
        if updated is not None:
            return updated
        current = await self._repo.get_by_id(db, order_id)
        if current is None:
            raise OrderNotFoundError(order_id)
        raise AlreadyProcessedError(f"Order {order_id}", current.status.value)
