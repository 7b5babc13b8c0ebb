"""OrderRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_catalog.domain.models import ItemRef
from src.bz_common.enums import OrderStatus
from src.bz_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def create(
        self,
        db: AsyncSession,
        buyer_id: str,
        item_ref: ItemRef,
        amount: int,
        status: OrderStatus,
        approved_by: str | None,
        payment_note: str | None,
    ) -> Order: ...

    async def get_by_id(self, db: AsyncSession, order_id: str) -> Order | None: ...

    async def update_status_if_pending(
        self,
        db: AsyncSession,
        order_id: str,
        new_status: OrderStatus,
        actor_id: str,
    ) -> Order | None: ...

    async def list_by_buyer(
        self,
        db: AsyncSession,
        buyer_id: str,
        status: OrderStatus | None,
        limit: int,
    ) -> list[Order]: ...

    async def list_pending_for_review(
        self,
        db: AsyncSession,
        seller_id: str | None,
        limit: int,
    ) -> list[Order]: ...

    async def has_approved_order(
        self, db: AsyncSession, buyer_id: str, account_id: str
    ) -> bool: ...
