"""OrderRepository — concrete implementation of OrderRepositoryProtocol.

Status changes are conditional UPDATEs keyed on status = 'pending'; a result
of 0 rows means another request already approved or rejected the order.
The caller owns the transaction.
"""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_catalog.domain.models import ItemRef
from src.bz_common.enums import OrderStatus
from src.bz_common.errors import InternalError
from src.bz_order.domain.models import Order

_ORDER_COLUMNS = (
    "id, buyer_id, account_id, product_id, amount, status, payment_note, "
    "approved_at, approved_by, rejected_at, rejected_by, created_at, updated_at"
)

_INSERT_ORDER_SQL = text(f"""
    INSERT INTO orders
        (buyer_id, account_id, product_id, amount, status, payment_note,
         approved_at, approved_by)
    VALUES
        (:buyer_id, :account_id, :product_id, :amount, :status, :payment_note,
         CASE WHEN CAST(:approved_by AS UUID) IS NULL THEN NULL ELSE NOW() END,
         :approved_by)
    RETURNING {_ORDER_COLUMNS}
""")

_GET_ORDER_SQL = text(f"SELECT {_ORDER_COLUMNS} FROM orders WHERE id = :id")

_APPROVE_IF_PENDING_SQL = text(f"""
    UPDATE orders
    SET status = 'approved',
        approved_at = NOW(),
        approved_by = :actor_id,
        updated_at = NOW()
    WHERE id = :id AND status = 'pending'
    RETURNING {_ORDER_COLUMNS}
""")

_REJECT_IF_PENDING_SQL = text(f"""
    UPDATE orders
    SET status = 'rejected',
        rejected_at = NOW(),
        rejected_by = :actor_id,
        updated_at = NOW()
    WHERE id = :id AND status = 'pending'
    RETURNING {_ORDER_COLUMNS}
""")

_LIST_BY_BUYER_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM orders
    WHERE buyer_id = :buyer_id
      AND (CAST(:status AS VARCHAR) IS NULL OR status = :status)
    ORDER BY created_at DESC
    LIMIT :limit
""")

_LIST_PENDING_FOR_REVIEW_SQL = text("""
    SELECT o.id, o.buyer_id, o.account_id, o.product_id, o.amount, o.status,
           o.payment_note, o.approved_at, o.approved_by, o.rejected_at,
           o.rejected_by, o.created_at, o.updated_at
    FROM orders o
    LEFT JOIN accounts a ON a.id = o.account_id
    LEFT JOIN products p ON p.id = o.product_id
    WHERE o.status = 'pending'
      AND (CAST(:seller_id AS UUID) IS NULL
           OR a.seller_id = :seller_id
           OR p.seller_id = :seller_id)
    ORDER BY o.created_at ASC
    LIMIT :limit
""")

_HAS_APPROVED_ORDER_SQL = text("""
    SELECT 1
    FROM orders
    WHERE buyer_id = :buyer_id AND account_id = :account_id AND status = 'approved'
    LIMIT 1
""")


def _opt_str(value: object) -> str | None:
    return str(value) if value is not None else None


def _row_to_order(row: object) -> Order:
    return Order(
        id=str(row.id),  # type: ignore[attr-defined]
        buyer_id=str(row.buyer_id),  # type: ignore[attr-defined]
        account_id=_opt_str(row.account_id),  # type: ignore[attr-defined]
        product_id=_opt_str(row.product_id),  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        status=OrderStatus(row.status),  # type: ignore[attr-defined]
        payment_note=row.payment_note,  # type: ignore[attr-defined]
        approved_at=row.approved_at,  # type: ignore[attr-defined]
        approved_by=_opt_str(row.approved_by),  # type: ignore[attr-defined]
        rejected_at=row.rejected_at,  # type: ignore[attr-defined]
        rejected_by=_opt_str(row.rejected_by),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class OrderRepository:
    async def create(
        self,
        db: AsyncSession,
        buyer_id: str,
        item_ref: ItemRef,
        amount: int,
        status: OrderStatus,
        approved_by: str | None,
        payment_note: str | None,
    ) -> Order:
        result = await db.execute(
            _INSERT_ORDER_SQL,
            {
                "buyer_id": buyer_id,
                "account_id": item_ref.account_id,
                "product_id": item_ref.product_id,
                "amount": amount,
                "status": status.value,
                "payment_note": payment_note,
                "approved_by": approved_by,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Order insert returned no rows — this should never happen")
        return _row_to_order(row)

    async def get_by_id(self, db: AsyncSession, order_id: str) -> Order | None:
        row = (await db.execute(_GET_ORDER_SQL, {"id": order_id})).fetchone()
        return _row_to_order(row) if row else None

    async def update_status_if_pending(
        self,
        db: AsyncSession,
        order_id: str,
        new_status: OrderStatus,
        actor_id: str,
    ) -> Order | None:
        if new_status is OrderStatus.APPROVED:
            sql = _APPROVE_IF_PENDING_SQL
        elif new_status is OrderStatus.REJECTED:
            sql = _REJECT_IF_PENDING_SQL
        else:
            raise ValueError(f"Cannot transition an order to {new_status.value}")
        row = (await db.execute(sql, {"id": order_id, "actor_id": actor_id})).fetchone()
        return _row_to_order(row) if row else None

    async def list_by_buyer(
        self,
        db: AsyncSession,
        buyer_id: str,
        status: OrderStatus | None,
        limit: int,
    ) -> list[Order]:
        result = await db.execute(
            _LIST_BY_BUYER_SQL,
            {
                "buyer_id": buyer_id,
                "status": status.value if status else None,
                "limit": limit,
            },
        )
        return [_row_to_order(row) for row in result.fetchall()]

    async def list_pending_for_review(
        self,
        db: AsyncSession,
        seller_id: str | None,
        limit: int,
    ) -> list[Order]:
        result = await db.execute(
            _LIST_PENDING_FOR_REVIEW_SQL, {"seller_id": seller_id, "limit": limit}
        )
        return [_row_to_order(row) for row in result.fetchall()]

    async def has_approved_order(
        self, db: AsyncSession, buyer_id: str, account_id: str
    ) -> bool:
        result = await db.execute(
            _HAS_APPROVED_ORDER_SQL, {"buyer_id": buyer_id, "account_id": account_id}
        )
        return result.fetchone() is not None
