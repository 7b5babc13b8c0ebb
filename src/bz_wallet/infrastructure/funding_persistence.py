"""FundingRepository — coin top-ups (buyer deposits) and seller withdrawal requests.

Both tables share the pending → approved | rejected review cycle. The status
change is a conditional UPDATE ... WHERE status = 'pending' RETURNING, so two
admins racing on the same request produce exactly one winner.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_common.enums import OrderStatus
from src.bz_common.errors import InternalError
from src.bz_wallet.domain.models import CoinTopup, WithdrawalRequest

_TOPUP_COLUMNS = (
    "id, user_id, amount, receipt_ref, status, admin_note, "
    "processed_by, processed_at, created_at"
)
_WITHDRAWAL_COLUMNS = (
    "id, seller_id, amount, bank_name, bank_account_name, bank_account_number, "
    "status, admin_note, processed_by, processed_at, created_at"
)

_INSERT_TOPUP_SQL = text(f"""
    INSERT INTO coin_topups (user_id, amount, receipt_ref, status)
    VALUES (:user_id, :amount, :receipt_ref, 'pending')
    RETURNING {_TOPUP_COLUMNS}
""")

_GET_TOPUP_SQL = text(f"SELECT {_TOPUP_COLUMNS} FROM coin_topups WHERE id = :id")

_PROCESS_TOPUP_SQL = text(f"""
    UPDATE coin_topups
    SET status = :new_status,
        processed_by = :processed_by,
        processed_at = NOW(),
        admin_note = :admin_note,
        updated_at = NOW()
    WHERE id = :id AND status = 'pending'
    RETURNING {_TOPUP_COLUMNS}
""")

_LIST_TOPUPS_SQL = text(f"""
    SELECT {_TOPUP_COLUMNS}
    FROM coin_topups
    WHERE (CAST(:user_id AS VARCHAR) IS NULL OR user_id = :user_id)
      AND (CAST(:status AS VARCHAR) IS NULL OR status = :status)
    ORDER BY created_at DESC
    LIMIT :limit
""")

_INSERT_WITHDRAWAL_SQL = text(f"""
    INSERT INTO withdrawal_requests
        (seller_id, amount, bank_name, bank_account_name, bank_account_number, status)
    VALUES
        (:seller_id, :amount, :bank_name, :bank_account_name, :bank_account_number, 'pending')
    RETURNING {_WITHDRAWAL_COLUMNS}
""")

_GET_WITHDRAWAL_SQL = text(
    f"SELECT {_WITHDRAWAL_COLUMNS} FROM withdrawal_requests WHERE id = :id"
)

_PROCESS_WITHDRAWAL_SQL = text(f"""
    UPDATE withdrawal_requests
    SET status = :new_status,
        processed_by = :processed_by,
        processed_at = NOW(),
        admin_note = :admin_note,
        updated_at = NOW()
    WHERE id = :id AND status = 'pending'
    RETURNING {_WITHDRAWAL_COLUMNS}
""")

_LIST_WITHDRAWALS_SQL = text(f"""
    SELECT {_WITHDRAWAL_COLUMNS}
    FROM withdrawal_requests
    WHERE (CAST(:seller_id AS VARCHAR) IS NULL OR seller_id = :seller_id)
      AND (CAST(:status AS VARCHAR) IS NULL OR status = :status)
    ORDER BY created_at DESC
    LIMIT :limit
""")


def _row_to_topup(row: object) -> CoinTopup:
    return CoinTopup(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        receipt_ref=row.receipt_ref,  # type: ignore[attr-defined]
        status=OrderStatus(row.status),  # type: ignore[attr-defined]
        admin_note=row.admin_note,  # type: ignore[attr-defined]
        processed_by=row.processed_by,  # type: ignore[attr-defined]
        processed_at=row.processed_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_withdrawal(row: object) -> WithdrawalRequest:
    return WithdrawalRequest(
        id=str(row.id),  # type: ignore[attr-defined]
        seller_id=row.seller_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        bank_name=row.bank_name,  # type: ignore[attr-defined]
        bank_account_name=row.bank_account_name,  # type: ignore[attr-defined]
        bank_account_number=row.bank_account_number,  # type: ignore[attr-defined]
        status=OrderStatus(row.status),  # type: ignore[attr-defined]
        admin_note=row.admin_note,  # type: ignore[attr-defined]
        processed_by=row.processed_by,  # type: ignore[attr-defined]
        processed_at=row.processed_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class FundingRepository:
    async def create_topup(
        self, db: AsyncSession, user_id: str, amount: int, receipt_ref: str
    ) -> CoinTopup:
        result = await db.execute(
            _INSERT_TOPUP_SQL,
            {"user_id": user_id, "amount": amount, "receipt_ref": receipt_ref},
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Top-up insert returned no rows — this should never happen")
        return _row_to_topup(row)

    async def get_topup(self, db: AsyncSession, topup_id: str) -> CoinTopup | None:
        result = await db.execute(_GET_TOPUP_SQL, {"id": topup_id})
        row = result.fetchone()
        return _row_to_topup(row) if row else None

    async def process_topup(
        self,
        db: AsyncSession,
        topup_id: str,
        new_status: OrderStatus,
        processed_by: str,
        admin_note: str | None,
    ) -> CoinTopup | None:
        result = await db.execute(
            _PROCESS_TOPUP_SQL,
            {
                "id": topup_id,
                "new_status": new_status.value,
                "processed_by": processed_by,
                "admin_note": admin_note,
            },
        )
        row = result.fetchone()
        return _row_to_topup(row) if row else None

    async def list_topups(
        self,
        db: AsyncSession,
        user_id: str | None,
        status: OrderStatus | None,
        limit: int,
    ) -> list[CoinTopup]:
        result = await db.execute(
            _LIST_TOPUPS_SQL,
            {
                "user_id": user_id,
                "status": status.value if status else None,
                "limit": limit,
            },
        )
        return [_row_to_topup(row) for row in result.fetchall()]

    async def create_withdrawal(
        self,
        db: AsyncSession,
        seller_id: str,
        amount: int,
        bank_name: str,
        bank_account_name: str,
        bank_account_number: str,
    ) -> WithdrawalRequest:
        result = await db.execute(
            _INSERT_WITHDRAWAL_SQL,
            {
                "seller_id": seller_id,
                "amount": amount,
                "bank_name": bank_name,
                "bank_account_name": bank_account_name,
                "bank_account_number": bank_account_number,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Withdrawal insert returned no rows — this should never happen")
        return _row_to_withdrawal(row)

    async def get_withdrawal(
        self, db: AsyncSession, withdrawal_id: str
    ) -> WithdrawalRequest | None:
        result = await db.execute(_GET_WITHDRAWAL_SQL, {"id": withdrawal_id})
        row = result.fetchone()
        return _row_to_withdrawal(row) if row else None

    async def process_withdrawal(
        self,
        db: AsyncSession,
        withdrawal_id: str,
        new_status: OrderStatus,
        processed_by: str,
        admin_note: str | None,
    ) -> WithdrawalRequest | None:
        result = await db.execute(
            _PROCESS_WITHDRAWAL_SQL,
            {
                "id": withdrawal_id,
                "new_status": new_status.value,
                "processed_by": processed_by,
                "admin_note": admin_note,
            },
        )
        row = result.fetchone()
        return _row_to_withdrawal(row) if row else None

    async def list_withdrawals(
        self,
        db: AsyncSession,
        seller_id: str | None,
        status: OrderStatus | None,
        limit: int,
    ) -> list[WithdrawalRequest]:
        result = await db.execute(
            _LIST_WITHDRAWALS_SQL,
            {
                "seller_id": seller_id,
                "status": status.value if status else None,
                "limit": limit,
            },
        )
        return [_row_to_withdrawal(row) for row in result.fetchall()]
