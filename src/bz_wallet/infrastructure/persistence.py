"""BalanceRepository — concrete implementation of BalanceRepositoryProtocol.

All balance-mutating operations are single atomic PostgreSQL statements with
RETURNING. Credit is an upsert (the row is created lazily on first credit);
debit is a decrement-if-sufficient UPDATE — 0 rows means the balance could not
cover the amount (or no row exists yet, which is the same as a zero balance).

Transaction ownership: The CALLER (application service or workflow) commits or
rolls back; nothing here commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_common.errors import InsufficientBalanceError, InternalError
from src.bz_wallet.domain.models import BalanceOwner, CoinBalance, CoinLedgerEntry

_BALANCE_COLUMNS = (
    "id, owner_kind, owner_id, balance, total_earned, version, created_at, updated_at"
)

_CREDIT_SQL = text(f"""
    INSERT INTO coin_balances (owner_kind, owner_id, balance, total_earned)
    VALUES (:owner_kind, :owner_id, :amount, :earned)
    ON CONFLICT (owner_kind, owner_id) DO UPDATE
    SET balance      = coin_balances.balance + EXCLUDED.balance,
        total_earned = coin_balances.total_earned + EXCLUDED.total_earned,
        version      = coin_balances.version + 1,
        updated_at   = NOW()
    RETURNING {_BALANCE_COLUMNS}
""")

_DEBIT_SQL = text(f"""
    UPDATE coin_balances
    SET balance = balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE owner_kind = :owner_kind
      AND owner_id = :owner_id
      AND balance >= :amount
    RETURNING {_BALANCE_COLUMNS}
""")

_GET_BALANCE_SQL = text(f"""
    SELECT {_BALANCE_COLUMNS}
    FROM coin_balances
    WHERE owner_kind = :owner_kind AND owner_id = :owner_id
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO coin_ledger_entries
        (owner_kind, owner_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:owner_kind, :owner_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
    RETURNING id, owner_kind, owner_id, entry_type, amount, balance_after,
              reference_type, reference_id, description, created_at
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, owner_kind, owner_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM coin_ledger_entries
    WHERE owner_kind = :owner_kind
      AND owner_id = :owner_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS VARCHAR) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_balance(row: object) -> CoinBalance:
    return CoinBalance(
        id=str(row.id),  # type: ignore[attr-defined]
        owner_kind=row.owner_kind,  # type: ignore[attr-defined]
        owner_id=row.owner_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        total_earned=row.total_earned,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> CoinLedgerEntry:
    return CoinLedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        owner_kind=row.owner_kind,  # type: ignore[attr-defined]
        owner_id=row.owner_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class BalanceRepository:
    """Concrete repository — all mutations atomic at the SQL level."""

    async def get_balance(
        self, db: AsyncSession, owner: BalanceOwner
    ) -> CoinBalance | None:
        result = await db.execute(
            _GET_BALANCE_SQL, {"owner_kind": owner.kind.value, "owner_id": owner.owner_id}
        )
        row = result.fetchone()
        return _row_to_balance(row) if row else None

    async def credit(
        self,
        db: AsyncSession,
        owner: BalanceOwner,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> tuple[CoinBalance, CoinLedgerEntry]:
        result = await db.execute(
            _CREDIT_SQL,
            {
                "owner_kind": owner.kind.value,
                "owner_id": owner.owner_id,
                "amount": amount,
                "earned": amount if owner.is_seller else 0,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Balance upsert returned no rows — this should never happen")
        balance = _row_to_balance(row)
        entry = await self._append_ledger(
            db, owner, entry_type, amount, balance.balance, ref_type, ref_id, description
        )
        return balance, entry

    async def debit(
        self,
        db: AsyncSession,
        owner: BalanceOwner,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> tuple[CoinBalance, CoinLedgerEntry]:
        result = await db.execute(
            _DEBIT_SQL,
            {"owner_kind": owner.kind.value, "owner_id": owner.owner_id, "amount": amount},
        )
        row = result.fetchone()
        if row is None:
            current = await self.get_balance(db, owner)
            raise InsufficientBalanceError(amount, current.balance if current else 0)
        balance = _row_to_balance(row)
        entry = await self._append_ledger(
            db, owner, entry_type, -amount, balance.balance, ref_type, ref_id, description
        )
        return balance, entry

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        owner: BalanceOwner,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[CoinLedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "owner_kind": owner.kind.value,
                "owner_id": owner.owner_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]

    async def _append_ledger(
        self,
        db: AsyncSession,
        owner: BalanceOwner,
        entry_type: str,
        signed_amount: int,
        balance_after: int,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> CoinLedgerEntry:
        result = await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "owner_kind": owner.kind.value,
                "owner_id": owner.owner_id,
                "entry_type": entry_type,
                "amount": signed_amount,
                "balance_after": balance_after,
                "reference_type": ref_type,
                "reference_id": ref_id,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows — this should never happen")
        return _row_to_ledger(row)
