"""Repository Protocols — dependency inversion for testability.

Unit tests inject mocks or in-memory fakes that conform to these Protocols.
Infrastructure layer provides the real implementations.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_common.enums import OrderStatus
from src.bz_wallet.domain.models import (
    BalanceOwner,
    CoinBalance,
    CoinLedgerEntry,
    CoinTopup,
    WithdrawalRequest,
)


class BalanceRepositoryProtocol(Protocol):
    async def get_balance(
        self, db: AsyncSession, owner: BalanceOwner
    ) -> CoinBalance | None: ...

    async def credit(
        self,
        db: AsyncSession,
        owner: BalanceOwner,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> tuple[CoinBalance, CoinLedgerEntry]: ...

    async def debit(
        self,
        db: AsyncSession,
        owner: BalanceOwner,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str,
    ) -> tuple[CoinBalance, CoinLedgerEntry]: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        owner: BalanceOwner,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[CoinLedgerEntry]: ...


class FundingRepositoryProtocol(Protocol):
    async def create_topup(
        self, db: AsyncSession, user_id: str, amount: int, receipt_ref: str
    ) -> CoinTopup: ...

    async def get_topup(self, db: AsyncSession, topup_id: str) -> CoinTopup | None: ...

    async def process_topup(
        self,
        db: AsyncSession,
        topup_id: str,
        new_status: OrderStatus,
        processed_by: str,
        admin_note: str | None,
    ) -> CoinTopup | None: ...

    async def list_topups(
        self,
        db: AsyncSession,
        user_id: str | None,
        status: OrderStatus | None,
        limit: int,
    ) -> list[CoinTopup]: ...

    async def create_withdrawal(
        self,
        db: AsyncSession,
        seller_id: str,
        amount: int,
        bank_name: str,
        bank_account_name: str,
        bank_account_number: str,
    ) -> WithdrawalRequest: ...

    async def get_withdrawal(
        self, db: AsyncSession, withdrawal_id: str
    ) -> WithdrawalRequest | None: ...

    async def process_withdrawal(
        self,
        db: AsyncSession,
        withdrawal_id: str,
        new_status: OrderStatus,
        processed_by: str,
        admin_note: str | None,
    ) -> WithdrawalRequest | None: ...

    async def list_withdrawals(
        self,
        db: AsyncSession,
        seller_id: str | None,
        status: OrderStatus | None,
        limit: int,
    ) -> list[WithdrawalRequest]: ...
