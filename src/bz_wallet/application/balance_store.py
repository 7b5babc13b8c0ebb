"""BalanceStore — the only entry point workflows use to move coins.

Validates amounts and delegates to the repository's atomic SQL primitives.
Runs inside the caller's transaction; never commits.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bz_common.enums import LedgerEntryType, ReferenceType
from src.bz_common.errors import InvalidAmountError
from src.bz_wallet.domain.models import BalanceOwner, CoinBalance, CoinLedgerEntry
from src.bz_wallet.domain.repository import BalanceRepositoryProtocol
from src.bz_wallet.infrastructure.persistence import BalanceRepository

logger = logging.getLogger(__name__)


class BalanceStore:
    def __init__(self, repo: BalanceRepositoryProtocol | None = None) -> None:
        self._repo: BalanceRepositoryProtocol = repo or BalanceRepository()

    async def get_balance(self, db: AsyncSession, owner: BalanceOwner) -> int:
        """Current balance in coins; a principal without a row has 0."""
        record = await self._repo.get_balance(db, owner)
        return record.balance if record else 0

    async def get_record(self, db: AsyncSession, owner: BalanceOwner) -> CoinBalance | None:
        return await self._repo.get_balance(db, owner)

    async def credit(
        self,
        db: AsyncSession,
        owner: BalanceOwner,
        amount: int,
        entry_type: LedgerEntryType,
        reference_type: ReferenceType | None = None,
        reference_id: str | None = None,
        description: str = "",
    ) -> tuple[CoinBalance, CoinLedgerEntry]:
        if amount <= 0:
            raise InvalidAmountError(amount)
        balance, entry = await self._repo.credit(
            db,
            owner,
            amount,
            entry_type.value,
            reference_type.value if reference_type else None,
            reference_id,
            description,
        )
        logger.info(
            "Credited %d coins to %s (%s %s) balance=%d",
            amount, owner, entry_type.value, reference_id, balance.balance,
        )
        return balance, entry

    async def debit(
        self,
        db: AsyncSession,
        owner: BalanceOwner,
        amount: int,
        entry_type: LedgerEntryType,
        reference_type: ReferenceType | None = None,
        reference_id: str | None = None,
        description: str = "",
    ) -> tuple[CoinBalance, CoinLedgerEntry]:
        """Decrement-if-sufficient. Raises InsufficientBalanceError with nothing applied."""
        if amount <= 0:
            raise InvalidAmountError(amount)
        balance, entry = await self._repo.debit(
            db,
            owner,
            amount,
            entry_type.value,
            reference_type.value if reference_type else None,
            reference_id,
            description,
        )
        logger.info(
            "Debited %d coins from %s (%s %s) balance=%d",
            amount, owner, entry_type.value, reference_id, balance.balance,
        )
        return balance, entry
