"""WalletApplicationService — balances, ledger history and funding requests.

Top-ups and withdrawals are reviewed by admins. Approval runs the conditional
status update and the balance mutation in one transaction, so a request is
never approved without its coins moving (or the reverse).
"""

import logging
from typing import NoReturn

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bz_catalog.domain.repository import CatalogRepositoryProtocol
from src.bz_catalog.infrastructure.persistence import CatalogRepository
from src.bz_common.enums import LedgerEntryType, OrderStatus, ReferenceType
from src.bz_common.errors import (
    AlreadyProcessedError,
    BankDetailsMissingError,
    InsufficientBalanceError,
    SellerNotFoundError,
    TopupNotFoundError,
    WithdrawalNotFoundError,
)
from src.bz_gateway.auth.permissions import Principal, require_admin, require_seller
from src.bz_wallet.application.balance_store import BalanceStore
from src.bz_wallet.application.schemas import (
    BalanceResponse,
    BankInfo,
    LedgerEntryItem,
    LedgerResponse,
    PaymentInstructionsResponse,
    TopupListResponse,
    TopupRequest,
    TopupResponse,
    WithdrawalCreateRequest,
    WithdrawalListResponse,
    WithdrawalResponse,
    cursor_decode,
    cursor_encode,
)
from src.bz_wallet.domain.models import BalanceOwner
from src.bz_wallet.domain.repository import (
    BalanceRepositoryProtocol,
    FundingRepositoryProtocol,
)
from src.bz_wallet.infrastructure.funding_persistence import FundingRepository
from src.bz_wallet.infrastructure.persistence import BalanceRepository

logger = logging.getLogger(__name__)


class WalletApplicationService:
    def __init__(
        self,
        repo: BalanceRepositoryProtocol | None = None,
        funding: FundingRepositoryProtocol | None = None,
        catalog: CatalogRepositoryProtocol | None = None,
    ) -> None:
        self._repo: BalanceRepositoryProtocol = repo or BalanceRepository()
        self._funding: FundingRepositoryProtocol = funding or FundingRepository()
        self._catalog: CatalogRepositoryProtocol = catalog or CatalogRepository()
        self._store = BalanceStore(self._repo)

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def get_balance(self, db: AsyncSession, principal: Principal) -> BalanceResponse:
        balance = await self._store.get_balance(db, BalanceOwner.buyer(principal.user_id))
        if principal.seller_id is None:
            return BalanceResponse.build(principal.user_id, balance)
        record = await self._store.get_record(db, BalanceOwner.seller(principal.seller_id))
        return BalanceResponse.build(
            principal.user_id,
            balance,
            seller_id=principal.seller_id,
            seller_balance=record.balance if record else 0,
            total_earned=record.total_earned if record else 0,
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        principal: Principal,
        cursor: str | None,
        limit: int,
        entry_type: LedgerEntryType | None,
        as_seller: bool = False,
    ) -> LedgerResponse:
        if as_seller:
            owner = BalanceOwner.seller(require_seller(principal))
        else:
            owner = BalanceOwner.buyer(principal.user_id)
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, owner, cursor_id, limit + 1, entry_type.value if entry_type else None
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_entry(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    # ------------------------------------------------------------------
    # Top-ups (buyer bank transfer → coins)
    # ------------------------------------------------------------------

    async def get_payment_instructions(self, db: AsyncSession) -> PaymentInstructionsResponse:
        """The configured top-up account, else the first admin seller profile with bank details."""
        if (
            settings.TOPUP_BANK_NAME
            and settings.TOPUP_BANK_ACCOUNT_NAME
            and settings.TOPUP_BANK_ACCOUNT_NUMBER
        ):
            bank: BankInfo | None = BankInfo(
                bank_name=settings.TOPUP_BANK_NAME,
                bank_account_name=settings.TOPUP_BANK_ACCOUNT_NAME,
                bank_account_number=settings.TOPUP_BANK_ACCOUNT_NUMBER,
            )
        else:
            seller = await self._catalog.get_admin_bank_seller(db, settings.ROOT_ADMIN_EMAIL)
            bank = None
            if seller is not None and seller.has_bank_details:
                bank = BankInfo(
                    bank_name=seller.bank_name,  # type: ignore[arg-type]
                    bank_account_name=seller.bank_account_name,  # type: ignore[arg-type]
                    bank_account_number=seller.bank_account_number,  # type: ignore[arg-type]
                )
        return PaymentInstructionsResponse(bank=bank, coin_unit_price=settings.COIN_UNIT_PRICE)

    async def request_topup(
        self, db: AsyncSession, principal: Principal, req: TopupRequest
    ) -> TopupResponse:
        try:
            topup = await self._funding.create_topup(
                db, principal.user_id, req.amount, req.receipt_ref
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Top-up %s requested: user=%s coins=%d", topup.id, topup.user_id, topup.amount)
        return TopupResponse.from_topup(topup)

    async def approve_topup(
        self, db: AsyncSession, principal: Principal, topup_id: str, admin_note: str | None
    ) -> TopupResponse:
        require_admin(principal)
        try:
            topup = await self._funding.process_topup(
                db, topup_id, OrderStatus.APPROVED, principal.user_id, admin_note
            )
            if topup is None:
                await self._raise_topup_unprocessable(db, topup_id)
            await self._store.credit(
                db,
                BalanceOwner.buyer(topup.user_id),
                topup.amount,
                LedgerEntryType.TOPUP,
                ReferenceType.TOPUP,
                topup_id,
                "Coin top-up",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Top-up %s approved by %s", topup_id, principal.user_id)
        return TopupResponse.from_topup(topup)

    async def reject_topup(
        self, db: AsyncSession, principal: Principal, topup_id: str, admin_note: str | None
    ) -> TopupResponse:
        require_admin(principal)
        try:
            topup = await self._funding.process_topup(
                db, topup_id, OrderStatus.REJECTED, principal.user_id, admin_note
            )
            if topup is None:
                await self._raise_topup_unprocessable(db, topup_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Top-up %s rejected by %s", topup_id, principal.user_id)
        return TopupResponse.from_topup(topup)

    async def list_topups(
        self,
        db: AsyncSession,
        principal: Principal,
        status: OrderStatus | None,
        limit: int,
    ) -> TopupListResponse:
        """Admins see the review queue (pending unless filtered); buyers see their own."""
        if principal.is_admin:
            topups = await self._funding.list_topups(
                db, None, status or OrderStatus.PENDING, limit
            )
        else:
            topups = await self._funding.list_topups(db, principal.user_id, status, limit)
        return TopupListResponse(items=[TopupResponse.from_topup(t) for t in topups])

    # ------------------------------------------------------------------
    # Withdrawals (seller coins → bank transfer)
    # ------------------------------------------------------------------

    async def request_withdrawal(
        self, db: AsyncSession, principal: Principal, req: WithdrawalCreateRequest
    ) -> WithdrawalResponse:
        """The amount is checked here but not reserved; approval debits atomically."""
        seller_id = require_seller(principal)
        try:
            seller = await self._catalog.get_seller_by_id(db, seller_id)
            if seller is None:
                raise SellerNotFoundError(seller_id)
            if not seller.has_bank_details:
                raise BankDetailsMissingError()
            available = await self._store.get_balance(db, BalanceOwner.seller(seller_id))
            if req.amount > available:
                raise InsufficientBalanceError(req.amount, available)
            withdrawal = await self._funding.create_withdrawal(
                db,
                seller_id,
                req.amount,
                seller.bank_name,
                seller.bank_account_name,
                seller.bank_account_number,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Withdrawal %s requested: seller=%s coins=%d", withdrawal.id, seller_id, req.amount
        )
        return WithdrawalResponse.from_withdrawal(withdrawal)

    async def approve_withdrawal(
        self, db: AsyncSession, principal: Principal, withdrawal_id: str, admin_note: str | None
    ) -> WithdrawalResponse:
        require_admin(principal)
        try:
            withdrawal = await self._funding.process_withdrawal(
                db, withdrawal_id, OrderStatus.APPROVED, principal.user_id, admin_note
            )
            if withdrawal is None:
                await self._raise_withdrawal_unprocessable(db, withdrawal_id)
            await self._store.debit(
                db,
                BalanceOwner.seller(withdrawal.seller_id),
                withdrawal.amount,
                LedgerEntryType.WITHDRAWAL,
                ReferenceType.WITHDRAWAL,
                withdrawal_id,
                "Withdrawal to bank",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Withdrawal %s approved by %s", withdrawal_id, principal.user_id)
        return WithdrawalResponse.from_withdrawal(withdrawal)

    async def reject_withdrawal(
        self, db: AsyncSession, principal: Principal, withdrawal_id: str, admin_note: str | None
    ) -> WithdrawalResponse:
        require_admin(principal)
        try:
            withdrawal = await self._funding.process_withdrawal(
                db, withdrawal_id, OrderStatus.REJECTED, principal.user_id, admin_note
            )
            if withdrawal is None:
                await self._raise_withdrawal_unprocessable(db, withdrawal_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Withdrawal %s rejected by %s", withdrawal_id, principal.user_id)
        return WithdrawalResponse.from_withdrawal(withdrawal)

    async def list_withdrawals(
        self,
        db: AsyncSession,
        principal: Principal,
        status: OrderStatus | None,
        limit: int,
    ) -> WithdrawalListResponse:
        if principal.is_admin:
            items = await self._funding.list_withdrawals(
                db, None, status or OrderStatus.PENDING, limit
            )
        else:
            items = await self._funding.list_withdrawals(
                db, require_seller(principal), status, limit
            )
        return WithdrawalListResponse(
            items=[WithdrawalResponse.from_withdrawal(w) for w in items]
        )

    # ------------------------------------------------------------------

    async def _raise_topup_unprocessable(self, db: AsyncSession, topup_id: str) -> NoReturn:
        current = await self._funding.get_topup(db, topup_id)
        if current is None:
            raise TopupNotFoundError(topup_id)
        raise AlreadyProcessedError(f"Top-up {topup_id}", current.status.value)

    async def _raise_withdrawal_unprocessable(
        self, db: AsyncSession, withdrawal_id: str
    ) -> NoReturn:
        current = await self._funding.get_withdrawal(db, withdrawal_id)
        if current is None:
            raise WithdrawalNotFoundError(withdrawal_id)
        raise AlreadyProcessedError(f"Withdrawal {withdrawal_id}", current.status.value)
