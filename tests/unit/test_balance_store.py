"""Unit tests for BalanceStore using a mock repository."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.bz_common.enums import LedgerEntryType, ReferenceType
from src.bz_common.errors import InsufficientBalanceError, InvalidAmountError
from src.bz_wallet.application.balance_store import BalanceStore
from src.bz_wallet.domain.models import BalanceOwner, CoinBalance, CoinLedgerEntry

BUYER = BalanceOwner.buyer("buyer-1")
SELLER = BalanceOwner.seller("seller-1")


def _balance(owner: BalanceOwner, balance: int, earned: int = 0) -> CoinBalance:
    return CoinBalance(
        id="b-1", owner_kind=owner.kind.value, owner_id=owner.owner_id,
        balance=balance, total_earned=earned, version=1,
    )


def _entry(owner: BalanceOwner, amount: int, after: int) -> CoinLedgerEntry:
    return CoinLedgerEntry(
        id=1, owner_kind=owner.kind.value, owner_id=owner.owner_id,
        entry_type="SALE_CREDIT", amount=amount, balance_after=after,
    )


class TestGetBalance:
    async def test_missing_row_is_zero(self) -> None:
        repo = AsyncMock()
        repo.get_balance.return_value = None
        assert await BalanceStore(repo).get_balance(MagicMock(), BUYER) == 0

    async def test_existing_row(self) -> None:
        repo = AsyncMock()
        repo.get_balance.return_value = _balance(BUYER, 50)
        assert await BalanceStore(repo).get_balance(MagicMock(), BUYER) == 50


class TestCredit:
    @pytest.mark.parametrize("amount", [0, -5])
    async def test_non_positive_amount_rejected_before_repo(self, amount: int) -> None:
        repo = AsyncMock()
        with pytest.raises(InvalidAmountError):
            await BalanceStore(repo).credit(MagicMock(), SELLER, amount, LedgerEntryType.SALE_CREDIT)
        repo.credit.assert_not_awaited()

    async def test_passes_plain_string_values_to_repo(self) -> None:
        repo = AsyncMock()
        repo.credit.return_value = (_balance(SELLER, 30, 30), _entry(SELLER, 30, 30))
        db = MagicMock()

        balance, entry = await BalanceStore(repo).credit(
            db, SELLER, 30, LedgerEntryType.SALE_CREDIT, ReferenceType.ORDER, "o-1", "Sale"
        )

        repo.credit.assert_awaited_once_with(db, SELLER, 30, "SALE_CREDIT", "ORDER", "o-1", "Sale")
        assert balance.total_earned == 30
        assert entry.balance_after == 30

    async def test_never_commits(self) -> None:
        repo = AsyncMock()
        repo.credit.return_value = (_balance(BUYER, 10), _entry(BUYER, 10, 10))
        db = AsyncMock()
        await BalanceStore(repo).credit(db, BUYER, 10, LedgerEntryType.TOPUP)
        db.commit.assert_not_awaited()


class TestDebit:
    async def test_zero_amount_rejected(self) -> None:
        with pytest.raises(InvalidAmountError):
            await BalanceStore(AsyncMock()).debit(MagicMock(), BUYER, 0, LedgerEntryType.PURCHASE_DEBIT)

    async def test_insufficient_balance_propagates(self) -> None:
        repo = AsyncMock()
        repo.debit.side_effect = InsufficientBalanceError(30, 10)
        with pytest.raises(InsufficientBalanceError):
            await BalanceStore(repo).debit(MagicMock(), BUYER, 30, LedgerEntryType.PURCHASE_DEBIT)

    async def test_success(self) -> None:
        repo = AsyncMock()
        repo.debit.return_value = (_balance(BUYER, 20), _entry(BUYER, -30, 20))
        balance, entry = await BalanceStore(repo).debit(
            MagicMock(), BUYER, 30, LedgerEntryType.PURCHASE_DEBIT
        )
        assert balance.balance == 20
        assert entry.amount == -30


class TestBalanceOwner:
    def test_str(self) -> None:
        assert str(BUYER) == "buyer:buyer-1"
        assert str(SELLER) == "seller:seller-1"

    def test_kind_and_id_distinguish_owners(self) -> None:
        assert BalanceOwner.buyer("x") != BalanceOwner.seller("x")
        assert SELLER.is_seller and not BUYER.is_seller
