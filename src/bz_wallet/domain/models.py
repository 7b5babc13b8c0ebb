"""Domain models for bz_wallet — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.bz_common.enums import OrderStatus, OwnerKind


@dataclass(frozen=True)
class BalanceOwner:
    """A principal holding coins: a buyer (user id) or a seller (seller id)."""

    kind: OwnerKind
    owner_id: str

    @classmethod
    def buyer(cls, user_id: str) -> "BalanceOwner":
        return cls(OwnerKind.BUYER, user_id)

    @classmethod
    def seller(cls, seller_id: str) -> "BalanceOwner":
        return cls(OwnerKind.SELLER, seller_id)

    @property
    def is_seller(self) -> bool:
        return self.kind is OwnerKind.SELLER

    def __str__(self) -> str:
        return f"{self.kind.value.lower()}:{self.owner_id}"


@dataclass
class CoinBalance:
    id: str
    owner_kind: str
    owner_id: str
    balance: int        # coins, >= 0
    total_earned: int   # coins, sellers only (stays 0 for buyers)
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class CoinLedgerEntry:
    id: int                          # BIGSERIAL
    owner_kind: str
    owner_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # coins, positive=credit negative=debit
    balance_after: int               # coins, balance snapshot after op
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class CoinTopup:
    id: str
    user_id: str
    amount: int             # coins requested
    receipt_ref: str        # storage key of the uploaded transfer receipt
    status: OrderStatus = OrderStatus.PENDING
    admin_note: str | None = None
    processed_by: str | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class WithdrawalRequest:
    id: str
    seller_id: str
    amount: int
    bank_name: str
    bank_account_name: str
    bank_account_number: str
    status: OrderStatus = OrderStatus.PENDING
    admin_note: str | None = None
    processed_by: str | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None
