"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class OwnerKind(str, Enum):
    """Who holds a coin balance: a buyer (keyed by user id) or a seller (keyed by seller id)."""
    BUYER = "BUYER"
    SELLER = "SELLER"


class ItemKind(str, Enum):
    ACCOUNT = "ACCOUNT"    # single unit, sold exactly once
    PRODUCT = "PRODUCT"    # source-code download, unlimited sales


class OrderStatus(str, Enum):
    """Review status shared by orders, coin top-ups and withdrawal requests.

    pending → approved | rejected; both targets are terminal.
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING

    def can_transition_to(self, target: "OrderStatus") -> bool:
        return self is OrderStatus.PENDING and target.is_terminal


class LedgerEntryType(str, Enum):
    TOPUP = "TOPUP"                      # buyer, admin-approved bank transfer
    PURCHASE_DEBIT = "PURCHASE_DEBIT"    # buyer, coin purchase
    SALE_CREDIT = "SALE_CREDIT"          # seller, approved sale
    WITHDRAWAL = "WITHDRAWAL"            # seller, approved cash-out


class ReferenceType(str, Enum):
    ORDER = "ORDER"
    TOPUP = "TOPUP"
    WITHDRAWAL = "WITHDRAWAL"
