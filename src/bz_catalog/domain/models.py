"""Catalog domain models — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.bz_common.enums import ItemKind


@dataclass(frozen=True)
class ItemRef:
    """Reference to exactly one sellable item."""

    kind: ItemKind
    item_id: str

    @classmethod
    def account(cls, account_id: str) -> "ItemRef":
        return cls(ItemKind.ACCOUNT, account_id)

    @classmethod
    def product(cls, product_id: str) -> "ItemRef":
        return cls(ItemKind.PRODUCT, product_id)

    @property
    def account_id(self) -> str | None:
        return self.item_id if self.kind is ItemKind.ACCOUNT else None

    @property
    def product_id(self) -> str | None:
        return self.item_id if self.kind is ItemKind.PRODUCT else None

    def __str__(self) -> str:
        return f"{self.kind.value.lower()}:{self.item_id}"


@dataclass
class Item:
    kind: ItemKind
    id: str
    title: str
    price: int                   # currency units (VND), converted to coins at order time
    is_free: bool = False
    seller_id: str | None = None  # None = platform-owned, no seller credit
    is_sold: bool = False         # accounts only; products never sell out
    sold_to: str | None = None
    sold_at: datetime | None = None
    category: str | None = None
    description: str | None = None
    created_at: datetime | None = None

    @property
    def ref(self) -> ItemRef:
        return ItemRef(self.kind, self.id)

    @property
    def is_single_unit(self) -> bool:
        return self.kind is ItemKind.ACCOUNT

    @property
    def is_available(self) -> bool:
        return not (self.is_single_unit and self.is_sold)


@dataclass
class AccountCredentials:
    account_username: str
    account_password: str
    account_email: str | None = None
    account_phone: str | None = None


@dataclass
class Seller:
    id: str
    user_id: str
    display_name: str
    bank_name: str | None = None
    bank_account_name: str | None = None
    bank_account_number: str | None = None
    created_at: datetime | None = None

    @property
    def has_bank_details(self) -> bool:
        return bool(self.bank_name and self.bank_account_name and self.bank_account_number)


@dataclass
class ItemUpdate:
    """Admin edit of a listing; None leaves a field unchanged."""

    title: str | None = None
    description: str | None = None
    category: str | None = None
    price: int | None = None
    is_free: bool | None = None
    seller_id: str | None = None
    # products only
    download_url: str | None = None
    # accounts only
    account_username: str | None = None
    account_password: str | None = None
    account_email: str | None = None
    account_phone: str | None = None
