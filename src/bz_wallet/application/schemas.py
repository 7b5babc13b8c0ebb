"""Pydantic schemas and cursor utilities for bz_wallet API."""

import base64
import json

from pydantic import BaseModel, Field

from src.bz_common.coins import coins_to_display
from src.bz_common.datetime_utils import to_iso
from src.bz_wallet.domain.models import CoinLedgerEntry, CoinTopup, WithdrawalRequest

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TopupRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Coins to add once the transfer is verified")
    receipt_ref: str = Field(..., min_length=1, max_length=500, description="Transfer receipt")


class WithdrawalCreateRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Coins to cash out")


class ReviewNoteRequest(BaseModel):
    admin_note: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    user_id: str
    balance: int
    balance_display: str
    seller_id: str | None = None
    seller_balance: int | None = None
    seller_balance_display: str | None = None
    total_earned: int | None = None
    total_earned_display: str | None = None

    @classmethod
    def build(
        cls,
        user_id: str,
        balance: int,
        seller_id: str | None = None,
        seller_balance: int = 0,
        total_earned: int = 0,
    ) -> "BalanceResponse":
        resp = cls(user_id=user_id, balance=balance, balance_display=coins_to_display(balance))
        if seller_id is not None:
            resp.seller_id = seller_id
            resp.seller_balance = seller_balance
            resp.seller_balance_display = coins_to_display(seller_balance)
            resp.total_earned = total_earned
            resp.total_earned_display = coins_to_display(total_earned)
        return resp


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: int
    amount_display: str
    balance_after: int
    balance_after_display: str
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_entry(cls, e: CoinLedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=e.id,
            entry_type=e.entry_type,
            amount=e.amount,
            amount_display=coins_to_display(e.amount),
            balance_after=e.balance_after,
            balance_after_display=coins_to_display(e.balance_after),
            reference_type=e.reference_type,
            reference_id=e.reference_id,
            description=e.description,
            created_at=to_iso(e.created_at) or "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool


class TopupResponse(BaseModel):
    id: str
    user_id: str
    amount: int
    amount_display: str
    receipt_ref: str
    status: str
    admin_note: str | None
    processed_by: str | None
    processed_at: str | None
    created_at: str | None

    @classmethod
    def from_topup(cls, t: CoinTopup) -> "TopupResponse":
        return cls(
            id=t.id,
            user_id=t.user_id,
            amount=t.amount,
            amount_display=coins_to_display(t.amount),
            receipt_ref=t.receipt_ref,
            status=t.status.value,
            admin_note=t.admin_note,
            processed_by=t.processed_by,
            processed_at=to_iso(t.processed_at),
            created_at=to_iso(t.created_at),
        )


class WithdrawalResponse(BaseModel):
    id: str
    seller_id: str
    amount: int
    amount_display: str
    bank_name: str
    bank_account_name: str
    bank_account_number: str
    status: str
    admin_note: str | None
    processed_by: str | None
    processed_at: str | None
    created_at: str | None

    @classmethod
    def from_withdrawal(cls, w: WithdrawalRequest) -> "WithdrawalResponse":
        return cls(
            id=w.id,
            seller_id=w.seller_id,
            amount=w.amount,
            amount_display=coins_to_display(w.amount),
            bank_name=w.bank_name,
            bank_account_name=w.bank_account_name,
            bank_account_number=w.bank_account_number,
            status=w.status.value,
            admin_note=w.admin_note,
            processed_by=w.processed_by,
            processed_at=to_iso(w.processed_at),
            created_at=to_iso(w.created_at),
        )


class TopupListResponse(BaseModel):
    items: list[TopupResponse]


class WithdrawalListResponse(BaseModel):
    items: list[WithdrawalResponse]


class BankInfo(BaseModel):
    bank_name: str
    bank_account_name: str
    bank_account_number: str


class PaymentInstructionsResponse(BaseModel):
    """Where to transfer money before submitting a top-up receipt."""

    bank: BankInfo | None
    coin_unit_price: int
