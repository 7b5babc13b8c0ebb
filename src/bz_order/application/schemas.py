"""Pydantic schemas for bz_order API."""
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from src.bz_catalog.domain.models import ItemRef
from src.bz_common.coins import coins_to_display
from src.bz_common.datetime_utils import to_iso
from src.bz_order.domain.models import Order


class ItemSelector(BaseModel):
    """Exactly one of account_id / product_id."""

    account_id: UUID | None = None
    product_id: UUID | None = None

    @model_validator(mode="after")
    def exactly_one_item(self) -> "ItemSelector":
        if (self.account_id is None) == (self.product_id is None):
            raise ValueError("Provide exactly one of account_id or product_id")
        return self

    def to_ref(self) -> ItemRef:
        if self.account_id is not None:
            return ItemRef.account(str(self.account_id))
        return ItemRef.product(str(self.product_id))


class CheckoutRequest(ItemSelector):
    """Receipt-based purchase: the buyer paid by bank transfer and awaits approval."""

    payment_note: str | None = Field(None, max_length=500)


class OrderResponse(BaseModel):
    id: str
    buyer_id: str
    account_id: str | None
    product_id: str | None
    amount: int
    amount_display: str
    status: str
    payment_note: str | None
    approved_at: str | None
    approved_by: str | None
    rejected_at: str | None
    rejected_by: str | None
    created_at: str | None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            buyer_id=order.buyer_id,
            account_id=order.account_id,
            product_id=order.product_id,
            amount=order.amount,
            amount_display=coins_to_display(order.amount),
            status=order.status.value,
            payment_note=order.payment_note,
            approved_at=to_iso(order.approved_at),
            approved_by=order.approved_by,
            rejected_at=to_iso(order.rejected_at),
            rejected_by=order.rejected_by,
            created_at=to_iso(order.created_at),
        )


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]


class CredentialsResponse(BaseModel):
    account_id: str
    account_username: str
    account_password: str
    account_email: str | None
    account_phone: str | None
