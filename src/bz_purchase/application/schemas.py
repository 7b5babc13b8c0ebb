"""Pydantic schemas for bz_purchase API."""

from pydantic import BaseModel, Field

from src.bz_order.application.schemas import ItemSelector, OrderResponse


class CoinPurchaseRequest(ItemSelector):
    expected_coins: int | None = Field(
        None, ge=0, description="Price the buyer saw; rejected if below the current price"
    )


class ClaimRequest(ItemSelector):
    pass


class PurchaseResult(BaseModel):
    order: OrderResponse
    item_title: str
    coins_spent: int
    balance_after: int   # buyer balance after the purchase, in coins
