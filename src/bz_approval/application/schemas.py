"""Pydantic schemas for bz_approval API."""

from pydantic import BaseModel

from src.bz_order.application.schemas import OrderResponse


class ReviewResult(BaseModel):
    order: OrderResponse
    item_title: str
    seller_credited: int = 0   # coins credited to the item's seller on approval


class PendingOrdersResponse(BaseModel):
    orders: list[OrderResponse]
