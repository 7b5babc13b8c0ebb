"""Pydantic schemas for bz_catalog API."""

from pydantic import BaseModel, Field

from src.bz_catalog.domain.models import Item, ItemUpdate, Seller
from src.bz_common.coins import coins_to_display, price_to_coins
from src.bz_common.datetime_utils import to_iso

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateSellerRequest(BaseModel):
    display_name: str = Field(..., min_length=2, max_length=128)
    bank_name: str | None = Field(None, max_length=128)
    bank_account_name: str | None = Field(None, max_length=128)
    bank_account_number: str | None = Field(None, max_length=64)


class _ListItemRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(None, max_length=64)
    price: int = Field(..., ge=0, description="Listed price in VND")
    is_free: bool = False
    seller_id: str | None = Field(
        None, description="Admins only: list on behalf of a seller; omit for platform-owned"
    )


class CreateAccountRequest(_ListItemRequest):
    account_username: str = Field(..., min_length=1, max_length=255)
    account_password: str = Field(..., min_length=1, max_length=255)
    account_email: str | None = Field(None, max_length=255)
    account_phone: str | None = Field(None, max_length=32)


class CreateProductRequest(_ListItemRequest):
    download_url: str | None = Field(None, max_length=1000)


class _EditItemRequest(BaseModel):
    """Omitted fields keep their current value."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(None, max_length=64)
    price: int | None = Field(None, ge=0, description="Listed price in VND")
    is_free: bool | None = None
    seller_id: str | None = Field(None, description="Move the listing to this seller")

    def to_update(self) -> ItemUpdate:
        return ItemUpdate(**self.model_dump())


class UpdateAccountRequest(_EditItemRequest):
    account_username: str | None = Field(None, min_length=1, max_length=255)
    account_password: str | None = Field(None, min_length=1, max_length=255)
    account_email: str | None = Field(None, max_length=255)
    account_phone: str | None = Field(None, max_length=32)


class UpdateProductRequest(_EditItemRequest):
    download_url: str | None = Field(None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ItemResponse(BaseModel):
    kind: str
    id: str
    title: str
    price: int
    price_coins: int
    price_coins_display: str
    is_free: bool
    is_sold: bool
    seller_id: str | None
    category: str | None
    description: str | None
    created_at: str | None

    @classmethod
    def from_item(cls, item: Item, unit_price: int) -> "ItemResponse":
        coins = price_to_coins(item.price, unit_price)
        return cls(
            kind=item.kind.value,
            id=item.id,
            title=item.title,
            price=item.price,
            price_coins=coins,
            price_coins_display=coins_to_display(coins),
            is_free=item.is_free,
            is_sold=item.is_sold,
            seller_id=item.seller_id,
            category=item.category,
            description=item.description,
            created_at=to_iso(item.created_at),
        )


class SellerResponse(BaseModel):
    id: str
    user_id: str
    display_name: str
    has_bank_details: bool

    @classmethod
    def from_seller(cls, seller: Seller) -> "SellerResponse":
        return cls(
            id=seller.id,
            user_id=seller.user_id,
            display_name=seller.display_name,
            has_bank_details=seller.has_bank_details,
        )


class ItemListResponse(BaseModel):
    items: list[ItemResponse]
