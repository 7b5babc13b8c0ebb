"""Unit tests for CatalogApplicationService using a mock repository."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.bz_catalog.application.schemas import (
    CreateAccountRequest,
    CreateProductRequest,
    CreateSellerRequest,
    UpdateAccountRequest,
    UpdateProductRequest,
)
from src.bz_catalog.application.service import CatalogApplicationService
from src.bz_catalog.domain.models import Item, ItemRef, ItemUpdate, Seller
from src.bz_common.enums import ItemKind
from src.bz_common.errors import (
    ForbiddenError,
    ItemAlreadySoldError,
    ItemInUseError,
    ItemNotFoundError,
    SellerExistsError,
    SellerNotFoundError,
)
from src.bz_gateway.auth.permissions import Principal

ADMIN = Principal(user_id="admin-1", email="admin@bonz.vn", is_admin=True)
SELLER = Principal(user_id="user-s", email="s@bonz.vn", seller_id="seller-1")
BUYER = Principal(user_id="buyer-1", email="b@bonz.vn")


def _account_req(**kw: object) -> CreateAccountRequest:
    fields: dict = {"title": "Lien Quan acc", "price": 30500,
                    "account_username": "lq_user", "account_password": "pw"}
    fields.update(kw)
    return CreateAccountRequest(**fields)


def _db() -> MagicMock:
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


class TestCreateSeller:
    async def test_creates_profile(self) -> None:
        repo = AsyncMock()
        repo.get_seller_by_user_id.return_value = None
        repo.create_seller.return_value = Seller(
            id="seller-9", user_id="buyer-1", display_name="New Shop", bank_name="ACB",
            bank_account_name="TRAN B", bank_account_number="999",
        )
        db = _db()

        result = await CatalogApplicationService(repo).create_seller(
            db, BUYER, CreateSellerRequest(display_name="New Shop", bank_name="ACB",
                                           bank_account_name="TRAN B", bank_account_number="999")
        )

        assert result.id == "seller-9"
        assert result.has_bank_details is True
        db.commit.assert_awaited_once()

    async def test_one_profile_per_user(self) -> None:
        repo = AsyncMock()
        repo.get_seller_by_user_id.return_value = Seller(id="s", user_id="buyer-1", display_name="x")
        db = _db()
        with pytest.raises(SellerExistsError):
            await CatalogApplicationService(repo).create_seller(
                db, BUYER, CreateSellerRequest(display_name="Again")
            )
        repo.create_seller.assert_not_awaited()
        db.rollback.assert_awaited_once()


class TestListing:
    async def test_seller_lists_as_self(self) -> None:
        repo = AsyncMock()
        repo.create_account.return_value = Item(ItemKind.ACCOUNT, "acc-1", "Lien Quan acc", 30500,
                                                seller_id="seller-1")
        with patch("src.bz_catalog.application.service.settings.COIN_UNIT_PRICE", 1000):
            result = await CatalogApplicationService(repo).create_account(
                _db(), SELLER, _account_req(seller_id="seller-2")
            )
        assert repo.create_account.await_args.args[1] == "seller-1"
        assert result.price_coins == 31

    async def test_buyer_cannot_list(self) -> None:
        repo = AsyncMock()
        with pytest.raises(ForbiddenError):
            await CatalogApplicationService(repo).create_account(_db(), BUYER, _account_req())
        repo.create_account.assert_not_awaited()

    async def test_admin_lists_platform_item(self) -> None:
        repo = AsyncMock()
        repo.create_product.return_value = Item(ItemKind.PRODUCT, "p-1", "Tool source", 0, is_free=True)
        await CatalogApplicationService(repo).create_product(
            _db(), ADMIN, CreateProductRequest(title="Tool source", price=0, is_free=True)
        )
        assert repo.create_product.await_args.args[1] is None

    async def test_admin_on_behalf_of_unknown_seller(self) -> None:
        repo = AsyncMock()
        repo.get_seller_by_id.return_value = None
        with pytest.raises(SellerNotFoundError):
            await CatalogApplicationService(repo).create_account(
                _db(), ADMIN, _account_req(seller_id="ghost")
            )


class TestReads:
    async def test_get_item_missing(self) -> None:
        repo = AsyncMock()
        repo.get_item.return_value = None
        with pytest.raises(ItemNotFoundError):
            await CatalogApplicationService(repo).get_item(_db(), ItemRef.product("p-x"))

    async def test_list_items_passes_filters(self) -> None:
        repo = AsyncMock()
        repo.list_items.return_value = [Item(ItemKind.ACCOUNT, "acc-1", "A", 1000)]
        db = _db()
        result = await CatalogApplicationService(repo).list_items(
            db, ItemKind.ACCOUNT, "seller-1", False, True, 25
        )
        repo.list_items.assert_awaited_once_with(db, ItemKind.ACCOUNT, "seller-1", False, True, 25)
        assert result.items[0].id == "acc-1"


class TestEditItem:
    async def test_admin_updates_account(self) -> None:
        repo = AsyncMock()
        repo.update_item.return_value = Item(kind=ItemKind.ACCOUNT, id="acc-1",
                                             title="Renamed", price=40000)
        db = _db()
        changes = UpdateAccountRequest(title="Renamed", price=40000).to_update()

        with patch("src.bz_catalog.application.service.settings.COIN_UNIT_PRICE", 1000):
            result = await CatalogApplicationService(repo).update_item(
                db, ADMIN, ItemRef.account("acc-1"), changes
            )

        assert result.title == "Renamed"
        assert result.price_coins == 40
        assert repo.update_item.await_args.args[1:] == (ItemRef.account("acc-1"), changes)
        assert changes.account_password is None
        db.commit.assert_awaited_once()

    async def test_seller_cannot_edit(self) -> None:
        repo = AsyncMock()
        with pytest.raises(ForbiddenError):
            await CatalogApplicationService(repo).update_item(
                _db(), SELLER, ItemRef.product("p-1"), ItemUpdate(title="x")
            )
        repo.update_item.assert_not_awaited()

    async def test_sold_account_is_frozen(self) -> None:
        repo = AsyncMock()
        repo.update_item.return_value = None
        repo.get_item.return_value = Item(kind=ItemKind.ACCOUNT, id="acc-1", title="A",
                                          price=1000, is_sold=True)
        db = _db()
        with pytest.raises(ItemAlreadySoldError):
            await CatalogApplicationService(repo).update_item(
                db, ADMIN, ItemRef.account("acc-1"), ItemUpdate(account_password="new")
            )
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_missing_item(self) -> None:
        repo = AsyncMock()
        repo.update_item.return_value = None
        repo.get_item.return_value = None
        with pytest.raises(ItemNotFoundError):
            await CatalogApplicationService(repo).update_item(
                _db(), ADMIN, ItemRef.product("p-1"), UpdateProductRequest(price=0).to_update()
            )

    async def test_move_to_unknown_seller(self) -> None:
        repo = AsyncMock()
        repo.get_seller_by_id.return_value = None
        with pytest.raises(SellerNotFoundError):
            await CatalogApplicationService(repo).update_item(
                _db(), ADMIN, ItemRef.product("p-1"), ItemUpdate(seller_id="seller-x")
            )
        repo.update_item.assert_not_awaited()


class TestDeleteItem:
    async def test_admin_deletes_unordered_item(self) -> None:
        repo = AsyncMock()
        repo.delete_item.return_value = True
        db = _db()

        await CatalogApplicationService(repo).delete_item(db, ADMIN, ItemRef.product("p-1"))

        repo.delete_item.assert_awaited_once_with(db, ItemRef.product("p-1"))
        db.commit.assert_awaited_once()

    async def test_ordered_item_is_kept(self) -> None:
        repo = AsyncMock()
        repo.delete_item.return_value = False
        repo.get_item.return_value = Item(kind=ItemKind.PRODUCT, id="p-1", title="Src", price=0)
        db = _db()
        with pytest.raises(ItemInUseError):
            await CatalogApplicationService(repo).delete_item(db, ADMIN, ItemRef.product("p-1"))
        db.rollback.assert_awaited_once()

    async def test_missing_item(self) -> None:
        repo = AsyncMock()
        repo.delete_item.return_value = False
        repo.get_item.return_value = None
        with pytest.raises(ItemNotFoundError):
            await CatalogApplicationService(repo).delete_item(_db(), ADMIN, ItemRef.account("a"))

    async def test_buyer_cannot_delete(self) -> None:
        repo = AsyncMock()
        with pytest.raises(ForbiddenError):
            await CatalogApplicationService(repo).delete_item(_db(), BUYER, ItemRef.account("a"))
        repo.delete_item.assert_not_awaited()
