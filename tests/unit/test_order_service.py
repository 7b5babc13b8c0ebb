"""Unit tests for OrderApplicationService using mock repositories."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.bz_catalog.domain.models import AccountCredentials, Item
from src.bz_common.enums import ItemKind, OrderStatus
from src.bz_common.errors import (
    CredentialsUnavailableError,
    ForbiddenError,
    ItemNotPurchasableError,
)
from src.bz_gateway.auth.permissions import Principal
from src.bz_order.application.schemas import CheckoutRequest
from src.bz_order.application.service import OrderApplicationService
from src.bz_order.domain.models import Order

ACC_ID = "7d0b1f7e-8a61-4c5e-9d39-1f0e2a6f4b11"
BUYER = Principal(user_id="buyer-1", email="b@bonz.vn")
STRANGER = Principal(user_id="buyer-2", email="x@bonz.vn")
SELLER = Principal(user_id="user-s", email="s@bonz.vn", seller_id="seller-1")
ADMIN = Principal(user_id="admin-1", email="admin@bonz.vn", is_admin=True)


def _order(status: OrderStatus = OrderStatus.PENDING) -> Order:
    return Order(id="o-1", buyer_id="buyer-1", account_id=ACC_ID, product_id=None,
                 amount=31, status=status)


def _item(is_free: bool = False) -> Item:
    return Item(ItemKind.ACCOUNT, ACC_ID, "Acc", 0 if is_free else 30500,
                is_free=is_free, seller_id="seller-1")


def _service() -> tuple[OrderApplicationService, AsyncMock, AsyncMock]:
    repo, catalog = AsyncMock(), AsyncMock()
    return OrderApplicationService(repo=repo, catalog=catalog), repo, catalog


def _db() -> MagicMock:
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


class TestCheckout:
    async def test_pending_order_priced_server_side(self) -> None:
        svc, repo, catalog = _service()
        catalog.get_item.return_value = _item()
        repo.create.return_value = _order()
        db = _db()

        with patch("src.bz_order.application.service.settings.COIN_UNIT_PRICE", 1000):
            result = await svc.checkout(
                db, BUYER, CheckoutRequest(account_id=ACC_ID, payment_note="VCB 0123")
            )

        args = repo.create.await_args.args
        assert args[3] == 31
        assert args[4] is OrderStatus.PENDING
        assert args[5] is None
        assert result.status == "pending"
        db.commit.assert_awaited_once()

    async def test_free_item_refused(self) -> None:
        svc, repo, catalog = _service()
        catalog.get_item.return_value = _item(is_free=True)
        db = _db()
        with pytest.raises(ItemNotPurchasableError):
            await svc.checkout(db, BUYER, CheckoutRequest(account_id=ACC_ID))
        repo.create.assert_not_awaited()
        db.rollback.assert_awaited_once()


class TestGetOrder:
    async def test_buyer_and_seller_can_view(self) -> None:
        svc, repo, catalog = _service()
        repo.get_by_id.return_value = _order()
        catalog.get_item.return_value = _item()
        assert (await svc.get_order(_db(), BUYER, "o-1")).id == "o-1"
        assert (await svc.get_order(_db(), SELLER, "o-1")).id == "o-1"

    async def test_stranger_forbidden(self) -> None:
        svc, repo, catalog = _service()
        repo.get_by_id.return_value = _order()
        catalog.get_item.return_value = _item()
        with pytest.raises(ForbiddenError):
            await svc.get_order(_db(), STRANGER, "o-1")


class TestCredentials:
    async def test_released_after_approval(self) -> None:
        svc, repo, catalog = _service()
        repo.get_by_id.return_value = _order(OrderStatus.APPROVED)
        repo.has_approved_order.return_value = True
        catalog.get_account_credentials.return_value = AccountCredentials("lq_user", "s3cret")

        result = await svc.get_credentials(_db(), BUYER, "o-1")

        assert result.account_username == "lq_user"
        assert result.account_password == "s3cret"

    async def test_hidden_while_pending(self) -> None:
        svc, repo, catalog = _service()
        repo.get_by_id.return_value = _order()
        repo.has_approved_order.return_value = False
        with pytest.raises(CredentialsUnavailableError):
            await svc.get_credentials(_db(), BUYER, "o-1")
        catalog.get_account_credentials.assert_not_awaited()

    async def test_only_the_buyer(self) -> None:
        svc, repo, _ = _service()
        repo.get_by_id.return_value = _order(OrderStatus.APPROVED)
        with pytest.raises(ForbiddenError):
            await svc.get_credentials(_db(), SELLER, "o-1")

    async def test_admin_reads_any_account_order(self) -> None:
        svc, repo, catalog = _service()
        repo.get_by_id.return_value = _order()
        catalog.get_account_credentials.return_value = AccountCredentials("lq_user", "s3cret")

        result = await svc.get_credentials(_db(), ADMIN, "o-1")

        assert result.account_id == ACC_ID
        assert result.account_password == "s3cret"
        repo.has_approved_order.assert_not_awaited()

    async def test_product_orders_have_no_credentials(self) -> None:
        svc, repo, catalog = _service()
        repo.get_by_id.return_value = Order(id="o-2", buyer_id="buyer-1", account_id=None,
                                            product_id="p-1", amount=5,
                                            status=OrderStatus.APPROVED)
        with pytest.raises(ForbiddenError):
            await svc.get_credentials(_db(), ADMIN, "o-2")
        catalog.get_account_credentials.assert_not_awaited()


class TestListMyOrders:
    async def test_filters_by_buyer(self) -> None:
        svc, repo, _ = _service()
        repo.list_by_buyer.return_value = [_order()]
        db = _db()
        result = await svc.list_my_orders(db, BUYER, OrderStatus.PENDING, 10)
        repo.list_by_buyer.assert_awaited_once_with(db, "buyer-1", OrderStatus.PENDING, 10)
        assert len(result.orders) == 1
