"""Unit tests for ApprovalWorkflow using mock collaborators."""

import asyncio
import logging
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import BackgroundTasks

from src.bz_approval.application.workflow import ApprovalWorkflow
from src.bz_catalog.domain.models import Item
from src.bz_common.enums import ItemKind, LedgerEntryType, OrderStatus, ReferenceType
from src.bz_common.errors import (
    AlreadyProcessedError,
    ForbiddenError,
    ItemAlreadySoldError,
    ItemNotFoundError,
)
from src.bz_gateway.auth.permissions import Principal
from src.bz_notify.application import dispatch
from src.bz_notify.domain.models import NotificationKind
from src.bz_order.domain.models import Order
from src.bz_wallet.domain.models import BalanceOwner

ADMIN = Principal(user_id="admin-1", email="admin@bonz.vn", is_admin=True)
SELLER = Principal(user_id="user-s", email="s@bonz.vn", seller_id="seller-1")
OTHER_SELLER = Principal(user_id="user-o", email="o@bonz.vn", seller_id="seller-2")
BUYER = Principal(user_id="buyer-1", email="b@bonz.vn")


def _order(status: OrderStatus = OrderStatus.PENDING, amount: int = 30) -> Order:
    return Order(id="o-1", buyer_id="buyer-1", account_id="acc-1", product_id=None,
                 amount=amount, status=status)


def _item(kind: ItemKind = ItemKind.ACCOUNT, seller_id: str | None = "seller-1") -> Item:
    return Item(kind=kind, id="acc-1", title="Lien Quan VIP", price=30000, seller_id=seller_id)


def _workflow(
    order: Order | None = None, item: Item | None = None
) -> tuple[ApprovalWorkflow, AsyncMock, AsyncMock, AsyncMock, AsyncMock]:
    order = order or _order()
    ledger = AsyncMock()
    ledger.get_order.return_value = order
    ledger.transition_status.return_value = _order(OrderStatus.APPROVED, order.amount)
    catalog = AsyncMock()
    catalog.get_item.return_value = item or _item()
    catalog.mark_account_sold.return_value = True
    balances = AsyncMock()
    notifier = AsyncMock()
    wf = ApprovalWorkflow(ledger=ledger, catalog=catalog, balances=balances, notifier=notifier)
    return wf, ledger, catalog, balances, notifier


def _db() -> MagicMock:
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


async def _hang(notification: object) -> None:
    await asyncio.sleep(60)


class TestApprove:
    async def test_seller_approves_own_item(self) -> None:
        wf, ledger, catalog, balances, notifier = _workflow()
        db = _db()
        tasks = BackgroundTasks()

        result = await wf.approve(db, SELLER, "o-1", tasks)

        ledger.transition_status.assert_awaited_once_with(db, "o-1", OrderStatus.APPROVED, "user-s")
        catalog.mark_account_sold.assert_awaited_once_with(db, "acc-1", "buyer-1")
        balances.credit.assert_awaited_once_with(
            db, BalanceOwner.seller("seller-1"), 30,
            LedgerEntryType.SALE_CREDIT, ReferenceType.ORDER, "o-1", "Sale of Lien Quan VIP",
        )
        db.commit.assert_awaited_once()
        assert result.seller_credited == 30
        assert result.order.status == "approved"
        notifier.notify.assert_not_awaited()

        await tasks()

        sent = notifier.notify.await_args.args[0]
        assert sent.kind is NotificationKind.ORDER_APPROVED
        assert sent.recipient == "buyer-1"

    async def test_other_seller_forbidden(self) -> None:
        wf, ledger, _, _, notifier = _workflow()
        db = _db()
        with pytest.raises(ForbiddenError):
            await wf.approve(db, OTHER_SELLER, "o-1")
        ledger.transition_status.assert_not_awaited()
        db.rollback.assert_awaited_once()
        notifier.notify.assert_not_awaited()

    async def test_buyer_forbidden(self) -> None:
        wf, *_ = _workflow()
        with pytest.raises(ForbiddenError):
            await wf.approve(_db(), BUYER, "o-1")

    async def test_already_approved(self) -> None:
        wf, ledger, *_ = _workflow(order=_order(OrderStatus.APPROVED))
        with pytest.raises(AlreadyProcessedError):
            await wf.approve(_db(), ADMIN, "o-1")
        ledger.transition_status.assert_not_awaited()

    async def test_missing_item(self) -> None:
        wf, _, catalog, _, _ = _workflow()
        catalog.get_item.return_value = None
        with pytest.raises(ItemNotFoundError):
            await wf.approve(_db(), ADMIN, "o-1")

    async def test_sold_account_rolls_back(self) -> None:
        wf, _, catalog, balances, notifier = _workflow()
        catalog.mark_account_sold.return_value = False
        db = _db()
        with pytest.raises(ItemAlreadySoldError):
            await wf.approve(db, ADMIN, "o-1")
        balances.credit.assert_not_awaited()
        db.commit.assert_not_awaited()
        db.rollback.assert_awaited_once()
        notifier.notify.assert_not_awaited()

    async def test_product_is_not_marked_sold(self) -> None:
        wf, _, catalog, _, _ = _workflow(item=_item(kind=ItemKind.PRODUCT))
        await wf.approve(_db(), ADMIN, "o-1")
        catalog.mark_account_sold.assert_not_awaited()

    async def test_platform_item_credits_nobody(self) -> None:
        wf, _, _, balances, _ = _workflow(item=_item(seller_id=None))
        result = await wf.approve(_db(), ADMIN, "o-1")
        balances.credit.assert_not_awaited()
        assert result.seller_credited == 0

    async def test_credit_failure_logs_reconciliation(self, caplog: pytest.LogCaptureFixture) -> None:
        wf, _, _, balances, notifier = _workflow()
        balances.credit.side_effect = ConnectionError("db gone")
        db = _db()

        with caplog.at_level(logging.ERROR), pytest.raises(ConnectionError):
            await wf.approve(db, ADMIN, "o-1")

        assert any("RECONCILIATION" in r.getMessage() for r in caplog.records)
        db.rollback.assert_awaited_once()
        notifier.notify.assert_not_awaited()

    async def test_notifier_failure_does_not_fail_approval(self) -> None:
        wf, _, _, _, notifier = _workflow()
        notifier.notify.side_effect = RuntimeError("webhook down")
        db = _db()
        tasks = BackgroundTasks()
        result = await wf.approve(db, ADMIN, "o-1", tasks)
        await tasks()
        db.commit.assert_awaited_once()
        assert result.order.status == "approved"
        notifier.notify.assert_awaited_once()

    async def test_hanging_notifier_does_not_delay_response(self) -> None:
        wf, _, _, _, notifier = _workflow()
        notifier.notify.side_effect = _hang
        tasks = BackgroundTasks()

        started = time.monotonic()
        result = await wf.approve(_db(), ADMIN, "o-1", tasks)

        assert time.monotonic() - started < 1.0
        assert result.order.status == "approved"
        assert len(tasks.tasks) == 1
        notifier.notify.assert_not_called()

    async def test_without_background_tasks_delivery_runs_detached(self) -> None:
        wf, _, _, _, notifier = _workflow()
        notifier.notify.side_effect = _hang

        started = time.monotonic()
        await wf.approve(_db(), ADMIN, "o-1")
        assert time.monotonic() - started < 1.0

        pending = list(dispatch._pending)
        assert len(pending) == 1
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)


class TestReject:
    async def test_reject_touches_no_balance(self) -> None:
        wf, ledger, catalog, balances, notifier = _workflow()
        ledger.transition_status.return_value = _order(OrderStatus.REJECTED)
        db = _db()
        tasks = BackgroundTasks()

        result = await wf.reject(db, ADMIN, "o-1", tasks)
        await tasks()

        assert result.order.status == "rejected"
        catalog.mark_account_sold.assert_not_awaited()
        balances.credit.assert_not_awaited()
        assert notifier.notify.await_args.args[0].kind is NotificationKind.ORDER_REJECTED

    async def test_reject_terminal_order(self) -> None:
        wf, *_ = _workflow(order=_order(OrderStatus.REJECTED))
        with pytest.raises(AlreadyProcessedError):
            await wf.reject(_db(), ADMIN, "o-1")


class TestListPending:
    async def test_admin_sees_everything(self) -> None:
        wf, ledger, *_ = _workflow()
        ledger.list_pending.return_value = [_order()]
        result = await wf.list_pending(_db(), ADMIN, 50)
        assert ledger.list_pending.await_args.args[1] is None
        assert len(result.orders) == 1

    async def test_seller_scoped(self) -> None:
        wf, ledger, *_ = _workflow()
        ledger.list_pending.return_value = []
        await wf.list_pending(_db(), SELLER, 20)
        assert ledger.list_pending.await_args.args[1:] == ("seller-1", 20)

    async def test_buyer_forbidden(self) -> None:
        wf, *_ = _workflow()
        with pytest.raises(ForbiddenError):
            await wf.list_pending(_db(), BUYER, 20)
