"""Unit tests for notification delivery."""

import asyncio
import json
import logging
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi import BackgroundTasks

from src.bz_notify.application import dispatch
from src.bz_notify.application.dispatch import (
    drain_notifications,
    get_notifier,
    notify_safely,
    schedule_notification,
)
from src.bz_notify.domain.models import Notification, NotificationKind
from src.bz_notify.infrastructure.http_notifier import HttpNotifier, LogNotifier, delivery_budget

NOTE = Notification(NotificationKind.ORDER_APPROVED, "buyer-1", "Acc VIP", 30, "o-1")


def _transport(statuses: list[int], seen: list[httpx.Request]) -> httpx.MockTransport:
    replies = iter(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(next(replies))

    return httpx.MockTransport(handler)


class TestHttpNotifier:
    @pytest.fixture(autouse=True)
    def _no_backoff(self):
        with patch("src.bz_notify.infrastructure.http_notifier.asyncio.sleep", new=AsyncMock()):
            yield

    async def test_posts_payload_with_token(self) -> None:
        seen: list[httpx.Request] = []
        notifier = HttpNotifier("http://hooks.test/n", token="t0k", transport=_transport([204], seen))

        await notifier.notify(NOTE)

        assert len(seen) == 1
        assert seen[0].headers["Authorization"] == "Bearer t0k"
        assert json.loads(seen[0].content) == {
            "kind": "order_approved", "recipient": "buyer-1",
            "item_title": "Acc VIP", "amount": 30, "order_id": "o-1",
        }

    async def test_retries_server_errors(self) -> None:
        seen: list[httpx.Request] = []
        notifier = HttpNotifier("http://hooks.test/n", max_retries=2,
                                transport=_transport([503, 502, 200], seen))
        await notifier.notify(NOTE)
        assert len(seen) == 3

    async def test_gives_up_after_max_retries(self) -> None:
        seen: list[httpx.Request] = []
        notifier = HttpNotifier("http://hooks.test/n", max_retries=1,
                                transport=_transport([500, 500, 500], seen))
        with pytest.raises(httpx.HTTPStatusError):
            await notifier.notify(NOTE)
        assert len(seen) == 2

    async def test_client_error_not_retried(self) -> None:
        seen: list[httpx.Request] = []
        notifier = HttpNotifier("http://hooks.test/n", max_retries=3,
                                transport=_transport([404], seen))
        with pytest.raises(httpx.HTTPStatusError):
            await notifier.notify(NOTE)
        assert len(seen) == 1

    async def test_transport_error_retried(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200)

        notifier = HttpNotifier("http://hooks.test/n", transport=httpx.MockTransport(handler))
        await notifier.notify(NOTE)
        assert calls == 2


class TestNotifySafely:
    async def test_success(self) -> None:
        notifier = AsyncMock()
        ok = await notify_safely(notifier, NotificationKind.ORDER_REJECTED, "buyer-1", "Acc", 0, "o-2")
        assert ok is True
        sent = notifier.notify.await_args.args[0]
        assert sent == Notification(NotificationKind.ORDER_REJECTED, "buyer-1", "Acc", 0, "o-2")

    async def test_failure_is_logged_not_raised(self, caplog: pytest.LogCaptureFixture) -> None:
        notifier = AsyncMock()
        notifier.notify.side_effect = ConnectionError("down")
        with caplog.at_level(logging.ERROR):
            ok = await notify_safely(notifier, NotificationKind.ORDER_APPROVED, "b", "Acc", 30, "o-1")
        assert ok is False
        assert "o-1" in caplog.text

    async def test_timeout(self) -> None:
        class Slow:
            async def notify(self, notification: Notification) -> None:
                await asyncio.sleep(10)

        ok = await notify_safely(Slow(), NotificationKind.ORDER_APPROVED, "b", "Acc", 30, "o-1",
                                 timeout=0.01)
        assert ok is False

    async def test_default_budget_covers_retries_and_backoff(self) -> None:
        notifier = AsyncMock()
        with patch.object(dispatch.settings, "NOTIFICATION_TIMEOUT_SECONDS", 5.0), \
                patch.object(dispatch.settings, "NOTIFICATION_MAX_RETRIES", 2), \
                patch.object(dispatch.asyncio, "wait_for", wraps=asyncio.wait_for) as wait_for:
            await notify_safely(notifier, NotificationKind.ORDER_APPROVED, "b", "Acc", 30, "o-1")
        assert wait_for.call_args.kwargs["timeout"] == pytest.approx(15.6)


class TestDeliveryBudget:
    def test_no_retries(self) -> None:
        assert delivery_budget(5.0, 0) == 5.0

    def test_adds_backoff_sleeps(self) -> None:
        # three attempts plus sleeps of 0.2s and 0.4s
        assert delivery_budget(5.0, 2) == pytest.approx(15.6)


class TestScheduleNotification:
    async def test_queues_on_background_tasks(self) -> None:
        notifier = AsyncMock()
        tasks = BackgroundTasks()

        schedule_notification(notifier, NotificationKind.PURCHASE_COMPLETED, "b", "Acc", 30, "o-3",
                              tasks)

        notifier.notify.assert_not_awaited()
        await tasks()
        assert notifier.notify.await_args.args[0].order_id == "o-3"

    async def test_runs_detached_without_background_tasks(self) -> None:
        notifier = AsyncMock()

        schedule_notification(notifier, NotificationKind.ORDER_REJECTED, "b", "Acc", 0, "o-4")
        await drain_notifications()

        notifier.notify.assert_awaited_once()

    async def test_detached_failure_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        notifier = AsyncMock()
        notifier.notify.side_effect = ConnectionError("down")

        with caplog.at_level(logging.ERROR):
            schedule_notification(notifier, NotificationKind.ORDER_APPROVED, "b", "Acc", 30, "o-5")
            await drain_notifications()

        assert "o-5" in caplog.text


class TestGetNotifier:
    def test_log_notifier_without_url(self) -> None:
        with patch.object(dispatch, "_notifier", None), \
                patch.object(dispatch.settings, "NOTIFICATION_URL", None):
            assert isinstance(get_notifier(), LogNotifier)

    def test_http_notifier_with_url(self) -> None:
        with patch.object(dispatch, "_notifier", None), \
                patch.object(dispatch.settings, "NOTIFICATION_URL", "http://hooks.test/n"):
            assert isinstance(get_notifier(), HttpNotifier)

    async def test_log_notifier_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            await LogNotifier().notify(NOTE)
        assert "order_approved" in caplog.text
