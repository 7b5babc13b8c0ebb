"""Post-commit notification dispatch.

Workflows call `schedule_notification` after their transaction commits. The
request never waits for delivery: inside a request the send is queued on
FastAPI's BackgroundTasks and runs after the response; elsewhere it runs as a
tracked asyncio task. Delivery is bounded by `delivery_budget` and never raises.
"""

import asyncio
import logging

from fastapi import BackgroundTasks

from config.settings import settings
from src.bz_notify.domain.models import Notification, NotificationKind
from src.bz_notify.domain.notifier import NotifierProtocol
from src.bz_notify.infrastructure.http_notifier import HttpNotifier, LogNotifier, delivery_budget

logger = logging.getLogger(__name__)

_notifier: NotifierProtocol | None = None
_pending: set[asyncio.Task[bool]] = set()


def get_notifier() -> NotifierProtocol:
    """Process-wide notifier chosen from settings on first use."""
    global _notifier  # noqa: PLW0603
    if _notifier is None:
        if settings.NOTIFICATION_URL:
            _notifier = HttpNotifier(
                settings.NOTIFICATION_URL,
                token=settings.NOTIFICATION_TOKEN,
                timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
                max_retries=settings.NOTIFICATION_MAX_RETRIES,
            )
        else:
            _notifier = LogNotifier()
    return _notifier


async def notify_safely(
    notifier: NotifierProtocol,
    kind: NotificationKind,
    recipient: str,
    item_title: str,
    amount: int,
    order_id: str,
    timeout: float | None = None,
) -> bool:
    """Deliver one notification; return False (and log) on any failure."""
    notification = Notification(kind, recipient, item_title, amount, order_id)
    if timeout is None:
        timeout = delivery_budget(
            settings.NOTIFICATION_TIMEOUT_SECONDS, settings.NOTIFICATION_MAX_RETRIES
        )
    try:
        await asyncio.wait_for(notifier.notify(notification), timeout=timeout)
    except Exception:
        logger.exception(
            "Notification %s to %s for order %s failed", kind.value, recipient, order_id
        )
        return False
    return True


def schedule_notification(
    notifier: NotifierProtocol,
    kind: NotificationKind,
    recipient: str,
    item_title: str,
    amount: int,
    order_id: str,
    background_tasks: BackgroundTasks | None = None,
) -> None:
    """Queue one delivery without waiting for it."""
    args = (notifier, kind, recipient, item_title, amount, order_id)
    if background_tasks is not None:
        background_tasks.add_task(notify_safely, *args)
        return
    task = asyncio.create_task(notify_safely(*args))
    _pending.add(task)
    task.add_done_callback(_pending.discard)


async def drain_notifications(timeout: float | None = None) -> None:
    """Wait for deliveries started outside a request (used at shutdown)."""
    if _pending:
        await asyncio.wait(list(_pending), timeout=timeout)
