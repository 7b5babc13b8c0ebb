"""Notifier Protocol — delivery is best effort; callers never depend on it."""

from typing import Protocol

from src.bz_notify.domain.models import Notification


class NotifierProtocol(Protocol):
    async def notify(self, notification: Notification) -> None: ...
