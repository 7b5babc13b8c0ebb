"""Notifier implementations: webhook delivery over httpx, or log-only."""

import asyncio
import logging

import httpx

from src.bz_notify.domain.models import Notification

logger = logging.getLogger(__name__)

BACKOFF_SECONDS = 0.2


def delivery_budget(timeout: float, max_retries: int) -> float:
    """Worst-case seconds for one delivery: every attempt times out, plus the backoff sleeps."""
    backoff = sum(BACKOFF_SECONDS * attempt for attempt in range(1, max_retries + 1))
    return timeout * (max_retries + 1) + backoff


class HttpNotifier:
    """POST the notification as JSON to a webhook.

    Retries transport errors and 5xx responses up to `max_retries` extra
    times; 4xx responses are not retried. The final failure is raised so the
    dispatcher can log it.
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout: float = 5.0,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport

    async def notify(self, notification: Notification) -> None:
        payload = notification.to_payload()
        attempts = self._max_retries + 1
        async with httpx.AsyncClient(
            timeout=self._timeout, headers=self._headers, transport=self._transport
        ) as client:
            for attempt in range(1, attempts + 1):
                try:
                    response = await client.post(self._url, json=payload)
                    response.raise_for_status()
                    return
                except httpx.HTTPStatusError as exc:
                    if exc.response.status_code < 500 or attempt == attempts:
                        raise
                    logger.warning(
                        "Notification %s for order %s got HTTP %d (attempt %d/%d)",
                        notification.kind.value, notification.order_id,
                        exc.response.status_code, attempt, attempts,
                    )
                except httpx.TransportError as exc:
                    if attempt == attempts:
                        raise
                    logger.warning(
                        "Notification %s for order %s failed: %s (attempt %d/%d)",
                        notification.kind.value, notification.order_id, exc, attempt, attempts,
                    )
                await asyncio.sleep(BACKOFF_SECONDS * attempt)


class LogNotifier:
    """Used when no NOTIFICATION_URL is configured."""

    async def notify(self, notification: Notification) -> None:
        logger.info(
            "Notify %s: %s order=%s item=%r amount=%d",
            notification.recipient,
            notification.kind.value,
            notification.order_id,
            notification.item_title,
            notification.amount,
        )
