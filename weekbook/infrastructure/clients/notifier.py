"""New-book notification dispatchers: structured log sink and webhook with retry"""

import asyncio
import logging
from typing import Any, Dict

import httpx

from weekbook.config import settings
from weekbook.domain.models import NotificationBatch
from weekbook.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter

logger = logging.getLogger(__name__)


def batch_payload(batch: NotificationBatch) -> Dict[str, Any]:
    return {
        "event": "BOOK_OPENED",
        "book_id": str(batch.book_id),
        "book_title": batch.book_title,
        "start_date": batch.start_date.isoformat(),
        "end_date": batch.end_date.isoformat(),
        "recipients": [str(intent.recipient_id) for intent in batch.intents],
    }


class LoggingNotificationDispatcher:
    """Default dispatcher: records the notice in the service log only"""

    async def dispatch(self, batch: NotificationBatch) -> None:
        logger.info(
            "New book notification sent to %d users",
            len(batch.intents),
            extra={
                "book_id": str(batch.book_id),
                "book_title": batch.book_title,
                "start_date": batch.start_date.isoformat(),
                "end_date": batch.end_date.isoformat(),
            },
        )


class WebhookNotificationDispatcher:
    """Posts notification batches to an external delivery service"""

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None):
        self.webhook_url = webhook_url or settings.notification_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base

    async def dispatch(self, batch: NotificationBatch) -> None:
        """
        Send one batch to the webhook with retry logic.

        Retry strategy:
        - Exponential backoff: base, 2*base, 4*base, ...
        - Retries on 5xx errors and network failures; a 4xx is raised at once
        - Re-raises after the last attempt; the caller decides what a failure means
        """
        payload = batch_payload(batch)
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    # Client errors are not retried
                    if isinstance(e, httpx.HTTPStatusError) and e.response.status_code < 500:
                        raise

                    if attempt >= self.max_retries:
                        raise

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)


def build_dispatcher():
    """Pick the webhook dispatcher when a URL is configured, else log only"""
    if settings.notification_webhook_url:
        return WebhookNotificationDispatcher()
    return LoggingNotificationDispatcher()
