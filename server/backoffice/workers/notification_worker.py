"""Background dispatcher that delivers notifications off the request path."""

import asyncio
import logging
from typing import Any, Mapping

from ..core.exceptions import NotificationError
from ..core.observability import metrics_collector
from ..services.notification_service import (
    NotificationEvent,
    NotificationTransport,
    build_message,
)
from .base import BaseWorker

logger = logging.getLogger(__name__)


class NotificationDispatcher(BaseWorker):
    """
    Fire-and-forget notification queue.

    notify() only enqueues and returns; the worker loop takes one event at a
    time and hands it to the transport under a time ceiling. Delivery
    failures are logged and counted. Nothing is retried and nothing reaches
    the code that emitted the event.
    """

    def __init__(
        self,
        transport: NotificationTransport,
        admin_email: str,
        timeout_seconds: float = 20.0,
        max_queue_size: int = 1000,
    ):
        super().__init__(name="Notification", interval_seconds=0)
        self.transport = transport
        self.admin_email = admin_email
        self.timeout_seconds = timeout_seconds
        self._queue: asyncio.Queue[tuple[NotificationEvent, dict[str, Any]]] = asyncio.Queue(
            maxsize=max_queue_size
        )

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def notify(self, event: NotificationEvent, payload: Mapping[str, Any]) -> None:
        """Queue a notification. Never raises."""
        event = NotificationEvent(event)
        try:
            self._queue.put_nowait((event, dict(payload)))
        except asyncio.QueueFull:
            metrics_collector.record_notification_failed(event.value)
            logger.error(
                "Notification dropped: queue full",
                extra={"event": event.value, "queue_size": self._queue.qsize()}
            )

    async def process(self) -> None:
        event, payload = await self._queue.get()
        try:
            await self.deliver(event, payload)
        finally:
            self._queue.task_done()

    async def deliver(self, event: NotificationEvent, payload: Mapping[str, Any]) -> bool:
        """Send one notification; returns False when it failed."""
        try:
            message = build_message(event, payload, self.admin_email)
            await asyncio.wait_for(self.transport.send(message), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            error = NotificationError(event.value, f"timed out after {self.timeout_seconds}s")
            self._record_failure(error)
            return False
        except Exception as e:
            error = e if isinstance(e, NotificationError) else NotificationError(event.value, str(e))
            self._record_failure(error)
            return False

        metrics_collector.record_notification_sent(event.value)
        logger.info("Notification sent", extra={"event": event.value, "to": message.to})
        return True

    def _record_failure(self, error: NotificationError) -> None:
        metrics_collector.record_notification_failed(error.event)
        logger.error(
            "Notification failed",
            extra={"event": error.event, "reason": error.reason}
        )

    async def drain(self) -> None:
        """Wait until every queued notification has been handled."""
        await self._queue.join()

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Give queued notifications a short chance to go out, then stop."""
        if self.running and not self._queue.empty():
            try:
                await asyncio.wait_for(self.drain(), timeout=drain_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Stopping with undelivered notifications",
                    extra={"pending": self._queue.qsize()}
                )
        await super().stop()
