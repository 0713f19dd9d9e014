"""NotificationSink implementations.

RedisNotificationSink: in-process asyncio.Queue drained by one worker task
that PUBLISHes JSON to a Redis channel. Delivery failures are logged and
dropped, never surfaced to the operation that emitted the event. stop() waits
at most drain_timeout for the queue, so a stalled Redis cannot hold shutdown.

LoggingNotificationSink: logs each event; used when Redis is disabled.
"""

import asyncio
import logging

import redis.asyncio as aioredis

from src.pw_notify.domain.events import NotificationEvent

logger = logging.getLogger(__name__)


class LoggingNotificationSink:
    def publish(self, event: NotificationEvent) -> None:
        logger.info("event %s %s", event.event_type, event.model_dump_json())


class RedisNotificationSink:
    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        max_queue: int = 10_000,
        drain_timeout: float = 5.0,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._drain_timeout = drain_timeout
        self._queue: asyncio.Queue[NotificationEvent] = asyncio.Queue(maxsize=max_queue)
        self._worker: asyncio.Task[None] | None = None

    def publish(self, event: NotificationEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("notification queue full, dropping %s", event.event_type)

    def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._drain(), name="notification-sink")

    async def stop(self) -> None:
        """Deliver what is queued within drain_timeout, drop the rest, stop the worker."""
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=self._drain_timeout)
        except TimeoutError:
            logger.warning(
                "notification drain timed out after %ss, dropping %d queued events",
                self._drain_timeout, self._queue.qsize(),
            )
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def _drain(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._redis.publish(self._channel, event.model_dump_json())
            except Exception:
                logger.exception(
                    "notification delivery failed event=%s market_id=%s",
                    event.event_type, event.market_id,
                )
            finally:
                self._queue.task_done()
