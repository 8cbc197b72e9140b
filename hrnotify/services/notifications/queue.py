from __future__ import annotations

import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Callable
from uuid import uuid4

from hrnotify.core.errors import HRNotifyError
from hrnotify.domain.models import DeliveryOptions, DeliveryStatus, QueueItem, Template
from hrnotify.providers.transport.base import Transport
from hrnotify.services.notifications.rate_limiter import DispatchRateLimiter, Sleeper
from hrnotify.services.notifications.registry import StatusRegistry, snapshot_items
from hrnotify.services.notifications.retry import RetryDecision, RetryPolicy, on_failure
from hrnotify.services.telemetry import increment_counter


logger = logging.getLogger(__name__)

_MAX_ID_ATTEMPTS = 8


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _default_id() -> str:
    return uuid4().hex


class DeliveryQueue:
    """FIFO notification queue drained by a single background task.

    ``enqueue`` never waits for delivery. One drain task at most is alive per queue;
    it dispatches the head item through the rate limiter and the transport, removes
    it on success, and on failure either demotes it to the tail or marks it failed.
    Every accepted item stays queryable through :meth:`get_status` afterwards.
    """

    def __init__(
        self,
        *,
        transport: Transport,
        policy: RetryPolicy | None = None,
        rate_limit_per_minute: int = 100,
        time_provider: Callable[[], float] | None = None,
        sleep: Sleeper | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._transport = transport
        self._policy = policy or RetryPolicy()
        self._sleep = sleep or asyncio.sleep
        self._rate_limiter = DispatchRateLimiter(
            rate_limit_per_minute,
            time_provider=time_provider,
            sleep=self._sleep,
        )
        self._id_factory = id_factory or _default_id
        self._pending: deque[QueueItem] = deque()
        self._registry = StatusRegistry()
        self._processing = False
        self._drain_task: asyncio.Task[None] | None = None

    @property
    def is_processing(self) -> bool:
        return self._processing

    @property
    def depth(self) -> int:
        return len(self._pending)

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def enqueue(self, recipient: str, template: Template, options: DeliveryOptions | None = None) -> str:
        item = QueueItem(id=self._issue_id(), recipient=recipient, template=template, options=options)
        self._registry.register(item)
        self._pending.append(item)
        increment_counter("notifications_enqueued_total")
        logger.info("notification_enqueued id=%s queue_depth=%d", item.id, len(self._pending))
        self._ensure_draining()
        return item.id

    def get_status(self, item_id: str) -> QueueItem | None:
        return self._registry.get(item_id)

    def snapshot(self) -> list[QueueItem]:
        return snapshot_items(self._pending)

    def counts_by_status(self) -> dict[str, int]:
        return self._registry.counts_by_status()

    async def join(self) -> None:
        # Wait until every accepted item is terminal and the drain task has exited.
        while True:
            self._ensure_draining()
            task = self._drain_task
            if task is None or task.done():
                if not self._pending:
                    return
                await asyncio.sleep(0)
                continue
            await asyncio.wait({task})

    def _issue_id(self) -> str:
        # Ids are never reused, even for records that already left the active queue.
        for _ in range(_MAX_ID_ATTEMPTS):
            item_id = self._id_factory()
            if item_id not in self._registry:
                return item_id
        raise HRNotifyError("Unable to issue a unique notification id")

    def _ensure_draining(self) -> None:
        if self._processing or not self._pending:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Nothing can run without a loop; the next enqueue or join() inside one starts the drain.
            logger.debug("notification_drain_deferred queue_depth=%d", len(self._pending))
            return
        self._processing = True
        self._drain_task = loop.create_task(self._drain())
        self._drain_task.add_done_callback(self._on_drain_done)

    async def _drain(self) -> None:
        try:
            while self._pending:
                await self._dispatch_head()
        finally:
            self._processing = False

    async def _dispatch_head(self) -> None:
        item = self._pending[0]
        await self._rate_limiter.acquire()
        try:
            await self._transport.send(item.recipient, item.template, item.options)
        except asyncio.CancelledError as exc:
            # Only a cancel aimed at the drain task stops it; one raised by the transport is a failed attempt.
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            await self._handle_failure(item, exc)
            return
        except Exception as exc:  # noqa: BLE001 - transport failures are recorded on the item, never raised to callers.
            await self._handle_failure(item, exc)
            return
        now = _utc_now()
        item.status = DeliveryStatus.SENT
        item.sent_at = now
        item.updated_at = now
        self._pending.popleft()
        increment_counter("notifications_sent_total")
        logger.info("notification_sent id=%s retries=%d", item.id, item.retries)

    async def _handle_failure(self, item: QueueItem, exc: BaseException) -> None:
        decision = on_failure(item, exc, policy=self._policy)
        self._pending.popleft()
        if decision is RetryDecision.TERMINATE:
            increment_counter("notifications_failed_total")
            logger.warning(
                "notification_failed id=%s retries=%d error=%s",
                item.id,
                item.retries,
                item.error,
            )
            return
        # Demote to the tail so the rest of the queue is serviced before this retry.
        self._pending.append(item)
        increment_counter("notification_retries_total")
        logger.info(
            "notification_retry_scheduled id=%s retries=%d delay_s=%.3f error=%s",
            item.id,
            item.retries,
            self._policy.retry_delay_s,
            item.error,
        )
        await self._sleep(self._policy.retry_delay_s)

    def _on_drain_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            logger.warning("notification_drain_cancelled queue_depth=%d", len(self._pending))
            return
        exc = task.exception()
        if exc is not None:
            logger.error("notification_drain_crashed queue_depth=%d", len(self._pending), exc_info=exc)
        # Keep draining if work arrived or survived a crash.
        self._ensure_draining()
