from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping

from hrnotify.core.config import NotificationConfig
from hrnotify.domain.models import DeliveryOptions, QueueItem, VisaApplication
from hrnotify.providers.transport.base import Transport
from hrnotify.providers.transport.factory import get_transport
from hrnotify.services.notifications.queue import DeliveryQueue
from hrnotify.services.notifications.rate_limiter import Sleeper
from hrnotify.services.notifications.retry import RetryPolicy
from hrnotify.services.notifications.templates import NotificationKind, build_template, default_priority


logger = logging.getLogger(__name__)


class NotificationService:
    """Caller-facing API: render HR notifications and hand them to a delivery queue.

    Each service owns exactly one :class:`DeliveryQueue`; compose one per process
    (or per test) and pass it around rather than reaching for a global.
    """

    def __init__(
        self,
        config: NotificationConfig,
        *,
        transport: Transport | None = None,
        clock: Callable[[], datetime] | None = None,
        time_provider: Callable[[], float] | None = None,
        sleep: Sleeper | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._config = config
        self._clock = clock
        self._transport = transport or get_transport(config)
        self._queue = DeliveryQueue(
            transport=self._transport,
            policy=RetryPolicy(max_retries=config.max_retries, retry_delay_ms=config.retry_delay_ms),
            rate_limit_per_minute=config.rate_limit_per_minute,
            time_provider=time_provider,
            sleep=sleep,
            id_factory=id_factory,
        )

    @property
    def config(self) -> NotificationConfig:
        return self._config

    @property
    def queue(self) -> DeliveryQueue:
        return self._queue

    @property
    def transport(self) -> Transport:
        return self._transport

    def enqueue_visa_expiry_reminder(self, application: VisaApplication | Mapping[str, Any], recipient_address: str) -> str:
        if not isinstance(application, VisaApplication):
            application = VisaApplication.model_validate(dict(application))
        data = {
            "application_number": application.application_number,
            "visa_type": application.visa_type,
            "country": application.country,
            "end_date": application.end_date,
        }
        return self._enqueue_kind(NotificationKind.VISA_EXPIRY_REMINDER, data, recipient_address)

    def enqueue_document_upload_notice(
        self,
        document_name: str,
        document_type: str,
        uploaded_by: str,
        recipient_address: str,
    ) -> str:
        data = {
            "document_name": document_name,
            "document_type": document_type,
            "uploaded_by": uploaded_by,
        }
        return self._enqueue_kind(NotificationKind.DOCUMENT_UPLOADED, data, recipient_address)

    def enqueue_welcome_message(self, recipient_address: str, name: str) -> str:
        return self._enqueue_kind(NotificationKind.WELCOME, {"name": name}, recipient_address)

    def get_status(self, notification_id: str) -> QueueItem | None:
        return self._queue.get_status(notification_id)

    def get_queue_snapshot(self) -> list[QueueItem]:
        return self._queue.snapshot()

    async def join(self) -> None:
        await self._queue.join()

    def _enqueue_kind(self, kind: NotificationKind, data: Mapping[str, Any], recipient_address: str) -> str:
        now = self._clock() if self._clock is not None else None
        template = build_template(kind, data, now=now, org_name=self._config.org_name)
        options = DeliveryOptions(priority=default_priority(kind))
        notification_id = self._queue.enqueue(recipient_address, template, options)
        logger.debug("notification_rendered id=%s kind=%s", notification_id, kind.value)
        return notification_id
