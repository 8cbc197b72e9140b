from __future__ import annotations

import logging

from hrnotify.core.config import NotificationConfig
from hrnotify.domain.models import DeliveryOptions, Template


logger = logging.getLogger(__name__)


class LogTransport:
    name = "log"

    def __init__(self, config: NotificationConfig) -> None:
        self._config = config

    async def send(self, recipient: str, template: Template, options: DeliveryOptions | None) -> None:
        # Local/dev delivery: record what would have been sent and report success.
        logger.info(
            "notification_logged to=%s from=%s subject=%r priority=%s attachments=%d transport=%s:%s credentials=%r",
            recipient,
            self._config.from_address,
            template.subject,
            options.priority.value if options is not None else "normal",
            len(options.attachments) if options is not None else 0,
            self._config.transport_host,
            self._config.transport_port,
            self._config.credentials,
        )
