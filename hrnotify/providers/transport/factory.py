from __future__ import annotations

from hrnotify.core.config import NotificationConfig
from hrnotify.core.errors import TransportConfigError
from hrnotify.providers.transport.base import Transport
from hrnotify.providers.transport.log_transport import LogTransport
from hrnotify.providers.transport.smtp import SmtpTransport
from hrnotify.providers.transport.webhook import WebhookTransport


def get_transport(config: NotificationConfig) -> Transport:
    transport = (config.transport or "log").strip().lower()

    if transport == "log":
        return LogTransport(config)
    if transport == "smtp":
        if not config.transport_host:
            raise TransportConfigError("NOTIFY_TRANSPORT_HOST is required for SMTP delivery")
        return SmtpTransport(config)
    if transport == "webhook":
        if not config.transport_host:
            raise TransportConfigError("NOTIFY_TRANSPORT_HOST is required for webhook delivery")
        return WebhookTransport(config)

    raise TransportConfigError(f"Unsupported notification transport: {transport}")
