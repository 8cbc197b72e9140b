from __future__ import annotations

import logging
import mimetypes
import time
from email.message import EmailMessage

import aiosmtplib

from hrnotify.core.config import NotificationConfig
from hrnotify.core.errors import TransportError
from hrnotify.domain.models import DeliveryOptions, Priority, Template
from hrnotify.services.telemetry import record_external_call


logger = logging.getLogger(__name__)

# X-Priority values understood by common mail clients.
_X_PRIORITY = {
    Priority.HIGH: "1 (Highest)",
    Priority.NORMAL: "3 (Normal)",
    Priority.LOW: "5 (Lowest)",
}


def build_email_message(
    *,
    from_address: str,
    recipient: str,
    template: Template,
    options: DeliveryOptions | None,
) -> EmailMessage:
    """Translate a rendered template into a multipart :class:`EmailMessage`.

    Bcc recipients are deliberately absent from the headers; they are only added to
    the SMTP envelope by :func:`envelope_recipients`.
    """
    msg = EmailMessage()
    msg["From"] = from_address
    msg["To"] = recipient
    msg["Subject"] = template.subject
    options = options or DeliveryOptions()
    if options.cc:
        msg["Cc"] = ", ".join(options.cc)
    if options.reply_to:
        msg["Reply-To"] = options.reply_to
    msg["X-Priority"] = _X_PRIORITY[options.priority]
    msg.set_content(template.body)
    if template.html:
        msg.add_alternative(template.html, subtype="html")
    for attachment in options.attachments:
        content_type = attachment.content_type or mimetypes.guess_type(attachment.filename)[0]
        maintype, _, subtype = (content_type or "application/octet-stream").partition("/")
        payload = attachment.content.encode("utf-8") if isinstance(attachment.content, str) else attachment.content
        msg.add_attachment(
            payload,
            maintype=maintype,
            subtype=subtype or "octet-stream",
            filename=attachment.filename,
        )
    return msg


def envelope_recipients(recipient: str, options: DeliveryOptions | None) -> list[str]:
    if options is None:
        return [recipient]
    return [recipient, *options.cc, *options.bcc]


class SmtpTransport:
    name = "smtp"

    def __init__(self, config: NotificationConfig) -> None:
        self._config = config

    async def send(self, recipient: str, template: Template, options: DeliveryOptions | None) -> None:
        message = build_email_message(
            from_address=self._config.from_address,
            recipient=recipient,
            template=template,
            options=options,
        )
        credentials = self._config.credentials
        start = time.monotonic()
        try:
            await aiosmtplib.send(
                message,
                sender=self._config.from_address,
                recipients=envelope_recipients(recipient, options),
                hostname=self._config.transport_host,
                port=self._config.transport_port,
                username=credentials.username if credentials else None,
                password=credentials.password if credentials else None,
                use_tls=self._config.use_tls,
                start_tls=True if self._config.start_tls else None,
                timeout=self._config.timeout_ms / 1000.0,
            )
        except aiosmtplib.SMTPResponseException as exc:
            self._record(start, success=False)
            raise TransportError(f"SMTP {exc.code}: {exc.message}", status_code=exc.code) from exc
        except (aiosmtplib.SMTPException, OSError, TimeoutError) as exc:
            self._record(start, success=False)
            raise TransportError(f"SMTP delivery failed: {exc}") from exc
        self._record(start, success=True)
        logger.debug("smtp_delivery_accepted to=%s host=%s", recipient, self._config.transport_host)

    def _record(self, start: float, *, success: bool) -> None:
        record_external_call(
            integration="transport.smtp",
            latency_ms=(time.monotonic() - start) * 1000.0,
            success=success,
        )
