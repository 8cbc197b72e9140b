from __future__ import annotations

import base64
import time
from typing import Any

import httpx

from hrnotify.core.config import NotificationConfig
from hrnotify.core.errors import TransportError
from hrnotify.domain.models import DeliveryOptions, Template
from hrnotify.services.telemetry import record_external_call


def build_payload(
    *,
    from_address: str,
    recipient: str,
    template: Template,
    options: DeliveryOptions | None,
) -> dict[str, Any]:
    # Attachments are base64 encoded so the payload stays valid JSON for binary content.
    options = options or DeliveryOptions()
    attachments = []
    for attachment in options.attachments:
        raw = attachment.content.encode("utf-8") if isinstance(attachment.content, str) else attachment.content
        attachments.append(
            {
                "filename": attachment.filename,
                "content_type": attachment.content_type,
                "content_b64": base64.b64encode(raw).decode("ascii"),
            }
        )
    return {
        "from": from_address,
        "to": recipient,
        "cc": list(options.cc),
        "bcc": list(options.bcc),
        "reply_to": options.reply_to,
        "priority": options.priority.value,
        "subject": template.subject,
        "text": template.body,
        "html": template.html,
        "attachments": attachments,
    }


class WebhookTransport:
    name = "webhook"

    def __init__(self, config: NotificationConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client
        # Callers that pass a client keep ownership of it.
        self._owns_client = client is None

    @property
    def url(self) -> str:
        scheme = "https" if self._config.use_tls else "http"
        path = self._config.webhook_path if self._config.webhook_path.startswith("/") else f"/{self._config.webhook_path}"
        return f"{scheme}://{self._config.transport_host}:{self._config.transport_port}{path}"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        # Reuse a single client per transport for connection pooling.
        credentials = self._config.credentials
        auth = (credentials.username, credentials.password) if credentials else None
        self._client = httpx.AsyncClient(timeout=self._config.timeout_ms / 1000.0, auth=auth)
        return self._client

    async def send(self, recipient: str, template: Template, options: DeliveryOptions | None) -> None:
        payload = build_payload(
            from_address=self._config.from_address,
            recipient=recipient,
            template=template,
            options=options,
        )
        start = time.monotonic()
        try:
            response = await self._get_client().post(self.url, json=payload)
        except httpx.HTTPError as exc:
            self._record(start, success=False)
            raise TransportError(f"Webhook delivery failed: {exc}") from exc
        if response.status_code >= 400:
            self._record(start, success=False)
            raise TransportError(
                f"Receiver rejected notification delivery ({response.status_code})",
                status_code=response.status_code,
            )
        self._record(start, success=True)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _record(self, start: float, *, success: bool) -> None:
        record_external_call(
            integration="transport.webhook",
            latency_ms=(time.monotonic() - start) * 1000.0,
            success=success,
        )
