from __future__ import annotations

import base64
import json

import aiosmtplib
import httpx
import pytest

from hrnotify.core.config import NotificationConfig, TransportCredentials
from hrnotify.core.errors import TransportConfigError, TransportError
from hrnotify.domain.models import Attachment, DeliveryOptions, Priority, Template
from hrnotify.providers.transport.factory import get_transport
from hrnotify.providers.transport.log_transport import LogTransport
from hrnotify.providers.transport.smtp import SmtpTransport, build_email_message, envelope_recipients
from hrnotify.providers.transport.webhook import WebhookTransport, build_payload
from hrnotify.services.telemetry import external_success_rate


TEMPLATE = Template(subject="Welcome to Acme", body="Dear Amina,", html="<p>Dear Amina,</p>")
OPTIONS = DeliveryOptions(
    attachments=(Attachment(filename="contract.pdf", content=b"%PDF-1.7"),),
    cc=("manager@example.com",),
    bcc=("audit@example.com",),
    reply_to="hr@example.com",
    priority=Priority.HIGH,
)


def _config(**overrides) -> NotificationConfig:
    values = {
        "transport_host": "mail.example.com",
        "transport_port": 2525,
        "credentials": TransportCredentials(username="mailer", password="s3cret"),
        "from_address": "hr@example.com",
    }
    values.update(overrides)
    return NotificationConfig(**values)


def test_email_message_headers_and_parts() -> None:
    msg = build_email_message(
        from_address="hr@example.com",
        recipient="amina@example.com",
        template=TEMPLATE,
        options=OPTIONS,
    )

    assert msg["From"] == "hr@example.com"
    assert msg["To"] == "amina@example.com"
    assert msg["Subject"] == "Welcome to Acme"
    assert msg["Cc"] == "manager@example.com"
    assert msg["Reply-To"] == "hr@example.com"
    assert msg["X-Priority"] == "1 (Highest)"
    assert msg["Bcc"] is None

    attachments = list(msg.iter_attachments())
    assert len(attachments) == 1
    assert attachments[0].get_filename() == "contract.pdf"
    assert attachments[0].get_content_type() == "application/pdf"
    assert msg.get_body(preferencelist=("html",)).get_content().strip() == "<p>Dear Amina,</p>"
    assert msg.get_body(preferencelist=("plain",)).get_content().strip() == "Dear Amina,"


def test_envelope_includes_cc_and_bcc() -> None:
    assert envelope_recipients("a@example.com", None) == ["a@example.com"]
    assert envelope_recipients("a@example.com", OPTIONS) == [
        "a@example.com",
        "manager@example.com",
        "audit@example.com",
    ]


@pytest.mark.asyncio
async def test_smtp_transport_sends_with_configured_server(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    async def fake_send(message, **kwargs):
        captured["message"] = message
        captured.update(kwargs)
        return ({}, "OK")

    monkeypatch.setattr("hrnotify.providers.transport.smtp.aiosmtplib.send", fake_send)
    transport = SmtpTransport(_config(start_tls=True))

    await transport.send("amina@example.com", TEMPLATE, OPTIONS)

    assert captured["hostname"] == "mail.example.com"
    assert captured["port"] == 2525
    assert captured["username"] == "mailer"
    assert captured["password"] == "s3cret"
    assert captured["start_tls"] is True
    assert captured["recipients"] == ["amina@example.com", "manager@example.com", "audit@example.com"]
    assert captured["message"]["Subject"] == "Welcome to Acme"
    assert external_success_rate(60, integration="transport.smtp") == 100.0


@pytest.mark.asyncio
async def test_smtp_rejection_becomes_transport_error(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_send(message, **kwargs):
        raise aiosmtplib.SMTPResponseException(550, "Mailbox unavailable")

    monkeypatch.setattr("hrnotify.providers.transport.smtp.aiosmtplib.send", fake_send)
    transport = SmtpTransport(_config())

    with pytest.raises(TransportError) as excinfo:
        await transport.send("gone@example.com", TEMPLATE, None)

    assert excinfo.value.status_code == 550
    assert str(excinfo.value) == "SMTP 550: Mailbox unavailable"
    assert external_success_rate(60, integration="transport.smtp") == 0.0


@pytest.mark.asyncio
async def test_smtp_connection_failure_becomes_transport_error(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_send(message, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr("hrnotify.providers.transport.smtp.aiosmtplib.send", fake_send)

    with pytest.raises(TransportError, match="SMTP delivery failed"):
        await SmtpTransport(_config()).send("a@example.com", TEMPLATE, None)


def test_webhook_payload_encodes_attachments() -> None:
    payload = build_payload(
        from_address="hr@example.com",
        recipient="amina@example.com",
        template=TEMPLATE,
        options=OPTIONS,
    )
    assert payload["to"] == "amina@example.com"
    assert payload["priority"] == "high"
    assert payload["bcc"] == ["audit@example.com"]
    assert base64.b64decode(payload["attachments"][0]["content_b64"]) == b"%PDF-1.7"


@pytest.mark.asyncio
async def test_webhook_transport_posts_json() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(202, json={"accepted": True})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    transport = WebhookTransport(_config(transport="webhook", webhook_path="hooks/mail"), client=client)

    await transport.send("amina@example.com", TEMPLATE, OPTIONS)
    await client.aclose()

    assert transport.url == "http://mail.example.com:2525/hooks/mail"
    assert str(requests[0].url) == "http://mail.example.com:2525/hooks/mail"
    body = json.loads(requests[0].content)
    assert body["subject"] == "Welcome to Acme"
    assert body["cc"] == ["manager@example.com"]


@pytest.mark.asyncio
async def test_webhook_rejection_raises_transport_error() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    transport = WebhookTransport(_config(transport="webhook"), client=client)

    with pytest.raises(TransportError) as excinfo:
        await transport.send("amina@example.com", TEMPLATE, None)
    await client.aclose()

    assert excinfo.value.status_code == 503
    assert external_success_rate(60, integration="transport.webhook") == 0.0


@pytest.mark.asyncio
async def test_webhook_aclose_leaves_caller_client_open() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(202)))
    transport = WebhookTransport(_config(transport="webhook"), client=client)

    await transport.send("amina@example.com", TEMPLATE, None)
    await transport.aclose()

    assert not client.is_closed
    await transport.send("amina@example.com", TEMPLATE, None)
    await client.aclose()


@pytest.mark.asyncio
async def test_webhook_aclose_closes_its_own_client() -> None:
    transport = WebhookTransport(_config(transport="webhook"))
    owned = transport._get_client()

    await transport.aclose()

    assert owned.is_closed


@pytest.mark.asyncio
async def test_log_transport_never_logs_password(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("INFO", logger="hrnotify.providers.transport.log_transport")
    await LogTransport(_config()).send("amina@example.com", TEMPLATE, OPTIONS)

    assert "notification_logged" in caplog.text
    assert "s3cret" not in caplog.text


def test_factory_selects_transport() -> None:
    assert isinstance(get_transport(_config(transport="log")), LogTransport)
    assert isinstance(get_transport(_config(transport="SMTP")), SmtpTransport)
    assert isinstance(get_transport(_config(transport="webhook")), WebhookTransport)


def test_factory_rejects_unknown_or_incomplete_transport() -> None:
    with pytest.raises(TransportConfigError, match="Unsupported notification transport"):
        get_transport(_config(transport="carrier-pigeon"))
    with pytest.raises(TransportConfigError):
        get_transport(_config(transport="smtp", transport_host=""))
