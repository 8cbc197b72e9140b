from __future__ import annotations

import pytest

from hrnotify.core.config import NotificationConfig, TransportCredentials, get_settings
from hrnotify.core.errors import NotificationConfigError


def _config(**overrides) -> NotificationConfig:
    values = {
        "transport_host": "smtp.example.com",
        "transport_port": 587,
        "credentials": TransportCredentials(username="mailer", password="s3cret"),
        "from_address": "hr@example.com",
    }
    values.update(overrides)
    return NotificationConfig(**values)


def test_defaults() -> None:
    config = _config()
    assert config.max_retries == 3
    assert config.retry_delay_ms == 5000
    assert config.rate_limit_per_minute == 100
    assert config.transport == "log"


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_retries": 0},
        {"retry_delay_ms": -1},
        {"rate_limit_per_minute": 0},
        {"timeout_ms": 0},
        {"transport_port": 0},
        {"transport_port": 70000},
    ],
)
def test_invalid_values_are_rejected(overrides) -> None:
    with pytest.raises(NotificationConfigError):
        _config(**overrides)


def test_credentials_repr_masks_password() -> None:
    config = _config()
    assert "s3cret" not in repr(config.credentials)
    assert "s3cret" not in repr(config)
    assert "mailer" in repr(config.credentials)


def test_from_settings_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTIFY_TRANSPORT", "smtp")
    monkeypatch.setenv("NOTIFY_TRANSPORT_HOST", "mail.internal")
    monkeypatch.setenv("NOTIFY_TRANSPORT_PORT", "2525")
    monkeypatch.setenv("NOTIFY_TRANSPORT_USERNAME", "mailer")
    monkeypatch.setenv("NOTIFY_TRANSPORT_PASSWORD", "s3cret")
    monkeypatch.setenv("NOTIFY_MAX_RETRIES", "5")
    monkeypatch.setenv("NOTIFY_RATE_LIMIT_PER_MINUTE", "30")
    get_settings.cache_clear()

    config = NotificationConfig.from_settings()

    assert config.transport == "smtp"
    assert config.transport_host == "mail.internal"
    assert config.transport_port == 2525
    assert config.credentials == TransportCredentials(username="mailer", password="s3cret")
    assert config.max_retries == 5
    assert config.rate_limit_per_minute == 30
    assert config.retry_delay_ms == 5000


def test_from_settings_without_username_has_no_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NOTIFY_TRANSPORT_USERNAME", raising=False)
    get_settings.cache_clear()
    assert NotificationConfig.from_settings().credentials is None


def test_from_settings_rejects_bad_rate(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTIFY_RATE_LIMIT_PER_MINUTE", "0")
    get_settings.cache_clear()
    with pytest.raises(NotificationConfigError):
        NotificationConfig.from_settings()
