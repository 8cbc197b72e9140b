from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict

from hrnotify.core.errors import NotificationConfigError


DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 5000
DEFAULT_RATE_LIMIT_PER_MINUTE = 100


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "hrnotify"
    log_level: str = "INFO"

    # Select the delivery transport: log (dev), smtp, or webhook.
    notify_transport: str = "log"
    notify_transport_host: str = "localhost"
    notify_transport_port: int = 587
    notify_transport_username: str | None = None
    notify_transport_password: str | None = None
    # Implicit TLS (port 465 style) versus STARTTLS upgrade on a plain connection.
    notify_transport_use_tls: bool = False
    notify_transport_start_tls: bool = False
    # Bound each transport call so a stalled server cannot hold the drain loop forever.
    notify_transport_timeout_ms: int = 30000
    # Path appended to host:port when the webhook transport is selected.
    notify_webhook_path: str = "/notifications"
    notify_from_address: str = "hr@cubs-contracting.example"
    # Organisation name used in greetings and signatures.
    notify_org_name: str = "CUBS Technical Contracting"
    # Attempts per notification before it is marked failed.
    notify_max_retries: int = DEFAULT_MAX_RETRIES
    # Pause applied to the drain loop after a failed attempt is requeued.
    notify_retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    # Dispatch ceiling shared by every notification on one queue.
    notify_rate_limit_per_minute: int = DEFAULT_RATE_LIMIT_PER_MINUTE


@lru_cache
def get_settings() -> Settings:
    return Settings()


@dataclass(frozen=True)
class TransportCredentials:
    username: str
    password: str = field(repr=False)

    def __repr__(self) -> str:
        # Never leak the secret through logs or tracebacks.
        return f"TransportCredentials(username={self.username!r}, password='********')"


@dataclass(frozen=True)
class NotificationConfig:
    """Everything a notification queue and its transport need at construction time."""

    transport_host: str
    transport_port: int
    credentials: TransportCredentials | None
    from_address: str
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    rate_limit_per_minute: int = DEFAULT_RATE_LIMIT_PER_MINUTE
    transport: str = "log"
    use_tls: bool = False
    start_tls: bool = False
    timeout_ms: int = 30000
    webhook_path: str = "/notifications"
    org_name: str = "CUBS Technical Contracting"

    def __post_init__(self) -> None:
        # Fail at construction so a misconfigured queue never accepts work it cannot drain.
        if int(self.max_retries) < 1:
            raise NotificationConfigError("max_retries must be at least 1")
        if int(self.retry_delay_ms) < 0:
            raise NotificationConfigError("retry_delay_ms must not be negative")
        if int(self.rate_limit_per_minute) < 1:
            raise NotificationConfigError("rate_limit_per_minute must be positive")
        if int(self.timeout_ms) < 1:
            raise NotificationConfigError("timeout_ms must be positive")
        if not 0 < int(self.transport_port) < 65536:
            raise NotificationConfigError(f"transport_port out of range: {self.transport_port}")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "NotificationConfig":
        settings = settings or get_settings()
        credentials = None
        if settings.notify_transport_username:
            credentials = TransportCredentials(
                username=settings.notify_transport_username,
                password=settings.notify_transport_password or "",
            )
        return cls(
            transport_host=settings.notify_transport_host,
            transport_port=settings.notify_transport_port,
            credentials=credentials,
            from_address=settings.notify_from_address,
            max_retries=settings.notify_max_retries,
            retry_delay_ms=settings.notify_retry_delay_ms,
            rate_limit_per_minute=settings.notify_rate_limit_per_minute,
            transport=settings.notify_transport,
            use_tls=settings.notify_transport_use_tls,
            start_tls=settings.notify_transport_start_tls,
            timeout_ms=settings.notify_transport_timeout_ms,
            webhook_path=settings.notify_webhook_path,
            org_name=settings.notify_org_name,
        )
