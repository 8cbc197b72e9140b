from __future__ import annotations


class HRNotifyError(Exception):
    """Base error for hrnotify."""


class NotificationConfigError(HRNotifyError):
    """Invalid notification queue configuration."""


class UnknownTemplateError(HRNotifyError):
    """No template is registered for the requested notification kind."""


class TransportConfigError(HRNotifyError):
    """Missing or unsupported transport configuration."""


class TransportError(HRNotifyError):
    """Transport rejected or failed to deliver a notification."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
