from hrnotify.services.notifications.queue import DeliveryQueue
from hrnotify.services.notifications.rate_limiter import DispatchRateLimiter, wait_time
from hrnotify.services.notifications.registry import StatusRegistry
from hrnotify.services.notifications.retry import RetryDecision, RetryPolicy, on_failure
from hrnotify.services.notifications.service import NotificationService
from hrnotify.services.notifications.templates import (
    NotificationKind,
    build_template,
    days_until_expiry,
    default_priority,
)

__all__ = [
    "DeliveryQueue",
    "DispatchRateLimiter",
    "wait_time",
    "StatusRegistry",
    "RetryDecision",
    "RetryPolicy",
    "on_failure",
    "NotificationService",
    "NotificationKind",
    "build_template",
    "days_until_expiry",
    "default_priority",
]
