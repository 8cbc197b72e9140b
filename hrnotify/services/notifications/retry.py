from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from hrnotify.domain.models import DeliveryStatus, QueueItem


class RetryDecision(str, Enum):
    REQUEUE = "requeue"
    TERMINATE = "terminate"


@dataclass(frozen=True)
class RetryPolicy:
    # Fixed delay between attempts; fairness comes from requeueing to the tail, not from backoff.
    max_retries: int = 3
    retry_delay_ms: int = 5000

    @property
    def retry_delay_s(self) -> float:
        return max(0, int(self.retry_delay_ms)) / 1000.0


def describe_error(exc: BaseException) -> str:
    # Some transports raise bare exceptions; fall back to the class name so the record is never blank.
    message = str(exc).strip()
    return message or exc.__class__.__name__


def on_failure(item: QueueItem, exc: BaseException, *, policy: RetryPolicy) -> RetryDecision:
    """Record a failed attempt on ``item`` and decide whether it gets another one.

    ``retries`` is incremented exactly once per call. When the ceiling is reached the
    item becomes terminal ``failed``; otherwise it stays ``pending`` and the caller is
    expected to move it to the tail of the queue and pause for ``policy.retry_delay_s``.
    """
    item.error = describe_error(exc)
    item.retries += 1
    item.updated_at = datetime.now(timezone.utc)
    if item.retries >= max(1, int(policy.max_retries)):
        item.status = DeliveryStatus.FAILED
        return RetryDecision.TERMINATE
    return RetryDecision.REQUEUE
