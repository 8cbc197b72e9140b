from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({DeliveryStatus.SENT, DeliveryStatus.FAILED})


class Priority(str, Enum):
    # Forwarded to the transport only; dispatch order is always FIFO.
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes | str
    content_type: str | None = None


@dataclass(frozen=True)
class DeliveryOptions:
    attachments: tuple[Attachment, ...] = ()
    cc: tuple[str, ...] = ()
    bcc: tuple[str, ...] = ()
    reply_to: str | None = None
    priority: Priority = Priority.NORMAL


@dataclass(frozen=True)
class Template:
    subject: str
    body: str
    html: str | None = None


@dataclass
class QueueItem:
    """One enqueued notification and its delivery lifecycle.

    The drain loop mutates ``status``, ``retries``, ``error`` and ``sent_at`` in
    place; once ``status`` is terminal the record is never touched again.
    """

    id: str
    recipient: str
    template: Template
    options: DeliveryOptions | None = None
    retries: int = 0
    status: DeliveryStatus = DeliveryStatus.PENDING
    error: str | None = None
    sent_at: datetime | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class VisaApplication(BaseModel):
    # Mirrors the HR system visa record; only the fields used in reminders matter here.
    # HR records arrive camelCase (applicationNumber, endDate); snake_case names are accepted too.
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: str | None = None
    employee_id: str | None = None
    visa_type: str | None = Field(default=None, alias="type")
    status: str | None = None
    start_date: date | datetime | None = None
    end_date: date | datetime | None = None
    country: str | None = None
    application_number: str | None = None
    processing_time: int | None = None
    notes: str | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_unparseable_dates(cls, value: Any) -> Any:
        # An unreadable date renders as blank in the reminder instead of rejecting the record.
        if value is None or isinstance(value, (date, datetime)):
            return value
        if not isinstance(value, str):
            return None
        raw = value.strip()
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            pass
        try:
            return date.fromisoformat(raw[:10])
        except ValueError:
            return None

    @field_validator("processing_time", mode="before")
    @classmethod
    def _blank_unparseable_processing_time(cls, value: Any) -> Any:
        if value is None or isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            return None
