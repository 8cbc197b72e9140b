"""Subject, plain-text and HTML rendering for HR notifications.

Rendering is pure: templates live in this module, placeholders use ``{{name}}``
syntax and any missing or unparseable value renders as an empty string. HTML
renderings escape every substituted value.
"""

from __future__ import annotations

import html
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Mapping

from hrnotify.core.errors import UnknownTemplateError
from hrnotify.domain.models import Priority, Template

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")
_SECONDS_PER_DAY = 24 * 60 * 60

DEFAULT_ORG_NAME = "CUBS Technical Contracting"


class NotificationKind(str, Enum):
    VISA_EXPIRY_REMINDER = "visa_expiry_reminder"
    DOCUMENT_UPLOADED = "document_uploaded"
    WELCOME = "welcome"


@dataclass(frozen=True)
class NotificationTemplate:
    """Raw template strings and delivery defaults for one notification kind."""

    kind: NotificationKind
    subject_template: str
    text_template: str
    html_template: str
    priority: Priority = Priority.NORMAL


_HTML_WRAPPER_OPEN = '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
_HTML_PANEL_OPEN = '<div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px; margin: 20px 0;">'
_HTML_SIGNATURE = "<p>Best regards,<br>{{org_name}} HR Team</p>"

TEMPLATES: dict[NotificationKind, NotificationTemplate] = {
    NotificationKind.VISA_EXPIRY_REMINDER: NotificationTemplate(
        kind=NotificationKind.VISA_EXPIRY_REMINDER,
        subject_template="Visa Expiry Reminder - {{application_number}} ({{expiry_phrase}})",
        text_template=(
            "Dear {{recipient_name}},\n"
            "\n"
            "This is a reminder that your visa (Application Number: {{application_number}}) {{expiry_phrase}}.\n"
            "\n"
            "Visa Details:\n"
            "- Type: {{visa_type}}\n"
            "- Country: {{country}}\n"
            "- Expiry Date: {{expiry_date}}\n"
            "\n"
            "Please ensure to initiate the renewal process at your earliest convenience.\n"
            "\n"
            "Best regards,\n"
            "{{org_name}} HR Team\n"
        ),
        html_template=(
            _HTML_WRAPPER_OPEN
            + '<h2 style="color: #333;">Visa Expiry Reminder</h2>'
            + "<p>Dear {{recipient_name}},</p>"
            + "<p>This is a reminder that your visa (Application Number: <strong>{{application_number}}</strong>)"
            + " <strong>{{expiry_phrase}}</strong>.</p>"
            + _HTML_PANEL_OPEN
            + '<h3 style="color: #444; margin-top: 0;">Visa Details:</h3>'
            + '<ul style="list-style: none; padding: 0;">'
            + "<li><strong>Type:</strong> {{visa_type}}</li>"
            + "<li><strong>Country:</strong> {{country}}</li>"
            + "<li><strong>Expiry Date:</strong> {{expiry_date}}</li>"
            + "</ul></div>"
            + "<p>Please ensure to initiate the renewal process at your earliest convenience.</p>"
            + _HTML_SIGNATURE
            + "</div>"
        ),
        priority=Priority.HIGH,
    ),
    NotificationKind.DOCUMENT_UPLOADED: NotificationTemplate(
        kind=NotificationKind.DOCUMENT_UPLOADED,
        subject_template="New Document Uploaded - {{document_name}}",
        text_template=(
            "Dear {{recipient_name}},\n"
            "\n"
            "A new document has been uploaded to your profile.\n"
            "\n"
            "Document Details:\n"
            "- Name: {{document_name}}\n"
            "- Type: {{document_type}}\n"
            "- Uploaded by: {{uploaded_by}}\n"
            "- Upload Date: {{upload_date}}\n"
            "\n"
            "You can view and download this document from your profile.\n"
            "\n"
            "Best regards,\n"
            "{{org_name}} HR Team\n"
        ),
        html_template=(
            _HTML_WRAPPER_OPEN
            + '<h2 style="color: #333;">New Document Uploaded</h2>'
            + "<p>Dear {{recipient_name}},</p>"
            + "<p>A new document has been uploaded to your profile.</p>"
            + _HTML_PANEL_OPEN
            + '<h3 style="color: #444; margin-top: 0;">Document Details:</h3>'
            + '<ul style="list-style: none; padding: 0;">'
            + "<li><strong>Name:</strong> {{document_name}}</li>"
            + "<li><strong>Type:</strong> {{document_type}}</li>"
            + "<li><strong>Uploaded by:</strong> {{uploaded_by}}</li>"
            + "<li><strong>Upload Date:</strong> {{upload_date}}</li>"
            + "</ul></div>"
            + "<p>You can view and download this document from your profile.</p>"
            + _HTML_SIGNATURE
            + "</div>"
        ),
    ),
    NotificationKind.WELCOME: NotificationTemplate(
        kind=NotificationKind.WELCOME,
        subject_template="Welcome to {{org_name}}",
        text_template=(
            "Dear {{recipient_name}},\n"
            "\n"
            "Welcome to {{org_name}}! We're excited to have you on board.\n"
            "\n"
            "To get started, please:\n"
            "1. Complete your profile\n"
            "2. Upload your required documents\n"
            "3. Review your visa information\n"
            "\n"
            "If you have any questions, please don't hesitate to contact our HR team.\n"
            "\n"
            "Best regards,\n"
            "{{org_name}} HR Team\n"
        ),
        html_template=(
            _HTML_WRAPPER_OPEN
            + '<h2 style="color: #333;">Welcome to {{org_name}}</h2>'
            + "<p>Dear {{recipient_name}},</p>"
            + "<p>Welcome to {{org_name}}! We're excited to have you on board.</p>"
            + _HTML_PANEL_OPEN
            + '<h3 style="color: #444; margin-top: 0;">Getting Started:</h3>'
            + '<ol style="padding-left: 20px;">'
            + "<li>Complete your profile</li>"
            + "<li>Upload your required documents</li>"
            + "<li>Review your visa information</li>"
            + "</ol></div>"
            + "<p>If you have any questions, please don't hesitate to contact our HR team.</p>"
            + _HTML_SIGNATURE
            + "</div>"
        ),
        priority=Priority.HIGH,
    ),
}


def build_template(
    kind: NotificationKind | str,
    data: Mapping[str, Any],
    *,
    now: datetime | None = None,
    org_name: str = DEFAULT_ORG_NAME,
) -> Template:
    """Render the subject, plain-text body and HTML body for a notification kind."""
    template = get_notification_template(kind)
    current = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    placeholders = _placeholders_for(template.kind, data, now=current, org_name=org_name)
    return Template(
        subject=_render_text(template.subject_template, placeholders=placeholders, escape_html=False),
        body=_render_text(template.text_template, placeholders=placeholders, escape_html=False),
        html=_render_text(template.html_template, placeholders=placeholders, escape_html=True),
    )


def get_notification_template(kind: NotificationKind | str) -> NotificationTemplate:
    """Resolve template configuration for a kind, accepting enum members or raw values."""
    try:
        resolved = NotificationKind(kind)
    except ValueError as exc:
        raise UnknownTemplateError(f"Unknown notification kind: {kind}") from exc
    return TEMPLATES[resolved]


def default_priority(kind: NotificationKind | str) -> Priority:
    return get_notification_template(kind).priority


def days_until_expiry(end_date: Any, *, now: datetime) -> int | None:
    """Whole days until ``end_date``, rounded up; ``None`` when the date is missing or unparseable."""
    end = _coerce_datetime(end_date)
    if end is None:
        return None
    delta_s = (end - _as_utc(now)).total_seconds()
    return math.ceil(delta_s / _SECONDS_PER_DAY)


def expiry_phrase(days: int | None) -> str:
    if days is None:
        return ""
    if days == 0:
        return "expires today"
    if days > 0:
        return f"expires in {days} {_pluralize_days(days)}"
    return f"expired {abs(days)} {_pluralize_days(abs(days))} ago"


def _pluralize_days(count: int) -> str:
    return "day" if count == 1 else "days"


def _placeholders_for(
    kind: NotificationKind,
    data: Mapping[str, Any],
    *,
    now: datetime,
    org_name: str,
) -> dict[str, str]:
    # Start from caller data so every key is available, then overlay derived values.
    placeholders = {str(key): _stringify(value) for key, value in data.items()}
    placeholders["org_name"] = org_name
    placeholders["recipient_name"] = placeholders.get("name") or placeholders.get("employee_name") or "Employee"
    if kind is NotificationKind.VISA_EXPIRY_REMINDER:
        end = _coerce_datetime(data.get("end_date"))
        days = days_until_expiry(end, now=now) if end is not None else None
        placeholders["days_until_expiry"] = "" if days is None else str(days)
        placeholders["expiry_phrase"] = expiry_phrase(days)
        placeholders["expiry_date"] = end.date().isoformat() if end is not None else ""
    elif kind is NotificationKind.DOCUMENT_UPLOADED:
        placeholders["upload_date"] = now.date().isoformat()
    return placeholders


def _render_text(raw_template: str, *, placeholders: Mapping[str, str], escape_html: bool) -> str:
    """Replace {{placeholders}} with values, escaping for HTML when needed."""

    def _replace(match: re.Match[str]) -> str:
        rendered = placeholders.get(match.group(1), "")
        if escape_html:
            return html.escape(rendered, quote=True)
        return rendered

    return _PLACEHOLDER_RE.sub(_replace, raw_template)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _as_utc(value: datetime) -> datetime:
    # Treat naive datetimes as UTC so expiry math never mixes aware and naive values.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _coerce_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        raw = value.strip()
        try:
            return _as_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
        except ValueError:
            pass
        try:
            parsed = date.fromisoformat(raw[:10])
        except ValueError:
            return None
        return datetime(parsed.year, parsed.month, parsed.day, tzinfo=timezone.utc)
    return None
