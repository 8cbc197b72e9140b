from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from hrnotify.core.errors import UnknownTemplateError
from hrnotify.domain.models import Priority
from hrnotify.services.notifications.templates import (
    NotificationKind,
    build_template,
    days_until_expiry,
    default_priority,
    expiry_phrase,
)


NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


def test_visa_reminder_expiring_in_ten_days() -> None:
    template = build_template(
        NotificationKind.VISA_EXPIRY_REMINDER,
        {
            "application_number": "VA-2026-0042",
            "visa_type": "work",
            "country": "UAE",
            "end_date": date(2026, 10, 29),
        },
        now=NOW,
    )
    assert "10 days" in template.subject
    assert "VA-2026-0042" in template.subject
    assert template.body
    assert template.html
    assert "expires in 10 days" in template.body
    assert "Expiry Date: 2026-10-29" in template.body
    assert "<strong>expires in 10 days</strong>" in template.html


def test_days_until_expiry_rounds_partial_days_up() -> None:
    assert days_until_expiry(NOW + timedelta(days=10), now=NOW) == 10
    assert days_until_expiry(NOW + timedelta(days=9, seconds=1), now=NOW) == 10
    assert days_until_expiry(NOW + timedelta(hours=1), now=NOW) == 1
    assert days_until_expiry(NOW - timedelta(days=3), now=NOW) == -3
    assert days_until_expiry("2026-10-29", now=NOW) == 10
    assert days_until_expiry("not-a-date", now=NOW) is None
    assert days_until_expiry(None, now=NOW) is None


def test_expiry_phrase_wording() -> None:
    assert expiry_phrase(10) == "expires in 10 days"
    assert expiry_phrase(1) == "expires in 1 day"
    assert expiry_phrase(0) == "expires today"
    assert expiry_phrase(-3) == "expired 3 days ago"
    assert expiry_phrase(None) == ""


def test_missing_fields_render_as_empty_strings() -> None:
    template = build_template(NotificationKind.VISA_EXPIRY_REMINDER, {}, now=NOW)
    assert template.subject == "Visa Expiry Reminder -  ()"
    assert "- Type: \n" in template.body
    assert "{{" not in template.body
    assert "{{" not in (template.html or "")


def test_html_values_are_escaped_but_text_is_not() -> None:
    template = build_template(
        NotificationKind.DOCUMENT_UPLOADED,
        {"document_name": "<script>x</script>", "document_type": "passport", "uploaded_by": "HR & Admin"},
        now=NOW,
    )
    assert "<script>x</script>" in template.body
    assert "&lt;script&gt;x&lt;/script&gt;" in (template.html or "")
    assert "HR &amp; Admin" in (template.html or "")
    assert template.subject == "New Document Uploaded - <script>x</script>"


def test_document_notice_stamps_upload_date() -> None:
    template = build_template(
        "document_uploaded",
        {"document_name": "passport.pdf", "document_type": "passport", "uploaded_by": "hr.admin"},
        now=NOW,
    )
    assert "Upload Date: 2026-10-19" in template.body
    assert "Uploaded by: hr.admin" in template.body


def test_welcome_uses_name_and_org() -> None:
    template = build_template(NotificationKind.WELCOME, {"name": "Amina"}, now=NOW, org_name="Acme Staffing")
    assert template.subject == "Welcome to Acme Staffing"
    assert template.body.startswith("Dear Amina,")
    assert "Acme Staffing HR Team" in template.body
    assert "<li>Complete your profile</li>" in (template.html or "")


def test_unknown_kind_raises() -> None:
    with pytest.raises(UnknownTemplateError):
        build_template("payroll_summary", {}, now=NOW)


def test_default_priorities() -> None:
    assert default_priority(NotificationKind.VISA_EXPIRY_REMINDER) is Priority.HIGH
    assert default_priority(NotificationKind.WELCOME) is Priority.HIGH
    assert default_priority(NotificationKind.DOCUMENT_UPLOADED) is Priority.NORMAL


def test_build_is_deterministic_for_fixed_now() -> None:
    data = {"application_number": "VA-1", "end_date": "2026-11-01T00:00:00Z"}
    first = build_template(NotificationKind.VISA_EXPIRY_REMINDER, data, now=NOW)
    second = build_template(NotificationKind.VISA_EXPIRY_REMINDER, data, now=NOW)
    assert first == second
