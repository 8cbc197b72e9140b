from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict

from hrnotify.core.config import NotificationConfig
from hrnotify.core.logging import configure_logging
from hrnotify.domain.models import VisaApplication
from hrnotify.services.notifications.service import NotificationService


def _build_parser() -> argparse.ArgumentParser:
    # Keep one subcommand per notification kind so required fields stay explicit.
    parser = argparse.ArgumentParser(description="Send one HR notification and wait for a terminal status")
    parser.add_argument("--to", required=True, help="Recipient address")
    sub = parser.add_subparsers(dest="kind", required=True)

    welcome = sub.add_parser("welcome", help="Welcome message for a new employee")
    welcome.add_argument("--name", required=True)

    document = sub.add_parser("document", help="Document upload notice")
    document.add_argument("--document-name", required=True)
    document.add_argument("--document-type", required=True)
    document.add_argument("--uploaded-by", required=True)

    visa = sub.add_parser("visa", help="Visa expiry reminder")
    visa.add_argument("--application-number", required=True)
    visa.add_argument("--end-date", required=True, help="ISO date, e.g. 2026-11-01")
    visa.add_argument("--visa-type", default=None)
    visa.add_argument("--country", default=None)
    return parser


async def _send(args: argparse.Namespace) -> int:
    service = NotificationService(NotificationConfig.from_settings())
    if args.kind == "welcome":
        notification_id = service.enqueue_welcome_message(args.to, args.name)
    elif args.kind == "document":
        notification_id = service.enqueue_document_upload_notice(
            args.document_name,
            args.document_type,
            args.uploaded_by,
            args.to,
        )
    else:
        application = VisaApplication(
            application_number=args.application_number,
            end_date=args.end_date,
            visa_type=args.visa_type,
            country=args.country,
        )
        notification_id = service.enqueue_visa_expiry_reminder(application, args.to)

    await service.join()
    item = service.get_status(notification_id)
    record = asdict(item) if item is not None else {"id": notification_id, "status": "unknown"}
    print(json.dumps(record, default=str, indent=2))
    aclose = getattr(service.transport, "aclose", None)
    if aclose is not None:
        await aclose()
    return 0 if item is not None and item.status.value == "sent" else 1


def main() -> None:
    configure_logging()
    args = _build_parser().parse_args()
    sys.exit(asyncio.run(_send(args)))


if __name__ == "__main__":
    main()
