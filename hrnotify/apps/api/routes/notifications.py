from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from hrnotify.apps.api.deps import get_notification_service
from hrnotify.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from hrnotify.apps.api.response import SuccessEnvelope, success_response
from hrnotify.domain.models import QueueItem, VisaApplication
from hrnotify.services.notifications.service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"], responses=DEFAULT_ERROR_RESPONSES)


class VisaExpiryReminderRequest(BaseModel):
    application: VisaApplication
    recipient_address: str = Field(min_length=3)


class DocumentUploadNoticeRequest(BaseModel):
    document_name: str = Field(min_length=1)
    document_type: str = Field(min_length=1)
    uploaded_by: str = Field(min_length=1)
    recipient_address: str = Field(min_length=3)


class WelcomeMessageRequest(BaseModel):
    recipient_address: str = Field(min_length=3)
    name: str = Field(min_length=1)


class EnqueueResponse(BaseModel):
    id: str
    status: str = "pending"


class NotificationRecord(BaseModel):
    id: str
    recipient: str
    subject: str
    priority: str
    status: str
    retries: int
    error: str | None = None
    sent_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_item(cls, item: QueueItem) -> "NotificationRecord":
        return cls(
            id=item.id,
            recipient=item.recipient,
            subject=item.template.subject,
            priority=item.options.priority.value if item.options is not None else "normal",
            status=item.status.value,
            retries=item.retries,
            error=item.error,
            sent_at=item.sent_at,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class NotificationQueueResponse(BaseModel):
    items: list[NotificationRecord]


def _accepted(request: Request, notification_id: str) -> dict:
    return success_response(request=request, data=EnqueueResponse(id=notification_id))


@router.post(
    "/visa-expiry",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=SuccessEnvelope[EnqueueResponse],
)
async def enqueue_visa_expiry(
    payload: VisaExpiryReminderRequest,
    request: Request,
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    notification_id = service.enqueue_visa_expiry_reminder(payload.application, payload.recipient_address)
    return _accepted(request, notification_id)


@router.post(
    "/document-upload",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=SuccessEnvelope[EnqueueResponse],
)
async def enqueue_document_upload(
    payload: DocumentUploadNoticeRequest,
    request: Request,
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    notification_id = service.enqueue_document_upload_notice(
        payload.document_name,
        payload.document_type,
        payload.uploaded_by,
        payload.recipient_address,
    )
    return _accepted(request, notification_id)


@router.post(
    "/welcome",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=SuccessEnvelope[EnqueueResponse],
)
async def enqueue_welcome(
    payload: WelcomeMessageRequest,
    request: Request,
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    notification_id = service.enqueue_welcome_message(payload.recipient_address, payload.name)
    return _accepted(request, notification_id)


@router.get("", response_model=SuccessEnvelope[NotificationQueueResponse])
async def list_pending_notifications(
    request: Request,
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    items = [NotificationRecord.from_item(item) for item in service.get_queue_snapshot()]
    return success_response(request=request, data=NotificationQueueResponse(items=items))


@router.get("/{notification_id}", response_model=SuccessEnvelope[NotificationRecord])
async def get_notification(
    notification_id: str,
    request: Request,
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    item = service.get_status(notification_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "NOTIFICATION_NOT_FOUND", "message": "Notification not found"},
        )
    return success_response(request=request, data=NotificationRecord.from_item(item))
