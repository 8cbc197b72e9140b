from __future__ import annotations

from fastapi import HTTPException, Request, status

from hrnotify.services.notifications.service import NotificationService


def get_notification_service(request: Request) -> NotificationService:
    # One service (and therefore one queue) per app instance, created by create_app().
    service = getattr(request.app.state, "notification_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "SERVICE_UNAVAILABLE", "message": "Notification service is not configured"},
        )
    return service
