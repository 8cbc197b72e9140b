from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from hrnotify.apps.api.deps import get_notification_service
from hrnotify.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from hrnotify.apps.api.response import SuccessEnvelope, success_response
from hrnotify.services.notifications.service import NotificationService
from hrnotify.services.telemetry import counters_snapshot, external_p95_latency, external_success_rate

router = APIRouter(prefix="/ops", tags=["ops"], responses=DEFAULT_ERROR_RESPONSES)

_OPS_WINDOW_S = 300


class NotificationQueueOps(BaseModel):
    transport: str
    queue_depth: int
    processing: bool
    by_status: dict[str, int]
    counters: dict[str, int]
    transport_success_rate_5m: float | None = None
    transport_p95_latency_ms_5m: float | None = None


@router.get("/notifications", response_model=SuccessEnvelope[NotificationQueueOps])
async def notification_queue_ops(
    request: Request,
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    # Expose queue depth and delivery counters so operators can spot stuck or failing deliveries.
    transport_name = getattr(service.transport, "name", type(service.transport).__name__)
    integration = f"transport.{transport_name}"
    payload = NotificationQueueOps(
        transport=str(transport_name),
        queue_depth=service.queue.depth,
        processing=service.queue.is_processing,
        by_status=service.queue.counts_by_status(),
        counters=counters_snapshot(),
        transport_success_rate_5m=external_success_rate(_OPS_WINDOW_S, integration=integration),
        transport_p95_latency_ms_5m=external_p95_latency(_OPS_WINDOW_S, integration=integration),
    )
    return success_response(request=request, data=payload)
