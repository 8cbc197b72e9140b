from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hrnotify.apps.api.errors import (
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from hrnotify.apps.api.response import API_VERSION
from hrnotify.apps.api.routes.health import router as health_router
from hrnotify.apps.api.routes.notifications import router as notifications_router
from hrnotify.apps.api.routes.ops import router as ops_router
from hrnotify.core.config import NotificationConfig, get_settings
from hrnotify.core.logging import configure_logging
from hrnotify.services.notifications.service import NotificationService


def create_app(service: NotificationService | None = None) -> FastAPI:
    configure_logging()
    settings = get_settings()
    notification_service = service or NotificationService(NotificationConfig.from_settings(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        # Release pooled transport connections; queued items are volatile and not drained on shutdown.
        aclose = getattr(notification_service.transport, "aclose", None)
        if aclose is not None:
            await aclose()

    app = FastAPI(title="hrnotify API", lifespan=lifespan)
    app.state.notification_service = notification_service

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):  # type: ignore[override]
        # Preserve incoming request IDs or assign a new one for traceability.
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers.setdefault("X-Request-Id", request_id)
        return response

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router, prefix=f"/{API_VERSION}")
    app.include_router(notifications_router, prefix=f"/{API_VERSION}")
    # Expose ops endpoints for queue observability.
    app.include_router(ops_router, prefix=f"/{API_VERSION}")
    return app


app = create_app()
