from __future__ import annotations

from typing import Any

from hrnotify.apps.api.response import ErrorEnvelope


def _error_example(*, code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    # Build a consistent error envelope example for OpenAPI docs.
    payload: dict[str, Any] = {
        "error": {"code": code, "message": message},
        "meta": {"request_id": "req_example", "api_version": "v1"},
    }
    if details:
        payload["error"]["details"] = details
    return payload


DEFAULT_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    404: {
        "model": ErrorEnvelope,
        "description": "Not found",
        "content": {
            "application/json": {
                "example": _error_example(code="NOTIFICATION_NOT_FOUND", message="Notification not found"),
            }
        },
    },
    422: {
        "model": ErrorEnvelope,
        "description": "Validation error",
        "content": {
            "application/json": {
                "example": _error_example(
                    code="REQUEST_VALIDATION_ERROR",
                    message="Validation error",
                    details={"errors": [{"loc": ["body", "recipient_address"], "msg": "Field required"}]},
                ),
            }
        },
    },
    503: {
        "model": ErrorEnvelope,
        "description": "Service unavailable",
        "content": {
            "application/json": {
                "example": _error_example(
                    code="SERVICE_UNAVAILABLE",
                    message="Notification service is not configured",
                ),
            }
        },
    },
}
