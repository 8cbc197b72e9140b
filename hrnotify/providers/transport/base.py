from __future__ import annotations

from typing import Protocol

from hrnotify.domain.models import DeliveryOptions, Template


class Transport(Protocol):
    # Implementations raise on failure; returning normally means the notification was accepted.
    # The queue may call send more than once for the same notification across retries.
    name: str

    async def send(self, recipient: str, template: Template, options: DeliveryOptions | None) -> None:
        ...
