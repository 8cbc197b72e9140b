from __future__ import annotations

import copy
from typing import Iterable

from hrnotify.domain.models import QueueItem


class StatusRegistry:
    """Addressable view of every item a queue has ever accepted.

    Records are kept for the lifetime of the process. Lookups return detached
    copies so callers can never mutate the live record owned by the drain loop.
    """

    def __init__(self) -> None:
        self._items: dict[str, QueueItem] = {}

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def register(self, item: QueueItem) -> None:
        if item.id in self._items:
            raise ValueError(f"Notification id already issued: {item.id}")
        self._items[item.id] = item

    def get(self, item_id: str) -> QueueItem | None:
        item = self._items.get(item_id)
        if item is None:
            return None
        return snapshot_item(item)

    def counts_by_status(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for item in self._items.values():
            counts[item.status.value] = counts.get(item.status.value, 0) + 1
        return counts


def snapshot_item(item: QueueItem) -> QueueItem:
    # Template and options are frozen, so a shallow copy fully detaches the record.
    return copy.copy(item)


def snapshot_items(items: Iterable[QueueItem]) -> list[QueueItem]:
    return [snapshot_item(item) for item in items]
