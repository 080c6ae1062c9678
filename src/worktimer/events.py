"""Typed change events passed between the owning contexts.

Producers put events on an :class:`EventChannel`; the sync engine drains it
from its own context instead of reacting inside observer callbacks.
"""
from __future__ import annotations

import queue
from dataclasses import dataclass
from typing import Optional, Union

from .policy.model import Policy
from .sync.status import SyncStatus


@dataclass(frozen=True)
class RemoteChangeDetected:
    """Push notification from the remote peer (subscription fired)."""

    subscription_id: Optional[str] = None


@dataclass(frozen=True)
class PolicyChanged:
    previous: Policy
    current: Policy


@dataclass(frozen=True)
class SyncStatusChanged:
    status: SyncStatus


Event = Union[RemoteChangeDetected, PolicyChanged, SyncStatusChanged]


class EventChannel:
    """Thread-safe FIFO of events."""

    def __init__(self, maxsize: int = 0):
        self._queue: "queue.Queue[Event]" = queue.Queue(maxsize=maxsize)

    def publish(self, event: Event) -> None:
        self._queue.put_nowait(event)

    def drain(self) -> list[Event]:
        items: list[Event] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items
