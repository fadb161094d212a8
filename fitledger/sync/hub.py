# -*- coding: utf-8 -*-
"""Storage change notifications.

A write performed by one surface is announced to every *other* surface that
subscribed to the bucket. The writing surface is never notified of its own
write; it is expected to keep the value it just wrote.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class StorageEvent:
    """A single bucket change.

    ``new_value`` is the serialized bucket after the write, or ``None`` when
    the bucket was removed or the publisher chose not to carry it.
    """

    key: str
    new_value: Optional[str]
    old_value: Optional[str] = None
    origin: Optional[str] = None
    occurred_at: str = field(default_factory=_utc_now)

    def decoded(self, default: Any = None) -> Any:
        if self.new_value is None:
            return default
        try:
            return json.loads(self.new_value)
        except ValueError:
            return default

    def to_message(self) -> Dict[str, Any]:
        return {
            "type": "storage",
            "key": self.key,
            "newValue": self.new_value,
            "oldValue": self.old_value,
            "origin": self.origin,
            "timestamp": self.occurred_at,
        }


Listener = Callable[[StorageEvent], None]


class Subscription:
    """Handle returned by :meth:`SyncHub.subscribe`."""

    def __init__(
        self,
        hub: "SyncHub",
        listener: Listener,
        topics: Optional[Iterable[str]],
        surface_id: Optional[str],
    ) -> None:
        self.id = str(uuid4())
        self.hub = hub
        self.listener = listener
        self.topics: Optional[FrozenSet[str]] = frozenset(topics) if topics else None
        self.surface_id = surface_id

    def wants(self, event: StorageEvent) -> bool:
        if self.surface_id is not None and self.surface_id == event.origin:
            return False
        return self.topics is None or event.key in self.topics

    def set_topics(self, topics: Optional[Iterable[str]]) -> None:
        self.topics = frozenset(topics) if topics else None

    def cancel(self) -> None:
        self.hub.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: object) -> None:
        self.cancel()


class SyncHub:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._subscriptions: Dict[str, Subscription] = {}

    def subscribe(
        self,
        listener: Listener,
        topics: Optional[Iterable[str]] = None,
        *,
        surface_id: Optional[str] = None,
    ) -> Subscription:
        """Register ``listener`` for the given bucket names (all buckets when empty)."""
        sub = Subscription(self, listener, topics, surface_id)
        with self._lock:
            self._subscriptions[sub.id] = sub
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.pop(subscription.id, None)

    def publish(self, event: StorageEvent) -> int:
        """Deliver ``event`` synchronously; returns the number of listeners called."""
        with self._lock:
            targets: List[Subscription] = [
                s for s in self._subscriptions.values() if s.wants(event)
            ]
        delivered = 0
        for sub in targets:
            try:
                sub.listener(event)
                delivered += 1
            except Exception:
                logger.exception("Sync listener failed for bucket %s", event.key)
        return delivered

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)
