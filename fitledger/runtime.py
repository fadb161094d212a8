# -*- coding: utf-8 -*-
"""Process-wide ledger runtime.

Built once per process: the storage area and the sync hub are shared, while
each surface (browser tab, websocket client, request) gets its own adapter
tagged with its surface id so its writes are not echoed back to it.
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Any, Callable, Iterable, List, Optional, Union

from pydantic import ValidationError

from .commands.processor import CommandProcessor
from .config import Settings, settings
from .ledger.conversations import ConversationStore
from .ledger.library import FoodLibrary
from .ledger.models import RECORD_MODELS, RecordKind
from .ledger.store import BUCKET_KINDS, BUCKETS, LedgerStore, kind_of, record_day
from .persistence.adapter import PersistenceAdapter
from .persistence.storage_area import FileStorageArea, MemoryStorageArea, StorageArea
from .sync.hub import StorageEvent, Subscription, SyncHub

logger = logging.getLogger(__name__)


def build_storage_area(cfg: Settings) -> StorageArea:
    if cfg.storage_backend == "memory":
        return MemoryStorageArea()
    if cfg.storage_backend == "file":
        return FileStorageArea(cfg.data_root / "ledger")
    raise ValueError(f"Unknown storage backend: {cfg.storage_backend!r}")


class LedgerSurface:
    """What one UI surface holds: a store bound to its surface id, plus watching."""

    def __init__(self, runtime: "LedgerRuntime", surface_id: Optional[str] = None) -> None:
        self.runtime = runtime
        self.surface_id = surface_id
        self.adapter = runtime.adapter(surface_id)
        self.store = LedgerStore(self.adapter, tz=runtime.tz)
        self.conversations = ConversationStore(self.adapter)
        self.library = FoodLibrary(self.adapter)
        self.commands = CommandProcessor(self.store)

    def watch(
        self,
        kinds: Iterable[Union[RecordKind, str]],
        on_change: Callable[[RecordKind, List[Any]], None],
    ) -> Subscription:
        """Call ``on_change(kind, records)`` when another surface changes one of ``kinds``.

        Uses the value carried by the notification when present and re-reads
        the bucket otherwise.
        """
        wanted = [kind_of(k) for k in kinds]
        topics = [BUCKETS[k] for k in wanted]

        def _listener(event: StorageEvent) -> None:
            kind = BUCKET_KINDS[event.key]
            if event.new_value is not None:
                raw = event.decoded(default=[])
                model_cls = RECORD_MODELS[kind]
                records = []
                for item in raw if isinstance(raw, list) else []:
                    try:
                        records.append(model_cls.model_validate(item))
                    except ValidationError:
                        continue
                if kind is RecordKind.weight:
                    records = sorted(records, key=lambda r: record_day(r, self.runtime.tz) or "")
            elif kind is RecordKind.weight:
                records = self.store.weight_history()
            else:
                records = self.store.list_all(kind)
            on_change(kind, records)

        return self.runtime.hub.subscribe(_listener, topics, surface_id=self.surface_id)

    def watch_buckets(
        self,
        names: Iterable[str],
        on_event: Callable[[StorageEvent], None],
    ) -> Subscription:
        return self.runtime.hub.subscribe(on_event, list(names), surface_id=self.surface_id)


class LedgerRuntime:
    def __init__(
        self,
        area: StorageArea,
        *,
        hub: Optional[SyncHub] = None,
        tz: Optional[tzinfo] = None,
        water_goal_ml: float = 2000.0,
    ) -> None:
        self.area = area
        self.hub = hub or SyncHub()
        self.tz = tz
        self.water_goal_ml = water_goal_ml

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "LedgerRuntime":
        area = build_storage_area(cfg)
        logger.info("Ledger storage: %s", type(area).__name__)
        return cls(area, tz=cfg.local_zone(), water_goal_ml=cfg.water_goal_ml)

    def adapter(self, surface_id: Optional[str] = None) -> PersistenceAdapter:
        return PersistenceAdapter(self.area, self.hub, surface_id=surface_id)

    def surface(self, surface_id: Optional[str] = None) -> LedgerSurface:
        return LedgerSurface(self, surface_id)

    def store(self, surface_id: Optional[str] = None) -> LedgerStore:
        return LedgerStore(self.adapter(surface_id), tz=self.tz)


_runtime: Optional[LedgerRuntime] = None


def get_runtime() -> LedgerRuntime:
    global _runtime
    if _runtime is None:
        _runtime = LedgerRuntime.from_settings(settings)
    return _runtime


def set_runtime(runtime: Optional[LedgerRuntime]) -> None:
    """Replace the process runtime (tests, embedding)."""
    global _runtime
    _runtime = runtime
