# -*- coding: utf-8 -*-
"""Persistence adapter — JSON buckets on top of a storage area.

Reads never raise: an absent bucket or one holding undecodable text reads as
the empty default. Writes either commit and notify, or raise
:class:`BucketWriteError` leaving the stored text untouched.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from ..errors import BucketWriteError
from ..sync.hub import StorageEvent, SyncHub
from .storage_area import StorageArea

logger = logging.getLogger(__name__)


class PersistenceAdapter:
    def __init__(
        self,
        area: StorageArea,
        hub: Optional[SyncHub] = None,
        *,
        surface_id: Optional[str] = None,
    ) -> None:
        self.area = area
        self.hub = hub
        self.surface_id = surface_id

    # ---- raw text ----

    def read_text(self, name: str) -> Optional[str]:
        return self.area.get_item(name)

    def write_text(self, name: str, value: str) -> None:
        old = self.area.get_item(name)
        self.area.set_item(name, value)
        self._notify(name, value, old)

    def remove_bucket(self, name: str) -> None:
        old = self.area.get_item(name)
        if old is None:
            return
        self.area.remove_item(name)
        self._notify(name, None, old)

    # ---- JSON ----

    def _decode(self, name: str) -> Any:
        raw = self.area.get_item(name)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.debug("Bucket %s holds undecodable text; reading as empty", name)
            return None

    def read_bucket(self, name: str) -> List[Any]:
        data = self._decode(name)
        if not isinstance(data, list):
            if data is not None:
                logger.debug("Bucket %s is not an array; reading as empty", name)
            return []
        return data

    def read_object(self, name: str) -> Optional[Dict[str, Any]]:
        data = self._decode(name)
        return data if isinstance(data, dict) else None

    def _encode(self, name: str, value: Any) -> str:
        try:
            return json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            logger.warning("Abandoning write to %s: %s", name, exc)
            raise BucketWriteError(name, str(exc)) from exc

    def write_bucket(self, name: str, records: List[Any]) -> str:
        text = self._encode(name, list(records))
        self.write_text(name, text)
        return text

    def write_object(self, name: str, value: Dict[str, Any]) -> str:
        text = self._encode(name, dict(value))
        self.write_text(name, text)
        return text

    def _notify(self, name: str, new: Optional[str], old: Optional[str]) -> None:
        if self.hub is None:
            return
        self.hub.publish(
            StorageEvent(key=name, new_value=new, old_value=old, origin=self.surface_id)
        )
