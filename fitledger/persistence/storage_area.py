# -*- coding: utf-8 -*-
"""Key-value storage areas — text in, text out, synchronous."""

from __future__ import annotations

import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")


class StorageArea:
    """Minimal interface shared by every backend (browser-storage semantics)."""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError

    def clear(self) -> None:
        for key in self.keys():
            self.remove_item(key)


class MemoryStorageArea(StorageArea):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = threading.RLock()
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._items)


class FileStorageArea(StorageArea):
    """One ``<key>.json`` file per key under ``root``.

    Each write goes to a temp file and is moved into place, so readers in
    other processes see either the old or the new text, never a torn file.
    """

    suffix = ".json"

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self._lock = threading.RLock()

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key or ""):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}{self.suffix}"

    def _ensure_dir(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def get_item(self, key: str) -> Optional[str]:
        fp = self._path(key)
        with self._lock:
            try:
                return fp.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None

    def set_item(self, key: str, value: str) -> None:
        fp = self._path(key)
        with self._lock:
            self._ensure_dir()
            fd, tmp = tempfile.mkstemp(prefix=f".{key}.", dir=str(self.root))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp, fp)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise

    def remove_item(self, key: str) -> None:
        fp = self._path(key)
        with self._lock:
            fp.unlink(missing_ok=True)

    def keys(self) -> List[str]:
        if not self.root.exists():
            return []
        with self._lock:
            return sorted(
                fp.name[: -len(self.suffix)]
                for fp in self.root.glob(f"*{self.suffix}")
                if not fp.name.startswith(".")
            )
