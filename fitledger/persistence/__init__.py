# -*- coding: utf-8 -*-
"""Persistence adapter over a synchronous key-value storage area."""

from .adapter import PersistenceAdapter
from .storage_area import FileStorageArea, MemoryStorageArea, StorageArea

__all__ = [
    "FileStorageArea",
    "MemoryStorageArea",
    "PersistenceAdapter",
    "StorageArea",
]
