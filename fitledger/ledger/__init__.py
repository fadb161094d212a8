# -*- coding: utf-8 -*-
"""Ledger domain (records, buckets, conversations)."""

from .conversations import ConversationStore
from .library import FoodLibrary
from .models import (
    Conversation,
    ConversationMessage,
    FoodEntry,
    ProfileRecord,
    RecordKind,
    WaterEntry,
    WeightEntry,
    WorkoutEntry,
)
from .store import ALL_BUCKETS, BUCKETS, LedgerSnapshot, LedgerStore

__all__ = [
    "ALL_BUCKETS",
    "BUCKETS",
    "Conversation",
    "ConversationMessage",
    "ConversationStore",
    "FoodEntry",
    "FoodLibrary",
    "LedgerSnapshot",
    "LedgerStore",
    "ProfileRecord",
    "RecordKind",
    "WaterEntry",
    "WeightEntry",
    "WorkoutEntry",
]
