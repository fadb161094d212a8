# -*- coding: utf-8 -*-
"""
Cross-surface sync

Publish/subscribe over storage change notifications (topic = bucket name),
relayed to browser surfaces over a WebSocket.
"""

from .hub import StorageEvent, Subscription, SyncHub

__all__ = [
    'StorageEvent',
    'Subscription',
    'SyncHub',
]
