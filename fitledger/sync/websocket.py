# -*- coding: utf-8 -*-
"""
Sync WebSocket module

Relays storage change notifications to browser surfaces and accepts topic
changes and pings from them.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from fastapi import WebSocket, WebSocketDisconnect

from ..ledger.store import ALL_BUCKETS
from ..runtime import get_runtime
from .hub import StorageEvent, Subscription

logger = logging.getLogger(__name__)


def _known_topics(topics: Optional[Iterable[Any]]) -> List[str]:
    if not topics:
        return []
    return [str(t) for t in topics if str(t) in ALL_BUCKETS]


@dataclass
class SyncConnection:
    connection_id: str
    surface_id: str
    websocket: WebSocket
    subscription: Subscription
    outbox: "asyncio.Queue[Dict[str, Any]]"


class SyncConnectionManager:
    """Active sync connections, one hub subscription each."""

    def __init__(self) -> None:
        self.active_connections: Dict[str, SyncConnection] = {}

    async def connect(
        self,
        websocket: WebSocket,
        surface_id: Optional[str] = None,
        topics: Optional[Iterable[str]] = None,
    ) -> SyncConnection:
        await websocket.accept()

        surface_id = surface_id or uuid4().hex
        loop = asyncio.get_running_loop()
        outbox: asyncio.Queue[Dict[str, Any]] = asyncio.Queue()

        # Writes may come from threadpool workers (sync endpoints).
        def _listener(event: StorageEvent) -> None:
            loop.call_soon_threadsafe(outbox.put_nowait, event.to_message())

        subscription = get_runtime().hub.subscribe(
            _listener, _known_topics(topics) or None, surface_id=surface_id
        )
        conn = SyncConnection(
            connection_id=str(uuid4()),
            surface_id=surface_id,
            websocket=websocket,
            subscription=subscription,
            outbox=outbox,
        )
        self.active_connections[conn.connection_id] = conn
        logger.info("Sync connected: %s (surface %s)", conn.connection_id, surface_id)

        await outbox.put({
            "type": "connected",
            "surface_id": surface_id,
            "topics": sorted(subscription.topics) if subscription.topics else list(ALL_BUCKETS),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        return conn

    def disconnect(self, connection_id: str) -> None:
        conn = self.active_connections.pop(connection_id, None)
        if conn is None:
            return
        conn.subscription.cancel()
        logger.info("Sync disconnected: %s", connection_id)

    def handle_client_message(self, conn: SyncConnection, raw: str) -> Dict[str, Any]:
        """Reply for one client frame."""
        try:
            data = json.loads(raw)
        except ValueError:
            return {"type": "error", "message": "Invalid JSON"}
        if not isinstance(data, dict):
            return {"type": "error", "message": "Expected a JSON object"}

        kind = data.get("type")
        if kind == "ping":
            return {"type": "pong", "timestamp": datetime.now(timezone.utc).isoformat()}
        if kind == "subscribe":
            topics = data.get("topics")
            wanted = _known_topics(topics if isinstance(topics, list) else None)
            conn.subscription.set_topics(wanted or None)
            return {"type": "subscribed", "topics": wanted or list(ALL_BUCKETS)}
        return {"type": "error", "message": f"Unknown message type: {kind!r}"}

    async def pump(self, conn: SyncConnection) -> None:
        """Send queued messages in order until cancelled."""
        while True:
            message = await conn.outbox.get()
            await conn.websocket.send_json(message)


sync_manager = SyncConnectionManager()


async def sync_websocket_endpoint(
    websocket: WebSocket,
    surface_id: Optional[str] = None,
    topics: Optional[str] = None,
):
    """WebSocket endpoint: ``topics`` is a comma-separated list of bucket names."""
    wanted = [t.strip() for t in topics.split(",")] if topics else None
    conn = await sync_manager.connect(websocket, surface_id, wanted)

    async def _receive() -> None:
        while True:
            raw = await websocket.receive_text()
            await conn.outbox.put(sync_manager.handle_client_message(conn, raw))

    sender = asyncio.create_task(sync_manager.pump(conn))
    receiver = asyncio.create_task(_receive())
    try:
        # Whichever side stops first ends the connection.
        done, _ = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = None if task.cancelled() else task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error("Sync WebSocket error: %s", exc)
    finally:
        sender.cancel()
        receiver.cancel()
        await asyncio.gather(sender, receiver, return_exceptions=True)
        sync_manager.disconnect(conn.connection_id)
