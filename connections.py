"""
WebSocket connection hub.

Owns the live sockets, one outbound queue and writer task per connection, and
the room broadcast scopes. The core talks to it through the synchronous
``emit`` / ``emit_to_room`` API: frames are queued and written by the
connection's writer task, so handlers never wait on the network.
"""

import asyncio
import json
from enum import Enum
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket

from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionHub:
    def __init__(self):
        # Format: {connection_id: websocket}
        self.connections: Dict[str, WebSocket] = {}
        self.outboxes: Dict[str, asyncio.Queue] = {}
        self.writer_tasks: Dict[str, asyncio.Task] = {}
        # Format: {room_id: {connection_id, ...}}
        self.room_scopes: Dict[str, Set[str]] = {}

    def register(self, connection_id: str, websocket: WebSocket):
        self.connections[connection_id] = websocket
        queue: asyncio.Queue = asyncio.Queue()
        self.outboxes[connection_id] = queue
        self.writer_tasks[connection_id] = asyncio.create_task(self._writer(connection_id, websocket, queue))
        logger.debug(f"Registered connection {connection_id} ({len(self.connections)} open)")

    async def unregister(self, connection_id: str):
        self.connections.pop(connection_id, None)
        self.outboxes.pop(connection_id, None)
        for room_id in [room_id for room_id, members in self.room_scopes.items() if connection_id in members]:
            self.leave_room(connection_id, room_id)

        task = self.writer_tasks.pop(connection_id, None)
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.debug(f"Unregistered connection {connection_id} ({len(self.connections)} open)")

    async def _writer(self, connection_id: str, websocket: WebSocket, queue: asyncio.Queue):
        """Drain the connection's outbound queue onto its socket, in order."""
        while True:
            frame = await queue.get()
            try:
                await websocket.send_text(frame)
            except Exception as e:
                # The reader side sees the disconnect and runs the leave protocol
                logger.warning(f"Error sending to connection {connection_id}: {e}")
                return

    def enter_room(self, connection_id: str, room_id: str):
        self.room_scopes.setdefault(room_id, set()).add(connection_id)

    def leave_room(self, connection_id: str, room_id: str):
        members = self.room_scopes.get(room_id)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self.room_scopes[room_id]

    def emit(self, connection_id: str, event: str, data: Optional[Dict[str, Any]] = None):
        queue = self.outboxes.get(connection_id)
        if queue is None:
            logger.debug(f"Dropping {event} for unknown connection {connection_id}")
            return
        name = event.value if isinstance(event, Enum) else event
        queue.put_nowait(json.dumps({"type": name, "data": data if data is not None else {}}))

    def emit_to_room(self, room_id: str, event: str, data: Optional[Dict[str, Any]] = None, skip: Optional[str] = None):
        recipients = [conn_id for conn_id in self.room_scopes.get(room_id, ()) if conn_id != skip]
        logger.debug(f"Broadcasting {event} to {len(recipients)} connections in room {room_id}")
        for conn_id in recipients:
            self.emit(conn_id, event, data)


connection_hub = ConnectionHub()
