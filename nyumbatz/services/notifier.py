"""Landlord-scoped WebSocket fan-out for inquiry events."""

from __future__ import annotations

import logging

from fastapi import WebSocket

from nyumbatz.schemas import WSMessage

logger = logging.getLogger(__name__)


class InquiryNotifier:
    def __init__(self):
        self._connections: dict[str, list[WebSocket]] = {}

    def connection_count(self, landlord_id: str) -> int:
        return len(self._connections.get(landlord_id, []))

    async def connect(self, landlord_id: str, websocket: WebSocket):
        await websocket.accept()
        self._connections.setdefault(landlord_id, []).append(websocket)
        logger.debug("Landlord %s connected (%d open)", landlord_id, self.connection_count(landlord_id))

    def disconnect(self, landlord_id: str, websocket: WebSocket):
        conns = self._connections.get(landlord_id, [])
        if websocket in conns:
            conns.remove(websocket)
        if not conns:
            self._connections.pop(landlord_id, None)

    async def broadcast(self, message: WSMessage) -> int:
        """Send ``message`` to every socket of its landlord; returns deliveries."""
        conns = self._connections.get(message.landlord_id, [])
        payload = message.model_dump_json()
        dead = []
        sent = 0
        for ws in list(conns):
            try:
                await ws.send_text(payload)
                sent += 1
            except Exception as e:
                logger.debug("Dropping socket for landlord %s: %s", message.landlord_id, e)
                dead.append(ws)
        for ws in dead:
            self.disconnect(message.landlord_id, ws)
        return sent
