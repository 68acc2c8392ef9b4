from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from roomdash.schemas.ws import ServerEventOut


logger = logging.getLogger(__name__)


def encode_event(model: ServerEventOut) -> Dict[str, Any]:
    """Wrap an outbound model in the {"event", "data"} envelope."""
    return {"event": model.event, "data": jsonable_encoder(model, by_alias=True)}


class ConnectionHub:
    """
    Live sockets keyed by connection id.

    Delivery is fire-and-forget: a socket whose send fails is dropped from the
    hub and the failure goes no further.
    """

    def __init__(self) -> None:
        self._sockets: Dict[str, WebSocket] = {}

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._sockets

    def add(self, conn_id: str, websocket: WebSocket) -> None:
        self._sockets[conn_id] = websocket

    def remove(self, conn_id: str) -> Optional[WebSocket]:
        return self._sockets.pop(conn_id, None)

    def connection_ids(self) -> list[str]:
        return list(self._sockets)

    async def send(self, conn_id: str, model: ServerEventOut) -> bool:
        return await self._deliver(conn_id, encode_event(model))

    async def send_many(self, conn_ids: Iterable[str], model: ServerEventOut) -> int:
        payload = encode_event(model)
        delivered = 0
        for conn_id in list(conn_ids):
            if await self._deliver(conn_id, payload):
                delivered += 1
        return delivered

    async def broadcast(self, model: ServerEventOut) -> int:
        """Send to every connection currently in the hub."""
        return await self.send_many(self.connection_ids(), model)

    async def _deliver(self, conn_id: str, payload: Dict[str, Any]) -> bool:
        ws = self._sockets.get(conn_id)
        if ws is None:
            return False
        try:
            await ws.send_json(payload)
        except Exception:
            logger.debug("Dropping unreachable connection %s", conn_id)
            self._sockets.pop(conn_id, None)
            return False
        return True
