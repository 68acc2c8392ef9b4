from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from fastapi import WebSocket

from roomdash.runtime.hub import ConnectionHub
from roomdash.runtime.presence import (
    InvalidRoomNameError,
    LedgerError,
    MembershipLedger,
    Occupancy,
)
from roomdash.schemas.ws import ConnectedOut, RoomJoinedOut, RoomUpdateOut


logger = logging.getLogger(__name__)


class ConnectionLifecycle:
    """
    Turns connect / join / leave / disconnect signals into ledger mutations
    and sends the matching acknowledgements.

    Ledger caller errors are logged here and never propagate to the socket
    loop.
    """

    def __init__(self, ledger: MembershipLedger, hub: ConnectionHub):
        self.ledger = ledger
        self.hub = hub

    async def connect(self, websocket: WebSocket, conn_id: Optional[str] = None) -> str:
        conn_id = conn_id or str(uuid.uuid4())
        total = self.ledger.register_connection(conn_id)
        self.hub.add(conn_id, websocket)
        logger.info("User connected: %s. Total users: %d", conn_id, total)

        await self.hub.send(conn_id, ConnectedOut(user_id=conn_id))
        return conn_id

    async def join(self, conn_id: str, room_name: Any) -> Optional[Occupancy]:
        try:
            joined, previous = self.ledger.join_with_previous(conn_id, room_name)
        except InvalidRoomNameError:
            logger.debug("Ignoring join with empty room name from %s", conn_id)
            return None
        except LedgerError as exc:
            logger.warning("Join rejected for %s: %r", conn_id, exc)
            return None

        logger.info(
            "User %s joined room: %s. Room count: %d", conn_id, joined.room, joined.count
        )

        if previous is not None and previous.room != joined.room:
            await self._notify_room(previous)

        await self.hub.send(conn_id, RoomJoinedOut(room=joined.room, user_count=joined.count))
        await self._notify_room(joined)
        return joined

    async def leave(self, conn_id: str) -> Optional[Occupancy]:
        vacated = self.ledger.leave(conn_id)
        if vacated is None:
            return None

        logger.info("User %s left room: %s", conn_id, vacated.room)
        await self._notify_room(vacated)
        return vacated

    async def disconnect(self, conn_id: str) -> Optional[Occupancy]:
        self.hub.remove(conn_id)

        vacated = self.ledger.leave(conn_id)
        try:
            self.ledger.unregister_connection(conn_id)
        except LedgerError as exc:
            logger.warning("Disconnect for unregistered connection %s: %r", conn_id, exc)
        else:
            logger.info(
                "User disconnected: %s. Total users: %d", conn_id, self.ledger.total_connections
            )

        if vacated is not None:
            logger.info("User %s left room: %s", conn_id, vacated.room)
            await self._notify_room(vacated)
        return vacated

    async def _notify_room(self, occupancy: Occupancy) -> None:
        """Send room-update to whoever is still in the room."""
        members = self.ledger.occupants(occupancy.room)
        if not members:
            return
        await self.hub.send_many(
            members, RoomUpdateOut(room=occupancy.room, user_count=occupancy.count)
        )
