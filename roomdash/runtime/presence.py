from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Set


NO_ROOM_NAME = "None"
DEFAULT_TOP_ROOMS = 5


class LedgerError(Exception):
    """Base class for caller errors reported by the membership ledger."""


class InvalidRoomNameError(LedgerError, ValueError):
    pass


class UnknownConnectionError(LedgerError, KeyError):
    pass


class DuplicateConnectionError(LedgerError):
    pass


@dataclass(frozen=True)
class Occupancy:
    """Room occupancy after a join or leave (count may be 0 after a leave)."""
    room: str
    count: int


@dataclass(frozen=True)
class RoomCount:
    name: str
    count: int


class MembershipLedger:
    """
    In-memory record of which connection sits in which room.

    The ledger is the only writer of room state. Every method is synchronous,
    so on a single event loop a mutation always completes before another
    handler or a broadcaster tick can observe the state.

    Iteration order of the occupancy map is the order in which rooms were
    created; ranking ties resolve to the room created first. A room that
    empties is deleted and goes to the back of the order if re-created.
    """

    def __init__(self) -> None:
        self._connections: Set[str] = set()
        # room -> occupant count, never 0
        self._room_occupancy: Dict[str, int] = {}
        # conn_id -> room
        self._connection_room: Dict[str, str] = {}
        # room -> conn_ids, kept in step with _room_occupancy
        self._room_members: Dict[str, Set[str]] = {}

    # ---- connections ----

    @property
    def total_connections(self) -> int:
        return len(self._connections)

    def is_registered(self, conn_id: str) -> bool:
        return conn_id in self._connections

    def register_connection(self, conn_id: str) -> int:
        """Record a newly opened connection and return the new total."""
        if conn_id in self._connections:
            raise DuplicateConnectionError(f"connection {conn_id} already registered")
        self._connections.add(conn_id)
        return self.total_connections

    def unregister_connection(self, conn_id: str) -> Optional[Occupancy]:
        """
        Forget a connection, vacating its room first.

        Returns the vacated room's occupancy, or None if it held no room.
        """
        self._require(conn_id)
        vacated = self._vacate(conn_id)
        self._connections.discard(conn_id)
        return vacated

    # ---- rooms ----

    def join(self, conn_id: str, room_name: str) -> Occupancy:
        joined, _previous = self.join_with_previous(conn_id, room_name)
        return joined

    def join_with_previous(
        self, conn_id: str, room_name: str
    ) -> tuple[Occupancy, Optional[Occupancy]]:
        """
        Move a connection into room_name, leaving its current room if any.

        Returns (joined room occupancy, previous room occupancy or None).
        """
        if not isinstance(room_name, str) or not room_name.strip():
            raise InvalidRoomNameError("room name must be a non-empty string")
        self._require(conn_id)

        previous = self._vacate(conn_id)
        self._connection_room[conn_id] = room_name
        self._room_members.setdefault(room_name, set()).add(conn_id)
        self._room_occupancy[room_name] = self._room_occupancy.get(room_name, 0) + 1
        return Occupancy(room=room_name, count=self._room_occupancy[room_name]), previous

    def leave(self, conn_id: str) -> Optional[Occupancy]:
        return self._vacate(conn_id)

    def _vacate(self, conn_id: str) -> Optional[Occupancy]:
        room = self._connection_room.pop(conn_id, None)
        if room is None:
            return None

        remaining = self._room_occupancy.get(room, 0) - 1
        if remaining > 0:
            self._room_occupancy[room] = remaining
            self._room_members[room].discard(conn_id)
        else:
            self._room_occupancy.pop(room, None)
            self._room_members.pop(room, None)
            remaining = 0
        return Occupancy(room=room, count=remaining)

    def _require(self, conn_id: str) -> None:
        if conn_id not in self._connections:
            raise UnknownConnectionError(conn_id)

    # ---- reads ----

    def room_of(self, conn_id: str) -> Optional[str]:
        return self._connection_room.get(conn_id)

    def occupancy(self, room_name: str) -> int:
        return self._room_occupancy.get(room_name, 0)

    def occupants(self, room_name: str) -> List[str]:
        return list(self._room_members.get(room_name, ()))

    def rooms(self) -> Dict[str, int]:
        return dict(self._room_occupancy)

    def most_popular_room(self) -> RoomCount:
        best = RoomCount(name=NO_ROOM_NAME, count=0)
        for name, count in self._room_occupancy.items():
            if count > best.count:
                best = RoomCount(name=name, count=count)
        return best

    def top_rooms(self, limit: int = DEFAULT_TOP_ROOMS) -> List[RoomCount]:
        # sorted() is stable, so equal counts keep creation order
        ranked = sorted(self._room_occupancy.items(), key=lambda item: item[1], reverse=True)
        return [RoomCount(name=name, count=count) for name, count in ranked[:limit]]
