from __future__ import annotations

from typing import Any, ClassVar, List
from pydantic import BaseModel, ConfigDict, Field


# ---- client -> server ----

class ClientFrameIn(BaseModel):
    """Envelope of every inbound frame: {"event": ..., "data": ...}."""
    event: str
    data: Any = None


# ---- server -> clients ----

class ServerEventOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event: ClassVar[str]


class ConnectedOut(ServerEventOut):
    event: ClassVar[str] = "connected"
    user_id: str = Field(alias="userId")


class RoomJoinedOut(ServerEventOut):
    event: ClassVar[str] = "room-joined"
    room: str
    user_count: int = Field(alias="userCount")


class RoomUpdateOut(ServerEventOut):
    event: ClassVar[str] = "room-update"
    room: str
    user_count: int = Field(alias="userCount")


class RoomCountOut(BaseModel):
    name: str
    count: int


class DashboardUpdateOut(ServerEventOut):
    event: ClassVar[str] = "dashboard-update"
    total_users: int = Field(alias="totalUsers")
    most_popular_room: RoomCountOut = Field(alias="mostPopularRoom")
    room_rankings: List[RoomCountOut] = Field(default_factory=list, alias="roomRankings")
    timestamp: str  # ISO-8601, UTC, millisecond precision


