from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import Optional

from roomdash.runtime.hub import ConnectionHub
from roomdash.runtime.presence import DEFAULT_TOP_ROOMS, MembershipLedger
from roomdash.schemas.ws import DashboardUpdateOut, RoomCountOut


logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    moment = moment or _utc_now()
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SnapshotBroadcaster:
    """
    Periodically pushes a dashboard-update to every connection.

    Only reads from the ledger. Every tick sends a full snapshot, whether or
    not anything changed since the previous one.
    """

    def __init__(
        self,
        ledger: MembershipLedger,
        hub: ConnectionHub,
        *,
        interval_seconds: float = 1.0,
        top_limit: int = DEFAULT_TOP_ROOMS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.ledger = ledger
        self.hub = hub
        self.interval_seconds = interval_seconds
        self.top_limit = top_limit
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self) -> DashboardUpdateOut:
        popular = self.ledger.most_popular_room()
        return DashboardUpdateOut(
            total_users=self.ledger.total_connections,
            most_popular_room=RoomCountOut(name=popular.name, count=popular.count),
            room_rankings=[
                RoomCountOut(name=r.name, count=r.count)
                for r in self.ledger.top_rooms(self.top_limit)
            ],
            timestamp=iso_timestamp(),
        )

    async def tick(self) -> DashboardUpdateOut:
        snapshot = self.snapshot()
        await self.hub.broadcast(snapshot)
        return snapshot

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.tick()
            except Exception:
                logger.exception("Dashboard broadcast tick failed")

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._task = asyncio.create_task(self.run(), name="dashboard-broadcaster")
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
