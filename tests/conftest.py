from __future__ import annotations

from typing import Any

import pytest

from roomdash.core.config import Settings
from roomdash.main import create_app
from roomdash.runtime.hub import ConnectionHub
from roomdash.runtime.presence import MembershipLedger


class FakeSocket:
    """Stands in for a WebSocket; records every payload sent to it."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, payload: dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("socket is gone")
        self.sent.append(payload)

    def events(self) -> list[str]:
        return [p["event"] for p in self.sent]

    def last(self, event: str) -> dict[str, Any]:
        return [p["data"] for p in self.sent if p["event"] == event][-1]


@pytest.fixture
def ledger() -> MembershipLedger:
    return MembershipLedger()


@pytest.fixture
def hub() -> ConnectionHub:
    return ConnectionHub()


@pytest.fixture
def quiet_settings() -> Settings:
    # Long interval keeps periodic snapshots out of websocket assertions.
    return Settings(_env_file=None, BROADCAST_INTERVAL_SECONDS=3600)


@pytest.fixture
def app(quiet_settings):
    return create_app(quiet_settings)


@pytest.fixture
def make_socket():
    return FakeSocket
