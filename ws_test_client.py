#!/usr/bin/env python3
"""
WebSocket Test Client for the roomdash server

Usage:
    python ws_test_client.py <server_url>

Examples:
    python ws_test_client.py ws://localhost:3000
    python ws_test_client.py wss://your-server.com

Commands (while connected):
    /join <room>   join (or switch to) a room
    /leave         leave the current room
    /quiet         toggle printing of dashboard-update frames
    quit | exit    disconnect
"""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime
from typing import Any

import websockets


def format_timestamp(ts: str) -> str:
    try:
        dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return str(ts)
    return dt.strftime("%H:%M:%S")


def parse_command(line: str) -> dict[str, Any] | None:
    """Turn a typed command into an outbound frame, or None if it isn't one."""
    line = line.strip()
    if line.startswith("/join"):
        room = line[len("/join"):].strip()
        if not room:
            return None
        return {"event": "join-room", "data": room}
    if line == "/leave":
        return {"event": "leave-room"}
    return None


def format_event(frame: dict[str, Any]) -> str:
    """Render a server frame as a short human-readable block."""
    event = frame.get("event", "unknown")
    data = frame.get("data") or {}

    if event == "connected":
        return f"🔗 CONNECTED as {data.get('userId', 'N/A')}"

    if event == "room-joined":
        return f"🚪 JOINED {data.get('room')} ({data.get('userCount')} user(s))"

    if event == "room-update":
        return f"👥 ROOM UPDATE {data.get('room')}: {data.get('userCount')} user(s)"

    if event == "dashboard-update":
        popular = data.get("mostPopularRoom", {})
        lines = [
            f"📊 DASHBOARD [{format_timestamp(data.get('timestamp', ''))}]",
            f"   Online users: {data.get('totalUsers', '?')}",
            f"   Most popular: {popular.get('name', 'None')} ({popular.get('count', 0)})",
        ]
        for idx, room in enumerate(data.get("roomRankings", []), start=1):
            lines.append(f"   {idx}. {room.get('name')} - {room.get('count')} users")
        return "\n".join(lines)

    return f"📨 UNKNOWN EVENT: {event}\n   {json.dumps(frame, indent=2, default=str)}"


class ClientState:
    def __init__(self) -> None:
        self.quiet = False


async def receive_messages(websocket, state: ClientState) -> None:
    """Task to continuously receive and print frames."""
    try:
        async for message in websocket:
            try:
                frame = json.loads(message)
            except json.JSONDecodeError:
                print(f"\n⚠️  Received non-JSON message: {message}")
                continue
            if state.quiet and frame.get("event") == "dashboard-update":
                continue
            print()
            print(format_event(frame))
            print("[You] > ", end="", flush=True)
    except websockets.exceptions.ConnectionClosed as e:
        print(f"\n❌ Connection closed: {e}")


async def send_messages(websocket, state: ClientState) -> None:
    """Task to read user input and send room commands."""
    loop = asyncio.get_running_loop()

    print("\n✅ Connected! Use /join <room>, /leave, /quiet.")
    print("   Type 'quit' or 'exit' to disconnect.\n")

    while True:
        print("[You] > ", end="", flush=True)
        user_input = (await loop.run_in_executor(None, sys.stdin.readline)).strip()

        if not user_input:
            continue

        if user_input.lower() in ("quit", "exit"):
            print("👋 Disconnecting...")
            await websocket.close()
            break

        if user_input == "/quiet":
            state.quiet = not state.quiet
            print(f"   dashboard updates {'hidden' if state.quiet else 'shown'}")
            continue

        frame = parse_command(user_input)
        if frame is None:
            print("   ⚠️  Unknown command")
            continue

        try:
            await websocket.send(json.dumps(frame))
        except websockets.exceptions.ConnectionClosed:
            print("\n❌ Connection was closed")
            break
        print(f"   ✓ Sent: {frame['event']}")


async def main(server_url: str) -> None:
    ws_url = f"{server_url}/ws"

    print(f"🔌 Connecting to: {ws_url}")
    print("-" * 60)

    state = ClientState()
    try:
        async with websockets.connect(ws_url) as websocket:
            receive_task = asyncio.create_task(receive_messages(websocket, state))
            send_task = asyncio.create_task(send_messages(websocket, state))

            done, pending = await asyncio.wait(
                [receive_task, send_task],
                return_when=asyncio.FIRST_COMPLETED,
            )

            for task in pending:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    except websockets.exceptions.InvalidHandshake as e:
        print(f"❌ Handshake failed: {e}")
    except websockets.exceptions.InvalidURI as e:
        print(f"❌ Invalid URI: {e}")
        print("   Make sure the server URL starts with ws:// or wss://")
    except ConnectionRefusedError:
        print("❌ Connection refused. Is the server running?")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        print(f"Usage: python {sys.argv[0]} <server_url>")
        sys.exit(1)

    server_url = sys.argv[1].rstrip("/")
    if not server_url.startswith(("ws://", "wss://")):
        print("⚠️  Warning: URL should start with ws:// or wss://")
        server_url = f"ws://{server_url}"

    try:
        asyncio.run(main(server_url))
    except KeyboardInterrupt:
        print("\n\n👋 Interrupted by user. Goodbye!")
        sys.exit(0)
