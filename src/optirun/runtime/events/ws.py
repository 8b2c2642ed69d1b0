"""Websocket fan-out of session events to console clients."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


CHANNELS = frozenset({"session", "history", "system"})


@dataclass
class _Console:
    ws: WebSocket
    channels: set[str] = field(default_factory=set)


def _system(event_type: str, **payload: Any) -> dict[str, Any]:
    return {"channel": "system", "type": event_type, "payload": payload}


class WebSocketHub:
    """Track connected consoles and the channels each one listens to.

    Events must be published from the server's event loop.
    """
    def __init__(self) -> None:
        self._consoles: dict[int, _Console] = {}
        self._pending: set[asyncio.Task[None]] = set()
        self._seq = 0

    def _reply(self, subscribed: set[str], message: Any) -> Optional[dict[str, Any]]:
        if not isinstance(message, dict):
            return None
        action = message.get("action")
        requested = {str(c) for c in message.get("channels") or []}
        if action == "subscribe":
            subscribed |= requested & CHANNELS
            return _system("subscribed", channels=sorted(subscribed))
        if action == "unsubscribe":
            subscribed -= requested
            return _system("unsubscribed", channels=sorted(subscribed))
        if action == "ping":
            return _system("pong")
        return None

    async def handle_connection(self, websocket: WebSocket) -> None:
        """Serve one console until it disconnects."""
        await websocket.accept()
        console = _Console(ws=websocket)
        self._consoles[id(websocket)] = console
        try:
            await websocket.send_json(_system("connected", channels=sorted(CHANNELS)))
            while True:
                reply = self._reply(console.channels, await websocket.receive_json())
                if reply is not None:
                    await websocket.send_json(reply)
        except Exception:
            logger.debug("WebSocket client disconnected", exc_info=True)
        finally:
            self._consoles.pop(id(websocket), None)

    async def publish(self, event: dict[str, Any]) -> None:
        """Send ``event`` to every console subscribed to its channel."""
        self._seq += 1
        message = {**event, "seq": self._seq}
        channel = event.get("channel")
        for console in list(self._consoles.values()):
            if channel != "system" and channel not in console.channels:
                continue
            try:
                await console.ws.send_json(message)
            except Exception:
                logger.debug("Dropping unreachable websocket client", exc_info=True)
                self._consoles.pop(id(console.ws), None)

    def publish_sync(self, event: dict[str, Any]) -> None:
        """Schedule ``publish`` on the running loop; a no-op without consoles."""
        if not self._consoles:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; dropping %s", event.get("type"))
            return
        task = loop.create_task(self.publish(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)


hub = WebSocketHub()
