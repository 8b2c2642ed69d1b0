"""Event bus that fans session events out to listeners and websocket clients."""

from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Optional

from ..domain.models import now_iso
from .ws import WebSocketHub, hub as default_hub

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], None]


class EventBus:
    """Publish session events to in-process listeners and the websocket hub."""
    def __init__(self, project_id: str = "", ws_hub: Optional[WebSocketHub] = None) -> None:
        """Initialize the EventBus.

        Args:
            project_id (str): Identifier stamped on every event.
            ws_hub (Optional[WebSocketHub]): Hub for websocket fan-out; ``None``
                uses the process-wide hub.
        """
        self._project_id = project_id
        self._hub = ws_hub if ws_hub is not None else default_hub
        self._listeners: list[Listener] = []
        self._seq = itertools.count(1)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def emit(self, *, channel: str, event_type: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Build an event and deliver it to every subscriber.

        Args:
            channel (str): Channel for this call.
            event_type (str): Event type for this call.
            payload (dict[str, Any]): Serialized payload consumed by this operation.

        Returns:
            dict[str, Any]: The delivered event.
        """
        event = {
            "id": next(self._seq),
            "channel": channel,
            "type": event_type,
            "project_id": self._project_id,
            "payload": payload,
            "created_at": now_iso(),
        }
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.debug("Event listener failed for %s", event_type, exc_info=True)
        self._hub.publish_sync(event)
        return event
