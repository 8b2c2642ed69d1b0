"""Shared dependency context for session API route registration."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..orchestrator.session import SessionOrchestrator
from ..storage.container import Container


@dataclass(frozen=True)
class RouteDeps:
    """Route registration dependency bundle."""

    resolve_container: Callable[[], Container]
    resolve_orchestrator: Callable[[], SessionOrchestrator]
