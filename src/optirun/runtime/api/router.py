"""FastAPI router assembly for session control."""

from __future__ import annotations

from fastapi import APIRouter

from .deps import RouteDeps
from .routes_history import register_history_routes
from .routes_session import register_session_routes
from .routes_settings import register_settings_routes


def create_router(deps: RouteDeps) -> APIRouter:
    """Build the ``/api`` router with session, history and settings routes."""
    router = APIRouter(prefix="/api", tags=["session"])
    register_session_routes(router, deps)
    register_history_routes(router, deps)
    register_settings_routes(router, deps)
    return router
