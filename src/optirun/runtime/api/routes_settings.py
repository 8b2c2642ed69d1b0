"""Settings route registration for the runtime API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from ..config import UserSettings, load_user_settings, save_user_settings
from .deps import RouteDeps
from .schemas import SettingsRequest


def _settings_payload(settings: UserSettings) -> dict[str, Any]:
    return {
        "api_key_configured": bool(settings.api_key),
        "model_id": settings.model_id,
        "command_prefix": settings.command_prefix,
        "system_instruction": settings.system_instruction,
    }


def register_settings_routes(router: APIRouter, deps: RouteDeps) -> None:
    """Register user settings routes."""
    @router.get("/settings")
    async def get_settings() -> dict[str, Any]:
        """Return current settings; the API key itself is never echoed."""
        return {"settings": _settings_payload(load_user_settings(deps.resolve_container().settings))}

    @router.put("/settings")
    async def update_settings(body: SettingsRequest) -> dict[str, Any]:
        """Apply a partial settings update."""
        settings = save_user_settings(deps.resolve_container().settings, body.model_dump())
        return {"settings": _settings_payload(settings)}
