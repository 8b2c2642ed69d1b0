"""Pydantic request schemas for session API routes."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class RunRequest(BaseModel):
    """Payload for starting a solver run."""

    script_path: str = ""
    args_text: str = ""


class FocusRequest(BaseModel):
    """Optional focus question sent with analysis and preview requests."""

    focus_point: Optional[str] = None


class SettingsRequest(BaseModel):
    """Patch payload for user settings; blank strings clear a value."""

    api_key: Optional[str] = None
    model_id: Optional[str] = None
    command_prefix: Optional[str] = None
    system_instruction: Optional[str] = None
