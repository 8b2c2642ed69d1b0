"""Resolve user settings into the values the session orchestrator needs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .domain.models import DEFAULT_COMMAND_PREFIX, DEFAULT_MODEL_ID, AnalysisConfig
from .storage.interfaces import SettingsStore

API_KEY = "api_key"
MODEL_ID = "model_id"
COMMAND_PREFIX = "command_prefix"
SYSTEM_INSTRUCTION = "system_instruction"

SETTING_KEYS = (API_KEY, MODEL_ID, COMMAND_PREFIX, SYSTEM_INSTRUCTION)


@dataclass(frozen=True)
class UserSettings:
    """Normalized view of the persisted user settings.

    Attributes:
        api_key: Credential for the reasoning service; empty when unset.
        model_id: Reasoning model identifier.
        command_prefix: Command that precedes the script path when launching a run.
        system_instruction: Optional override of the built-in analysis instruction.
    """
    api_key: str = ""
    model_id: str = DEFAULT_MODEL_ID
    command_prefix: str = DEFAULT_COMMAND_PREFIX
    system_instruction: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            API_KEY: self.api_key,
            MODEL_ID: self.model_id,
            COMMAND_PREFIX: self.command_prefix,
            SYSTEM_INSTRUCTION: self.system_instruction,
        }


def _clean(value: Optional[str]) -> str:
    return str(value or "").strip()


def load_user_settings(store: SettingsStore) -> UserSettings:
    """Read settings, falling back to defaults for blank values."""
    return UserSettings(
        api_key=_clean(store.get(API_KEY)),
        model_id=_clean(store.get(MODEL_ID)) or DEFAULT_MODEL_ID,
        command_prefix=_clean(store.get(COMMAND_PREFIX)) or DEFAULT_COMMAND_PREFIX,
        system_instruction=str(store.get(SYSTEM_INSTRUCTION) or ""),
    )


def save_user_settings(store: SettingsStore, updates: dict[str, Optional[str]]) -> UserSettings:
    """Apply partial updates; ``None`` leaves a key alone and blank text removes it.

    Args:
        store (SettingsStore): Settings backend.
        updates (dict[str, Optional[str]]): New values keyed by setting name.
            Unknown keys are ignored.

    Returns:
        UserSettings: Settings after the update.
    """
    for key in SETTING_KEYS:
        if key not in updates or updates[key] is None:
            continue
        value = str(updates[key])
        if value.strip():
            store.set(key, value if key == SYSTEM_INSTRUCTION else value.strip())
        else:
            store.remove(key)
    return load_user_settings(store)


def build_analysis_config(settings: UserSettings, focus_point: str) -> AnalysisConfig:
    return AnalysisConfig(
        focus_point=focus_point,
        model_id=settings.model_id,
        system_instruction=settings.system_instruction,
        credential=settings.api_key,
    )
