"""Storage exports for runtime persistence."""

from .container import Container
from .file_repos import FileSettingsRepository
from .history import MAX_HISTORY, RunHistoryStore
from .interfaces import InMemorySettingsStore, SettingsStore

__all__ = [
    "Container",
    "FileSettingsRepository",
    "InMemorySettingsStore",
    "MAX_HISTORY",
    "RunHistoryStore",
    "SettingsStore",
]
