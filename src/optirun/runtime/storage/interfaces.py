"""Repository interfaces for runtime persistence abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class SettingsStore(ABC):
    """Key/value contract for locally persisted settings.

    Implementations must not raise on reads; unreadable storage behaves as empty.
    """
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Fetch a stored value.

        Args:
            key (str): Setting name.

        Returns:
            Optional[str]: Stored value, or ``None`` when the key is absent.
        """
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Args:
            key (str): Setting name.
            value (str): Text value to persist.
        """
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key`` if present.

        Args:
            key (str): Setting name.
        """
        raise NotImplementedError


class InMemorySettingsStore(SettingsStore):
    """Volatile settings store used by tests and ephemeral sessions."""
    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = str(value)

    def remove(self, key: str) -> None:
        self._values.pop(key, None)
