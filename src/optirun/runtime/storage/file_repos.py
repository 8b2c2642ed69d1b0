"""File-backed repository implementations for runtime state."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, Optional

import yaml

from ...io_utils import FileLock
from .interfaces import SettingsStore

logger = logging.getLogger(__name__)


class FileSettingsRepository(SettingsStore):
    """YAML-backed key/value settings with coarse file/process locking."""
    def __init__(self, path: Path, lock_path: Path) -> None:
        """Initialize the FileSettingsRepository.

        Args:
            path (Path): YAML file path holding the settings mapping.
            lock_path (Path): Lock file path used while reading or writing settings.
        """
        self._path = path
        self._lock = FileLock(lock_path)
        self._thread_lock = threading.RLock()

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError):
            logger.warning("Unreadable settings file %s; treating as empty", self._path, exc_info=True)
            return {}
        if not isinstance(raw, dict):
            return {}
        values = raw.get("settings")
        return dict(values) if isinstance(values, dict) else {}

    def _save(self, values: dict[str, Any]) -> None:
        payload = {"version": 1, "settings": values}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(payload, handle, sort_keys=False, allow_unicode=True)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, self._path)

    def all(self) -> dict[str, str]:
        """Load every stored setting.

        Returns:
            dict[str, str]: Mapping of setting names to values.
        """
        with self._thread_lock:
            with self._lock:
                return {str(k): str(v) for k, v in self._load().items() if v is not None}

    def get(self, key: str) -> Optional[str]:
        """Fetch one setting by name.

        Args:
            key (str): Setting name.

        Returns:
            Optional[str]: Stored value, or ``None`` when the key is absent.
        """
        return self.all().get(key)

    def set(self, key: str, value: str) -> None:
        """Persist one setting atomically.

        Args:
            key (str): Setting name.
            value (str): Value to store.
        """
        with self._thread_lock:
            with self._lock:
                values = self._load()
                values[key] = str(value)
                self._save(values)

    def remove(self, key: str) -> None:
        """Remove one setting; missing keys are ignored.

        Args:
            key (str): Setting name.
        """
        with self._thread_lock:
            with self._lock:
                values = self._load()
                if key not in values:
                    return
                values.pop(key)
                self._save(values)
