"""Bounded, most-recent-first history of completed solver sessions."""

from __future__ import annotations

import json
import logging

from ..domain.models import HistoryRecord
from .interfaces import SettingsStore

logger = logging.getLogger(__name__)

MAX_HISTORY = 20
HISTORY_KEY = "history"


class RunHistoryStore:
    """Persist up to ``MAX_HISTORY`` session records as one JSON payload."""
    def __init__(self, settings: SettingsStore, *, key: str = HISTORY_KEY, max_entries: int = MAX_HISTORY) -> None:
        """Initialize the RunHistoryStore.

        Args:
            settings (SettingsStore): Key/value store holding the payload.
            key (str): Settings key for the serialized record list.
            max_entries (int): Upper bound on retained records.
        """
        self._settings = settings
        self._key = key
        self._max_entries = max_entries

    def load(self) -> list[HistoryRecord]:
        """Return persisted records, newest first.

        A missing or malformed payload yields an empty list.
        """
        raw = self._settings.get(self._key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding unparseable history payload")
            return []
        if not isinstance(items, list):
            return []
        return [HistoryRecord.from_dict(item) for item in items if isinstance(item, dict)]

    def _save(self, records: list[HistoryRecord]) -> None:
        payload = json.dumps([r.to_dict() for r in records], ensure_ascii=False)
        self._settings.set(self._key, payload)

    def append(self, record: HistoryRecord) -> list[HistoryRecord]:
        """Prepend ``record`` and drop anything beyond the retention bound.

        Args:
            record (HistoryRecord): Newly completed session.

        Returns:
            list[HistoryRecord]: The persisted sequence after the write.
        """
        records = [record, *self.load()][: self._max_entries]
        self._save(records)
        return records

    def replace_latest(self, previous: HistoryRecord, record: HistoryRecord) -> list[HistoryRecord]:
        """Swap the newest record for an updated copy of the same session.

        Falls back to ``append`` when ``previous`` is no longer at the head,
        for example after the history was cleared.

        Args:
            previous (HistoryRecord): Record written earlier for this session.
            record (HistoryRecord): Replacement record.

        Returns:
            list[HistoryRecord]: The persisted sequence after the write.
        """
        records = self.load()
        if not records or records[0] != previous:
            return self.append(record)
        records[0] = record
        self._save(records)
        return records

    def clear(self) -> None:
        """Remove every record and the persisted payload itself."""
        self._settings.remove(self._key)

    @staticmethod
    def restore(record: HistoryRecord) -> tuple[str, str]:
        """Project a stored record back onto ``(log, analysis)`` display text."""
        return record.log, record.analysis
