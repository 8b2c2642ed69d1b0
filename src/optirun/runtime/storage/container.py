"""Dependency container for runtime repositories."""

from __future__ import annotations

from pathlib import Path

from .bootstrap import ensure_state_root
from .file_repos import FileSettingsRepository
from .history import RunHistoryStore


class Container:
    """Wire file-backed repositories for one project directory."""
    def __init__(self, project_dir: Path) -> None:
        """Initialize the Container.

        Args:
            project_dir (Path): Directory whose ``.optirun/`` folder holds runtime state.
        """
        self.project_dir = project_dir.resolve()
        self.state_root = ensure_state_root(self.project_dir)

        self.settings = FileSettingsRepository(self.state_root / "settings.yaml", self.state_root / "settings.lock")
        self.history = RunHistoryStore(self.settings)

    @property
    def project_id(self) -> str:
        """Stable project identifier derived from the directory name."""
        return self.project_dir.name
