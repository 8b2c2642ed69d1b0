from __future__ import annotations

from pathlib import Path

STATE_DIR_NAME = ".optirun"

STATE_FILES = {
    "settings": "settings.yaml",
}


def _ensure_gitignored(project_dir: Path) -> None:
    """Add .optirun/ to the project's .gitignore if not already present."""
    gitignore = project_dir / ".gitignore"
    entry = f"{STATE_DIR_NAME}/"
    if gitignore.exists():
        content = gitignore.read_text(encoding="utf-8")
        existing_stripped = {line.strip() for line in content.splitlines()}
        if entry in existing_stripped or entry.rstrip("/") in existing_stripped:
            return
        if content and not content.endswith("\n"):
            content += "\n"
        content += f"\n# optirun runtime data\n{entry}\n"
        gitignore.write_text(content, encoding="utf-8")
    else:
        gitignore.write_text(f"# optirun runtime data\n{entry}\n", encoding="utf-8")


def ensure_state_root(project_dir: Path) -> Path:
    state_root = project_dir / STATE_DIR_NAME
    state_root.mkdir(parents=True, exist_ok=True)
    _ensure_gitignored(project_dir)

    for file_name in STATE_FILES.values():
        target = state_root / file_name
        if file_name.endswith(".yaml") and not target.exists():
            target.write_text("version: 1\n", encoding="utf-8")

    return state_root
