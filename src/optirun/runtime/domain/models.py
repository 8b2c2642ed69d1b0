"""Domain model dataclasses for solver sessions and their history."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional


RunStatus = Literal[
    "idle",
    "running",
    "cancelling",
    "analyzing",
    "previewing_prompt",
    "errored",
]

DEFAULT_MODEL_ID = "gemini-2.5-flash"
DEFAULT_COMMAND_PREFIX = "uv run python -u"


def now_iso() -> str:
    """Get the current UTC timestamp formatted as ISO-8601 text."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Sample:
    """One point of the progress curve."""
    index: int
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "value": self.value}


@dataclass(frozen=True)
class HistoryRecord:
    """Immutable snapshot of one completed solver session.

    Attributes:
        timestamp: ISO-8601 time the record was created.
        script_label: Display label of the solver script (usually its file name).
        args_text: Raw argument text the script was launched with.
        log: Final session log.
        analysis: Report text, or whatever the analysis panel held when the run ended.
    """
    timestamp: str = field(default_factory=now_iso)
    script_label: str = ""
    args_text: str = ""
    log: str = ""
    analysis: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the persisted camelCase field names."""
        return {
            "timestamp": self.timestamp,
            "scriptLabel": self.script_label,
            "argsText": self.args_text,
            "log": self.log,
            "analysis": self.analysis,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryRecord":
        """Deserialize a persisted record, tolerating missing fields."""
        return cls(
            timestamp=str(data.get("timestamp") or ""),
            script_label=str(data.get("scriptLabel") or ""),
            args_text=str(data.get("argsText") or ""),
            log=str(data.get("log") or ""),
            analysis=str(data.get("analysis") or ""),
        )


@dataclass(frozen=True)
class AnalysisConfig:
    """Settings passed through to the reasoning service for one analysis call."""
    focus_point: str = ""
    model_id: str = DEFAULT_MODEL_ID
    system_instruction: str = ""
    credential: str = ""


@dataclass
class Session:
    """Mutable state of the session currently shown to the user.

    Owned and mutated exclusively by ``SessionOrchestrator``.
    """
    status: RunStatus = "idle"
    status_text: str = "Ready"
    script_path: str = ""
    args_text: str = ""
    pid: Optional[int] = None
    log: str = ""
    analysis: str = ""
    focus_point: str = ""
    line_count: int = 0
    cancelled: bool = False
    recorded: bool = False
    # preview bookkeeping
    saved_analysis: str = ""
    status_before_preview: RunStatus = "idle"
    saved_status_text: str = ""

    def snapshot(self) -> dict[str, Any]:
        """Return a plain-data view of the session for presentation layers."""
        data = asdict(self)
        data.pop("saved_analysis", None)
        data.pop("status_before_preview", None)
        data.pop("saved_status_text", None)
        return data
