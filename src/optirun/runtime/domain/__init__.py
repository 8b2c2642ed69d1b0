"""Domain models for solver session state."""

from .models import AnalysisConfig, HistoryRecord, RunStatus, Sample, Session

__all__ = [
    "AnalysisConfig",
    "HistoryRecord",
    "RunStatus",
    "Sample",
    "Session",
]
