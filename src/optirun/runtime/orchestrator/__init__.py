"""Session orchestration exports."""

from .session import CANCEL_MARKER, SessionOrchestrator, format_preview

__all__ = ["CANCEL_MARKER", "SessionOrchestrator", "format_preview"]
