"""Exception types raised by runtime collaborators."""

from __future__ import annotations


class OptirunError(RuntimeError):
    """Base class for collaborator failures surfaced by the session orchestrator."""


class ProcessFailure(OptirunError):
    """The solver process could not be started or exited unsuccessfully."""


class ReasoningError(OptirunError):
    """The reasoning service rejected the request or returned no report."""
