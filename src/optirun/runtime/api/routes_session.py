"""Session route registration for the runtime API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from .deps import RouteDeps
from .schemas import FocusRequest, RunRequest


def register_session_routes(router: APIRouter, deps: RouteDeps) -> None:
    """Register solver run, cancel, analysis and preview routes."""
    @router.get("/session")
    async def get_session() -> dict[str, Any]:
        """Return the current session state, including the progress curve."""
        return {"session": deps.resolve_orchestrator().snapshot()}

    @router.post("/session/run")
    async def run_session(body: RunRequest) -> dict[str, Any]:
        """Start a solver run in the background.

        Args:
            body: Script path and argument text.

        Returns:
            A payload with ``accepted`` and the session state; rejected starts
            leave the reason in ``session.status_text``.
        """
        orchestrator = deps.resolve_orchestrator()
        accepted = orchestrator.launch(body.script_path, body.args_text)
        return {"accepted": accepted, "session": orchestrator.snapshot()}

    @router.post("/session/cancel")
    async def cancel_session() -> dict[str, Any]:
        """Kill the running solver if its process id is known."""
        orchestrator = deps.resolve_orchestrator()
        cancelled = await orchestrator.cancel()
        return {"cancelled": cancelled, "session": orchestrator.snapshot()}

    @router.post("/session/analyze")
    async def analyze_session(body: FocusRequest) -> dict[str, Any]:
        """Request a report for the current log and wait for it."""
        orchestrator = deps.resolve_orchestrator()
        if body.focus_point is not None:
            orchestrator.set_focus_point(body.focus_point)
        ok = await orchestrator.analyze()
        return {"ok": ok, "session": orchestrator.snapshot()}

    @router.post("/session/preview")
    async def toggle_preview(body: FocusRequest) -> dict[str, Any]:
        """Toggle the prompt preview in the analysis panel."""
        orchestrator = deps.resolve_orchestrator()
        if body.focus_point is not None:
            orchestrator.set_focus_point(body.focus_point)
        changed = await orchestrator.toggle_preview()
        return {"changed": changed, "session": orchestrator.snapshot()}
