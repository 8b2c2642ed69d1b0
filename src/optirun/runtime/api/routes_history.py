"""History route registration for the runtime API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query

from .deps import RouteDeps


def register_history_routes(router: APIRouter, deps: RouteDeps) -> None:
    """Register run history listing, clearing and restore routes."""
    @router.get("/history")
    async def list_history() -> dict[str, Any]:
        """Return stored session records, newest first."""
        records = deps.resolve_orchestrator().list_history()
        return {"history": [r.to_dict() for r in records]}

    @router.delete("/history")
    async def clear_history(confirm: bool = Query(False)) -> dict[str, Any]:
        """Delete every stored record.

        Raises:
            HTTPException: If ``confirm`` is not set.
        """
        if not confirm:
            raise HTTPException(status_code=400, detail="Clearing history requires confirm=true")
        deps.resolve_orchestrator().clear_history()
        return {"history": []}

    @router.post("/history/{index}/restore")
    async def restore_history(index: int) -> dict[str, Any]:
        """Show a stored record in the session panels.

        Raises:
            HTTPException: If no record exists at ``index`` (404) or a run is in
                flight (409).
        """
        orchestrator = deps.resolve_orchestrator()
        records = orchestrator.list_history()
        if index < 0 or index >= len(records):
            raise HTTPException(status_code=404, detail="History record not found")
        if not orchestrator.restore_history(records[index]):
            raise HTTPException(status_code=409, detail="A run or analysis is in progress")
        return {"session": orchestrator.snapshot()}
