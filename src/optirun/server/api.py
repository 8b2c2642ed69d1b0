"""FastAPI app wiring for the solver session console."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..runtime.api import RouteDeps, create_router
from ..runtime.events import EventBus, hub
from ..runtime.orchestrator import SessionOrchestrator
from ..runtime.process import ProcessLauncher, SolverProcessService
from ..runtime.reasoning import GeminiReasoningClient, ReasoningClient
from ..runtime.storage import Container


def create_app(
    project_dir: Optional[Path] = None,
    enable_cors: bool = True,
    process: Optional[ProcessLauncher] = None,
    reasoning: Optional[ReasoningClient] = None,
    auto_analyze_on_exit: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        project_dir (Optional[Path]): Directory holding the ``.optirun/`` state
            folder and used as the solver working directory. Defaults to the
            current directory.
        enable_cors (bool): Whether to install permissive CORS middleware for browser
            clients.
        process (Optional[ProcessLauncher]): Process collaborator; defaults to
            ``SolverProcessService``.
        reasoning (Optional[ReasoningClient]): Reasoning collaborator; defaults to
            ``GeminiReasoningClient``.
        auto_analyze_on_exit (bool): Analyze automatically when a run exits.

    Returns:
        FastAPI: Configured application with the container and orchestrator
        stored on ``app.state``.
    """
    resolved_dir = Path(project_dir or Path.cwd()).expanduser().resolve()

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await app.state.orchestrator.shutdown()

    app = FastAPI(
        title="optirun",
        description="Run solver scripts, chart their gap and analyze their logs",
        version=__version__,
        lifespan=_lifespan,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    container = Container(resolved_dir)
    bus = EventBus(container.project_id, hub)
    app.state.container = container
    app.state.bus = bus
    app.state.orchestrator = SessionOrchestrator(
        process or SolverProcessService(cwd=str(container.project_dir)),
        reasoning or GeminiReasoningClient(),
        container.settings,
        container.history,
        bus,
        auto_analyze_on_exit=auto_analyze_on_exit,
    )

    deps = RouteDeps(
        resolve_container=lambda: app.state.container,
        resolve_orchestrator=lambda: app.state.orchestrator,
    )
    app.include_router(create_router(deps))

    @app.get("/healthz")
    async def healthz() -> dict[str, object]:
        """Expose liveness status for process-level health checks."""
        return {"status": "ok", "version": __version__}

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        """Bridge websocket clients to the shared event hub handler."""
        await hub.handle_connection(websocket)

    return app
