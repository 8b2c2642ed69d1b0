"""Session state machine: run the solver, stream its log, then analyze it."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from ..config import build_analysis_config, load_user_settings
from ..domain.models import HistoryRecord, RunStatus, Session, now_iso
from ..events.bus import EventBus
from ..process.service import ProcessHandle, ProcessLauncher
from ..reasoning.client import ReasoningClient
from ..signals.extractor import extract_sample
from ..signals.series import TimeSeriesBuffer
from ..storage.history import RunHistoryStore
from ..storage.interfaces import SettingsStore

logger = logging.getLogger(__name__)

CANCEL_MARKER = "--- Cancelled by user ---"


def format_preview(prompt: str) -> str:
    """Wrap prompt text with its character count for display."""
    return f"**Prompt preview** ({len(prompt):,} characters)\n\n```text\n{prompt}\n```"


class SessionOrchestrator:
    """Own the current ``Session`` and drive it through the run lifecycle.

    One run at a time: idle -> running -> analyzing -> idle, with cancel,
    failure and prompt-preview side paths. Collaborator failures never
    propagate out of the public coroutines; they become status changes and
    text appended to the log or analysis panel.
    """
    def __init__(
        self,
        process: ProcessLauncher,
        reasoning: ReasoningClient,
        settings: SettingsStore,
        history: RunHistoryStore,
        bus: Optional[EventBus] = None,
        *,
        auto_analyze_on_exit: bool = True,
    ) -> None:
        """Initialize the SessionOrchestrator.

        Args:
            process (ProcessLauncher): Starts and cancels solver processes.
            reasoning (ReasoningClient): Produces reports and prompt previews.
            settings (SettingsStore): Source of credential, model and command settings.
            history (RunHistoryStore): Destination for completed-session records.
            bus (Optional[EventBus]): Event channel for presentation layers.
            auto_analyze_on_exit (bool): Request analysis as soon as a run exits.
                When ``False`` the caller must call ``analyze()`` explicitly.
        """
        self._process = process
        self._reasoning = reasoning
        self._settings = settings
        self._history = history
        self._bus = bus
        self.auto_analyze_on_exit = auto_analyze_on_exit
        self._session = Session()
        self._series = TimeSeriesBuffer()
        self._run_task: Optional[asyncio.Task[None]] = None
        self._preview_seq = 0
        self._last_record: Optional[HistoryRecord] = None

    # -- read side -----------------------------------------------------

    @property
    def session(self) -> Session:
        return self._session

    @property
    def series(self) -> TimeSeriesBuffer:
        return self._series

    @property
    def is_active(self) -> bool:
        """Whether a solver process is still attached to the session."""
        return self._run_task is not None and not self._run_task.done()

    def snapshot(self) -> dict[str, Any]:
        data = self._session.snapshot()
        data["samples"] = self._series.to_payload()
        data["active"] = self.is_active
        data["auto_analyze_on_exit"] = self.auto_analyze_on_exit
        return data

    # -- helpers -------------------------------------------------------

    def _emit(self, event_type: str, payload: dict[str, Any], channel: str = "session") -> None:
        if self._bus is None:
            return
        try:
            self._bus.emit(channel=channel, event_type=event_type, payload=payload)
        except Exception:
            logger.debug("Failed to emit session event %s", event_type, exc_info=True)

    def _set_status(self, status: RunStatus, text: str) -> None:
        self._session.status = status
        self._session.status_text = text
        self._emit("session.status", {"status": status, "status_text": text})

    def _set_analysis(self, text: str) -> None:
        self._session.analysis = text
        self._emit("session.analysis", {"analysis": text})

    def _append_log(self, text: str) -> None:
        self._session.log += text
        self._emit("session.log_appended", {"text": text})

    def _ingest_line(self, line: str) -> None:
        session = self._session
        session.log += f"{line}\n"
        session.line_count += 1
        self._emit("session.log_line", {"line": line})
        value = extract_sample(line)
        if value is None:
            return
        sample = self._series.append_incremental(value)
        self._emit("session.sample", sample.to_dict())

    def _record_history(self) -> None:
        session = self._session
        if session.cancelled and session.line_count == 0:
            return
        previous = self._last_record
        # restored sessions are already in history
        if session.recorded and previous is None:
            return
        record = HistoryRecord(
            timestamp=previous.timestamp if previous is not None else now_iso(),
            script_label=Path(session.script_path).name or session.script_path,
            args_text=session.args_text,
            log=session.log,
            analysis=session.analysis,
        )
        try:
            if previous is None:
                self._history.append(record)
            else:
                self._history.replace_latest(previous, record)
        except Exception:
            logger.warning("Failed to persist history record", exc_info=True)
            return
        session.recorded = True
        self._last_record = record
        self._emit("history.changed", {"timestamp": record.timestamp}, channel="history")

    # -- run lifecycle -------------------------------------------------

    def launch(self, script_path: str, args_text: str = "") -> bool:
        """Validate a start request and schedule the run in the background.

        Must be called from a running event loop.

        Args:
            script_path (str): Solver script to run.
            args_text (str): Whitespace-separated script arguments.

        Returns:
            bool: ``True`` when the run was scheduled, ``False`` when rejected.
        """
        session = self._session
        if not str(script_path or "").strip():
            session.status_text = "No File Selected"
            self._emit("session.status", {"status": session.status, "status_text": session.status_text})
            return False
        if self.is_active or session.status == "analyzing":
            session.status_text = "Already running"
            self._emit("session.status", {"status": session.status, "status_text": session.status_text})
            return False

        session.script_path = script_path
        session.args_text = args_text or ""
        session.pid = None
        session.log = ""
        session.line_count = 0
        session.cancelled = False
        session.recorded = False
        self._last_record = None
        self._series.reset()
        self._emit("session.reset", {"script_path": script_path, "args_text": session.args_text})
        self._set_analysis("")
        self._set_status("running", "Running...")
        self._run_task = asyncio.create_task(self._run(script_path, session.args_text))
        return True

    async def start(self, script_path: str, args_text: str = "") -> bool:
        """Run the solver to completion, including any automatic analysis.

        Returns:
            bool: ``False`` when the start request was rejected.
        """
        if not self.launch(script_path, args_text):
            return False
        await self.wait_idle()
        return True

    async def wait_idle(self) -> None:
        """Wait until the current run, if any, has fully finished."""
        task = self._run_task
        if task is None:
            return
        await asyncio.gather(task, return_exceptions=True)

    async def _watch_pid(self, handle: ProcessHandle) -> None:
        try:
            pid = await handle.wait_pid()
        except Exception:
            logger.debug("Process id notification failed", exc_info=True)
            return
        self._session.pid = pid
        self._emit("session.pid", {"pid": pid})

    async def _run(self, script_path: str, args_text: str) -> None:
        session = self._session
        try:
            prefix = load_user_settings(self._settings).command_prefix
            handle = await self._process.start(script_path, args_text, prefix)
        except Exception as exc:
            self._fail_run(exc)
            return

        pid_task = asyncio.create_task(self._watch_pid(handle))
        final_log: Optional[str] = None
        failure: Optional[Exception] = None
        try:
            async for line in handle.lines():
                self._ingest_line(line)
            final_log = await handle.wait()
        except Exception as exc:
            failure = exc
        finally:
            pid_task.cancel()
            session.pid = None
            await handle.aclose()

        if session.cancelled:
            logger.info("Solver run cancelled: %s", script_path)
            self._set_status("idle", "Cancelled")
            self._record_history()
            return
        if failure is not None:
            self._fail_run(failure)
            return

        session.log = final_log or ""
        self._emit("session.log_replaced", {"log": session.log})
        logger.info("Solver run finished: %s", script_path)
        if self.auto_analyze_on_exit:
            await self._analyze()
            return
        self._set_status("idle", "Finished")
        self._record_history()

    def _fail_run(self, exc: Exception) -> None:
        logger.warning("Solver run failed: %s", exc)
        self._append_log(f"\nError: {exc}")
        self._set_status("errored", "Error")
        self._record_history()

    async def cancel(self) -> bool:
        """Ask the process collaborator to kill the running solver.

        A no-op until the process id has been reported.

        Returns:
            bool: ``True`` when a termination request was issued.
        """
        session = self._session
        if session.status != "running" or session.pid is None:
            return False
        pid = session.pid
        session.cancelled = True
        self._set_status("cancelling", "Cancelling...")
        self._append_log(f"{CANCEL_MARKER}\n")
        try:
            await self._process.cancel(pid)
        except Exception:
            logger.warning("Failed to cancel solver process %s", pid, exc_info=True)
        # the run may have wound down while the kill was in flight
        if session.status == "cancelling":
            self._set_status("idle", "Cancelled")
        return True

    # -- analysis and preview ------------------------------------------

    def set_focus_point(self, focus_point: str) -> None:
        self._session.focus_point = focus_point or ""

    async def analyze(self) -> bool:
        """Request a report for the current log.

        Leaves prompt preview first. Rejected while a run or another analysis
        is in flight, or when there is no log.

        Returns:
            bool: ``True`` when the reasoning service returned a report.
        """
        session = self._session
        if self.is_active or session.status == "analyzing":
            return False
        if not session.log:
            return False
        return await self._analyze()

    async def _analyze(self) -> bool:
        session = self._session
        if session.status == "previewing_prompt":
            self._exit_preview()
        self._set_analysis("")
        self._set_status("analyzing", "AI analyzing...")
        try:
            config = build_analysis_config(load_user_settings(self._settings), session.focus_point)
            report = await self._reasoning.analyze(session.log, session.focus_point, config)
        except Exception as exc:
            logger.warning("Analysis failed: %s", exc)
            self._set_analysis(f"{session.analysis}\nAI Error: {exc}")
            self._set_status("errored", "AI Error")
            self._record_history()
            return False
        self._set_analysis(report)
        self._set_status("idle", "Done")
        self._record_history()
        return True

    def _exit_preview(self) -> None:
        session = self._session
        self._preview_seq += 1
        self._set_analysis(session.saved_analysis)
        self._set_status(session.status_before_preview, session.saved_status_text)

    async def toggle_preview(self) -> bool:
        """Show the prompt that ``analyze`` would send, or go back from it.

        Returns:
            bool: ``True`` when the view changed.
        """
        session = self._session
        if session.status == "previewing_prompt":
            self._exit_preview()
            return True
        if self.is_active or session.status not in {"idle", "errored"}:
            return False
        if not session.log:
            return False

        session.saved_analysis = session.analysis
        session.status_before_preview = session.status
        session.saved_status_text = session.status_text
        self._preview_seq += 1
        seq = self._preview_seq
        self._set_status("previewing_prompt", "Prompt preview")
        try:
            instruction = load_user_settings(self._settings).system_instruction
            prompt = await self._reasoning.preview(session.log, session.focus_point, instruction)
            text = format_preview(prompt)
        except Exception as exc:
            logger.warning("Prompt preview failed: %s", exc)
            text = f"Preview Error: {exc}"
        # toggled back while the preview was being built
        if seq != self._preview_seq or session.status != "previewing_prompt":
            return True
        self._set_analysis(text)
        return True

    # -- history -------------------------------------------------------

    def list_history(self) -> list[HistoryRecord]:
        return self._history.load()

    def clear_history(self) -> None:
        self._history.clear()
        # records written before the clear stay gone
        self._last_record = None
        self._emit("history.changed", {"cleared": True}, channel="history")

    def restore_history(self, record: HistoryRecord) -> bool:
        """Show a stored session without re-running the solver or the analysis.

        Returns:
            bool: ``False`` while a run or analysis is in flight.
        """
        session = self._session
        if self.is_active or session.status == "analyzing":
            return False
        log, analysis = self._history.restore(record)
        session.script_path = record.script_label
        session.args_text = record.args_text
        session.pid = None
        session.log = log
        session.line_count = 0
        session.cancelled = False
        session.recorded = True
        self._last_record = None
        self._series.rebuild_from_full_log(log)
        self._emit("session.log_replaced", {"log": log, "samples": self._series.to_payload()})
        self._set_analysis(analysis)
        self._set_status("idle", "Loaded from history")
        return True

    async def shutdown(self) -> None:
        """Kill any running solver and wait for the run task to end."""
        if self.is_active and self._session.pid is not None:
            try:
                await self._process.cancel(self._session.pid)
            except Exception:
                logger.debug("Failed to kill solver during shutdown", exc_info=True)
        task = self._run_task
        if task is not None and not task.done():
            task.cancel()
        await self.wait_idle()
