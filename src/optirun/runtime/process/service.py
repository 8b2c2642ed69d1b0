"""Solver subprocess supervision with an async line stream."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal
from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from ..domain.models import DEFAULT_COMMAND_PREFIX
from ..errors import ProcessFailure

logger = logging.getLogger(__name__)

_LINE_QUEUE_SIZE = 1024
_STREAM_LIMIT_BYTES = 1024 * 1024

# License banners and environment chatter that carry no information about the solve.
_NOISE_MARKERS = (
    "Set parameter",
    "Academic license",
    "Gurobi Optimizer version",
    "CPU model",
    "Thread count",
    "Model fingerprint",
)

_EOF = object()


def clean_solver_log(raw_log: str) -> str:
    """Drop solver banner lines and join the rest with newlines."""
    return "\n".join(
        line for line in raw_log.splitlines() if not any(marker in line for marker in _NOISE_MARKERS)
    )


def build_command(script_path: str, args_text: str, command_prefix: Optional[str] = None) -> list[str]:
    """Build the argv for one run: ``<prefix...> <script> <args...>``."""
    prefix = (command_prefix or "").strip() or DEFAULT_COMMAND_PREFIX
    return [*shlex.split(prefix, posix=os.name != "nt"), script_path, *str(args_text or "").split()]


async def _read_line(stream: asyncio.StreamReader) -> bytes:
    """Read one line of any length; ``b""`` at end of stream."""
    parts: list[bytes] = []
    while True:
        try:
            parts.append(await stream.readuntil(b"\n"))
            return b"".join(parts)
        except asyncio.IncompleteReadError as exc:
            parts.append(exc.partial)
            return b"".join(parts)
        except asyncio.LimitOverrunError as exc:
            # longer than the reader buffer; take what is buffered and keep going
            parts.append(await stream.readexactly(exc.consumed))


class ProcessHandle(ABC):
    """One running solver process as seen by the session orchestrator."""

    @abstractmethod
    async def wait_pid(self) -> int:
        """Resolve with the operating-system process id."""
        raise NotImplementedError

    @abstractmethod
    def lines(self) -> AsyncIterator[str]:
        """Yield output lines in arrival order until the process exits.

        The stream is finite and can be consumed only once.
        """
        raise NotImplementedError

    @abstractmethod
    async def wait(self) -> str:
        """Wait for exit and return the canonical final log.

        Raises:
            ProcessFailure: If the process exited unsuccessfully.
        """
        raise NotImplementedError

    @abstractmethod
    async def aclose(self) -> None:
        """Stop reading output and terminate the line stream."""
        raise NotImplementedError


class ProcessLauncher(ABC):
    """Start and cancel solver processes."""

    @abstractmethod
    async def start(self, script_path: str, args_text: str, command_prefix: Optional[str] = None) -> ProcessHandle:
        raise NotImplementedError

    @abstractmethod
    async def cancel(self, pid: int) -> None:
        raise NotImplementedError


class _SubprocessHandle(ProcessHandle):
    def __init__(self, proc: asyncio.subprocess.Process) -> None:
        self._proc = proc
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=_LINE_QUEUE_SIZE)
        self._stdout: list[str] = []
        self._stderr: list[str] = []
        self._consumed = False
        self._pumps = [
            asyncio.create_task(self._pump(proc.stdout, self._stdout)),
            asyncio.create_task(self._pump(proc.stderr, self._stderr)),
        ]
        self._closer = asyncio.create_task(self._close_when_drained())

    async def _pump(self, stream: Optional[asyncio.StreamReader], sink: list[str]) -> None:
        if stream is None:
            return
        while True:
            raw = await _read_line(stream)
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            sink.append(line)
            await self._queue.put(line)

    async def _close_when_drained(self) -> None:
        results = await asyncio.gather(*self._pumps, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.warning("Solver output reader stopped early: %s", result)
        await self._queue.put(_EOF)

    async def wait_pid(self) -> int:
        return self._proc.pid

    async def lines(self) -> AsyncIterator[str]:
        if self._consumed:
            raise RuntimeError("Line stream already consumed")
        self._consumed = True
        while True:
            item = await self._queue.get()
            if item is _EOF:
                return
            yield str(item)

    async def wait(self) -> str:
        await asyncio.gather(*self._pumps, return_exceptions=True)
        code = await self._proc.wait()
        if code == 0:
            return clean_solver_log("".join(f"{line}\n" for line in self._stdout))
        stderr = "".join(f"{line}\n" for line in self._stderr)
        raise ProcessFailure(f"Exit Code: {code}\n{stderr}")

    async def aclose(self) -> None:
        for task in (*self._pumps, self._closer):
            task.cancel()
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_EOF)


class SolverProcessService(ProcessLauncher):
    """Launch solver scripts as subprocesses and kill them on request."""
    def __init__(self, cwd: Optional[str] = None) -> None:
        self._cwd = cwd

    async def start(self, script_path: str, args_text: str, command_prefix: Optional[str] = None) -> ProcessHandle:
        """Spawn the solver with stdout and stderr piped.

        Args:
            script_path (str): Script passed to the command prefix.
            args_text (str): Whitespace-separated script arguments.
            command_prefix (Optional[str]): Override of the default ``uv run python -u``.

        Returns:
            ProcessHandle: Handle streaming the process output.

        Raises:
            ProcessFailure: If the process cannot be spawned.
        """
        argv = build_command(script_path, args_text, command_prefix)
        logger.info("Starting solver: %s", " ".join(argv))
        env = dict(os.environ)
        env.setdefault("PYTHONUNBUFFERED", "1")
        extra: dict[str, object] = {}
        if os.name == "posix":
            extra["start_new_session"] = True
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                stdin=asyncio.subprocess.DEVNULL,
                cwd=self._cwd,
                env=env,
                limit=_STREAM_LIMIT_BYTES,
                **extra,
            )
        except (OSError, ValueError) as exc:
            raise ProcessFailure(f"Failed to start process: {exc}") from exc
        return _SubprocessHandle(proc)

    async def cancel(self, pid: int) -> None:
        """Forcefully terminate the process tree rooted at ``pid``."""
        logger.info("Killing solver process tree %s", pid)
        if os.name == "nt":
            proc = await asyncio.create_subprocess_exec(
                "taskkill",
                "/PID",
                str(pid),
                "/F",
                "/T",
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await proc.wait()
            return
        try:
            os.killpg(pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
