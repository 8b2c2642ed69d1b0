"""Solver process supervision."""

from .service import ProcessHandle, ProcessLauncher, SolverProcessService, build_command, clean_solver_log

__all__ = [
    "ProcessHandle",
    "ProcessLauncher",
    "SolverProcessService",
    "build_command",
    "clean_solver_log",
]
