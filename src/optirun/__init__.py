"""Solver run console: stream, chart and analyze long-running solver jobs."""

__version__ = "0.3.0"
