"""Prompt construction for solver log analysis."""

from __future__ import annotations

from typing import Optional

MAX_LOG_CHARS = 12000
TRUNCATION_MARKER = "... (truncated) ...\n"

DEFAULT_SYSTEM_INSTRUCTION = " ".join(
    [
        "You are a data scientist.",
        (
            "Analyze the following optimization log (it often ends with a JSON result)"
            " and output only a readable report in **Markdown**."
        ),
        "# Constraints",
        "- Do not output greetings or preambles such as \"Here is the analysis\".",
        "- Start directly with a Markdown heading (#).",
        "- Do not quote the log contents verbatim.",
    ]
)

DEFAULT_FOCUS = "In particular, comment on the result summary and on the health of the solve process."


def truncate_log(log_text: str, max_chars: int = MAX_LOG_CHARS) -> str:
    """Keep the tail of long logs, where the solver reports its result."""
    if len(log_text) <= max_chars:
        return log_text
    return f"{TRUNCATION_MARKER}{log_text[-max_chars:]}"


def build_focus(focus_point: str) -> str:
    focus = DEFAULT_FOCUS
    if focus_point.strip():
        focus += f" **Also discuss the following point in depth**: \"{focus_point.strip()}\""
    return focus


def build_prompt(log_text: str, focus_point: str = "", system_instruction: Optional[str] = None) -> str:
    """Assemble the exact text sent to the reasoning service.

    Args:
        log_text (str): Full session log; only the tail is kept when long.
        focus_point (str): Optional user question appended to the default focus.
        system_instruction (Optional[str]): Override of ``DEFAULT_SYSTEM_INSTRUCTION``.

    Returns:
        str: Prompt text.
    """
    instruction = (system_instruction or "").strip() or DEFAULT_SYSTEM_INSTRUCTION
    return f"{instruction}\n{build_focus(focus_point)}\n\n--- Log ---\n{truncate_log(log_text)}"
