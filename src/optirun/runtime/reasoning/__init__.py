"""Reasoning-service client and prompt construction."""

from .client import GeminiReasoningClient, ReasoningClient
from .prompt import build_prompt

__all__ = ["GeminiReasoningClient", "ReasoningClient", "build_prompt"]
