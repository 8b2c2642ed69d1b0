"""Gemini generateContent client for solver log reports."""

from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from ..domain.models import AnalysisConfig
from ..errors import ReasoningError
from .prompt import build_prompt

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_SECONDS = 300.0


class ReasoningClient(ABC):
    """Contract the session orchestrator uses to obtain reports and prompt previews."""

    @abstractmethod
    async def analyze(self, log_text: str, focus_point: str, config: AnalysisConfig) -> str:
        raise NotImplementedError

    @abstractmethod
    async def preview(self, log_text: str, focus_point: str, system_instruction: Optional[str] = None) -> str:
        raise NotImplementedError


def _hash_text(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()


def _extract_text(data: Any) -> Optional[str]:
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


class GeminiReasoningClient(ReasoningClient):
    """Send solver logs to the Gemini REST API."""
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the GeminiReasoningClient.

        Args:
            base_url (str): API root up to the version segment.
            timeout (float): Per-request timeout in seconds.
            transport (Optional[httpx.AsyncBaseTransport]): Custom transport, used by tests.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def preview(self, log_text: str, focus_point: str, system_instruction: Optional[str] = None) -> str:
        """Return the prompt ``analyze`` would send, without sending it."""
        return build_prompt(log_text, focus_point, system_instruction)

    async def analyze(self, log_text: str, focus_point: str, config: AnalysisConfig) -> str:
        """Request a markdown report for ``log_text``.

        Args:
            log_text (str): Final session log.
            focus_point (str): Optional user question.
            config (AnalysisConfig): Model, instruction and credential to use.

        Returns:
            str: Report text from the first candidate.

        Raises:
            ReasoningError: If no credential is configured, the request fails, or
                the response carries no text.
        """
        if not config.credential.strip():
            raise ReasoningError("API key is not configured. Check the settings.")

        prompt = build_prompt(log_text, focus_point, config.system_instruction)
        url = f"{self.base_url}/models/{config.model_id}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        logger.info("Reasoning request to %s, prompt hash: %s", config.model_id, _hash_text(prompt)[:16])

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, params={"key": config.credential}, json=payload)
        except httpx.HTTPError as exc:
            raise ReasoningError(str(exc)) from exc

        body = response.text
        try:
            data = response.json()
        except ValueError:
            data = None
        text = _extract_text(data)
        if text is None:
            raise ReasoningError(f"API Error: {body}")
        logger.info("Reasoning response hash: %s", _hash_text(text)[:16])
        return text
