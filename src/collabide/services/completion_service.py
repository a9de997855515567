"""Anthropic-backed text completion used by the agent and assist turns."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import anthropic

from collabide import config
from collabide.exceptions import CompletionServiceError

LOGGER = logging.getLogger(__name__)


@dataclass
class CompletionService:
    """Send one system + user prompt pair and return a single text completion.

    Empty or missing completions degrade to the fixed apology message. SDK and
    transport failures are raised as :class:`CompletionServiceError` so callers
    can return one top-level failure instead of a partial turn.
    """

    api_key: str | None = None
    model_name: str = config.DEFAULT_COMPLETION_MODEL
    client: Any = None
    apology: str = config.APOLOGY_MESSAGE
    _client: Any = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.client is not None:
            self._client = self.client
            return
        if not self.api_key:
            raise CompletionServiceError(
                "An Anthropic API key is required for completions.",
                context={"hint": "set ANTHROPIC_API_KEY or api_key in settings.json"},
            )
        self._client = anthropic.Anthropic(api_key=self.api_key)

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Return the completion text, or the apology string when it is empty."""
        started = time.perf_counter()
        LOGGER.debug(
            "Dispatching completion | model=%s | temperature=%.2f | max_tokens=%d | prompt_chars=%d",
            self.model_name,
            temperature,
            max_tokens,
            len(user_prompt),
        )
        try:
            response = self._client.messages.create(
                model=self.model_name,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except anthropic.APIError as exc:
            LOGGER.exception("Completion request failed | model=%s", self.model_name)
            raise CompletionServiceError(
                "Completion service request failed.",
                context={"model": self.model_name, "error": exc.__class__.__name__},
            ) from exc
        except Exception as exc:
            LOGGER.exception("Completion client raised unexpectedly | model=%s", self.model_name)
            raise CompletionServiceError(
                "Completion service is unavailable.",
                context={"model": self.model_name, "error": str(exc)},
            ) from exc

        text = self._collect_text(getattr(response, "content", None) or [])
        LOGGER.info(
            "Completion received | model=%s | chars=%d | duration=%.2fs",
            self.model_name,
            len(text),
            time.perf_counter() - started,
        )
        if not text.strip():
            LOGGER.warning("Completion was empty; using apology message")
            return self.apology
        return text

    def _collect_text(self, content: list[Any]) -> str:
        """Concatenate text blocks from an Anthropic response."""
        parts: list[str] = []
        for block in content:
            if getattr(block, "type", None) == "text":
                parts.append(getattr(block, "text", "") or "")
        return "".join(parts)


__all__ = ["CompletionService"]
