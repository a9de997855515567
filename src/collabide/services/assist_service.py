"""Code-assist turn: explain, improve or fix a snippet in a given language."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Sequence

from collabide import config
from collabide.exceptions import CollabValidationError
from collabide.services.completion_service import CompletionService

LOGGER = logging.getLogger(__name__)

ASSIST_SYSTEM_PROMPT = (
    "You are an expert programming assistant. You help developers write better code by "
    "providing explanations, suggestions, improvements, and debugging help. Always be "
    "helpful, accurate, and concise."
)

RESPONSE_EXPLANATION = "explanation"
RESPONSE_SUGGESTION = "suggestion"
RESPONSE_FIX = "fix"
RESPONSE_CODE = "code"

_CODE_FENCE = re.compile(r"```(?:\w+)?\n(.*?)\n```", re.DOTALL)
_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (RESPONSE_SUGGESTION, ("improve", "better")),
    (RESPONSE_FIX, ("fix", "bug", "error")),
    (RESPONSE_CODE, ("write", "create", "implement")),
)


def extract_code_block(text: str) -> str | None:
    """Return the stripped body of the first fenced code block, if any."""
    if not text:
        return None
    match = _CODE_FENCE.search(text)
    if match is None:
        return None
    return match.group(1).strip()


def classify_response(query: str, text: str) -> str:
    """Guess a response-type label from the query wording.

    Only responses carrying a code block are labelled by keyword; everything
    else is an explanation.
    """
    if extract_code_block(text) is None:
        return RESPONSE_EXPLANATION
    lowered = (query or "").lower()
    for label, words in _KEYWORDS:
        if any(word in lowered for word in words):
            return label
    return RESPONSE_EXPLANATION


def format_history(context: Sequence[Any], limit: int | None = None) -> str:
    """Render prior chat turns as ``User: ...`` / ``Assistant: ...`` lines."""
    messages = list(context or [])
    if limit is not None and limit > 0:
        messages = messages[-limit:]
    if not messages:
        return ""
    lines = []
    for message in messages:
        role = _field(message, "role")
        speaker = "User" if role == "user" else "Assistant"
        lines.append(f"{speaker}: {_field(message, 'content')}")
    return "Previous conversation:\n" + "\n".join(lines) + "\n\n"


def _field(message: Any, name: str) -> str:
    if isinstance(message, dict):
        return str(message.get(name) or "")
    return str(getattr(message, name, "") or "")


@dataclass(frozen=True, slots=True)
class AssistResult:
    content: str
    type: str = RESPONSE_EXPLANATION
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"content": self.content, "type": self.type}
        if self.code is not None:
            payload["code"] = self.code
        return payload


@dataclass
class AssistService:
    """Answers a question about one code snippet using the completion service."""

    completion: CompletionService
    temperature: float = config.ASSIST_TEMPERATURE
    max_tokens: int = config.ASSIST_MAX_TOKENS
    context_limit: int = config.CONTEXT_MESSAGE_LIMIT
    system_prompt: str = field(default=ASSIST_SYSTEM_PROMPT, repr=False)

    def build_prompt(self, code: str, language: str, query: str, context: Sequence[Any] = ()) -> str:
        return (
            f"{format_history(context, self.context_limit)}"
            f"You are an expert {language} programmer and coding assistant.\n\n"
            f"Current code ({language}):\n"
            f"```{language}\n{code}\n```\n\n"
            f"User query: {query}\n\n"
            "Provide a helpful response. If the user is asking for code improvements, "
            "suggestions, or fixes, provide the modified code in a code block. "
            "Be concise but thorough."
        )

    def assist(self, code: str, language: str, query: str, context: Sequence[Any] = ()) -> AssistResult:
        if not code or not language or not query:
            raise CollabValidationError("Missing required fields")

        text = self.completion.complete(
            self.system_prompt,
            self.build_prompt(code, language, query, context),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        try:
            code_block = extract_code_block(text)
            label = classify_response(query, text)
        except Exception:  # noqa: BLE001
            LOGGER.warning("Could not derive assist metadata", exc_info=True)
            code_block, label = None, RESPONSE_EXPLANATION
        LOGGER.info("Assist turn finished | language=%s | type=%s", language, label)
        return AssistResult(content=text, type=label, code=code_block)


__all__ = [
    "ASSIST_SYSTEM_PROMPT",
    "AssistResult",
    "AssistService",
    "RESPONSE_CODE",
    "RESPONSE_EXPLANATION",
    "RESPONSE_FIX",
    "RESPONSE_SUGGESTION",
    "classify_response",
    "extract_code_block",
    "format_history",
]
