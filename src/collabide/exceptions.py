"""Error taxonomy shared by the engine, the services and the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Mapping, MutableMapping


@dataclass(slots=True)
class CollabError(Exception):
    """Base error carrying a message plus ``key=value`` context for the logs.

    ``status_code`` and ``public_message`` describe how the HTTP layer reports
    the error; context never leaves the server.
    """

    message: str
    context: MutableMapping[str, object] = field(default_factory=dict)

    status_code: ClassVar[int] = 500
    public_message: ClassVar[str | None] = None

    def __post_init__(self) -> None:
        self.context = dict(self.context) if isinstance(self.context, Mapping) else {"detail": str(self.context)}
        Exception.__init__(self, str(self))

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"

    def to_payload(self) -> dict[str, str]:
        """Return the ``{"error": ...}`` body sent to HTTP clients."""
        return {"error": self.public_message or self.message}


class CollabConfigurationError(CollabError):
    """Server wiring or environment is unusable (missing handler, bad settings)."""


class CollabValidationError(CollabError):
    """A request, frame or model-supplied value was rejected; the caller can fix it."""

    status_code = 400


class CompletionServiceError(CollabError):
    """The language-model API failed or could not be reached."""

    public_message = "Failed to get a response from the AI service"


__all__ = [
    "CollabConfigurationError",
    "CollabError",
    "CollabValidationError",
    "CompletionServiceError",
]
