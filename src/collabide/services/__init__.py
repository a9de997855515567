"""Services that talk to the language-model completion API."""

from collabide.services.assist_service import AssistResult, AssistService, classify_response, extract_code_block
from collabide.services.completion_service import CompletionService

__all__ = [
    "AssistResult",
    "AssistService",
    "CompletionService",
    "classify_response",
    "extract_code_block",
]
