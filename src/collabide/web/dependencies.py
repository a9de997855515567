"""FastAPI dependencies resolving the objects owned by the app lifespan."""

from __future__ import annotations

import logging

from fastapi import Request

from collabide.execution.engine import ExecutionEngine
from collabide.execution.run_queue import ProjectRunQueue
from collabide.orchestrator import AgentOrchestrator
from collabide.services.assist_service import AssistService
from collabide.services.completion_service import CompletionService

LOGGER = logging.getLogger(__name__)


def get_engine(request: Request) -> ExecutionEngine:
    return request.app.state.engine


def get_run_queue(request: Request) -> ProjectRunQueue:
    return request.app.state.run_queue


def get_completion_service(request: Request) -> CompletionService:
    """Return the shared completion service, creating it on first use.

    Creation needs an API key, so a missing key surfaces as a
    ``CompletionServiceError`` on the first AI request rather than at startup.
    """
    state = request.app.state
    service = getattr(state, "completion", None)
    if service is None:
        settings = state.settings
        service = CompletionService(
            api_key=settings.get("anthropic_api_key") or None,
            model_name=settings["completion_model"],
        )
        state.completion = service
        LOGGER.info("Completion service created | model=%s", service.model_name)
    return service


def get_orchestrator(request: Request) -> AgentOrchestrator:
    settings = request.app.state.settings
    return AgentOrchestrator(
        get_completion_service(request),
        get_engine(request),
        get_run_queue(request),
        temperature=settings["temperature"],
        max_tokens=settings["max_tokens"],
        context_limit=settings["context_messages"],
    )


def get_assist_service(request: Request) -> AssistService:
    settings = request.app.state.settings
    return AssistService(
        get_completion_service(request),
        temperature=settings["assist_temperature"],
        max_tokens=settings["assist_max_tokens"],
        context_limit=settings["context_messages"],
    )


__all__ = [
    "get_assist_service",
    "get_completion_service",
    "get_engine",
    "get_orchestrator",
    "get_run_queue",
]
