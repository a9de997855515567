"""FastAPI application factory and lifespan."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from collabide import config
from collabide.database import initialize_database
from collabide.event_bus import EventBus
from collabide.exceptions import CollabError
from collabide.execution.command_runner import CommandRunner
from collabide.execution.engine import ExecutionEngine
from collabide.execution.mirror import FilesystemMirror
from collabide.execution.run_queue import ProjectRunQueue
from collabide.execution.sync import FileStateSync
from collabide.presence.manager import PresenceManager
from collabide.presence.registry import RoomRegistry
from collabide.services.completion_service import CompletionService
from collabide.utils.settings import load_settings
from collabide.web.routers import agent, collab, projects
from collabide.web.transport import WebSocketHub

LOGGER = logging.getLogger(__name__)


def _build_state(app: FastAPI, settings: dict[str, Any], completion: CompletionService | None) -> None:
    persist = bool(settings["persist"])
    if persist:
        initialize_database()

    event_bus = EventBus()
    sync = FileStateSync(FilesystemMirror(settings["scratch_root"]), persist=persist)
    runner = CommandRunner(timeout=float(settings["command_timeout"]))

    app.state.settings = settings
    app.state.event_bus = event_bus
    app.state.sync = sync
    app.state.engine = ExecutionEngine(sync, runner, event_bus=event_bus)
    app.state.run_queue = ProjectRunQueue()
    app.state.completion = completion
    app.state.registry = RoomRegistry()
    app.state.hub = WebSocketHub()
    app.state.presence = PresenceManager(app.state.registry, app.state.hub)


def create_app(
    settings: dict[str, Any] | None = None,
    *,
    completion: CompletionService | None = None,
) -> FastAPI:
    """Build the collabide API.

    Args:
        settings: Normalized settings; loaded from disk and environment when omitted.
        completion: Completion service to use instead of creating one from settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        resolved = settings if settings is not None else load_settings()
        _build_state(app, resolved, completion)
        LOGGER.info(
            "collabide started | version=%s | persist=%s | scratch_root=%s",
            config.APP_VERSION,
            resolved["persist"],
            resolved["scratch_root"],
        )
        try:
            yield
        finally:
            await app.state.hub.close()
            app.state.registry.close()
            LOGGER.info("collabide stopped")

    app = FastAPI(title="collabide", version=config.APP_VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    app.include_router(agent.router)
    app.include_router(projects.router)
    app.include_router(collab.router)
    return app


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        LOGGER.info("Rejected request body | path=%s | errors=%d", request.url.path, len(exc.errors()))
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    @app.exception_handler(CollabError)
    async def _collab_failed(request: Request, exc: CollabError) -> JSONResponse:
        level = logging.INFO if exc.status_code < 500 else logging.ERROR
        LOGGER.log(level, "Request failed | path=%s | status=%d | error=%s", request.url.path, exc.status_code, exc)
        return JSONResponse(exc.to_payload(), status_code=exc.status_code)


__all__ = ["create_app"]
