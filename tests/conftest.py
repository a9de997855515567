"""Shared pytest fixtures for the collabide test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient

from collabide import database
from collabide.event_bus import EventBus
from collabide.execution.command_runner import CommandRunner
from collabide.execution.engine import ExecutionEngine
from collabide.execution.mirror import FilesystemMirror
from collabide.execution.sync import FileStateSync
from collabide.presence.manager import PresenceManager
from collabide.presence.registry import RoomRegistry
from collabide.services.completion_service import CompletionService
from collabide.utils.settings import normalize_settings
from collabide.web.app import create_app
from helpers import FakeAnthropicClient, RecordingTransport


@pytest.fixture()
def isolated_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Redirect the SQLite database to a temporary file for each test."""
    db_path = tmp_path / "collabide.db"
    monkeypatch.setattr(database, "get_database_path", lambda: db_path)
    database.initialize_database()
    yield db_path


@pytest.fixture()
def scratch_root(tmp_path: Path) -> Path:
    """Provide an isolated root for project mirrors."""
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture()
def mirror(scratch_root: Path) -> FilesystemMirror:
    return FilesystemMirror(scratch_root)


@pytest.fixture()
def memory_sync(mirror: FilesystemMirror) -> FileStateSync:
    """Sync that writes the mirror and working list but no database."""
    return FileStateSync(mirror, persist=False)


@pytest.fixture()
def store_sync(mirror: FilesystemMirror, isolated_db: Path) -> FileStateSync:
    """Sync backed by the temporary database."""
    return FileStateSync(mirror, persist=True)


@pytest.fixture()
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def runner() -> CommandRunner:
    return CommandRunner(timeout=5.0)


@pytest.fixture()
def engine(memory_sync: FileStateSync, runner: CommandRunner, event_bus: EventBus) -> ExecutionEngine:
    return ExecutionEngine(memory_sync, runner, event_bus=event_bus)


@pytest.fixture()
def store_engine(store_sync: FileStateSync, runner: CommandRunner, event_bus: EventBus) -> ExecutionEngine:
    return ExecutionEngine(store_sync, runner, event_bus=event_bus)


@pytest.fixture()
def fake_client() -> FakeAnthropicClient:
    return FakeAnthropicClient()


@pytest.fixture()
def completion(fake_client: FakeAnthropicClient) -> CompletionService:
    return CompletionService(client=fake_client, model_name="test-model")


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def presence(transport: RecordingTransport) -> PresenceManager:
    return PresenceManager(RoomRegistry(), transport)


@pytest.fixture()
def app_settings(scratch_root: Path, isolated_db: Path) -> dict[str, Any]:
    """Normalized settings for an app backed by the temporary store."""
    values: dict[str, Any] = {
        "scratch_root": str(scratch_root),
        "persist": True,
        "command_timeout": 5,
        "anthropic_api_key": "",
    }
    normalize_settings(values)
    return values


@pytest.fixture()
def client(app_settings: dict[str, Any], completion: CompletionService) -> Iterator[TestClient]:
    app = create_app(app_settings, completion=completion)
    with TestClient(app) as test_client:
        yield test_client
