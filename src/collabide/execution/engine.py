"""Execution engine that applies parsed agent actions to project state."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Sequence

from collabide import config
from collabide.event_bus import EventBus
from collabide.events import ActionFinished, ActionStarted, BatchCompleted, BatchStarted
from collabide.exceptions import CollabConfigurationError
from collabide.execution.command_runner import CommandResult, CommandRunner
from collabide.execution.sync import FileStateSync, find_file
from collabide.models.action import Action, ActionKind
from collabide.models.execution_record import ExecutionRecord
from collabide.models.file_record import FileRecord
from collabide.models.project import Project, User

LOGGER = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


@dataclass
class ExecutionResult:
    """Outcome of one batch: file deltas, final working list and transcript."""

    batch_id: str
    status: str = STATUS_SUCCESS
    new_files: list[FileRecord] = field(default_factory=list)
    modified_files: list[FileRecord] = field(default_factory=list)
    deleted_files: list[str] = field(default_factory=list)
    files: list[FileRecord] = field(default_factory=list)
    executions: list[ExecutionRecord | CommandResult] = field(default_factory=list)
    created_projects: list[str] = field(default_factory=list)
    transcript: list[str] = field(default_factory=list)

    @property
    def output(self) -> str:
        """Return the transcript as newline-terminated text."""
        return "".join(f"{line}\n" for line in self.transcript)

    def log(self, line: str) -> None:
        """Append a line to the transcript."""
        self.transcript.append(line)

    def fail(self, line: str) -> None:
        """Append a line and mark the batch as errored."""
        self.status = STATUS_ERROR
        self.transcript.append(line)


@dataclass
class _Batch:
    """Mutable state shared by the handlers while one batch runs."""

    project_id: str | None
    user_id: str
    files: list[FileRecord]
    result: ExecutionResult


_Handler = Callable[[Action, _Batch], "str | None"]


class ExecutionEngine:
    """Applies actions strictly in order with per-action failure isolation.

    Each handler returns ``None`` on success or a short failure detail. Any
    exception escaping a handler is caught, recorded in the transcript and
    flips the batch status to ``error``; the remaining actions still run.
    """

    def __init__(
        self,
        sync: FileStateSync,
        runner: CommandRunner | None = None,
        *,
        event_bus: EventBus,
        default_user_id: str = config.DEFAULT_USER_ID,
    ) -> None:
        self._sync = sync
        self._runner = runner or CommandRunner()
        self._event_bus = event_bus
        self._default_user_id = default_user_id
        self._handlers: Mapping[ActionKind, _Handler] = {
            ActionKind.CREATE_FILE: self._create_file,
            ActionKind.EDIT_FILE: self._edit_file,
            ActionKind.DELETE_FILE: self._delete_file,
            ActionKind.RUN_COMMAND: self._run_command,
            ActionKind.CREATE_PROJECT: self._create_project,
            ActionKind.EXPLAIN: self._explain,
            ActionKind.UNRECOGNIZED: self._unrecognized,
        }
        missing = set(ActionKind) - set(self._handlers)
        if missing:
            raise CollabConfigurationError(
                "Execution engine is missing action handlers.",
                context={"kinds": ", ".join(sorted(kind.value for kind in missing))},
            )

    @property
    def sync(self) -> FileStateSync:
        return self._sync

    @property
    def runner(self) -> CommandRunner:
        return self._runner

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    def execute(
        self,
        actions: Sequence[Action],
        project_id: str | None = None,
        files: Iterable[FileRecord] = (),
        *,
        user_id: str | None = None,
        batch_id: str | None = None,
    ) -> ExecutionResult:
        """Run ``actions`` against a copy of ``files`` and return the result."""
        batch = _Batch(
            project_id=project_id or None,
            user_id=user_id or self._default_user_id,
            files=[record.copy() for record in files],
            result=ExecutionResult(batch_id=batch_id or uuid.uuid4().hex),
        )
        result = batch.result
        started = time.perf_counter()
        LOGGER.info(
            "Batch started | batch=%s | project=%s | actions=%d | files=%d",
            result.batch_id,
            batch.project_id,
            len(actions),
            len(batch.files),
        )
        self._event_bus.emit(
            BatchStarted(batch_id=result.batch_id, project_id=batch.project_id, action_count=len(actions))
        )

        for index, action in enumerate(actions):
            self._event_bus.emit(
                ActionStarted(
                    batch_id=result.batch_id,
                    index=index,
                    kind=action.raw_kind,
                    target=action.target,
                )
            )
            try:
                failure = self._handlers[action.kind](action, batch)
            except Exception as exc:  # noqa: BLE001
                LOGGER.exception("Action failed | batch=%s | action=%s", result.batch_id, action.describe())
                result.fail(f"Error executing action {action.raw_kind}: {exc}")
                failure = str(exc)
            self._event_bus.emit(
                ActionFinished(
                    batch_id=result.batch_id,
                    index=index,
                    kind=action.raw_kind,
                    success=failure is None,
                    detail=failure,
                )
            )

        result.files = batch.files
        duration = time.perf_counter() - started
        LOGGER.info(
            "Batch finished | batch=%s | status=%s | new=%d | modified=%d | deleted=%d | duration=%.2fs",
            result.batch_id,
            result.status,
            len(result.new_files),
            len(result.modified_files),
            len(result.deleted_files),
            duration,
        )
        self._event_bus.emit(
            BatchCompleted(batch_id=result.batch_id, status=result.status, duration=duration)
        )
        return result

    def _create_file(self, action: Action, batch: _Batch) -> str | None:
        if not action.target or not action.content:
            batch.result.log("Skipped create_file: target and content are required")
            return "target and content are required"

        existed = find_file(batch.files, action.target) is not None
        record = self._sync.write(
            batch.files,
            FileRecord.new(action.target, action.content),
            batch.project_id,
        )
        if existed:
            self._mark_modified(batch.result, record)
            batch.result.log(f"Created file: {action.target} (replaced existing content)")
        else:
            batch.result.new_files.append(record)
            batch.result.log(f"Created file: {action.target}")
        return None

    def _edit_file(self, action: Action, batch: _Batch) -> str | None:
        if not action.target or not action.content:
            batch.result.log("Skipped edit_file: target and content are required")
            return "target and content are required"

        if find_file(batch.files, action.target) is None:
            batch.result.log(f"File not found: {action.target}")
            return "file not found"

        record = self._sync.write(
            batch.files,
            FileRecord.new(action.target, action.content),
            batch.project_id,
        )
        self._mark_modified(batch.result, record)
        batch.result.log(f"Modified file: {action.target}")
        return None

    def _delete_file(self, action: Action, batch: _Batch) -> str | None:
        if not action.target:
            batch.result.log("Skipped delete_file: target is required")
            return "target is required"

        removed = self._sync.remove(batch.files, action.target, batch.project_id)
        if removed is None:
            batch.result.log(f"File not found: {action.target}")
            return "file not found"

        result = batch.result
        if not _drop(result.new_files, removed):
            _drop(result.modified_files, removed)
            result.deleted_files.append(removed.name)
        result.log(f"Deleted file: {action.target}")
        return None

    def _run_command(self, action: Action, batch: _Batch) -> str | None:
        command = action.command_line
        if not command:
            batch.result.log("Skipped run_command: no command given")
            return "no command given"
        if not batch.project_id:
            batch.result.log(f"Command skipped: {command} (no project context)")
            return "no project context"

        self._sync.materialize(batch.project_id, batch.files)
        workdir = self._sync.mirror.project_dir(batch.project_id)
        outcome = self._runner.run(command, workdir)

        if outcome.succeeded:
            batch.result.log(f"Command: {command}")
            batch.result.log(f"Output: {outcome.stdout}")
            if outcome.stderr:
                batch.result.log(f"Error: {outcome.stderr}")
        else:
            batch.result.fail(f"Command failed: {command}")
            batch.result.log(f"Error: {outcome.failure_message}")

        if self._sync.persist_enabled:
            batch.result.executions.append(
                record_command(outcome, project_id=batch.project_id, user_id=batch.user_id)
            )
        else:
            batch.result.executions.append(outcome)
        return None if outcome.succeeded else outcome.failure_message

    def _create_project(self, action: Action, batch: _Batch) -> str | None:
        name = (action.target or "").strip()
        if not name:
            batch.result.log("Skipped create_project: a project name is required")
            return "project name is required"
        if not self._sync.persist_enabled:
            batch.result.log(f"Project creation skipped: {name} (no persistent store configured)")
            return "no persistent store configured"

        project = Project.create(name=name, description=action.content, owner_id=batch.user_id)
        batch.result.created_projects.append(project.id)
        batch.result.log(f"Created project: {project.name} ({project.id})")
        return None

    def _explain(self, action: Action, batch: _Batch) -> str | None:
        return None

    def _unrecognized(self, action: Action, batch: _Batch) -> str | None:
        batch.result.log(f"Unrecognized action: {action.raw_kind}")
        return "unrecognized action"

    @staticmethod
    def _mark_modified(result: ExecutionResult, record: FileRecord) -> None:
        if any(existing is record for existing in result.new_files):
            return
        if not any(existing is record for existing in result.modified_files):
            result.modified_files.append(record)


def record_command(outcome: CommandResult, *, project_id: str, user_id: str) -> ExecutionRecord:
    """Persist one command run, creating the placeholder user on first use."""
    User.ensure(user_id, config.DEFAULT_USER_NAME)
    return ExecutionRecord.record(
        project_id=project_id,
        user_id=user_id,
        command=outcome.command,
        output=outcome.stdout if outcome.succeeded else None,
        error=(outcome.stderr or None) if outcome.succeeded else outcome.failure_message,
        exit_code=outcome.exit_code,
        duration_ms=outcome.duration_ms,
    )


def _drop(records: list[FileRecord], target: FileRecord) -> bool:
    for index, record in enumerate(records):
        if record is target:
            del records[index]
            return True
    return False


__all__ = ["ExecutionEngine", "ExecutionResult", "STATUS_ERROR", "STATUS_SUCCESS", "record_command"]
