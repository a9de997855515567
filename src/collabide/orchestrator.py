"""Agent turn orchestration: prompt, completion, parse, execute, merge."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from collabide import config
from collabide.agent.parser import parse_actions
from collabide.exceptions import CollabValidationError
from collabide.execution.engine import ExecutionEngine, ExecutionResult
from collabide.execution.run_queue import ProjectRunQueue
from collabide.models.action import Action
from collabide.models.file_record import FileRecord
from collabide.services.assist_service import format_history
from collabide.services.completion_service import CompletionService
from collabide.timeline import ActionTimeline, FileChange, summarize_file_changes

LOGGER = logging.getLogger(__name__)

MODE_AUTONOMOUS = "autonomous"
MODE_CHAT = "chat"

AGENT_SYSTEM_PROMPT = """
You are an autonomous AI coding agent working inside a shared browser IDE. You can read,
create, edit, and delete files, run commands, and build complete applications.

Your capabilities:
1. Create new files with proper content
2. Edit existing files by modifying their content
3. Delete files when necessary
4. Run terminal commands and execute code
5. Build complete projects from scratch
6. Debug and fix issues
7. Explain code and concepts

When responding, structure your response as follows:
1. First, explain what you are going to do
2. Then, provide specific actions in this format:
   ACTION: create_file|edit_file|delete_file|run_command|create_project|explain
   TARGET: filename or command
   CONTENT: file content (for create/edit)
   REASONING: why you are taking this action
3. Provide your response message
4. Continue with next actions if needed

Example response format:
I'll create a simple web page.

ACTION: create_file
TARGET: index.html
CONTENT: <!DOCTYPE html>
<html>
<body>
    <h1>Hello World</h1>
</body>
</html>
REASONING: Creating the main HTML file for the web application

ACTION: run_command
TARGET: ls -la
REASONING: Confirming the file was written

I've created a basic web page. Open index.html in your browser to see the result.

Every action must end with a REASONING line. Always be specific about file names.
Use flat file names with appropriate extensions; nested directories are not supported.
""".strip()

_AUTONOMOUS_HINT = (
    "Work autonomously to complete this request. Create, edit, or delete files as needed. "
    "Run commands if necessary."
)
_CHAT_HINT = "Provide guidance and suggestions for this request."


@dataclass(frozen=True, slots=True)
class ChatMessage:
    role: str
    content: str


@dataclass(frozen=True)
class AgentRequest:
    """One agent turn as submitted by a client."""

    message: str
    project_id: str | None = None
    files: Sequence[FileRecord] = ()
    context: Sequence[ChatMessage] = ()
    mode: str = MODE_AUTONOMOUS
    user_id: str | None = None


@dataclass(frozen=True)
class AgentTurnResult:
    """What the client receives after a turn.

    ``timeline`` holds the final status of every action in ``actions`` and
    ``changes`` summarizes how ``files`` differs from the submitted snapshot.
    """

    message: str
    actions: list[Action]
    files: list[FileRecord]
    output: str
    status: str
    timeline: ActionTimeline = field(repr=False)
    changes: list[FileChange] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "actions": self.timeline.to_list(),
            "files": [record.to_dict() for record in self.files],
            "changes": [change.to_dict() for change in self.changes],
            "output": self.output,
            "status": self.status,
        }


def build_project_context(files: Iterable[FileRecord]) -> str:
    """Render the project files as fenced blocks for the prompt."""
    blocks = [
        f"File: {record.name}\n```{record.language}\n{record.content}\n```"
        for record in files
    ]
    if not blocks:
        return "No files in current project."
    return "Current project files:\n" + "\n\n".join(blocks)


def build_user_prompt(request: AgentRequest, context_limit: int = config.CONTEXT_MESSAGE_LIMIT) -> str:
    hint = _CHAT_HINT if request.mode == MODE_CHAT else _AUTONOMOUS_HINT
    return (
        f"{format_history(request.context, context_limit)}"
        f"{build_project_context(request.files)}\n\n"
        f"User request: {request.message}\n\n"
        f"{hint}"
    )


def merge_files(original: Sequence[FileRecord], result: ExecutionResult) -> list[FileRecord]:
    """Fold a batch's deltas back into the caller's file list.

    Deleted names are dropped, modified files replace originals of the same
    name, untouched originals pass through, and new files are appended.
    """
    deleted = set(result.deleted_files)
    modified = {record.name: record for record in result.modified_files}
    merged = [
        modified.get(record.name, record)
        for record in original
        if record.name not in deleted
    ]
    present = {record.name for record in merged}
    merged.extend(record for record in result.new_files if record.name not in present)
    return merged


class AgentOrchestrator:
    """Runs one agent turn end to end against a caller-supplied file snapshot."""

    def __init__(
        self,
        completion: CompletionService,
        engine: ExecutionEngine,
        run_queue: ProjectRunQueue | None = None,
        *,
        temperature: float = config.AGENT_TEMPERATURE,
        max_tokens: int = config.AGENT_MAX_TOKENS,
        context_limit: int = config.CONTEXT_MESSAGE_LIMIT,
        system_prompt: str = AGENT_SYSTEM_PROMPT,
    ) -> None:
        self._completion = completion
        self._engine = engine
        self._run_queue = run_queue or ProjectRunQueue()
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._context_limit = context_limit
        self._system_prompt = system_prompt

    @property
    def engine(self) -> ExecutionEngine:
        return self._engine

    def run_turn(self, request: AgentRequest) -> AgentTurnResult:
        """Complete, parse and execute one request.

        Raises:
            CollabValidationError: If the request carries no message.
            CompletionServiceError: If the completion service fails; no partial
                turn is returned in that case.
        """
        if not request.message or not request.message.strip():
            raise CollabValidationError("Message is required")

        started = time.perf_counter()
        LOGGER.info(
            "Agent turn started | project=%s | mode=%s | files=%d | context=%d",
            request.project_id,
            request.mode,
            len(request.files),
            len(request.context),
        )
        text = self._completion.complete(
            self._system_prompt,
            build_user_prompt(request, self._context_limit),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        actions = parse_actions(text)
        batch_id = uuid.uuid4().hex
        timeline = ActionTimeline(actions)
        timeline.bind(self._engine.event_bus, batch_id)
        try:
            with self._run_queue.hold(request.project_id):
                result = self._engine.execute(
                    actions,
                    request.project_id,
                    request.files,
                    user_id=request.user_id,
                    batch_id=batch_id,
                )
        finally:
            timeline.unbind()

        merged = merge_files(request.files, result)
        LOGGER.info(
            "Agent turn finished | project=%s | actions=%d | status=%s | duration=%.2fs",
            request.project_id,
            len(actions),
            result.status,
            time.perf_counter() - started,
        )
        return AgentTurnResult(
            message=text,
            actions=actions,
            files=merged,
            output=result.output,
            status=result.status,
            timeline=timeline,
            changes=summarize_file_changes(request.files, merged),
        )


__all__ = [
    "AGENT_SYSTEM_PROMPT",
    "AgentOrchestrator",
    "AgentRequest",
    "AgentTurnResult",
    "ChatMessage",
    "MODE_AUTONOMOUS",
    "MODE_CHAT",
    "build_project_context",
    "build_user_prompt",
    "merge_files",
]
