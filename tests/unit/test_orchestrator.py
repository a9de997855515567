"""Tests for the agent turn orchestrator."""

from __future__ import annotations

import pytest

from collabide import config
from collabide.events import ActionFinished, ActionStarted
from collabide.exceptions import CollabValidationError, CompletionServiceError
from collabide.execution.engine import ExecutionEngine, ExecutionResult
from collabide.models.file_record import FileRecord
from collabide.orchestrator import (
    MODE_CHAT,
    AgentOrchestrator,
    AgentRequest,
    ChatMessage,
    build_project_context,
    build_user_prompt,
    merge_files,
)
from collabide.services.completion_service import CompletionService
from collabide.timeline import ActionStatus
from helpers import FakeAnthropicClient, action_block


@pytest.fixture()
def orchestrator(completion: CompletionService, engine: ExecutionEngine) -> AgentOrchestrator:
    return AgentOrchestrator(completion, engine)


def test_project_context_renders_fenced_files() -> None:
    files = [FileRecord.new("a.py", "x = 1"), FileRecord.new("b.js", "y")]

    assert build_project_context([]) == "No files in current project."
    assert build_project_context(files) == (
        "Current project files:\nFile: a.py\n```py\nx = 1\n```\n\nFile: b.js\n```js\ny\n```"
    )


def test_user_prompt_includes_history_files_request_and_mode_hint() -> None:
    request = AgentRequest(
        message="add tests",
        files=[FileRecord.new("a.py", "x")],
        context=[ChatMessage("user", "hello"), ChatMessage("assistant", "hi")],
        mode=MODE_CHAT,
    )

    prompt = build_user_prompt(request)

    assert prompt.startswith("Previous conversation:\nUser: hello\nAssistant: hi\n\nCurrent project files:")
    assert "User request: add tests" in prompt
    assert prompt.endswith("Provide guidance and suggestions for this request.")


def test_turn_executes_actions_and_returns_merged_files(
    orchestrator: AgentOrchestrator, fake_client: FakeAnthropicClient
) -> None:
    reply = (
        "I'll update things.\n\n"
        + action_block("edit_file", target="keep.py", content="new body")
        + action_block("delete_file", target="old.py")
        + action_block("create_file", target="fresh.py", content="print(1)")
    )
    fake_client.queue(reply)
    files = [FileRecord.new("keep.py", "old body"), FileRecord.new("old.py", "x"), FileRecord.new("same.py", "s")]

    result = orchestrator.run_turn(AgentRequest(message="refactor", files=files))

    assert result.message == reply
    assert [action.raw_kind for action in result.actions] == ["edit_file", "delete_file", "create_file"]
    assert [(record.name, record.content) for record in result.files] == [
        ("keep.py", "new body"),
        ("same.py", "s"),
        ("fresh.py", "print(1)"),
    ]
    assert result.status == "success"
    assert result.output == "Modified file: keep.py\nDeleted file: old.py\nCreated file: fresh.py\n"
    assert fake_client.last_call["temperature"] == 0.3
    assert fake_client.last_call["max_tokens"] == 3000
    assert set(result.to_dict()) == {"message", "actions", "files", "changes", "output", "status"}


def test_empty_completion_yields_apology_and_no_actions(
    orchestrator: AgentOrchestrator, fake_client: FakeAnthropicClient
) -> None:
    fake_client.queue("")

    result = orchestrator.run_turn(AgentRequest(message="hello"))

    assert result.message == config.APOLOGY_MESSAGE
    assert result.actions == []
    assert result.output == ""
    assert result.status == "success"


def test_completion_failure_propagates(orchestrator: AgentOrchestrator, fake_client: FakeAnthropicClient) -> None:
    fake_client.error = RuntimeError("boom")

    with pytest.raises(CompletionServiceError):
        orchestrator.run_turn(AgentRequest(message="hello"))


@pytest.mark.parametrize("message", ["", "   "])
def test_message_is_required(orchestrator: AgentOrchestrator, fake_client: FakeAnthropicClient, message: str) -> None:
    with pytest.raises(CollabValidationError):
        orchestrator.run_turn(AgentRequest(message=message))
    assert fake_client.calls == []


def test_merge_files_keeps_order_and_skips_duplicate_new_names() -> None:
    original = [FileRecord.new("a.txt", "a"), FileRecord.new("b.txt", "b")]
    result = ExecutionResult(
        batch_id="b",
        new_files=[FileRecord.new("a.txt", "dup"), FileRecord.new("c.txt", "c")],
        modified_files=[FileRecord.new("b.txt", "B")],
        deleted_files=[],
    )

    merged = merge_files(original, result)

    assert [(record.name, record.content) for record in merged] == [("a.txt", "a"), ("b.txt", "B"), ("c.txt", "c")]


def test_turn_reports_final_status_of_each_action(
    orchestrator: AgentOrchestrator, engine: ExecutionEngine, fake_client: FakeAnthropicClient
) -> None:
    fake_client.queue(
        action_block("edit_file", target="missing.py", content="x")
        + action_block("create_file", target="fresh.py", content="print(1)")
    )
    seen: list[ActionStarted] = []
    engine.event_bus.subscribe(ActionStarted, seen.append)

    result = orchestrator.run_turn(AgentRequest(message="go", files=[FileRecord.new("old.py", "o")]))

    assert result.timeline.statuses == [ActionStatus.ERROR, ActionStatus.COMPLETED]
    actions = result.to_dict()["actions"]
    assert [(action["type"], action["status"]) for action in actions] == [
        ("edit_file", "error"),
        ("create_file", "completed"),
    ]
    assert actions[1]["notice"] == "Created file: fresh.py"
    assert [(change.name, change.change_type.value) for change in result.changes] == [("fresh.py", "created")]

    engine.event_bus.emit(ActionFinished(batch_id=seen[0].batch_id, index=1, kind="create_file", success=False))
    assert result.timeline.statuses[1] is ActionStatus.COMPLETED
