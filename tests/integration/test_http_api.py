"""End-to-end tests for the HTTP API."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi.testclient import TestClient

from collabide.models.execution_record import ExecutionRecord
from collabide.web.app import create_app
from helpers import FakeAnthropicClient, action_block


def test_health_reports_version_and_rooms(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "version": "0.3.0",
        "rooms": 0,
        "activeBatches": 0,
        "persist": True,
    }


def test_agent_turn_creates_files_and_persists_them(
    client: TestClient, fake_client: FakeAnthropicClient, scratch_root: Path
) -> None:
    fake_client.queue(
        "Creating the entry point.\n\n"
        + action_block("create_file", target="app.js", content="console.log('hi')")
        + action_block("run_command", target="cat app.js")
    )

    response = client.post(
        "/api/ai/agent",
        json={
            "message": "make an app",
            "projectId": "demo",
            "files": [{"name": "README.md", "content": "# Demo"}],
            "context": [{"role": "user", "content": "hello"}],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert [action["type"] for action in body["actions"]] == ["create_file", "run_command"]
    assert [action["status"] for action in body["actions"]] == ["completed", "completed"]
    assert body["actions"][0]["notice"] == "Created file: app.js"
    assert [(change["name"], change["type"]) for change in body["changes"]] == [("app.js", "created")]
    assert [file["name"] for file in body["files"]] == ["README.md", "app.js"]
    assert body["files"][1]["language"] == "js"
    assert "Created file: app.js\n" in body["output"]
    assert "Output: console.log('hi')" in body["output"]
    assert (scratch_root / "demo" / "app.js").is_file()

    stored = client.get("/api/projects/demo/files").json()
    assert [file["name"] for file in stored] == ["app.js"]
    assert stored[0]["projectId"] == "demo"
    assert "Previous conversation:\nUser: hello" in fake_client.last_call["messages"][0]["content"]


def test_agent_requires_message(client: TestClient, fake_client: FakeAnthropicClient) -> None:
    response = client.post("/api/ai/agent", json={"message": "  "})

    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}
    assert fake_client.calls == []


def test_malformed_body_is_a_bad_request(client: TestClient) -> None:
    response = client.post("/api/ai/agent", json={"message": "hi", "files": "nope"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_completion_failure_is_a_server_error(client: TestClient, fake_client: FakeAnthropicClient) -> None:
    fake_client.error = RuntimeError("upstream down")

    response = client.post("/api/ai/agent", json={"message": "hello"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to get a response from the AI service"}


def test_missing_api_key_only_fails_ai_routes(app_settings: dict[str, Any]) -> None:
    with TestClient(create_app(app_settings)) as client:
        assert client.get("/health").status_code == 200
        response = client.post("/api/ai/agent", json={"message": "hello"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to get a response from the AI service"}


def test_assist_returns_labelled_code(client: TestClient, fake_client: FakeAnthropicClient) -> None:
    fake_client.queue("Use this:\n```js\nconst x = 1;\n```")

    response = client.post(
        "/api/ai/assist",
        json={"code": "var x = 1", "language": "javascript", "query": "improve this"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "content": "Use this:\n```js\nconst x = 1;\n```",
        "type": "suggestion",
        "code": "const x = 1;",
    }
    assert fake_client.last_call["temperature"] == 0.7


def test_assist_requires_all_fields(client: TestClient) -> None:
    response = client.post("/api/ai/assist", json={"code": "x", "language": "py"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


def test_execute_runs_command_against_given_files(client: TestClient) -> None:
    response = client.post(
        "/api/projects/p1/execute",
        json={"command": "cat notes.txt", "files": [{"name": "notes.txt", "content": "from the editor"}]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["output"] == "from the editor"
    assert body["exitCode"] == 0
    assert body["timedOut"] is False
    (record,) = ExecutionRecord.get_by_project("p1")
    assert record.user_id == "temp-user-id"
    assert record.status == "completed"


def test_execute_reports_failing_command(client: TestClient) -> None:
    response = client.post("/api/projects/p1/execute", json={"command": "exit 4", "files": []})

    body = response.json()
    assert response.status_code == 200
    assert body["exitCode"] == 4
    assert body["output"] == ""
    assert body["error"] == "Command exited with code 4"


def test_execute_requires_command_and_files(client: TestClient) -> None:
    missing_files = client.post("/api/projects/p1/execute", json={"command": "ls"})
    missing_command = client.post("/api/projects/p1/execute", json={"files": []})

    assert missing_files.status_code == 400
    assert missing_files.json() == {"error": "Missing command or files"}
    assert missing_command.status_code == 400


def test_mirror_rebuild_restores_stored_files(
    client: TestClient, fake_client: FakeAnthropicClient, scratch_root: Path
) -> None:
    fake_client.queue(action_block("create_file", target="index.html", content="<h1>Hi</h1>"))
    client.post("/api/ai/agent", json={"message": "page", "projectId": "site"})
    (scratch_root / "site" / "index.html").unlink()
    (scratch_root / "site" / "leftover.txt").write_text("x", encoding="utf-8")

    response = client.post("/api/projects/site/mirror/rebuild")

    assert response.status_code == 200
    assert response.json() == {"projectId": "site", "files": ["index.html"]}
    assert sorted(path.name for path in (scratch_root / "site").iterdir()) == ["index.html"]


def test_store_endpoints_without_persistence(app_settings: dict[str, Any], completion) -> None:
    settings = dict(app_settings, persist=False)
    with TestClient(create_app(settings, completion=completion)) as client:
        assert client.get("/api/projects/p1/files").json() == []
        response = client.post("/api/projects/p1/mirror/rebuild")

    assert response.status_code == 400
    assert response.json() == {"error": "Mirror rebuild requires a persistent store"}


def test_agent_reports_failed_actions_individually(client: TestClient, fake_client: FakeAnthropicClient) -> None:
    fake_client.queue(
        action_block("edit_file", target="ghost.js", content="x")
        + action_block("create_file", target="real.js", content="y")
    )

    response = client.post("/api/ai/agent", json={"message": "go", "projectId": "demo"})

    assert response.status_code == 200
    actions = response.json()["actions"]
    assert [(action["type"], action["status"]) for action in actions] == [
        ("edit_file", "error"),
        ("create_file", "completed"),
    ]
    assert actions[0]["notice"] is None
