"""Unit tests for the agent action parser."""

from __future__ import annotations

import pytest

from collabide.agent import parse_actions
from collabide.models.action import ActionKind
from helpers import action_block


def test_example_block_parses_to_single_create_file() -> None:
    text = "ACTION: create_file\nTARGET: a.js\nCONTENT: console.log(1)\nREASONING: demo\n"

    actions = parse_actions(text)

    assert len(actions) == 1
    action = actions[0]
    assert action.kind is ActionKind.CREATE_FILE
    assert action.target == "a.js"
    assert action.content == "console.log(1)"
    assert action.reasoning == "demo"


@pytest.mark.parametrize("count", [1, 2, 5])
def test_each_reasoned_block_yields_one_action_in_order(count: int) -> None:
    text = "I'll get started.\n\n" + "\n".join(
        action_block("create_file", target=f"f{index}.txt", content=f"body {index}", reasoning=f"r{index}")
        for index in range(count)
    ) + "\nAll done."

    actions = parse_actions(text)

    assert [action.target for action in actions] == [f"f{index}.txt" for index in range(count)]
    assert [action.reasoning for action in actions] == [f"r{index}" for index in range(count)]


def test_block_without_reasoning_is_dropped() -> None:
    text = (
        action_block("create_file", target="kept.py", content="x = 1")
        + action_block("create_file", target="dropped.py", reasoning=None)
        + action_block("delete_file", target="old.py")
    )

    actions = parse_actions(text)

    assert [action.target for action in actions] == ["kept.py", "old.py"]


def test_trailing_block_with_content_but_no_reasoning_is_dropped() -> None:
    text = action_block("explain") + "ACTION: create_file\nTARGET: late.py\nCONTENT: x = 1\ny = 2\n"

    actions = parse_actions(text)

    assert [action.kind for action in actions] == [ActionKind.EXPLAIN]


def test_multiline_content_is_reconstructed_verbatim() -> None:
    body = ["def main():", "    print('a')", "", "    return 0", "# end"]
    text = "ACTION: create_file\nTARGET: main.py\nCONTENT: " + "\n".join(body) + "\nREASONING: entry point\n"

    (action,) = parse_actions(text)

    assert action.content == "\n".join(body)
    assert action.content.splitlines() == body


def test_content_after_bare_key_starts_with_empty_line() -> None:
    text = "ACTION: create_file\nTARGET: index.html\nCONTENT:\n<h1>Hi</h1>\n<p>x</p>\nREASONING: page\n"

    (action,) = parse_actions(text)

    assert action.content == "\n<h1>Hi</h1>\n<p>x</p>"


def test_content_capture_is_greedy_until_reasoning() -> None:
    text = "ACTION: create_file\nTARGET: notes.md\nCONTENT: first\nACTION: delete_file\nTARGET: x\nREASONING: notes\n"

    (action,) = parse_actions(text)

    assert action.kind is ActionKind.CREATE_FILE
    assert action.content == "first\nACTION: delete_file\nTARGET: x"


def test_indented_reasoning_line_ends_content() -> None:
    text = "ACTION: edit_file\nTARGET: a.py\nCONTENT: x = 1\n    REASONING: tweak\n"

    (action,) = parse_actions(text)

    assert action.content == "x = 1"
    assert action.reasoning == "tweak"


def test_value_keeps_text_after_first_colon() -> None:
    text = "ACTION: run_command\nTARGET: echo a:b\nREASONING: Step 1: check output\n"

    (action,) = parse_actions(text)

    assert action.target == "echo a:b"
    assert action.reasoning == "Step 1: check output"
    assert action.command_line == "echo a:b"


def test_command_key_overrides_target_for_command_line() -> None:
    (action,) = parse_actions(action_block("run_command", target="ignored", command="ls -la"))

    assert action.command == "ls -la"
    assert action.command_line == "ls -la"


def test_unknown_kind_becomes_unrecognized_and_keeps_raw_token() -> None:
    (action,) = parse_actions(action_block("deploy_site", target="prod"))

    assert action.kind is ActionKind.UNRECOGNIZED
    assert action.raw_kind == "deploy_site"
    assert action.to_dict()["type"] == "deploy_site"


def test_keys_are_case_sensitive_and_lines_are_stripped() -> None:
    text = "  action: create_file\n   ACTION: explain\n  REASONING:   why not  \n"

    (action,) = parse_actions(text)

    assert action.kind is ActionKind.EXPLAIN
    assert action.reasoning == "why not"


def test_fields_before_any_action_are_ignored() -> None:
    text = "TARGET: stray.txt\nREASONING: none\n" + action_block("explain")

    (action,) = parse_actions(text)

    assert action.target is None


@pytest.mark.parametrize("text", [None, "", "just prose\nno actions here", "ACTION:\nREASONING: empty kind\n"])
def test_inputs_without_complete_actions_yield_nothing(text: str | None) -> None:
    assert parse_actions(text) == []
