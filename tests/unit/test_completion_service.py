"""Tests for the Anthropic-backed completion service."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from collabide import config
from collabide.exceptions import CompletionServiceError
from collabide.services.completion_service import CompletionService
from helpers import FakeAnthropicClient


def test_request_carries_prompts_and_sampling(completion: CompletionService, fake_client: FakeAnthropicClient) -> None:
    fake_client.queue("Sure thing.")

    text = completion.complete("system text", "user text", temperature=0.3, max_tokens=3000)

    assert text == "Sure thing."
    call = fake_client.last_call
    assert call["model"] == "test-model"
    assert call["system"] == "system text"
    assert call["messages"] == [{"role": "user", "content": "user text"}]
    assert call["temperature"] == 0.3
    assert call["max_tokens"] == 3000


@pytest.mark.parametrize("reply", ["", "   \n", None])
def test_empty_completion_becomes_apology(
    completion: CompletionService, fake_client: FakeAnthropicClient, reply: str | None
) -> None:
    fake_client.queue(reply)

    assert completion.complete("s", "u", temperature=0.5, max_tokens=256) == config.APOLOGY_MESSAGE


def test_non_text_blocks_are_ignored(completion: CompletionService, fake_client: FakeAnthropicClient) -> None:
    def create(**_kwargs):
        return SimpleNamespace(
            content=[
                SimpleNamespace(type="tool_use", text="ignored"),
                SimpleNamespace(type="text", text="Hello "),
                SimpleNamespace(type="text", text="world"),
            ]
        )

    fake_client.messages.create = create

    assert completion.complete("s", "u", temperature=0.5, max_tokens=256) == "Hello world"


def test_client_failure_raises_service_error(completion: CompletionService, fake_client: FakeAnthropicClient) -> None:
    fake_client.error = ConnectionError("network down")

    with pytest.raises(CompletionServiceError):
        completion.complete("s", "u", temperature=0.5, max_tokens=256)


def test_missing_api_key_is_a_service_error() -> None:
    with pytest.raises(CompletionServiceError):
        CompletionService(api_key=None)


def test_real_client_is_built_from_api_key() -> None:
    service = CompletionService(api_key="sk-test")

    assert service._client is not None
