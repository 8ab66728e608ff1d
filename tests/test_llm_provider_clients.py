"""Tests for provider clients and environment helpers."""

from __future__ import annotations

import os

import pytest

from framework.agents import env_utils
from framework.agents.provider_clients import (
    DEFAULT_ANTHROPIC_MODEL,
    AnthropicMessagesClient,
    AzureOpenAIChatClient,
    LocalOpenAICompatClient,
    OllamaClient,
    OpenAIChatClient,
    PerplexityChatClient,
    local_client,
)


def test_load_dotenv_sets_missing_vars(tmp_path, monkeypatch) -> None:
    dotenv = tmp_path / ".env"
    dotenv.write_text("OPENAI_API_KEY=test-key\n# comment\nexport AZURE_KEY='quoted'\n", encoding="utf-8")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("AZURE_KEY", raising=False)
    monkeypatch.setattr(env_utils, "_DOTENV_LOADED", False)
    env_utils.load_dotenv(dotenv)
    assert os.getenv("OPENAI_API_KEY") == "test-key"
    assert os.getenv("AZURE_KEY") == "quoted"


def test_require_env_any_names_candidates(monkeypatch) -> None:
    monkeypatch.setattr(env_utils, "_DOTENV_LOADED", True)
    monkeypatch.delenv("NOT_SET_A", raising=False)
    monkeypatch.delenv("NOT_SET_B", raising=False)
    with pytest.raises(ValueError, match="NOT_SET_A, NOT_SET_B"):
        env_utils.require_env_any("NOT_SET_A", "NOT_SET_B")


def test_openai_client_extracts_content(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "x")
    captured: dict[str, object] = {}

    def fake_post_json(url, payload, headers, timeout_sec=60.0):  # noqa: ANN001
        captured.update(url=url, payload=payload, headers=headers)
        return {"choices": [{"message": {"content": '{"guesses":[1]}'}}]}

    monkeypatch.setattr("framework.agents.provider_clients.post_json", fake_post_json)
    client = OpenAIChatClient(model="gpt-4o-mini")
    assert client.complete("hello", system_prompt="sys").strip() == '{"guesses":[1]}'
    assert captured["url"] == "https://api.openai.com/v1/chat/completions"
    assert captured["headers"] == {"Authorization": "Bearer x"}
    assert [message["role"] for message in captured["payload"]["messages"]] == ["system", "user"]


def test_openai_client_joins_content_blocks(monkeypatch) -> None:
    monkeypatch.setenv("PERPLEXITY_API_KEY", "x")

    def fake_post_json(url, payload, headers, timeout_sec=60.0):  # noqa: ANN001
        return {"choices": [{"message": {"content": [{"text": '{"word":'}, {"text": '"pets","count":1}'}]}}]}

    monkeypatch.setattr("framework.agents.provider_clients.post_json", fake_post_json)
    assert PerplexityChatClient().complete("hello") == '{"word":"pets","count":1}'


def test_openai_client_rejects_empty_choices(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "x")
    monkeypatch.setattr("framework.agents.provider_clients.post_json", lambda **kwargs: {"choices": []})
    with pytest.raises(ValueError):
        OpenAIChatClient().complete("hello")


def test_azure_client_targets_deployment_with_api_key_header(monkeypatch) -> None:
    monkeypatch.delenv("AZURE_OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("AZURE_OPENAI_API_VERSION", raising=False)
    monkeypatch.delenv("AZURE_OPENAI_DEPLOYMENT", raising=False)
    monkeypatch.setenv("AZURE_KEY", "azure-secret")
    monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://example.openai.azure.com/")
    captured: dict[str, object] = {}

    def fake_post_json(url, payload, headers, timeout_sec=60.0):  # noqa: ANN001
        captured.update(url=url, payload=payload, headers=headers)
        return {"choices": [{"message": {"content": '{"guesses":[3]}'}}]}

    monkeypatch.setattr("framework.agents.provider_clients.post_json", fake_post_json)
    out = AzureOpenAIChatClient(max_tokens=200).complete("hello")

    assert out == '{"guesses":[3]}'
    assert captured["url"] == (
        "https://example.openai.azure.com/openai/deployments/gpt-4.1/chat/completions"
        "?api-version=2024-04-01-preview"
    )
    assert captured["headers"] == {"api-key": "azure-secret"}
    assert captured["payload"]["max_tokens"] == 200
    assert "model" not in captured["payload"]


def test_azure_client_requires_endpoint(monkeypatch) -> None:
    monkeypatch.setenv("AZURE_KEY", "azure-secret")
    monkeypatch.delenv("AZURE_OPENAI_ENDPOINT", raising=False)
    with pytest.raises(ValueError, match="AZURE_OPENAI_ENDPOINT"):
        AzureOpenAIChatClient(deployment="codenames").complete("hello")


def test_anthropic_client_extracts_text_blocks(monkeypatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "x")
    monkeypatch.delenv("ANTHROPIC_MODEL", raising=False)

    def fake_post_json(url, payload, headers, timeout_sec=60.0):  # noqa: ANN001
        return {"content": [{"type": "text", "text": '{"guesses":[1]}'}]}

    monkeypatch.setattr("framework.agents.provider_clients.post_json", fake_post_json)
    client = AnthropicMessagesClient(model="claude")
    assert client.complete("hello").strip() == '{"guesses":[1]}'


def test_anthropic_client_uses_v1_messages_path_and_aliases_retired_model(monkeypatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "x")
    monkeypatch.setenv("ANTHROPIC_MODEL", "claude-3-5-sonnet-latest")
    monkeypatch.delenv("ANTHROPIC_BASE_URL", raising=False)
    captured: dict[str, object] = {}

    def fake_post_json(url, payload, headers, timeout_sec=60.0):  # noqa: ANN001
        captured["url"] = url
        captured["payload"] = payload
        return {"content": [{"type": "text", "text": '{"word":"pets","count":1}'}]}

    monkeypatch.setattr("framework.agents.provider_clients.post_json", fake_post_json)
    client = AnthropicMessagesClient(base_url="https://api.anthropic.com")
    out = client.complete("hello", system_prompt="sys")
    assert out.strip() == '{"word":"pets","count":1}'
    assert captured["url"] == "https://api.anthropic.com/v1/messages"
    assert captured["payload"]["model"] == DEFAULT_ANTHROPIC_MODEL
    assert captured["payload"]["system"] == "sys"


def test_anthropic_client_falls_back_when_model_missing(monkeypatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "x")
    monkeypatch.delenv("ANTHROPIC_MODEL", raising=False)
    calls: list[dict[str, object]] = []

    def fake_post_json(url, payload, headers, timeout_sec=60.0):  # noqa: ANN001
        calls.append({"url": url, "payload": dict(payload)})
        if len(calls) == 1:
            raise RuntimeError(
                'HTTP 404 from https://api.anthropic.com/v1/messages: '
                '{"type":"error","error":{"type":"not_found_error","message":"model: missing-model"}}'
            )
        return {"content": [{"type": "text", "text": '{"guesses":[2]}'}]}

    monkeypatch.setattr("framework.agents.provider_clients.post_json", fake_post_json)
    client = AnthropicMessagesClient(model="missing-model")
    out = client.complete("hello")
    assert out.strip() == '{"guesses":[2]}'
    assert len(calls) == 2
    assert calls[0]["payload"]["model"] == "missing-model"
    assert calls[1]["payload"]["model"] == DEFAULT_ANTHROPIC_MODEL


def test_local_client_picks_backend(monkeypatch) -> None:
    monkeypatch.delenv("OLLAMA_BASE_URL", raising=False)
    ollama = local_client("llama3.1")
    assert isinstance(ollama, OllamaClient)
    assert ollama.base_url == "http://127.0.0.1:11434"

    compat = local_client("nemotron", backend="openai_compat", base_url="http://127.0.0.1:9000/v1", max_tokens=256)
    assert isinstance(compat, LocalOpenAICompatClient)
    assert compat.base_url == "http://127.0.0.1:9000/v1"
    assert compat.max_tokens == 256

    with pytest.raises(ValueError):
        local_client("x", backend="carrier-pigeon")


def test_local_openai_compat_client_posts_chat_completion(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def fake_post_json(url, payload, headers, timeout_sec=60.0):  # noqa: ANN001
        captured.update(url=url, headers=headers)
        return {"choices": [{"message": {"content": '{"word":"x","count":1}'}}]}

    monkeypatch.setattr("framework.agents.provider_clients.post_json", fake_post_json)
    client = LocalOpenAICompatClient(model="nemotron", base_url="http://127.0.0.1:9999/v1/", api_key="k")
    assert '"word":"x"' in client.complete("clue please")
    assert captured["url"] == "http://127.0.0.1:9999/v1/chat/completions"
    assert captured["headers"] == {"Authorization": "Bearer k"}


def test_ollama_client_reads_message_content(monkeypatch) -> None:
    def fake_post_json(url, payload, headers, timeout_sec=60.0):  # noqa: ANN001
        assert url == "http://127.0.0.1:11434/api/chat"
        assert payload["stream"] is False
        return {"message": {"content": '{"guesses":[0]}'}}

    monkeypatch.setattr("framework.agents.provider_clients.post_json", fake_post_json)
    assert OllamaClient(model="llama3.1").complete("guess") == '{"guesses":[0]}'
