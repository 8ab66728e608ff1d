"""Provider-specific LLM clients for hosted and locally served chat models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .env_utils import getenv_any, require_env_any
from .http_utils import post_json

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"
DEFAULT_AZURE_API_VERSION = "2024-04-01-preview"

_ANTHROPIC_MODEL_ALIASES = {
    # Retired aliases map to a currently supported default.
    "claude-3-5-sonnet-latest": DEFAULT_ANTHROPIC_MODEL,
    "claude-3-5-sonnet-20241022": DEFAULT_ANTHROPIC_MODEL,
}


def _normalize_anthropic_model(model: str) -> str:
    normalized = model.strip()
    if not normalized:
        return DEFAULT_ANTHROPIC_MODEL
    return _ANTHROPIC_MODEL_ALIASES.get(normalized.lower(), normalized)


def _anthropic_messages_url(base_url: str) -> str:
    normalized = (base_url or "https://api.anthropic.com").rstrip("/")
    if normalized.endswith("/v1/messages"):
        return normalized
    if normalized.endswith("/v1"):
        return f"{normalized}/messages"
    return f"{normalized}/v1/messages"


def _is_model_not_found_error(exc: Exception) -> bool:
    text = str(exc).lower()
    return "not_found_error" in text and "model" in text


def _chat_messages(prompt: str, system_prompt: str | None) -> list[dict[str, str]]:
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


def _extract_openai_content(response: dict[str, Any]) -> str:
    choices = response.get("choices", [])
    if not choices:
        raise ValueError("Provider response did not include choices.")
    message = choices[0].get("message", {})
    content = message.get("content")
    if isinstance(content, list):
        # Some providers return structured content blocks.
        content = "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    if not isinstance(content, str):
        raise ValueError("Provider response message content was not a string.")
    return content


@dataclass(frozen=True)
class OpenAIChatClient:
    """OpenAI Chat Completions API client."""

    model: str = "gpt-4.1"
    base_url: str = "https://api.openai.com/v1"
    timeout_sec: float = 60.0
    temperature: float = 0.0
    max_tokens: int | None = None
    api_key_env: tuple[str, ...] = ("OPENAI_API_KEY",)

    def complete(self, prompt: str, *, system_prompt: str | None = None) -> str:
        api_key = require_env_any(*self.api_key_env)
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": _chat_messages(prompt, system_prompt),
            "temperature": self.temperature,
        }
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        response = post_json(
            url=f"{self.base_url.rstrip('/')}/chat/completions",
            payload=payload,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout_sec=self.timeout_sec,
        )
        return _extract_openai_content(response)


@dataclass(frozen=True)
class PerplexityChatClient(OpenAIChatClient):
    """Perplexity API client (OpenAI-compatible chat interface)."""

    model: str = "sonar"
    base_url: str = "https://api.perplexity.ai"
    api_key_env: tuple[str, ...] = ("PERPLEXITY_API_KEY", "PPLX_API_KEY")


@dataclass(frozen=True)
class AzureOpenAIChatClient:
    """
    Azure OpenAI chat deployment client.

    The endpoint and deployment fall back to `AZURE_OPENAI_ENDPOINT` and
    `AZURE_OPENAI_DEPLOYMENT`; the key is read from `AZURE_OPENAI_API_KEY`
    or `AZURE_KEY`.
    """

    deployment: str | None = None
    endpoint: str | None = None
    api_version: str = DEFAULT_AZURE_API_VERSION
    timeout_sec: float = 60.0
    temperature: float = 0.0
    max_tokens: int | None = None
    api_key_env: tuple[str, ...] = ("AZURE_OPENAI_API_KEY", "AZURE_KEY")

    def complete(self, prompt: str, *, system_prompt: str | None = None) -> str:
        api_key = require_env_any(*self.api_key_env)
        endpoint = self.endpoint or require_env_any("AZURE_OPENAI_ENDPOINT")
        deployment = self.deployment or getenv_any("AZURE_OPENAI_DEPLOYMENT", default="gpt-4.1") or "gpt-4.1"
        api_version = getenv_any("AZURE_OPENAI_API_VERSION", default=self.api_version) or self.api_version
        payload: dict[str, Any] = {
            "messages": _chat_messages(prompt, system_prompt),
            "temperature": self.temperature,
        }
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        response = post_json(
            url=(
                f"{endpoint.rstrip('/')}/openai/deployments/{deployment}/chat/completions"
                f"?api-version={api_version}"
            ),
            payload=payload,
            headers={"api-key": api_key},
            timeout_sec=self.timeout_sec,
        )
        return _extract_openai_content(response)


@dataclass(frozen=True)
class AnthropicMessagesClient:
    """Anthropic Messages API client."""

    model: str = DEFAULT_ANTHROPIC_MODEL
    base_url: str = "https://api.anthropic.com"
    timeout_sec: float = 60.0
    temperature: float = 0.0
    max_tokens: int = 1024
    anthropic_version: str = "2023-06-01"
    api_key_env: tuple[str, ...] = ("ANTHROPIC_API_KEY",)

    def complete(self, prompt: str, *, system_prompt: str | None = None) -> str:
        api_key = require_env_any(*self.api_key_env)
        model = _normalize_anthropic_model(getenv_any("ANTHROPIC_MODEL", default=self.model) or self.model)
        base_url = getenv_any("ANTHROPIC_BASE_URL", default=self.base_url) or self.base_url
        anthropic_version = getenv_any("ANTHROPIC_VERSION", default=self.anthropic_version) or self.anthropic_version
        payload: dict[str, Any] = {
            "model": model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            payload["system"] = system_prompt
        url = _anthropic_messages_url(base_url)
        headers = {
            "x-api-key": api_key,
            "anthropic-version": anthropic_version,
        }
        try:
            response = post_json(url=url, payload=payload, headers=headers, timeout_sec=self.timeout_sec)
        except RuntimeError as exc:
            if not _is_model_not_found_error(exc) or model == DEFAULT_ANTHROPIC_MODEL:
                raise
            # A stale custom model is retried once with the default.
            payload["model"] = DEFAULT_ANTHROPIC_MODEL
            response = post_json(url=url, payload=payload, headers=headers, timeout_sec=self.timeout_sec)
        content = response.get("content", [])
        if not content:
            raise ValueError("Anthropic response did not include content blocks.")
        text_parts = [
            block.get("text", "")
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        joined = "".join(text_parts).strip()
        if not joined:
            raise ValueError("Anthropic response contained no text content.")
        return joined


@dataclass(frozen=True)
class OllamaClient:
    """Local Ollama chat client."""

    model: str
    base_url: str = "http://127.0.0.1:11434"
    timeout_sec: float = 120.0
    temperature: float = 0.0

    def complete(self, prompt: str, *, system_prompt: str | None = None) -> str:
        payload = {
            "model": self.model,
            "messages": _chat_messages(prompt, system_prompt),
            "stream": False,
            "options": {"temperature": self.temperature},
        }
        response = post_json(
            url=f"{self.base_url.rstrip('/')}/api/chat",
            payload=payload,
            headers={},
            timeout_sec=self.timeout_sec,
        )
        message = response.get("message", {})
        content = message.get("content")
        if not isinstance(content, str):
            raise ValueError("Ollama response did not include message.content.")
        return content


@dataclass(frozen=True)
class LocalOpenAICompatClient:
    """Client for locally served OpenAI-compatible endpoints (vLLM, llama.cpp server, NIM)."""

    model: str
    base_url: str = "http://127.0.0.1:8000/v1"
    timeout_sec: float = 120.0
    temperature: float = 0.0
    max_tokens: int | None = None
    api_key: str | None = None

    def complete(self, prompt: str, *, system_prompt: str | None = None) -> str:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": _chat_messages(prompt, system_prompt),
            "temperature": self.temperature,
        }
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        headers: dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        response = post_json(
            url=f"{self.base_url.rstrip('/')}/chat/completions",
            payload=payload,
            headers=headers,
            timeout_sec=self.timeout_sec,
        )
        return _extract_openai_content(response)


def local_client(
    model: str,
    *,
    backend: str = "ollama",
    base_url: str | None = None,
    timeout_sec: float = 120.0,
    temperature: float = 0.0,
    max_tokens: int | None = None,
) -> OllamaClient | LocalOpenAICompatClient:
    """Pick the local client for `backend` (`ollama` or `openai_compat`), filling URLs from env."""
    normalized = backend.strip().lower()
    if normalized == "ollama":
        return OllamaClient(
            model=model,
            base_url=base_url or getenv_any("OLLAMA_BASE_URL", default="http://127.0.0.1:11434") or "http://127.0.0.1:11434",
            timeout_sec=timeout_sec,
            temperature=temperature,
        )
    if normalized == "openai_compat":
        return LocalOpenAICompatClient(
            model=model,
            base_url=base_url
            or getenv_any("LOCAL_LLM_BASE_URL", "OPENAI_COMPAT_BASE_URL", default="http://127.0.0.1:8000/v1")
            or "http://127.0.0.1:8000/v1",
            timeout_sec=timeout_sec,
            temperature=temperature,
            max_tokens=max_tokens,
            api_key=getenv_any("LOCAL_LLM_API_KEY", "OPENAI_COMPAT_API_KEY"),
        )
    raise ValueError(f"Unsupported local backend: {backend!r}")
