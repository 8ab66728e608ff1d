"""Convenience provider-specific agent wrappers around LLMAgent."""

from __future__ import annotations

from .llm_agent import LLMAgent
from .provider_clients import (
    DEFAULT_ANTHROPIC_MODEL,
    AnthropicMessagesClient,
    AzureOpenAIChatClient,
    OpenAIChatClient,
    PerplexityChatClient,
    local_client,
)


class OpenAIAgent(LLMAgent):
    """LLM agent backed by OpenAI chat models."""

    def __init__(
        self,
        agent_id: str,
        *,
        model: str = "gpt-4.1",
        system_prompt: str | None = None,
        max_retries: int = 2,
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ):
        super().__init__(
            agent_id=agent_id,
            llm_client=OpenAIChatClient(model=model, temperature=temperature, max_tokens=max_tokens),
            system_prompt=system_prompt,
            max_retries=max_retries,
        )


class AzureOpenAIAgent(LLMAgent):
    """LLM agent backed by an Azure OpenAI deployment."""

    def __init__(
        self,
        agent_id: str,
        *,
        deployment: str | None = None,
        endpoint: str | None = None,
        system_prompt: str | None = None,
        max_retries: int = 2,
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ):
        super().__init__(
            agent_id=agent_id,
            llm_client=AzureOpenAIChatClient(
                deployment=deployment,
                endpoint=endpoint,
                temperature=temperature,
                max_tokens=max_tokens,
            ),
            system_prompt=system_prompt,
            max_retries=max_retries,
        )


class AnthropicAgent(LLMAgent):
    """LLM agent backed by Anthropic Claude models."""

    def __init__(
        self,
        agent_id: str,
        *,
        model: str = DEFAULT_ANTHROPIC_MODEL,
        system_prompt: str | None = None,
        max_retries: int = 2,
        temperature: float = 0.0,
        max_tokens: int = 1024,
    ):
        super().__init__(
            agent_id=agent_id,
            llm_client=AnthropicMessagesClient(model=model, temperature=temperature, max_tokens=max_tokens),
            system_prompt=system_prompt,
            max_retries=max_retries,
        )


class PerplexityAgent(LLMAgent):
    """LLM agent backed by Perplexity models."""

    def __init__(
        self,
        agent_id: str,
        *,
        model: str = "sonar",
        system_prompt: str | None = None,
        max_retries: int = 2,
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ):
        super().__init__(
            agent_id=agent_id,
            llm_client=PerplexityChatClient(model=model, temperature=temperature, max_tokens=max_tokens),
            system_prompt=system_prompt,
            max_retries=max_retries,
        )


class LocalLLMAgent(LLMAgent):
    """LLM agent that talks to a locally served model (Ollama or OpenAI-compatible)."""

    def __init__(
        self,
        agent_id: str,
        *,
        model: str,
        backend: str = "ollama",
        base_url: str | None = None,
        system_prompt: str | None = None,
        max_retries: int = 2,
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ):
        super().__init__(
            agent_id=agent_id,
            llm_client=local_client(
                model,
                backend=backend,
                base_url=base_url,
                temperature=temperature,
                max_tokens=max_tokens,
            ),
            system_prompt=system_prompt,
            max_retries=max_retries,
        )
