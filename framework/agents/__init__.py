"""Automated seat occupants and LLM provider adapters."""

from .env_utils import getenv_any, load_dotenv, require_env_any
from .llm_agent import LLMAgent, LLMClient, StubLLMClient
from .provider_agents import (
    AnthropicAgent,
    AzureOpenAIAgent,
    LocalLLMAgent,
    OpenAIAgent,
    PerplexityAgent,
)
from .provider_clients import (
    AnthropicMessagesClient,
    AzureOpenAIChatClient,
    LocalOpenAICompatClient,
    OllamaClient,
    OpenAIChatClient,
    PerplexityChatClient,
    local_client,
)
from .random_agent import RandomAgent
from .scripted_agent import ScriptedAgent

__all__ = [
    "AnthropicAgent",
    "AnthropicMessagesClient",
    "AzureOpenAIAgent",
    "AzureOpenAIChatClient",
    "LLMAgent",
    "LLMClient",
    "LocalLLMAgent",
    "LocalOpenAICompatClient",
    "OllamaClient",
    "OpenAIAgent",
    "OpenAIChatClient",
    "PerplexityAgent",
    "PerplexityChatClient",
    "RandomAgent",
    "ScriptedAgent",
    "StubLLMClient",
    "getenv_any",
    "load_dotenv",
    "require_env_any",
    "local_client",
]
