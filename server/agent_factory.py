"""Factory for building seats and automated occupants from session player configuration."""

from __future__ import annotations

import random
from typing import Any, Mapping

from codenames.codenames_state import (
    PLAYER_TO_TEAM_ROLE,
    OccupantKind,
    Roster,
    Seat,
    Team,
    player_for,
    team_role_for_player,
)
from framework.agents.provider_agents import (
    AnthropicAgent,
    AzureOpenAIAgent,
    LocalLLMAgent,
    OpenAIAgent,
    PerplexityAgent,
)
from framework.agents.provider_clients import DEFAULT_ANTHROPIC_MODEL
from framework.agents.random_agent import RandomAgent
from framework.errors import InvalidRosterError, MatchConfigurationError
from framework.player import Agent

SUPPORTED_PLAYER_TYPES = ("human", "random", "openai", "azure", "anthropic", "perplexity", "local")


def normalize_player_config(raw: Any) -> dict[str, Any]:
    """Normalize a player configuration into a typed dictionary."""
    if isinstance(raw, str):
        return {"type": raw.strip().lower()}
    if isinstance(raw, Mapping):
        data = dict(raw)
        data["type"] = str(data.get("type", "random")).strip().lower()
        return data
    return {"type": "random"}


def player_label(config: Mapping[str, Any]) -> str:
    """Return stable label used in statistics and seat display names."""
    player_type = str(config.get("type", "random")).lower()
    model = config.get("model") or config.get("deployment")
    if model:
        return f"{player_type}:{model}"
    return player_type


def default_player_configs(rng: random.Random, automated: str = "random") -> dict[str, dict[str, Any]]:
    """Two humans share one role across teams; the other role on both teams is automated."""
    human_role = rng.choice(["SPYMASTER", "OPERATIVE"])
    configs: dict[str, dict[str, Any]] = {}
    for team in (Team.RED, Team.BLUE):
        for role in ("SPYMASTER", "OPERATIVE"):
            configs[player_for(team, role)] = {"type": "human" if role == human_role else automated}
    return configs


def build_roster(player_configs: Mapping[str, Mapping[str, Any]]) -> Roster:
    """Build the immutable roster; every seat must be configured."""
    seats: dict[str, Seat] = {}
    for player_id, config in player_configs.items():
        if player_id not in PLAYER_TO_TEAM_ROLE:
            raise InvalidRosterError(f"Unknown seat ID: {player_id!r}")
        _, role = team_role_for_player(player_id)
        player_type = str(config.get("type", "random")).lower()
        if player_type not in SUPPORTED_PLAYER_TYPES:
            raise MatchConfigurationError(
                f"Unsupported player type '{player_type}'. Supported types: {', '.join(SUPPORTED_PLAYER_TYPES)}."
            )
        occupant = OccupantKind.HUMAN if player_type == "human" else OccupantKind.AUTOMATED
        display_name = str(config.get("display_name") or player_label(config))
        seats[player_id] = Seat(occupant=occupant, display_name=display_name, role=role)
    return Roster.from_seats(seats)


def create_agent_for_player(*, player_id: str, config: Mapping[str, Any]) -> Agent:
    """Instantiate a concrete automated occupant for one seat config."""
    player_type = str(config.get("type", "random")).lower()
    agent_id = f"{player_type}-{player_id.lower()}"
    max_retries = int(config.get("max_retries", 2))
    temperature = float(config.get("temperature", 0.0))
    max_tokens = int(config["max_tokens"]) if "max_tokens" in config else None

    if player_type == "random":
        return RandomAgent(agent_id=agent_id)

    if player_type == "openai":
        return OpenAIAgent(
            agent_id=agent_id,
            model=str(config.get("model", "gpt-4.1")),
            system_prompt=config.get("system_prompt"),
            max_retries=max_retries,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    if player_type == "azure":
        return AzureOpenAIAgent(
            agent_id=agent_id,
            deployment=config.get("deployment"),
            endpoint=config.get("endpoint"),
            system_prompt=config.get("system_prompt"),
            max_retries=max_retries,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    if player_type == "anthropic":
        return AnthropicAgent(
            agent_id=agent_id,
            model=str(config.get("model", DEFAULT_ANTHROPIC_MODEL)),
            system_prompt=config.get("system_prompt"),
            max_retries=max_retries,
            temperature=temperature,
            max_tokens=max_tokens or 1024,
        )

    if player_type == "perplexity":
        return PerplexityAgent(
            agent_id=agent_id,
            model=str(config.get("model", "sonar")),
            system_prompt=config.get("system_prompt"),
            max_retries=max_retries,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    if player_type == "local":
        return LocalLLMAgent(
            agent_id=agent_id,
            model=str(config.get("model", "llama3.1")),
            backend=str(config.get("backend", "ollama")),
            base_url=config.get("base_url"),
            system_prompt=config.get("system_prompt"),
            max_retries=max_retries,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    raise MatchConfigurationError(
        f"Unsupported automated player type '{player_type}'. "
        f"Supported types: {', '.join(SUPPORTED_PLAYER_TYPES[1:])}."
    )
