"""Interface for automated seat occupants (clue-givers and guessers)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping


class Agent(ABC):
    """Base interface for automated or scripted seat occupants.

    The request is the logical payload built by the game's gateway
    (role, team, board or unrevealed cards, active clue). The reply is returned
    raw, either as a mapping or as JSON text; validating its shape is the
    gateway's job, not the agent's.
    """

    def __init__(self, agent_id: str):
        self.agent_id = agent_id

    def reset(self, game_id: str, player_id: str, role: str | None, seed: int) -> None:
        """Reset internal state before a new game."""

    @abstractmethod
    def respond(self, request: Mapping[str, Any]) -> Any:
        """Return a reply for one clue or guess request."""

    def debug_context(self) -> Mapping[str, Any] | None:
        """Optional diagnostics payload for logging around errors."""
        return None
