"""Structured exceptions used across the game engine and orchestration layer."""

from __future__ import annotations

from typing import Any


class ArenaError(Exception):
    """Base class for engine-level exceptions."""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {"type": self.__class__.__name__, "message": str(self)}


class MatchConfigurationError(ArenaError):
    """Raised when a game session is configured incorrectly."""


class InvalidLayoutError(ArenaError):
    """Raised when a board does not satisfy the card-count contract."""


class InvalidRosterError(ArenaError):
    """Raised when a team does not hold exactly one spymaster and one operative."""


class IllegalTransitionError(ArenaError):
    """Raised when an operation is attempted outside its legal phase or seat."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Illegal {operation}: {reason}")

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update({"operation": self.operation, "reason": self.reason})
        return payload


class AlreadyRevealedError(ArenaError):
    """Raised when a reveal targets a card that is already face up."""

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Card {index} is already revealed.")

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["index"] = self.index
        return payload


class InvalidCardIndexError(ArenaError):
    """Raised when a reveal targets an index outside the board."""

    def __init__(self, index: Any):
        self.index = index
        super().__init__(f"Card index out of range: {index!r}")


class InvalidClueError(ArenaError):
    """Raised when clue arguments are malformed (blank word, negative count)."""


class InvalidRatingError(ArenaError):
    """Raised when post-game feedback is outside the accepted range."""


class InvalidStateError(ArenaError):
    """Raised when a game state's phase, clue, winner and ratings disagree."""


class AgentExecutionError(ArenaError):
    """Raised when an automated occupant fails to produce a reply."""

    def __init__(self, player_id: str, message: str):
        self.player_id = player_id
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["player_id"] = self.player_id
        return payload


class AgentResponseError(ArenaError):
    """Raised when an automated occupant's reply is absent or malformed."""

    def __init__(self, player_id: str, message: str, raw_response: Any = None):
        self.player_id = player_id
        self.raw_response = raw_response
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["player_id"] = self.player_id
        if self.raw_response is not None:
            payload["raw_response"] = self.raw_response if isinstance(self.raw_response, str) else repr(self.raw_response)
        return payload
