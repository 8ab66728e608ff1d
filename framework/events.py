"""Event schema and JSONL logging utilities for game sessions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from time import time
from typing import Any, Iterable, Mapping

from .serialize import json_dumps, to_serializable


class EventType(str, Enum):
    """Event types emitted while a game is played."""

    GAME_START = "game_start"
    CLUE = "clue"
    CLUE_REJECTED = "clue_rejected"
    REVEAL = "reveal"
    PASS = "pass"
    AGENT_ERROR = "agent_error"
    RATING = "rating"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class GameEvent:
    """Single replay event recorded by a game session."""

    event_type: EventType
    game_id: str
    turn: int
    timestamp_ms: int
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """Return JSON-serializable event data."""
        return {
            "event_type": self.event_type.value,
            "game_id": self.game_id,
            "turn": self.turn,
            "timestamp_ms": self.timestamp_ms,
            "payload": to_serializable(self.payload),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameEvent":
        """Build an event from a dictionary payload."""
        return cls(
            event_type=EventType(str(data["event_type"])),
            game_id=str(data["game_id"]),
            turn=int(data["turn"]),
            timestamp_ms=int(data["timestamp_ms"]),
            payload=dict(data.get("payload", {})),
        )

    @classmethod
    def create(cls, event_type: EventType, game_id: str, turn: int, payload: dict[str, Any]) -> "GameEvent":
        """Construct an event stamped with the current wall-clock time."""
        return cls(
            event_type=event_type,
            game_id=game_id,
            turn=turn,
            timestamp_ms=int(time() * 1000),
            payload=payload,
        )


def events_to_jsonl(events: Iterable[GameEvent]) -> str:
    """Render events as newline-delimited JSON."""
    return "\n".join(json_dumps(event.to_dict()) for event in events)
