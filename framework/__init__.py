"""Framework exports: errors, serialization, events and the automated-seat interface."""

from .errors import (
    AgentExecutionError,
    AgentResponseError,
    AlreadyRevealedError,
    ArenaError,
    IllegalTransitionError,
    InvalidCardIndexError,
    InvalidClueError,
    InvalidLayoutError,
    InvalidRatingError,
    InvalidRosterError,
    InvalidStateError,
    MatchConfigurationError,
)
from .events import EventType, GameEvent, events_to_jsonl
from .move import Move
from .observation import Observation
from .player import Agent
from .state import State

__all__ = [
    "Agent",
    "AgentExecutionError",
    "AgentResponseError",
    "AlreadyRevealedError",
    "ArenaError",
    "EventType",
    "GameEvent",
    "IllegalTransitionError",
    "InvalidCardIndexError",
    "InvalidClueError",
    "InvalidLayoutError",
    "InvalidRatingError",
    "InvalidRosterError",
    "InvalidStateError",
    "MatchConfigurationError",
    "Move",
    "Observation",
    "State",
    "events_to_jsonl",
]
