"""Observation model for Codenames partial observability."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from framework.observation import Observation

from .codenames_state import CardType, Clue, ClueHistoryEntry, Phase, Role, Team


@dataclass(frozen=True)
class CodenamesObservation(Observation):
    """Seat-specific Codenames view. Spymasters (and everyone once the game is over) see the key."""

    player_id: str
    team: Team
    role: Role
    board_words: tuple[str, ...]
    revealed: tuple[bool, ...]
    revealed_colors: tuple[CardType | None, ...]
    active_team: Team
    phase: Phase
    is_my_turn: bool
    active_clue: Clue | None
    guesses_remaining: int | None
    unrevealed_counts: dict[str, int]
    winner: Team | None
    turn_index: int
    last_move: dict[str, Any] | None
    clue_history: tuple[ClueHistoryEntry, ...]
    assignments: tuple[CardType, ...] | None = None
