"""Codenames package exports."""

from .codenames_board import DEFAULT_WORDS, BoardGenerator, WordListBoardGenerator, build_board
from .codenames_game import CodenamesGame
from .codenames_gateway import AgentGateway, ClueDecision, CluePolicy, ClueRejection, GuessBatch
from .codenames_moves import EndTurn, GiveClue, Guess, MoveType
from .codenames_observation import CodenamesObservation
from .codenames_reveal import RevealOutcome, RevealResult, hand_off, resolve_reveal
from .codenames_state import (
    Board,
    Card,
    CardType,
    Clue,
    ClueHistoryEntry,
    GameState,
    OccupantKind,
    Phase,
    Role,
    Roster,
    Seat,
    Team,
    TeamSeats,
)

__all__ = [
    "AgentGateway",
    "Board",
    "BoardGenerator",
    "Card",
    "CardType",
    "Clue",
    "ClueDecision",
    "ClueHistoryEntry",
    "CluePolicy",
    "ClueRejection",
    "CodenamesGame",
    "CodenamesObservation",
    "DEFAULT_WORDS",
    "EndTurn",
    "GameState",
    "GiveClue",
    "Guess",
    "GuessBatch",
    "MoveType",
    "OccupantKind",
    "Phase",
    "RevealOutcome",
    "RevealResult",
    "Role",
    "Roster",
    "Seat",
    "Team",
    "TeamSeats",
    "WordListBoardGenerator",
    "build_board",
    "hand_off",
    "resolve_reveal",
]
