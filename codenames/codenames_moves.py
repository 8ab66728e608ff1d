"""Move definitions for Codenames."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from framework.move import Move


class MoveType(str, Enum):
    """Supported move discriminators."""

    GIVE_CLUE = "GiveClue"
    GUESS = "Guess"
    END_TURN = "EndTurn"


@dataclass(frozen=True)
class GiveClue(Move):
    """Spymaster move providing a clue and guess count."""

    clue: str
    count: int
    intended_words: tuple[str, ...] | None = None
    move_type = MoveType.GIVE_CLUE.value

    def __post_init__(self) -> None:
        if self.intended_words is not None:
            object.__setattr__(self, "intended_words", tuple(str(word) for word in self.intended_words))


@dataclass(frozen=True)
class Guess(Move):
    """Operative guess for a board index."""

    index: int
    move_type = MoveType.GUESS.value


@dataclass(frozen=True)
class EndTurn(Move):
    """Operative move to stop guessing early."""

    move_type = MoveType.END_TURN.value


def move_from_dict(data: Mapping[str, Any]) -> Move:
    """Parse a Codenames move from JSON payload."""
    move_type = data.get("type") or data.get("move_type")
    if move_type == MoveType.GIVE_CLUE.value:
        translated = dict(data)
        if "clue" not in translated and "word" in translated:
            translated["clue"] = translated.pop("word")
        if "count" not in translated and "number" in translated:
            translated["count"] = translated.pop("number")
        return GiveClue.from_dict(translated)
    if move_type == MoveType.GUESS.value:
        if "index" not in data and "word_index" in data:
            translated = dict(data)
            translated["index"] = translated.pop("word_index")
            return Guess.from_dict(translated)
        return Guess.from_dict(data)
    if move_type == MoveType.END_TURN.value:
        return EndTurn()
    raise ValueError(f"Unknown Codenames move type: {move_type!r}")
