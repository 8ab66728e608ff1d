"""Pydantic request schemas for the game API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field


PlayerType = Literal["human", "random", "openai", "azure", "anthropic", "perplexity", "local"]


class CreateGameRequest(BaseModel):
    """Request body for creating a new game session."""

    seed: int | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    players: dict[str, PlayerType | dict[str, Any]] = Field(default_factory=dict)
    viewer_player_id: str | None = None


class SubmitClueRequest(BaseModel):
    """Human spymaster clue."""

    word: str
    count: int = Field(validation_alias=AliasChoices("count", "number"))
    intended_words: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("intended_words", "intendedWords"),
    )
    player_id: str | None = None


class SeatActionRequest(BaseModel):
    """Optional acting seat for reveal/pass; defaults to the active seat."""

    player_id: str | None = None


class RatingRequest(BaseModel):
    """Post-game feedback, each value 1..5."""

    clue_rating: int | None = Field(default=None, validation_alias=AliasChoices("clue_rating", "clueRating"))
    guess_rating: int | None = Field(default=None, validation_alias=AliasChoices("guess_rating", "guessRating"))


class ResumeGameRequest(BaseModel):
    """Snapshot produced by `GET /api/game/{id}/snapshot`, optionally with new seat configs."""

    snapshot: dict[str, Any]
    players: dict[str, PlayerType | dict[str, Any]] | None = None
