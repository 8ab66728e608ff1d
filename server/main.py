"""FastAPI server exposing a local game API for human and/or automated seats."""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from framework.errors import (
    AgentResponseError,
    AlreadyRevealedError,
    ArenaError,
    IllegalTransitionError,
)
from framework.events import events_to_jsonl
from server.schemas import (
    CreateGameRequest,
    RatingRequest,
    ResumeGameRequest,
    SeatActionRequest,
    SubmitClueRequest,
)
from server.session import GameSession, SessionStore

app = FastAPI(title="Codenames Local API", version="0.1.0")
store = SessionStore()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _time_based_seed() -> int:
    """Generate a positive time-derived seed when client does not provide one."""
    seed = int(time.time_ns() & 0x7FFFFFFF)
    return seed if seed != 0 else 1


def _get_session(game_id: str) -> GameSession:
    try:
        return store.get(game_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown game_id: {game_id}") from exc


def _http_error(exc: Exception, session: GameSession | None = None) -> HTTPException:
    """Map engine errors onto status codes; rule conflicts carry the refreshed view."""
    if isinstance(exc, (IllegalTransitionError, AlreadyRevealedError)):
        detail: dict[str, Any] = {"error": exc.to_dict()}
        if session is not None:
            detail["game"] = session.view()
        return HTTPException(status_code=409, detail=detail)
    if isinstance(exc, AgentResponseError):
        return HTTPException(status_code=502, detail={"error": exc.to_dict()})
    if isinstance(exc, ArenaError):
        return HTTPException(status_code=400, detail={"error": exc.to_dict()})
    return HTTPException(status_code=400, detail={"error": {"type": type(exc).__name__, "message": str(exc)}})


@app.get("/api/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""
    return {"status": "ok"}


@app.get("/api/game/stats")
def get_stats() -> dict[str, Any]:
    """Aggregate statistics over finished games."""
    return store.stats()


@app.post("/api/game")
def create_game(request: CreateGameRequest) -> dict[str, Any]:
    """Create a game, then let automated seats play until a human seat is up."""
    seed = request.seed if request.seed is not None else _time_based_seed()
    try:
        session = store.create_game(seed=seed, game_config=request.config, players=request.players)
    except (ArenaError, ValueError) as exc:
        raise _http_error(exc) from exc
    session.advance_automated_turns()
    return session.view(request.viewer_player_id)


@app.post("/api/game/resume")
def resume_game(request: ResumeGameRequest) -> dict[str, Any]:
    """Restore a game from a snapshot."""
    try:
        session = store.resume(request.snapshot, players=request.players)
    except (ArenaError, ValueError) as exc:
        raise _http_error(exc) from exc
    return session.view()


@app.get("/api/game/{game_id}")
def get_game(game_id: str, player_id: str | None = Query(default=None)) -> dict[str, Any]:
    """Current view, optionally with one seat's observation."""
    session = _get_session(game_id)
    try:
        return session.view(player_id)
    except ValueError as exc:
        raise _http_error(exc) from exc


@app.get("/api/game/{game_id}/snapshot")
def get_snapshot(game_id: str) -> dict[str, Any]:
    """Serializable, resumable snapshot."""
    return _get_session(game_id).snapshot()


@app.post("/api/game/{game_id}/clue")
def submit_clue(game_id: str, request: SubmitClueRequest) -> dict[str, Any]:
    """Human spymaster submits a clue; automated operatives then guess."""
    session = _get_session(game_id)
    try:
        session.submit_clue(request.word, request.count, request.intended_words, player_id=request.player_id)
    except (ArenaError, ValueError) as exc:
        raise _http_error(exc, session) from exc
    session.advance_automated_turns()
    return session.view()


@app.put("/api/game/{game_id}/cards/{index}")
def reveal_card(game_id: str, index: int, request: SeatActionRequest | None = None) -> dict[str, Any]:
    """Human operative reveals a card."""
    session = _get_session(game_id)
    player_id = request.player_id if request is not None else None
    try:
        session.reveal_card(index, player_id=player_id)
    except (ArenaError, ValueError) as exc:
        raise _http_error(exc, session) from exc
    session.advance_automated_turns()
    return session.view()


@app.post("/api/game/{game_id}/pass")
def pass_turn(game_id: str, request: SeatActionRequest | None = None) -> dict[str, Any]:
    """Human operative ends the turn."""
    session = _get_session(game_id)
    player_id = request.player_id if request is not None else None
    try:
        session.pass_turn(player_id=player_id)
    except (ArenaError, ValueError) as exc:
        raise _http_error(exc, session) from exc
    session.advance_automated_turns()
    return session.view()


@app.post("/api/game/{game_id}/advance")
def advance(game_id: str) -> dict[str, Any]:
    """Re-drive automated seats, e.g. after an agent failure."""
    session = _get_session(game_id)
    if session.is_automated_turn():
        session.retry_automated_turn()
    return session.view()


@app.post("/api/game/{game_id}/rating")
def rate_game(game_id: str, request: RatingRequest) -> dict[str, Any]:
    """Attach post-game ratings."""
    session = _get_session(game_id)
    try:
        session.rate(clue_rating=request.clue_rating, guess_rating=request.guess_rating)
    except (ArenaError, ValueError) as exc:
        raise _http_error(exc, session) from exc
    return session.view()


@app.get("/api/game/{game_id}/events", response_model=None)
def get_events(game_id: str, format: str = Query(default="array")) -> Any:
    """Return full event history as array (default) or JSONL text."""
    events = _get_session(game_id).events
    if format == "jsonl":
        return PlainTextResponse(content=events_to_jsonl(events), media_type="application/jsonl")
    return [event.to_dict() for event in events]


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("server.main:app", host="0.0.0.0", port=8000, reload=True)
