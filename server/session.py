"""In-memory game sessions: serialized mutations plus automated-seat orchestration."""

from __future__ import annotations

import logging
import os
import random
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from uuid import uuid4

from codenames.codenames_game import CodenamesGame
from codenames.codenames_gateway import AgentGateway, CluePolicy
from codenames.codenames_reveal import RevealResult
from codenames.codenames_state import GameState, Phase, Team, team_role_for_player
from framework.agents.env_utils import getenv_float
from framework.errors import AgentResponseError, IllegalTransitionError, MatchConfigurationError
from framework.events import EventType, GameEvent
from framework.player import Agent
from framework.serialize import to_serializable
from server.agent_factory import (
    build_roster,
    create_agent_for_player,
    default_player_configs,
    normalize_player_config,
    player_label,
)
from server.stats import StatsStore

logger = logging.getLogger(__name__)

DEFAULT_GUESS_DELAY_SEC = 1.0


@dataclass(frozen=True)
class SessionConfig:
    """Orchestration settings; rules are unaffected by any of these."""

    guess_delay_sec: float = DEFAULT_GUESS_DELAY_SEC
    clue_policy: CluePolicy = field(default_factory=CluePolicy)

    @classmethod
    def from_env(cls) -> "SessionConfig":
        return cls(guess_delay_sec=getenv_float("CODENAMES_GUESS_DELAY_SEC", DEFAULT_GUESS_DELAY_SEC))


def _card_summary(state: GameState, show_key: bool) -> list[dict[str, Any]]:
    return [
        {
            "index": index,
            "word": card.word,
            "revealed": card.revealed,
            "color": card.color.value if (card.revealed or show_key) else None,
        }
        for index, card in enumerate(state.board.cards)
    ]


class GameSession:
    """One live game.

    `state` is an immutable snapshot, so readers never need the lock. Every
    mutation swaps the reference under `_state_lock`. Automated results are
    computed outside the lock and committed only if the state they were
    computed from is still the live one; otherwise they are dropped.
    """

    def __init__(
        self,
        *,
        game_id: str,
        state: GameState,
        player_configs: dict[str, dict[str, Any]],
        agents: dict[str, Agent],
        game: CodenamesGame | None = None,
        config: SessionConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        on_finished: Callable[["GameSession"], None] | None = None,
        on_rated: Callable[["GameSession"], None] | None = None,
    ):
        self.game_id = game_id
        self.game = game or CodenamesGame()
        self.config = config or SessionConfig()
        self.gateway = AgentGateway(self.game, self.config.clue_policy)
        self.player_configs = player_configs
        self.agents = agents
        self.agent_labels = {player_id: player_label(cfg) for player_id, cfg in player_configs.items()}
        self.last_agent_error: dict[str, Any] | None = None
        self._state = state
        self._events: list[GameEvent] = []
        self._state_lock = threading.Lock()
        self._advance_lock = threading.Lock()
        self._advance_requested = False
        self._sleep = sleep
        self._on_finished = on_finished
        self._on_rated = on_rated

    @classmethod
    def create(
        cls,
        *,
        seed: int,
        game_config: dict[str, Any] | None = None,
        players: Mapping[str, Any] | None = None,
        config: SessionConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        on_finished: Callable[["GameSession"], None] | None = None,
        on_rated: Callable[["GameSession"], None] | None = None,
    ) -> "GameSession":
        """Build the roster and agents, deal a seeded board and record the start event."""
        game = CodenamesGame()
        player_configs = _resolve_player_configs(players, seed)
        roster = build_roster(player_configs)
        try:
            state = game.new_game(seed=seed, roster=roster, config=game_config)
        except ValueError as exc:
            raise MatchConfigurationError(str(exc)) from exc

        game_id = f"game-{uuid4().hex[:10]}"
        session = cls(
            game_id=game_id,
            state=state,
            player_configs=player_configs,
            agents=_build_agents(game_id, state, player_configs),
            game=game,
            config=config,
            sleep=sleep,
            on_finished=on_finished,
            on_rated=on_rated,
        )
        session._append_event(
            EventType.GAME_START,
            state,
            {
                "seed": seed,
                "config": to_serializable(game_config or {}),
                "players": to_serializable(player_configs),
                "starting_team": state.starting_team.value,
                "current_player": game.current_player(state),
            },
        )
        logger.info("Created %s (seed=%s, starting_team=%s).", game_id, seed, state.starting_team.value)
        return session

    @classmethod
    def resume(
        cls,
        *,
        snapshot: Mapping[str, Any],
        players: Mapping[str, Any] | None = None,
        game_id: str | None = None,
        config: SessionConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        on_finished: Callable[["GameSession"], None] | None = None,
        on_rated: Callable[["GameSession"], None] | None = None,
    ) -> "GameSession":
        """Rebuild a session from `snapshot()` output (or a bare `GameState.to_dict()`)."""
        raw_state = snapshot.get("state", snapshot)
        try:
            state = GameState.from_dict(raw_state)
        except (KeyError, TypeError, ValueError) as exc:
            raise MatchConfigurationError(f"Invalid game snapshot: {exc}") from exc

        raw_players = players if players is not None else snapshot.get("players")
        if raw_players is None:
            raise MatchConfigurationError("Resuming requires the seat configuration ('players').")
        player_configs = {player_id: normalize_player_config(raw) for player_id, raw in raw_players.items()}
        roster = build_roster(player_configs)
        mismatched = sorted(
            player_id
            for player_id in player_configs
            if roster.seat_for(player_id).occupant is not state.roster.seat_for(player_id).occupant
        )
        if mismatched:
            raise MatchConfigurationError(f"Seat occupants do not match the snapshot roster: {mismatched}")

        resolved_id = game_id or str(snapshot.get("game_id") or f"game-{uuid4().hex[:10]}")
        session = cls(
            game_id=resolved_id,
            state=state,
            player_configs=player_configs,
            agents=_build_agents(resolved_id, state, player_configs),
            config=config,
            sleep=sleep,
            on_finished=on_finished,
            on_rated=on_rated,
        )
        session._append_event(
            EventType.GAME_START,
            state,
            {"resumed": True, "state_digest": state.state_digest(), "current_player": session.current_player()},
        )
        logger.info("Resumed %s at turn %d.", resolved_id, state.turn_index)
        return session

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def events(self) -> list[GameEvent]:
        with self._state_lock:
            return list(self._events)

    def current_player(self) -> str | None:
        return self.game.current_player(self._state)

    def is_automated_turn(self) -> bool:
        seat = self.game.active_seat(self._state)
        return seat is not None and seat.is_automated

    def submit_clue(
        self,
        word: str,
        count: int,
        intended_words: list[str] | None = None,
        *,
        player_id: str | None = None,
    ) -> GameState:
        """Human spymaster clue. Not policed by the automated clue policy."""
        with self._state_lock:
            before = self._state
            after = self.game.submit_clue(before, word, count, intended_words)
            actor = self._require_human_seat(before, player_id, "submit_clue")
            self._commit_locked(before, after, [self._clue_event(after, actor, automated=False)])
        return after

    def reveal_card(self, index: int, *, player_id: str | None = None) -> RevealResult:
        """Human operative reveal."""
        with self._state_lock:
            before = self._state
            result = self.game.reveal_card(before, index)
            actor = self._require_human_seat(before, player_id, "reveal_card")
            self._commit_locked(before, result.state, self._reveal_events(before, result, actor, automated=False))
        self._notify_if_finished(before, result.state)
        return result

    def pass_turn(self, *, player_id: str | None = None) -> GameState:
        """Human operative ends the guessing phase."""
        with self._state_lock:
            before = self._state
            after = self.game.pass_turn(before)
            actor = self._require_human_seat(before, player_id, "pass_turn")
            self._commit_locked(before, after, [self._pass_event(before, after, actor, reason="voluntary")])
        return after

    def rate(self, *, clue_rating: int | None = None, guess_rating: int | None = None) -> GameState:
        """Attach post-game ratings to a finished game."""
        with self._state_lock:
            before = self._state
            after = self.game.rate(before, clue_rating=clue_rating, guess_rating=guess_rating)
            event = self._event(
                EventType.RATING,
                after,
                {"clue_rating": after.clue_rating, "guess_rating": after.guess_rating},
            )
            self._commit_locked(before, after, [event])
        if self._on_rated is not None:
            self._on_rated(self)
        return after

    def advance_automated_turns(self) -> None:
        """Drive automated seats until a human seat is active, the game ends, or an agent fails.

        If another thread is already advancing this game, the call leaves a
        re-check request for that thread and returns at once.
        """
        with self._state_lock:
            self._advance_requested = True
        if not self._advance_lock.acquire(blocking=False):
            return
        released = False
        try:
            while True:
                with self._state_lock:
                    self._advance_requested = False
                self._drive_automated_seats()
                with self._state_lock:
                    # Released under the state lock so a refused caller's request is never missed.
                    if not self._advance_requested:
                        self._advance_lock.release()
                        released = True
                        return
        finally:
            if not released:
                self._advance_lock.release()

    def _drive_automated_seats(self) -> None:
        while True:
            state = self._state
            player_id = self.game.current_player(state)
            if player_id is None:
                return
            if not state.roster.seat_for(player_id).is_automated:
                return
            agent = self.agents[player_id]
            try:
                if state.phase is Phase.WAITING:
                    progressed = self._automated_clue(state, player_id, agent)
                else:
                    progressed = self._automated_guesses(state, player_id, agent)
            except AgentResponseError as exc:
                self._record_agent_error(state, player_id, agent, exc)
                return
            if not progressed:
                logger.info("Discarded stale automated result for %s in %s.", player_id, self.game_id)
                return
            self.last_agent_error = None

    def retry_automated_turn(self) -> None:
        """Re-issue the automated request after an agent failure."""
        if not self.is_automated_turn():
            raise IllegalTransitionError("retry", "the active seat is not automated.")
        self.last_agent_error = None
        self.advance_automated_turns()

    def view(self, player_id: str | None = None) -> dict[str, Any]:
        """Observer payload. With `player_id`, includes that seat's observation."""
        state = self._state
        current = self.game.current_player(state)
        seat = state.roster.seat_for(current) if current is not None else None
        show_key = state.is_finished
        payload: dict[str, Any] = {
            "game_id": self.game_id,
            "phase": state.phase.value,
            "active_team": state.active_team.value,
            "starting_team": state.starting_team.value,
            "current_player": current,
            "active_seat": seat.to_dict() if seat is not None else None,
            "is_automated_turn": seat is not None and seat.is_automated,
            "active_clue": state.active_clue.to_dict() if state.active_clue is not None else None,
            "guesses_remaining": state.guesses_remaining,
            "unrevealed_counts": state.unrevealed_counts(),
            "cards": _card_summary(state, show_key),
            "winner": state.winner.value if state.winner is not None else None,
            "termination_reason": state.termination_reason,
            "clue_history": [
                entry.to_dict() if show_key else {"clue_word": entry.clue_word}
                for entry in state.clue_history
            ],
            "clue_rating": state.clue_rating,
            "guess_rating": state.guess_rating,
            "turn_index": state.turn_index,
            "last_move": state.last_move,
            "seats": state.roster.to_dict(),
            "agent_error": self.last_agent_error,
        }
        if player_id is not None:
            payload["player_id"] = player_id
            payload["observation"] = self.game.observation(state, player_id).to_dict()
            payload["is_my_turn"] = current == player_id
        return payload

    def snapshot(self) -> dict[str, Any]:
        """Lossless, resumable snapshot of the live state plus seat configuration."""
        state = self._state
        return {
            "game_id": self.game_id,
            "state": state.to_dict(),
            "players": to_serializable(self.player_configs),
            "state_digest": state.state_digest(),
        }

    def _automated_clue(self, state: GameState, player_id: str, agent: Agent) -> bool:
        decision = self.gateway.request_clue(state, agent)
        after = self.gateway.fold_clue(state, decision)
        events = [
            self._event(EventType.CLUE_REJECTED, state, {"player_id": player_id, **rejection.to_dict()})
            for rejection in decision.rejections
        ]
        events.append(
            self._clue_event(
                after,
                player_id,
                automated=True,
                extra={"attempts": decision.attempts, "accepted_on_cap": decision.accepted_on_cap},
            )
        )
        return self._commit(state, after, events)

    def _automated_guesses(self, state: GameState, player_id: str, agent: Agent) -> bool:
        batch = self.gateway.request_guesses(state, agent)
        current = state
        applied = 0
        for index in batch.indices:
            result = self.gateway.fold_guess(current, index)
            if result is None:
                continue
            if applied:
                self._sleep(self.config.guess_delay_sec)
            if not self._commit(current, result.state, self._reveal_events(current, result, player_id, automated=True)):
                return False
            self._notify_if_finished(current, result.state)
            current = result.state
            applied += 1
            if current.phase is not Phase.GUESSING:
                # Leftover guesses are dropped, never carried into a later turn.
                return True

        after = self.game.pass_turn(current)
        reason = "no_guesses" if applied == 0 else "batch_exhausted"
        return self._commit(current, after, [self._pass_event(current, after, player_id, reason=reason)])

    def _commit(self, expected: GameState, after: GameState, events: list[GameEvent]) -> bool:
        with self._state_lock:
            if self._state is not expected:
                return False
            self._commit_locked(expected, after, events)
            return True

    def _commit_locked(self, before: GameState, after: GameState, events: list[GameEvent]) -> None:
        self._state = after
        self._events.extend(events)
        if after.is_finished and not before.is_finished:
            self._events.append(
                self._event(
                    EventType.TERMINAL,
                    after,
                    {
                        "winner": after.winner.value if after.winner is not None else None,
                        "termination_reason": after.termination_reason,
                        "state_digest": after.state_digest(),
                    },
                )
            )
            logger.info("%s finished: %s wins (%s).", self.game_id, after.winner, after.termination_reason)
        elif after.active_team is not before.active_team:
            logger.info("%s: turn passes to %s.", self.game_id, after.active_team.value)

    def _notify_if_finished(self, before: GameState, after: GameState) -> None:
        if after.is_finished and not before.is_finished and self._on_finished is not None:
            self._on_finished(self)

    def _require_human_seat(self, state: GameState, player_id: str | None, operation: str) -> str:
        current = self.game.current_player(state)
        if current is None:
            raise IllegalTransitionError(operation, "game is already finished.")
        if player_id is not None and player_id != current:
            raise IllegalTransitionError(operation, f"it is not {player_id}'s turn.")
        if state.roster.seat_for(current).is_automated:
            raise IllegalTransitionError(operation, f"{current} is an automated seat.")
        return current

    def _record_agent_error(self, state: GameState, player_id: str, agent: Agent, exc: AgentResponseError) -> None:
        payload: dict[str, Any] = {"player_id": player_id, "error": exc.to_dict()}
        debug = agent.debug_context()
        if debug is not None:
            payload["prompt_context"] = to_serializable(debug)
        logger.warning("Automated seat %s failed in %s: %s", player_id, self.game_id, exc)
        self.last_agent_error = {"player_id": player_id, **exc.to_dict()}
        self._append_event(EventType.AGENT_ERROR, state, payload)

    def _clue_event(
        self,
        after: GameState,
        player_id: str,
        *,
        automated: bool,
        extra: dict[str, Any] | None = None,
    ) -> GameEvent:
        clue = after.active_clue
        payload: dict[str, Any] = {
            "player_id": player_id,
            "automated": automated,
            "clue": clue.to_dict() if clue is not None else None,
            "guesses_remaining": after.guesses_remaining,
        }
        payload.update(extra or {})
        return self._event(EventType.CLUE, after, payload)

    def _reveal_events(
        self,
        before: GameState,
        result: RevealResult,
        player_id: str,
        *,
        automated: bool,
    ) -> list[GameEvent]:
        return [
            self._event(
                EventType.REVEAL,
                result.state,
                {
                    "player_id": player_id,
                    "automated": automated,
                    "team": before.active_team.value,
                    "index": result.index,
                    "word": result.card.word,
                    "color": result.card.color.value,
                    "outcome": result.outcome.value,
                    "guesses_remaining": result.state.guesses_remaining,
                },
            )
        ]

    def _pass_event(self, before: GameState, after: GameState, player_id: str, *, reason: str) -> GameEvent:
        return self._event(
            EventType.PASS,
            after,
            {"player_id": player_id, "team": before.active_team.value, "reason": reason},
        )

    def _event(self, event_type: EventType, state: GameState, payload: dict[str, Any]) -> GameEvent:
        return GameEvent.create(event_type=event_type, game_id=self.game_id, turn=state.turn_index, payload=payload)

    def _append_event(self, event_type: EventType, state: GameState, payload: dict[str, Any]) -> None:
        with self._state_lock:
            self._events.append(self._event(event_type, state, payload))


def _resolve_player_configs(players: Mapping[str, Any] | None, seed: int) -> dict[str, dict[str, Any]]:
    if not players:
        return default_player_configs(random.Random(seed))
    return {player_id: normalize_player_config(raw) for player_id, raw in players.items()}


def _build_agents(game_id: str, state: GameState, player_configs: Mapping[str, dict[str, Any]]) -> dict[str, Agent]:
    agents: dict[str, Agent] = {}
    for player_id in state.roster.automated_player_ids():
        agent = create_agent_for_player(player_id=player_id, config=player_configs[player_id])
        _, role = team_role_for_player(player_id)
        agent.reset(game_id, player_id, role.value, state.seed)
        agents[player_id] = agent
    return agents


class SessionStore:
    """In-memory repository of live sessions keyed by game ID."""

    def __init__(
        self,
        stats_store: StatsStore | None = None,
        config: SessionConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._sessions: dict[str, GameSession] = {}
        self._lock = threading.Lock()
        default_path = Path(os.getenv("CODENAMES_STATS_PATH", "server/data/stats.json"))
        self.stats_store = stats_store or StatsStore(path=default_path)
        self.config = config or SessionConfig.from_env()
        self._sleep = sleep

    def create_game(
        self,
        *,
        seed: int,
        game_config: dict[str, Any] | None = None,
        players: Mapping[str, Any] | None = None,
    ) -> GameSession:
        session = GameSession.create(
            seed=seed,
            game_config=game_config,
            players=players,
            config=self.config,
            sleep=self._sleep,
            on_finished=self._on_game_finished,
            on_rated=self._on_game_rated,
        )
        self._register(session)
        return session

    def resume(self, snapshot: Mapping[str, Any], players: Mapping[str, Any] | None = None) -> GameSession:
        """Restore a session from a snapshot; a clashing game ID gets a fresh one."""
        requested = snapshot.get("game_id")
        with self._lock:
            game_id = None if requested is None or requested in self._sessions else str(requested)
        session = GameSession.resume(
            snapshot=snapshot,
            players=players,
            game_id=game_id or f"game-{uuid4().hex[:10]}",
            config=self.config,
            sleep=self._sleep,
            on_finished=self._on_game_finished,
            on_rated=self._on_game_rated,
        )
        self._register(session)
        return session

    def get(self, game_id: str) -> GameSession:
        with self._lock:
            if game_id not in self._sessions:
                raise KeyError(game_id)
            return self._sessions[game_id]

    def all_events(self, game_id: str) -> list[dict[str, Any]]:
        return [event.to_dict() for event in self.get(game_id).events]

    def stats(self) -> dict[str, Any]:
        return self.stats_store.report()

    def _register(self, session: GameSession) -> None:
        with self._lock:
            self._sessions[session.game_id] = session

    def _on_game_finished(self, session: GameSession) -> None:
        state = session.state
        roster = state.roster
        self.stats_store.record_game(
            game_id=session.game_id,
            ai_spymaster=any(roster.spymaster_for(team).is_automated for team in (Team.RED, Team.BLUE)),
            ai_operative=any(roster.operative_for(team).is_automated for team in (Team.RED, Team.BLUE)),
            winner=state.winner.value if state.winner is not None else None,
            termination_reason=state.termination_reason,
            turns=state.turn_index,
            agent_labels={
                player_id: label
                for player_id, label in session.agent_labels.items()
                if roster.seat_for(player_id).is_automated
            },
        )

    def _on_game_rated(self, session: GameSession) -> None:
        state = session.state
        self.stats_store.record_rating(
            game_id=session.game_id,
            clue_rating=state.clue_rating,
            guess_rating=state.guess_rating,
        )
