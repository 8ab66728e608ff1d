"""Agent gateway: builds requests for automated seats and folds their replies back."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError, field_validator

from framework.errors import AgentExecutionError, AgentResponseError, IllegalTransitionError
from framework.player import Agent
from framework.serialize import extract_json_object

from .codenames_game import CodenamesGame
from .codenames_reveal import RevealResult
from .codenames_state import Clue, GameState, Phase, Role, player_for

logger = logging.getLogger(__name__)

REJECT_HISTORY_DUPLICATE = "history_duplicate"
REJECT_BOARD_WORD = "board_word"


class ClueResponse(BaseModel):
    """Strict shape of a spymaster reply."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    word: StrictStr = Field(validation_alias=AliasChoices("word", "clue"))
    count: StrictInt = Field(ge=0, validation_alias=AliasChoices("count", "number"))
    intended_words: list[StrictStr] | None = Field(
        default=None,
        validation_alias=AliasChoices("intended_words", "intendedWords"),
    )

    @field_validator("word")
    @classmethod
    def _word_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("clue word cannot be blank")
        return value


class GuessResponse(BaseModel):
    """Strict shape of an operative reply."""

    model_config = ConfigDict(extra="ignore")

    guesses: list[StrictInt]


@dataclass(frozen=True)
class CluePolicy:
    """Anti-repetition rules applied to automated clues only."""

    reject_history_duplicates: bool = True
    reject_board_words: bool = True
    max_history_retries: int = 3
    max_board_retries: int = 5


@dataclass(frozen=True)
class ClueRejection:
    """One discarded automated clue."""

    attempt: int
    word: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"attempt": self.attempt, "word": self.word, "reason": self.reason}


@dataclass(frozen=True)
class ClueDecision:
    """The clue the gateway settled on and how it got there."""

    clue: Clue
    attempts: int
    rejections: tuple[ClueRejection, ...] = field(default_factory=tuple)
    accepted_on_cap: bool = False


@dataclass(frozen=True)
class GuessBatch:
    """Validated guess indices in the order the operative ranked them."""

    indices: tuple[int, ...]


class AgentGateway:
    """Narrow request/response boundary between the rules core and automated seats.

    The gateway never mutates anything itself. `request_clue` and
    `request_guesses` return validated decisions; `fold_clue` and `fold_guess`
    turn them into the next state through the turn state machine.
    """

    def __init__(self, game: CodenamesGame | None = None, policy: CluePolicy | None = None):
        self.game = game or CodenamesGame()
        self.policy = policy or CluePolicy()

    def clue_request(self, state: GameState, rejected_words: list[str] | None = None) -> dict[str, Any]:
        """Build the spymaster request: full board with colours plus team identity."""
        payload: dict[str, Any] = {
            "role": Role.SPYMASTER.value,
            "team": state.active_team.value,
            "board": [
                {"index": index, "word": card.word, "color": card.color.value, "revealed": card.revealed}
                for index, card in enumerate(state.board.cards)
            ],
            "clue_history": [entry.clue_word for entry in state.clue_history],
            "unrevealed_counts": state.unrevealed_counts(),
        }
        if rejected_words:
            payload["rejected_words"] = list(rejected_words)
        return payload

    def guess_request(self, state: GameState) -> dict[str, Any]:
        """Build the operative request: unrevealed cards with their board index and the active clue."""
        clue = state.active_clue
        return {
            "role": Role.OPERATIVE.value,
            "team": state.active_team.value,
            "cards": [
                {"index": index, "word": card.word}
                for index, card in enumerate(state.board.cards)
                if not card.revealed
            ],
            "active_clue": {"word": clue.word, "count": clue.count} if clue is not None else None,
            "guesses_remaining": state.guesses_remaining,
        }

    def request_clue(self, state: GameState, agent: Agent) -> ClueDecision:
        """Ask the active spymaster for a clue, re-asking on repeated or on-board words."""
        if state.phase is not Phase.WAITING:
            raise IllegalTransitionError("request_clue", f"phase is {state.phase.value}, expected WAITING.")
        player_id = player_for(state.active_team, Role.SPYMASTER)
        policy = self.policy
        used = state.clue_words_used()
        board_words = {word.casefold() for word in state.board.words}

        rejections: list[ClueRejection] = []
        history_retries = 0
        board_retries = 0
        attempt = 0
        while True:
            attempt += 1
            request = self.clue_request(state, [item.word for item in rejections])
            reply = self._parse(ClueResponse, self._call(agent, player_id, request), player_id)
            folded = reply.word.casefold()

            reason: str | None = None
            if policy.reject_history_duplicates and folded in used:
                reason = REJECT_HISTORY_DUPLICATE
            elif policy.reject_board_words and folded in board_words:
                reason = REJECT_BOARD_WORD

            capped = False
            if reason == REJECT_HISTORY_DUPLICATE:
                capped = history_retries >= policy.max_history_retries
                history_retries += 1
            elif reason == REJECT_BOARD_WORD:
                capped = board_retries >= policy.max_board_retries
                board_retries += 1

            clue = Clue(
                word=reply.word,
                count=reply.count,
                intended_words=tuple(reply.intended_words) if reply.intended_words is not None else None,
            )
            if reason is None:
                return ClueDecision(clue=clue, attempts=attempt, rejections=tuple(rejections))
            if capped:
                logger.warning(
                    "Accepting clue %r from %s after retry cap for %s was exhausted.",
                    reply.word,
                    player_id,
                    reason,
                )
                return ClueDecision(clue=clue, attempts=attempt, rejections=tuple(rejections), accepted_on_cap=True)

            logger.warning("Rejected clue %r from %s (%s); re-requesting.", reply.word, player_id, reason)
            rejections.append(ClueRejection(attempt=attempt, word=reply.word, reason=reason))

    def request_guesses(self, state: GameState, agent: Agent) -> GuessBatch:
        """Ask the active operative for a ranked batch of board indices."""
        if state.phase is not Phase.GUESSING:
            raise IllegalTransitionError("request_guesses", f"phase is {state.phase.value}, expected GUESSING.")
        player_id = player_for(state.active_team, Role.OPERATIVE)
        raw = self._call(agent, player_id, self.guess_request(state))
        reply = self._parse(GuessResponse, raw, player_id)
        size = len(state.board.cards)
        out_of_range = [index for index in reply.guesses if not 0 <= index < size]
        if out_of_range:
            raise AgentResponseError(player_id, f"Guess indices out of range: {out_of_range}", raw_response=raw)
        return GuessBatch(indices=tuple(reply.guesses))

    def fold_clue(self, state: GameState, decision: ClueDecision) -> GameState:
        """Submit an accepted clue through the state machine."""
        clue = decision.clue
        return self.game.submit_clue(state, clue.word, clue.count, clue.intended_words)

    def fold_guess(self, state: GameState, index: int) -> RevealResult | None:
        """Reveal one batch index; already-revealed cards are skipped and return None."""
        if state.board.card_at(index).revealed:
            logger.info("Skipping guess %d: card already revealed.", index)
            return None
        return self.game.reveal_card(state, index)

    def _call(self, agent: Agent, player_id: str, request: Mapping[str, Any]) -> Any:
        try:
            raw = agent.respond(request)
        except AgentExecutionError as exc:
            raise AgentResponseError(player_id, str(exc)) from exc
        except Exception as exc:
            raise AgentResponseError(player_id, f"Agent request failed: {exc}") from exc
        if raw is None:
            raise AgentResponseError(player_id, "Agent returned no reply.")
        return raw

    def _parse(self, model: type[BaseModel], raw: Any, player_id: str) -> Any:
        payload: Any = raw
        if isinstance(raw, (str, bytes)):
            text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
            try:
                payload = extract_json_object(text)
            except ValueError as exc:
                raise AgentResponseError(player_id, f"Reply is not a JSON object: {exc}", raw_response=raw) from exc
        if not isinstance(payload, Mapping):
            raise AgentResponseError(player_id, "Reply must be a JSON object.", raw_response=raw)
        try:
            return model.model_validate(dict(payload))
        except ValidationError as exc:
            raise AgentResponseError(
                player_id,
                f"Reply does not match {model.__name__}: {exc.errors(include_url=False)}",
                raw_response=raw,
            ) from exc
