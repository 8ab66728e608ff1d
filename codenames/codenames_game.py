"""Codenames turn state machine."""

from __future__ import annotations

import math
import random
from dataclasses import replace
from typing import Any, Mapping, Sequence

from framework.errors import IllegalTransitionError, InvalidClueError, InvalidRatingError

from .codenames_board import BoardGenerator, WordListBoardGenerator, build_board
from .codenames_moves import EndTurn, GiveClue, Guess, MoveType, move_from_dict
from .codenames_observation import CodenamesObservation
from .codenames_reveal import RevealResult, hand_off, resolve_reveal
from .codenames_state import (
    MAX_RATING,
    MIN_RATING,
    Clue,
    ClueHistoryEntry,
    GameState,
    Phase,
    Role,
    Roster,
    Seat,
    Team,
    player_for,
    team_role_for_player,
)


class CodenamesGame:
    """Two-team Codenames rules with spymaster + operative seats.

    Every operation takes the current `GameState` and returns the next one.
    Rejected operations raise before anything is built, so the caller's state
    is untouched.
    """

    game_name = "codenames"

    def __init__(
        self,
        default_config: dict[str, Any] | None = None,
        board_generator: BoardGenerator | None = None,
    ):
        self.default_config = default_config or {}
        self.board_generator = board_generator

    def new_game(self, seed: int, roster: Roster, config: dict[str, Any] | None = None) -> GameState:
        """Create a seeded initial state: coin-flip starting team, fresh board, WAITING."""
        cfg = dict(self.default_config)
        cfg.update(config or {})
        rng = random.Random(seed)

        starting_team = self._parse_starting_team(cfg.get("starting_team"), rng)
        generator = self.board_generator
        if generator is None:
            generator = WordListBoardGenerator(cfg.get("word_list"))
        board = build_board(generator, starting_team, rng)

        return GameState(
            seed=seed,
            board=board,
            roster=roster,
            active_team=starting_team,
            phase=Phase.WAITING,
        )

    def player_ids(self) -> Sequence[str]:
        """Return canonical Codenames seats."""
        return (
            player_for(Team.RED, Role.SPYMASTER),
            player_for(Team.RED, Role.OPERATIVE),
            player_for(Team.BLUE, Role.SPYMASTER),
            player_for(Team.BLUE, Role.OPERATIVE),
        )

    def current_player(self, state: GameState) -> str | None:
        """Return the seat expected to act next, or None once the game is over."""
        if state.phase is Phase.FINISHED:
            return None
        if state.phase is Phase.WAITING:
            return player_for(state.active_team, Role.SPYMASTER)
        return player_for(state.active_team, Role.OPERATIVE)

    def active_seat(self, state: GameState) -> Seat | None:
        player_id = self.current_player(state)
        if player_id is None:
            return None
        return state.roster.seat_for(player_id)

    def is_seat_turn(self, state: GameState, player_id: str) -> bool:
        return self.current_player(state) == player_id

    def is_terminal(self, state: GameState) -> bool:
        return state.phase is Phase.FINISHED

    def submit_clue(
        self,
        state: GameState,
        word: str,
        count: int,
        intended_words: Sequence[str] | None = None,
    ) -> GameState:
        """Record a clue and open the guessing phase with `count + 1` guesses."""
        if state.phase is not Phase.WAITING:
            raise IllegalTransitionError("submit_clue", f"phase is {state.phase.value}, expected WAITING.")
        if not isinstance(word, str) or not word.strip():
            raise InvalidClueError("Clue word cannot be empty.")
        if isinstance(count, bool) or not isinstance(count, int):
            raise InvalidClueError(f"Clue count must be an integer; received {count!r}.")
        if count < 0:
            raise InvalidClueError("Clue count must be >= 0.")

        intended = tuple(str(item) for item in intended_words) if intended_words is not None else None
        clue = Clue(word=word.strip(), count=count, intended_words=intended)
        move = GiveClue(clue=clue.word, count=count, intended_words=intended)
        return replace(
            state,
            phase=Phase.GUESSING,
            active_clue=clue,
            guesses_remaining=count + 1,
            clue_history=state.clue_history + (ClueHistoryEntry(clue_word=clue.word, intended_words=intended or ()),),
            turn_index=state.turn_index + 1,
            last_move={**move.to_dict(), "team": state.active_team.value},
        )

    def reveal_card(self, state: GameState, index: int) -> RevealResult:
        """Reveal card `index` for the active team."""
        if state.phase is not Phase.GUESSING:
            raise IllegalTransitionError("reveal_card", f"phase is {state.phase.value}, expected GUESSING.")
        result = resolve_reveal(state, index)
        next_state = replace(
            result.state,
            turn_index=state.turn_index + 1,
            last_move={
                **Guess(index=index).to_dict(),
                "team": state.active_team.value,
                "word": result.card.word,
                "color": result.card.color.value,
                "outcome": result.outcome.value,
            },
        )
        return replace(result, state=next_state)

    def pass_turn(self, state: GameState) -> GameState:
        """Voluntarily end the guessing phase without revealing."""
        if state.phase is not Phase.GUESSING:
            raise IllegalTransitionError("pass_turn", f"phase is {state.phase.value}, expected GUESSING.")
        return replace(
            hand_off(state),
            turn_index=state.turn_index + 1,
            last_move={**EndTurn().to_dict(), "team": state.active_team.value},
        )

    def apply_move(self, state: GameState, player_id: str, move: Any) -> GameState:
        """Apply a seat's move after checking it is that seat's turn."""
        if self.is_terminal(state):
            raise IllegalTransitionError(self._operation_name(move), "game is already finished.")
        if not self.is_seat_turn(state, player_id):
            raise IllegalTransitionError(self._operation_name(move), f"it is not {player_id}'s turn.")

        if isinstance(move, GiveClue):
            return self.submit_clue(state, move.clue, move.count, move.intended_words)
        if isinstance(move, Guess):
            return self.reveal_card(state, move.index).state
        if isinstance(move, EndTurn):
            return self.pass_turn(state)
        raise ValueError(f"Unsupported move type: {type(move)!r}")

    def rate(self, state: GameState, *, clue_rating: int | None = None, guess_rating: int | None = None) -> GameState:
        """Attach post-game feedback. Only a finished game can be rated."""
        if state.phase is not Phase.FINISHED:
            raise IllegalTransitionError("rate", "ratings are accepted only after the game is finished.")
        if clue_rating is None and guess_rating is None:
            raise InvalidRatingError("Provide clue_rating and/or guess_rating.")
        for name, value in (("clue_rating", clue_rating), ("guess_rating", guess_rating)):
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or not MIN_RATING <= value <= MAX_RATING:
                raise InvalidRatingError(f"{name} must be an integer in {MIN_RATING}..{MAX_RATING}; received {value!r}.")
        return replace(
            state,
            clue_rating=clue_rating if clue_rating is not None else state.clue_rating,
            guess_rating=guess_rating if guess_rating is not None else state.guess_rating,
        )

    def legal_moves(self, state: GameState, player_id: str) -> dict[str, Any]:
        """Describe what `player_id` may do right now."""
        if self.is_terminal(state) or not self.is_seat_turn(state, player_id):
            return {"phase": state.phase.value, "allowed": {}}
        if state.phase is Phase.WAITING:
            return {
                "phase": state.phase.value,
                "template": {"type": MoveType.GIVE_CLUE.value, "clue": "string", "count": "int>=0"},
                "allowed": {
                    "GiveClue": {"count_min": 0},
                },
            }
        return {
            "phase": state.phase.value,
            "allowed": {
                "Guess": {"indices": state.board.unrevealed_indices()},
                "EndTurn": True,
            },
        }

    def observation(self, state: GameState, player_id: str) -> CodenamesObservation:
        """Return the view for one seat."""
        team, role = team_role_for_player(player_id)
        board = state.board
        revealed_colors = tuple(card.color if card.revealed else None for card in board.cards)
        show_key = role is Role.SPYMASTER or self.is_terminal(state)
        history = state.clue_history
        if not show_key:
            history = tuple(ClueHistoryEntry(clue_word=entry.clue_word) for entry in history)
        return CodenamesObservation(
            player_id=player_id,
            team=team,
            role=role,
            board_words=board.words,
            revealed=tuple(card.revealed for card in board.cards),
            revealed_colors=revealed_colors,
            active_team=state.active_team,
            phase=state.phase,
            is_my_turn=self.is_seat_turn(state, player_id),
            active_clue=state.active_clue,
            guesses_remaining=state.guesses_remaining,
            unrevealed_counts=state.unrevealed_counts(),
            winner=state.winner,
            turn_index=state.turn_index,
            last_move=state.last_move,
            clue_history=history,
            assignments=tuple(card.color for card in board.cards) if show_key else None,
        )

    def render(self, state: GameState, player_id: str | None = None) -> str:
        """Render board for debugging."""
        show_assignments = False
        if player_id is not None:
            _, role = team_role_for_player(player_id)
            show_assignments = role is Role.SPYMASTER

        cards = state.board.cards
        cols = int(math.sqrt(len(cards)))
        lines: list[str] = []
        for index, card in enumerate(cards):
            if card.revealed:
                token = f"{card.word}:{card.color.value}"
            elif show_assignments:
                token = f"{card.word}:{card.color.value.lower()}"
            else:
                token = card.word
            lines.append(f"{index:02d}:{token}")

        rows = [" | ".join(lines[row : row + cols]) for row in range(0, len(lines), cols)]
        clue = f"{state.active_clue.word}/{state.active_clue.count}" if state.active_clue is not None else None
        header = (
            f"active_team={state.active_team.value} phase={state.phase.value} "
            f"clue={clue} guesses_remaining={state.guesses_remaining} winner={state.winner}"
        )
        return header + "\n" + "\n".join(rows)

    def parse_move(self, data: Mapping[str, Any]) -> Any:
        """Parse move payload into move object."""
        return move_from_dict(data)

    def _operation_name(self, move: Any) -> str:
        if isinstance(move, GiveClue):
            return "submit_clue"
        if isinstance(move, Guess):
            return "reveal_card"
        if isinstance(move, EndTurn):
            return "pass_turn"
        return "move"

    def _parse_starting_team(self, raw: Any, rng: random.Random) -> Team:
        # Always draw so the board layout for a seed does not depend on the override.
        coin = rng.choice([Team.RED, Team.BLUE])
        if raw is None:
            return coin
        if isinstance(raw, Team):
            return raw
        value = str(raw).upper()
        if value == Team.RED.value:
            return Team.RED
        if value == Team.BLUE.value:
            return Team.BLUE
        raise ValueError(f"Invalid starting_team: {raw!r}")
