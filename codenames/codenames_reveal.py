"""The reveal resolver: the one place a card flip and its consequences are decided."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from framework.errors import AlreadyRevealedError

from .codenames_state import Card, CardType, GameState, Phase, Team, card_type_for, other_team


class RevealOutcome(str, Enum):
    """Which rule fired after a reveal."""

    ASSASSIN = "assassin"
    TEAM_CLEARED = "all_words_revealed"
    WRONG_TEAM = "wrong_team"
    NEUTRAL = "neutral"
    BUDGET_EXHAUSTED = "budget_exhausted"
    CONTINUE = "continue"

    @property
    def ends_turn(self) -> bool:
        return self in {RevealOutcome.WRONG_TEAM, RevealOutcome.NEUTRAL, RevealOutcome.BUDGET_EXHAUSTED}

    @property
    def ends_game(self) -> bool:
        return self in {RevealOutcome.ASSASSIN, RevealOutcome.TEAM_CLEARED}


@dataclass(frozen=True)
class RevealResult:
    """Next state plus what happened."""

    state: GameState
    index: int
    card: Card
    outcome: RevealOutcome


def hand_off(state: GameState) -> GameState:
    """End the active team's turn: switch team, clear the clue, back to WAITING."""
    return replace(
        state,
        active_team=other_team(state.active_team),
        phase=Phase.WAITING,
        active_clue=None,
        guesses_remaining=None,
    )


def _cleared_team(state: GameState) -> Team | None:
    # Starting team is checked first; both cannot clear on the same flip.
    for team in (state.starting_team, other_team(state.starting_team)):
        if state.board.all_of_color_revealed(card_type_for(team)):
            return team
    return None


def resolve_reveal(state: GameState, index: int) -> RevealResult:
    """Flip card `index` and apply win, loss and end-of-turn rules.

    The caller has already checked the phase. Nothing here mutates `state`;
    either the full next state is returned or an exception is raised.
    """
    card = state.board.card_at(index)
    if card.revealed:
        raise AlreadyRevealedError(index)

    board = state.board.with_revealed(index)
    remaining = state.guesses_remaining - 1 if state.guesses_remaining is not None else None
    flipped = replace(state, board=board, guesses_remaining=remaining)
    revealed_card = board.cards[index]

    if card.color is CardType.ASSASSIN:
        finished = replace(
            flipped,
            phase=Phase.FINISHED,
            winner=other_team(state.active_team),
            termination_reason=RevealOutcome.ASSASSIN.value,
        )
        return RevealResult(state=finished, index=index, card=revealed_card, outcome=RevealOutcome.ASSASSIN)

    cleared = _cleared_team(flipped)
    if cleared is not None:
        finished = replace(
            flipped,
            phase=Phase.FINISHED,
            winner=cleared,
            termination_reason=RevealOutcome.TEAM_CLEARED.value,
        )
        return RevealResult(state=finished, index=index, card=revealed_card, outcome=RevealOutcome.TEAM_CLEARED)

    if card.color is not card_type_for(state.active_team) and card.color is not CardType.NEUTRAL:
        outcome = RevealOutcome.WRONG_TEAM
    elif card.color is CardType.NEUTRAL:
        outcome = RevealOutcome.NEUTRAL
    elif remaining is not None and remaining <= 0:
        outcome = RevealOutcome.BUDGET_EXHAUSTED
    else:
        return RevealResult(state=flipped, index=index, card=revealed_card, outcome=RevealOutcome.CONTINUE)

    return RevealResult(state=hand_off(flipped), index=index, card=revealed_card, outcome=outcome)
