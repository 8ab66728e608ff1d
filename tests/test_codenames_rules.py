"""Rule-level tests for the Codenames turn machine and reveal resolution."""

from __future__ import annotations

from dataclasses import replace

import pytest

from codenames.codenames_moves import EndTurn, GiveClue, Guess
from codenames.codenames_reveal import RevealOutcome
from codenames.codenames_state import CardType, GameState, Phase, Role, Team, player_for
from framework.errors import (
    AlreadyRevealedError,
    IllegalTransitionError,
    InvalidCardIndexError,
    InvalidClueError,
    InvalidRatingError,
    InvalidStateError,
)

RED_SPY = player_for(Team.RED, Role.SPYMASTER)
RED_OP = player_for(Team.RED, Role.OPERATIVE)
BLUE_SPY = player_for(Team.BLUE, Role.SPYMASTER)
BLUE_OP = player_for(Team.BLUE, Role.OPERATIVE)

# Fixed layout with RED starting: 0-8 red, 9-16 blue, 17-23 neutral, 24 assassin.
BLUE_CARDS = list(range(9, 17))
NEUTRAL = 17
ASSASSIN = 24


def _reveal_all(state: GameState, indices) -> GameState:
    board = state.board
    for index in indices:
        board = board.with_revealed(index)
    return replace(state, board=board)


def test_new_game_waits_for_starting_spymaster(red_game) -> None:
    game, state = red_game
    assert state.phase is Phase.WAITING
    assert state.active_team is Team.RED
    assert state.active_clue is None
    assert state.guesses_remaining is None
    assert game.current_player(state) == RED_SPY


def test_clue_opens_guessing_with_count_plus_one(red_game) -> None:
    game, state = red_game
    after = game.submit_clue(state, "animal", 2, ["W00", "W01"])

    assert after.phase is Phase.GUESSING
    assert after.active_team is Team.RED
    assert after.active_clue.word == "animal"
    assert after.active_clue.count == 2
    assert after.guesses_remaining == 3
    assert [entry.clue_word for entry in after.clue_history] == ["animal"]
    assert after.clue_history[0].intended_words == ("W00", "W01")
    assert game.current_player(after) == RED_OP
    # The caller's state is a separate value.
    assert state.phase is Phase.WAITING
    assert state.clue_history == ()


def test_correct_guesses_continue_until_budget_runs_out(red_game) -> None:
    game, state = red_game
    state = game.submit_clue(state, "animal", 2)

    first = game.reveal_card(state, 0)
    assert first.outcome is RevealOutcome.CONTINUE
    assert first.state.phase is Phase.GUESSING
    assert first.state.guesses_remaining == 2
    assert first.state.active_team is Team.RED

    second = game.reveal_card(first.state, 1)
    assert second.state.guesses_remaining == 1
    assert second.state.phase is Phase.GUESSING

    third = game.reveal_card(second.state, 2)
    assert third.outcome is RevealOutcome.BUDGET_EXHAUSTED
    assert third.state.phase is Phase.WAITING
    assert third.state.active_team is Team.BLUE
    assert third.state.active_clue is None
    assert third.state.guesses_remaining is None
    assert game.current_player(third.state) == BLUE_SPY


def test_wrong_team_reveal_hands_off_even_with_budget_left(red_game) -> None:
    game, state = red_game
    state = game.submit_clue(state, "animal", 2)
    state = game.reveal_card(state, 0).state
    assert state.guesses_remaining == 2

    result = game.reveal_card(state, BLUE_CARDS[0])
    assert result.outcome is RevealOutcome.WRONG_TEAM
    assert result.card.color is CardType.BLUE
    assert result.card.revealed
    assert result.state.board.cards[BLUE_CARDS[0]].revealed
    assert result.state.active_team is Team.BLUE
    assert result.state.phase is Phase.WAITING
    assert result.state.active_clue is None
    assert result.state.winner is None


def test_neutral_reveal_ends_the_turn(red_game) -> None:
    game, state = red_game
    state = game.submit_clue(state, "animal", 3)
    result = game.reveal_card(state, NEUTRAL)

    assert result.outcome is RevealOutcome.NEUTRAL
    assert result.state.active_team is Team.BLUE
    assert result.state.phase is Phase.WAITING


def test_clearing_last_own_card_wins_with_guesses_left(red_game) -> None:
    game, state = red_game
    state = game.submit_clue(state, "everything", 9)
    for index in range(8):
        state = game.reveal_card(state, index).state
    assert state.team_words_remaining(Team.RED) == 1
    assert state.guesses_remaining == 2

    result = game.reveal_card(state, 8)
    assert result.outcome is RevealOutcome.TEAM_CLEARED
    assert result.state.phase is Phase.FINISHED
    assert result.state.winner is Team.RED
    assert result.state.termination_reason == "all_words_revealed"
    assert game.current_player(result.state) is None
    assert game.is_terminal(result.state)


def test_revealing_opponents_last_card_makes_them_win(red_game) -> None:
    game, state = red_game
    state = _reveal_all(game.submit_clue(state, "sea", 1), BLUE_CARDS[:-1])

    result = game.reveal_card(state, BLUE_CARDS[-1])
    assert result.outcome is RevealOutcome.TEAM_CLEARED
    assert result.state.winner is Team.BLUE
    assert result.state.phase is Phase.FINISHED


def test_assassin_loses_regardless_of_budget(red_game) -> None:
    game, state = red_game
    state = game.submit_clue(state, "shadow", 4)
    result = game.reveal_card(state, ASSASSIN)

    assert result.outcome is RevealOutcome.ASSASSIN
    assert result.state.phase is Phase.FINISHED
    assert result.state.winner is Team.BLUE
    assert result.state.termination_reason == "assassin"
    assert result.state.guesses_remaining == 4


def test_zero_count_clue_allows_exactly_one_guess(red_game) -> None:
    game, state = red_game
    state = game.submit_clue(state, "solo", 0)
    assert state.guesses_remaining == 1

    result = game.reveal_card(state, 0)
    assert result.outcome is RevealOutcome.BUDGET_EXHAUSTED
    assert result.state.active_team is Team.BLUE
    assert result.state.phase is Phase.WAITING


def test_pass_turn_hands_off(red_game) -> None:
    game, state = red_game
    state = game.submit_clue(state, "animal", 2)
    state = game.reveal_card(state, 0).state

    after = game.pass_turn(state)
    assert after.phase is Phase.WAITING
    assert after.active_team is Team.BLUE
    assert after.active_clue is None
    assert after.guesses_remaining is None
    assert after.last_move["type"] == "EndTurn"
    assert after.board == state.board


@pytest.mark.parametrize(
    "operation",
    [
        lambda game, state: game.reveal_card(state, 0),
        lambda game, state: game.pass_turn(state),
        lambda game, state: game.rate(state, clue_rating=3),
    ],
)
def test_guessing_operations_rejected_while_waiting(red_game, operation) -> None:
    game, state = red_game
    before = state.to_json()
    with pytest.raises(IllegalTransitionError):
        operation(game, state)
    assert state.to_json() == before


def test_second_clue_rejected_while_guessing(red_game) -> None:
    game, state = red_game
    state = game.submit_clue(state, "animal", 1)
    before = state.state_digest()
    with pytest.raises(IllegalTransitionError) as info:
        game.submit_clue(state, "again", 1)
    assert info.value.operation == "submit_clue"
    assert state.state_digest() == before


def test_finished_game_rejects_every_move(red_game) -> None:
    game, state = red_game
    state = game.reveal_card(game.submit_clue(state, "shadow", 1), ASSASSIN).state

    with pytest.raises(IllegalTransitionError):
        game.submit_clue(state, "late", 1)
    with pytest.raises(IllegalTransitionError):
        game.reveal_card(state, 0)
    with pytest.raises(IllegalTransitionError):
        game.pass_turn(state)
    with pytest.raises(IllegalTransitionError):
        game.apply_move(state, BLUE_SPY, GiveClue(clue="late", count=1))


def test_invalid_clue_arguments(red_game) -> None:
    game, state = red_game
    for word, count in (("", 1), ("   ", 1), ("ok", -1), ("ok", True), ("ok", "2")):
        with pytest.raises(InvalidClueError):
            game.submit_clue(state, word, count)
    assert state.phase is Phase.WAITING


def test_human_clue_may_repeat_or_match_board_words(red_game) -> None:
    game, state = red_game
    state = game.pass_turn(game.submit_clue(state, "W00", 1))
    state = game.pass_turn(game.submit_clue(state, "W00", 1))
    assert [entry.clue_word for entry in state.clue_history] == ["W00", "W00"]


def test_reveal_rejects_bad_indices_without_changing_state(red_game) -> None:
    game, state = red_game
    state = game.reveal_card(game.submit_clue(state, "animal", 3), 0).state
    before = state.to_json()

    with pytest.raises(AlreadyRevealedError):
        game.reveal_card(state, 0)
    with pytest.raises(InvalidCardIndexError):
        game.reveal_card(state, 25)
    with pytest.raises(InvalidCardIndexError):
        game.reveal_card(state, -1)
    assert state.to_json() == before
    assert state.guesses_remaining == 3


def test_revealed_flags_never_flip_back(red_game) -> None:
    game, state = red_game
    state = game.submit_clue(state, "animal", 1)
    state = game.reveal_card(state, 0).state
    state = game.reveal_card(state, NEUTRAL).state
    state = game.pass_turn(game.submit_clue(state, "ocean", 1))
    revealed = {index for index, card in enumerate(state.board.cards) if card.revealed}
    assert revealed == {0, NEUTRAL}


def test_apply_move_checks_seat(red_game) -> None:
    game, state = red_game
    with pytest.raises(IllegalTransitionError):
        game.apply_move(state, BLUE_SPY, GiveClue(clue="early", count=1))
    with pytest.raises(IllegalTransitionError):
        game.apply_move(state, RED_OP, Guess(index=0))

    state = game.apply_move(state, RED_SPY, GiveClue(clue="animal", count=1))
    with pytest.raises(IllegalTransitionError):
        game.apply_move(state, RED_SPY, EndTurn())
    state = game.apply_move(state, RED_OP, Guess(index=0))
    state = game.apply_move(state, RED_OP, EndTurn())
    assert game.current_player(state) == BLUE_SPY


def test_parse_move_accepts_aliases(red_game) -> None:
    game, _ = red_game
    clue = game.parse_move({"type": "GiveClue", "word": "animal", "number": 2})
    assert clue == GiveClue(clue="animal", count=2)
    assert game.parse_move({"type": "Guess", "word_index": 4}) == Guess(index=4)
    assert game.parse_move({"type": "EndTurn"}) == EndTurn()
    with pytest.raises(ValueError):
        game.parse_move({"type": "Shout"})


def test_rating_only_after_finish_and_within_range(red_game) -> None:
    game, state = red_game
    state = game.reveal_card(game.submit_clue(state, "shadow", 1), ASSASSIN).state

    for bad in (0, 6, True):
        with pytest.raises(InvalidRatingError):
            game.rate(state, clue_rating=bad)
    with pytest.raises(InvalidRatingError):
        game.rate(state)

    rated = game.rate(state, clue_rating=4)
    rated = game.rate(rated, guess_rating=2)
    assert (rated.clue_rating, rated.guess_rating) == (4, 2)
    assert rated.phase is Phase.FINISHED
    assert rated.winner is Team.BLUE


def test_observation_hides_key_from_operatives_until_finished(red_game) -> None:
    game, state = red_game
    state = game.submit_clue(state, "animal", 1, ["W00"])
    state = game.reveal_card(state, 0).state

    spymaster = game.observation(state, RED_SPY)
    operative = game.observation(state, RED_OP)
    assert spymaster.assignments is not None
    assert spymaster.clue_history[0].intended_words == ("W00",)
    assert operative.assignments is None
    assert operative.clue_history[0].intended_words == ()
    assert operative.revealed_colors[0] is CardType.RED
    assert operative.revealed_colors[1] is None
    assert operative.is_my_turn
    assert not game.observation(state, BLUE_OP).is_my_turn

    finished = game.reveal_card(state, ASSASSIN).state
    assert game.observation(finished, BLUE_OP).assignments is not None


def test_legal_moves_follow_phase(red_game) -> None:
    game, state = red_game
    assert game.legal_moves(state, RED_SPY)["allowed"] == {"GiveClue": {"count_min": 0}}
    assert game.legal_moves(state, RED_OP)["allowed"] == {}
    # Counts above the team's remaining words are legal clues.
    assert game.submit_clue(state, "everything", 12).guesses_remaining == 13

    state = game.reveal_card(game.submit_clue(state, "animal", 2), 3).state
    allowed = game.legal_moves(state, RED_OP)["allowed"]
    assert 3 not in allowed["Guess"]["indices"]
    assert allowed["EndTurn"] is True


def test_starting_team_override(red_game) -> None:
    game, state = red_game
    blue = game.new_game(seed=1, roster=state.roster, config={"starting_team": "blue"})
    assert blue.active_team is Team.BLUE
    assert blue.board.starting_team is Team.BLUE
    with pytest.raises(ValueError):
        game.new_game(seed=1, roster=state.roster, config={"starting_team": "GREEN"})


def test_snapshot_round_trip_preserves_behavior(red_game) -> None:
    game, state = red_game
    state = game.submit_clue(state, "animal", 2, ["W00", "W01"])
    state = game.reveal_card(state, 0).state

    restored = GameState.from_json(state.to_json())
    assert restored == state
    assert restored.state_digest() == state.state_digest()

    original_next = game.reveal_card(state, NEUTRAL)
    restored_next = game.reveal_card(restored, NEUTRAL)
    assert original_next.outcome is restored_next.outcome
    assert original_next.state.to_json() == restored_next.state.to_json()


@pytest.mark.parametrize(
    "overrides",
    [
        {"guesses_remaining": None},
        {"guesses_remaining": -1},
        {"active_clue": None},
        {"phase": "WAITING"},
        {"phase": "FINISHED"},
        {"winner": "RED"},
        {"clue_rating": 3},
    ],
)
def test_inconsistent_snapshots_are_rejected(red_game, overrides) -> None:
    game, state = red_game
    data = game.submit_clue(state, "solo", 0).to_dict()
    data.update(overrides)
    with pytest.raises(InvalidStateError):
        GameState.from_dict(data)


def test_finished_snapshot_needs_ratings_in_range(red_game) -> None:
    game, state = red_game
    finished = game.reveal_card(game.submit_clue(state, "shadow", 1), ASSASSIN).state
    data = finished.to_dict()
    assert GameState.from_dict(dict(data, clue_rating=5)).clue_rating == 5
    with pytest.raises(InvalidStateError):
        GameState.from_dict(dict(data, clue_rating=6))
    with pytest.raises(InvalidStateError):
        GameState.from_dict(dict(data, winner=None))


def test_render_hides_key_for_operatives(red_game) -> None:
    game, state = red_game
    assert ":red" in game.render(state, RED_SPY)
    assert ":red" not in game.render(state, RED_OP)
