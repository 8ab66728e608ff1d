"""Agent gateway: request shapes, reply validation and the automated clue policy."""

from __future__ import annotations

import pytest

from codenames.codenames_gateway import AgentGateway, CluePolicy, ClueResponse
from codenames.codenames_reveal import RevealOutcome
from codenames.codenames_state import Phase, Team
from framework.agents.scripted_agent import ScriptedAgent
from framework.errors import AgentExecutionError, AgentResponseError, IllegalTransitionError


def _guessing(game, state, word="animal", count=1):
    return game.submit_clue(state, word, count)


def _with_history(game, state, *words):
    for word in words:
        state = game.pass_turn(game.submit_clue(state, word, 1))
    return state


def test_clue_request_carries_full_key_and_history(red_game) -> None:
    game, state = red_game
    state = _with_history(game, state, "ocean")
    request = AgentGateway(game).clue_request(state, ["moon"])

    assert request["role"] == "SPYMASTER"
    assert request["team"] == "BLUE"
    assert len(request["board"]) == 25
    assert request["board"][24] == {"index": 24, "word": "W24", "color": "ASSASSIN", "revealed": False}
    assert request["clue_history"] == ["ocean"]
    assert request["rejected_words"] == ["moon"]
    assert request["unrevealed_counts"]["RED"] == 9


def test_guess_request_lists_only_unrevealed_cards(red_game) -> None:
    game, state = red_game
    state = game.reveal_card(_guessing(game, state, count=2), 0).state
    request = AgentGateway(game).guess_request(state)

    assert request["role"] == "OPERATIVE"
    assert request["team"] == "RED"
    assert request["active_clue"] == {"word": "animal", "count": 2}
    assert request["guesses_remaining"] == 2
    assert [card["index"] for card in request["cards"]] == list(range(1, 25))
    assert "color" not in request["cards"][0]


def test_valid_clue_is_accepted_first_try(red_game) -> None:
    game, state = red_game
    agent = ScriptedAgent("spy", replies=[{"word": "  pets ", "count": 2, "intended_words": ["W00", "W01"]}])
    decision = AgentGateway(game).request_clue(state, agent)

    assert decision.attempts == 1
    assert decision.rejections == ()
    assert not decision.accepted_on_cap
    assert decision.clue.word == "pets"
    assert decision.clue.intended_words == ("W00", "W01")

    after = AgentGateway(game).fold_clue(state, decision)
    assert after.phase is Phase.GUESSING
    assert after.guesses_remaining == 3


def test_reply_aliases_and_json_text_are_accepted(red_game) -> None:
    game, state = red_game
    replies = [
        '```json\n{"clue": "pets", "number": 1, "intendedWords": ["W00"]}\n```',
        b'{"word": "farm", "count": 0}',
    ]
    gateway = AgentGateway(game)
    agent = ScriptedAgent("spy", replies=replies)

    first = gateway.request_clue(state, agent)
    assert (first.clue.word, first.clue.count, first.clue.intended_words) == ("pets", 1, ("W00",))
    second = gateway.request_clue(state, agent)
    assert (second.clue.word, second.clue.count, second.clue.intended_words) == ("farm", 0, None)


def test_repeated_clue_is_rerequested_before_any_mutation(red_game) -> None:
    game, state = red_game
    state = _with_history(game, state, "ocean", "forest")
    submitted = []

    class RecordingGame(type(game)):
        def submit_clue(self, *args, **kwargs):
            submitted.append(args)
            return super().submit_clue(*args, **kwargs)

    recording = RecordingGame(board_generator=game.board_generator)
    agent = ScriptedAgent("spy", replies=[{"word": "OCEAN", "count": 1}, {"word": "river", "count": 1}])
    gateway = AgentGateway(recording)
    decision = gateway.request_clue(state, agent)

    assert submitted == []
    assert decision.clue.word == "river"
    assert decision.attempts == 2
    assert [(item.word, item.reason) for item in decision.rejections] == [("OCEAN", "history_duplicate")]
    assert agent.requests[1]["rejected_words"] == ["OCEAN"]

    after = gateway.fold_clue(state, decision)
    assert len(submitted) == 1
    assert [entry.clue_word for entry in after.clue_history] == ["ocean", "forest", "river"]


def test_board_word_is_rerequested(red_game) -> None:
    game, state = red_game
    agent = ScriptedAgent("spy", replies=[{"word": "w05", "count": 1}, {"word": "pets", "count": 1}])
    decision = AgentGateway(game).request_clue(state, agent)

    assert decision.clue.word == "pets"
    assert [item.reason for item in decision.rejections] == ["board_word"]


def test_history_duplicate_accepted_once_cap_is_exhausted(red_game, caplog) -> None:
    game, state = red_game
    state = _with_history(game, state, "ocean", "forest")
    agent = ScriptedAgent("spy", replies=[{"word": "ocean", "count": 1}] * 4)
    with caplog.at_level("WARNING", logger="codenames.codenames_gateway"):
        decision = AgentGateway(game).request_clue(state, agent)

    assert decision.accepted_on_cap
    assert decision.attempts == 4
    assert len(decision.rejections) == 3
    assert decision.clue.word == "ocean"
    assert any("retry cap" in record.getMessage() for record in caplog.records)


def test_board_cap_is_counted_separately(red_game) -> None:
    game, state = red_game
    policy = CluePolicy(max_history_retries=1, max_board_retries=2)
    replies = [{"word": "W00", "count": 1}, {"word": "W01", "count": 1}, {"word": "W02", "count": 1}]
    decision = AgentGateway(game, policy).request_clue(state, ScriptedAgent("spy", replies=replies))

    assert decision.accepted_on_cap
    assert decision.clue.word == "W02"
    assert decision.attempts == 3


def test_policy_can_be_disabled(red_game) -> None:
    game, state = red_game
    policy = CluePolicy(reject_history_duplicates=False, reject_board_words=False)
    decision = AgentGateway(game, policy).request_clue(state, ScriptedAgent("spy", replies=[{"word": "W00", "count": 1}]))
    assert decision.attempts == 1
    assert not decision.accepted_on_cap


@pytest.mark.parametrize(
    "reply",
    [
        None,
        "no json here",
        "[1, 2]",
        {"count": 1},
        {"word": "", "count": 1},
        {"word": "pets", "count": -1},
        {"word": "pets", "count": "2"},
        {"word": "pets", "count": 1.5},
        {"word": 7, "count": 1},
        ["pets", 1],
    ],
)
def test_malformed_clue_replies_are_agent_errors(red_game, reply) -> None:
    game, state = red_game
    with pytest.raises(AgentResponseError) as info:
        AgentGateway(game).request_clue(state, ScriptedAgent("spy", replies=[reply]))
    assert info.value.player_id == "RED_SPYMASTER"


def test_agent_failures_are_wrapped(red_game) -> None:
    game, state = red_game

    def failing(request):
        raise AgentExecutionError("spy", "provider timed out")

    def crashing(request):
        raise RuntimeError("boom")

    with pytest.raises(AgentResponseError, match="provider timed out"):
        AgentGateway(game).request_clue(state, ScriptedAgent("spy", failing))
    with pytest.raises(AgentResponseError, match="boom"):
        AgentGateway(game).request_clue(state, ScriptedAgent("spy", crashing))


def test_requests_check_phase(red_game) -> None:
    game, state = red_game
    gateway = AgentGateway(game)
    with pytest.raises(IllegalTransitionError):
        gateway.request_guesses(state, ScriptedAgent("op", replies=[{"guesses": [0]}]))
    with pytest.raises(IllegalTransitionError):
        gateway.request_clue(_guessing(game, state), ScriptedAgent("spy", replies=[{"word": "x", "count": 1}]))


def test_guess_batch_is_validated(red_game) -> None:
    game, state = red_game
    state = _guessing(game, state, count=2)
    gateway = AgentGateway(game)

    batch = gateway.request_guesses(state, ScriptedAgent("op", replies=['{"guesses": [3, 1, 17]}']))
    assert batch.indices == (3, 1, 17)

    with pytest.raises(AgentResponseError, match="out of range"):
        gateway.request_guesses(state, ScriptedAgent("op", replies=[{"guesses": [1, 25]}]))
    for bad in ({"guesses": ["1"]}, {"guesses": 3}, {}, "nope"):
        with pytest.raises(AgentResponseError):
            gateway.request_guesses(state, ScriptedAgent("op", replies=[bad]))


def test_fold_guess_skips_revealed_cards(red_game) -> None:
    game, state = red_game
    state = game.reveal_card(_guessing(game, state, count=2), 0).state
    gateway = AgentGateway(game)

    assert gateway.fold_guess(state, 0) is None
    result = gateway.fold_guess(state, 9)
    assert result.outcome is RevealOutcome.WRONG_TEAM
    assert result.state.active_team is Team.BLUE


def test_clue_response_model_strips_and_ignores_extras() -> None:
    reply = ClueResponse.model_validate({"clue": " pets ", "number": 2, "reasoning": "because"})
    assert reply.word == "pets"
    assert reply.count == 2
    assert reply.intended_words is None
