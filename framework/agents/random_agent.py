"""Random baseline agent."""

from __future__ import annotations

import hashlib
import random
from typing import Any, Mapping

from ..errors import AgentExecutionError
from ..player import Agent

_FILLER_CLUES = (
    "Orbit", "Echo", "Ripple", "Signal", "Shadow", "Harvest", "Voyage", "Spark",
    "Summit", "Tide", "Ember", "Riddle", "Horizon", "Mirage", "Pulse", "Drift",
)


class RandomAgent(Agent):
    """Offline seat occupant: random clue words and random guesses.

    Clues are drawn from a fixed filler list; guesses are drawn from the
    unrevealed cards in the request.
    """

    def __init__(self, agent_id: str, *, clue_words: tuple[str, ...] = _FILLER_CLUES):
        super().__init__(agent_id=agent_id)
        self.clue_words = clue_words
        self._rng = random.Random()

    def reset(self, game_id: str, player_id: str, role: str | None, seed: int) -> None:
        """Reset deterministic RNG state per game and seat."""
        material = f"{seed}:{game_id}:{self.agent_id}:{player_id}".encode("utf-8")
        derived_seed = int.from_bytes(hashlib.sha256(material).digest()[:8], byteorder="big", signed=False)
        self._rng.seed(derived_seed)

    def respond(self, request: Mapping[str, Any]) -> dict[str, Any]:
        role = str(request.get("role", "")).upper()
        if role == "SPYMASTER":
            return self._random_clue(request)
        if role == "OPERATIVE":
            return self._random_guesses(request)
        raise AgentExecutionError(self.agent_id, f"Unsupported request role: {role!r}")

    def _random_clue(self, request: Mapping[str, Any]) -> dict[str, Any]:
        team = request.get("team")
        own_words = [
            card["word"]
            for card in request.get("board", [])
            if card.get("color") == team and not card.get("revealed")
        ]
        used = {str(word).casefold() for word in request.get("clue_history", [])}
        used.update(str(word).casefold() for word in request.get("rejected_words", []))
        options = [word for word in self.clue_words if word.casefold() not in used] or list(self.clue_words)
        count = self._rng.randint(1, max(1, min(2, len(own_words))))
        intended = self._rng.sample(own_words, min(count, len(own_words)))
        return {"word": self._rng.choice(options), "count": count, "intended_words": intended}

    def _random_guesses(self, request: Mapping[str, Any]) -> dict[str, Any]:
        indices = [int(card["index"]) for card in request.get("cards", [])]
        if not indices:
            raise AgentExecutionError(self.agent_id, "No unrevealed cards to guess.")
        clue = request.get("active_clue") or {}
        budget = int(clue.get("count", 0)) + 1
        return {"guesses": self._rng.sample(indices, min(budget, len(indices)))}
