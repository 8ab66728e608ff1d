"""Provider-agnostic LLM agent that answers clue and guess requests with strict JSON."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from ..errors import AgentExecutionError
from ..player import Agent
from ..serialize import extract_json_object, json_dumps

logger = logging.getLogger(__name__)


class LLMClient(Protocol):
    """Minimal protocol for LLM API adapters."""

    def complete(self, prompt: str, *, system_prompt: str | None = None) -> str:
        """Return a model response for a prompt."""


class StubLLMClient:
    """Replays canned responses in order; handy for offline runs and tests."""

    def __init__(self, responses: list[str]):
        self.responses = list(responses)
        self.prompts: list[str] = []

    def complete(self, prompt: str, *, system_prompt: str | None = None) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise RuntimeError("StubLLMClient has no responses left.")
        return self.responses.pop(0)


class LLMAgent(Agent):
    """LLM-backed automated seat that replies with one JSON object per request."""

    def __init__(
        self,
        agent_id: str,
        llm_client: LLMClient,
        *,
        system_prompt: str | None = None,
        max_retries: int = 2,
    ):
        super().__init__(agent_id=agent_id)
        self.llm_client = llm_client
        self.system_prompt = system_prompt
        self.max_retries = max_retries
        self._last_debug_context: dict[str, Any] | None = None

    def reset(self, game_id: str, player_id: str, role: str | None, seed: int) -> None:
        """Clear per-game debug context."""
        self._last_debug_context = None

    def debug_context(self) -> Mapping[str, Any] | None:
        """Return diagnostics for the most recent request."""
        if self._last_debug_context is None:
            return None
        return dict(self._last_debug_context)

    def respond(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Prompt the model and return the first JSON object it produces."""
        prompt = self._build_prompt(request)
        context: dict[str, Any] = {
            "agent_id": self.agent_id,
            "system_prompt": self.system_prompt,
            "initial_prompt": prompt,
            "repair_prompts": [],
            "raw_responses": [],
            "parse_errors": [],
        }
        self._last_debug_context = context
        try:
            raw = self.llm_client.complete(prompt, system_prompt=self.system_prompt)
        except Exception as exc:
            logger.warning("LLM request failed for %s: %s", self.agent_id, exc)
            raise AgentExecutionError(self.agent_id, f"LLM request failed: {exc}") from exc
        context["raw_responses"].append(raw)

        last_error: str | None = None
        for attempt in range(self.max_retries + 1):
            try:
                if not isinstance(raw, str) or not raw.strip():
                    raise ValueError("LLM returned no response.")
                payload = extract_json_object(raw)
                context["selected_payload"] = payload
                return payload
            except ValueError as exc:
                last_error = str(exc)
                context["parse_errors"].append({"attempt": attempt + 1, "error": last_error})
                if attempt >= self.max_retries:
                    break
                repair_prompt = self._build_repair_prompt(raw_response=raw, error=last_error)
                context["repair_prompts"].append(repair_prompt)
                try:
                    raw = self.llm_client.complete(repair_prompt, system_prompt=self.system_prompt)
                except Exception as repair_exc:
                    last_error = f"LLM repair request failed: {repair_exc}"
                    context["parse_errors"].append({"attempt": attempt + 2, "error": last_error})
                    break
                context["raw_responses"].append(raw)

        logger.warning("LLM %s gave no usable JSON: %s", self.agent_id, last_error)
        raise AgentExecutionError(self.agent_id, f"LLM could not produce a JSON reply: {last_error}")

    def _build_prompt(self, request: Mapping[str, Any]) -> str:
        role = str(request.get("role", "")).upper()
        if role == "SPYMASTER":
            return self._build_clue_prompt(request)
        if role == "OPERATIVE":
            return self._build_guess_prompt(request)
        raise AgentExecutionError(self.agent_id, f"Unsupported request role: {role!r}")

    def _build_clue_prompt(self, request: Mapping[str, Any]) -> str:
        team = str(request.get("team", ""))
        other = "BLUE" if team == "RED" else "RED"
        forbidden = list(request.get("clue_history", [])) + list(request.get("rejected_words", []))
        lines = [
            f"You are the spymaster for the {team} team in Codenames.",
            f"Only clue your own {team} words; never clue words that are {other}, NEUTRAL, or ASSASSIN.",
            "Your clue must be a single word that does not appear on the board.",
            "Prefer clues that connect several of your own unrevealed words.",
        ]
        if forbidden:
            lines.append(f"Do not reuse any of these clue words: {', '.join(str(word) for word in forbidden)}.")
        lines.extend(
            [
                "Output exactly one JSON object and nothing else. Do not use markdown fences.",
                "",
                "Board:",
                json_dumps(request.get("board", []), indent=2),
                "",
                "Required output schema:",
                '{ "word": "<clue>", "count": <n>, "intended_words": ["<board word>", ...] }',
            ]
        )
        return "\n".join(lines) + "\n"

    def _build_guess_prompt(self, request: Mapping[str, Any]) -> str:
        team = str(request.get("team", ""))
        clue = request.get("active_clue") or {}
        count = clue.get("count", 0)
        return (
            f"You are the operative for the {team} team in Codenames.\n"
            f"Your spymaster gave the clue \"{clue.get('word', '')}\" ({count}).\n"
            f"Choose up to {int(count) + 1} unrevealed cards that best match the clue, most likely first.\n"
            "Output exactly one JSON object and nothing else. Do not use markdown fences.\n\n"
            "Unrevealed cards:\n"
            f"{json_dumps(request.get('cards', []), indent=2)}\n\n"
            "Required output schema:\n"
            '{ "guesses": [<index0>, <index1>, ...] }\n'
        )

    def _build_repair_prompt(self, *, raw_response: str, error: str) -> str:
        return (
            "Repair the response into exactly one valid JSON object.\n"
            "Return only the JSON object, no markdown.\n"
            f"Error: {error}\n"
            f"Original response:\n{raw_response}\n"
        )
