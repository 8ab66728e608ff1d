"""Scripted agent scaffold."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

from ..player import Agent


class ScriptedAgent(Agent):
    """Runs a user-provided policy callable, or replays a fixed list of replies."""

    def __init__(
        self,
        agent_id: str,
        policy: Callable[[Mapping[str, Any]], Any] | None = None,
        *,
        replies: Iterable[Any] | None = None,
    ):
        super().__init__(agent_id=agent_id)
        self.policy = policy
        self.replies = list(replies) if replies is not None else None
        self.requests: list[Mapping[str, Any]] = []

    def respond(self, request: Mapping[str, Any]) -> Any:
        """Delegate to the configured policy or pop the next canned reply."""
        self.requests.append(request)
        if self.policy is not None:
            return self.policy(request)
        if self.replies is None:
            raise NotImplementedError("ScriptedAgent requires a policy(request) callable or a replies list.")
        if not self.replies:
            raise RuntimeError(f"ScriptedAgent {self.agent_id} has no replies left.")
        return self.replies.pop(0)
