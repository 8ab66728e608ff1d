"""Persistent JSON statistics store for finished games and post-game ratings."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


def _default_payload() -> dict[str, Any]:
    return {
        "version": 1,
        "updated_at": _utc_now_iso(),
        "games": {},
    }


def _average(values: list[int]) -> float | None:
    if not values:
        return None
    return round(sum(values) / len(values), 2)


@dataclass
class StatsStore:
    """Simple JSON file-backed record of every finished game."""

    path: Path

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self._write(_default_payload())

    def _read(self) -> dict[str, Any]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Statistics file %s unreadable (%s); starting fresh.", self.path, exc)
            raw = _default_payload()
        if not isinstance(raw.get("games"), dict):
            raw["games"] = {}
        return raw

    def _write(self, payload: dict[str, Any]) -> None:
        payload["updated_at"] = _utc_now_iso()
        temp = self.path.with_suffix(self.path.suffix + ".tmp")
        temp.write_text(json.dumps(payload, sort_keys=True, indent=2), encoding="utf-8")
        temp.replace(self.path)

    def record_game(
        self,
        *,
        game_id: str,
        ai_spymaster: bool,
        ai_operative: bool,
        winner: str | None,
        termination_reason: str | None,
        turns: int,
        agent_labels: dict[str, str] | None = None,
    ) -> None:
        """Record one finished game. Recording the same game twice keeps its ratings."""
        payload = self._read()
        games: dict[str, Any] = payload["games"]
        existing = games.get(game_id, {})
        games[game_id] = {
            "ai_spymaster": ai_spymaster,
            "ai_operative": ai_operative,
            "winner": winner,
            "termination_reason": termination_reason,
            "turns": turns,
            "agent_labels": dict(agent_labels or {}),
            "clue_rating": existing.get("clue_rating"),
            "guess_rating": existing.get("guess_rating"),
            "finished_at": existing.get("finished_at") or _utc_now_iso(),
        }
        self._write(payload)
        logger.info("Recorded game %s (winner=%s, reason=%s).", game_id, winner, termination_reason)

    def record_rating(self, *, game_id: str, clue_rating: int | None, guess_rating: int | None) -> None:
        """Attach ratings to a recorded game; ratings for unknown games are kept on a stub entry."""
        payload = self._read()
        entry = payload["games"].setdefault(game_id, {})
        if clue_rating is not None:
            entry["clue_rating"] = clue_rating
        if guess_rating is not None:
            entry["guess_rating"] = guess_rating
        self._write(payload)

    def report(self) -> dict[str, Any]:
        """Aggregate counts and average ratings over recorded games."""
        games = [entry for entry in self._read()["games"].values() if "winner" in entry]
        clue_ratings = [int(entry["clue_rating"]) for entry in games if entry.get("clue_rating") is not None]
        guess_ratings = [int(entry["guess_rating"]) for entry in games if entry.get("guess_rating") is not None]
        wins = {"RED": 0, "BLUE": 0}
        for entry in games:
            if entry.get("winner") in wins:
                wins[entry["winner"]] += 1
        return {
            "total_games": len(games),
            "ai_spymaster": sum(1 for entry in games if entry.get("ai_spymaster")),
            "ai_operative": sum(1 for entry in games if entry.get("ai_operative")),
            "average_clue_rating": _average(clue_ratings),
            "average_guess_rating": _average(guess_ratings),
            "wins": wins,
        }
