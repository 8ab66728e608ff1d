"""State conventions for immutable, serializable game aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Self

from .serialize import digest, json_dumps, json_loads_object, to_serializable


@dataclass(frozen=True)
class State:
    """Base immutable state object with snapshot helpers.

    Subclasses with nested value objects override ``from_dict`` so that
    ``from_dict(to_dict())`` reproduces an equal instance.
    """

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dictionary."""
        return {key: to_serializable(value) for key, value in vars(self).items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build a state instance from serialized data."""
        return cls(**data)  # type: ignore[misc]

    def to_json(self) -> str:
        """Return the canonical JSON snapshot."""
        return json_dumps(self.to_dict())

    @classmethod
    def from_json(cls, raw: str | bytes) -> Self:
        """Restore a state from a canonical JSON snapshot."""
        return cls.from_dict(json_loads_object(raw))

    def state_digest(self) -> str:
        """Return a deterministic digest for logging/replay."""
        return digest(self.to_dict())
