"""Deterministic JSON encoding and hashing for game snapshots and events."""

from __future__ import annotations

import dataclasses
import hashlib
import json
import re
from enum import Enum
from pathlib import Path
from typing import Any, Mapping


def to_serializable(value: Any) -> Any:
    """Convert Python objects into JSON-serializable primitives.

    Objects exposing ``to_dict()`` win over the generic dataclass conversion so
    aggregates can control their own wire shape.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return to_serializable(value.to_dict())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: to_serializable(getattr(value, field.name))
            for field in dataclasses.fields(value)
        }
    if isinstance(value, Mapping):
        return {str(key): to_serializable(field_value) for key, field_value in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_serializable(item) for item in value]
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable.")


def json_dumps(value: Any, *, indent: int | None = None) -> str:
    """Serialize any supported value to a deterministic JSON string."""
    separators = (",", ":") if indent is None else None
    return json.dumps(
        to_serializable(value),
        sort_keys=True,
        ensure_ascii=True,
        separators=separators,
        indent=indent,
    )


def json_loads_object(raw: str | bytes) -> dict[str, Any]:
    """Decode a JSON document that must be an object."""
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError("Expected a JSON object.")
    return parsed


def digest(value: Any) -> str:
    """Return a SHA256 digest of the deterministic JSON encoding."""
    encoded = json_dumps(value).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def extract_json_object(raw: str) -> dict[str, Any]:
    """Pull one JSON object out of free-form model output (tolerates fences and chatter)."""
    text = _FENCE_RE.sub("", raw.strip()).strip()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, dict):
        return parsed

    match = re.search(r"\{[\s\S]*\}", text)
    if not match:
        raise ValueError("No JSON object found in model output.")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise ValueError("Model output JSON must be an object.")
    return parsed
