"""Environment and .env helpers for provider credentials and service settings."""

from __future__ import annotations

import os
from pathlib import Path

_DOTENV_LOADED = False


def _parse_dotenv_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None
    if line.startswith("export "):
        line = line[7:].strip()
    if "=" not in line:
        return None
    key, value = (part.strip() for part in line.split("=", 1))
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        value = value[1:-1]
    return key, value


def load_dotenv(path: str | Path = ".env") -> None:
    """Load variables from a .env file once; values already in the environment win."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    _DOTENV_LOADED = True

    dotenv_path = Path(path)
    if not dotenv_path.exists():
        return
    for raw_line in dotenv_path.read_text(encoding="utf-8").splitlines():
        parsed = _parse_dotenv_line(raw_line)
        if parsed is not None:
            os.environ.setdefault(*parsed)


def getenv_any(*names: str, default: str | None = None) -> str | None:
    """Return first defined env var from a list of candidate names."""
    load_dotenv()
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


def require_env_any(*names: str) -> str:
    """Return first defined env var value or raise a readable error."""
    value = getenv_any(*names)
    if value is not None:
        return value
    joined = ", ".join(names)
    raise ValueError(f"Missing required environment variable. Set one of: {joined}")


def getenv_float(name: str, default: float) -> float:
    """Read a float setting, e.g. CODENAMES_GUESS_DELAY_SEC."""
    raw = getenv_any(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a number; got {raw!r}.") from exc
