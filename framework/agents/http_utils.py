"""Minimal HTTP JSON helper shared by the provider clients."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

logger = logging.getLogger(__name__)

_MAX_ERROR_DETAIL = 2000


def post_json(url: str, payload: dict[str, Any], headers: dict[str, str], timeout_sec: float = 60.0) -> dict[str, Any]:
    """POST a JSON payload and decode the JSON response; transport failures raise RuntimeError."""
    request = Request(url=url, data=json.dumps(payload).encode("utf-8"), method="POST")
    request.add_header("Content-Type", "application/json")
    request.add_header("Accept", "application/json")
    for key, value in headers.items():
        request.add_header(key, value)

    logger.debug("POST %s (timeout=%ss)", url, timeout_sec)
    try:
        with urlopen(request, timeout=timeout_sec) as response:
            raw = response.read().decode("utf-8")
    except HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace")[:_MAX_ERROR_DETAIL]
        raise RuntimeError(f"HTTP {exc.code} from {url}: {detail}") from exc
    except URLError as exc:
        raise RuntimeError(f"Network error calling {url}: {exc.reason}") from exc
    except TimeoutError as exc:
        raise RuntimeError(f"Timed out after {timeout_sec}s calling {url}") from exc

    if not raw:
        return {}
    decoded = json.loads(raw)
    if not isinstance(decoded, dict):
        raise RuntimeError(f"Expected a JSON object from {url}.")
    return decoded
