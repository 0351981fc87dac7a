"""Minimal HTTP JSON helpers for the game server's REST endpoints."""

from __future__ import annotations

import json
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import ContextFetchError


def auth_headers(token: str) -> dict[str, str]:
    """Headers carrying the session token the way the browser client sends it."""
    return {"Cookie": f"auth={token}"}


def get_json(url: str, headers: dict[str, str], timeout_sec: float = 10.0) -> Any:
    """GET a URL and decode its JSON response."""
    request = Request(url=url, method="GET")
    request.add_header("Accept", "application/json")
    for key, value in headers.items():
        request.add_header(key, value)

    try:
        with urlopen(request, timeout=timeout_sec) as response:
            raw = response.read().decode("utf-8")
    except HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace")
        raise ContextFetchError(url, f"HTTP {exc.code} from {url}: {detail}", status=exc.code) from exc
    except URLError as exc:
        raise ContextFetchError(url, f"Network error calling {url}: {exc.reason}") from exc

    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ContextFetchError(url, f"Invalid JSON from {url}: {exc}") from exc
