"""Environment-driven client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .errors import ConfigurationError

DEFAULT_API_URL = "http://localhost:10405"
DEFAULT_HTTP_TIMEOUT_SEC = 10.0
DEFAULT_BRIDGE_HOST = "127.0.0.1"
DEFAULT_BRIDGE_PORT = 8000
LOG_FORMATS = ("console", "json")

_DOTENV_LOADED = False


def load_dotenv(path: str | Path = ".env") -> None:
    """Load environment variables from a .env file without overriding existing values."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return

    dotenv_path = Path(path)
    if not dotenv_path.exists():
        _DOTENV_LOADED = True
        return

    for raw_line in dotenv_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[7:].strip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        os.environ.setdefault(key.strip(), value)

    _DOTENV_LOADED = True


def getenv_any(*names: str, default: str | None = None, env: Mapping[str, str] | None = None) -> str | None:
    """Return the first non-empty value among candidate variable names."""
    if env is None:
        load_dotenv()
        env = os.environ
    for name in names:
        value = env.get(name)
        if value:
            return value
    return default


def _parse_number(name: str, raw: str, cast: type) -> int | float:
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class ClientConfig:
    """Settings for joining one room and serving the local bridge."""

    api_url: str = DEFAULT_API_URL
    auth_token: str | None = None
    room_id: int | None = None
    cards_path: Path | None = None
    http_timeout_sec: float = DEFAULT_HTTP_TIMEOUT_SEC
    log_level: str = "INFO"
    log_format: str = "console"
    bridge_host: str = DEFAULT_BRIDGE_HOST
    bridge_port: int = DEFAULT_BRIDGE_PORT

    def require_auth_token(self) -> str:
        if not self.auth_token:
            raise ConfigurationError("Missing required environment variable. Set one of: ANTENNA_AUTH_TOKEN")
        return self.auth_token

    def require_room_id(self) -> int:
        if self.room_id is None:
            raise ConfigurationError("Missing required environment variable. Set one of: ANTENNA_ROOM_ID")
        return self.room_id


def load_config(env: Mapping[str, str] | None = None) -> ClientConfig:
    """Build a `ClientConfig` from the environment (or an explicit mapping)."""
    api_url = getenv_any("ANTENNA_API_URL", default=DEFAULT_API_URL, env=env).rstrip("/")
    if not api_url.startswith(("http://", "https://")):
        raise ConfigurationError(f"ANTENNA_API_URL must be an http(s) URL, got {api_url!r}")

    raw_room = getenv_any("ANTENNA_ROOM_ID", env=env)
    room_id = int(_parse_number("ANTENNA_ROOM_ID", raw_room, int)) if raw_room is not None else None

    raw_cards = getenv_any("ANTENNA_CARDS_PATH", env=env)
    raw_timeout = getenv_any("ANTENNA_HTTP_TIMEOUT_SEC", env=env)
    raw_port = getenv_any("ANTENNA_BRIDGE_PORT", env=env)

    log_format = getenv_any("ANTENNA_LOG_FORMAT", default="console", env=env).lower()
    if log_format not in LOG_FORMATS:
        raise ConfigurationError(f"ANTENNA_LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}, got {log_format!r}")

    return ClientConfig(
        api_url=api_url,
        auth_token=getenv_any("ANTENNA_AUTH_TOKEN", env=env),
        room_id=room_id,
        cards_path=Path(raw_cards) if raw_cards is not None else None,
        http_timeout_sec=(
            float(_parse_number("ANTENNA_HTTP_TIMEOUT_SEC", raw_timeout, float))
            if raw_timeout is not None
            else DEFAULT_HTTP_TIMEOUT_SEC
        ),
        log_level=getenv_any("ANTENNA_LOG_LEVEL", default="INFO", env=env).upper(),
        log_format=log_format,
        bridge_host=getenv_any("ANTENNA_BRIDGE_HOST", default=DEFAULT_BRIDGE_HOST, env=env),
        bridge_port=(
            int(_parse_number("ANTENNA_BRIDGE_PORT", raw_port, int)) if raw_port is not None else DEFAULT_BRIDGE_PORT
        ),
    )
