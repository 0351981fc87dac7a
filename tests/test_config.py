"""Environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from antenna.config import ClientConfig, getenv_any, load_config
from antenna.errors import ConfigurationError


def test_defaults_when_environment_is_empty() -> None:
    config = load_config({})

    assert config == ClientConfig()
    assert config.api_url == "http://localhost:10405"
    assert config.http_timeout_sec == 10.0
    assert config.bridge_port == 8000


def test_values_are_read_and_normalized() -> None:
    config = load_config(
        {
            "ANTENNA_API_URL": "https://game.example/api/",
            "ANTENNA_AUTH_TOKEN": "abc",
            "ANTENNA_ROOM_ID": "17",
            "ANTENNA_CARDS_PATH": "data/cards.json",
            "ANTENNA_HTTP_TIMEOUT_SEC": "2.5",
            "ANTENNA_LOG_LEVEL": "debug",
            "ANTENNA_LOG_FORMAT": "JSON",
            "ANTENNA_BRIDGE_PORT": "9001",
        }
    )

    assert config.api_url == "https://game.example/api"
    assert config.room_id == 17
    assert config.cards_path == Path("data/cards.json")
    assert config.http_timeout_sec == 2.5
    assert config.log_level == "DEBUG"
    assert config.log_format == "json"
    assert config.bridge_port == 9001
    assert config.require_auth_token() == "abc"


@pytest.mark.parametrize(
    "env",
    [
        {"ANTENNA_API_URL": "ftp://game.example"},
        {"ANTENNA_ROOM_ID": "lobby"},
        {"ANTENNA_ROOM_ID": "0"},
        {"ANTENNA_HTTP_TIMEOUT_SEC": "-1"},
        {"ANTENNA_LOG_FORMAT": "xml"},
    ],
)
def test_invalid_values_raise_configuration_error(env: dict) -> None:
    with pytest.raises(ConfigurationError):
        load_config(env)


def test_missing_required_values_name_the_variable() -> None:
    config = load_config({})

    with pytest.raises(ConfigurationError, match="ANTENNA_AUTH_TOKEN"):
        config.require_auth_token()
    with pytest.raises(ConfigurationError, match="ANTENNA_ROOM_ID"):
        config.require_room_id()


def test_getenv_any_skips_empty_values() -> None:
    env = {"FIRST": "", "SECOND": "two"}

    assert getenv_any("FIRST", "SECOND", env=env) == "two"
    assert getenv_any("MISSING", default="x", env=env) == "x"
